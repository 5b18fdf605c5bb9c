"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from collections.abc import Callable
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolated_xdg(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG config and state directories at a throwaway location."""
    base = tmp_path_factory.mktemp("xdg")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(base / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(base / "state"))
    for var in (
        "PURGECTL_MOUNT_PATH",
        "PURGECTL_TENANTS",
        "PURGECTL_EXCLUDE",
        "PURGECTL_BATCH_SIZE",
        "PURGECTL_MAX_DURATION",
        "PURGECTL_DRY_RUN",
        "PURGECTL_WORKERS",
        "PURGECTL_MAX_ERROR_RATE",
        "PURGECTL_CONFIG",
    ):
        monkeypatch.delenv(var, raising=False)
    return base


@pytest.fixture
def make_tree() -> Callable[[Path, dict[str, str]], Path]:
    """Create files from a mapping of relative path to content.

    Intermediate directories are created as needed. A key ending in "/"
    creates an empty directory.
    """

    def _make(root: Path, layout: dict[str, str]) -> Path:
        root.mkdir(parents=True, exist_ok=True)
        for rel, content in layout.items():
            target = root / rel
            if rel.endswith("/"):
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
        return root

    return _make

