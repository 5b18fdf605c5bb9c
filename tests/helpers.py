"""Shared test helpers that are imported directly by test modules."""

from pathlib import Path


class FakeClock:
    """Monotonic clock that advances by a fixed step on every call."""

    def __init__(self, start: float = 0.0, step: float = 1.0) -> None:
        self.now = start
        self.step = step
        self.calls = 0

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        self.calls += 1
        return value


def snapshot(root: Path) -> dict[str, bytes | str]:
    """Capture every path below root with file contents or link targets."""
    result: dict[str, bytes | str] = {}
    for path in sorted(root.rglob("*")):
        rel = str(path.relative_to(root))
        if path.is_symlink():
            result[rel] = f"-> {path.readlink()}"
        elif path.is_dir():
            result[rel] = "<dir>"
        else:
            result[rel] = path.read_bytes()
    return result
