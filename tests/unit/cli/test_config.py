"""Unit tests for config CLI commands.

Tests for the purgectl config show and purgectl config init commands.
"""

from pathlib import Path

from purgectl.cli.main import app
from purgectl.core.config import build_config
from purgectl.core.paths import get_config_path
from typer.testing import CliRunner

runner = CliRunner()


class TestConfigInit:
    """Tests for purgectl config init."""

    def test_init_writes_config(self, tmp_path: Path) -> None:
        """init writes a loadable config file for the mount path."""
        path = tmp_path / "config.toml"

        result = runner.invoke(app, ["config", "init", "-m", "/mnt/shared", "-c", str(path)])

        assert result.exit_code == 0
        assert "Config written" in result.stdout
        assert build_config(path=path).mount_path == Path("/mnt/shared")

    def test_init_default_location(self) -> None:
        """Without --config the file goes to the XDG config directory."""
        result = runner.invoke(app, ["config", "init", "-m", "/mnt/shared"])

        assert result.exit_code == 0
        assert get_config_path().exists()

    def test_init_refuses_overwrite(self, tmp_path: Path) -> None:
        """An existing file is kept unless --force is given."""
        path = tmp_path / "config.toml"
        path.write_text('mount_path = "/old"\n')

        result = runner.invoke(app, ["config", "init", "-m", "/new", "-c", str(path)])

        assert result.exit_code == 1
        assert "already exists" in result.output
        assert build_config(path=path).mount_path == Path("/old")

    def test_init_force(self, tmp_path: Path) -> None:
        """--force overwrites an existing file."""
        path = tmp_path / "config.toml"
        path.write_text('mount_path = "/old"\n')

        result = runner.invoke(app, ["config", "init", "-m", "/new", "-c", str(path), "--force"])

        assert result.exit_code == 0
        assert build_config(path=path).mount_path == Path("/new")


class TestConfigShow:
    """Tests for purgectl config show."""

    def test_show_missing(self, tmp_path: Path) -> None:
        """show explains how to create a missing config."""
        result = runner.invoke(app, ["config", "show", "-c", str(tmp_path / "none.toml")])

        assert result.exit_code == 0
        assert "No config file" in result.stdout

    def test_show_values(self, tmp_path: Path) -> None:
        """show lists the keys set in the file."""
        path = tmp_path / "c.toml"
        path.write_text('mount_path = "/mnt/shared"\nbatch_size = 100\n')

        result = runner.invoke(app, ["config", "show", "-c", str(path)])

        assert result.exit_code == 0
        assert "batch_size" in result.stdout
        assert "100" in result.stdout

    def test_show_invalid_toml(self, tmp_path: Path) -> None:
        """An unparseable file is an error."""
        path = tmp_path / "c.toml"
        path.write_text("mount_path = [")

        result = runner.invoke(app, ["config", "show", "-c", str(path)])

        assert result.exit_code == 1
        assert "Invalid TOML" in result.output
