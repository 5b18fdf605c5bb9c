"""Unit tests for theme module.

Tests for theme loading, validation, and Rich theme generation.
"""

# pyright: reportPrivateUsage=false

from pathlib import Path

import pytest
from purgectl.core.theme import ThemeColors, _load_toml_colors, get_rich_theme, load_theme
from rich.theme import Theme


class TestThemeColors:
    """Tests for ThemeColors Pydantic model."""

    def test_default_values(self) -> None:
        """ThemeColors has sensible defaults."""
        colors = ThemeColors()
        assert colors.text == "#ffffff"
        assert colors.header == "#69B9A1"
        assert colors.success == "#03b971"
        assert colors.error == "#f53263"

    def test_valid_hex_colors(self) -> None:
        """ThemeColors accepts #RGB and #RRGGBB codes."""
        colors = ThemeColors(text="#AABBCC", muted="#abc")
        assert colors.text == "#AABBCC"
        assert colors.muted == "#abc"

    def test_invalid_hex_no_hash(self) -> None:
        """ThemeColors rejects colors without # prefix."""
        with pytest.raises(ValueError, match="must start with '#'"):
            ThemeColors(text="ffffff")

    def test_invalid_hex_wrong_length(self) -> None:
        """ThemeColors rejects colors with wrong length."""
        with pytest.raises(ValueError, match="must be #RGB or #RRGGBB"):
            ThemeColors(text="#ff")

    def test_invalid_hex_chars(self) -> None:
        """ThemeColors rejects invalid hex characters."""
        with pytest.raises(ValueError, match="invalid hex color"):
            ThemeColors(text="#gggggg")

    def test_extra_fields_forbidden(self) -> None:
        """ThemeColors rejects unknown fields."""
        with pytest.raises(ValueError):
            ThemeColors(unknown_field="#ffffff")  # type: ignore[call-arg]


class TestLoadTomlColors:
    """Tests for _load_toml_colors internal function."""

    def test_loads_valid_toml(self, tmp_path: Path) -> None:
        """Loads colors from valid TOML file."""
        theme_file = tmp_path / "theme.toml"
        theme_file.write_text('[colors]\ntext = "#000000"\nheader = "#aabbcc"\n')

        result = _load_toml_colors(theme_file)

        assert result == {"text": "#000000", "header": "#aabbcc"}

    def test_returns_none_for_missing_file(self, tmp_path: Path) -> None:
        """Returns None when file doesn't exist."""
        assert _load_toml_colors(tmp_path / "nonexistent.toml") is None

    def test_returns_none_for_invalid_toml(self, tmp_path: Path) -> None:
        """Returns None for malformed TOML."""
        theme_file = tmp_path / "theme.toml"
        theme_file.write_text("not valid [ toml syntax")

        assert _load_toml_colors(theme_file) is None

    def test_returns_empty_dict_for_missing_colors_section(self, tmp_path: Path) -> None:
        """Returns empty dict when colors section is missing."""
        theme_file = tmp_path / "theme.toml"
        theme_file.write_text('[other]\nkey = "value"\n')

        assert _load_toml_colors(theme_file) == {}


class TestLoadTheme:
    """Tests for load_theme function."""

    def test_defaults_without_user_file(self, tmp_path: Path) -> None:
        """Without an override file the defaults are used."""
        colors = load_theme(tmp_path / "theme.toml")

        assert colors == ThemeColors()

    def test_partial_user_overrides(self, tmp_path: Path) -> None:
        """User can override only some colors."""
        user_theme = tmp_path / "theme.toml"
        user_theme.write_text('[colors]\nsuccess = "#00ff00"\n')

        colors = load_theme(user_theme)

        assert colors.success == "#00ff00"
        assert colors.header == "#69B9A1"

    def test_invalid_user_colors_fall_back(self, tmp_path: Path) -> None:
        """Invalid override values fall back to the defaults."""
        user_theme = tmp_path / "theme.toml"
        user_theme.write_text('[colors]\nerror = "red"\n')

        colors = load_theme(user_theme)

        assert colors.error == "#f53263"


class TestGetRichTheme:
    """Tests for get_rich_theme function."""

    def test_includes_styles(self) -> None:
        """Theme includes base and convenience styles."""
        theme = get_rich_theme(ThemeColors())

        assert isinstance(theme, Theme)
        for name in ("text", "muted", "header", "border", "success", "warning", "error", "info"):
            assert name in theme.styles
        assert "bold_header" in theme.styles
        assert "dim" in theme.styles
