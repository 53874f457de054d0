"""Test palette theme loading."""

import pytest

from slide_canvas.palettes import (
    THEME_ORDER,
    get_css,
    get_default_palette,
    get_palette_by_index,
    get_palette_by_name,
    list_available_themes,
    load_palette,
)
import slide_canvas.palettes as palettes


def test_get_css_default():
    css = get_css("default")

    assert isinstance(css, str)
    assert ":root" in css
    assert "--background" in css


def test_get_css_invalid_theme():
    """Invalid theme names raise appropriate errors."""
    with pytest.raises(FileNotFoundError):
        get_css("nonexistent")

    # Path traversal attempts
    with pytest.raises(ValueError):
        get_css("../evil")

    with pytest.raises(ValueError):
        get_css("theme/../../evil")


def test_list_available_themes_bundled_order():
    themes = list_available_themes()
    assert themes[: len(THEME_ORDER)] == THEME_ORDER


def test_all_bundled_palettes_load():
    for theme in THEME_ORDER:
        palette = load_palette(theme)
        for role in ("background", "surface", "primary", "secondary", "accent",
                     "border", "code_background", "code_text"):
            assert getattr(palette, role).startswith("#"), (theme, role)


def test_default_palette():
    palette = get_default_palette()
    assert palette.name == "xpres.so"
    assert palette.background == "#FFFEF9"
    assert palette.primary == "#2C3E50"


def test_palette_by_name():
    assert get_palette_by_name("Dark Mode").background == "#1A1A1A"
    assert get_palette_by_name("High Contrast") is not None
    assert get_palette_by_name("No Such Palette") is None


def test_palette_by_index_wraps():
    count = len(list_available_themes())
    assert get_palette_by_index(0) == get_default_palette()
    assert get_palette_by_index(count) == get_default_palette()
    assert get_palette_by_index(-1) == get_palette_by_index(1)


def test_missing_role_is_reported(tmp_path, monkeypatch):
    (tmp_path / "broken.css").write_text(':root {\n  --palette-name: "Broken";\n  --background: #fff;\n}\n')
    monkeypatch.setattr(palettes, "THEMES_DIR", tmp_path)

    with pytest.raises(ValueError, match="--surface"):
        load_palette("broken")
