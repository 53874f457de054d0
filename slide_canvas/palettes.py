"""Palette loader for slide canvas CSS themes."""
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

THEMES_DIR = Path(__file__).parent / "themes"

# Presentation order of the bundled palettes; index lookups wrap around it.
THEME_ORDER = [
    "default",
    "dark",
    "ocean",
    "forest",
    "sunset",
    "lavender",
    "corporate",
    "cyberpunk",
    "paper",
    "high-contrast",
]

_ROLE_VARIABLES = {
    "background": "background",
    "surface": "surface",
    "primary": "primary",
    "secondary": "secondary",
    "accent": "accent",
    "border": "border",
    "code_background": "code-background",
    "code_text": "code-text",
}


@dataclass(frozen=True)
class ColorPalette:
    """Eight named colour roles used when laying out a deck."""
    name: str
    background: str
    surface: str
    primary: str
    secondary: str
    accent: str
    border: str
    code_background: str
    code_text: str


def get_css(theme: str = "default") -> str:
    """
    Load CSS content for the specified theme.

    Args:
        theme: Theme name (default, dark, ocean, etc.)

    Returns:
        CSS content as string

    Raises:
        FileNotFoundError: If theme file doesn't exist
        ValueError: If theme name is invalid
    """
    # Validate theme name (security: prevent path traversal)
    if not theme.replace("_", "").replace("-", "").isalnum():
        raise ValueError(f"Invalid theme name: {theme}")

    theme_path = THEMES_DIR / f"{theme}.css"

    if not theme_path.exists():
        raise FileNotFoundError(
            f"Theme '{theme}' not found. Available themes: {list_available_themes()}"
        )

    with open(theme_path, 'r', encoding='utf-8') as f:
        return f.read()


def list_available_themes() -> List[str]:
    """
    List all available themes, bundled order first.
    """
    if not THEMES_DIR.exists():
        return []

    found = {f.stem for f in THEMES_DIR.glob("*.css") if f.is_file()}
    ordered = [name for name in THEME_ORDER if name in found]
    return ordered + sorted(found - set(ordered))


def validate_theme(theme: str) -> bool:
    """
    Check if a theme exists.
    """
    try:
        get_css(theme)
        return True
    except (FileNotFoundError, ValueError):
        return False


def _css_variables(css_content: str, theme: str) -> Dict[str, str]:
    """Extract all CSS variables from the :root section."""
    root_match = re.search(r':root\s*\{([^}]+)\}', css_content, re.DOTALL)
    if not root_match:
        raise ValueError(f"No :root section found in theme '{theme}'")

    css_vars = re.findall(r'--([^:]+):\s*([^;]+);', root_match.group(1))
    return {name.strip(): value.strip() for name, value in css_vars}


def load_palette(theme: str = "default") -> ColorPalette:
    """
    Parse a theme's CSS variables into a :class:`ColorPalette`.

    Raises:
        ValueError: If a colour role is missing from the theme
    """
    css_vars = _css_variables(get_css(theme), theme)

    colors = {}
    for role, variable in _ROLE_VARIABLES.items():
        value = css_vars.get(variable)
        if not value:
            raise ValueError(f"Theme '{theme}' missing required colour --{variable}")
        colors[role] = value

    name = css_vars.get("palette-name", theme).strip('\'"')
    return ColorPalette(name=name, **colors)


def get_default_palette() -> ColorPalette:
    return load_palette("default")


def get_palette_by_name(name: str) -> Optional[ColorPalette]:
    """Find a palette by its display name (e.g. ``"High Contrast"``)."""
    for theme in list_available_themes():
        palette = load_palette(theme)
        if palette.name == name:
            return palette
    return None


def get_palette_by_index(index: int) -> ColorPalette:
    themes = list_available_themes()
    return load_palette(themes[abs(index) % len(themes)])
