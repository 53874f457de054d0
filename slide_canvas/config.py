"""
Configuration objects: deck geometry/typography and remote service settings.

Both are immutable; a generation call receives its own copy and nothing is
read from module-level mutable state.
"""
import os
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional

from .exceptions import InputError
from .palettes import ColorPalette, get_default_palette

# Font family ids understood by the canvas: 1 hand-drawn, 2 normal, 3 code.
FONT_HAND_DRAWN = 1
FONT_NORMAL = 2
FONT_CODE = 3

PLACEHOLDER_API_KEY = "your_api_key_here"


@dataclass(frozen=True)
class GeneratorOptions:
    """Geometry, typography and palette for one generation call."""
    slide_width: float = 1200
    slide_height: float = 800
    slide_spacing: float = 200
    grid_cols: int = 5
    title_font_size: float = 48
    content_font_size: float = 32
    bullet_font_size: float = 28
    code_font_size: float = 24
    font_family: int = FONT_HAND_DRAWN
    palette: ColorPalette = field(default_factory=get_default_palette)

    def __post_init__(self):
        if self.slide_width <= 0 or self.slide_height <= 0:
            raise ValueError(f"Slide size must be positive, got {self.slide_width}x{self.slide_height}")
        if self.slide_spacing < 0:
            raise ValueError(f"Slide spacing must not be negative, got {self.slide_spacing}")
        if self.grid_cols < 1:
            raise ValueError(f"Grid needs at least one column, got {self.grid_cols}")
        for name in ("title_font_size", "content_font_size", "bullet_font_size", "code_font_size"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")

    def with_overrides(self, **overrides) -> "GeneratorOptions":
        return replace(self, **overrides)


def _clean_key(value: Optional[str]) -> Optional[str]:
    if not value or value.strip() in ("", PLACEHOLDER_API_KEY):
        return None
    return value.strip()


@dataclass(frozen=True)
class Settings:
    """Credentials and endpoints for the remote structuring services."""
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.0-flash-exp"
    gemini_base_url: str = "https://generativelanguage.googleapis.com"
    xai_api_key: Optional[str] = None
    xai_model: str = "grok-4-fast-reasoning"
    xai_base_url: str = "https://api.x.ai"
    timeout: float = 60.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        defaults = cls()
        raw_timeout = env.get("SLIDE_CANVAS_TIMEOUT")
        try:
            timeout = float(raw_timeout) if raw_timeout else defaults.timeout
        except ValueError as exc:
            raise InputError(f"SLIDE_CANVAS_TIMEOUT must be a number of seconds, got {raw_timeout!r}", cause=exc)
        return cls(
            gemini_api_key=_clean_key(env.get("GEMINI_API_KEY")),
            gemini_model=env.get("GEMINI_MODEL") or defaults.gemini_model,
            xai_api_key=_clean_key(env.get("XAI_API_KEY")),
            xai_model=env.get("XAI_MODEL") or defaults.xai_model,
            xai_base_url=env.get("XAI_BASE_URL") or defaults.xai_base_url,
            timeout=timeout,
        )
