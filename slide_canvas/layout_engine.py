#!/usr/bin/env python3
"""Layout engine that places abstract slides on the canvas as frames and text runs."""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .config import FONT_CODE, GeneratorOptions
from .models import AbstractSlide, Frame, TextRun
from .text_wrap import wrap_code, wrap_text

logger = logging.getLogger(__name__)

INITIAL_ZOOM = 0.5
LINE_HEIGHT_FACTOR = 1.5
BLOCK_GAP = 10
CODE_GAP = 20
NOTES_GAP = 20
NOTES_SCALE = 0.75
BULLET_GLYPH = "•"

# Offsets of the content column inside a frame
TITLE_TOP = 100
TEXT_INSET = 50
INDENT_INSET = 80


def generate_id() -> str:
    return uuid.uuid4().hex[:16]


@dataclass
class Deck:
    """Output of one generation call: scene elements plus presentation state."""
    elements: List[Dict[str, Any]] = field(default_factory=list)
    app_state: Dict[str, Any] = field(default_factory=dict)

    @property
    def frames(self) -> List[Dict[str, Any]]:
        return [element for element in self.elements if element["type"] == "frame"]


class LayoutEngine:
    """
    Deterministic grid layout.

    Slide *i* goes to row ``i // grid_cols`` and column ``i % grid_cols``;
    inside each frame the title, bullets (or body), code and notes are
    stacked top to bottom.
    """

    def __init__(self, id_factory: Optional[Callable[[], str]] = None):
        self.id_factory = id_factory or generate_id

    def cell_origin(self, index: int, options: GeneratorOptions) -> Tuple[float, float]:
        row, col = divmod(index, options.grid_cols)
        x = col * (options.slide_width + options.slide_spacing)
        y = row * (options.slide_height + options.slide_spacing)
        return x, y

    def layout_slides(
        self, slides: Sequence[AbstractSlide], options: Optional[GeneratorOptions] = None
    ) -> List[Dict[str, Any]]:
        """Place every slide and return scene element dictionaries."""
        options = options or GeneratorOptions()
        elements: List[Dict[str, Any]] = []

        for index, slide in enumerate(slides):
            x, y = self.cell_origin(index, options)
            frame = Frame(
                id=self.id_factory(),
                name=slide.title or f"Slide {index + 1}",
                x=x,
                y=y,
                width=options.slide_width,
                height=options.slide_height,
                stroke_color=options.palette.border,
                background_color=options.palette.background,
            )
            elements.append(frame.to_element())
            elements.extend(run.to_element() for run in self._layout_content(slide, frame, options))

        ids = [element["id"] for element in elements]
        if len(set(ids)) != len(ids):
            raise ValueError("Layout produced duplicate element ids; id_factory must return unique values")

        logger.debug("Laid out %d slides as %d elements", len(slides), len(elements))
        return elements

    def generate(
        self, slides: Sequence[AbstractSlide], options: Optional[GeneratorOptions] = None
    ) -> Deck:
        """Lay out a deck and build its initial presentation state."""
        options = options or GeneratorOptions()
        palette = options.palette
        return Deck(
            elements=self.layout_slides(slides, options),
            app_state={
                "viewBackgroundColor": palette.background,
                "currentItemStrokeColor": palette.primary,
                "currentItemBackgroundColor": "transparent",
                "currentItemFillStyle": "solid",
                "currentItemStrokeWidth": 2,
                "currentItemRoughness": 1,
                "currentItemOpacity": 100,
                "currentItemFontFamily": options.font_family,
                "currentItemFontSize": 20,
                "currentItemTextAlign": "left",
                "scrollX": 0,
                "scrollY": 0,
                "zoom": {"value": INITIAL_ZOOM},
                "gridSize": None,
            },
        )

    def _layout_content(
        self, slide: AbstractSlide, frame: Frame, options: GeneratorOptions
    ) -> List[TextRun]:
        palette = options.palette
        runs: List[TextRun] = []
        cursor = frame.y + TITLE_TOP

        def block(lines, left, size, family, color):
            top = cursor
            for offset, line in enumerate(lines):
                if not line:
                    continue
                runs.append(TextRun(
                    id=self.id_factory(),
                    text=line,
                    x=left,
                    y=top + offset * size * LINE_HEIGHT_FACTOR,
                    font_size=size,
                    font_family=family,
                    color=color,
                    frame_id=frame.id,
                ))
            return len(lines) * size * LINE_HEIGHT_FACTOR

        if slide.title:
            block(wrap_text(slide.title), frame.x + TEXT_INSET,
                  options.title_font_size, options.font_family, palette.primary)
            cursor += options.title_font_size * 2

        if slide.bullets:
            for bullet in slide.bullets:
                cursor += block(wrap_text(f"{BULLET_GLYPH} {bullet}"), frame.x + INDENT_INSET,
                                options.bullet_font_size, options.font_family, palette.accent) + BLOCK_GAP
        elif slide.content:
            for paragraph in slide.content:
                cursor += block(wrap_text(paragraph), frame.x + TEXT_INSET,
                                options.content_font_size, options.font_family, palette.secondary) + BLOCK_GAP

        if slide.code and slide.code.content:
            cursor += block(wrap_code(slide.code.content), frame.x + INDENT_INSET,
                            options.code_font_size, FONT_CODE, palette.code_text) + CODE_GAP

        if slide.notes:
            cursor += NOTES_GAP
            block(wrap_text(f"Notes: {slide.notes}"), frame.x + TEXT_INSET,
                  options.content_font_size * NOTES_SCALE, options.font_family, palette.secondary)

        return runs
