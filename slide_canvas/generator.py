#!/usr/bin/env python3
"""
Main generator module that ties together parsing, layout and the canvas.
"""

import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .camera import CameraSequencer
from .config import GeneratorOptions, Settings
from .exceptions import InputError, NothingParsedError, SlideCanvasError
from .layout_engine import Deck, LayoutEngine
from .models import AbstractSlide, Region
from .regions import RegionRegistry
from .slide_parser import SlideParser
from .structuring import AssistedSlideParser, StructuringBackend, build_backends

logger = logging.getLogger(__name__)

SCENE_TYPE = "excalidraw"
SCENE_VERSION = 2
SCENE_SOURCE = "slide-canvas"


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def validate_elements(elements: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Keep only elements the canvas can place: an id and a type, numeric
    position and, except for frames, a non-zero size.
    """
    valid = []
    for element in elements:
        if not element.get("id") or not element.get("type"):
            logger.debug("Dropping element without id/type: %r", element)
            continue
        if not (_is_number(element.get("x")) and _is_number(element.get("y"))):
            logger.debug("Dropping element %s with non-numeric position", element["id"])
            continue
        if element["type"] != "frame" and not (element.get("width") and element.get("height")):
            logger.debug("Dropping zero-size element %s", element["id"])
            continue
        valid.append(element)
    return valid


def scene_document(canvas) -> Dict[str, Any]:
    """The canvas contents in the scene file format."""
    return {
        "type": SCENE_TYPE,
        "version": SCENE_VERSION,
        "source": SCENE_SOURCE,
        "elements": canvas.get_scene_elements(),
        "appState": canvas.get_app_state(),
        "files": canvas.get_files(),
    }


class SlideGenerator:
    """
    Turns text into slides on a canvas.

    Generation is additive: the new frames and text runs are appended to
    whatever the canvas already holds.
    """

    def __init__(
        self,
        canvas,
        *,
        settings: Optional[Settings] = None,
        backends: Optional[Sequence[StructuringBackend]] = None,
        options: Optional[GeneratorOptions] = None,
        layout_engine: Optional[LayoutEngine] = None,
        registry: Optional[RegionRegistry] = None,
        sequencer: Optional[CameraSequencer] = None,
        parser: Optional[SlideParser] = None,
    ):
        """Create a new :class:`SlideGenerator`.

        Parameters
        ----------
        canvas
            Object implementing the canvas methods (see :mod:`slide_canvas.canvas`).
        settings
            Remote structuring credentials. Without settings or ``backends``
            only the grammar parser is used.
        backends
            Explicit structuring backends, overriding ``settings``.
        options
            Default geometry, typography and palette for :meth:`generate`.
        registry
            Region registry to refresh after generation.
        sequencer
            When given, the first generated region is framed afterwards.
        """
        self.canvas = canvas
        self.options = options or GeneratorOptions()
        self.parser = parser or SlideParser()
        if backends is None:
            backends = build_backends(settings) if settings else []
        self.assisted = AssistedSlideParser(backends, fallback=self.parser)
        self.layout_engine = layout_engine or LayoutEngine()
        self.registry = registry if registry is not None else RegionRegistry(canvas)
        self.sequencer = sequencer

    async def parse(self, text: str, prefer: Optional[str] = None) -> List[AbstractSlide]:
        """Text to slides, through a remote backend when one is selected."""
        return await self.assisted.parse(text, prefer=prefer)

    def import_elements(
        self, elements: Sequence[Dict[str, Any]], app_state: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """
        Validate ``elements`` and append them to the canvas scene.

        Raises :class:`NothingParsedError` when no element survives validation.
        """
        valid = validate_elements(elements)
        if not valid:
            raise NothingParsedError("No valid elements to add to the canvas")
        if len(valid) != len(elements):
            logger.warning("Dropped %d invalid elements", len(elements) - len(valid))

        existing = self.canvas.get_scene_elements()
        self.canvas.update_scene(elements=existing + valid, app_state=app_state)
        self.registry.refresh()
        return valid

    def load_scene(self, path) -> List[Dict[str, Any]]:
        """Append the elements of a scene file to the canvas."""
        path = Path(path)
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise InputError(f"Cannot read scene file '{path}'", cause=exc)
        if not isinstance(document, dict) or not isinstance(document.get("elements"), list):
            raise InputError(f"Scene file '{path}' has no elements list")
        return self.import_elements(document["elements"])

    def write_scene(self, path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(scene_document(self.canvas), indent=2), encoding="utf-8")
        logger.info("Scene written to %s", path)
        return path

    async def generate(
        self,
        text: str,
        *,
        prefer: Optional[str] = None,
        options: Optional[GeneratorOptions] = None,
    ) -> Deck:
        """
        Generate slides from ``text`` and add them to the canvas.

        Args:
            text: Markdown or free-form text
            prefer: Structuring backend name (``"gemini"``, ``"xai"`` or ``"none"``)
            options: Overrides the generator's default options for this call

        Returns:
            Deck: the elements that were added and the applied app state
        """
        if not text or not text.strip():
            raise InputError("Please enter some text to generate slides")

        options = options or self.options
        slides = await self.parse(text, prefer=prefer)
        if not slides:
            raise NothingParsedError("Could not parse any slides from the text")

        deck = self.layout_engine.generate(slides, options)
        deck.elements = self.import_elements(deck.elements, app_state=deck.app_state)
        logger.info("Generated %d slides (%d elements)", len(slides), len(deck.elements))

        if self.sequencer is not None:
            self.frame_first_new_region(deck)
        return deck

    def frame_first_new_region(self, deck: Deck) -> Optional[Region]:
        """Jump (without animation) to the first region of ``deck``."""
        if not deck.frames:
            return None
        first_id = deck.frames[0]["id"]
        for index, region in enumerate(self.registry.ensure_fresh()):
            if region.id == first_id:
                return self.sequencer.go_to(index, animate=False)
        return None


def main():
    """Command-line entry point for the slide canvas generator."""
    import argparse
    import asyncio
    import sys

    from .canvas import MemoryCanvas
    from .export import WRITERS, ExportEngine
    from .palettes import list_available_themes, load_palette

    def _build_parser() -> argparse.ArgumentParser:
        p = argparse.ArgumentParser(
            prog="slide-canvas",
            description="Lay out text as slides on a canvas and export them as a document.",
        )
        p.add_argument("input", type=Path, help="Text or markdown file to convert")
        p.add_argument("--output", "-o", type=Path, help="Destination document (default: timestamped file in the current directory)")
        p.add_argument("--format", "-f", choices=sorted(WRITERS), help="Document format (default: from --output suffix, else pdf)")
        p.add_argument("--palette", "-p", default="default", help="Palette theme (%s)" % ", ".join(list_available_themes()))
        p.add_argument("--ai", choices=["gemini", "xai", "none"], help="Structuring backend (default: first configured)")
        p.add_argument("--scene", type=Path, help="Also write the generated scene to this JSON file")
        p.add_argument("--cols", type=int, help="Number of grid columns")
        p.add_argument("--debug", action="store_true", help="Enable verbose logging")
        return p

    async def _generate_async(args, options):
        """Async wrapper for generation and export."""
        try:
            text = args.input.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise InputError(f"Cannot read '{args.input}' as UTF-8 text", cause=exc)

        canvas = MemoryCanvas()
        registry = RegionRegistry(canvas)
        generator = SlideGenerator(
            canvas,
            settings=Settings.from_env(),
            options=options,
            registry=registry,
        )
        await generator.generate(text, prefer=args.ai)
        if args.scene:
            generator.write_scene(args.scene)

        fmt = args.format
        if fmt is None and args.output is not None and args.output.suffix.lstrip(".") in WRITERS:
            fmt = args.output.suffix.lstrip(".")
        fmt = fmt or "pdf"

        engine = ExportEngine(canvas, viewport=lambda: canvas.viewport)
        if args.output is not None:
            return await engine.export_to_file(registry.refresh(), args.output.parent, fmt, args.output.name)
        return await engine.export_to_file(registry.refresh(), Path.cwd(), fmt)

    # Set up logging
    parser = _build_parser()
    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(levelname)s  %(message)s",
    )

    if not args.input.exists():
        logger.error(f"Input file '{args.input}' not found")
        sys.exit(1)

    try:
        overrides = {"palette": load_palette(args.palette)}
        if args.cols is not None:
            overrides["grid_cols"] = args.cols
        options = GeneratorOptions().with_overrides(**overrides)
    except (ValueError, FileNotFoundError) as exc:
        parser.error(str(exc))

    try:
        output_path = asyncio.run(_generate_async(args, options))
    except SlideCanvasError as exc:
        logger.error("%s", exc)
        sys.exit(1)
    logger.info("✅ Presentation written to %s", output_path)


if __name__ == "__main__":
    main()
