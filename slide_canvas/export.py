#!/usr/bin/env python3
"""
Export regions to a paginated document, one region per page.

Each region is isolated, rasterized by the canvas on a white background and
placed on its own page with a caption and an ``i / N`` indicator. PDF pages
are drawn with reportlab, PPTX slides with python-pptx.
"""
import contextlib
import inspect
import io
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from PIL import Image
from pptx import Presentation
from pptx.enum.text import PP_ALIGN
from pptx.util import Pt
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas as pdf_canvas

from .camera import fit_region
from .exceptions import ExportError, PreconditionError
from .models import Region, ViewportSize

logger = logging.getLogger(__name__)

EXPORT_SCALE = 2
EXPORT_PADDING = 20
EXPORT_BACKGROUND = "#ffffff"
MEMBERSHIP_TOLERANCE = 10
PAGE_MARGIN = 20
CAPTION_BAND = 24
CAPTION_FONT_SIZE = 11

FORMAT_PDF = "pdf"
FORMAT_PPTX = "pptx"

# Camera keys moved while exporting and restored afterwards
_VIEW_KEYS = ("zoom", "scrollX", "scrollY")


@dataclass
class PagePlacement:
    """Where an image lands on a page, in points from the top-left corner."""
    x: float
    y: float
    width: float
    height: float


def belongs_to_region(element: Dict[str, Any], region: Region, tolerance: float = MEMBERSHIP_TOLERANCE) -> bool:
    """
    Membership of a scene element in a region.

    The region's own frame belongs to it. Other frames never do. An element
    with a frame reference belongs exactly when the reference names this
    region; only elements without a reference are matched by bounding box
    against the region grown by ``tolerance``.
    """
    if element.get("id") == region.id:
        return True
    if element.get("type") == "frame":
        return False
    frame_id = element.get("frameId")
    if frame_id:
        return frame_id == region.id
    return region.expanded(tolerance).intersects(
        float(element.get("x", 0)),
        float(element.get("y", 0)),
        float(element.get("width", 0)),
        float(element.get("height", 0)),
    )


def isolate_elements(
    elements: Iterable[Dict[str, Any]], region: Region, tolerance: float = MEMBERSHIP_TOLERANCE
) -> List[Dict[str, Any]]:
    return [element for element in elements if belongs_to_region(element, region, tolerance)]


def fit_to_page(
    image_width: float,
    image_height: float,
    page_width: float,
    page_height: float,
    margin: float = PAGE_MARGIN,
    caption_band: float = CAPTION_BAND,
) -> PagePlacement:
    """
    Scale an image into the page content box keeping its aspect ratio.

    Wider-than-box images fit the box width, the rest fit its height; the
    result is centred in the box.
    """
    if not all(math.isfinite(value) for value in (image_width, image_height, page_width, page_height, margin)):
        raise ExportError("Page fit needs finite image and page dimensions")
    box_width = page_width - 2 * margin
    box_height = page_height - 2 * margin - caption_band
    if box_width <= 0 or box_height <= 0:
        raise ExportError(f"Page {page_width}x{page_height} leaves no room for content")
    if image_width <= 0 or image_height <= 0:
        raise ExportError(f"Image has no area: {image_width}x{image_height}")

    image_aspect = image_width / image_height
    box_aspect = box_width / box_height

    if image_aspect > box_aspect:
        width = box_width
        height = width / image_aspect
    else:
        height = box_height
        width = height * image_aspect

    placement = PagePlacement(
        x=margin + (box_width - width) / 2,
        y=margin + (box_height - height) / 2,
        width=width,
        height=height,
    )
    values = (placement.x, placement.y, placement.width, placement.height)
    if not all(math.isfinite(value) for value in values):
        raise ExportError(f"Page fit produced non-finite placement {values}")
    return placement


def image_size(png: bytes) -> Tuple[int, int]:
    try:
        with Image.open(io.BytesIO(png)) as img:
            return img.size
    except OSError as exc:
        raise ExportError("Rasterized region is not a readable image", cause=exc)


def export_filename(fmt: str = FORMAT_PDF, now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"slide-canvas-presentation-{now:%Y-%m-%d-%H%M%S}.{fmt}"


class PDFDocumentWriter:
    """A4 landscape PDF pages via reportlab."""

    def __init__(self, title: str = "Slide Canvas Presentation"):
        self.buffer = io.BytesIO()
        self.page_size = landscape(A4)
        self.pdf = pdf_canvas.Canvas(self.buffer, pagesize=self.page_size)
        self.pdf.setTitle(title)

    def add_page(self, png: bytes, placement: PagePlacement, caption: str, indicator: str) -> None:
        page_width, page_height = self.page_size
        # reportlab measures y from the bottom edge
        self.pdf.drawImage(
            ImageReader(io.BytesIO(png)),
            placement.x,
            page_height - placement.y - placement.height,
            width=placement.width,
            height=placement.height,
        )
        self.pdf.setFont("Helvetica", CAPTION_FONT_SIZE)
        self.pdf.drawString(PAGE_MARGIN, PAGE_MARGIN, caption)
        self.pdf.drawRightString(page_width - PAGE_MARGIN, PAGE_MARGIN, indicator)
        self.pdf.showPage()

    def finish(self) -> bytes:
        self.pdf.save()
        return self.buffer.getvalue()


class PPTXDocumentWriter:
    """16:9 PPTX deck, one picture slide per region, via python-pptx."""

    def __init__(self, title: str = "Slide Canvas Presentation"):
        self.prs = Presentation()
        self.page_size = (960.0, 540.0)
        self.prs.slide_width = Pt(self.page_size[0])
        self.prs.slide_height = Pt(self.page_size[1])
        self.prs.core_properties.title = title

    def add_page(self, png: bytes, placement: PagePlacement, caption: str, indicator: str) -> None:
        slide = self.prs.slides.add_slide(self.prs.slide_layouts[6])  # Blank layout
        slide.shapes.add_picture(
            io.BytesIO(png),
            Pt(placement.x),
            Pt(placement.y),
            width=Pt(placement.width),
            height=Pt(placement.height),
        )
        page_width, page_height = self.page_size
        top = page_height - PAGE_MARGIN - CAPTION_BAND
        half = (page_width - 2 * PAGE_MARGIN) / 2

        caption_box = slide.shapes.add_textbox(Pt(PAGE_MARGIN), Pt(top), Pt(half), Pt(CAPTION_BAND))
        caption_box.name = "Caption"
        caption_box.text_frame.text = caption
        caption_box.text_frame.paragraphs[0].runs[0].font.size = Pt(CAPTION_FONT_SIZE)

        indicator_box = slide.shapes.add_textbox(Pt(PAGE_MARGIN + half), Pt(top), Pt(half), Pt(CAPTION_BAND))
        indicator_box.name = "Page Indicator"
        indicator_box.text_frame.text = indicator
        paragraph = indicator_box.text_frame.paragraphs[0]
        paragraph.runs[0].font.size = Pt(CAPTION_FONT_SIZE)
        paragraph.alignment = PP_ALIGN.RIGHT

    def finish(self) -> bytes:
        buffer = io.BytesIO()
        self.prs.save(buffer)
        return buffer.getvalue()


WRITERS = {
    FORMAT_PDF: PDFDocumentWriter,
    FORMAT_PPTX: PPTXDocumentWriter,
}


@contextlib.contextmanager
def preserved_view(canvas):
    """Restore the canvas camera and selection however the block exits."""
    saved = canvas.get_app_state()
    try:
        yield saved
    finally:
        restored = {key: saved[key] for key in _VIEW_KEYS if key in saved}
        restored["selectedElementIds"] = saved.get("selectedElementIds") or {}
        canvas.update_scene(app_state=restored)
        logger.debug("Restored pre-export viewport")


async def _resolve(value):
    if inspect.isawaitable(value):
        return await value
    return value


class ExportEngine:
    """
    Rasterize regions one at a time and assemble a document.

    Regions are processed strictly in order because rasterizing moves the
    shared camera and selection of the canvas. Any failure aborts the whole
    export; the viewport is restored either way.
    """

    def __init__(
        self,
        canvas,
        viewport: Optional[Callable[[], ViewportSize]] = None,
        scale: float = EXPORT_SCALE,
        padding: float = EXPORT_PADDING,
        tolerance: float = MEMBERSHIP_TOLERANCE,
    ):
        self.canvas = canvas
        self.viewport = viewport or (lambda: ViewportSize(1600, 900))
        self.scale = scale
        self.padding = padding
        self.tolerance = tolerance

    async def rasterize(self, region: Region, elements: List[Dict[str, Any]]) -> bytes:
        isolated = isolate_elements(elements, region, self.tolerance)
        self.canvas.update_scene(app_state={
            **fit_region(region, self.viewport()).to_app_state(),
            "selectedElementIds": {element["id"]: True for element in isolated},
        })
        png = await _resolve(self.canvas.export_region_to_image(
            region,
            isolated,
            scale=self.scale,
            padding=self.padding,
            background=EXPORT_BACKGROUND,
        ))
        if not png:
            raise ExportError(f"Canvas returned an empty image for '{region.name}'")
        return png

    async def export_all(self, regions: List[Region], fmt: str = FORMAT_PDF) -> bytes:
        if not regions:
            raise PreconditionError("No frames to export. Add frames or generate slides first.")
        if fmt not in WRITERS:
            raise ExportError(f"Unsupported export format '{fmt}'", context={"formats": sorted(WRITERS)})

        writer = WRITERS[fmt]()
        total = len(regions)
        logger.info("Exporting %d regions to %s", total, fmt.upper())

        with preserved_view(self.canvas):
            elements = self.canvas.get_scene_elements()
            for index, region in enumerate(regions, start=1):
                try:
                    png = await self.rasterize(region, elements)
                    width, height = image_size(png)
                    placement = fit_to_page(width, height, *writer.page_size)
                    writer.add_page(png, placement, region.name, f"{index} / {total}")
                except ExportError:
                    raise
                except Exception as exc:
                    raise ExportError(
                        f"Failed to export region '{region.name}'",
                        cause=exc,
                        context={"page": index},
                    ) from exc
                logger.debug("Exported page %d/%d: %s", index, total, region.name)

            return writer.finish()

    async def export_to_file(
        self,
        regions: List[Region],
        directory,
        fmt: str = FORMAT_PDF,
        filename: Optional[str] = None,
    ) -> Path:
        """Build the whole document first, then write it in one go."""
        data = await self.export_all(regions, fmt)
        path = Path(directory) / (filename or export_filename(fmt))
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info("Presentation written to %s", path)
        return path
