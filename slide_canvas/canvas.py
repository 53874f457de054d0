"""
Canvas collaborator interface and an in-memory implementation.

The drawing surface itself lives outside this package. Everything here talks
to it through the handful of methods in :class:`Canvas`. :class:`MemoryCanvas`
implements them over plain dictionaries and rasterizes with Pillow, which
is enough for the command line tool and for tests.
"""
import copy
import io
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Tuple

from PIL import Image, ImageColor, ImageDraw, ImageFont

from .models import CameraState, Region, ViewportSize

logger = logging.getLogger(__name__)

SceneListener = Callable[[List[Dict[str, Any]], Dict[str, Any]], None]


class Canvas(Protocol):
    """Methods the package needs from a drawing surface."""

    def get_scene_elements(self) -> List[Dict[str, Any]]:
        ...

    def update_scene(
        self,
        elements: Optional[List[Dict[str, Any]]] = None,
        app_state: Optional[Dict[str, Any]] = None,
    ) -> None:
        ...

    def get_app_state(self) -> Dict[str, Any]:
        ...

    def get_files(self) -> Dict[str, Any]:
        ...

    def export_region_to_image(
        self,
        region: Region,
        elements: Iterable[Dict[str, Any]],
        *,
        scale: float = 2,
        padding: float = 20,
        background: str = "#ffffff",
    ) -> bytes:
        ...

    def on_scene_change(self, callback: SceneListener) -> Callable[[], None]:
        ...

    def capture_viewport_to_image(self, *, background: Optional[str] = None) -> bytes:
        ...


def _rgb(color: Optional[str]) -> Optional[Tuple[int, int, int]]:
    """Colour string to an RGB tuple; None for transparent or unparsable values."""
    if not color or color == "transparent":
        return None
    try:
        return ImageColor.getrgb(color)[:3]
    except ValueError:
        logger.debug("Unrecognised colour %r", color)
        return None


def _font(size: float):
    return ImageFont.load_default(size=max(1.0, size))


def _draw_elements(
    draw: ImageDraw.ImageDraw,
    elements: Iterable[Dict[str, Any]],
    origin_x: float,
    origin_y: float,
    scale: float,
) -> None:
    """Draw frames (outline) and text runs, mapping scene to pixel space."""
    for element in elements:
        if element.get("isDeleted"):
            continue
        left = (element.get("x", 0) - origin_x) * scale
        top = (element.get("y", 0) - origin_y) * scale

        if element.get("type") in ("frame", "rectangle"):
            right = left + element.get("width", 0) * scale
            bottom = top + element.get("height", 0) * scale
            draw.rectangle(
                [left, top, right, bottom],
                fill=_rgb(element.get("backgroundColor")) if element.get("type") == "rectangle" else None,
                outline=_rgb(element.get("strokeColor")) or (0, 0, 0),
                width=max(1, int(element.get("strokeWidth", 1) * scale)),
            )
        elif element.get("type") == "text" and element.get("text"):
            draw.text(
                (left, top),
                element["text"],
                fill=_rgb(element.get("strokeColor")) or (0, 0, 0),
                font=_font(element.get("fontSize", 20) * scale),
            )


def _png_bytes(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class MemoryCanvas:
    """
    Dictionary-backed canvas.

    Every ``update_scene`` notifies subscribers with the new elements and
    app state, mirroring a live drawing surface's change events.
    """

    def __init__(
        self,
        elements: Optional[List[Dict[str, Any]]] = None,
        app_state: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
        viewport: ViewportSize = ViewportSize(1600, 900),
    ):
        self._elements: List[Dict[str, Any]] = copy.deepcopy(elements or [])
        self._app_state: Dict[str, Any] = {
            "viewBackgroundColor": "#ffffff",
            "scrollX": 0,
            "scrollY": 0,
            "zoom": {"value": 1},
            "activeTool": {"type": "selection", "locked": False},
        }
        self._app_state.update(copy.deepcopy(app_state or {}))
        self._files = dict(files or {})
        self._listeners: List[SceneListener] = []
        self.viewport = viewport
        self.update_count = 0

    def get_scene_elements(self) -> List[Dict[str, Any]]:
        return [copy.deepcopy(element) for element in self._elements if not element.get("isDeleted")]

    def update_scene(
        self,
        elements: Optional[List[Dict[str, Any]]] = None,
        app_state: Optional[Dict[str, Any]] = None,
    ) -> None:
        if elements is not None:
            self._elements = copy.deepcopy(list(elements))
        if app_state:
            self._app_state.update(copy.deepcopy(app_state))
        self.update_count += 1

        for listener in list(self._listeners):
            listener(self.get_scene_elements(), self.get_app_state())

    def get_app_state(self) -> Dict[str, Any]:
        return copy.deepcopy(self._app_state)

    def get_files(self) -> Dict[str, Any]:
        return dict(self._files)

    def on_scene_change(self, callback: SceneListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def export_region_to_image(
        self,
        region: Region,
        elements: Iterable[Dict[str, Any]],
        *,
        scale: float = 2,
        padding: float = 20,
        background: str = "#ffffff",
    ) -> bytes:
        """Render ``elements`` cropped to ``region`` plus padding as PNG."""
        width = int(round((region.width + 2 * padding) * scale))
        height = int(round((region.height + 2 * padding) * scale))
        image = Image.new("RGB", (width, height), _rgb(background) or (255, 255, 255))
        _draw_elements(
            ImageDraw.Draw(image),
            elements,
            region.x - padding,
            region.y - padding,
            scale,
        )
        return _png_bytes(image)

    def capture_viewport_to_image(self, *, background: Optional[str] = None) -> bytes:
        """Render what the current camera shows in the viewport."""
        camera = CameraState.from_app_state(self._app_state)
        fill = _rgb(background or self._app_state.get("viewBackgroundColor")) or (255, 255, 255)
        image = Image.new("RGB", (int(self.viewport.width), int(self.viewport.height)), fill)
        _draw_elements(
            ImageDraw.Draw(image),
            self.get_scene_elements(),
            -camera.offset_x,
            -camera.offset_y,
            camera.zoom,
        )
        return _png_bytes(image)
