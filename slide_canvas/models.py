"""
Data models for slide canvas.
"""
import math
import random
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class CodeBlock:
    """A fenced code block captured verbatim."""
    language: str
    content: str

    @classmethod
    def from_dict(cls, data):
        """Build from a ``{language, content}`` mapping, or return None if unusable."""
        if not isinstance(data, dict) or not isinstance(data.get("content"), str):
            return None
        language = data.get("language")
        if not isinstance(language, str) or not language.strip():
            language = "text"
        return cls(language=language.strip(), content=data["content"])


@dataclass
class AbstractSlide:
    """
    One slide's semantic content, independent of how it is drawn.
    """
    title: Optional[str] = None
    content: List[str] = field(default_factory=list)
    bullets: Optional[List[str]] = None
    code: Optional[CodeBlock] = None
    notes: Optional[str] = None
    image: Optional[str] = None
    visual_description: Optional[str] = None

    def has_content(self) -> bool:
        """A slide is kept only when it has a title, body, bullets or code."""
        return bool(self.title) or len(self.content) > 0 or self.bullets is not None or self.code is not None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AbstractSlide":
        """
        Create an AbstractSlide from the structured JSON shape returned by
        the remote structuring services.
        """
        def _strings(value):
            if not isinstance(value, list):
                return None
            return [item.strip() for item in value if isinstance(item, str) and item.strip()]

        def _text(value):
            if isinstance(value, str) and value.strip():
                return value.strip()
            return None

        return cls(
            title=_text(data.get("title")),
            content=_strings(data.get("content")) or [],
            bullets=_strings(data.get("bullets")) or None,
            code=CodeBlock.from_dict(data.get("code")),
            notes=_text(data.get("notes")),
            image=_text(data.get("image")),
            visual_description=_text(data.get("visualDescription")),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"content": list(self.content)}
        if self.title is not None:
            data["title"] = self.title
        if self.bullets is not None:
            data["bullets"] = list(self.bullets)
        if self.code is not None:
            data["code"] = {"language": self.code.language, "content": self.code.content}
        if self.notes is not None:
            data["notes"] = self.notes
        if self.image is not None:
            data["image"] = self.image
        if self.visual_description is not None:
            data["visualDescription"] = self.visual_description
        return data


def _element_defaults() -> Dict[str, Any]:
    """Bookkeeping fields every scene element carries."""
    return {
        "angle": 0,
        "strokeStyle": "solid",
        "opacity": 100,
        "seed": random.randint(0, 999999),
        "version": 1,
        "versionNonce": random.randint(0, 999999),
        "isDeleted": False,
        "groupIds": [],
        "boundElements": None,
        "updated": int(time.time() * 1000),
        "link": None,
        "locked": False,
    }


@dataclass
class Frame:
    """
    A named rectangle on the canvas. Regions are derived from frames.
    """
    id: str
    name: str
    x: float
    y: float
    width: float
    height: float
    stroke_color: str = "#000000"
    background_color: str = "transparent"

    def __post_init__(self):
        for value in (self.x, self.y, self.width, self.height):
            if not math.isfinite(value):
                raise ValueError(f"Frame '{self.name}' has a non-finite geometry value: {value}")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Frame '{self.name}' must have positive size, got {self.width}x{self.height}")

    def to_element(self) -> Dict[str, Any]:
        element = {
            "id": self.id,
            "type": "frame",
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "strokeColor": self.stroke_color,
            "backgroundColor": self.background_color,
            "fillStyle": "solid",
            "strokeWidth": 2,
            "roughness": 0,
            "frameId": None,
            "name": self.name,
        }
        element.update(_element_defaults())
        return element

    @classmethod
    def from_element(cls, element: Dict[str, Any]) -> "Frame":
        return cls(
            id=element["id"],
            name=element.get("name") or "",
            x=float(element.get("x", 0)),
            y=float(element.get("y", 0)),
            width=float(element.get("width", 0)),
            height=float(element.get("height", 0)),
            stroke_color=element.get("strokeColor", "#000000"),
            background_color=element.get("backgroundColor", "transparent"),
        )


@dataclass
class TextRun:
    """
    One wrapped line of text. ``frame_id`` is a plain back-reference to the
    owning frame; frames never list their text runs.
    """
    id: str
    text: str
    x: float
    y: float
    font_size: float
    font_family: int
    color: str
    frame_id: Optional[str] = None

    @property
    def width(self) -> float:
        """Estimated rendered width."""
        return len(self.text) * (self.font_size * 0.6)

    @property
    def height(self) -> float:
        return self.font_size * 1.25

    def to_element(self) -> Dict[str, Any]:
        element = {
            "id": self.id,
            "type": "text",
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "strokeColor": self.color,
            "backgroundColor": "transparent",
            "fillStyle": "solid",
            "strokeWidth": 2,
            "roughness": 1,
            "text": self.text,
            "originalText": self.text,
            "fontSize": self.font_size,
            "fontFamily": self.font_family,
            "textAlign": "left",
            "verticalAlign": "top",
            "baseline": self.font_size,
            "containerId": None,
            "lineHeight": 1.25,
            "frameId": self.frame_id,
        }
        element.update(_element_defaults())
        return element

    @classmethod
    def from_element(cls, element: Dict[str, Any]) -> "TextRun":
        return cls(
            id=element["id"],
            text=element.get("text", ""),
            x=float(element.get("x", 0)),
            y=float(element.get("y", 0)),
            font_size=float(element.get("fontSize", 20)),
            font_family=int(element.get("fontFamily", 1)),
            color=element.get("strokeColor", "#000000"),
            frame_id=element.get("frameId"),
        )


@dataclass(frozen=True)
class Region:
    """A navigable, exportable rectangle derived from a frame in the scene."""
    id: str
    name: str
    x: float
    y: float
    width: float
    height: float

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    def expanded(self, margin: float) -> "Region":
        """Same region grown by ``margin`` on every side."""
        return Region(
            id=self.id,
            name=self.name,
            x=self.x - margin,
            y=self.y - margin,
            width=self.width + 2 * margin,
            height=self.height + 2 * margin,
        )

    def intersects(self, x: float, y: float, width: float, height: float) -> bool:
        """Check if a bounding box overlaps this region."""
        if x + width < self.x or self.x + self.width < x:
            return False
        if y + height < self.y or self.y + self.height < y:
            return False
        return True

    @classmethod
    def from_element(cls, element: Dict[str, Any], fallback_name: str = "") -> "Region":
        return cls(
            id=element["id"],
            name=element.get("name") or fallback_name,
            x=float(element.get("x", 0)),
            y=float(element.get("y", 0)),
            width=float(element.get("width", 0)),
            height=float(element.get("height", 0)),
        )


@dataclass(frozen=True)
class CameraState:
    """Viewport transform: zoom plus scroll offsets, in scene units."""
    zoom: float
    offset_x: float
    offset_y: float

    @classmethod
    def from_app_state(cls, app_state: Dict[str, Any]) -> "CameraState":
        zoom = app_state.get("zoom") or {}
        value = zoom.get("value") if isinstance(zoom, dict) else zoom
        return cls(
            zoom=float(value or 1),
            offset_x=float(app_state.get("scrollX") or 0),
            offset_y=float(app_state.get("scrollY") or 0),
        )

    def to_app_state(self) -> Dict[str, Any]:
        return {
            "zoom": {"value": self.zoom},
            "scrollX": self.offset_x,
            "scrollY": self.offset_y,
        }


@dataclass(frozen=True)
class ViewportSize:
    """Pixel dimensions of the visible canvas area."""
    width: float
    height: float
