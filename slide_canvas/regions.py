"""
Region registry: derives the ordered list of navigable regions from the
canvas scene.

Ordering is a pure function of a snapshot of scene elements and is
recomputed in full on every refresh; nothing is diffed or cached across
refreshes.
"""
import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from .models import Region

logger = logging.getLogger(__name__)

BAND_THRESHOLD = 50
REFRESH_DEBOUNCE = 0.1


def is_frame(element: Dict[str, Any]) -> bool:
    return element.get("type") == "frame" and not element.get("isDeleted", False)


def extract_regions(elements: Iterable[Dict[str, Any]]) -> List[Region]:
    """Frames in scene order; unnamed frames become ``Frame N``."""
    frames = [element for element in elements if is_frame(element)]
    return [
        Region.from_element(frame, fallback_name=f"Frame {index + 1}")
        for index, frame in enumerate(frames)
    ]


def order_regions(regions: Iterable[Region], threshold: float = BAND_THRESHOLD) -> List[Region]:
    """
    Sort regions into reading order.

    Regions are grouped into horizontal bands: walking down by vertical
    centre, a region joins the current band while its centre is within
    ``threshold`` of the band's first member, otherwise it opens a new band.
    Bands go top to bottom, regions inside a band left to right. Ties fall
    back to centre y and then id so the result is a total order.
    """
    by_center = sorted(regions, key=lambda r: (r.center_y, r.center_x, r.id))

    bands: List[List[Region]] = []
    anchor = None
    for region in by_center:
        if anchor is None or region.center_y - anchor > threshold:
            bands.append([])
            anchor = region.center_y
        bands[-1].append(region)

    ordered: List[Region] = []
    for band in bands:
        ordered.extend(sorted(band, key=lambda r: (r.x, r.center_y, r.id)))
    return ordered


def derive_regions(elements: Iterable[Dict[str, Any]]) -> List[Region]:
    """Scene elements in, navigable regions in reading order out."""
    return order_regions(extract_regions(elements))


class RegionRegistry:
    """
    Keeps the current region ordering for one canvas.

    Scene-change notifications are debounced: a burst of changes results in
    one refresh after ``debounce`` seconds of quiet. Each scheduled refresh
    carries a generation number and does nothing if a newer one superseded it.
    """

    def __init__(self, canvas, debounce: float = REFRESH_DEBOUNCE):
        self.canvas = canvas
        self.debounce = debounce
        self._regions: List[Region] = []
        self._generation = 0
        self._timer: Optional[asyncio.TimerHandle] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._listeners: List[Callable[[List[Region]], None]] = []
        self._dirty = True

    @property
    def regions(self) -> List[Region]:
        return list(self._regions)

    @property
    def dirty(self) -> bool:
        """True when the scene may have changed since the last refresh."""
        return self._dirty

    def mark_dirty(self) -> None:
        self._dirty = True

    def ensure_fresh(self) -> List[Region]:
        """Current ordering, refreshing first if the scene changed."""
        if self._dirty:
            return self.refresh()
        return self.regions

    def __len__(self):
        return len(self._regions)

    def add_listener(self, listener: Callable[[List[Region]], None]) -> None:
        self._listeners.append(listener)

    def refresh(self) -> List[Region]:
        """Recompute the ordering from the canvas right now."""
        self._generation += 1
        self._cancel_timer()
        self._dirty = False
        self._regions = derive_regions(self.canvas.get_scene_elements())
        logger.debug("Region registry refreshed: %d regions", len(self._regions))
        for listener in list(self._listeners):
            listener(self.regions)
        return self.regions

    def schedule_refresh(self) -> None:
        """
        Debounced refresh on the running event loop. Outside a loop the
        registry is only marked dirty and refreshes on next use.
        """
        self._dirty = True
        self._generation += 1
        token = self._generation
        self._cancel_timer()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._timer = loop.call_later(self.debounce, self._run_scheduled, token)

    def _run_scheduled(self, token: int) -> None:
        if token != self._generation:
            logger.debug("Skipping stale region refresh %d (current %d)", token, self._generation)
            return
        self._timer = None
        self.refresh()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def attach(self) -> None:
        """Subscribe to canvas scene changes."""
        if self._unsubscribe is None:
            self._unsubscribe = self.canvas.on_scene_change(lambda *_: self.schedule_refresh())

    def detach(self) -> None:
        self._cancel_timer()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
