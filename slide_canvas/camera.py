"""
Camera math and region-to-region navigation.

The fit/easing helpers are pure. :class:`CameraSequencer` pushes camera
states into the canvas, animating on the running asyncio loop; every
animation run has a generation number and a run that has been superseded
drops its remaining writes.
"""
import asyncio
import logging
import math
from typing import Callable, List, Optional

from .models import CameraState, Region, ViewportSize
from .regions import RegionRegistry

logger = logging.getLogger(__name__)

FRAME_PADDING = 50
MAX_ZOOM = 2.0
ANIMATION_DURATION = 1.0  # seconds
ANIMATION_STEPS = 60
OFFSET_EPSILON = 1.0
ZOOM_EPSILON = 0.01


def fit_region(
    region: Region,
    viewport: ViewportSize,
    padding: float = FRAME_PADDING,
    max_zoom: float = MAX_ZOOM,
) -> CameraState:
    """
    Camera state that shows ``region`` plus ``padding`` on every side,
    centred in ``viewport`` and never zoomed in beyond ``max_zoom``.
    """
    if viewport.width <= 0 or viewport.height <= 0:
        raise ValueError(f"Viewport must have positive size, got {viewport.width}x{viewport.height}")

    zoom_x = viewport.width / (region.width + 2 * padding)
    zoom_y = viewport.height / (region.height + 2 * padding)
    zoom = min(zoom_x, zoom_y, max_zoom)
    if not math.isfinite(zoom) or zoom <= 0:
        raise ValueError(f"Cannot fit region '{region.name}': computed zoom {zoom}")

    return CameraState(
        zoom=zoom,
        offset_x=viewport.width / (2 * zoom) - region.center_x,
        offset_y=viewport.height / (2 * zoom) - region.center_y,
    )


def ease_out_cubic(progress: float) -> float:
    return 1 - (1 - progress) ** 3


def is_at_target(current: CameraState, target: CameraState) -> bool:
    """True when moving would not be perceptible."""
    return (
        abs(current.offset_x - target.offset_x) < OFFSET_EPSILON
        and abs(current.offset_y - target.offset_y) < OFFSET_EPSILON
        and abs(current.zoom - target.zoom) < ZOOM_EPSILON
    )


def plan_transition(
    start: CameraState, target: CameraState, steps: int = ANIMATION_STEPS
) -> List[CameraState]:
    """Intermediate states for an eased transition; the last one is ``target``."""
    states = []
    for step in range(1, steps + 1):
        eased = ease_out_cubic(step / steps)
        states.append(CameraState(
            zoom=start.zoom + (target.zoom - start.zoom) * eased,
            offset_x=start.offset_x + (target.offset_x - start.offset_x) * eased,
            offset_y=start.offset_y + (target.offset_y - start.offset_y) * eased,
        ))
    if states:
        states[-1] = target
    return states


class CameraSequencer:
    """
    Frames regions from a :class:`RegionRegistry` in a canvas viewport.

    ``viewport`` is called on every navigation since the visible area can
    change size (fullscreen, window resize) between calls.
    """

    def __init__(
        self,
        canvas,
        registry: RegionRegistry,
        viewport: Callable[[], ViewportSize],
        duration: float = ANIMATION_DURATION,
        steps: int = ANIMATION_STEPS,
    ):
        self.canvas = canvas
        self.registry = registry
        self.viewport = viewport
        self.duration = duration
        self.steps = steps
        self.current_index = 0
        self._generation = 0
        self._task: Optional[asyncio.Task] = None

    def current_camera(self) -> CameraState:
        return CameraState.from_app_state(self.canvas.get_app_state())

    def _apply(self, state: CameraState) -> None:
        self.canvas.update_scene(app_state=state.to_app_state())

    def cancel(self) -> None:
        """Supersede any in-flight animation."""
        self._generation += 1

    @property
    def animating(self) -> bool:
        return self._task is not None and not self._task.done()

    def frame(self, region: Region, animate: bool = False) -> CameraState:
        """
        Move the camera so ``region`` fills the viewport.

        A new call always supersedes a running animation. When the camera is
        already within epsilon of the target the state is set in one update.
        """
        target = fit_region(region, self.viewport())
        self._generation += 1
        token = self._generation

        if not animate or is_at_target(self.current_camera(), target):
            self._apply(target)
            return target

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; jumping to '%s' without animation", region.name)
            self._apply(target)
            return target

        self._task = loop.create_task(self._animate(token, self.current_camera(), target))
        self._task.add_done_callback(self._log_animation_failure)
        return target

    @staticmethod
    def _log_animation_failure(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Camera animation failed", exc_info=exc)

    async def _animate(self, token: int, start: CameraState, target: CameraState) -> None:
        delay = self.duration / self.steps if self.steps else 0
        for state in plan_transition(start, target, self.steps):
            await asyncio.sleep(delay)
            if token != self._generation:
                logger.debug("Animation %d superseded by %d; dropping remaining steps", token, self._generation)
                return
            self._apply(state)

    async def wait(self) -> None:
        """Wait for the current animation, if any, to finish."""
        while self._task is not None and not self._task.done():
            await self._task

    # ------------------------------------------------------------------
    # Sequencing
    # ------------------------------------------------------------------

    @property
    def regions(self) -> List[Region]:
        return self.registry.ensure_fresh()

    def go_to(self, index: int, animate: bool = False) -> Optional[Region]:
        regions = self.regions
        if not 0 <= index < len(regions):
            logger.debug("Ignoring navigation to %d of %d regions", index, len(regions))
            return None
        region = regions[index]
        self.frame(region, animate=animate)
        self.current_index = index
        return region

    def clamp_index(self) -> int:
        """Pull ``current_index`` back inside the current ordering."""
        count = len(self.regions)
        if self.current_index > count - 1:
            self.current_index = max(count - 1, 0)
        return self.current_index

    def next(self, animate: bool = False) -> Optional[Region]:
        if self.clamp_index() >= len(self.regions) - 1:
            return None
        return self.go_to(self.current_index + 1, animate)

    def previous(self, animate: bool = False) -> Optional[Region]:
        if self.clamp_index() <= 0:
            return None
        return self.go_to(self.current_index - 1, animate)

    def first(self, animate: bool = False) -> Optional[Region]:
        return self.go_to(0, animate)

    def last(self, animate: bool = False) -> Optional[Region]:
        return self.go_to(len(self.regions) - 1, animate)
