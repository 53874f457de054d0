"""Presentation mode: stepping through regions full screen."""
import asyncio
import enum
import logging
from typing import Optional, Protocol

from .camera import CameraSequencer
from .exceptions import PreconditionError
from .models import Region, ViewportSize
from .regions import RegionRegistry

logger = logging.getLogger(__name__)

PRESENT_TOOL = "laser"
DEFAULT_TOOL = "selection"
TAKEOVER_DELAY = 0.15


class DisplayHost(Protocol):
    """The window hosting the canvas."""

    def viewport_size(self) -> ViewportSize:
        ...

    async def request_fullscreen(self) -> bool:
        """Return False if the platform refused."""
        ...

    def exit_fullscreen(self) -> None:
        ...

    def is_fullscreen(self) -> bool:
        ...


class HeadlessDisplay:
    """Fixed-size display with a fullscreen flag, for tools without a window."""

    def __init__(self, size: ViewportSize = ViewportSize(1600, 900), allow_fullscreen: bool = True):
        self.size = size
        self.allow_fullscreen = allow_fullscreen
        self.fullscreen = False

    def viewport_size(self) -> ViewportSize:
        return self.size

    async def request_fullscreen(self) -> bool:
        self.fullscreen = self.allow_fullscreen
        return self.fullscreen

    def exit_fullscreen(self) -> None:
        self.fullscreen = False

    def is_fullscreen(self) -> bool:
        return self.fullscreen


class PresentationState(enum.Enum):
    IDLE = "idle"
    PRESENTING = "presenting"


class Presenter:
    """
    IDLE <-> PRESENTING state machine on top of a :class:`CameraSequencer`.

    Navigation animates only while presenting. Leaving fullscreen through
    the host (not via :meth:`stop`) must be reported with
    :meth:`on_fullscreen_change`, which also ends the presentation.
    """

    def __init__(
        self,
        canvas,
        host: DisplayHost,
        registry: Optional[RegionRegistry] = None,
        sequencer: Optional[CameraSequencer] = None,
        takeover_delay: float = TAKEOVER_DELAY,
    ):
        self.canvas = canvas
        self.host = host
        self.registry = registry if registry is not None else RegionRegistry(canvas)
        self.sequencer = sequencer or CameraSequencer(canvas, self.registry, host.viewport_size)
        self.takeover_delay = takeover_delay
        self.state = PresentationState.IDLE

    @property
    def is_presenting(self) -> bool:
        return self.state is PresentationState.PRESENTING

    @property
    def current_index(self) -> int:
        return self.sequencer.clamp_index()

    @property
    def total(self) -> int:
        return len(self.registry.ensure_fresh())

    @property
    def counter(self) -> str:
        return f"{self.current_index + 1} / {self.total}"

    @property
    def can_go_next(self) -> bool:
        return self.current_index < self.total - 1

    @property
    def can_go_previous(self) -> bool:
        return self.current_index > 0

    def _set_tool(self, tool: str) -> None:
        self.canvas.update_scene(app_state={"activeTool": {"type": tool, "locked": False}})

    async def start(self) -> Optional[Region]:
        """Enter presentation mode and animate to the first region."""
        if self.is_presenting:
            return None
        if not self.registry.ensure_fresh():
            raise PreconditionError(
                "No frames to present. Add frames around your content or generate slides from text first."
            )

        self.state = PresentationState.PRESENTING
        self._set_tool(PRESENT_TOOL)

        if not await self.host.request_fullscreen():
            logger.warning("Fullscreen was denied; presenting in the current window")
        # Let the viewport settle at its new size before measuring it
        await asyncio.sleep(self.takeover_delay)

        if not self.is_presenting:
            return None
        return self.sequencer.first(animate=True)

    def stop(self) -> None:
        """Leave presentation mode."""
        if not self.is_presenting:
            return
        self.state = PresentationState.IDLE
        self.sequencer.cancel()
        self._set_tool(DEFAULT_TOOL)
        if self.host.is_fullscreen():
            self.host.exit_fullscreen()

    async def toggle(self) -> None:
        if self.is_presenting:
            self.stop()
        else:
            await self.start()

    def on_fullscreen_change(self) -> None:
        """Host callback: fullscreen was entered or left."""
        if not self.host.is_fullscreen() and self.is_presenting:
            logger.info("Fullscreen exited externally; stopping presentation")
            self.stop()

    async def toggle_fullscreen(self) -> None:
        if self.host.is_fullscreen():
            self.host.exit_fullscreen()
            self.on_fullscreen_change()
        else:
            await self.host.request_fullscreen()

    def next(self) -> Optional[Region]:
        return self.sequencer.next(animate=self.is_presenting)

    def previous(self) -> Optional[Region]:
        return self.sequencer.previous(animate=self.is_presenting)

    def first(self) -> Optional[Region]:
        return self.sequencer.first(animate=self.is_presenting)

    def last(self) -> Optional[Region]:
        return self.sequencer.last(animate=self.is_presenting)

    def go_to(self, index: int) -> Optional[Region]:
        return self.sequencer.go_to(index, animate=self.is_presenting)

    async def handle_key(self, key: str) -> bool:
        """
        Apply the keyboard semantics of presentation mode. Returns True when
        the key was consumed.
        """
        if not self.is_presenting:
            if key in ("p", "P"):
                await self.start()
                return True
            return False

        if key in ("ArrowRight", " "):
            self.next()
        elif key == "ArrowLeft":
            self.previous()
        elif key == "Home":
            self.first()
        elif key == "End":
            self.last()
        elif key == "Escape":
            self.stop()
        elif key in ("f", "F"):
            await self.toggle_fullscreen()
        else:
            return False
        return True
