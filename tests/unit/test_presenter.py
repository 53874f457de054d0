"""Test the presentation state machine."""

import asyncio

import pytest

from slide_canvas.camera import CameraSequencer, fit_region
from slide_canvas.canvas import MemoryCanvas
from slide_canvas.exceptions import PreconditionError
from slide_canvas.models import CameraState, ViewportSize
from slide_canvas.presenter import HeadlessDisplay, PresentationState, Presenter
from slide_canvas.regions import RegionRegistry


def make_presenter(canvas, allow_fullscreen=True):
    host = HeadlessDisplay(ViewportSize(1600, 900), allow_fullscreen=allow_fullscreen)
    registry = RegionRegistry(canvas)
    sequencer = CameraSequencer(canvas, registry, host.viewport_size, duration=0.03, steps=10)
    return Presenter(canvas, host, registry=registry, sequencer=sequencer, takeover_delay=0)


def active_tool(canvas):
    return canvas.get_app_state()["activeTool"]["type"]


def test_start_requires_regions():
    canvas = MemoryCanvas()
    presenter = make_presenter(canvas)
    before = canvas.get_app_state()

    with pytest.raises(PreconditionError):
        asyncio.run(presenter.start())

    assert presenter.state is PresentationState.IDLE
    assert canvas.get_app_state() == before
    assert not presenter.host.is_fullscreen()


def test_start_and_stop(three_region_canvas):
    presenter = make_presenter(three_region_canvas)

    async def scenario():
        region = await presenter.start()
        await presenter.sequencer.wait()
        return region

    region = asyncio.run(scenario())

    assert region.name == "Intro"
    assert presenter.is_presenting
    assert presenter.host.is_fullscreen()
    assert active_tool(three_region_canvas) == "laser"
    assert presenter.sequencer.current_camera() == fit_region(region, ViewportSize(1600, 900))
    assert presenter.counter == "1 / 3"

    presenter.stop()

    assert presenter.state is PresentationState.IDLE
    assert active_tool(three_region_canvas) == "selection"
    assert not presenter.host.is_fullscreen()


def test_fullscreen_denied_still_presents(three_region_canvas):
    presenter = make_presenter(three_region_canvas, allow_fullscreen=False)

    async def scenario():
        region = await presenter.start()
        await presenter.sequencer.wait()
        return region

    assert asyncio.run(scenario()).name == "Intro"
    assert presenter.is_presenting
    assert not presenter.host.is_fullscreen()


def test_external_fullscreen_exit_stops(three_region_canvas):
    presenter = make_presenter(three_region_canvas)
    asyncio.run(presenter.start())

    presenter.host.exit_fullscreen()
    presenter.on_fullscreen_change()

    assert presenter.state is PresentationState.IDLE
    assert active_tool(three_region_canvas) == "selection"


def test_keyboard_navigation(three_region_canvas):
    presenter = make_presenter(three_region_canvas)

    async def scenario():
        assert await presenter.handle_key("ArrowRight") is False
        assert await presenter.handle_key("p") is True
        assert presenter.is_presenting

        await presenter.handle_key("ArrowRight")
        assert presenter.counter == "2 / 3"
        await presenter.handle_key(" ")
        assert presenter.counter == "3 / 3"
        assert not presenter.can_go_next
        await presenter.handle_key("ArrowRight")
        assert presenter.counter == "3 / 3"

        await presenter.handle_key("Home")
        assert presenter.counter == "1 / 3"
        assert not presenter.can_go_previous
        await presenter.handle_key("End")
        assert presenter.counter == "3 / 3"
        await presenter.handle_key("ArrowLeft")
        assert presenter.counter == "2 / 3"

        assert await presenter.handle_key("x") is False

        await presenter.handle_key("f")
        assert not presenter.is_presenting

    asyncio.run(scenario())


def test_escape_stops(three_region_canvas):
    presenter = make_presenter(three_region_canvas)

    async def scenario():
        await presenter.handle_key("P")
        await presenter.handle_key("Escape")

    asyncio.run(scenario())
    assert presenter.state is PresentationState.IDLE


def test_stop_cancels_animation(three_region_canvas):
    presenter = make_presenter(three_region_canvas)
    presenter.sequencer.duration = 0.5

    async def scenario():
        await presenter.start()
        await asyncio.sleep(0.05)
        presenter.stop()
        camera = presenter.sequencer.current_camera()
        await presenter.sequencer.wait()
        return camera

    camera_at_stop = asyncio.run(scenario())
    assert presenter.sequencer.current_camera() == camera_at_stop


def test_navigation_without_presenting_jumps(three_region_canvas):
    presenter = make_presenter(three_region_canvas)
    before = three_region_canvas.update_count

    region = presenter.last()

    assert region.name == "Summary"
    assert three_region_canvas.update_count == before + 1
    assert isinstance(presenter.sequencer.current_camera(), CameraState)


def test_uses_the_given_empty_registry():
    canvas = MemoryCanvas()
    presenter = make_presenter(canvas)
    assert presenter.registry is presenter.sequencer.registry


def test_counter_follows_shrinking_scene(three_region_canvas):
    presenter = make_presenter(three_region_canvas)
    presenter.registry.attach()
    presenter.last()

    kept = [e for e in three_region_canvas.get_scene_elements() if e["id"] == "frame-0"]
    three_region_canvas.update_scene(elements=kept)

    assert presenter.counter == "1 / 1"
    assert not presenter.can_go_previous
    assert not presenter.can_go_next
