"""Test region derivation, ordering and the debounced registry."""

import asyncio
import random

from slide_canvas.canvas import MemoryCanvas
from slide_canvas.models import Region
from slide_canvas.regions import RegionRegistry, derive_regions, extract_regions, order_regions


def region(region_id, x, y, width=100, height=100):
    return Region(id=region_id, name=region_id, x=x, y=y, width=width, height=height)


def test_same_band_orders_by_x():
    """Centres 10 apart share a band, so x decides."""
    right = region("right", x=500, y=0)
    left = region("left", x=0, y=10)
    assert [r.id for r in order_regions([right, left])] == ["left", "right"]


def test_different_bands_order_by_y():
    high = region("high", x=500, y=0)
    low = region("low", x=0, y=51)
    assert [r.id for r in order_regions([low, high])] == ["high", "low"]


def test_band_threshold_is_inclusive():
    a = region("a", x=300, y=0)
    b = region("b", x=0, y=50)
    assert [r.id for r in order_regions([a, b])] == ["b", "a"]


def test_grid_reading_order():
    regions = [region(f"r{row}{col}", x=col * 200, y=row * 200 + (col % 2) * 20)
               for row in range(3) for col in range(4)]
    shuffled = list(regions)
    random.Random(7).shuffle(shuffled)

    assert [r.id for r in order_regions(shuffled)] == [r.id for r in regions]


def test_ordering_is_stable_and_total():
    regions = [region(f"r{i}", x=(i * 37) % 500, y=(i * 53) % 300) for i in range(25)]
    regions.append(region("twin-a", x=10, y=10))
    regions.append(region("twin-b", x=10, y=10))

    first = order_regions(regions)
    for seed in range(5):
        shuffled = list(regions)
        random.Random(seed).shuffle(shuffled)
        assert order_regions(shuffled) == first
    assert order_regions(first) == first


def test_extract_regions_filters_and_names(make_frame, make_text):
    elements = [
        make_frame("f1", 0, 0, name="Named"),
        make_text("t1", "hello", 10, 10, frame_id="f1"),
        make_frame("f2", 500, 0),
        dict(make_frame("gone", 900, 0), isDeleted=True),
    ]
    regions = extract_regions(elements)

    assert [r.id for r in regions] == ["f1", "f2"]
    assert [r.name for r in regions] == ["Named", "Frame 2"]


def test_derive_regions_orders(make_frame):
    elements = [make_frame("b", 600, 0), make_frame("a", 0, 20)]
    assert [r.id for r in derive_regions(elements)] == ["a", "b"]


def test_registry_refresh_and_listeners(make_frame):
    canvas = MemoryCanvas([make_frame("f1", 0, 0)])
    registry = RegionRegistry(canvas)
    seen = []
    registry.add_listener(seen.append)

    assert [r.id for r in registry.refresh()] == ["f1"]
    assert len(registry) == 1
    assert [[r.id for r in regions] for regions in seen] == [["f1"]]


def test_registry_marks_dirty_outside_event_loop(make_frame):
    canvas = MemoryCanvas([make_frame("f1", 0, 0)])
    registry = RegionRegistry(canvas)
    registry.refresh()
    registry.attach()

    canvas.update_scene(elements=canvas.get_scene_elements() + [make_frame("f2", 600, 0)])

    assert registry.dirty
    assert [r.id for r in registry.ensure_fresh()] == ["f1", "f2"]
    assert not registry.dirty


def test_registry_debounces_bursts(make_frame):
    async def scenario():
        canvas = MemoryCanvas()
        registry = RegionRegistry(canvas, debounce=0.2)
        refreshes = []
        registry.add_listener(refreshes.append)
        registry.attach()

        for index in range(5):
            canvas.update_scene(elements=canvas.get_scene_elements() + [make_frame(f"f{index}", index * 600, 0)])
            await asyncio.sleep(0.01)

        assert refreshes == []
        await asyncio.sleep(0.5)
        return registry, refreshes

    registry, refreshes = asyncio.run(scenario())

    assert len(refreshes) == 1
    assert [r.id for r in refreshes[0]] == [f"f{i}" for i in range(5)]
    assert not registry.dirty


def test_registry_detach_stops_updates(make_frame):
    async def scenario():
        canvas = MemoryCanvas()
        registry = RegionRegistry(canvas, debounce=0.01)
        refreshes = []
        registry.add_listener(refreshes.append)
        registry.attach()
        registry.detach()

        canvas.update_scene(elements=[make_frame("f1", 0, 0)])
        await asyncio.sleep(0.05)
        return refreshes

    assert asyncio.run(scenario()) == []
