"""Test data models."""

import math

import pytest

from slide_canvas.models import AbstractSlide, CameraState, CodeBlock, Frame, Region, TextRun


def test_has_content():
    assert not AbstractSlide().has_content()
    assert not AbstractSlide(notes="n", image="a.png").has_content()
    assert AbstractSlide(title="T").has_content()
    assert AbstractSlide(content=["p"]).has_content()
    assert AbstractSlide(bullets=[]).has_content()
    assert AbstractSlide(code=CodeBlock("py", "x = 1")).has_content()


def test_from_dict_normalizes():
    slide = AbstractSlide.from_dict({
        "title": "  Hello ",
        "bullets": ["one", 2, " ", "three"],
        "code": {"content": "print(1)"},
        "visualDescription": "a chart",
    })

    assert slide.title == "Hello"
    assert slide.content == []
    assert slide.bullets == ["one", "three"]
    assert slide.code == CodeBlock(language="text", content="print(1)")
    assert slide.visual_description == "a chart"


def test_from_dict_rejects_bad_code():
    assert AbstractSlide.from_dict({"code": "just a string"}).code is None
    assert AbstractSlide.from_dict({"code": {"language": "py"}}).code is None


def test_to_dict_round_trip():
    slide = AbstractSlide(title="T", content=["c"], bullets=["b"], code=CodeBlock("py", "x"), notes="n")
    assert AbstractSlide.from_dict(slide.to_dict()) == slide


def test_frame_validation():
    with pytest.raises(ValueError):
        Frame(id="f", name="bad", x=0, y=0, width=0, height=10)
    with pytest.raises(ValueError):
        Frame(id="f", name="bad", x=math.nan, y=0, width=10, height=10)


def test_frame_element():
    element = Frame(id="f1", name="Intro", x=10, y=20, width=300, height=200).to_element()

    assert element["type"] == "frame"
    assert element["name"] == "Intro"
    assert element["frameId"] is None
    assert element["isDeleted"] is False
    assert Frame.from_element(element).name == "Intro"


def test_text_run_size_estimate():
    run = TextRun(id="t", text="abcd", x=0, y=0, font_size=20, font_family=1, color="#000", frame_id="f")
    element = run.to_element()

    assert element["width"] == pytest.approx(4 * 20 * 0.6)
    assert element["height"] == pytest.approx(25)
    assert element["frameId"] == "f"


def test_region_geometry():
    region = Region(id="r", name="R", x=0, y=0, width=100, height=50)

    assert (region.center_x, region.center_y) == (50, 25)
    assert region.intersects(100, 50, 10, 10)  # touching corner
    assert not region.intersects(101, 0, 10, 10)
    assert region.expanded(10).intersects(105, 0, 10, 10)


def test_region_fallback_name():
    region = Region.from_element({"id": "r", "x": 0, "y": 0, "width": 1, "height": 1}, fallback_name="Frame 3")
    assert region.name == "Frame 3"


def test_camera_state_app_state():
    camera = CameraState(zoom=1.5, offset_x=-10, offset_y=20)
    assert CameraState.from_app_state(camera.to_app_state()) == camera
    assert CameraState.from_app_state({}) == CameraState(zoom=1, offset_x=0, offset_y=0)
