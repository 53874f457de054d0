import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path so `import slide_canvas` works
project_root = Path(__file__).resolve().parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from slide_canvas.canvas import MemoryCanvas  # noqa: E402
from slide_canvas.models import Frame, TextRun  # noqa: E402


def frame_element(frame_id, x, y, width=400, height=300, name=None):
    return Frame(id=frame_id, name=name or "", x=x, y=y, width=width, height=height).to_element()


def text_element(text_id, text, x, y, frame_id=None, size=20):
    return TextRun(
        id=text_id, text=text, x=x, y=y, font_size=size, font_family=1, color="#000000", frame_id=frame_id
    ).to_element()


@pytest.fixture
def make_frame():
    return frame_element


@pytest.fixture
def make_text():
    return text_element


@pytest.fixture
def three_region_canvas():
    """Canvas with three named frames laid out in one row, each with a title."""
    elements = []
    for index, name in enumerate(["Intro", "Details", "Summary"]):
        frame_id = f"frame-{index}"
        x = index * 600
        elements.append(frame_element(frame_id, x, 0, name=name))
        elements.append(text_element(f"text-{index}", name, x + 50, 100, frame_id=frame_id))
    return MemoryCanvas(elements)
