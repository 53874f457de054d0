"""
Slide Canvas Package

Turns text into slides laid out on an infinite canvas, steps through them as
a presentation and exports them as a paginated document.
"""

from .generator import SlideGenerator
from .layout_engine import LayoutEngine
from .slide_parser import SlideParser
from .structuring import AssistedSlideParser
from .regions import RegionRegistry
from .camera import CameraSequencer
from .presenter import Presenter
from .export import ExportEngine
from .canvas import MemoryCanvas
from .config import GeneratorOptions, Settings
from .models import AbstractSlide, Region, CameraState

__all__ = [
    'SlideGenerator', 'LayoutEngine', 'SlideParser', 'AssistedSlideParser',
    'RegionRegistry', 'CameraSequencer', 'Presenter', 'ExportEngine', 'MemoryCanvas',
    'GeneratorOptions', 'Settings', 'AbstractSlide', 'Region', 'CameraState',
]
