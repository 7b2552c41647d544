"""
Module: rendering

Purpose:
    Render pipeline and its collaborators: the TeX-to-SVG conversion
    engine, the SVG-to-bitmap materializer and presentation helpers.

Key Classes:
    - RenderPipeline: Cache-backed render orchestrator
    - ConversionEngine / MathJaxNodeEngine: TeX to SVG
    - BitmapMaterializer / QtSvgMaterializer: SVG to PNG bitmap
"""

from .engine import (
    ConversionEngine,
    ConversionError,
    ConversionOptions,
    EngineUnavailableError,
    InputOptions,
    MathJaxNodeEngine,
)
from .materializer import BitmapMaterializer, MaterializationError, QtSvgMaterializer
from .pipeline import RenderPipeline
from .preload import PreloadQueue
from .presentation import baseline_offset, pixel_size, recolor_svg, size_points
from .timing import TimingLog, timed_phase

__all__ = [
    "BitmapMaterializer",
    "ConversionEngine",
    "ConversionError",
    "ConversionOptions",
    "EngineUnavailableError",
    "InputOptions",
    "MaterializationError",
    "MathJaxNodeEngine",
    "PreloadQueue",
    "QtSvgMaterializer",
    "RenderPipeline",
    "TimingLog",
    "baseline_offset",
    "pixel_size",
    "recolor_svg",
    "size_points",
    "timed_phase",
]
