"""
Core Models Package

Immutable data models shared by the segmenter, cache and render pipeline.

All models are frozen dataclasses. Rendering never edits a span in
place; it builds a new span carrying the artifact and bitmap, so
previously published results can be read safely from other threads.
"""

from .artifacts import Artifact, ArtifactDecodeError, ArtifactError, SVGDimension, SVGGeometry
from .bitmap import Bitmap
from .spans import Block, Span, SpanKind

__all__ = [
    "Artifact",
    "ArtifactDecodeError",
    "ArtifactError",
    "Bitmap",
    "Block",
    "SVGDimension",
    "SVGGeometry",
    "Span",
    "SpanKind",
]
