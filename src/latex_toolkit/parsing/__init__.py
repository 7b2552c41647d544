"""
Module: parsing

Purpose:
    Delimiter-based segmentation of mixed text/LaTeX input.

Key Functions:
    - segment(): Split text into blocks of spans
    - segment_to_text(): Rebuild the input from blocks
"""

from .delimiters import DELIMITERS, Delimiter
from .segmenter import segment, segment_to_text

__all__ = [
    "DELIMITERS",
    "Delimiter",
    "segment",
    "segment_to_text",
]
