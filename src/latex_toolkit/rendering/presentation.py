"""
Module: rendering.presentation

Purpose:
    Presentation-only transforms applied when turning an artifact into a
    bitmap. None of these change the cached SVG bytes.

Key Functions:
    - recolor_svg(): Inject the colour scheme's base colour
    - pixel_size(): Target bitmap size for an artifact
    - baseline_offset(): Vertical offset for inline placement

Used By:
    - latex_toolkit.rendering.pipeline
"""

from __future__ import annotations

import math
from typing import Tuple

from latex_toolkit.config import ColorScheme, RenderOptions
from latex_toolkit.core.models import Artifact, SVGGeometry

_CLOSING_TAG = "</svg>"


def recolor_svg(svg: bytes, scheme: ColorScheme) -> bytes:
    """
    Inject a style so ``currentColor`` resolves to the scheme's colour.

    Args:
        svg: SVG document bytes
        scheme: Light or dark scheme

    Returns:
        New SVG bytes; the input unchanged if it is not UTF-8 or has no
        closing tag.
    """
    try:
        text = svg.decode("utf-8")
    except UnicodeDecodeError:
        return svg
    index = text.rfind(_CLOSING_TAG)
    if index == -1:
        return svg
    style = f"<style>svg {{ color: {scheme.base_color}; }} text {{ fill: currentColor; }}</style>"
    return (text[:index] + style + text[index:]).encode("utf-8")


def size_points(geometry: SVGGeometry, options: RenderOptions) -> Tuple[float, float]:
    """Display size in points for ``geometry`` under ``options``."""
    width = geometry.width.to_points(options.font_metric) * options.scale_factor
    height = geometry.height.to_points(options.font_metric) * options.scale_factor
    return width, height


def pixel_size(geometry: SVGGeometry, options: RenderOptions) -> Tuple[int, int]:
    """
    Bitmap size in pixels, rounded up and at least 1x1.

    Example:
        >>> g = SVGGeometry.parse('<svg width="2ex" height="1ex">')
        >>> pixel_size(g, RenderOptions(font_metric=10, display_scale=2))
        (40, 20)
    """
    width, height = size_points(geometry, options)
    return (
        max(1, math.ceil(width * options.display_scale - 1e-9)),
        max(1, math.ceil(height * options.display_scale - 1e-9)),
    )


def baseline_offset(artifact: Artifact, options: RenderOptions) -> float:
    """Offset in points that aligns an inline equation with the text baseline."""
    return artifact.geometry.vertical_align.to_points(options.font_metric) * options.scale_factor
