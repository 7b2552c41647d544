"""
Module: rendering.materializer

Purpose:
    Rasterise SVG artifacts into PNG bitmaps.

Key Classes:
    - BitmapMaterializer: Abstract rasteriser interface
    - QtSvgMaterializer: PySide6 QSvgRenderer based rasteriser
    - MaterializationError: Rasterisation failed

Dependencies:
    - PySide6 (QtSvg, QtGui, QtCore): SVG rendering
    - latex_toolkit.core.models.Bitmap

Used By:
    - latex_toolkit.rendering.pipeline: Tier 2 cache misses

Note:
    QImage painting works from worker threads, but Qt needs a
    QGuiApplication in the process before SVG ``<text>`` elements can be
    drawn. Host applications already have one; tests use pytest-qt's
    ``qapp`` fixture.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from PySide6.QtCore import QBuffer, QByteArray, QIODevice, Qt
from PySide6.QtGui import QImage, QPainter
from PySide6.QtSvg import QSvgRenderer

from latex_toolkit.core.models import Bitmap

logger = logging.getLogger(__name__)


class MaterializationError(Exception):
    """SVG data could not be rasterised."""
    pass


class BitmapMaterializer(ABC):
    """Abstract SVG-to-bitmap rasteriser. Must be thread-safe."""

    @abstractmethod
    def materialize(self, svg: bytes, width_px: int, height_px: int, scale: float) -> Bitmap:
        """
        Rasterise an SVG.

        Args:
            svg: SVG document bytes (already recoloured)
            width_px: Target width in pixels
            height_px: Target height in pixels
            scale: Pixels per point, recorded on the bitmap

        Returns:
            The rendered Bitmap

        Raises:
            MaterializationError: If the SVG cannot be rendered
        """


class QtSvgMaterializer(BitmapMaterializer):
    """
    Rasterises SVG with Qt's SVG renderer into a transparent ARGB image.

    Example:
        >>> bitmap = QtSvgMaterializer().materialize(svg, 120, 40, 2.0)
        >>> bitmap.size
        (120, 40)
    """

    def materialize(self, svg: bytes, width_px: int, height_px: int, scale: float) -> Bitmap:
        if width_px <= 0 or height_px <= 0:
            raise MaterializationError(f"Invalid target size: {width_px}x{height_px}")

        renderer = QSvgRenderer(QByteArray(svg))
        if not renderer.isValid():
            raise MaterializationError("Qt could not parse SVG data")

        image = QImage(width_px, height_px, QImage.Format.Format_ARGB32_Premultiplied)
        if image.isNull():
            raise MaterializationError(f"Could not allocate {width_px}x{height_px} image")
        image.fill(Qt.GlobalColor.transparent)

        painter = QPainter(image)
        try:
            painter.setRenderHint(QPainter.RenderHint.Antialiasing)
            painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
            renderer.render(painter)
        finally:
            painter.end()

        buffer = QBuffer()
        buffer.open(QIODevice.OpenModeFlag.WriteOnly)
        if not image.save(buffer, "PNG"):
            raise MaterializationError("PNG encoding failed")
        png = buffer.data().data()
        buffer.close()

        logger.debug(f"Rasterised SVG to {width_px}x{height_px} px ({len(png)} bytes)")
        return Bitmap(png=png, width=width_px, height=height_px, scale=scale)
