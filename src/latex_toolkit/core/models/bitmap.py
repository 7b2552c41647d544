"""
Module: bitmap

Purpose:
    Provides the Bitmap dataclass - an immutable PNG raster of one
    rendered equation, stored in the Tier 2 cache.

Key Classes:
    - Bitmap: PNG bytes plus pixel size and display scale

Dependencies:
    - PIL.Image: PNG encoding and decoding

Used By:
    - latex_toolkit.rendering.materializer: Produces bitmaps
    - latex_toolkit.cache.artifact_cache: Tier 2 values
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Tuple

from PIL import Image


@dataclass(frozen=True)
class Bitmap:
    """
    Rasterised equation image.

    Stored as encoded PNG bytes so cached values cannot be modified by
    callers; :meth:`to_image` always returns a fresh Pillow image.

    Attributes:
        png: PNG-encoded image data
        width: Width in pixels
        height: Height in pixels
        scale: Pixels per point the bitmap was rendered at

    Example:
        >>> bmp = Bitmap.from_image(Image.new("RGBA", (4, 2)), scale=2.0)
        >>> bmp.size_points
        (2.0, 1.0)
    """

    png: bytes
    width: int
    height: int
    scale: float = 1.0

    def __post_init__(self) -> None:
        """Validate bitmap on construction."""
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Bitmap size must be positive: {self.width}x{self.height}")
        if self.scale <= 0:
            raise ValueError(f"Bitmap scale must be positive: {self.scale}")

    @classmethod
    def from_image(cls, image: Image.Image, scale: float = 1.0) -> Bitmap:
        """
        Encode a Pillow image.

        Args:
            image: Source image (RGBA recommended)
            scale: Pixels per point

        Returns:
            Bitmap wrapping the PNG encoding of ``image``
        """
        buffer = io.BytesIO()
        image.save(buffer, format="PNG", optimize=False)
        return cls(png=buffer.getvalue(), width=image.width, height=image.height, scale=scale)

    def to_image(self) -> Image.Image:
        """Decode into a new Pillow image."""
        with Image.open(io.BytesIO(self.png)) as img:
            img.load()
            return img.copy()

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height) in pixels."""
        return (self.width, self.height)

    @property
    def size_points(self) -> Tuple[float, float]:
        """(width, height) in points."""
        return (self.width / self.scale, self.height / self.scale)

    @property
    def nbytes(self) -> int:
        return len(self.png)
