"""
Module: artifacts

Purpose:
    Provides the Artifact dataclass - the immutable SVG produced by the
    conversion engine for one equation span - together with the geometry
    parsed from its root ``<svg>`` tag.

Key Classes:
    - SVGDimension: A length with its unit (ex, pt or px)
    - SVGGeometry: Width, height and vertical alignment of an SVG
    - Artifact: SVG bytes + optional conversion error text
    - ArtifactError / ArtifactDecodeError: Construction and decode failures

Dependencies:
    - hashlib, json, logging, re (std)

Used By:
    - latex_toolkit.core.models.spans.Span
    - latex_toolkit.cache.artifact_cache: Tier 1 encode/decode
    - latex_toolkit.rendering.pipeline: Artifact creation
    - latex_toolkit.rendering.presentation: Sizing
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from dataclasses import dataclass, field
from functools import cached_property
from typing import Optional, Union

logger = logging.getLogger(__name__)

_ROOT_TAG_RE = re.compile(r"<svg\b[^>]*>", re.IGNORECASE | re.DOTALL)
_LENGTH_RE = r"(-?\d+(?:\.\d+)?|-?\.\d+)\s*(ex|pt|px)?"
_WIDTH_RE = re.compile(r"(?<![\w-])width\s*=\s*[\"']" + _LENGTH_RE + r"[\"']")
_HEIGHT_RE = re.compile(r"(?<![\w-])height\s*=\s*[\"']" + _LENGTH_RE + r"[\"']")
_VALIGN_RE = re.compile(r"vertical-align\s*:\s*" + _LENGTH_RE)

# CSS pixels per point
_PX_TO_PT = 72.0 / 96.0


class ArtifactError(ValueError):
    """SVG content could not be turned into an artifact."""
    pass


class ArtifactDecodeError(ArtifactError):
    """Encoded artifact bytes could not be decoded."""
    pass


@dataclass(frozen=True, slots=True)
class SVGDimension:
    """
    A length taken from an SVG attribute.

    Attributes:
        value: Numeric value
        unit: "ex" (relative to the font's x-height), "pt" or "px"
    """

    value: float = 0.0
    unit: str = "ex"

    @classmethod
    def parse(cls, value: str, unit: Optional[str]) -> SVGDimension:
        """Build a dimension from regex groups (unitless means px)."""
        return cls(value=float(value), unit=unit or "px")

    def to_points(self, x_height: float) -> float:
        """
        Convert to points.

        Args:
            x_height: x-height of the surrounding font in points

        Returns:
            The length in points
        """
        if self.unit == "ex":
            return self.value * x_height
        if self.unit == "px":
            return self.value * _PX_TO_PT
        return self.value


@dataclass(frozen=True, slots=True)
class SVGGeometry:
    """
    Size and baseline alignment of an SVG.

    MathJax emits sizes in ``ex`` so the final pixel size depends on the
    font the equation is displayed next to.

    Attributes:
        width: Root ``width`` attribute
        height: Root ``height`` attribute
        vertical_align: ``vertical-align`` from the root style (0 if absent)
    """

    width: SVGDimension = field(default_factory=SVGDimension)
    height: SVGDimension = field(default_factory=SVGDimension)
    vertical_align: SVGDimension = field(default_factory=SVGDimension)

    @property
    def is_empty(self) -> bool:
        """True when the SVG has no drawable area."""
        return self.width.value <= 0 or self.height.value <= 0

    @classmethod
    def parse(cls, svg: str) -> SVGGeometry:
        """
        Parse geometry from the root ``<svg>`` tag.

        Args:
            svg: SVG document text

        Returns:
            Parsed geometry

        Raises:
            ArtifactError: If there is no root tag or it lacks width/height
        """
        root = _ROOT_TAG_RE.search(svg)
        if root is None:
            raise ArtifactError("No <svg> root element found")
        tag = root.group(0)

        width = _WIDTH_RE.search(tag)
        height = _HEIGHT_RE.search(tag)
        if width is None or height is None:
            raise ArtifactError(f"SVG root lacks width/height: {tag[:120]!r}")

        valign = _VALIGN_RE.search(tag)
        return cls(
            width=SVGDimension.parse(*width.groups()),
            height=SVGDimension.parse(*height.groups()),
            vertical_align=(
                SVGDimension.parse(*valign.groups()) if valign else SVGDimension()
            ),
        )


@dataclass(frozen=True)
class Artifact:
    """
    The vector result of converting one equation span.

    Artifacts are shared read-only between both cache tiers and any number
    of rendered bitmaps, so they are never modified after creation.

    Attributes:
        svg: UTF-8 SVG bytes (may be empty or partial on conversion failure)
        error_text: Engine diagnostic when conversion failed, else None
        geometry: Geometry parsed from ``svg``

    Invariants:
        - ``geometry`` is empty when the SVG has no parseable root size,
          and such an artifact is not drawable

    Example:
        >>> a = Artifact.from_svg('<svg width="2ex" height="1ex"></svg>')
        >>> a.geometry.width.value
        2.0
        >>> a.error_text is None
        True
    """

    svg: bytes
    error_text: Optional[str] = None
    geometry: SVGGeometry = field(default_factory=SVGGeometry)

    # ─────────────────────────────────────────────────────────────────────────
    # Factory Methods
    # ─────────────────────────────────────────────────────────────────────────

    @classmethod
    def from_svg(
        cls,
        svg: Union[str, bytes],
        error_text: Optional[str] = None,
    ) -> Artifact:
        """
        Create an artifact from engine output.

        Args:
            svg: SVG text or UTF-8 bytes, possibly empty on error
            error_text: Conversion diagnostic, if any

        Returns:
            Artifact with parsed geometry, or empty geometry if the root
            ``<svg>`` tag has no usable width/height
        """
        if isinstance(svg, bytes):
            data = svg
            text = svg.decode("utf-8", errors="replace")
        else:
            text = svg
            data = svg.encode("utf-8")

        if not text.strip():
            return cls(svg=b"", error_text=error_text)
        try:
            geometry = SVGGeometry.parse(text)
        except ArtifactError as e:
            logger.debug(f"Keeping SVG without usable geometry: {e}")
            geometry = SVGGeometry()
        return cls(svg=data, error_text=error_text, geometry=geometry)

    @classmethod
    def decode(cls, data: bytes) -> Artifact:
        """
        Decode bytes produced by :meth:`encode`.

        Raises:
            ArtifactDecodeError: If the bytes are not a valid encoded artifact
        """
        try:
            payload = json.loads(data.decode("utf-8"))
            svg = payload["svg"]
            error_text = payload.get("error_text")
            if not isinstance(svg, str) or not (error_text is None or isinstance(error_text, str)):
                raise TypeError("svg/error_text have wrong types")
            return cls.from_svg(svg, error_text)
        except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
            raise ArtifactDecodeError(f"Invalid artifact data: {e}") from e

    # ─────────────────────────────────────────────────────────────────────────
    # Properties
    # ─────────────────────────────────────────────────────────────────────────

    def encode(self) -> bytes:
        """Serialize for storage in the vector cache."""
        payload = {
            "svg": self.svg.decode("utf-8", errors="replace"),
            "error_text": self.error_text,
        }
        return json.dumps(payload, ensure_ascii=False, sort_keys=True).encode("utf-8")

    @cached_property
    def identity(self) -> str:
        """Stable SHA-256 hex digest of the SVG bytes."""
        return hashlib.sha256(self.svg).hexdigest()

    @property
    def has_error(self) -> bool:
        return self.error_text is not None

    @property
    def is_drawable(self) -> bool:
        """True if the SVG can be rasterised."""
        return bool(self.svg) and not self.geometry.is_empty
