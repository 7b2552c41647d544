"""
Module: cache.keys

Purpose:
    Deterministic cache keys for the two cache tiers. Every input that
    changes the engine's output bytes is part of the Tier 1 signature;
    every input that changes bitmap pixels is part of the Tier 2 key.

Key Classes:
    - ConversionSignature: Tier 1 key (equation -> SVG artifact)
    - PresentationKey: Tier 2 key (SVG artifact + presentation -> bitmap)

Dependencies:
    - hashlib, json (std)

Used By:
    - latex_toolkit.cache.artifact_cache
    - latex_toolkit.rendering.pipeline
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from functools import cached_property

from latex_toolkit.config import ColorScheme, ErrorDisplayMode, RenderOptions
from latex_toolkit.core.models import Artifact, Span


def _digest(parts: list) -> str:
    encoded = json.dumps(parts, ensure_ascii=False, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class ConversionSignature:
    """
    Identity of one engine conversion.

    Two equal signatures always yield byte-identical artifacts.

    Attributes:
        text: Equation body
        display: Display (block) style rather than inline
        process_escapes: Engine escape-processing flag
        error_mode: Error display mode (changes how errors are rendered)

    Example:
        >>> sig = ConversionSignature("x^2", False, True, ErrorDisplayMode.SHOW_RENDERED)
        >>> len(sig.key)
        64
    """

    text: str
    display: bool
    process_escapes: bool
    error_mode: ErrorDisplayMode

    @classmethod
    def for_span(cls, span: Span, options: RenderOptions) -> ConversionSignature:
        """Build the signature of an equation span under ``options``."""
        return cls(
            text=span.text,
            display=span.conversion_options.display,
            process_escapes=options.process_escapes,
            error_mode=options.error_display_mode,
        )

    @cached_property
    def key(self) -> str:
        """SHA-256 hex digest used as the store key."""
        return _digest(["svg", self.text, self.display, self.process_escapes, self.error_mode.name])


@dataclass(frozen=True)
class PresentationKey:
    """
    Identity of one rasterised bitmap.

    Two equal keys always yield pixel-identical bitmaps, so every
    presentation input is included.

    Attributes:
        artifact_identity: SHA-256 of the artifact's SVG bytes
        font_metric: x-height in points
        scale_factor: Extra scale
        display_scale: Pixels per point
        color_scheme: Recolouring scheme
    """

    artifact_identity: str
    font_metric: float
    scale_factor: float = 1.0
    display_scale: float = 1.0
    color_scheme: ColorScheme = ColorScheme.LIGHT

    @classmethod
    def for_artifact(cls, artifact: Artifact, options: RenderOptions) -> PresentationKey:
        """Build the key for rendering ``artifact`` under ``options``."""
        return cls(
            artifact_identity=artifact.identity,
            font_metric=float(options.font_metric),
            scale_factor=float(options.scale_factor),
            display_scale=float(options.display_scale),
            color_scheme=options.color_scheme,
        )

    @cached_property
    def key(self) -> str:
        """SHA-256 hex digest used as the store key."""
        return _digest([
            "bitmap",
            self.artifact_identity,
            repr(float(self.font_metric)),
            repr(float(self.scale_factor)),
            repr(float(self.display_scale)),
            self.color_scheme.name,
        ])
