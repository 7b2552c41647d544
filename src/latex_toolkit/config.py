"""
Module: latex_toolkit.config

Purpose:
    Configuration dataclasses and enums for segmentation, rendering and
    caching. Options are passed explicitly to every pipeline call and are
    validated on construction.

Key Classes:
    - RenderOptions: Per-call parsing, conversion and presentation options
    - CacheLimits: Capacity policy for the two cache tiers
    - ParsingMode, ErrorDisplayMode, ColorScheme: Option enums

Dependencies:
    - dataclasses (std)
    - enum (std)

Used By:
    - latex_toolkit.parsing.segmenter: ParsingMode
    - latex_toolkit.cache: CacheLimits, key derivation
    - latex_toolkit.rendering.pipeline: RenderOptions
    - latex_toolkit.session: RenderOptions
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class ParsingMode(Enum):
    """
    Controls how raw input is split into spans.

    Attributes:
        ALL: Split by equation delimiters; literal runs are kept as-is,
             one block per run (line breaks do not split them).
        ONLY_EQUATIONS: Split by equation delimiters; literal runs are
             split into one block per line.
        ENTIRE_INPUT: The whole input is a single inline equation.
    """

    ALL = auto()
    ONLY_EQUATIONS = auto()
    ENTIRE_INPUT = auto()


class ErrorDisplayMode(Enum):
    """
    What a consumer shows for an equation whose conversion failed.

    Attributes:
        SHOW_RENDERED: Show the engine's rendered output (if any).
        SHOW_ORIGINAL: Show the original TeX source.
        SHOW_ERROR_TEXT: Show the engine's diagnostic message.
    """

    SHOW_RENDERED = auto()
    SHOW_ORIGINAL = auto()
    SHOW_ERROR_TEXT = auto()


class ColorScheme(Enum):
    """Colour scheme used to recolour rendered equations."""

    LIGHT = "#3d4d6a"
    DARK = "#e5e7eb"

    @property
    def base_color(self) -> str:
        """CSS colour injected into the SVG."""
        return self.value


@dataclass(frozen=True)
class RenderOptions:
    """
    Options for a single segment/render call (immutable).

    Attributes:
        parsing_mode: How input text is split into spans.
        unencode_html: Un-escape HTML entities before segmenting.
        process_escapes: Let the TeX engine turn ``\\$`` into ``$``.
        error_display_mode: How conversion errors are surfaced.
        font_metric: x-height of the surrounding font, in points.
        scale_factor: Extra scale applied on top of the font metric.
        display_scale: Pixels per point of the target display.
        color_scheme: Light or dark recolouring of rendered SVGs.

    Example:
        >>> options = RenderOptions(font_metric=9.5, display_scale=2.0)
        >>> options.input_options().process_escapes
        True
    """

    parsing_mode: ParsingMode = ParsingMode.ONLY_EQUATIONS
    unencode_html: bool = False
    process_escapes: bool = True
    error_display_mode: ErrorDisplayMode = ErrorDisplayMode.SHOW_RENDERED
    font_metric: float = 8.0
    scale_factor: float = 1.0
    display_scale: float = 1.0
    color_scheme: ColorScheme = ColorScheme.LIGHT

    def __post_init__(self) -> None:
        """Validate options on construction."""
        if not isinstance(self.parsing_mode, ParsingMode):
            raise ValueError(f"Invalid parsing mode: {self.parsing_mode!r}")
        if not isinstance(self.error_display_mode, ErrorDisplayMode):
            raise ValueError(f"Invalid error display mode: {self.error_display_mode!r}")
        if not isinstance(self.color_scheme, ColorScheme):
            raise ValueError(f"Invalid color scheme: {self.color_scheme!r}")
        if self.font_metric <= 0:
            raise ValueError(f"font_metric must be positive: {self.font_metric}")
        if self.scale_factor <= 0:
            raise ValueError(f"scale_factor must be positive: {self.scale_factor}")
        if self.display_scale <= 0:
            raise ValueError(f"display_scale must be positive: {self.display_scale}")

    def input_options(self):
        """TeX input options handed to the conversion engine."""
        from .rendering.engine import InputOptions

        return InputOptions(
            process_escapes=self.process_escapes,
            error_mode=self.error_display_mode,
        )


@dataclass(frozen=True)
class CacheLimits:
    """
    Capacity policy for the artifact cache.

    Each tier is bounded by an entry count and, optionally, a total byte
    size. Least recently used entries are evicted first.

    Attributes:
        vector_max_items: Max encoded SVG artifacts kept (Tier 1).
        vector_max_bytes: Max total bytes of Tier 1, None for unbounded.
        bitmap_max_items: Max bitmaps kept (Tier 2).
        bitmap_max_bytes: Max total PNG bytes of Tier 2, None for unbounded.
    """

    vector_max_items: int = 512
    vector_max_bytes: int | None = 32 * 1024 * 1024
    bitmap_max_items: int = 256
    bitmap_max_bytes: int | None = 128 * 1024 * 1024

    def __post_init__(self) -> None:
        """Validate limits on construction."""
        if self.vector_max_items < 1:
            raise ValueError(f"vector_max_items must be >= 1: {self.vector_max_items}")
        if self.bitmap_max_items < 1:
            raise ValueError(f"bitmap_max_items must be >= 1: {self.bitmap_max_items}")
        for name in ("vector_max_bytes", "bitmap_max_bytes"):
            value = getattr(self, name)
            if value is not None and value < 1:
                raise ValueError(f"{name} must be >= 1 or None: {value}")
