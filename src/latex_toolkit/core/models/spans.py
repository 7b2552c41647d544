"""
Module: spans

Purpose:
    Provides the Span and Block dataclasses produced by the segmenter and
    consumed by the render pipeline.

Key Classes:
    - SpanKind: Literal text, inline equation or block equation
    - Span: One literal run or one equation, plus its render results
    - Block: Ordered group of spans rendered as a unit

Dependencies:
    - latex_toolkit.core.models.artifacts: Artifact
    - latex_toolkit.core.models.bitmap: Bitmap

Used By:
    - latex_toolkit.parsing.segmenter: Creates spans and blocks
    - latex_toolkit.rendering.pipeline: Replaces spans with rendered copies
    - latex_toolkit.session: Holds rendered blocks
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Optional, Sequence, Tuple

from .artifacts import Artifact
from .bitmap import Bitmap

if TYPE_CHECKING:
    from latex_toolkit.config import ErrorDisplayMode
    from latex_toolkit.rendering.engine import ConversionOptions


class SpanKind(Enum):
    """Kind of a span, decided once during segmentation."""

    LITERAL = "literal"
    INLINE_EQUATION = "inline"
    BLOCK_EQUATION = "block"

    @property
    def is_equation(self) -> bool:
        return self is not SpanKind.LITERAL

    @property
    def is_inline(self) -> bool:
        """Literal text and inline equations flow within a line."""
        return self is not SpanKind.BLOCK_EQUATION


@dataclass(frozen=True)
class Span:
    """
    Smallest segmented unit of input.

    Spans are immutable: rendering returns a new span via
    :meth:`with_render` instead of editing the existing one.

    Attributes:
        text: Literal text, or the equation body without delimiters
        kind: Literal, inline equation or block equation
        left_delimiter: Opening delimiter as written ("" for literals)
        right_delimiter: Closing delimiter as written ("" for literals)
        numbered: True for ``\\begin{equation}`` bodies
        artifact: SVG artifact once rendered
        bitmap: Raster image once rendered

    Example:
        >>> span = Span("E=mc^2", SpanKind.INLINE_EQUATION, "\\\\(", "\\\\)")
        >>> span.original_text
        '\\\\(E=mc^2\\\\)'
    """

    text: str
    kind: SpanKind = SpanKind.LITERAL
    left_delimiter: str = ""
    right_delimiter: str = ""
    numbered: bool = False
    artifact: Optional[Artifact] = None
    bitmap: Optional[Bitmap] = None

    @classmethod
    def literal(cls, text: str) -> Span:
        return cls(text=text, kind=SpanKind.LITERAL)

    @property
    def original_text(self) -> str:
        """The span exactly as it appeared in the input."""
        return f"{self.left_delimiter}{self.text}{self.right_delimiter}"

    @property
    def original_text_trimming_newlines(self) -> str:
        return self.original_text.replace("\n", " ").strip()

    @property
    def is_rendered(self) -> bool:
        return self.artifact is not None

    @property
    def conversion_options(self) -> ConversionOptions:
        """Engine conversion options (display style for block equations)."""
        from latex_toolkit.rendering.engine import ConversionOptions

        return ConversionOptions(display=not self.kind.is_inline)

    def with_render(self, artifact: Artifact, bitmap: Optional[Bitmap]) -> Span:
        """Return a copy carrying the given render results."""
        return replace(self, artifact=artifact, bitmap=bitmap)

    def display_text(self, error_mode: ErrorDisplayMode) -> Optional[str]:
        """
        Text a consumer should show in place of an image.

        Args:
            error_mode: How conversion errors are surfaced

        Returns:
            The text to display, or None when the bitmap should be shown.
        """
        from latex_toolkit.config import ErrorDisplayMode

        if not self.kind.is_equation:
            return self.text
        if self.artifact is None:
            # Not rendered yet
            return self.original_text
        if self.artifact.has_error and error_mode is not ErrorDisplayMode.SHOW_RENDERED:
            if error_mode is ErrorDisplayMode.SHOW_ERROR_TEXT:
                return self.artifact.error_text
            return self.original_text
        if self.bitmap is None:
            return self.original_text if error_mode is ErrorDisplayMode.SHOW_ORIGINAL else ""
        return None


@dataclass(frozen=True)
class Block:
    """
    One renderable unit: a line of text or a single equation.

    Attributes:
        spans: Spans in input order
    """

    spans: Tuple[Span, ...] = ()

    def __post_init__(self) -> None:
        # Accept any sequence but store a tuple so blocks stay hashable
        if not isinstance(self.spans, tuple):
            object.__setattr__(self, "spans", tuple(self.spans))

    @classmethod
    def of(cls, *spans: Span) -> Block:
        return cls(spans=tuple(spans))

    @property
    def equation_spans(self) -> Sequence[Span]:
        return [s for s in self.spans if s.kind.is_equation]

    @property
    def is_equation_block(self) -> bool:
        """True if the block holds exactly one equation and only blank text."""
        equations = self.equation_spans
        if len(equations) != 1:
            return False
        return all(
            s.kind.is_equation or not s.text.strip()
            for s in self.spans
        )

    @property
    def is_empty(self) -> bool:
        return not self.spans

    @property
    def original_text(self) -> str:
        return "".join(s.original_text for s in self.spans)
