"""
Module: parsing.segmenter

Purpose:
    Split mixed plain-text/LaTeX input into an ordered list of blocks of
    spans. Equations are found by delimiter pairs in a single left-to-right
    scan; everything else is literal text passed through verbatim.

Key Functions:
    - segment(): Text -> List[Block]
    - segment_to_text(): Blocks -> original text

Dependencies:
    - html (std): Optional entity un-escaping
    - latex_toolkit.parsing.delimiters: Delimiter table and escape rule

Used By:
    - latex_toolkit.rendering.pipeline: RenderPipeline.segment
    - latex_toolkit.session: Parsed block memoisation

Behaviour notes:
    - First match wins and equations do not nest: inside an equation body
      only the matching closer is recognised.
    - An unterminated opener turns the rest of the input into one literal
      span, never split per line.
    - Escaped delimiters stay in the literal text exactly as written.
"""

from __future__ import annotations

import html
import logging
import re
from typing import Iterable, List, Optional, Tuple

from latex_toolkit.config import ParsingMode
from latex_toolkit.core.models import Block, Span, SpanKind

from .delimiters import find_closer, match_opener

logger = logging.getLogger(__name__)

_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+")


def segment(
    text: str,
    mode: ParsingMode = ParsingMode.ONLY_EQUATIONS,
    *,
    unencode_html: bool = False,
) -> List[Block]:
    """
    Segment input text into blocks.

    Each equation gets a block of its own so it can be replaced wholesale
    after rendering. Literal runs become one block per line in
    ONLY_EQUATIONS mode and one block per run in ALL mode.

    Args:
        text: Raw input
        mode: Parsing mode
        unencode_html: Un-escape HTML entities (``&amp;`` etc.) first

    Returns:
        Blocks in input order. Never raises for malformed TeX.

    Example:
        >>> blocks = segment("Energy: \\\\(E=mc^2\\\\) joules")
        >>> [s.text for b in blocks for s in b.spans]
        ['Energy: ', 'E=mc^2', ' joules']
    """
    if not isinstance(mode, ParsingMode):
        raise ValueError(f"Invalid parsing mode: {mode!r}")
    if unencode_html:
        text = html.unescape(text)

    if mode is ParsingMode.ENTIRE_INPUT:
        if not text:
            return []
        return [Block.of(Span(text=text, kind=SpanKind.INLINE_EQUATION))]

    spans, tail = _scan(text)
    blocks = _group(spans, split_lines=mode is ParsingMode.ONLY_EQUATIONS)
    if tail is not None:
        blocks.append(Block.of(tail))
    return blocks


def segment_to_text(blocks: Iterable[Block]) -> str:
    """Rebuild the source text from blocks (delimiters included)."""
    return "".join(block.original_text for block in blocks)


def _scan(text: str) -> Tuple[List[Span], Optional[Span]]:
    """
    Scan text into literal and equation spans.

    Returns:
        The spans, plus the unterminated remainder as a single literal
        span (None when every opener was closed).
    """
    spans: List[Span] = []
    literal_start = 0
    pos = 0
    length = len(text)

    while pos < length:
        delimiter = match_opener(text, pos)
        if delimiter is None:
            pos += 1
            continue

        body_start = pos + len(delimiter.left)
        close = find_closer(text, delimiter, body_start)
        if close == -1:
            logger.debug(
                f"Unterminated {delimiter.left!r} at offset {pos}; "
                f"keeping remaining {length - literal_start} chars as text"
            )
            return spans, Span.literal(text[literal_start:])

        if pos > literal_start:
            spans.append(Span.literal(text[literal_start:pos]))
        spans.append(Span(
            text=text[body_start:close],
            kind=delimiter.kind,
            left_delimiter=delimiter.left,
            right_delimiter=delimiter.right,
            numbered=delimiter.numbered,
        ))
        pos = close + len(delimiter.right)
        literal_start = pos

    if literal_start < length:
        spans.append(Span.literal(text[literal_start:]))
    return spans, None


def _group(spans: List[Span], *, split_lines: bool) -> List[Block]:
    """Group spans into blocks, one per equation and per literal line."""
    blocks: List[Block] = []
    for span in spans:
        if span.kind.is_equation or not split_lines:
            blocks.append(Block.of(span))
            continue
        # Newline stays with the line it ends
        for line in _LINE_RE.findall(span.text):
            blocks.append(Block.of(Span.literal(line)))
    return blocks
