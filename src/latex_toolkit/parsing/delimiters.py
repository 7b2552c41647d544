"""
Module: parsing.delimiters

Purpose:
    Table of recognised equation delimiters and the escape rule used by
    the segmenter.

Key Classes:
    - Delimiter: Opener/closer pair and the span kind it produces

Key Functions:
    - match_opener(): Find the delimiter starting at a position
    - find_closer(): Find the first unescaped closer after a position
    - is_escaped(): Check for an odd run of preceding backslashes

Used By:
    - latex_toolkit.parsing.segmenter
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from latex_toolkit.core.models import SpanKind


@dataclass(frozen=True, slots=True)
class Delimiter:
    """
    An equation delimiter pair.

    Attributes:
        left: Opening text
        right: Closing text
        kind: Span kind for the enclosed equation
        numbered: Whether the environment is numbered
    """

    left: str
    right: str
    kind: SpanKind
    numbered: bool = False


# Longest openers first so "$$" wins over "$" and "equation*" over "equation"
DELIMITERS: Tuple[Delimiter, ...] = (
    Delimiter(r"\begin{equation*}", r"\end{equation*}", SpanKind.BLOCK_EQUATION),
    Delimiter(r"\begin{equation}", r"\end{equation}", SpanKind.BLOCK_EQUATION, numbered=True),
    Delimiter("$$", "$$", SpanKind.BLOCK_EQUATION),
    Delimiter(r"\[", r"\]", SpanKind.BLOCK_EQUATION),
    Delimiter("$", "$", SpanKind.INLINE_EQUATION),
    Delimiter(r"\(", r"\)", SpanKind.INLINE_EQUATION),
)

# Characters that can start an opener; lets the scan skip plain text quickly
OPENER_START_CHARS = frozenset(d.left[0] for d in DELIMITERS)


def is_escaped(text: str, pos: int) -> bool:
    """
    Check whether the character at ``pos`` is escaped.

    A character is escaped when it is preceded by an odd number of
    backslashes, so ``\\$`` and ``\\\\(`` are escaped but ``\\\\$`` is not.
    """
    count = 0
    i = pos - 1
    while i >= 0 and text[i] == "\\":
        count += 1
        i -= 1
    return count % 2 == 1


def match_opener(text: str, pos: int) -> Optional[Delimiter]:
    """
    Return the unescaped delimiter that opens at ``pos``, if any.

    Args:
        text: Input text
        pos: Index to test

    Returns:
        First matching Delimiter from :data:`DELIMITERS`, or None
    """
    if text[pos] not in OPENER_START_CHARS or is_escaped(text, pos):
        return None
    for delimiter in DELIMITERS:
        if text.startswith(delimiter.left, pos):
            return delimiter
    return None


def find_closer(text: str, delimiter: Delimiter, start: int) -> int:
    """
    Find the first unescaped closer at or after ``start``.

    Returns:
        Index of the closer, or -1 if the equation is unterminated
    """
    pos = text.find(delimiter.right, start)
    while pos != -1 and is_escaped(text, pos):
        pos = text.find(delimiter.right, pos + 1)
    return pos
