"""
Unit Tests for the Segmenter

Tests for splitting mixed text/LaTeX input into blocks of spans.
"""

import pytest

from latex_toolkit.config import ParsingMode
from latex_toolkit.core.models import Span, SpanKind
from latex_toolkit.parsing import segment, segment_to_text


def flat(blocks):
    return [span for block in blocks for span in block.spans]


SAMPLES = [
    "",
    "plain text only",
    r"Energy: \(E=mc^2\) joules",
    "line one\nline two\n\nline four",
    r"$$\int_0^1 x\,dx$$ and $y$ and \[z\]",
    r"\begin{equation}a=b\end{equation} then \begin{equation*}c\end{equation*}",
    r"Value \(x",
    r"costs \$5, not $6",
    "trailing newline\n",
    r"mixed \(a\)\(b\) adjacent",
]


class TestSegment:
    """Tests for segment()."""

    # ─────────────────────────────────────────────────────────────────────────
    # Basic Segmentation
    # ─────────────────────────────────────────────────────────────────────────

    def test_segment_when_inline_equation_then_splits_around_it(self):
        """The E=mc^2 example yields literal, inline equation, literal."""
        spans = flat(segment(r"Energy: \(E=mc^2\) joules"))

        assert spans == [
            Span.literal("Energy: "),
            Span("E=mc^2", SpanKind.INLINE_EQUATION, r"\(", r"\)"),
            Span.literal(" joules"),
        ]

    def test_segment_when_equation_then_gets_own_block(self):
        """Each equation is a block of its own."""
        blocks = segment(r"Energy: \(E=mc^2\) joules")

        assert len(blocks) == 3
        assert blocks[1].is_equation_block

    def test_segment_when_unterminated_opener_then_rest_is_literal(self):
        """An opener without closer falls back to literal text."""
        spans = flat(segment(r"Value \(x"))

        assert spans == [Span.literal(r"Value \(x")]

    def test_segment_when_unterminated_after_equation_then_keeps_equation(self):
        """Text after the last closed equation becomes literal."""
        spans = flat(segment(r"$a$ and \[b"))

        assert [s.kind for s in spans] == [SpanKind.INLINE_EQUATION, SpanKind.LITERAL]
        assert spans[1].text == r" and \[b"

    def test_segment_when_unterminated_across_lines_then_single_literal(self):
        """The unterminated remainder is not split per line."""
        text = "see\nthis \\(x + 1\nand more"

        blocks = segment(text, ParsingMode.ONLY_EQUATIONS)

        assert flat(blocks) == [Span.literal(text)]
        assert segment_to_text(blocks) == text

    def test_segment_when_unterminated_after_lines_then_closed_lines_split(self):
        blocks = segment("one\n$a$\ntwo \\[b\nc", ParsingMode.ONLY_EQUATIONS)

        assert [s.text for s in flat(blocks)] == ["one\n", "a", "\ntwo \\[b\nc"]

    def test_segment_when_empty_then_returns_no_blocks(self):
        assert segment("") == []

    # ─────────────────────────────────────────────────────────────────────────
    # Delimiters
    # ─────────────────────────────────────────────────────────────────────────

    @pytest.mark.parametrize("text,kind,numbered", [
        ("$x$", SpanKind.INLINE_EQUATION, False),
        (r"\(x\)", SpanKind.INLINE_EQUATION, False),
        ("$$x$$", SpanKind.BLOCK_EQUATION, False),
        (r"\[x\]", SpanKind.BLOCK_EQUATION, False),
        (r"\begin{equation}x\end{equation}", SpanKind.BLOCK_EQUATION, True),
        (r"\begin{equation*}x\end{equation*}", SpanKind.BLOCK_EQUATION, False),
    ])
    def test_segment_when_delimited_then_kind_matches_delimiter(self, text, kind, numbered):
        """Every supported delimiter produces the expected span kind."""
        spans = flat(segment(text))

        assert len(spans) == 1
        assert spans[0].text == "x"
        assert spans[0].kind is kind
        assert spans[0].numbered is numbered
        assert spans[0].original_text == text

    def test_segment_when_double_dollar_then_wins_over_single(self):
        """$$ is matched before $."""
        spans = flat(segment("$$x$$ then $y$"))

        assert [(s.kind, s.text) for s in spans] == [
            (SpanKind.BLOCK_EQUATION, "x"),
            (SpanKind.LITERAL, " then "),
            (SpanKind.INLINE_EQUATION, "y"),
        ]

    def test_segment_when_escaped_dollar_then_stays_literal(self):
        r"""\$ is not an opener and is kept verbatim."""
        spans = flat(segment(r"costs \$5 and \$6"))

        assert spans == [Span.literal(r"costs \$5 and \$6")]

    def test_segment_when_escaped_backslash_before_dollar_then_opens(self):
        r"""\\$ is an escaped backslash followed by a real opener."""
        spans = flat(segment(r"\\$x$"))

        assert spans[0] == Span.literal("\\\\")
        assert spans[1].kind is SpanKind.INLINE_EQUATION
        assert spans[1].text == "x"

    def test_segment_when_escaped_closer_then_skips_it(self):
        spans = flat(segment(r"$a\$b$"))

        assert len(spans) == 1
        assert spans[0].text == r"a\$b"

    def test_segment_when_delimiters_nest_then_first_match_wins(self):
        """Equations do not nest: the outer delimiter owns the inner text."""
        spans = flat(segment(r"$a \(b\) c$"))

        assert len(spans) == 1
        assert spans[0].text == r"a \(b\) c"

    def test_segment_when_adjacent_equations_then_no_empty_literal(self):
        spans = flat(segment(r"\(a\)\(b\)"))

        assert [s.text for s in spans] == ["a", "b"]

    # ─────────────────────────────────────────────────────────────────────────
    # Parsing Modes
    # ─────────────────────────────────────────────────────────────────────────

    def test_segment_when_only_equations_then_one_block_per_line(self):
        blocks = segment("line one\nline two", ParsingMode.ONLY_EQUATIONS)

        assert [b.original_text for b in blocks] == ["line one\n", "line two"]

    def test_segment_when_all_mode_then_literal_run_is_one_block(self):
        blocks = segment("line one\nline two", ParsingMode.ALL)

        assert [b.original_text for b in blocks] == ["line one\nline two"]

    def test_segment_when_entire_input_then_single_inline_equation(self):
        """ENTIRE_INPUT treats the whole input as one equation, delimiters ignored."""
        blocks = segment("x^2 + $y$", ParsingMode.ENTIRE_INPUT)

        assert len(blocks) == 1
        assert blocks[0].spans == (Span("x^2 + $y$", SpanKind.INLINE_EQUATION),)

    def test_segment_when_entire_input_empty_then_no_blocks(self):
        assert segment("", ParsingMode.ENTIRE_INPUT) == []

    def test_segment_when_invalid_mode_then_raises_error(self):
        with pytest.raises(ValueError, match="Invalid parsing mode"):
            segment("x", "all")

    def test_segment_when_unencode_html_then_entities_decoded(self):
        spans = flat(segment(r"&lt;b&gt; \(a &amp; b\)", unencode_html=True))

        assert spans[0].text == "<b> "
        assert spans[1].text == "a & b"

    def test_segment_when_unencode_html_disabled_then_entities_kept(self):
        spans = flat(segment(r"\(a &amp; b\)"))

        assert spans[0].text == "a &amp; b"


class TestSegmentProperties:
    """Properties that hold for any input."""

    @pytest.mark.parametrize("mode", list(ParsingMode))
    @pytest.mark.parametrize("text", SAMPLES)
    def test_segment_to_text_when_any_input_then_reconstructs_input(self, text, mode):
        """Segmentation is total: nothing is lost or reordered."""
        assert segment_to_text(segment(text, mode)) == text

    @pytest.mark.parametrize("text", SAMPLES)
    def test_segment_when_run_twice_then_same_result(self, text):
        """Re-segmenting the reconstruction gives the same blocks."""
        first = segment(text)

        assert segment(segment_to_text(first)) == first

    @pytest.mark.parametrize("text", SAMPLES)
    def test_segment_when_any_input_then_no_empty_literals(self, text):
        for span in flat(segment(text, ParsingMode.ALL)):
            if span.kind is SpanKind.LITERAL:
                assert span.text
