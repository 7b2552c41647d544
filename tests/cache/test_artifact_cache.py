"""
Unit Tests for ArtifactCache

Tests for the two-tier cache and its keys.
"""

from PIL import Image

from latex_toolkit.cache import (
    ArtifactCache,
    ConversionSignature,
    PresentationKey,
    get_shared_cache,
    reset_shared_cache,
)
from latex_toolkit.config import (
    CacheLimits,
    ColorScheme,
    ErrorDisplayMode,
    ParsingMode,
    RenderOptions,
)
from latex_toolkit.core.models import Artifact, ArtifactDecodeError, Bitmap, Span, SpanKind


def inline(text):
    return Span(text, SpanKind.INLINE_EQUATION, "$", "$")


class TestConversionSignature:
    """Tests for ConversionSignature."""

    def test_for_span_when_same_input_then_same_key(self, options):
        first = ConversionSignature.for_span(inline("x"), options)
        second = ConversionSignature.for_span(inline("x"), options)

        assert first == second
        assert first.key == second.key

    def test_for_span_when_display_differs_then_key_differs(self, options):
        block = Span("x", SpanKind.BLOCK_EQUATION, "$$", "$$")

        assert (
            ConversionSignature.for_span(block, options).key
            != ConversionSignature.for_span(inline("x"), options).key
        )

    def test_for_span_when_delimiter_differs_then_same_key(self, options):
        """Only the body and options matter, not how it was delimited."""
        other = Span("x", SpanKind.INLINE_EQUATION, r"\(", r"\)")

        assert (
            ConversionSignature.for_span(other, options).key
            == ConversionSignature.for_span(inline("x"), options).key
        )

    def test_for_span_when_presentation_differs_then_same_key(self, options):
        """Colour, size and parsing options do not affect the SVG."""
        dark = RenderOptions(
            color_scheme=ColorScheme.DARK,
            font_metric=20.0,
            parsing_mode=ParsingMode.ALL,
        )

        assert (
            ConversionSignature.for_span(inline("x"), dark).key
            == ConversionSignature.for_span(inline("x"), options).key
        )

    def test_for_span_when_error_mode_differs_then_key_differs(self, options):
        other = RenderOptions(error_display_mode=ErrorDisplayMode.SHOW_ERROR_TEXT)

        assert (
            ConversionSignature.for_span(inline("x"), other).key
            != ConversionSignature.for_span(inline("x"), options).key
        )


class TestPresentationKey:
    """Tests for PresentationKey."""

    def test_for_artifact_when_scheme_differs_then_key_differs(self, svg_text):
        artifact = Artifact.from_svg(svg_text)
        light = PresentationKey.for_artifact(artifact, RenderOptions())
        dark = PresentationKey.for_artifact(artifact, RenderOptions(color_scheme=ColorScheme.DARK))

        assert light.key != dark.key

    def test_for_artifact_when_font_metric_differs_then_key_differs(self, svg_text):
        artifact = Artifact.from_svg(svg_text)

        assert (
            PresentationKey.for_artifact(artifact, RenderOptions(font_metric=8)).key
            != PresentationKey.for_artifact(artifact, RenderOptions(font_metric=9)).key
        )

    def test_for_artifact_when_int_or_float_metric_then_same_key(self, svg_text):
        artifact = Artifact.from_svg(svg_text)

        assert (
            PresentationKey.for_artifact(artifact, RenderOptions(font_metric=8)).key
            == PresentationKey.for_artifact(artifact, RenderOptions(font_metric=8.0)).key
        )


class TestArtifactCache:
    """Tests for ArtifactCache."""

    def _bitmap(self, size=(4, 2)):
        return Bitmap.from_image(Image.new("RGBA", size))

    # ─────────────────────────────────────────────────────────────────────────
    # Tier 1
    # ─────────────────────────────────────────────────────────────────────────

    def test_get_artifact_when_cold_then_none(self, cache, options):
        signature = ConversionSignature.for_span(inline("x"), options)

        assert cache.get_artifact(signature) is None

    def test_get_artifact_when_stored_then_equal_artifact(self, cache, options, svg_text):
        signature = ConversionSignature.for_span(inline("x"), options)
        artifact = Artifact.from_svg(svg_text)

        cache.put_artifact(signature, artifact)

        assert cache.get_artifact(signature) == artifact
        assert cache.has_artifact(signature)
        assert cache.get_cached_vector(signature) == artifact.encode()

    def test_get_artifact_when_error_artifact_then_kept(self, cache, options):
        signature = ConversionSignature.for_span(inline(r"\bad"), options)
        cache.put_artifact(signature, Artifact.from_svg("", "Undefined"))

        assert cache.get_artifact(signature).error_text == "Undefined"

    def test_get_artifact_when_corrupt_then_miss_and_evicted(self, cache, options):
        """Undecodable entries are reported as a miss and dropped."""
        signature = ConversionSignature.for_span(inline("x"), options)
        cache.vector_store.put(signature.key, b"\x00garbage")

        assert cache.get_artifact(signature) is None
        assert not cache.has_artifact(signature)

    def test_get_artifact_when_replaced_during_decode_then_fresh_entry_kept(
        self, cache, options, svg_text, monkeypatch
    ):
        """Dropping a corrupt entry never deletes one stored concurrently."""
        signature = ConversionSignature.for_span(inline("x"), options)
        fresh = Artifact.from_svg(svg_text)
        cache.vector_store.put(signature.key, b"\x00garbage")

        def decode_while_replaced(cls, data):
            cache.put_artifact(signature, fresh)
            raise ArtifactDecodeError("truncated")

        monkeypatch.setattr(Artifact, "decode", classmethod(decode_while_replaced))

        assert cache.get_artifact(signature) is None
        assert cache.get_cached_vector(signature) == fresh.encode()

    def test_peek_artifact_when_stored_then_no_hit_counted(self, cache, options, svg_text):
        signature = ConversionSignature.for_span(inline("x"), options)
        cache.put_artifact(signature, Artifact.from_svg(svg_text))

        assert cache.peek_artifact(signature) is not None
        assert cache.vector_store.hits == 0

    # ─────────────────────────────────────────────────────────────────────────
    # Tier 2
    # ─────────────────────────────────────────────────────────────────────────

    def test_get_bitmap_when_stored_then_same_bitmap(self, cache, options, svg_text):
        key = PresentationKey.for_artifact(Artifact.from_svg(svg_text), options)
        bitmap = self._bitmap()

        cache.put_bitmap(key, bitmap)

        assert cache.get_bitmap(key) is bitmap
        assert cache.has_bitmap(key)
        assert cache.get_cached_bitmap(key) is bitmap

    def test_put_bitmap_when_over_limit_then_evicts_oldest(self, svg_text):
        cache = ArtifactCache(CacheLimits(bitmap_max_items=1))
        artifact = Artifact.from_svg(svg_text)
        first = PresentationKey.for_artifact(artifact, RenderOptions(font_metric=8))
        second = PresentationKey.for_artifact(artifact, RenderOptions(font_metric=9))

        cache.put_bitmap(first, self._bitmap())
        cache.put_bitmap(second, self._bitmap())

        assert not cache.has_bitmap(first)
        assert cache.has_bitmap(second)

    def test_clear_when_called_then_both_tiers_empty(self, cache, options, svg_text):
        artifact = Artifact.from_svg(svg_text)
        cache.put_artifact(ConversionSignature.for_span(inline("x"), options), artifact)
        cache.put_bitmap(PresentationKey.for_artifact(artifact, options), self._bitmap())

        cache.clear()

        assert len(cache.vector_store) == 0
        assert len(cache.bitmap_store) == 0


class TestSharedCache:
    """Tests for the process-wide cache."""

    def test_get_shared_cache_when_called_twice_then_same_instance(self):
        assert get_shared_cache() is get_shared_cache()

    def test_reset_shared_cache_when_called_then_new_instance(self):
        first = get_shared_cache()

        reset_shared_cache()

        assert get_shared_cache() is not first
