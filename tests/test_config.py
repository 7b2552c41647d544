"""
Unit Tests for Configuration

Tests for RenderOptions and CacheLimits validation.
"""

import pytest

from latex_toolkit.config import (
    CacheLimits,
    ColorScheme,
    ErrorDisplayMode,
    ParsingMode,
    RenderOptions,
)


class TestRenderOptions:
    """Tests for RenderOptions."""

    def test_init_when_defaults_then_only_equations_light(self):
        options = RenderOptions()

        assert options.parsing_mode is ParsingMode.ONLY_EQUATIONS
        assert options.color_scheme is ColorScheme.LIGHT
        assert options.process_escapes is True

    @pytest.mark.parametrize("field", ["font_metric", "scale_factor", "display_scale"])
    def test_init_when_non_positive_number_then_raises_error(self, field):
        with pytest.raises(ValueError, match=f"{field} must be positive"):
            RenderOptions(**{field: 0})

    def test_init_when_mode_is_string_then_raises_error(self):
        with pytest.raises(ValueError, match="Invalid parsing mode"):
            RenderOptions(parsing_mode="all")

    def test_input_options_when_called_then_mirrors_options(self):
        options = RenderOptions(
            process_escapes=False,
            error_display_mode=ErrorDisplayMode.SHOW_ERROR_TEXT,
        )

        input_options = options.input_options()

        assert input_options.process_escapes is False
        assert input_options.error_mode is ErrorDisplayMode.SHOW_ERROR_TEXT

    def test_equality_when_same_values_then_equal_and_hashable(self):
        assert RenderOptions(font_metric=9) == RenderOptions(font_metric=9)
        assert len({RenderOptions(), RenderOptions()}) == 1

    def test_color_scheme_when_dark_then_light_grey(self):
        assert ColorScheme.DARK.base_color == "#e5e7eb"
        assert ColorScheme.LIGHT.base_color == "#3d4d6a"


class TestCacheLimits:
    """Tests for CacheLimits."""

    def test_init_when_zero_items_then_raises_error(self):
        with pytest.raises(ValueError, match="vector_max_items must be >= 1"):
            CacheLimits(vector_max_items=0)

    def test_init_when_zero_bytes_then_raises_error(self):
        with pytest.raises(ValueError, match="bitmap_max_bytes must be >= 1 or None"):
            CacheLimits(bitmap_max_bytes=0)

    def test_init_when_bytes_none_then_unbounded(self):
        assert CacheLimits(vector_max_bytes=None).vector_max_bytes is None
