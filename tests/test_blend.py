# Tests for blend modes and source-over compositing
"""
Test the W3C blend functions and straight-alpha compositing.
"""

import numpy as np
import pytest

from compoforge.imaging.blend import blend, composite
from compoforge.layers import BlendMode


def rgba(r, g, b, a=1.0, size=(2, 2)):
    """Solid float32 RGBA array."""
    return np.full((size[1], size[0], 4), [r, g, b, a], dtype=np.float32)


def color(r, g, b):
    return np.full((2, 2, 3), [r, g, b], dtype=np.float32)


class TestSeparableModes:
    """Per-channel blend functions."""

    def test_normal(self):
        """Normal returns the overlay."""
        assert np.allclose(blend(color(0.2, 0.4, 0.6), color(0.9, 0.1, 0.5), BlendMode.NORMAL), [0.9, 0.1, 0.5])

    def test_multiply(self):
        """Multiply darkens."""
        assert np.allclose(blend(color(0.5, 1, 0), color(0.5, 0.5, 0.5), BlendMode.MULTIPLY), [0.25, 0.5, 0])

    def test_screen(self):
        """Screen lightens."""
        assert np.allclose(blend(color(0.5, 0, 1), color(0.5, 0.5, 0.5), BlendMode.SCREEN), [0.75, 0.5, 1])

    def test_overlay_is_hard_light_swapped(self):
        """overlay(a, b) == hard-light(b, a)."""
        a, b = color(0.2, 0.7, 0.5), color(0.9, 0.3, 0.6)
        assert np.allclose(blend(a, b, BlendMode.OVERLAY), blend(b, a, BlendMode.HARD_LIGHT))

    def test_darken_lighten(self):
        """Darken keeps the minimum, lighten the maximum."""
        a, b = color(0.2, 0.7, 0.5), color(0.9, 0.3, 0.5)
        assert np.allclose(blend(a, b, BlendMode.DARKEN), [0.2, 0.3, 0.5])
        assert np.allclose(blend(a, b, BlendMode.LIGHTEN), [0.9, 0.7, 0.5])

    def test_difference_and_exclusion(self):
        """Identical colors cancel out."""
        a = color(0.3, 0.6, 0.9)
        assert np.allclose(blend(a, a, BlendMode.DIFFERENCE), 0)
        assert np.allclose(blend(color(1, 1, 1), color(0.25, 0.5, 1), BlendMode.EXCLUSION), [0.75, 0.5, 0])

    def test_color_dodge_edges(self):
        """Black base stays black, white overlay saturates."""
        result = blend(color(0, 0.5, 0.5), color(0.5, 1, 0.5), BlendMode.COLOR_DODGE)
        assert np.allclose(result, [0, 1, 1])

    def test_color_burn_edges(self):
        """White base stays white, black overlay gives black."""
        result = blend(color(1, 0.5, 0.5), color(0.5, 0, 0.5), BlendMode.COLOR_BURN)
        assert np.allclose(result, [1, 0, 0])

    def test_soft_light_neutral_gray(self):
        """A 50% gray overlay leaves the base unchanged."""
        base = color(0.1, 0.4, 0.8)
        assert np.allclose(blend(base, color(0.5, 0.5, 0.5), BlendMode.SOFT_LIGHT), [0.1, 0.4, 0.8])


class TestNonSeparableModes:
    """Hue, saturation, color and luminosity."""

    def test_luminosity_of_white(self):
        """Luminosity from white makes any gray white."""
        assert np.allclose(blend(color(0.2, 0.2, 0.2), color(1, 1, 1), BlendMode.LUMINOSITY), 1)

    def test_color_onto_gray_keeps_luminance(self):
        """Color mode keeps the base luminance."""
        result = blend(color(0.5, 0.5, 0.5), color(1, 0, 0), BlendMode.COLOR)
        lum = 0.3 * result[..., 0] + 0.59 * result[..., 1] + 0.11 * result[..., 2]
        assert np.allclose(lum, 0.5, atol=1e-5)
        assert np.all(result[..., 0] > result[..., 1])

    def test_saturation_from_gray_desaturates(self):
        """A gray overlay removes all saturation."""
        result = blend(color(1, 0, 0), color(0.5, 0.5, 0.5), BlendMode.SATURATION)
        assert np.allclose(result[..., 0], result[..., 1])
        assert np.allclose(result[..., 1], result[..., 2])

    def test_hue_onto_gray_stays_gray(self):
        """A gray base has no saturation for the hue to use."""
        result = blend(color(0.4, 0.4, 0.4), color(0, 0, 1), BlendMode.HUE)
        assert np.allclose(result, 0.4, atol=1e-5)


class TestAllModes:
    """Properties every blend mode shares."""

    @pytest.mark.parametrize("mode", list(BlendMode))
    def test_output_range(self, mode):
        """Results stay within [0, 1] for random inputs."""
        rng = np.random.default_rng(42)
        base = rng.random((8, 8, 3), dtype=np.float32)
        overlay = rng.random((8, 8, 3), dtype=np.float32)
        result = blend(base, overlay, mode)
        assert result.shape == (8, 8, 3)
        assert np.all(result >= -1e-6) and np.all(result <= 1 + 1e-6)
        assert np.all(np.isfinite(result))

    @pytest.mark.parametrize("mode", list(BlendMode))
    def test_over_transparent_backdrop(self, mode):
        """Any mode over a transparent backdrop shows the source as is."""
        source = rgba(0.8, 0.2, 0.4, 1.0)
        result = composite(rgba(0, 0, 0, 0), source, mode)
        assert np.allclose(result, source)


class TestComposite:
    """Straight-alpha source-over."""

    def test_opaque_source_covers(self):
        """An opaque normal source replaces the backdrop."""
        result = composite(rgba(1, 1, 1), rgba(1, 0, 0))
        assert np.allclose(result, [1, 0, 0, 1])

    def test_transparent_source_keeps_backdrop(self):
        """A fully transparent source changes nothing."""
        backdrop = rgba(0.1, 0.2, 0.3, 0.7)
        assert np.allclose(composite(backdrop, rgba(1, 0, 0, 0)), backdrop)

    def test_half_alpha_mixes(self):
        """50% red over opaque white is pink."""
        result = composite(rgba(1, 1, 1), rgba(1, 0, 0, 0.5))
        assert np.allclose(result, [1, 0.5, 0.5, 1])

    def test_alpha_accumulates(self):
        """Two 50% layers give 75% coverage."""
        result = composite(rgba(0, 0, 0, 0.5), rgba(0, 0, 0, 0.5))
        assert np.allclose(result[..., 3], 0.75)

    def test_multiply_over_white(self):
        """Multiplying onto white leaves the source color."""
        result = composite(rgba(1, 1, 1), rgba(0.2, 0.4, 0.6), BlendMode.MULTIPLY)
        assert np.allclose(result, [0.2, 0.4, 0.6, 1])

    def test_shape_mismatch(self):
        """Backdrop and source must match."""
        with pytest.raises(ValueError):
            composite(rgba(0, 0, 0, size=(2, 2)), rgba(0, 0, 0, size=(3, 2)))
