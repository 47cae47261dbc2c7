"""
Unit tests for the individual enhancement stages - behavioral tests only.

Covers: highlight suppression, CLAHE, denoising, sharpening, illumination
normalization, adaptive thresholding and the step wrappers.
"""

import numpy as np
import pytest

from enhancement import (
    EnhancementParameters,
    HighlightSuppressionStep,
    Pipeline,
    ResizeStep,
    adaptive_threshold,
    apply_clahe,
    build_pipeline,
    denoise,
    normalize_illumination,
    suppress_highlights,
    unsharp_mask,
)
from enhancement.highlights import glare_mask, glare_threshold
from enhancement.clahe import clipped_mappings, tile_histograms


class TestSuppressHighlights:
    """Tests for suppress_highlights."""

    def test_zero_strength_is_identity(self, glare_gray):
        result = suppress_highlights(glare_gray, 0)
        assert np.array_equal(result, glare_gray)
        assert result is not glare_gray

    def test_reduces_saturated_pixels(self, glare_gray):
        before = np.count_nonzero(glare_gray >= 245)
        after = np.count_nonzero(suppress_highlights(glare_gray, 80) >= 245)
        assert before > 0
        assert after < before / 4

    def test_no_glare_leaves_image_unchanged(self, matrix_gray):
        assert np.array_equal(suppress_highlights(matrix_gray, 100), matrix_gray)

    def test_input_not_modified(self, glare_gray):
        original = glare_gray.copy()
        suppress_highlights(glare_gray, 100)
        assert np.array_equal(glare_gray, original)

    def test_threshold_never_below_percentile(self, glare_gray):
        assert glare_threshold(glare_gray, 100) >= np.percentile(glare_gray, 90)

    def test_small_clusters_are_ignored(self):
        img = np.full((50, 50), 100, dtype=np.uint8)
        img[10, 10] = 255
        img[30:36, 30:36] = 255
        mask = glare_mask(img, 250, min_area=9)
        assert mask[10, 10] == 0
        assert np.all(mask[30:36, 30:36] == 255)


class TestApplyCLAHE:
    """Tests for apply_clahe."""

    def test_preserves_shape_and_dtype(self, matrix_gray):
        result = apply_clahe(matrix_gray, 2.0, 16)
        assert result.shape == matrix_gray.shape
        assert result.dtype == np.uint8

    def test_increases_contrast_of_low_contrast_image(self):
        rng = np.random.default_rng(1)
        low = (120 + rng.integers(0, 10, (96, 96))).astype(np.uint8)
        assert apply_clahe(low, 3.0, 16).std() > low.std()

    def test_flat_image_stays_flat(self, flat_gray):
        result = apply_clahe(flat_gray, 2.0, 16)
        assert result.min() == result.max()

    def test_deterministic(self, matrix_gray):
        assert np.array_equal(apply_clahe(matrix_gray, 2.5, 8), apply_clahe(matrix_gray, 2.5, 8))

    def test_no_seams_at_tile_boundaries(self):
        # Every tile sees a different value range, so its mapping differs from its neighbours'
        tile = 16
        gradient = np.tile(np.arange(256, dtype=np.uint8), (64, 1))
        result = apply_clahe(gradient, 2.0, tile).astype(np.int16)

        jumps = np.abs(np.diff(result, axis=1))
        across = jumps[:, tile - 1::tile]
        inside = np.delete(jumps, np.s_[tile - 1::tile], axis=1)
        assert across.max() <= inside.max()
        assert across.mean() <= inside.mean()
        assert np.all(np.diff(result, axis=0) == 0)

    def test_handles_size_not_multiple_of_tile(self):
        img = np.tile(np.arange(37, dtype=np.uint8) * 6, (23, 1))
        assert apply_clahe(img, 2.0, 16).shape == (23, 37)

    def test_rejects_color_input(self):
        with pytest.raises(ValueError, match="2D"):
            apply_clahe(np.zeros((10, 10, 3), dtype=np.uint8), 2.0, 8)

    def test_rejects_non_positive_tile(self, flat_gray):
        with pytest.raises(ValueError, match="tile_size"):
            apply_clahe(flat_gray, 2.0, 0)

    def test_histograms_count_every_pixel(self, matrix_gray):
        histograms = tile_histograms(matrix_gray, 24)
        assert histograms.shape == (25, 25, 256)
        assert np.all(histograms.sum(axis=-1) == 24 * 24)

    def test_mappings_are_monotonic(self, matrix_gray):
        luts = clipped_mappings(tile_histograms(matrix_gray, 16), 2.0)
        assert np.all(np.diff(luts, axis=-1) >= 0)
        assert luts.max() <= 255.0


class TestDenoise:
    """Tests for denoise."""

    def test_removes_salt_and_pepper(self):
        img = np.full((40, 40), 128, dtype=np.uint8)
        img[10, 10] = 255
        img[20, 20] = 0
        result = denoise(img)
        assert result[10, 10] == 128
        assert result[20, 20] == 128

    def test_keeps_strong_edges(self):
        img = np.zeros((40, 40), dtype=np.uint8)
        img[:, 20:] = 200
        result = denoise(img)
        assert result[20, 5] < 20
        assert result[20, 35] > 180


class TestUnsharpMask:
    """Tests for unsharp_mask."""

    def test_zero_amount_is_identity(self, matrix_gray):
        assert np.array_equal(unsharp_mask(matrix_gray, 0.6, 0.0), matrix_gray)

    def test_increases_edge_contrast(self):
        img = np.zeros((40, 40), dtype=np.uint8)
        img[:, 20:] = 100
        img[:, :20] = 50
        result = unsharp_mask(img, 1.0, 2.0)
        assert result[:, 19].max() < 50
        assert result[:, 20].min() > 100

    def test_threshold_skips_small_differences(self):
        rng = np.random.default_rng(2)
        img = (128 + rng.integers(-1, 2, (30, 30))).astype(np.uint8)
        assert np.array_equal(unsharp_mask(img, 0.6, 2.0, threshold=5), img)


class TestNormalizeIllumination:
    """Tests for normalize_illumination."""

    def test_flat_image_stays_flat(self, flat_gray):
        result = normalize_illumination(flat_gray)
        assert result.min() == result.max()

    def test_removes_horizontal_gradient(self):
        gradient = np.tile(np.linspace(60, 200, 256), (128, 1)).astype(np.uint8)
        gradient[60:68, :] = (gradient[60:68, :] * 0.5).astype(np.uint8)
        result = normalize_illumination(gradient)
        left = result[:24, 10:40].mean()
        right = result[:24, 216:246].mean()
        assert abs(left - right) < abs(float(gradient[:24, 10:40].mean()) - float(gradient[:24, 216:246].mean())) / 3


class TestAdaptiveThreshold:
    """Tests for adaptive_threshold."""

    def test_layers_are_exact_complements(self, matrix_gray):
        layers = adaptive_threshold(matrix_gray, 25, 2)
        assert set(np.unique(layers.normal)) <= {0, 255}
        assert np.array_equal(layers.normal.astype(int) + layers.inverted.astype(int), np.full(matrix_gray.shape, 255))

    def test_dark_text_becomes_black(self):
        img = np.full((60, 60), 200, dtype=np.uint8)
        img[28:32, 10:50] = 40
        layers = adaptive_threshold(img, 25, 2)
        assert np.all(layers.normal[28:32, 15:45] == 0)
        assert layers.normal[5, 5] == 255

    def test_even_block_size_matches_next_odd(self, matrix_gray):
        even = adaptive_threshold(matrix_gray, 24, 2)
        odd = adaptive_threshold(matrix_gray, 25, 2)
        assert np.array_equal(even.normal, odd.normal)

    def test_flat_image_is_all_white(self, flat_gray):
        assert np.all(adaptive_threshold(flat_gray, 25, 2).normal == 255)


class TestEnhanceSteps:
    """Tests for the step wrappers around the stage functions."""

    def test_highlight_step_matches_function(self, glare_gray):
        step = HighlightSuppressionStep(strength=80)
        assert np.array_equal(step.apply(glare_gray), suppress_highlights(glare_gray, 80))
        assert step.get_metadata() == {}

    def test_only_resize_carries_metadata(self, matrix_gray):
        chain = build_pipeline(EnhancementParameters()).run(matrix_gray)
        assert [step.key for step in chain.steps] == [
            "highlight_suppress", "clahe", "denoise", "sharpen", "illumination",
        ]
        assert all(step.metadata == {} for step in chain.steps)

        prepared = Pipeline(steps=[ResizeStep(max_dimension=300)]).run(matrix_gray)
        assert prepared.steps[0].metadata == {"scale_factor": 2.0}
        assert prepared.scale_factor == 2.0
