"""
Tests for the enhancement pipeline orchestration and quality assessment.

Covers: determinism, immutability of results, degraded inputs, cancellation,
stage timings, re-processing and the debug report.
"""

import json
import threading

import cv2
import numpy as np
import pytest

from detection import FALLBACK_METHOD
from enhancement import (
    EnhancementParameters,
    PipelineResult,
    assess_quality,
    build_pipeline,
    enhance,
    reprocess,
    zoomed_ring,
)
from errors import ImageDecodeError, PipelineCancelled

STAGES = [
    "decode",
    "grayscale",
    "resize",
    "ring_locate",
    "crop",
    "highlight_suppress",
    "clahe",
    "denoise",
    "sharpen",
    "illumination",
    "threshold",
    "quality",
    "zoom",
]


@pytest.fixture
def matrix_result(matrix_rgb) -> PipelineResult:
    return enhance(matrix_rgb)


class TestEnhance:
    """Tests for enhance()."""

    def test_well_lit_photo_scores_well(self, matrix_result):
        assert matrix_result.region.detected
        assert matrix_result.quality.score in ("excellent", "good")

    def test_images_share_the_roi_shape(self, matrix_result):
        shape = matrix_result.enhanced.shape
        assert matrix_result.original_crop.shape == shape
        assert matrix_result.ocr_layer.shape == shape
        assert matrix_result.ocr_layer_inverted.shape == shape

    def test_ocr_layers_are_complements(self, matrix_result):
        assert np.array_equal(
            matrix_result.ocr_layer_inverted, np.bitwise_not(matrix_result.ocr_layer)
        )

    def test_zoomed_views_are_magnified(self, matrix_result):
        assert matrix_result.zoomed_ring.shape[0] > matrix_result.enhanced.shape[0]
        for view in (
            matrix_result.zoomed_ring,
            matrix_result.zoomed_ifpi_ring,
            matrix_result.super_zoom_ifpi,
        ):
            assert view.dtype == np.uint8
            assert max(view.shape) <= 2400

    def test_original_zoomed_views_match_enhanced_views(self, matrix_result):
        pairs = [
            (matrix_result.zoomed_ring_original, matrix_result.zoomed_ring),
            (matrix_result.zoomed_ifpi_ring_original, matrix_result.zoomed_ifpi_ring),
            (matrix_result.super_zoom_ifpi_original, matrix_result.super_zoom_ifpi),
        ]
        for plain, enhanced in pairs:
            assert plain.shape == enhanced.shape
            assert not np.array_equal(plain, enhanced)

        local_region = matrix_result.region_in_crop
        expected = zoomed_ring(np.asarray(matrix_result.original_crop), local_region, enhance=False)
        assert np.array_equal(matrix_result.zoomed_ring_original, expected)

    def test_deterministic(self, matrix_rgb):
        first = enhance(matrix_rgb)
        second = enhance(matrix_rgb)
        assert np.array_equal(first.enhanced, second.enhanced)
        assert np.array_equal(first.ocr_layer, second.ocr_layer)
        assert np.array_equal(first.super_zoom_ifpi, second.super_zoom_ifpi)
        assert first.region == second.region
        assert first.quality == second.quality
        assert first.crop_rect == second.crop_rect

    def test_input_not_modified(self, matrix_rgb):
        original = matrix_rgb.copy()
        enhance(matrix_rgb)
        assert np.array_equal(matrix_rgb, original)

    def test_result_arrays_are_read_only(self, matrix_result):
        with pytest.raises(ValueError):
            matrix_result.enhanced[0, 0] = 0
        with pytest.raises(ValueError):
            matrix_result.ocr_layer[0, 0] = 0

    def test_stage_timings_cover_every_stage_in_order(self, matrix_result):
        assert list(matrix_result.stage_timings_ms) == STAGES
        assert all(ms >= 0 for ms in matrix_result.stage_timings_ms.values())
        assert matrix_result.total_ms >= max(matrix_result.stage_timings_ms.values())

    def test_accepts_encoded_bytes(self, png_bytes, matrix_result):
        from_bytes = enhance(png_bytes)
        assert np.array_equal(from_bytes.enhanced, matrix_result.enhanced)

    def test_undecodable_bytes_raise(self):
        with pytest.raises(ImageDecodeError):
            enhance(b"\x00\x01not-an-image")

    def test_flat_image_falls_back_and_scores_poor(self, flat_gray):
        result = enhance(flat_gray)
        assert result.region.method == FALLBACK_METHOD
        assert result.region.confidence == 0.0
        assert result.quality.score == "poor"

    def test_tiny_image_uses_whole_frame(self):
        tiny = np.full((20, 24), 90, dtype=np.uint8)
        result = enhance(tiny)
        assert result.crop_rect == (0, 0, 24, 20)
        assert result.enhanced.shape == (20, 24)

    def test_glare_is_reduced_by_stronger_suppression(self, glare_gray):
        weak = enhance(glare_gray, EnhancementParameters(highlight_strength=0))
        strong = enhance(glare_gray, EnhancementParameters(highlight_strength=80))
        assert weak.quality.reflection_level > 0
        assert strong.quality.reflection_level <= 0.5 * weak.quality.reflection_level

    def test_region_mapping_to_crop(self, matrix_result):
        x, y, _, _ = matrix_result.crop_rect
        local = matrix_result.region_in_crop
        assert local.center[0] == pytest.approx(matrix_result.region.center[0] - x)
        assert local.center[1] == pytest.approx(matrix_result.region.center[1] - y)

    @pytest.mark.slow
    def test_large_photo_is_downscaled_and_mapped_back(self, matrix_gray):
        large = cv2.resize(matrix_gray, (3600, 3600), interpolation=cv2.INTER_CUBIC)
        result = enhance(large)
        assert result.scale_factor == pytest.approx(2.0)
        assert result.map_to_original_coords(10, 20) == pytest.approx((20, 40))
        assert result.region_in_original.center[0] == pytest.approx(1800, rel=0.1)


class TestCancellation:
    """Tests for cooperative cancellation."""

    def test_cancel_before_start(self, matrix_rgb):
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(PipelineCancelled) as excinfo:
            enhance(matrix_rgb, cancel=cancel)
        assert excinfo.value.stage == "decode"

    def test_cancel_inside_chain(self, matrix_gray):
        cancel = threading.Event()
        cancel.set()
        pipeline = build_pipeline(EnhancementParameters())
        with pytest.raises(PipelineCancelled) as excinfo:
            pipeline.run(matrix_gray, cancel=cancel)
        assert excinfo.value.stage == "highlight_suppress"

    def test_unset_event_runs_to_completion(self, matrix_rgb):
        result = enhance(matrix_rgb, cancel=threading.Event())
        assert "zoom" in result.stage_timings_ms


class TestReprocess:
    """Tests for reprocess()."""

    def test_equivalent_to_enhance(self, matrix_rgb):
        params = EnhancementParameters(clahe_clip_limit=4.0, adaptive_c=6)
        first = reprocess(matrix_rgb, params)
        second = enhance(matrix_rgb, params)
        assert np.array_equal(first.enhanced, second.enhanced)
        assert first.params == params

    def test_new_parameters_change_output(self, matrix_rgb, matrix_result):
        sharper = reprocess(matrix_rgb, EnhancementParameters(unsharp_amount=0.0, clahe_clip_limit=5.0))
        assert not np.array_equal(sharper.enhanced, matrix_result.enhanced)
        assert sharper.region == matrix_result.region


class TestDebugReport:
    """Tests for PipelineResult.debug_report()."""

    def test_contains_parameters_region_and_timings(self, matrix_result):
        report = matrix_result.debug_report()
        assert report["params"] == matrix_result.params.to_dict()
        assert report["region"]["method"] == matrix_result.region.method
        assert report["quality"]["score"] == matrix_result.quality.score
        assert list(report["stage_timings_ms"]) == STAGES
        assert report["enhanced_size"] == [matrix_result.enhanced.shape[1], matrix_result.enhanced.shape[0]]

    def test_is_json_serializable(self, matrix_result):
        assert json.loads(json.dumps(matrix_result.debug_report()))["crop_rect"] == list(matrix_result.crop_rect)


class TestAssessQuality:
    """Tests for assess_quality."""

    def test_flat_image_is_poor_with_no_detail(self, flat_gray):
        quality = assess_quality(flat_gray)
        assert quality.score == "poor"
        assert quality.contrast == 0.0
        assert quality.sharpness == 0.0
        assert quality.brightness == pytest.approx(128 / 255)
        assert "detail" in quality.feedback

    def test_dark_image_is_poor(self):
        quality = assess_quality(np.full((64, 64), 10, dtype=np.uint8))
        assert quality.score == "poor"
        assert "dark" in quality.feedback.lower()

    def test_large_glare_is_poor(self):
        img = np.tile(np.array([[60, 180]], dtype=np.uint8), (100, 50))
        img[:40, :] = 255
        quality = assess_quality(img)
        assert quality.reflection_level == pytest.approx(40.0)
        assert quality.score == "poor"
        assert "reflection" in quality.feedback.lower()

    def test_suppressed_image_is_used_for_reflection(self, flat_gray):
        glared = flat_gray.copy()
        glared[:50, :50] = 255
        quality = assess_quality(flat_gray, suppressed=glared)
        assert quality.reflection_level == pytest.approx(100 * 2500 / flat_gray.size)

    def test_metrics_are_normalized(self, matrix_gray):
        quality = assess_quality(matrix_gray)
        for value in (quality.brightness, quality.contrast, quality.sharpness):
            assert 0.0 <= value <= 1.0
        assert 0.0 <= quality.reflection_level <= 100.0
