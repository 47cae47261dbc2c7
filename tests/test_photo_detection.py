"""Tests for matrix photo detection."""

import cv2
import numpy as np
import pytest

from detection import detect_matrix_photo, has_filename_hint


class TestFilenameHint:
    """Tests for has_filename_hint."""

    @pytest.mark.parametrize("name", ["matrix_side_a.jpg", "IMG_runout.png", "/photos/CD-back.JPG"])
    def test_matrix_like_names(self, name):
        assert has_filename_hint(name)

    @pytest.mark.parametrize("name", [None, "", "IMG_0042.jpg", "front_cover.png"])
    def test_other_names(self, name):
        assert not has_filename_hint(name)


class TestDetectMatrixPhoto:
    """Tests for detect_matrix_photo."""

    def test_synthetic_disc_is_detected(self, matrix_rgb):
        detection = detect_matrix_photo(matrix_rgb)
        assert detection.is_matrix
        assert detection.features["hub_hole"]
        assert detection.features["central_dark_area"]
        assert detection.confidence >= 0.4

    def test_flat_image_is_not_detected(self, flat_gray):
        detection = detect_matrix_photo(flat_gray, "matrix.jpg")
        assert not detection.is_matrix
        assert detection.filename_hint
        assert not any(detection.features.values())
        assert detection.confidence == pytest.approx(0.15)

    def test_filename_hint_adds_bonus(self, matrix_rgb):
        plain = detect_matrix_photo(matrix_rgb, "IMG_0001.jpg")
        hinted = detect_matrix_photo(matrix_rgb, "matrix_0001.jpg")
        assert hinted.confidence > plain.confidence or hinted.confidence == 1.0

    def test_accepts_rgba(self, matrix_rgb):
        rgba = np.dstack([matrix_rgb, np.full(matrix_rgb.shape[:2], 255, dtype=np.uint8)])
        assert detect_matrix_photo(rgba).confidence == detect_matrix_photo(matrix_rgb).confidence

    def test_rainbow_band_is_found(self):
        height, width = 300, 300
        hsv = np.zeros((height, width, 3), dtype=np.uint8)
        ys, xs = np.mgrid[:height, :width]
        hsv[..., 0] = ((np.arctan2(ys - height / 2, xs - width / 2) + np.pi) / (2 * np.pi) * 179).astype(np.uint8)
        hsv[..., 1] = 255
        hsv[..., 2] = 220
        rainbow = cv2.cvtColor(hsv, cv2.COLOR_HSV2RGB)
        assert detect_matrix_photo(rainbow).features["rainbow_reflection"]

    def test_to_dict(self, matrix_rgb):
        data = detect_matrix_photo(matrix_rgb, "disc.jpg").to_dict()
        assert set(data) == {"is_matrix", "confidence", "features", "filename_hint"}
        assert data["filename_hint"] is True
