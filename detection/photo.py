"""
Matrix photo detection.

Decides whether a photo shows the inner ring of a disc (as opposed to a
cover, label or unrelated picture) from a handful of cheap image features
sampled around the image center. Used to filter batch input.
"""

from __future__ import annotations

import logging
from pathlib import Path

import cv2
import numpy as np

from config import (
    PHOTO_COMBINATION_BONUS,
    PHOTO_DETECTION_SIZE,
    PHOTO_DETECTION_THRESHOLD,
    PHOTO_FEATURE_WEIGHTS,
    PHOTO_FILENAME_BONUS,
    PHOTO_FILENAME_HINTS,
)
from .types import MatrixPhotoDetection

logger = logging.getLogger(__name__)


def _downscale(rgb: np.ndarray) -> np.ndarray:
    height, width = rgb.shape[:2]
    longest = max(height, width)
    if longest <= PHOTO_DETECTION_SIZE:
        return rgb
    ratio = PHOTO_DETECTION_SIZE / longest
    size = (max(1, int(round(width * ratio))), max(1, int(round(height * ratio))))
    return cv2.resize(rgb, size, interpolation=cv2.INTER_AREA)


def _sample_circle(
    img: np.ndarray,
    radius: float,
    count: int,
) -> np.ndarray:
    """Pixel values at `count` evenly spaced angles on a centered circle."""
    height, width = img.shape[:2]
    angles = np.arange(count) * (2 * np.pi / count)
    xs = np.round(width / 2 + np.cos(angles) * radius).astype(int)
    ys = np.round(height / 2 + np.sin(angles) * radius).astype(int)
    inside = (xs >= 0) & (xs < width) & (ys >= 0) & (ys < height)
    return img[ys[inside], xs[inside]]


def _has_hub_hole(brightness: np.ndarray) -> bool:
    """More than half of the central disc (5% of the short side) is dark."""
    height, width = brightness.shape
    radius = min(height, width) * 0.05
    ys, xs = np.ogrid[:height, :width]
    inside = (xs - width / 2) ** 2 + (ys - height / 2) ** 2 <= radius ** 2
    values = brightness[inside]
    if values.size == 0:
        return False
    return float(np.mean(values < 60)) > 0.5


def _has_central_dark_area(brightness: np.ndarray) -> bool:
    """Center noticeably darker than the surrounding ring."""
    short = min(brightness.shape)
    center = np.concatenate([
        _sample_circle(brightness, r, 36)
        for r in np.linspace(0, short * 0.10, 5)
    ])
    outer = _sample_circle(brightness, short * 0.30, 36)
    if center.size == 0 or outer.size == 0:
        return False
    return float(center.mean()) < float(outer.mean()) * 0.85


def _has_rainbow_reflection(rgb: np.ndarray) -> bool:
    """Saturated pixels with widely spread hues in the ring band (diffraction)."""
    short = min(rgb.shape[:2])
    hls = cv2.cvtColor(rgb, cv2.COLOR_RGB2HLS_FULL)
    samples = _sample_circle(hls, short * (0.15 + 0.40) / 2, 36)
    if samples.size == 0:
        return False
    hue = samples[:, 0].astype(np.float64) * (360.0 / 256.0)
    saturation = samples[:, 2] / 255.0
    saturated_hues = hue[saturation > 0.3]
    if saturated_hues.size <= 5:
        return False
    mean_hue = saturated_hues.mean()
    diff = np.abs(saturated_hues - mean_hue)
    spread = np.minimum(diff, 360 - diff).mean()
    return saturated_hues.size / samples.shape[0] > 0.2 and spread > 40


def _has_circular_structure(brightness: np.ndarray) -> bool:
    """Dark center with a consistently lit surface further out."""
    short = min(brightness.shape)
    levels = []
    for ratio in (0.1, 0.2, 0.3, 0.4):
        values = _sample_circle(brightness, short * ratio, 16)
        levels.append(float(values.mean()) if values.size else 0.0)
    inner, mid_a, mid_b, outer = levels
    mid = (mid_a + mid_b) / 2
    return inner < mid * 0.7 and abs(mid - outer) < 50


def _has_concentric_rings(brightness: np.ndarray) -> bool:
    """At least three sharp local extrema along a radius."""
    height, width = brightness.shape
    max_radius = min(height, width) * 0.4
    xs = np.round(width / 2 + np.linspace(0, max_radius, 51)).astype(int)
    xs = xs[xs < width]
    profile = brightness[int(height / 2), xs].astype(np.float64)
    if profile.size < 3:
        return False
    prev, curr, nxt = profile[:-2], profile[1:-1], profile[2:]
    extrema = ((curr < prev) & (curr < nxt)) | ((curr > prev) & (curr > nxt))
    magnitude = np.abs(curr - (prev + nxt) / 2)
    return int(np.sum(extrema & (magnitude > 10))) >= 3


def _has_reflective_surface(brightness: np.ndarray) -> bool:
    """Bright, uneven brightness around the ring (a mirrored data side)."""
    values = _sample_circle(brightness, min(brightness.shape) * 0.3, 36).astype(np.float64)
    if values.size == 0:
        return False
    return float(values.mean()) > 100 and float(values.std()) > 25


def has_filename_hint(filename: str | Path | None) -> bool:
    if not filename:
        return False
    name = Path(filename).name.lower()
    return any(hint in name for hint in PHOTO_FILENAME_HINTS)


def detect_matrix_photo(
    rgb: np.ndarray,
    filename: str | Path | None = None,
) -> MatrixPhotoDetection:
    """Score how likely a photo shows a disc's matrix area.

    Args:
        rgb: RGB (H, W, 3) or grayscale (H, W) uint8 image.
        filename: Optional file name; matrix-like names add a bonus.

    Returns:
        MatrixPhotoDetection with the weighted score and the features found.
    """
    if rgb.ndim == 2:
        rgb = cv2.cvtColor(rgb, cv2.COLOR_GRAY2RGB)
    elif rgb.shape[2] == 4:
        rgb = np.ascontiguousarray(rgb[:, :, :3])

    small = _downscale(rgb)
    brightness = small.mean(axis=2)

    features = {
        "hub_hole": _has_hub_hole(brightness),
        "central_dark_area": _has_central_dark_area(brightness),
        "circular_structure": _has_circular_structure(brightness),
        "rainbow_reflection": _has_rainbow_reflection(small),
        "reflective_surface": _has_reflective_surface(brightness),
        "concentric_rings": _has_concentric_rings(brightness),
    }
    hint = has_filename_hint(filename)

    score = sum(PHOTO_FEATURE_WEIGHTS[name] for name, found in features.items() if found)
    if hint:
        score += PHOTO_FILENAME_BONUS
    if features["circular_structure"] and (features["hub_hole"] or features["central_dark_area"]):
        score += PHOTO_COMBINATION_BONUS
    score = min(1.0, score)

    logger.debug("Matrix photo score %.2f for %s: %s", score, filename or "image", features)
    return MatrixPhotoDetection(
        is_matrix=score >= PHOTO_DETECTION_THRESHOLD,
        confidence=score,
        features=features,
        filename_hint=hint,
    )
