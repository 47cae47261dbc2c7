"""
Denoising, sharpening and illumination correction.

All functions are pure: they take a grayscale uint8 image and return a new
array without mutating the input.
"""

from __future__ import annotations

import cv2
import numpy as np

from config import (
    DENOISE_BILATERAL_DIAMETER,
    DENOISE_BILATERAL_SIGMA_COLOR,
    DENOISE_BILATERAL_SIGMA_SPACE,
    DENOISE_MEDIAN_KERNEL,
    ILLUMINATION_BLOCK_SIZE,
    ILLUMINATION_MAX_GAIN,
    ILLUMINATION_STRETCH_PERCENTILES,
    ILLUMINATION_TARGET_MEAN,
)


def denoise(gray: np.ndarray) -> np.ndarray:
    """Remove isolated noise pixels while keeping engraved edges.

    A 3x3 median removes salt-and-pepper pixels, a small bilateral filter
    then smooths sensor noise without blurring strong edges.
    """
    median = cv2.medianBlur(gray, DENOISE_MEDIAN_KERNEL)
    return cv2.bilateralFilter(
        median,
        DENOISE_BILATERAL_DIAMETER,
        DENOISE_BILATERAL_SIGMA_COLOR,
        DENOISE_BILATERAL_SIGMA_SPACE,
    )


def unsharp_mask(
    gray: np.ndarray,
    radius: float,
    amount: float,
    threshold: float = 0,
) -> np.ndarray:
    """Sharpen by adding back the difference to a Gaussian-blurred copy.

    Args:
        gray: 2D uint8 grayscale image.
        radius: Gaussian sigma in pixels.
        amount: Gain applied to the detail layer. 0 returns an identical copy.
        threshold: Detail differences at or below this level are left alone.

    Returns:
        Sharpened uint8 image.
    """
    if amount <= 0:
        return gray.copy()

    source = gray.astype(np.float32)
    blurred = cv2.GaussianBlur(source, (0, 0), radius)
    detail = source - blurred
    if threshold > 0:
        detail = np.where(np.abs(detail) > threshold, detail, 0.0)
    sharpened = source + amount * detail
    return np.clip(np.round(sharpened), 0, 255).astype(np.uint8)


def estimate_background(gray: np.ndarray, block_size: int = ILLUMINATION_BLOCK_SIZE) -> np.ndarray:
    """Low-frequency illumination field (float32, same shape as the input).

    Block means of the image, smoothed and bilinearly upsampled.
    """
    height, width = gray.shape
    small_size = (max(1, width // block_size), max(1, height // block_size))
    small = cv2.resize(gray.astype(np.float32), small_size, interpolation=cv2.INTER_AREA)
    small = cv2.GaussianBlur(small, (3, 3), 0)
    return cv2.resize(small, (width, height), interpolation=cv2.INTER_LINEAR)


def normalize_illumination(gray: np.ndarray) -> np.ndarray:
    """Remove radial lighting gradients by flat-field correction.

    The image is divided by its estimated background and rescaled around
    ILLUMINATION_TARGET_MEAN, then stretched symmetrically so the configured
    percentiles reach the full range (gain capped at ILLUMINATION_MAX_GAIN).
    A flat input stays flat.
    """
    source = gray.astype(np.float32)
    background = np.maximum(estimate_background(gray), 1.0)
    corrected = source / background * ILLUMINATION_TARGET_MEAN

    low, high = np.percentile(corrected, ILLUMINATION_STRETCH_PERCENTILES)
    spread = max(ILLUMINATION_TARGET_MEAN - low, high - ILLUMINATION_TARGET_MEAN)
    if spread > 1.0:
        gain = min(ILLUMINATION_MAX_GAIN, (255.0 - ILLUMINATION_TARGET_MEAN) / spread)
        corrected = ILLUMINATION_TARGET_MEAN + (corrected - ILLUMINATION_TARGET_MEAN) * gain
    return np.clip(np.round(corrected), 0, 255).astype(np.uint8)
