"""
Specular highlight suppression.

Glare on a disc surface shows up as clusters of near-saturated pixels. The
clusters are masked, filled in by inpainting from their surroundings, and
blended back with a feathered alpha so no hard clipping edges remain.
"""

from __future__ import annotations

import cv2
import numpy as np

from config import (
    HIGHLIGHT_DILATE_KERNEL,
    HIGHLIGHT_FEATHER_SIGMA,
    HIGHLIGHT_INPAINT_RADIUS,
    HIGHLIGHT_MIN_CLUSTER_AREA,
    HIGHLIGHT_MIN_PERCENTILE,
    HIGHLIGHT_THRESHOLD_SPAN,
)


def glare_threshold(gray: np.ndarray, strength: float) -> float:
    """Brightness level above which pixels count as glare.

    Stronger suppression lowers the threshold, but never below the
    HIGHLIGHT_MIN_PERCENTILE of the image so well-lit surfaces are kept.
    """
    threshold = 255.0 - (strength / 100.0) * HIGHLIGHT_THRESHOLD_SPAN
    floor = float(np.percentile(gray, HIGHLIGHT_MIN_PERCENTILE))
    return max(threshold, floor)


def glare_mask(
    gray: np.ndarray,
    threshold: float,
    min_area: int = HIGHLIGHT_MIN_CLUSTER_AREA,
) -> np.ndarray:
    """Binary mask (0/255) of bright clusters of at least min_area pixels."""
    bright = (gray >= threshold).astype(np.uint8)
    count, labels, stats, _ = cv2.connectedComponentsWithStats(bright, connectivity=8)
    keep = np.zeros(count, dtype=bool)
    keep[1:] = stats[1:, cv2.CC_STAT_AREA] >= min_area
    return np.where(keep[labels], 255, 0).astype(np.uint8)


def suppress_highlights(gray: np.ndarray, strength: int) -> np.ndarray:
    """Reduce specular glare in a grayscale image.

    Pure function: returns a new array without modifying the input.

    Args:
        gray: 2D uint8 grayscale image.
        strength: Suppression strength, 0-100. 0 returns an identical copy.

    Returns:
        Grayscale image with glare clusters replaced by inpainted content.
    """
    if strength <= 0:
        return gray.copy()

    mask = glare_mask(gray, glare_threshold(gray, strength))
    if not mask.any():
        return gray.copy()

    kernel = cv2.getStructuringElement(
        cv2.MORPH_ELLIPSE, (HIGHLIGHT_DILATE_KERNEL, HIGHLIGHT_DILATE_KERNEL)
    )
    mask = cv2.dilate(mask, kernel)
    filled = cv2.inpaint(gray, mask, HIGHLIGHT_INPAINT_RADIUS, cv2.INPAINT_TELEA)

    alpha = cv2.GaussianBlur(mask.astype(np.float32) / 255.0, (0, 0), HIGHLIGHT_FEATHER_SIGMA)
    alpha *= min(1.0, strength / 100.0)
    blended = gray.astype(np.float32) * (1.0 - alpha) + filled.astype(np.float32) * alpha
    return np.clip(np.round(blended), 0, 255).astype(np.uint8)
