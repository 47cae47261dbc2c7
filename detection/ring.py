"""
Matrix ring location.

Finds the disc's hub and the engraved ring around it with a tiered strategy:

1. geometric-circle-fit: radial-profile peak search over candidate centers.
   For each candidate the image is unwrapped to polar coordinates and the
   signed radial derivative is averaged over all angles. A circle concentric
   with the candidate sums coherently at one radius, so the candidate with
   the strongest peak is the best circle center (a Hough-style vote where
   every angle votes for a radius).
2. contrast-edge-scan: rays cast from the image center, each reporting the
   first strong brightness step. Agreement between rays gives the hub edge.
3. fallback-center-crop: a centered annulus with confidence 0.

Never raises for a decoded image; OpenCV failures inside a tier count as
"tier failed".
"""

from __future__ import annotations

import logging

import cv2
import numpy as np

from config import (
    CIRCLE_FIT_MIN_CONFIDENCE,
    EDGE_SCAN_MIN_CONFIDENCE,
    EDGE_SCAN_RAYS,
    EDGE_SCAN_STEP_MIN,
    MIN_ANALYSIS_DIMENSION,
    RING_ANALYSIS_SIZE,
    RING_CENTER_GRID_STEPS,
    RING_CENTER_SEARCH_RATIO,
    RING_EDGE_FULL_CONTRAST,
    RING_EDGE_GRADIENT_MIN,
    RING_HUB_RADIUS_RANGE,
    RING_OUTER_TO_HUB_DEFAULT_RATIO,
    RING_OUTER_TO_HUB_MAX_RATIO,
)
from .types import RingRegion

logger = logging.getLogger(__name__)

# Polar unwraps use one row per degree
POLAR_ANGLES = 360

# Edge scan compares samples this many pixels apart
EDGE_SCAN_STRIDE = 3

# Rays within this fraction of the median radius agree with it
EDGE_SCAN_AGREEMENT = 0.15


def _analysis_copy(gray: np.ndarray) -> tuple[np.ndarray, float]:
    """Downscaled, smoothed float copy and the factor back to input pixels."""
    height, width = gray.shape[:2]
    longest = max(height, width)
    if longest > RING_ANALYSIS_SIZE:
        ratio = RING_ANALYSIS_SIZE / longest
        size = (max(1, int(round(width * ratio))), max(1, int(round(height * ratio))))
        small = cv2.resize(gray, size, interpolation=cv2.INTER_AREA)
        factor = width / size[0]
    else:
        small = gray.copy()
        factor = 1.0
    small = cv2.GaussianBlur(small.astype(np.float32), (5, 5), 0)
    return small, factor


def _radial_derivative(
    img: np.ndarray,
    center: tuple[float, float],
    max_radius: float,
    angles: int = POLAR_ANGLES,
) -> np.ndarray:
    """Signed radial derivative, one row per angle, one column per pixel of radius."""
    radius_bins = max(2, int(max_radius))
    polar = cv2.warpPolar(
        img,
        (radius_bins, angles),
        center,
        max_radius,
        cv2.WARP_POLAR_LINEAR + cv2.INTER_LINEAR,
    )
    return np.diff(polar, axis=1)


def _hub_band(max_radius: float, length: int) -> tuple[int, int]:
    low, high = RING_HUB_RADIUS_RANGE
    start = max(1, int(max_radius * low))
    stop = min(length, max(start + 1, int(max_radius * high)))
    return start, stop


def _candidate_centers(shape: tuple[int, ...]) -> list[tuple[float, float]]:
    height, width = shape[:2]
    offsets = np.linspace(-RING_CENTER_SEARCH_RATIO, RING_CENTER_SEARCH_RATIO, RING_CENTER_GRID_STEPS)
    return [
        (float(width / 2 + dx * width), float(height / 2 + dy * height))
        for dy in offsets
        for dx in offsets
    ]


def _fit_circle(small: np.ndarray) -> RingRegion | None:
    """Tier 1: radial-profile peak search over a grid of candidate centers."""
    height, width = small.shape[:2]
    best: tuple[float, tuple[float, float], float, np.ndarray] | None = None

    for cx, cy in _candidate_centers(small.shape):
        max_radius = min(cx, cy, width - cx, height - cy)
        if max_radius < 8:
            continue
        derivative = _radial_derivative(small, (cx, cy), max_radius)
        profile = np.abs(derivative.mean(axis=0))
        start, stop = _hub_band(max_radius, profile.size)
        if stop <= start:
            continue
        peak = float(profile[start:stop].max())
        if best is None or peak > best[0]:
            best = (peak, (cx, cy), max_radius, derivative)

    if best is None or best[0] <= 0:
        return None

    peak, center, max_radius, derivative = best
    mean_derivative = derivative.mean(axis=0)
    profile = np.abs(mean_derivative)
    start, stop = _hub_band(max_radius, profile.size)
    hub_index = start + int(np.argmax(profile[start:stop]))
    sign = 1.0 if mean_derivative[hub_index] >= 0 else -1.0

    # Angular coverage: fraction of angles with a same-sign edge near the hub radius
    window = derivative[:, max(0, hub_index - 2):hub_index + 3] * sign
    coverage = float(np.mean(window.max(axis=1) > RING_EDGE_GRADIENT_MIN))
    contrast = min(1.0, peak / RING_EDGE_FULL_CONTRAST)
    confidence = coverage * contrast

    pixels_per_bin = max_radius / max(2, int(max_radius))
    hub_radius = (hub_index + 0.5) * pixels_per_bin

    if confidence < CIRCLE_FIT_MIN_CONFIDENCE:
        logger.debug(
            "Circle fit rejected: confidence %.2f (coverage %.2f, peak %.1f)",
            confidence, coverage, peak,
        )
        return None

    outer_radius = _outer_edge(profile, hub_index, pixels_per_bin)
    return RingRegion(
        detected=True,
        method="geometric-circle-fit",
        confidence=confidence,
        center=center,
        inner_radius=hub_radius,
        outer_radius=outer_radius,
    )


def _outer_edge(profile: np.ndarray, hub_index: int, pixels_per_bin: float) -> float:
    """Strongest coherent edge beyond the hub, or a fixed multiple of the hub radius."""
    hub_radius = (hub_index + 0.5) * pixels_per_bin
    start = int(hub_index * 1.5) + 1
    stop = min(profile.size, int((hub_index + 0.5) * RING_OUTER_TO_HUB_MAX_RATIO) + 1)
    if stop - start >= 2:
        index = start + int(np.argmax(profile[start:stop]))
        if profile[index] >= RING_EDGE_GRADIENT_MIN / 2:
            return (index + 0.5) * pixels_per_bin
    return hub_radius * RING_OUTER_TO_HUB_DEFAULT_RATIO


def _scan_edges(small: np.ndarray) -> RingRegion | None:
    """Tier 2: first strong brightness step along rays from the image center."""
    height, width = small.shape[:2]
    center = (width / 2, height / 2)
    max_radius = min(width, height) / 2 - 1
    if max_radius < 8:
        return None

    polar = cv2.warpPolar(
        small,
        (max(2, int(max_radius)), EDGE_SCAN_RAYS),
        center,
        max_radius,
        cv2.WARP_POLAR_LINEAR + cv2.INTER_LINEAR,
    )
    steps = polar[:, EDGE_SCAN_STRIDE:] - polar[:, :-EDGE_SCAN_STRIDE]
    start, stop = _hub_band(max_radius, steps.shape[1])
    pixels_per_bin = max_radius / max(2, int(max_radius))

    hits = []
    for row in np.abs(steps[:, start:stop]):
        above = np.flatnonzero(row > EDGE_SCAN_STEP_MIN)
        if above.size:
            hits.append((start + above[0] + EDGE_SCAN_STRIDE / 2) * pixels_per_bin)

    if len(hits) < EDGE_SCAN_RAYS // 2:
        logger.debug("Edge scan rejected: only %d of %d rays found an edge", len(hits), EDGE_SCAN_RAYS)
        return None

    radii = np.array(hits)
    median = float(np.median(radii))
    agreeing = int(np.sum(np.abs(radii - median) <= median * EDGE_SCAN_AGREEMENT))
    confidence = agreeing / EDGE_SCAN_RAYS
    if confidence < EDGE_SCAN_MIN_CONFIDENCE:
        logger.debug("Edge scan rejected: confidence %.2f", confidence)
        return None

    return RingRegion(
        detected=True,
        method="contrast-edge-scan",
        confidence=confidence,
        center=center,
        inner_radius=median,
        outer_radius=median * RING_OUTER_TO_HUB_DEFAULT_RATIO,
    )


def locate_ring(gray: np.ndarray) -> RingRegion:
    """Locate the hub and matrix ring in a grayscale image.

    Pure function: the input is not modified. Always returns a region; when
    no method succeeds the region is RingRegion.fallback().

    Args:
        gray: 2D uint8 grayscale image.

    Returns:
        RingRegion in the input image's pixel coordinates.
    """
    if gray.ndim != 2 or min(gray.shape[:2]) < MIN_ANALYSIS_DIMENSION:
        logger.debug("Image too small for ring detection: %s", gray.shape)
        return RingRegion.fallback(gray.shape)

    small, factor = _analysis_copy(gray)
    for tier in (_fit_circle, _scan_edges):
        try:
            region = tier(small)
        except cv2.error as e:
            logger.debug("Ring detection tier %s failed: %s", tier.__name__, e)
            continue
        if region is not None:
            return region.scaled(factor)

    logger.debug("No ring found, using center crop fallback")
    return RingRegion.fallback(gray.shape)
