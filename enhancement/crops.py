"""
Zoomed views of the matrix ring.

Small engraved characters are hard to read at working resolution, so the
pipeline also produces magnified crops: the whole ring, the inner IFPI band
next to the hub, and a strongly enhanced super-zoom of that band. Each view
is made twice: from the enhanced ROI and, unprocessed, from the original ROI.
"""

from __future__ import annotations

import cv2
import numpy as np

from config import (
    EMBOSS_BOOST_HIGH,
    EMBOSS_BOOST_LOW,
    EMBOSS_DIFF_THRESHOLD,
    EMBOSS_STRENGTH,
    MAX_ZOOM_DIMENSION,
    SUPER_ZOOM_CLAHE,
    SUPER_ZOOM_FACTOR,
    SUPER_ZOOM_REACH,
    SUPER_ZOOM_UNSHARP,
    ZOOM_IFPI_FACTOR,
    ZOOM_IFPI_REACH,
    ZOOM_IFPI_UNSHARP,
    ZOOM_RING_FACTOR,
    ZOOM_RING_MARGIN,
    ZOOM_RING_UNSHARP,
)
from detection.types import RingRegion
from geometry import crop, square_around
from .clahe import apply_clahe
from .filters import unsharp_mask

# Directional kernel that lifts engraving edges lit from the top-left
EMBOSS_KERNEL = np.array(
    [[2, 2, 0],
     [2, 0, -2],
     [0, -2, -2]],
    dtype=np.float32,
)


def zoom(gray: np.ndarray, factor: float, max_dimension: int = MAX_ZOOM_DIMENSION) -> np.ndarray:
    """Upscale by factor with bicubic interpolation, capped at max_dimension."""
    height, width = gray.shape[:2]
    factor = min(factor, max_dimension / max(height, width))
    size = (max(1, int(round(width * factor))), max(1, int(round(height * factor))))
    interpolation = cv2.INTER_CUBIC if factor >= 1 else cv2.INTER_AREA
    return cv2.resize(gray, size, interpolation=interpolation)


def emboss_enhance(gray: np.ndarray) -> np.ndarray:
    """Blend in a directional emboss to make shallow engraving stand out.

    The blend is stronger when the emboss changes the image noticeably.
    """
    source = gray.astype(np.float32)
    response = cv2.filter2D(source, cv2.CV_32F, EMBOSS_KERNEL, borderType=cv2.BORDER_REPLICATE)
    embossed = np.clip(source + np.abs(response) / 8.0 * EMBOSS_STRENGTH, 0, 255)
    diff = float(np.abs(embossed - source).mean())
    boost = EMBOSS_BOOST_HIGH if diff > EMBOSS_DIFF_THRESHOLD else EMBOSS_BOOST_LOW
    blended = source * (1.0 - boost) + embossed * boost
    return np.clip(np.round(blended), 0, 255).astype(np.uint8)


def _band_half_size(region: RingRegion, reach: float) -> float:
    span = region.outer_radius - region.inner_radius
    return max(region.inner_radius + span * reach, 8.0)


def zoomed_ring(gray: np.ndarray, region: RingRegion, enhance: bool = True) -> np.ndarray:
    """The whole matrix ring, magnified and lightly sharpened.

    With enhance=False the magnified crop is returned as is.
    """
    rect = square_around(region.center, region.outer_radius * ZOOM_RING_MARGIN, gray.shape)
    zoomed = zoom(crop(gray, rect), ZOOM_RING_FACTOR)
    if not enhance:
        return zoomed
    radius, amount, threshold = ZOOM_RING_UNSHARP
    return unsharp_mask(zoomed, radius, amount, threshold)


def zoomed_ifpi_ring(gray: np.ndarray, region: RingRegion, enhance: bool = True) -> np.ndarray:
    """The band just outside the hub where IFPI mould codes sit."""
    rect = square_around(region.center, _band_half_size(region, ZOOM_IFPI_REACH), gray.shape)
    zoomed = zoom(crop(gray, rect), ZOOM_IFPI_FACTOR)
    if not enhance:
        return zoomed
    radius, amount, threshold = ZOOM_IFPI_UNSHARP
    return unsharp_mask(zoomed, radius, amount, threshold)


def super_zoom_ifpi(gray: np.ndarray, region: RingRegion, enhance: bool = True) -> np.ndarray:
    """Innermost band at high magnification with aggressive local contrast."""
    rect = square_around(region.center, _band_half_size(region, SUPER_ZOOM_REACH), gray.shape)
    band = crop(gray, rect)
    if not enhance:
        return zoom(band, SUPER_ZOOM_FACTOR)
    clip_limit, tile_size = SUPER_ZOOM_CLAHE
    contrasted = apply_clahe(band, clip_limit, tile_size)
    radius, amount, threshold = SUPER_ZOOM_UNSHARP
    sharpened = unsharp_mask(zoom(contrasted, SUPER_ZOOM_FACTOR), radius, amount, threshold)
    return emboss_enhance(sharpened)
