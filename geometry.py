"""Shared geometry utilities for rectangles and circular regions."""

from __future__ import annotations

import numpy as np

# Rectangle as (x, y, w, h) in pixel coordinates
Rect = tuple[int, int, int, int]


def clamp_rect(x: float, y: float, w: float, h: float, width: int, height: int) -> Rect:
    """Clamp a rectangle to image bounds, keeping at least 1x1 pixel."""
    x1 = int(max(0, min(width - 1, np.floor(x))))
    y1 = int(max(0, min(height - 1, np.floor(y))))
    x2 = int(max(x1 + 1, min(width, np.ceil(x + w))))
    y2 = int(max(y1 + 1, min(height, np.ceil(y + h))))
    return x1, y1, x2 - x1, y2 - y1


def square_around(
    center: tuple[float, float],
    half_size: float,
    image_shape: tuple[int, ...],
) -> Rect:
    """Square of side 2*half_size centered on a point, clamped to the image."""
    height, width = image_shape[:2]
    cx, cy = center
    return clamp_rect(cx - half_size, cy - half_size, 2 * half_size, 2 * half_size, width, height)


def crop(img: np.ndarray, rect: Rect) -> np.ndarray:
    """Return a copy of the rectangle (x, y, w, h) of an image."""
    x, y, w, h = rect
    return img[y:y + h, x:x + w].copy()
