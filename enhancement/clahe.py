"""
Contrast Limited Adaptive Histogram Equalization.

NumPy implementation with pixel-sized tiles: the image is split into
tile_size x tile_size tiles, each tile gets a clipped-histogram equalization
mapping, and every pixel is mapped by bilinear interpolation between the
mappings of the four nearest tile centers so no tile seams appear.

Clip handling: histogram bins above the clip limit are cut and the total
clipped mass is spread uniformly over all 256 bins (one pass).
"""

from __future__ import annotations

import numpy as np


def tile_histograms(gray: np.ndarray, tile_size: int) -> np.ndarray:
    """256-bin histograms of each tile, shape (tiles_y, tiles_x, 256).

    Edge tiles are completed by mirror padding.
    """
    height, width = gray.shape
    tiles_y = -(-height // tile_size)
    tiles_x = -(-width // tile_size)
    padded = np.pad(
        gray,
        ((0, tiles_y * tile_size - height), (0, tiles_x * tile_size - width)),
        mode="symmetric",
    )
    tiles = (
        padded.reshape(tiles_y, tile_size, tiles_x, tile_size)
        .transpose(0, 2, 1, 3)
        .reshape(tiles_y * tiles_x, tile_size * tile_size)
    )
    offsets = (np.arange(tiles_y * tiles_x) * 256)[:, None]
    counts = np.bincount(
        (tiles.astype(np.int64) + offsets).ravel(),
        minlength=tiles_y * tiles_x * 256,
    )
    return counts.reshape(tiles_y, tiles_x, 256).astype(np.float64)


def clipped_mappings(histograms: np.ndarray, clip_limit: float) -> np.ndarray:
    """Per-tile lookup tables (float, 0-255) from clipped, redistributed histograms.

    A tile with an empty histogram maps identically.
    """
    pixels = histograms.sum(axis=-1, keepdims=True)
    clip = np.maximum(1.0, clip_limit * pixels / 256.0)
    excess = np.maximum(histograms - clip, 0.0).sum(axis=-1, keepdims=True)
    clipped = np.minimum(histograms, clip) + excess / 256.0

    cdf = np.cumsum(clipped, axis=-1)
    total = cdf[..., -1:]
    identity = np.broadcast_to(np.arange(256, dtype=np.float64), cdf.shape)
    with np.errstate(invalid="ignore", divide="ignore"):
        mapped = cdf * 255.0 / total
    return np.where(total > 0, np.clip(mapped, 0.0, 255.0), identity)


def _axis_weights(length: int, tile_size: int, tiles: int) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Lower/upper tile index and interpolation weight per pixel along one axis."""
    position = (np.arange(length) + 0.5) / tile_size - 0.5
    lower = np.floor(position)
    weight = position - lower
    low_index = np.clip(lower, 0, tiles - 1).astype(np.intp)
    high_index = np.clip(lower + 1, 0, tiles - 1).astype(np.intp)
    return low_index, high_index, weight


def apply_clahe(gray: np.ndarray, clip_limit: float, tile_size: int) -> np.ndarray:
    """Apply CLAHE to a grayscale image.

    Pure function: returns a new array without modifying the input.
    Deterministic: same input and parameters give identical output.

    Args:
        gray: 2D uint8 grayscale image.
        clip_limit: Contrast limit; bins are clipped at clip_limit times the
                    average bin count of a tile.
        tile_size: Tile edge length in pixels.

    Returns:
        Contrast-enhanced uint8 image with the input's shape.

    Raises:
        ValueError: If the input is not 2D or tile_size is not positive.
    """
    if gray.ndim != 2:
        raise ValueError(
            f"CLAHE requires grayscale input (2D array), "
            f"got {gray.ndim}D array with shape {gray.shape}"
        )
    if tile_size <= 0:
        raise ValueError(f"tile_size must be positive, got {tile_size}")

    height, width = gray.shape
    histograms = tile_histograms(gray, tile_size)
    luts = clipped_mappings(histograms, clip_limit)
    tiles_y, tiles_x = luts.shape[:2]

    y0, y1, wy = _axis_weights(height, tile_size, tiles_y)
    x0, x1, wx = _axis_weights(width, tile_size, tiles_x)
    wy = wy[:, None]
    wx = wx[None, :]
    values = gray.astype(np.intp)

    top = (1.0 - wx) * luts[y0[:, None], x0[None, :], values] + wx * luts[y0[:, None], x1[None, :], values]
    bottom = (1.0 - wx) * luts[y1[:, None], x0[None, :], values] + wx * luts[y1[:, None], x1[None, :], values]
    result = (1.0 - wy) * top + wy * bottom
    return np.clip(np.round(result), 0, 255).astype(np.uint8)
