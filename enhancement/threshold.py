"""
Adaptive (local mean) thresholding for the OCR layers.
"""

from __future__ import annotations

from dataclasses import dataclass

import cv2
import numpy as np

from .config import coerce_block_size


@dataclass(frozen=True)
class ThresholdLayers:
    """Binarized OCR layers.

    Attributes:
        normal: Dark engraving on white (0/255).
        inverted: Exact bitwise complement of normal.
    """

    normal: np.ndarray
    inverted: np.ndarray


def local_mean(gray: np.ndarray, block_size: int) -> np.ndarray:
    """Mean over a block_size x block_size box around each pixel (border replicated)."""
    return cv2.boxFilter(
        gray.astype(np.float32),
        -1,
        (block_size, block_size),
        normalize=True,
        borderType=cv2.BORDER_REPLICATE,
    )


def adaptive_threshold(gray: np.ndarray, block_size: int, c: float) -> ThresholdLayers:
    """Binarize against the local mean.

    A pixel is black (0) when it is darker than its local mean minus c,
    otherwise white (255). Even block sizes are coerced to odd ones.

    Args:
        gray: 2D uint8 grayscale image.
        block_size: Neighbourhood size (coerced to an odd value in 11-51).
        c: Offset subtracted from the local mean.

    Returns:
        ThresholdLayers with the normal and inverted layers.
    """
    block_size = coerce_block_size(block_size)
    mean = local_mean(gray, block_size)
    normal = np.where(gray.astype(np.float32) < mean - c, 0, 255).astype(np.uint8)
    return ThresholdLayers(normal=normal, inverted=np.bitwise_not(normal))
