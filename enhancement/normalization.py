"""
Image decoding and normalization functions.

All functions are pure: they take an input and return a new output without
mutating the original array.
"""

from __future__ import annotations

import io
from pathlib import Path

import cv2
import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from errors import ImageDecodeError

# Anything the pipeline accepts as an image
ImageInput = np.ndarray | bytes | bytearray | str | Path


def _validate_array(img: np.ndarray, source: str | None = None) -> None:
    """Validate a decoded image array.

    Raises:
        ImageDecodeError: If the array has invalid dimensions, dtype or is empty.
    """
    if img.ndim < 2 or img.ndim > 3:
        raise ImageDecodeError(
            f"Image must be 2D or 3D array, got {img.ndim}D array with shape {img.shape}",
            source,
        )

    if img.size == 0 or img.shape[0] == 0 or img.shape[1] == 0:
        raise ImageDecodeError("Image array is empty", source)

    if img.ndim == 3 and img.shape[2] not in (1, 3, 4):
        raise ImageDecodeError(
            f"Unsupported number of channels: {img.shape[2]}. "
            "Expected 1, 3 (RGB), or 4 (RGBA).",
            source,
        )

    if img.dtype != np.uint8:
        raise ImageDecodeError(f"Expected uint8 image, got dtype {img.dtype}", source)


def _decode_pil(image: Image.Image, source: str | None) -> np.ndarray:
    try:
        image = ImageOps.exif_transpose(image)
        if image.mode not in ("RGB", "L"):
            image = image.convert("RGB")
        array = np.array(image)
    except (OSError, ValueError) as e:
        raise ImageDecodeError(f"Could not decode image: {e}", source) from e
    _validate_array(array, source)
    return array


def decode_image(data: ImageInput) -> np.ndarray:
    """Decode an image input into a uint8 array.

    Pure function: arrays are validated and returned as a copy, encoded bytes
    and file paths are decoded with Pillow (EXIF orientation applied).

    Args:
        data: One of:
              - numpy array (H, W), (H, W, 1|3|4) of dtype uint8
              - encoded image bytes (JPEG, PNG, WebP, ...)
              - path to an image file

    Returns:
        RGB (H, W, 3), RGBA (H, W, 4) or grayscale (H, W) uint8 array.

    Raises:
        ImageDecodeError: If the input cannot be decoded or is not a valid image.
    """
    if isinstance(data, np.ndarray):
        _validate_array(data, "ndarray")
        return data.copy()

    if isinstance(data, (bytes, bytearray)):
        if not data:
            raise ImageDecodeError("Image bytes are empty", "bytes")
        try:
            with Image.open(io.BytesIO(bytes(data))) as image:
                image.load()
                return _decode_pil(image, "bytes")
        except UnidentifiedImageError as e:
            raise ImageDecodeError("Unrecognized image format", "bytes") from e
        except OSError as e:
            raise ImageDecodeError(f"Could not decode image: {e}", "bytes") from e

    if isinstance(data, (str, Path)):
        path = Path(data)
        if not path.is_file():
            raise ImageDecodeError("Image file does not exist", str(path))
        try:
            with Image.open(path) as image:
                image.load()
                return _decode_pil(image, str(path))
        except UnidentifiedImageError as e:
            raise ImageDecodeError("Unrecognized image format", str(path)) from e
        except OSError as e:
            raise ImageDecodeError(f"Could not decode image: {e}", str(path)) from e

    raise ImageDecodeError(
        f"Expected numpy.ndarray, bytes or path, got {type(data).__name__}",
        type(data).__name__,
    )


def to_grayscale(img: np.ndarray) -> np.ndarray:
    """Convert a decoded image to a 2D uint8 luminance array.

    Handles RGB, RGBA (alpha dropped) and already-grayscale images.

    Raises:
        TypeError: If img is not a numpy array.
        ValueError: If the array is not a valid image.
    """
    if not isinstance(img, np.ndarray):
        raise TypeError(f"Expected numpy.ndarray, got {type(img).__name__}")

    if img.ndim < 2 or img.ndim > 3:
        raise ValueError(
            f"Image must be 2D or 3D array, got {img.ndim}D array with shape {img.shape}"
        )

    if img.size == 0:
        raise ValueError("Image array is empty")

    if img.ndim == 2:
        result = img.copy()
    else:
        channels = img.shape[2]
        if channels == 1:
            result = img[:, :, 0].copy()
        elif channels == 3:
            result = cv2.cvtColor(img, cv2.COLOR_RGB2GRAY)
        elif channels == 4:
            result = cv2.cvtColor(np.ascontiguousarray(img[:, :, :3]), cv2.COLOR_RGB2GRAY)
        else:
            raise ValueError(
                f"Unsupported number of channels: {channels}. "
                "Expected 1, 3 (RGB), or 4 (RGBA)."
            )

    if result.dtype != np.uint8:
        result = np.clip(result, 0, 255).astype(np.uint8)
    return result


def resize_to_max_dimension(
    img: np.ndarray,
    max_dimension: int,
    interpolation: int = cv2.INTER_AREA,
) -> tuple[np.ndarray, float]:
    """Downscale an image so its longest side is at most max_dimension.

    Images that already fit are returned as a copy. Never upscales.

    Returns:
        Tuple of:
        - Resized image with same dtype as input
        - Scale factor (original_width / new_width) for coordinate mapping

    Raises:
        ValueError: If max_dimension is not positive.

    Examples:
        >>> img = np.zeros((1000, 3600), dtype=np.uint8)
        >>> resized, scale = resize_to_max_dimension(img, 1800)
        >>> resized.shape
        (500, 1800)
        >>> scale
        2.0
    """
    if max_dimension <= 0:
        raise ValueError(f"max_dimension must be positive, got {max_dimension}")

    height, width = img.shape[:2]
    longest = max(height, width)
    if longest <= max_dimension:
        return img.copy(), 1.0

    ratio = max_dimension / longest
    new_width = max(1, int(round(width * ratio)))
    new_height = max(1, int(round(height * ratio)))
    resized = cv2.resize(img, (new_width, new_height), interpolation=interpolation)
    return resized, width / new_width
