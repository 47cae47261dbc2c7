"""
Local directory image scanning.

Functions for finding and loading matrix photos from local directories.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np

from enhancement.normalization import decode_image

# Supported image extensions
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".bmp", ".tiff", ".tif"}


def scan_local_images(path: str | Path, recursive: bool = False) -> list[Path]:
    """Find all image files in a directory or return a single image file.

    Args:
        path: Path to directory or single image file to scan.
        recursive: Also search subdirectories.

    Returns:
        Sorted list of image file paths.

    Raises:
        ValueError: If path doesn't exist or isn't a valid image/directory.
    """
    file_path = Path(path).resolve()

    if file_path.is_file():
        if file_path.suffix.lower() in IMAGE_EXTENSIONS:
            return [file_path]
        raise ValueError(f"{path} is not a supported image file")

    if not file_path.is_dir():
        raise ValueError(f"{path} is not a valid file or directory")

    pattern = "**/*" if recursive else "*"
    return sorted(
        p for p in file_path.glob(pattern)
        if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
    )


def load_local_image(path: str | Path) -> np.ndarray:
    """Decode an image file into an RGB or grayscale uint8 array.

    Raises:
        ImageDecodeError: If the file is missing or cannot be decoded.
    """
    return decode_image(Path(path))
