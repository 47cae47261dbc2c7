"""
Image source adapters.

Currently only local files and directories are supported.
"""

from .local import IMAGE_EXTENSIONS, load_local_image, scan_local_images

__all__ = [
    "IMAGE_EXTENSIONS",
    "scan_local_images",
    "load_local_image",
]
