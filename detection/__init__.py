"""
Ring and matrix-photo detection module.

Follows the same design philosophy as the enhancement module: pure functions,
early validation, and clear separation of concerns.

Key components:
- types: Core data structures (RingRegion, MatrixPhotoDetection)
- ring: Tiered ring location (circle fit, edge scan, center-crop fallback)
- photo: Feature-based check whether a photo shows a disc's matrix area

The main entry point is `locate_ring()` which always returns a `RingRegion`.
"""

from .types import FALLBACK_METHOD, MatrixPhotoDetection, RingMethod, RingRegion
from .ring import locate_ring
from .photo import detect_matrix_photo, has_filename_hint

__all__ = [
    "RingRegion",
    "RingMethod",
    "FALLBACK_METHOD",
    "MatrixPhotoDetection",
    "locate_ring",
    "detect_matrix_photo",
    "has_filename_hint",
]
