"""
Type definitions for the detection module.

This module defines the data structures produced by ring location and
matrix-photo detection.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from config import FALLBACK_INNER_RATIO, FALLBACK_OUTER_RATIO, ROI_MARGIN_RATIO
from geometry import Rect, square_around

# Ring location methods, in the order they are tried
RingMethod = Literal["geometric-circle-fit", "contrast-edge-scan", "fallback-center-crop"]

FALLBACK_METHOD: RingMethod = "fallback-center-crop"


@dataclass(frozen=True)
class RingRegion:
    """Location of the engraved matrix ring in an image.

    A region is either detected (located by one of the detection methods) or
    the explicit fallback variant: a centered annulus with confidence 0.

    Attributes:
        detected: Whether a detection method located the ring.
        method: Method that produced the region.
        confidence: Detection confidence between 0 and 1 (0 for the fallback).
        center: Ring center as (x, y) in pixel coordinates.
        inner_radius: Hub edge radius in pixels.
        outer_radius: Outer edge of the ring band in pixels.
    """

    detected: bool
    method: RingMethod
    confidence: float
    center: tuple[float, float]
    inner_radius: float
    outer_radius: float

    def __post_init__(self) -> None:
        if self.detected == (self.method == FALLBACK_METHOD):
            raise ValueError(
                f"detected={self.detected} is inconsistent with method '{self.method}'"
            )
        object.__setattr__(self, "confidence", min(1.0, max(0.0, float(self.confidence))))
        if not self.detected:
            object.__setattr__(self, "confidence", 0.0)
        object.__setattr__(self, "center", (float(self.center[0]), float(self.center[1])))
        inner = max(0.0, float(self.inner_radius))
        outer = max(inner, float(self.outer_radius))
        object.__setattr__(self, "inner_radius", inner)
        object.__setattr__(self, "outer_radius", outer)

    @classmethod
    def fallback(cls, image_shape: tuple[int, ...]) -> RingRegion:
        """Centered annulus used when no detection method succeeds."""
        height, width = image_shape[:2]
        half = min(height, width) / 2
        return cls(
            detected=False,
            method=FALLBACK_METHOD,
            confidence=0.0,
            center=(width / 2, height / 2),
            inner_radius=half * FALLBACK_INNER_RATIO,
            outer_radius=half * FALLBACK_OUTER_RATIO,
        )

    def scaled(self, factor: float) -> RingRegion:
        """Return a new region with center and radii multiplied by factor."""
        return RingRegion(
            detected=self.detected,
            method=self.method,
            confidence=self.confidence,
            center=(self.center[0] * factor, self.center[1] * factor),
            inner_radius=self.inner_radius * factor,
            outer_radius=self.outer_radius * factor,
        )

    def translated(self, dx: float, dy: float) -> RingRegion:
        """Return a new region with the center shifted by (dx, dy)."""
        return RingRegion(
            detected=self.detected,
            method=self.method,
            confidence=self.confidence,
            center=(self.center[0] + dx, self.center[1] + dy),
            inner_radius=self.inner_radius,
            outer_radius=self.outer_radius,
        )

    def bounding_rect(
        self,
        image_shape: tuple[int, ...],
        margin_ratio: float = ROI_MARGIN_RATIO,
    ) -> Rect:
        """Square (x, y, w, h) around the outer radius, clamped to the image."""
        return square_around(self.center, self.outer_radius * (1 + margin_ratio), image_shape)

    def to_dict(self) -> dict:
        return {
            "detected": self.detected,
            "method": self.method,
            "confidence": round(self.confidence, 4),
            "center": [round(self.center[0], 2), round(self.center[1], 2)],
            "inner_radius": round(self.inner_radius, 2),
            "outer_radius": round(self.outer_radius, 2),
        }


@dataclass(frozen=True)
class MatrixPhotoDetection:
    """Result of checking whether a photo shows a disc's matrix area.

    Attributes:
        is_matrix: Whether the weighted score reached the detection threshold.
        confidence: Weighted feature score between 0 and 1.
        features: Which image features were found, keyed by feature name.
        filename_hint: Whether the file name suggests a matrix photo.
    """

    is_matrix: bool
    confidence: float
    features: dict[str, bool] = field(default_factory=dict)
    filename_hint: bool = False

    def to_dict(self) -> dict:
        return {
            "is_matrix": self.is_matrix,
            "confidence": round(self.confidence, 4),
            "features": dict(self.features),
            "filename_hint": self.filename_hint,
        }
