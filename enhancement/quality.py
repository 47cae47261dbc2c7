"""
Quality assessment of an enhanced matrix image.

Measures brightness, contrast, sharpness and glare and maps them to a
score with one piece of actionable feedback for the photographer. The
assessment is advisory: it never blocks the rest of the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import cv2
import numpy as np

from config import (
    GLARE_MIN_CLUSTER_AREA,
    QUALITY_EXCELLENT_CONTRAST,
    QUALITY_EXCELLENT_REFLECTION,
    QUALITY_EXCELLENT_SHARPNESS,
    QUALITY_FAIR_CONTRAST,
    QUALITY_FAIR_REFLECTION,
    QUALITY_FAIR_SHARPNESS,
    QUALITY_MAX_BRIGHTNESS,
    QUALITY_MIN_BRIGHTNESS,
    QUALITY_POOR_CONTRAST,
    QUALITY_POOR_REFLECTION,
    QUALITY_POOR_SHARPNESS,
    SATURATION_LEVEL,
    SHARPNESS_FULL_SCALE,
)
from .highlights import glare_mask

QualityScore = Literal["excellent", "good", "fair", "poor"]


@dataclass(frozen=True)
class QualityAssessment:
    """Scored quality of one enhancement run.

    Attributes:
        score: Overall rating.
        feedback: One actionable hint for the photographer.
        brightness: Mean brightness, 0-1.
        contrast: Normalized standard deviation, 0-1.
        sharpness: Normalized mean Laplacian magnitude, 0-1.
        reflection_level: Percentage of the image covered by glare clusters.
    """

    score: QualityScore
    feedback: str
    brightness: float
    contrast: float
    sharpness: float
    reflection_level: float

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "feedback": self.feedback,
            "brightness": round(self.brightness, 4),
            "contrast": round(self.contrast, 4),
            "sharpness": round(self.sharpness, 4),
            "reflection_level": round(self.reflection_level, 4),
        }


def measure_brightness(gray: np.ndarray) -> float:
    return float(gray.mean()) / 255.0


def measure_contrast(gray: np.ndarray) -> float:
    return min(1.0, float(gray.std()) / 128.0)


def measure_sharpness(gray: np.ndarray) -> float:
    laplacian = cv2.Laplacian(gray, cv2.CV_32F, ksize=3)
    return min(1.0, float(np.abs(laplacian).mean()) / SHARPNESS_FULL_SCALE)


def measure_reflection(gray: np.ndarray) -> float:
    """Percentage of the image area inside saturated glare clusters."""
    mask = glare_mask(gray, SATURATION_LEVEL, GLARE_MIN_CLUSTER_AREA)
    return 100.0 * float(np.count_nonzero(mask)) / mask.size


def _score(
    brightness: float,
    contrast: float,
    sharpness: float,
    reflection: float,
) -> tuple[QualityScore, str]:
    if brightness < QUALITY_MIN_BRIGHTNESS:
        return "poor", "Too dark - add more light"
    if reflection > QUALITY_POOR_REFLECTION:
        return "poor", "Strong reflections - angle the light source away from the lens"
    if contrast < QUALITY_POOR_CONTRAST:
        return "poor", "No visible detail - tilt the disc so the engraving catches the light"
    if sharpness < QUALITY_POOR_SHARPNESS:
        return "poor", "Image is blurry - hold the camera steady and refocus"

    if brightness > QUALITY_MAX_BRIGHTNESS:
        return "fair", "Too bright - reduce the light or exposure"
    if reflection > QUALITY_FAIR_REFLECTION:
        return "fair", "Reflections detected - angle the light source"
    if contrast < QUALITY_FAIR_CONTRAST:
        return "fair", "Low contrast - try side lighting or a higher CLAHE clip limit"
    if sharpness < QUALITY_FAIR_SHARPNESS:
        return "fair", "Slightly soft - move closer or increase sharpening"

    if (
        contrast >= QUALITY_EXCELLENT_CONTRAST
        and sharpness >= QUALITY_EXCELLENT_SHARPNESS
        and reflection <= QUALITY_EXCELLENT_REFLECTION
    ):
        return "excellent", "Excellent quality - ready for OCR"
    return "good", "Good quality - text should be readable"


def assess_quality(
    enhanced: np.ndarray,
    suppressed: np.ndarray | None = None,
) -> QualityAssessment:
    """Assess the quality of an enhanced grayscale image.

    Args:
        enhanced: Final enhanced (pre-threshold) grayscale image.
        suppressed: Output of highlight suppression. Glare is measured on it
                    when given, since later stages rescale brightness.

    Returns:
        QualityAssessment with metrics in [0, 1] and reflection as a percentage.
    """
    brightness = measure_brightness(enhanced)
    contrast = measure_contrast(enhanced)
    sharpness = measure_sharpness(enhanced)
    reflection = measure_reflection(suppressed if suppressed is not None else enhanced)
    score, feedback = _score(brightness, contrast, sharpness, reflection)
    return QualityAssessment(
        score=score,
        feedback=feedback,
        brightness=brightness,
        contrast=contrast,
        sharpness=sharpness,
        reflection_level=reflection,
    )
