"""
Image enhancement for disc matrix/runout photos.

This module provides pure, deterministic functions that turn a photo of a
disc's inner ring into a readable enhanced image, binarized OCR layers and
a quality assessment. All functions follow the pattern: input -> output with
no mutation of the original arrays.

Key components:
- config: EnhancementParameters (clamped at construction) and presets
- pipeline: enhance() / reprocess() orchestrating every stage
- steps: Class-based enhancement steps with a common EnhanceStep interface
- highlights, clahe, filters, threshold, quality, crops: the stage functions
"""

from .config import (
    PRESETS,
    EnhancementParameters,
    coerce_block_size,
    get_preset,
)
from .pipeline import PipelineResult, build_pipeline, enhance, reprocess
from .normalization import decode_image, resize_to_max_dimension, to_grayscale
from .highlights import suppress_highlights
from .clahe import apply_clahe
from .filters import denoise, normalize_illumination, unsharp_mask
from .threshold import ThresholdLayers, adaptive_threshold
from .quality import QualityAssessment, assess_quality
from .crops import super_zoom_ifpi, zoomed_ifpi_ring, zoomed_ring
from .steps import (
    CLAHEStep,
    DenoiseStep,
    EnhanceStep,
    GrayscaleStep,
    HighlightSuppressionStep,
    IlluminationStep,
    Pipeline,
    PipelineStepResults,
    ResizeStep,
    StepResult,
    UnsharpMaskStep,
)

__all__ = [
    # Parameters
    "EnhancementParameters",
    "PRESETS",
    "get_preset",
    "coerce_block_size",
    # Orchestration
    "enhance",
    "reprocess",
    "build_pipeline",
    "PipelineResult",
    # Stage functions
    "decode_image",
    "to_grayscale",
    "resize_to_max_dimension",
    "suppress_highlights",
    "apply_clahe",
    "denoise",
    "unsharp_mask",
    "normalize_illumination",
    "adaptive_threshold",
    "ThresholdLayers",
    "assess_quality",
    "QualityAssessment",
    "zoomed_ring",
    "zoomed_ifpi_ring",
    "super_zoom_ifpi",
    # Class-based API
    "EnhanceStep",
    "GrayscaleStep",
    "ResizeStep",
    "HighlightSuppressionStep",
    "CLAHEStep",
    "DenoiseStep",
    "UnsharpMaskStep",
    "IlluminationStep",
    "Pipeline",
    "PipelineStepResults",
    "StepResult",
]
