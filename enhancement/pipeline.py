"""
Enhancement pipeline orchestration.

enhance() is the main entry point. It runs every stage in a fixed order and
returns a PipelineResult with all images and metadata:

    decode -> grayscale -> resize -> ring_locate -> crop
        -> highlight_suppress -> clahe -> denoise -> sharpen -> illumination
        -> threshold -> quality -> zoom

Pipeline Philosophy:
- A run is a pure function of (image, parameters); nothing is cached
- Only an undecodable input is fatal; every other stage degrades gracefully
- Re-processing with new parameters is simply a new run
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, TypeVar

import numpy as np

from config import MAX_WORKING_DIMENSION, MIN_ANALYSIS_DIMENSION
from detection.ring import locate_ring
from detection.types import RingRegion
from geometry import Rect, crop
from .config import EnhancementParameters
from .crops import super_zoom_ifpi, zoomed_ifpi_ring, zoomed_ring
from .normalization import ImageInput, decode_image
from .quality import QualityAssessment, assess_quality
from .steps import (
    CLAHEStep,
    DenoiseStep,
    EnhanceStep,
    GrayscaleStep,
    HighlightSuppressionStep,
    IlluminationStep,
    Pipeline,
    ResizeStep,
    UnsharpMaskStep,
    check_cancelled,
)
from .threshold import ThresholdLayers, adaptive_threshold

logger = logging.getLogger(__name__)

T = TypeVar("T")

_IMAGE_FIELDS = (
    "original_crop",
    "enhanced",
    "ocr_layer",
    "ocr_layer_inverted",
    "zoomed_ring",
    "zoomed_ifpi_ring",
    "super_zoom_ifpi",
    "zoomed_ring_original",
    "zoomed_ifpi_ring_original",
    "super_zoom_ifpi_original",
)


@dataclass(frozen=True)
class PipelineResult:
    """Everything one enhancement run produces.

    All image arrays are read-only. Coordinates (region, crop_rect) are in
    working-image pixels; multiply by scale_factor for original pixels.

    Attributes:
        params: Parameters used for the run (after clamping).
        original_crop: Grayscale ROI before enhancement (for before/after views).
        enhanced: Enhanced grayscale ROI for human viewing.
        ocr_layer: Binarized ROI, dark engraving on white.
        ocr_layer_inverted: Bitwise complement of ocr_layer.
        zoomed_ring: Magnified view of the whole ring.
        zoomed_ifpi_ring: Magnified view of the IFPI band next to the hub.
        super_zoom_ifpi: Strongly magnified and embossed IFPI band.
        zoomed_ring_original: zoomed_ring's area from original_crop, unprocessed.
        zoomed_ifpi_ring_original: zoomed_ifpi_ring's area from original_crop, unprocessed.
        super_zoom_ifpi_original: super_zoom_ifpi's area from original_crop, unprocessed.
        region: Located ring in working-image coordinates.
        crop_rect: ROI rectangle (x, y, w, h) in working-image coordinates.
        quality: Quality assessment of the enhanced ROI.
        scale_factor: Original width divided by working width.
        stage_timings_ms: Wall-clock time per stage, in execution order.
        total_ms: Wall-clock time of the whole run.
    """

    params: EnhancementParameters
    original_crop: np.ndarray
    enhanced: np.ndarray
    ocr_layer: np.ndarray
    ocr_layer_inverted: np.ndarray
    zoomed_ring: np.ndarray
    zoomed_ifpi_ring: np.ndarray
    super_zoom_ifpi: np.ndarray
    zoomed_ring_original: np.ndarray
    zoomed_ifpi_ring_original: np.ndarray
    super_zoom_ifpi_original: np.ndarray
    region: RingRegion
    crop_rect: Rect
    quality: QualityAssessment
    scale_factor: float = 1.0
    stage_timings_ms: Mapping[str, float] = field(default_factory=dict)
    total_ms: float = 0.0

    def __post_init__(self) -> None:
        for name in _IMAGE_FIELDS:
            array = getattr(self, name)
            if array.flags.writeable:
                array = array.copy()
                array.flags.writeable = False
                object.__setattr__(self, name, array)
        object.__setattr__(self, "stage_timings_ms", MappingProxyType(dict(self.stage_timings_ms)))

    @property
    def region_in_crop(self) -> RingRegion:
        """Ring region relative to the ROI crop."""
        x, y, _, _ = self.crop_rect
        return self.region.translated(-x, -y)

    @property
    def region_in_original(self) -> RingRegion:
        """Ring region in the original image's pixel coordinates."""
        return self.region.scaled(self.scale_factor)

    def map_to_original_coords(self, x: float, y: float) -> tuple[float, float]:
        """Map working-image coordinates back to the original image."""
        return (x * self.scale_factor, y * self.scale_factor)

    def debug_report(self) -> dict[str, Any]:
        """Parameters, ROI, quality and timings as a JSON-ready dict."""
        from schemas import DebugReport

        report = DebugReport(
            params=self.params.to_dict(),
            region=self.region.to_dict(),
            crop_rect=list(self.crop_rect),
            scale_factor=round(self.scale_factor, 6),
            quality=self.quality.to_dict(),
            stage_timings_ms={k: round(v, 3) for k, v in self.stage_timings_ms.items()},
            total_ms=round(self.total_ms, 3),
            enhanced_size=[int(self.enhanced.shape[1]), int(self.enhanced.shape[0])],
        )
        return report.model_dump()


def build_pipeline(params: EnhancementParameters) -> Pipeline:
    """Build the image-to-image enhancement chain for a parameter set.

    1. HighlightSuppressionStep - glare inpainting
    2. CLAHEStep - local contrast
    3. DenoiseStep - median + bilateral
    4. UnsharpMaskStep - sharpening
    5. IlluminationStep - flat-field correction
    """
    steps: list[EnhanceStep] = [
        HighlightSuppressionStep(strength=params.highlight_strength),
        CLAHEStep(clip_limit=params.clahe_clip_limit, tile_size=params.clahe_tile_size),
        DenoiseStep(),
        UnsharpMaskStep(radius=params.unsharp_radius, amount=params.unsharp_amount),
        IlluminationStep(),
    ]
    return Pipeline(steps=steps)


def _timed(
    stage: str,
    timings: dict[str, float],
    cancel: threading.Event | None,
    func: Callable[..., T],
    *args: Any,
) -> T:
    check_cancelled(cancel, stage)
    start = time.perf_counter()
    result = func(*args)
    timings[stage] = (time.perf_counter() - start) * 1000
    return result


def _roi_rect(region: RingRegion, shape: tuple[int, ...]) -> Rect:
    """ROI around the ring, or the full image when that crop is degenerate."""
    height, width = shape[:2]
    rect = region.bounding_rect(shape)
    if rect[2] < MIN_ANALYSIS_DIMENSION or rect[3] < MIN_ANALYSIS_DIMENSION:
        return (0, 0, width, height)
    return rect


def enhance(
    image: ImageInput,
    params: EnhancementParameters | None = None,
    cancel: threading.Event | None = None,
) -> PipelineResult:
    """Run the full enhancement pipeline on one image.

    Deterministic: the same image and parameters give identical images,
    region and quality (timings aside).

    Args:
        image: Decoded uint8 array (grayscale, RGB or RGBA), encoded image
               bytes, or a path to an image file. Never modified.
        params: Enhancement parameters. Defaults when None.
        cancel: Optional event; when set, the run stops before the next stage.

    Returns:
        PipelineResult with all images and metadata.

    Raises:
        ImageDecodeError: If the input cannot be decoded.
        PipelineCancelled: If cancel is set during the run.
    """
    if params is None:
        params = EnhancementParameters()

    run_start = time.perf_counter()
    timings: dict[str, float] = {}

    decoded = _timed("decode", timings, cancel, decode_image, image)

    prepare = Pipeline(steps=[GrayscaleStep(), ResizeStep(max_dimension=MAX_WORKING_DIMENSION)])
    prepared = prepare.run(decoded, cancel=cancel)
    timings.update(prepared.stage_timings_ms)
    working = prepared.final

    region = _timed("ring_locate", timings, cancel, locate_ring, working)
    crop_rect = _roi_rect(region, working.shape)
    original_crop = _timed("crop", timings, cancel, crop, working, crop_rect)
    local_region = region.translated(-crop_rect[0], -crop_rect[1])

    chain = build_pipeline(params).run(original_crop, cancel=cancel)
    timings.update(chain.stage_timings_ms)
    enhanced = chain.final
    suppressed = chain.get_intermediate("highlight_suppress")

    layers: ThresholdLayers = _timed(
        "threshold", timings, cancel,
        adaptive_threshold, enhanced, params.adaptive_block_size, params.adaptive_c,
    )
    quality = _timed("quality", timings, cancel, assess_quality, enhanced, suppressed)

    check_cancelled(cancel, "zoom")
    zoom_start = time.perf_counter()
    ring_view = zoomed_ring(enhanced, local_region)
    ifpi_view = zoomed_ifpi_ring(enhanced, local_region)
    super_view = super_zoom_ifpi(enhanced, local_region)
    ring_plain = zoomed_ring(original_crop, local_region, enhance=False)
    ifpi_plain = zoomed_ifpi_ring(original_crop, local_region, enhance=False)
    super_plain = super_zoom_ifpi(original_crop, local_region, enhance=False)
    timings["zoom"] = (time.perf_counter() - zoom_start) * 1000

    total_ms = (time.perf_counter() - run_start) * 1000
    logger.info(
        "Enhanced %dx%d ROI in %.0f ms (ring: %s, confidence %.2f, quality: %s)",
        enhanced.shape[1], enhanced.shape[0], total_ms,
        region.method, region.confidence, quality.score,
    )

    return PipelineResult(
        params=params,
        original_crop=original_crop,
        enhanced=enhanced,
        ocr_layer=layers.normal,
        ocr_layer_inverted=layers.inverted,
        zoomed_ring=ring_view,
        zoomed_ifpi_ring=ifpi_view,
        super_zoom_ifpi=super_view,
        zoomed_ring_original=ring_plain,
        zoomed_ifpi_ring_original=ifpi_plain,
        super_zoom_ifpi_original=super_plain,
        region=region,
        crop_rect=crop_rect,
        quality=quality,
        scale_factor=prepared.scale_factor,
        stage_timings_ms=timings,
        total_ms=total_ms,
    )


def reprocess(
    image: ImageInput,
    new_params: EnhancementParameters,
    cancel: threading.Event | None = None,
) -> PipelineResult:
    """Re-run the full pipeline on the same image with new parameters.

    Nothing is reused from earlier runs; this is equivalent to enhance().
    """
    return enhance(image, new_params, cancel=cancel)
