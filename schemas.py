"""Pydantic schemas for the debug report and the external OCR engine's response.

Domain types (RingRegion, QualityAssessment, OCROutcome, ...) live in their
packages. These schemas define the exact JSON shape written to debug.json and
accepted from the OCR engine.
"""

from __future__ import annotations

import json
from typing import Literal

from pydantic import BaseModel, Field, ValidationError, field_validator

from segments import OCROutcome, build_outcome


# ---------------------------------------------------------------------------
# Debug report
# ---------------------------------------------------------------------------

class RegionOut(BaseModel):
    """Ring region as shown in the debug panel."""
    detected: bool
    method: Literal["geometric-circle-fit", "contrast-edge-scan", "fallback-center-crop"]
    confidence: float = Field(ge=0.0, le=1.0)
    center: list[float]
    inner_radius: float
    outer_radius: float


class QualityOut(BaseModel):
    score: Literal["excellent", "good", "fair", "poor"]
    feedback: str
    brightness: float
    contrast: float
    sharpness: float
    reflection_level: float


class ParamsOut(BaseModel):
    clahe_clip_limit: float
    clahe_tile_size: int
    highlight_strength: int
    unsharp_radius: float
    unsharp_amount: float
    adaptive_block_size: int
    adaptive_c: int


class DebugReport(BaseModel):
    """Everything the debug panel dumps for one enhancement run."""
    params: ParamsOut
    region: RegionOut
    crop_rect: list[int]
    scale_factor: float
    quality: QualityOut
    stage_timings_ms: dict[str, float] = Field(default_factory=dict)
    total_ms: float
    enhanced_size: list[int]
    source: str | None = None


# ---------------------------------------------------------------------------
# OCR engine response
# ---------------------------------------------------------------------------

class OCRSegmentIn(BaseModel):
    """A span as returned by the OCR engine. Its type is re-derived locally."""
    text: str
    type: str | None = None
    confidence: float = 0.0

    @field_validator("confidence")
    @classmethod
    def clamp_confidence(cls, value: float) -> float:
        return min(1.0, max(0.0, value))


class OCRResponse(BaseModel):
    """Body returned by the OCR engine."""
    raw_text: str = ""
    clean_text: str | None = None
    segments: list[OCRSegmentIn] = Field(default_factory=list)
    overall_confidence: float | None = None
    layer_used: Literal["normal", "inverted"] = "normal"


def parse_ocr_response(payload: str | bytes | dict) -> OCROutcome:
    """Validate an OCR engine response and classify its spans.

    Segment types reported by the engine are ignored; every span is
    re-classified so the rules stay in one place.

    Raises:
        ValueError: If the payload is not valid JSON or does not match the schema.
    """
    try:
        if isinstance(payload, (str, bytes)):
            response = OCRResponse.model_validate(json.loads(payload))
        else:
            response = OCRResponse.model_validate(payload)
    except (json.JSONDecodeError, ValidationError) as e:
        raise ValueError(f"Invalid OCR response: {e}") from e

    spans = [(s.text, s.confidence) for s in response.segments] or None
    return build_outcome(
        response.raw_text,
        spans=spans,
        overall_confidence=response.overall_confidence,
        layer_used=response.layer_used,
    )
