"""
Type definitions for OCR segment classification.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

# Segment categories
SegmentType = Literal["matrix", "ifpi", "other"]

# Which binarized layer the OCR text came from
LayerUsed = Literal["normal", "inverted"]

# IFPI source identification code kinds
IfpiKind = Literal["mastering", "mould"]


@dataclass(frozen=True)
class OCRCorrection:
    """A single character-level correction applied to OCR text.

    Attributes:
        original: Text as recognized.
        corrected: Replacement text.
        reason: Why the correction was made.
    """

    original: str
    corrected: str
    reason: str

    def to_dict(self) -> dict:
        return {"original": self.original, "corrected": self.corrected, "reason": self.reason}


@dataclass(frozen=True)
class OCRSegment:
    """A classified span of recognized text.

    Attributes:
        text: Normalized span text (uppercase, single spaces).
        type: Category of the span.
        confidence: Confidence between 0 and 1.
        ifpi_kind: "mastering" or "mould" for IFPI segments, else None.
    """

    text: str
    type: SegmentType
    confidence: float
    ifpi_kind: IfpiKind | None = None

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "type": self.type,
            "confidence": round(self.confidence, 4),
            "ifpi_kind": self.ifpi_kind,
        }


@dataclass(frozen=True)
class OCROutcome:
    """Classified result of one OCR call.

    Attributes:
        raw_text: Text exactly as the OCR engine returned it.
        clean_text: Corrected, normalized text (segments joined with " | ").
        segments: Classified segments in reading order.
        overall_confidence: Confidence of the whole outcome, 0-1.
        layer_used: Which binarized layer the text was read from.
        corrections: Corrections applied to produce clean_text.
    """

    raw_text: str
    clean_text: str
    segments: tuple[OCRSegment, ...]
    overall_confidence: float
    layer_used: LayerUsed = "normal"
    corrections: tuple[OCRCorrection, ...] = ()

    @property
    def matrix_numbers(self) -> list[str]:
        return [s.text for s in self.segments if s.type == "matrix"]

    @property
    def ifpi_codes(self) -> list[str]:
        return [s.text for s in self.segments if s.type == "ifpi"]

    def to_dict(self) -> dict:
        return {
            "raw_text": self.raw_text,
            "clean_text": self.clean_text,
            "segments": [s.to_dict() for s in self.segments],
            "overall_confidence": round(self.overall_confidence, 4),
            "layer_used": self.layer_used,
            "corrections": [c.to_dict() for c in self.corrections],
        }
