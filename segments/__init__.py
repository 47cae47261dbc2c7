"""
Post-OCR segment classification.

The OCR engine itself is external; this module corrects its text, splits it
into segments and labels each as a matrix number, an IFPI code or other text.

Key components:
- types: OCRSegment, OCROutcome, OCRCorrection
- corrections: Context-safe character corrections
- classifier: split_segments(), classify_segment(), build_outcome()
"""

from .types import IfpiKind, LayerUsed, OCRCorrection, OCROutcome, OCRSegment, SegmentType
from .corrections import correct_ocr_text
from .classifier import (
    build_outcome,
    choose_layer,
    classify_segment,
    classify_spans,
    ifpi_kind,
    normalize_segment,
    score_segment,
    split_segments,
)

__all__ = [
    "OCRSegment",
    "OCROutcome",
    "OCRCorrection",
    "SegmentType",
    "LayerUsed",
    "IfpiKind",
    "correct_ocr_text",
    "split_segments",
    "normalize_segment",
    "classify_segment",
    "classify_spans",
    "score_segment",
    "ifpi_kind",
    "build_outcome",
    "choose_layer",
]
