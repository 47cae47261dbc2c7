"""
Classification of OCR'd text spans into matrix numbers, IFPI codes and other text.

Rules, in order:
- ifpi: starts with the literal "IFPI" prefix, or is a bare mastering code
  (L + 3 digits, LV + 2 digits)
- matrix: a production code. Needs a digit, only characters that occur in
  engraved codes, a length in MATRIX_MIN_LENGTH..MATRIX_MAX_LENGTH, a
  production structure (separators, side/cut tokens or several digit groups)
  and either letters mixed with digits or a shape that is not sentence-like
- other: everything else, including URLs and anything ambiguous
"""

from __future__ import annotations

import logging
import re
from typing import Iterable

from config import MATRIX_MAX_LENGTH, MATRIX_MIN_LENGTH, MIN_SEGMENT_LENGTH
from .corrections import correct_ocr_text
from .types import IfpiKind, LayerUsed, OCRCorrection, OCROutcome, OCRSegment, SegmentType

logger = logging.getLogger(__name__)

# Segment boundaries: newlines, pipes, bullets, and runs of 2+ spaces
SEGMENT_SPLIT_PATTERN = re.compile(r"\s*(?:[\r\n]+|\||•)\s*|[ \t]{2,}")

# Characters that occur in engraved matrix codes
MATRIX_CHARSET_PATTERN = re.compile(r"^[A-Z0-9\-_./#()+*~ ]+$")

IFPI_PREFIX_PATTERN = re.compile(r"^IFPI")
IFPI_MASTERING_PATTERN = re.compile(r"^IFPI\s*L[A-Z0-9]{3,4}$")
IFPI_MOULD_PATTERN = re.compile(r"^IFPI\s*[A-Z0-9]{4,5}$")
BARE_MASTERING_PATTERN = re.compile(r"^(?:L\d{3}|LV\d{2})$")

URL_PATTERN = re.compile(r"^(?:WWW\.|HTTPS?://)|\.(?:COM|NET|ORG|NL|DE|UK|EU)\b")

SEPARATOR_PATTERN = re.compile(r"[-/#*~_.()+]")

# Side indicators (A, BB) and cuts (A1, B-3, 1U, -2)
SIDE_TOKEN_PATTERN = re.compile(r"^(?:[A-D]{1,2}|[A-D]{1,2}-?\d{1,2}U?|\d{1,2}[A-Z]|-\d{1,2})$")
SIDE_LETTER_PATTERN = re.compile(r"^[A-D]{1,2}$")

# Plant, pressing and engineer codes seen in runouts and mirror bands
PLANT_CODES = frozenset({
    "MPO", "PR", "SRC", "PALLAS", "GZ", "RL", "HW", "KG",
    "PMDC", "DADC", "PDO", "SONOPRESS", "EMI", "NIMBUS", "DAMONT", "JVC",
})

LETTERS_PATTERN = re.compile(r"[A-Z]")
DIGITS_PATTERN = re.compile(r"\d")


def split_segments(raw_text: str) -> list[str]:
    """Split OCR text into candidate segments.

    Splits on newlines, "|", "•" and runs of two or more spaces; single
    spaces stay inside a segment. Empty pieces are dropped.

    Examples:
        >>> split_segments("IFPI L028  839 274-2 01 | MADE IN GERMANY")
        ['IFPI L028', '839 274-2 01', 'MADE IN GERMANY']
    """
    return [piece.strip() for piece in SEGMENT_SPLIT_PATTERN.split(raw_text) if piece.strip()]


def normalize_segment(text: str) -> str:
    """Trim, collapse whitespace and uppercase. Symbols are kept."""
    return " ".join(text.split()).upper()


def ifpi_kind(text: str) -> IfpiKind | None:
    """Kind of IFPI code: "mastering" for L-codes, "mould" for others."""
    normalized = normalize_segment(text)
    if IFPI_MASTERING_PATTERN.match(normalized) or BARE_MASTERING_PATTERN.match(normalized):
        return "mastering"
    if IFPI_PREFIX_PATTERN.match(normalized):
        return "mould"
    return None


def _tokens(text: str) -> list[str]:
    return text.split(" ")


def _has_letters_and_digits(text: str) -> bool:
    return bool(LETTERS_PATTERN.search(text)) and bool(DIGITS_PATTERN.search(text))


def _has_side_or_cut(text: str) -> bool:
    return any(SIDE_TOKEN_PATTERN.match(token) for token in _tokens(text))


def _has_production_structure(text: str) -> bool:
    if SEPARATOR_PATTERN.search(text) or _has_side_or_cut(text):
        return True
    digit_groups = [token for token in _tokens(text) if DIGITS_PATTERN.search(token)]
    return len(digit_groups) >= 2


def _is_sentence_like(text: str) -> bool:
    """Mostly plain words, like marketing text or a company line."""
    tokens = _tokens(text)
    if len(tokens) < 3:
        return False
    words = [token for token in tokens if token.isalpha() and len(token) >= 2]
    return len(words) / len(tokens) >= 0.75


def _fits_medium(text: str) -> bool:
    return (
        MATRIX_MIN_LENGTH <= len(text) <= MATRIX_MAX_LENGTH
        and bool(MATRIX_CHARSET_PATTERN.match(text))
    )


def classify_segment(text: str) -> SegmentType:
    """Classify one text span as "matrix", "ifpi" or "other".

    Ambiguous spans are "other".

    Examples:
        >>> classify_segment("IFPI 1234")
        'ifpi'
        >>> classify_segment("A1 MATRIX-01")
        'matrix'
        >>> classify_segment("LP")
        'other'
    """
    normalized = normalize_segment(text)
    if len(normalized) < MIN_SEGMENT_LENGTH:
        return "other"

    if IFPI_PREFIX_PATTERN.match(normalized) or BARE_MASTERING_PATTERN.match(normalized):
        return "ifpi"

    if URL_PATTERN.search(normalized):
        return "other"

    if not DIGITS_PATTERN.search(normalized) or not _fits_medium(normalized):
        return "other"

    if not _has_production_structure(normalized):
        return "other"

    if _has_letters_and_digits(normalized) or not _is_sentence_like(normalized):
        return "matrix"
    return "other"


def score_segment(text: str, segment_type: SegmentType) -> float:
    """Heuristic confidence for a segment without an OCR confidence.

    Matrix segments score 0.2 for each of: letters and digits, a side
    indicator, a cut or separator structure, a plant/engineer code, and
    fitting the medium. IFPI segments score high when they follow a known
    code shape. Other segments get a flat low score.
    """
    normalized = normalize_segment(text)
    if segment_type == "ifpi":
        if IFPI_MASTERING_PATTERN.match(normalized) or IFPI_MOULD_PATTERN.match(normalized):
            return 0.9
        return 0.6
    if segment_type == "other":
        return 0.5

    score = 0.0
    tokens = _tokens(normalized)
    if _has_letters_and_digits(normalized):
        score += 0.2
    if any(SIDE_LETTER_PATTERN.match(token) for token in tokens):
        score += 0.2
    if SEPARATOR_PATTERN.search(normalized) or any(SIDE_TOKEN_PATTERN.match(t) for t in tokens):
        score += 0.2
    if any(token in PLANT_CODES for token in tokens):
        score += 0.2
    if _fits_medium(normalized):
        score += 0.2
    return round(min(1.0, score), 2)


def classify_spans(spans: Iterable[tuple[str, float]]) -> list[OCRSegment]:
    """Classify (text, confidence) spans from an OCR engine.

    Span text is normalized, empty spans are dropped and confidences are
    clamped to [0, 1].
    """
    segments = []
    for text, confidence in spans:
        normalized = normalize_segment(text)
        if not normalized:
            continue
        segment_type = classify_segment(normalized)
        segments.append(
            OCRSegment(
                text=normalized,
                type=segment_type,
                confidence=min(1.0, max(0.0, float(confidence))),
                ifpi_kind=ifpi_kind(normalized) if segment_type == "ifpi" else None,
            )
        )
    return segments


def _weighted_confidence(segments: list[OCRSegment]) -> float:
    total = sum(len(s.text) for s in segments)
    if total == 0:
        return 0.0
    return sum(s.confidence * len(s.text) for s in segments) / total


def build_outcome(
    raw_text: str,
    spans: Iterable[tuple[str, float]] | None = None,
    overall_confidence: float | None = None,
    layer_used: LayerUsed = "normal",
) -> OCROutcome:
    """Correct, split and classify the text of one OCR call.

    Args:
        raw_text: Text as returned by the OCR engine (kept unchanged).
        spans: Optional (text, confidence) spans from the engine. When omitted
               the raw text is split into segments and scored heuristically.
        overall_confidence: Engine confidence for the whole text. Defaults to
                            the length-weighted mean of segment confidences.
        layer_used: Which binarized layer was read.

    Returns:
        OCROutcome with corrected clean text and classified segments.
    """
    corrections: list[OCRCorrection] = []
    if spans is None:
        spans = [(piece, -1.0) for piece in split_segments(raw_text)]

    corrected_spans = []
    for text, confidence in spans:
        corrected, fixes = correct_ocr_text(normalize_segment(text))
        corrections.extend(fixes)
        corrected_spans.append((corrected, confidence))

    segments = classify_spans(
        (text, confidence if confidence >= 0 else score_segment(text, classify_segment(text)))
        for text, confidence in corrected_spans
    )

    if overall_confidence is None:
        overall_confidence = _weighted_confidence(segments)

    if corrections:
        logger.debug("Applied %d OCR corrections", len(corrections))

    return OCROutcome(
        raw_text=raw_text,
        clean_text=" | ".join(s.text for s in segments),
        segments=tuple(segments),
        overall_confidence=min(1.0, max(0.0, float(overall_confidence))),
        layer_used=layer_used,
        corrections=tuple(corrections),
    )


def choose_layer(normal: OCROutcome, inverted: OCROutcome) -> OCROutcome:
    """Pick the outcome of the layer that read with higher confidence.

    Ties go to the normal layer. The returned outcome's layer_used records
    which layer won.
    """
    if inverted.overall_confidence > normal.overall_confidence:
        winner, layer = inverted, "inverted"
    else:
        winner, layer = normal, "normal"
    if winner.layer_used == layer:
        return winner
    return OCROutcome(
        raw_text=winner.raw_text,
        clean_text=winner.clean_text,
        segments=winner.segments,
        overall_confidence=winner.overall_confidence,
        layer_used=layer,
        corrections=winner.corrections,
    )
