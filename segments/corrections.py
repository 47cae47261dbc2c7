"""
Conservative character-level corrections for OCR'd matrix text.

Only corrections whose context makes them unambiguous are applied:
misread IFPI prefixes, and letter/digit confusions inside numbers.
The raw OCR text is always kept by the caller.
"""

from __future__ import annotations

import re

from .types import OCRCorrection

# IFPI prefix as commonly misread (I read as 1 or L)
IFPI_VARIANT_PATTERN = re.compile(r"\b(?:1FP1|1FPI|IFP1|LFPL|1FPL|LFPI|IFPL)\b")

# Up to two letter lookalikes sandwiched between digits
DIGIT_LOOKALIKE_PATTERN = re.compile(r"(?<=\d)([OISB]{1,2})(?=\d)")

DIGIT_LOOKALIKES = str.maketrans({"O": "0", "I": "1", "S": "5", "B": "8"})


def _fix_ifpi_prefix(text: str, corrections: list[OCRCorrection]) -> str:
    def replace(match: re.Match) -> str:
        corrections.append(OCRCorrection(match.group(0), "IFPI", "Misread IFPI prefix"))
        return "IFPI"

    return IFPI_VARIANT_PATTERN.sub(replace, text)


def _is_numeric_token(token: str) -> bool:
    """Token whose only letters are digit lookalikes sitting between digits."""
    letters = [ch for ch in token if ch.isalpha()]
    if not letters or not any(ch.isdigit() for ch in token):
        return False
    stripped = DIGIT_LOOKALIKE_PATTERN.sub("", token)
    return not any(ch.isalpha() for ch in stripped)


def _fix_digit_lookalikes(text: str, corrections: list[OCRCorrection]) -> str:
    tokens = text.split(" ")
    for index, token in enumerate(tokens):
        if not _is_numeric_token(token):
            continue
        fixed = DIGIT_LOOKALIKE_PATTERN.sub(lambda m: m.group(1).translate(DIGIT_LOOKALIKES), token)
        corrections.append(OCRCorrection(token, fixed, "Letters inside a number read as digits"))
        tokens[index] = fixed
    return " ".join(tokens)


def correct_ocr_text(text: str) -> tuple[str, list[OCRCorrection]]:
    """Apply context-safe OCR corrections to uppercase text.

    Args:
        text: Recognized text, uppercased with single spaces.

    Returns:
        Tuple of corrected text and the list of corrections applied.

    Examples:
        >>> correct_ocr_text("1FP1 L028")[0]
        'IFPI L028'
        >>> correct_ocr_text("839 2O4-2")[0]
        '839 204-2'
        >>> correct_ocr_text("A1B2")[0]
        'A1B2'
    """
    corrections: list[OCRCorrection] = []
    text = _fix_ifpi_prefix(text, corrections)
    text = _fix_digit_lookalikes(text, corrections)
    return text, corrections
