"""Tests for OCR text correction and segment classification."""

import pytest

from schemas import parse_ocr_response
from segments import (
    build_outcome,
    choose_layer,
    classify_segment,
    correct_ocr_text,
    ifpi_kind,
    score_segment,
    split_segments,
)


class TestSplitSegments:
    """Tests for split_segments."""

    def test_splits_on_newlines_pipes_and_wide_gaps(self):
        assert split_segments("IFPI L028  839 274-2 01 | MADE IN GERMANY\nA1") == [
            "IFPI L028",
            "839 274-2 01",
            "MADE IN GERMANY",
            "A1",
        ]

    def test_single_spaces_stay_inside_segment(self):
        assert split_segments("SRC 1 A2") == ["SRC 1 A2"]

    def test_bullets_and_empty_pieces(self):
        assert split_segments(" • ABC-1 •  ||\n\n") == ["ABC-1"]


class TestClassifySegment:
    """Tests for classify_segment."""

    @pytest.mark.parametrize(
        "text",
        ["IFPI 1234", "IFPI L028", "ifpi 94a1", "IFPIL028", "IFPI94A1", "L553", "LV25"],
    )
    def test_ifpi(self, text):
        assert classify_segment(text) == "ifpi"

    @pytest.mark.parametrize(
        "text",
        ["A1 MATRIX-01", "839 274-2 01", "SRC 1 A2", "MPO 01 52", "STH-2001-A", "PR 2031 1"],
    )
    def test_matrix(self, text):
        assert classify_segment(text) == "matrix"

    @pytest.mark.parametrize(
        "text",
        [
            "LP",
            "",
            "MADE IN GERMANY",
            "WWW.DISCOGS.COM",
            "LP123",
            "MADE IN THE EU 2001",
            "Ⓟ 1991 SONY",
        ],
    )
    def test_other(self, text):
        assert classify_segment(text) == "other"

    def test_ifpi_kind(self):
        assert ifpi_kind("IFPI L028") == "mastering"
        assert ifpi_kind("L553") == "mastering"
        assert ifpi_kind("IFPI 94A1") == "mould"
        assert ifpi_kind("IFPIL028") == "mastering"
        assert ifpi_kind("IFPI94A1") == "mould"
        assert ifpi_kind("839 274-2") is None

    def test_prefix_without_space_agrees_with_kind(self):
        for text in ["IFPIL028", "IFPI94A1", "IFPIXY12"]:
            assert classify_segment(text) == "ifpi"
            assert ifpi_kind(text) is not None


class TestScoreSegment:
    """Tests for heuristic segment confidence."""

    def test_rich_matrix_scores_higher(self):
        rich = score_segment("MPO 01 A-1", "matrix")
        plain = score_segment("1234 5678", "matrix")
        assert rich > plain
        assert 0.0 <= plain <= rich <= 1.0

    def test_known_ifpi_shape_scores_high(self):
        assert score_segment("IFPI L028", "ifpi") == 0.9
        assert score_segment("IFPI", "ifpi") == 0.6
        assert score_segment("IFPI94A1", "ifpi") == 0.9


class TestCorrections:
    """Tests for correct_ocr_text."""

    def test_misread_ifpi_prefix(self):
        text, corrections = correct_ocr_text("1FP1 L028")
        assert text == "IFPI L028"
        assert corrections[0].original == "1FP1"
        assert corrections[0].corrected == "IFPI"

    def test_letters_inside_numbers(self):
        text, corrections = correct_ocr_text("839 2O4-2")
        assert text == "839 204-2"
        assert len(corrections) == 1

    def test_mixed_codes_are_left_alone(self):
        assert correct_ocr_text("A1B2") == ("A1B2", [])
        assert correct_ocr_text("STH-2001-A") == ("STH-2001-A", [])

    def test_no_change_without_context(self):
        assert correct_ocr_text("SOS") == ("SOS", [])


class TestBuildOutcome:
    """Tests for build_outcome."""

    def test_raw_text_is_kept_and_clean_text_corrected(self):
        raw = "1fp1 l028\n839 2O4-2 01\nMADE IN GERMANY"
        outcome = build_outcome(raw)
        assert outcome.raw_text == raw
        assert outcome.clean_text == "IFPI L028 | 839 204-2 01 | MADE IN GERMANY"
        assert [s.type for s in outcome.segments] == ["ifpi", "matrix", "other"]
        assert outcome.ifpi_codes == ["IFPI L028"]
        assert outcome.matrix_numbers == ["839 204-2 01"]
        assert len(outcome.corrections) == 2

    def test_spans_keep_engine_confidence(self):
        outcome = build_outcome("", spans=[("IFPI 1234", 0.8), ("A1 MATRIX-01", 1.4)])
        assert [s.confidence for s in outcome.segments] == [0.8, 1.0]
        assert outcome.segments[0].ifpi_kind == "mould"

    def test_overall_confidence_is_length_weighted(self):
        outcome = build_outcome("", spans=[("ABC-1", 1.0), ("XYZ-22222", 0.0)])
        assert outcome.overall_confidence == pytest.approx(5 / 14)

    def test_explicit_overall_confidence_is_clamped(self):
        assert build_outcome("A1-2", overall_confidence=3.0).overall_confidence == 1.0

    def test_empty_text(self):
        outcome = build_outcome("")
        assert outcome.segments == ()
        assert outcome.overall_confidence == 0.0

    def test_to_dict(self):
        data = build_outcome("IFPI L028", layer_used="inverted").to_dict()
        assert data["layer_used"] == "inverted"
        assert data["segments"][0]["ifpi_kind"] == "mastering"


class TestChooseLayer:
    """Tests for choose_layer."""

    def test_higher_confidence_wins(self):
        normal = build_outcome("A1-2", overall_confidence=0.4)
        inverted = build_outcome("A1-2", overall_confidence=0.7)
        chosen = choose_layer(normal, inverted)
        assert chosen.layer_used == "inverted"
        assert chosen.overall_confidence == 0.7

    def test_tie_goes_to_normal(self):
        normal = build_outcome("A1-2", overall_confidence=0.5)
        inverted = build_outcome("B1-2", overall_confidence=0.5, layer_used="inverted")
        chosen = choose_layer(normal, inverted)
        assert chosen.layer_used == "normal"
        assert chosen.clean_text == "A1-2"


class TestParseOCRResponse:
    """Tests for parsing the OCR engine response."""

    def test_engine_types_are_reclassified(self):
        payload = {
            "raw_text": "IFPI L028 | 839 274-2 01",
            "segments": [
                {"text": "IFPI L028", "type": "matrix", "confidence": 0.9},
                {"text": "839 274-2 01", "type": "other", "confidence": 0.7},
            ],
            "overall_confidence": 0.85,
            "layer_used": "inverted",
        }
        outcome = parse_ocr_response(payload)
        assert [s.type for s in outcome.segments] == ["ifpi", "matrix"]
        assert outcome.overall_confidence == 0.85
        assert outcome.layer_used == "inverted"

    def test_json_string_without_segments_splits_raw_text(self):
        outcome = parse_ocr_response('{"raw_text": "IFPI 1234\\nA1 MATRIX-01"}')
        assert [s.type for s in outcome.segments] == ["ifpi", "matrix"]

    def test_confidence_is_clamped(self):
        outcome = parse_ocr_response({"segments": [{"text": "A1-22", "confidence": -3}]})
        assert outcome.segments[0].confidence == 0.0

    @pytest.mark.parametrize("payload", ["not json", '{"layer_used": "sideways"}', b"[1, 2]"])
    def test_invalid_payload_raises_value_error(self, payload):
        with pytest.raises(ValueError, match="Invalid OCR response"):
            parse_ocr_response(payload)
