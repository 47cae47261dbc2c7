"""Classify command: label OCR text as matrix numbers, IFPI codes or other."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from schemas import parse_ocr_response
from segments import build_outcome

logger = logging.getLogger(__name__)


def add_classify_subparser(subparsers: argparse._SubParsersAction) -> None:
    classify_parser = subparsers.add_parser(
        "classify",
        help="Classify OCR text into matrix / IFPI / other segments",
    )
    source = classify_parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "text",
        nargs="?",
        help="OCR text to classify ('-' reads stdin)",
    )
    source.add_argument(
        "--json",
        dest="json_path",
        metavar="FILE",
        help="OCR engine response JSON file",
    )
    classify_parser.add_argument(
        "--layer",
        choices=("normal", "inverted"),
        default="normal",
        help="Layer the text was read from (default: normal)",
    )
    classify_parser.set_defaults(_cmd=cmd_classify)


def cmd_classify(args: argparse.Namespace) -> int:
    if args.json_path:
        try:
            payload = Path(args.json_path).read_text()
            outcome = parse_ocr_response(payload)
        except (OSError, ValueError) as exc:
            logger.error("%s", exc)
            return 1
    else:
        text = sys.stdin.read() if args.text == "-" else args.text
        outcome = build_outcome(text, layer_used=args.layer)

    for segment in outcome.segments:
        logger.debug("%-6s %.2f %s", segment.type, segment.confidence, segment.text)
    print(json.dumps(outcome.to_dict(), indent=2))
    return 0
