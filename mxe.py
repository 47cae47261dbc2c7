#!/usr/bin/env python3
"""
Matrix enhancer CLI.

Usage:
    mxe enhance <path>           # Enhance a photo or directory, write artifacts
    mxe enhance <path> -j 4      # Same, with 4 worker processes
    mxe classify "<ocr text>"    # Split OCR text into matrix / IFPI / other
    mxe classify --json FILE     # Re-classify an OCR engine response
    mxe detect <path>            # Ring location and matrix-photo score
"""

import argparse
import logging
import sys

from logging_utils import configure_logging, add_logging_args
from cli.enhance import add_enhance_subparser
from cli.classify import add_classify_subparser
from cli.detect import add_detect_subparser

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mxe",
        description="Matrix enhancer - prepare vinyl/CD matrix photos for OCR",
    )
    add_logging_args(parser)
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    add_enhance_subparser(subparsers)
    add_classify_subparser(subparsers)
    add_detect_subparser(subparsers)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, args.verbose, args.quiet)

    cmd = getattr(args, "_cmd", None)
    if cmd is None:
        parser.print_help()
        return 1
    return cmd(args)


if __name__ == "__main__":
    sys.exit(main())
