"""Detect command: report ring location and matrix-photo score per image."""

from __future__ import annotations

import argparse
import json
import logging

from detection import detect_matrix_photo, locate_ring
from enhancement import resize_to_max_dimension, to_grayscale
from config import MAX_WORKING_DIMENSION
from errors import ImageDecodeError
from sources import load_local_image, scan_local_images

logger = logging.getLogger(__name__)


def add_detect_subparser(subparsers: argparse._SubParsersAction) -> None:
    detect_parser = subparsers.add_parser(
        "detect",
        help="Locate the matrix ring and score whether photos show a matrix area",
    )
    detect_parser.add_argument(
        "source",
        help="Image file or directory of images",
    )
    detect_parser.set_defaults(_cmd=cmd_detect)


def cmd_detect(args: argparse.Namespace) -> int:
    try:
        paths = scan_local_images(args.source)
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    reports = []
    for path in paths:
        try:
            image = load_local_image(path)
        except ImageDecodeError as exc:
            logger.error("%s", exc)
            continue
        working, scale = resize_to_max_dimension(to_grayscale(image), MAX_WORKING_DIMENSION)
        region = locate_ring(working).scaled(scale)
        photo = detect_matrix_photo(image, path.name)
        reports.append({
            "path": str(path),
            "ring": region.to_dict(),
            "matrix_photo": photo.to_dict(),
        })

    print(json.dumps(reports, indent=2))
    return 0 if reports else 1
