"""Enhance command CLI parsing and control flow."""

from __future__ import annotations

import argparse
import logging
from collections import Counter
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Any

import cv2
from tqdm import tqdm

from artifacts import save_result_artifacts
from detection import detect_matrix_photo
from enhancement import PRESETS, EnhancementParameters, enhance, get_preset
from errors import MatrixEnhancerError
from sources import load_local_image, scan_local_images

logger = logging.getLogger(__name__)


def add_parameter_args(parser: argparse.ArgumentParser) -> None:
    """Add preset and per-parameter override options."""
    parser.add_argument(
        "--preset",
        choices=sorted(PRESETS),
        default="standard",
        help="Parameter preset (default: standard)",
    )
    parser.add_argument("--clip", type=float, dest="clahe_clip_limit", help="CLAHE clip limit (1.0-5.0)")
    parser.add_argument("--tile", type=int, dest="clahe_tile_size", help="CLAHE tile size (8, 16 or 24)")
    parser.add_argument("--highlight", type=int, dest="highlight_strength", help="Highlight suppression (0-100)")
    parser.add_argument("--radius", type=float, dest="unsharp_radius", help="Unsharp mask radius (0.3-1.2)")
    parser.add_argument("--amount", type=float, dest="unsharp_amount", help="Unsharp mask amount (0.0-2.0)")
    parser.add_argument("--block", type=int, dest="adaptive_block_size", help="Adaptive threshold block size (11-51)")
    parser.add_argument("--c", type=int, dest="adaptive_c", help="Adaptive threshold offset (-10..10)")


def params_from_args(args: argparse.Namespace) -> EnhancementParameters:
    """Preset parameters with any explicit overrides applied (and clamped)."""
    return get_preset(args.preset).with_overrides(
        clahe_clip_limit=args.clahe_clip_limit,
        clahe_tile_size=args.clahe_tile_size,
        highlight_strength=args.highlight_strength,
        unsharp_radius=args.unsharp_radius,
        unsharp_amount=args.unsharp_amount,
        adaptive_block_size=args.adaptive_block_size,
        adaptive_c=args.adaptive_c,
    )


def add_enhance_subparser(subparsers: argparse._SubParsersAction) -> None:
    enhance_parser = subparsers.add_parser(
        "enhance",
        help="Enhance matrix photos and write images, OCR layers and debug JSON",
    )
    enhance_parser.add_argument(
        "source",
        help="Image file or directory of images",
    )
    enhance_parser.add_argument(
        "--out", "-o",
        default="enhanced",
        help="Output directory (default: ./enhanced)",
    )
    enhance_parser.add_argument(
        "--recursive", "-r",
        action="store_true",
        help="Include images in subdirectories",
    )
    enhance_parser.add_argument(
        "--limit", "-n",
        type=int,
        default=None,
        help="Maximum number of photos to process (default: all)",
    )
    enhance_parser.add_argument(
        "--workers", "-j",
        type=int,
        default=1,
        help="Number of worker processes for directories (default: 1)",
    )
    enhance_parser.add_argument(
        "--threads",
        type=int,
        default=None,
        help="OpenCV threads per process (default: OpenCV's choice)",
    )
    enhance_parser.add_argument(
        "--only-matrix",
        action="store_true",
        help="Skip photos that do not look like a disc's matrix area",
    )
    add_parameter_args(enhance_parser)
    enhance_parser.set_defaults(_cmd=cmd_enhance)


def _init_worker(threads: int | None) -> None:
    if threads is not None:
        cv2.setNumThreads(threads)


def output_dir_for(image_path: Path, source_root: Path, output_root: str | Path) -> Path:
    """Artifact directory for a photo: its path below source_root without the suffix.

    Photos in subdirectories keep their subdirectory, so equal file names in
    different folders get separate directories.
    """
    try:
        relative = image_path.relative_to(source_root)
    except ValueError:
        relative = Path(image_path.name)
    return Path(output_root) / relative.with_suffix("")


def process_file(
    path: str,
    params_dict: dict[str, Any],
    output_dir: str,
    only_matrix: bool = False,
) -> dict[str, Any]:
    """Enhance one file and save its artifacts. Runs inside worker processes.

    Returns:
        Summary dict with "path", "status" and, when enhanced, "quality",
        "method" and "output".
    """
    image_path = Path(path)
    image = load_local_image(image_path)

    if only_matrix:
        detection = detect_matrix_photo(image, image_path.name)
        if not detection.is_matrix:
            return {"path": path, "status": "skipped", "confidence": detection.confidence}

    params = EnhancementParameters.from_mapping(params_dict)
    result = enhance(image, params)
    save_result_artifacts(result, Path(output_dir), source=str(image_path))
    return {
        "path": path,
        "status": "enhanced",
        "quality": result.quality.score,
        "feedback": result.quality.feedback,
        "method": result.region.method,
        "output": output_dir,
    }


def _run_sequential(jobs, params_dict, only_matrix) -> list[dict[str, Any]]:
    summaries = []
    for path, output_dir in tqdm(jobs, desc="Enhancing"):
        try:
            summaries.append(process_file(str(path), params_dict, output_dir, only_matrix))
        except MatrixEnhancerError as e:
            logger.error("%s: %s", path.name, e)
            summaries.append({"path": str(path), "status": "failed", "error": str(e)})
    return summaries


def _run_parallel(jobs, params_dict, only_matrix, workers, threads) -> list[dict[str, Any]]:
    summaries = []
    with ProcessPoolExecutor(
        max_workers=workers,
        initializer=_init_worker,
        initargs=(threads,),
    ) as executor:
        futures = {
            executor.submit(process_file, str(path), params_dict, output_dir, only_matrix): path
            for path, output_dir in jobs
        }
        for future in tqdm(as_completed(futures), total=len(futures), desc="Enhancing"):
            path = futures[future]
            try:
                summaries.append(future.result())
            except MatrixEnhancerError as e:
                logger.error("%s: %s", path.name, e)
                summaries.append({"path": str(path), "status": "failed", "error": str(e)})
    return sorted(summaries, key=lambda s: s["path"])


def cmd_enhance(args: argparse.Namespace) -> int:
    try:
        paths = scan_local_images(args.source, recursive=args.recursive)
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    if args.limit is not None:
        paths = paths[:args.limit]
    if not paths:
        logger.error("No images found in %s", args.source)
        return 1

    source_root = Path(args.source).resolve()
    if source_root.is_file():
        source_root = source_root.parent
    jobs = [(path, str(output_dir_for(path, source_root, args.out))) for path in paths]

    _init_worker(args.threads)
    params = params_from_args(args)
    params_dict = params.to_dict()
    logger.info("Enhancing %d photo(s) with %s", len(paths), params_dict)

    if args.workers > 1 and len(paths) > 1:
        summaries = _run_parallel(jobs, params_dict, args.only_matrix, args.workers, args.threads)
    else:
        summaries = _run_sequential(jobs, params_dict, args.only_matrix)

    for summary in summaries:
        if summary["status"] == "enhanced":
            logger.info(
                "%s: %s (%s) - %s",
                Path(summary["path"]).name, summary["quality"], summary["method"], summary["feedback"],
            )

    statuses = Counter(s["status"] for s in summaries)
    scores = Counter(s["quality"] for s in summaries if s["status"] == "enhanced")
    logger.info("%s", "=" * 50)
    logger.info("Enhancement Complete!")
    logger.info("%s", "=" * 50)
    logger.info("Photos found:    %s", len(paths))
    logger.info("Photos enhanced: %s", statuses["enhanced"])
    logger.info("Photos skipped:  %s", statuses["skipped"])
    logger.info("Photos failed:   %s", statuses["failed"])
    for score in ("excellent", "good", "fair", "poor"):
        if scores[score]:
            logger.info("Quality %-9s %s", score + ":", scores[score])
    logger.info("Results saved to %s", args.out)
    return 1 if statuses["failed"] == len(paths) else 0
