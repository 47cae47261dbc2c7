"""Artifact export for enhancement results (images, ring overlay, debug JSON)."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import cv2
import numpy as np

from enhancement import PipelineResult

logger = logging.getLogger(__name__)

# Result attribute -> file name
IMAGE_ARTIFACTS = {
    "original_crop": "original.jpg",
    "enhanced": "enhanced.jpg",
    "zoomed_ring": "zoomed_ring.jpg",
    "zoomed_ifpi_ring": "zoomed_ifpi_ring.jpg",
    "super_zoom_ifpi": "super_zoom_ifpi.jpg",
    "zoomed_ring_original": "zoomed_ring_original.jpg",
    "zoomed_ifpi_ring_original": "zoomed_ifpi_ring_original.jpg",
    "super_zoom_ifpi_original": "super_zoom_ifpi_original.jpg",
    "ocr_layer": "ocr_layer.png",
    "ocr_layer_inverted": "ocr_layer_inverted.png",
}


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def save_image(img: np.ndarray, output_path: Path) -> bool:
    """Write a grayscale or BGR image. Returns True on success."""
    try:
        _ensure_parent(output_path)
        if not cv2.imwrite(str(output_path), img):
            logger.error("OpenCV could not write %s", output_path)
            return False
        return True
    except Exception as e:
        logger.exception("Error saving image %s: %s", output_path, e)
        return False


def draw_ring_overlay(result: PipelineResult) -> np.ndarray:
    """Original ROI crop with the located ring drawn on it (BGR)."""
    overlay = cv2.cvtColor(result.original_crop, cv2.COLOR_GRAY2BGR)
    region = result.region_in_crop
    center = (int(round(region.center[0])), int(round(region.center[1])))
    color = (0, 255, 0) if region.detected else (0, 165, 255)
    thickness = max(1, min(overlay.shape[:2]) // 300)
    cv2.circle(overlay, center, int(round(region.inner_radius)), color, thickness)
    cv2.circle(overlay, center, int(round(region.outer_radius)), color, thickness)
    cv2.drawMarker(overlay, center, color, cv2.MARKER_CROSS, 10 * thickness, thickness)
    return overlay


def save_debug_report(result: PipelineResult, output_path: Path, source: str | None = None) -> bool:
    """Write the debug report JSON. Returns True on success."""
    try:
        _ensure_parent(output_path)
        report = result.debug_report()
        report["source"] = source
        with open(output_path, "w") as f:
            json.dump(report, f, indent=2)
        return True
    except Exception as e:
        logger.exception("Error saving debug report %s: %s", output_path, e)
        return False


def save_result_artifacts(
    result: PipelineResult,
    output_dir: Path,
    source: str | None = None,
) -> dict[str, Path]:
    """Save every image of a result plus roi.jpg and debug.json.

    Returns:
        Dict mapping artifact name (file stem) to the path written. Artifacts
        that failed to save are logged and left out.
    """
    output_dir = Path(output_dir)
    written: dict[str, Path] = {}

    for attribute, filename in IMAGE_ARTIFACTS.items():
        path = output_dir / filename
        if save_image(getattr(result, attribute), path):
            written[path.stem] = path

    roi_path = output_dir / "roi.jpg"
    if save_image(draw_ring_overlay(result), roi_path):
        written["roi"] = roi_path

    debug_path = output_dir / "debug.json"
    if save_debug_report(result, debug_path, source):
        written["debug"] = debug_path

    return written
