"""
Enhancement step classes with a common interface.

Each step is a dataclass that implements the EnhanceStep interface. Steps are
pure: they take an input and return a new output without mutating the
original array.

Usage:
    from enhancement.steps import CLAHEStep, DenoiseStep, Pipeline

    pipeline = Pipeline(steps=[
        CLAHEStep(clip_limit=2.0, tile_size=16),
        DenoiseStep(),
    ])
    result = pipeline.run(gray)
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import cv2
import numpy as np

from errors import PipelineCancelled
from .clahe import apply_clahe
from .filters import denoise, normalize_illumination, unsharp_mask
from .highlights import suppress_highlights
from .normalization import resize_to_max_dimension, to_grayscale

logger = logging.getLogger(__name__)


class EnhanceStep(ABC):
    """Base class for enhancement steps.

    All steps must implement this interface. Steps should be pure functions:
    they take an input image and return a new output without mutating the
    original.

    Steps can optionally produce metadata (like scale factors) that needs to
    be preserved for later coordinate mapping or debugging.
    """

    @abstractmethod
    def apply(self, img: np.ndarray) -> np.ndarray:
        """Apply this step to an image.

        Must be pure: never mutates the input image.

        Args:
            img: Input image as numpy array.

        Returns:
            Processed image as a new numpy array.
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for logging and debugging."""
        pass

    @property
    def key(self) -> str:
        """Stable stage key, the name without its parameters."""
        return self.name.split("(")[0]

    def get_metadata(self) -> dict[str, Any]:
        """Return any metadata produced by this step.

        Returns:
            Dictionary of metadata. Empty by default.
        """
        return {}


@dataclass(frozen=True)
class GrayscaleStep(EnhanceStep):
    """Convert RGB, RGBA or grayscale input to a 2D uint8 image."""

    def apply(self, img: np.ndarray) -> np.ndarray:
        return to_grayscale(img)

    @property
    def name(self) -> str:
        return "grayscale"


@dataclass
class ResizeStep(EnhanceStep):
    """Downscale so the longest side fits max_dimension.

    Tracks the scale factor as metadata for mapping back to the original.
    """

    max_dimension: int
    interpolation: int = cv2.INTER_AREA
    _scale_factor: float = field(default=1.0, init=False, repr=False)

    def apply(self, img: np.ndarray) -> np.ndarray:
        resized, scale_factor = resize_to_max_dimension(
            img, self.max_dimension, self.interpolation
        )
        self._scale_factor = scale_factor
        return resized

    @property
    def name(self) -> str:
        return f"resize({self.max_dimension})"

    def get_metadata(self) -> dict[str, Any]:
        return {"scale_factor": self._scale_factor}


@dataclass(frozen=True)
class HighlightSuppressionStep(EnhanceStep):
    """Inpaint specular glare clusters.

    Attributes:
        strength: Suppression strength 0-100. 0 passes the image through.
    """

    strength: int = 50

    def apply(self, img: np.ndarray) -> np.ndarray:
        return suppress_highlights(img, self.strength)

    @property
    def name(self) -> str:
        return f"highlight_suppress(strength={self.strength})"


@dataclass(frozen=True)
class CLAHEStep(EnhanceStep):
    """Apply Contrast Limited Adaptive Histogram Equalization.

    Requires grayscale input.

    Attributes:
        clip_limit: Threshold for contrast limiting. Higher values give
                   more contrast but may amplify noise.
        tile_size: Tile edge length in pixels. Smaller tiles adapt more locally.
    """

    clip_limit: float = 2.0
    tile_size: int = 16

    def apply(self, img: np.ndarray) -> np.ndarray:
        return apply_clahe(img, self.clip_limit, self.tile_size)

    @property
    def name(self) -> str:
        return f"clahe(clip={self.clip_limit}, tile={self.tile_size})"


@dataclass(frozen=True)
class DenoiseStep(EnhanceStep):
    """Median plus bilateral denoising."""

    def apply(self, img: np.ndarray) -> np.ndarray:
        return denoise(img)

    @property
    def name(self) -> str:
        return "denoise"


@dataclass(frozen=True)
class UnsharpMaskStep(EnhanceStep):
    """Unsharp mask sharpening.

    Attributes:
        radius: Gaussian sigma of the blur.
        amount: Detail gain. 0 passes the image through.
        threshold: Detail differences at or below this are not amplified.
    """

    radius: float = 0.6
    amount: float = 1.0
    threshold: float = 0

    def apply(self, img: np.ndarray) -> np.ndarray:
        return unsharp_mask(img, self.radius, self.amount, self.threshold)

    @property
    def name(self) -> str:
        return f"sharpen(radius={self.radius}, amount={self.amount})"


@dataclass(frozen=True)
class IlluminationStep(EnhanceStep):
    """Flat-field illumination correction."""

    def apply(self, img: np.ndarray) -> np.ndarray:
        return normalize_illumination(img)

    @property
    def name(self) -> str:
        return "illumination"


@dataclass
class StepResult:
    """Result of applying a single enhancement step.

    Attributes:
        name: Name of the step that produced this result.
        key: Stable stage key (name without parameters).
        image: Output image from the step.
        elapsed_ms: Wall-clock time the step took.
        metadata: Any metadata produced by the step.
    """

    name: str
    key: str
    image: np.ndarray
    elapsed_ms: float
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class PipelineStepResults:
    """Results from running an enhancement pipeline.

    Attributes:
        original: The original input image.
        steps: List of StepResult for each step in order.
    """

    original: np.ndarray
    steps: list[StepResult] = field(default_factory=list)

    @property
    def final(self) -> np.ndarray:
        """Get the final processed image."""
        if not self.steps:
            return self.original
        return self.steps[-1].image

    def get_intermediate(self, key: str) -> np.ndarray | None:
        """Get an intermediate image by stage key (e.g. "clahe")."""
        for step in self.steps:
            if step.key == key:
                return step.image
        return None

    def get_metadata(self, key: str) -> Any | None:
        """Get a metadata value from the first step that has it."""
        for step in self.steps:
            if key in step.metadata:
                return step.metadata[key]
        return None

    @property
    def scale_factor(self) -> float:
        return self.get_metadata("scale_factor") or 1.0

    @property
    def stage_timings_ms(self) -> dict[str, float]:
        return {step.key: step.elapsed_ms for step in self.steps}


def check_cancelled(cancel: threading.Event | None, stage: str) -> None:
    """Raise PipelineCancelled if the cancel event is set."""
    if cancel is not None and cancel.is_set():
        logger.info("Enhancement cancelled before %s", stage)
        raise PipelineCancelled(stage)


@dataclass
class Pipeline:
    """A sequence of enhancement steps to apply to images.

    The pipeline runs each step in order, passing the output of one step
    as the input to the next. All intermediate results are preserved.

    Attributes:
        steps: List of EnhanceStep instances to apply in order.
    """

    steps: list[EnhanceStep]

    def run(
        self,
        img: np.ndarray,
        cancel: threading.Event | None = None,
    ) -> PipelineStepResults:
        """Run the pipeline on an image.

        Args:
            img: Input image as numpy array.
            cancel: Optional event checked before every step.

        Returns:
            PipelineStepResults containing all intermediate images and metadata.

        Raises:
            PipelineCancelled: If cancel is set before a step starts.
        """
        result = PipelineStepResults(original=img.copy())
        current = img

        for step in self.steps:
            check_cancelled(cancel, step.key)
            start = time.perf_counter()
            output = step.apply(current)
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.debug("%s took %.1f ms", step.name, elapsed_ms)
            result.steps.append(
                StepResult(
                    name=step.name,
                    key=step.key,
                    image=output,
                    elapsed_ms=elapsed_ms,
                    metadata=step.get_metadata(),
                )
            )
            current = output

        return result

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self):
        return iter(self.steps)
