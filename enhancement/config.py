"""
Parameters for the enhancement pipeline.

Every enhancement stage is parameterized through EnhancementParameters so a
run is reproducible from its parameter set alone. Values are clamped into
their allowed ranges at construction time, so an instance is always valid.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping

from config import (
    ADAPTIVE_BLOCK_SIZE,
    ADAPTIVE_BLOCK_SIZE_RANGE,
    ADAPTIVE_C,
    ADAPTIVE_C_RANGE,
    CLAHE_CLIP_LIMIT,
    CLAHE_CLIP_LIMIT_RANGE,
    CLAHE_TILE_SIZE,
    CLAHE_TILE_SIZES,
    HIGHLIGHT_STRENGTH,
    HIGHLIGHT_STRENGTH_RANGE,
    UNSHARP_AMOUNT,
    UNSHARP_AMOUNT_RANGE,
    UNSHARP_RADIUS,
    UNSHARP_RADIUS_RANGE,
)

# camelCase keys used by the web client
_CAMEL_CASE_KEYS = {
    "claheClipLimit": "clahe_clip_limit",
    "claheTileSize": "clahe_tile_size",
    "highlightStrength": "highlight_strength",
    "unsharpRadius": "unsharp_radius",
    "unsharpAmount": "unsharp_amount",
    "adaptiveBlockSize": "adaptive_block_size",
    "adaptiveC": "adaptive_c",
}


def _finite_or(value: Any, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return float(default)
    if not math.isfinite(number):
        return float(default)
    return number


def _clamp(value: float, bounds: tuple[float, float]) -> float:
    low, high = bounds
    return min(high, max(low, value))


def coerce_block_size(value: Any) -> int:
    """Coerce an adaptive threshold block size to an odd size within range.

    Even values move up to the next odd value before clamping, so 24 becomes
    25 and 52 becomes 51.

    Examples:
        >>> coerce_block_size(24)
        25
        >>> coerce_block_size(25)
        25
        >>> coerce_block_size(4)
        11
    """
    low, high = ADAPTIVE_BLOCK_SIZE_RANGE
    size = int(round(_finite_or(value, ADAPTIVE_BLOCK_SIZE)))
    if size % 2 == 0:
        size += 1
    return int(_clamp(size, (low, high)))


def snap_tile_size(value: Any) -> int:
    """Snap a CLAHE tile size to the nearest supported size (ties go smaller)."""
    size = _finite_or(value, CLAHE_TILE_SIZE)
    return min(CLAHE_TILE_SIZES, key=lambda allowed: (abs(allowed - size), allowed))


@dataclass(frozen=True)
class EnhancementParameters:
    """User-tunable settings for one enhancement run.

    Attributes:
        clahe_clip_limit: CLAHE contrast limit (1.0-5.0). Higher values give
                          more local contrast but amplify noise.
        clahe_tile_size: CLAHE tile edge in pixels (8, 16 or 24).
        highlight_strength: Glare suppression strength (0-100). 0 disables it.
        unsharp_radius: Gaussian sigma of the unsharp mask (0.3-1.2).
        unsharp_amount: Unsharp mask gain (0.0-2.0). 0 disables sharpening.
        adaptive_block_size: Odd neighbourhood size for thresholding (11-51).
        adaptive_c: Offset subtracted from the local mean (-10..10).
    """

    clahe_clip_limit: float = CLAHE_CLIP_LIMIT
    clahe_tile_size: int = CLAHE_TILE_SIZE
    highlight_strength: int = HIGHLIGHT_STRENGTH
    unsharp_radius: float = UNSHARP_RADIUS
    unsharp_amount: float = UNSHARP_AMOUNT
    adaptive_block_size: int = ADAPTIVE_BLOCK_SIZE
    adaptive_c: int = ADAPTIVE_C

    def __post_init__(self) -> None:
        # Frozen dataclass: clamp via object.__setattr__
        object.__setattr__(
            self,
            "clahe_clip_limit",
            _clamp(_finite_or(self.clahe_clip_limit, CLAHE_CLIP_LIMIT), CLAHE_CLIP_LIMIT_RANGE),
        )
        object.__setattr__(self, "clahe_tile_size", snap_tile_size(self.clahe_tile_size))
        object.__setattr__(
            self,
            "highlight_strength",
            int(round(_clamp(
                _finite_or(self.highlight_strength, HIGHLIGHT_STRENGTH),
                HIGHLIGHT_STRENGTH_RANGE,
            ))),
        )
        object.__setattr__(
            self,
            "unsharp_radius",
            _clamp(_finite_or(self.unsharp_radius, UNSHARP_RADIUS), UNSHARP_RADIUS_RANGE),
        )
        object.__setattr__(
            self,
            "unsharp_amount",
            _clamp(_finite_or(self.unsharp_amount, UNSHARP_AMOUNT), UNSHARP_AMOUNT_RANGE),
        )
        object.__setattr__(self, "adaptive_block_size", coerce_block_size(self.adaptive_block_size))
        object.__setattr__(
            self,
            "adaptive_c",
            int(round(_clamp(_finite_or(self.adaptive_c, ADAPTIVE_C), ADAPTIVE_C_RANGE))),
        )

    def with_overrides(self, **changes: Any) -> EnhancementParameters:
        """Return a new parameter set with some fields replaced (and clamped)."""
        changes = {k: v for k, v in changes.items() if v is not None}
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> EnhancementParameters:
        """Build parameters from a dict with snake_case or camelCase keys.

        Unknown keys are ignored; missing keys keep their defaults.
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name in known and value is not None:
                kwargs[name] = value
        return cls(**kwargs)


PRESETS: dict[str, EnhancementParameters] = {
    "standard": EnhancementParameters(),
    "high-reflection": EnhancementParameters(
        clahe_clip_limit=3.0,
        highlight_strength=70,
        unsharp_amount=1.5,
    ),
    "low-contrast": EnhancementParameters(
        clahe_clip_limit=1.5,
        unsharp_amount=0.5,
        adaptive_c=8,
    ),
}


def get_preset(name: str) -> EnhancementParameters:
    """Look up a named parameter preset.

    Raises:
        KeyError: If no preset with that name exists.
    """
    try:
        return PRESETS[name]
    except KeyError:
        raise KeyError(
            f"Unknown preset '{name}'. Available: {', '.join(sorted(PRESETS))}"
        ) from None
