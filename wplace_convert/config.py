# wplace_convert/config.py
from __future__ import annotations

"""
Frozen configuration records.

MatchPolicy        how palette distances are scored
TransparencyPolicy which pixels take part in quantisation
PipelineConfig     every stage knob plus the stage order
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from .constants import (
    CHROMA_PENALTY_WEIGHT,
    DEFAULT_DISTANCE_SPACE,
    DEFAULT_DITHER_METHOD,
    DEFAULT_DITHER_STRENGTH,
    DEFAULT_EDGE_THRESHOLD,
    DEFAULT_STAGE_ORDER,
    DISTANCE_SPACE_ALIASES,
    DISTANCE_SPACES,
    STAGES,
    TRANSPARENCY_THRESHOLD,
    WHITE_THRESHOLD,
)
from .errors import ConfigError
from .utils import warn


def normalise_distance_space(name: str) -> str:
    """Map aliases onto canonical names. Unknown names warn and become lab."""
    key = (name or "").strip().lower()
    key = DISTANCE_SPACE_ALIASES.get(key, key)
    if key not in DISTANCE_SPACES:
        warn(f"unknown colour match space {name!r}, using {DEFAULT_DISTANCE_SPACE}")
        return DEFAULT_DISTANCE_SPACE
    return key


def _check_byte(name: str, value: int) -> None:
    if not 0 <= int(value) <= 255:
        raise ConfigError(f"{name} must be in 0..255, got {value}")


@dataclass(frozen=True)
class MatchPolicy:
    distance_space: str = DEFAULT_DISTANCE_SPACE
    chroma_penalty: bool = False
    chroma_penalty_weight: float = CHROMA_PENALTY_WEIGHT
    white_threshold: int = WHITE_THRESHOLD

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "distance_space", normalise_distance_space(self.distance_space)
        )
        _check_byte("white_threshold", self.white_threshold)
        if self.chroma_penalty_weight < 0:
            raise ConfigError("chroma_penalty_weight must be >= 0")


@dataclass(frozen=True)
class TransparencyPolicy:
    paint_transparent: bool = False
    paint_white: bool = True
    transparency_threshold: int = TRANSPARENCY_THRESHOLD
    white_threshold: int = WHITE_THRESHOLD

    def __post_init__(self) -> None:
        _check_byte("transparency_threshold", self.transparency_threshold)
        _check_byte("white_threshold", self.white_threshold)


@dataclass(frozen=True)
class PipelineConfig:
    """
    All knobs for one pipeline run.

    A value of 0 / None / False disables the matching stage.
    target_width / target_height of None keep the source size; when only one
    is given the other follows the source aspect ratio.
    """

    # resample
    target_width: Optional[int] = None
    target_height: Optional[int] = None
    resample_method: str = "nearest"

    # matching / eligibility
    match: MatchPolicy = field(default_factory=MatchPolicy)
    transparency: TransparencyPolicy = field(default_factory=TransparencyPolicy)
    exact_match: bool = False

    # dithering
    dither: bool = False
    dither_method: str = DEFAULT_DITHER_METHOD
    dither_strength: float = DEFAULT_DITHER_STRENGTH
    dither_seed: Optional[int] = None

    # colour correction
    brightness: float = 0.0
    contrast: float = 0.0
    saturation: float = 0.0
    hue: float = 0.0
    gamma: float = 1.0

    # blur / sharpen
    blur_mode: str = "none"
    blur_radius: int = 0
    sharpen_amount: float = 0.0
    sharpen_radius: int = 1
    sharpen_threshold: int = 0

    # edges
    edge_overlay: bool = False
    edge_algorithm: str = "sobel"
    edge_threshold: int = DEFAULT_EDGE_THRESHOLD
    edge_thickness: int = 1
    edge_thin: bool = False

    # cleanup
    posterize_levels: Optional[int] = None
    mode_filter_size: int = 0
    simplify_min_area: int = 0
    erode_amount: int = 0
    outline_thickness: int = 0

    stage_order: Tuple[str, ...] = DEFAULT_STAGE_ORDER

    def __post_init__(self) -> None:
        for name in ("target_width", "target_height"):
            value = getattr(self, name)
            if value is not None and int(value) < 1:
                raise ConfigError(f"{name} must be >= 1, got {value}")
        if not 0.0 <= float(self.dither_strength) <= 1.0:
            raise ConfigError(
                f"dither_strength must be in 0..1, got {self.dither_strength}"
            )
        if self.gamma <= 0:
            raise ConfigError(f"gamma must be > 0, got {self.gamma}")
        if self.posterize_levels is not None and self.posterize_levels < 1:
            raise ConfigError(
                f"posterize_levels must be >= 1, got {self.posterize_levels}"
            )
        for name in (
            "blur_radius",
            "sharpen_threshold",
            "mode_filter_size",
            "simplify_min_area",
            "erode_amount",
            "outline_thickness",
        ):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must be >= 0, got {getattr(self, name)}")
        if self.sharpen_radius < 1:
            raise ConfigError(f"sharpen_radius must be >= 1, got {self.sharpen_radius}")
        _check_byte("edge_threshold", self.edge_threshold)

        order = tuple(self.stage_order)
        unknown = [s for s in order if s not in STAGES]
        if unknown:
            raise ConfigError(f"unknown pipeline stage(s): {', '.join(unknown)}")
        for required in ("resample", "quantize"):
            if order.count(required) != 1:
                raise ConfigError(f"stage_order must contain {required!r} exactly once")
        if len(set(order)) != len(order):
            raise ConfigError("stage_order contains duplicate stages")
        object.__setattr__(self, "stage_order", order)

    def target_size(self, src_w: int, src_h: int) -> Tuple[int, int]:
        """Destination size for a source of src_w x src_h."""
        tw, th = self.target_width, self.target_height
        if tw is None and th is None:
            return src_w, src_h
        if tw is None:
            return max(1, int(round(src_w * (th / float(src_h))))), int(th)
        if th is None:
            return int(tw), max(1, int(round(src_h * (tw / float(src_w)))))
        return int(tw), int(th)


__all__ = [
    "normalise_distance_space",
    "MatchPolicy",
    "TransparencyPolicy",
    "PipelineConfig",
]
