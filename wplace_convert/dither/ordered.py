# wplace_convert/dither/ordered.py
from __future__ import annotations

"""
Ordered dithering: Bayer 2/4/8 and per-pixel random thresholds.

Each pixel's RGB is shifted by (m - 0.5) * 64 * strength, clamped, then
matched. Strength 0 is plain quantisation.
"""

from typing import Optional, Sequence

import numpy as np

from ..colour_match import ColourMatcher
from ..config import MatchPolicy, TransparencyPolicy
from ..constants import ORDERED_NOISE_SPAN
from ..core_types import PaletteEntry, QuantizeResult, Raster
from ..quantize import quantize_targets, require_palette
from .kernels import BAYER_MATRICES


def threshold_map(
    method: str,
    height: int,
    width: int,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """(H, W) thresholds in [0, 1): tiled Bayer matrix, or fresh uniform draws."""
    if method == "random":
        gen = rng if rng is not None else np.random.default_rng()
        return gen.random((height, width))
    matrix = BAYER_MATRICES[method]
    n = matrix.shape[0]
    ys = np.arange(height) % n
    xs = np.arange(width) % n
    return matrix[ys[:, None], xs[None, :]]


def ordered_dither(
    raster: Raster,
    palette: Sequence[PaletteEntry],
    matcher: ColourMatcher,
    method: str = "bayer4",
    strength: float = 0.5,
    match_policy: Optional[MatchPolicy] = None,
    transparency_policy: Optional[TransparencyPolicy] = None,
    rng: Optional[np.random.Generator] = None,
) -> QuantizeResult:
    require_palette(palette)
    thresholds = threshold_map(method, raster.height, raster.width, rng)
    noise = (thresholds - 0.5) * ORDERED_NOISE_SPAN * float(strength)
    perturbed = np.clip(raster.rgb.astype(np.float64) + noise[..., None], 0.0, 255.0)
    targets = np.floor(perturbed + 0.5).astype(np.uint8)
    return quantize_targets(
        raster, targets, palette, matcher, match_policy, transparency_policy
    )


__all__ = ["threshold_map", "ordered_dither"]
