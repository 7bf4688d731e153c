# wplace_convert/dither/__init__.py
"""
Dithering: error diffusion (floyd, atkinson, jarvis, stucki, burkes, sierra)
and ordered (bayer2, bayer4, bayer8, random).
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from ..colour_match import ColourMatcher
from ..config import MatchPolicy, TransparencyPolicy
from ..constants import DEFAULT_DITHER_METHOD, DEFAULT_DITHER_STRENGTH
from ..core_types import PaletteEntry, QuantizeResult, Raster
from ..quantize import require_palette
from .diffusion import error_diffusion
from .kernels import (
    BAYER_MATRICES,
    DIFFUSION_KERNELS,
    DITHER_METHODS,
    METHOD_ALIASES,
    resolve_method,
)
from .ordered import ordered_dither


def apply_dithering(
    raster: Raster,
    palette: Sequence[PaletteEntry],
    matcher: ColourMatcher,
    method: str = DEFAULT_DITHER_METHOD,
    strength: float = DEFAULT_DITHER_STRENGTH,
    match_policy: Optional[MatchPolicy] = None,
    transparency_policy: Optional[TransparencyPolicy] = None,
    rng: Optional[np.random.Generator] = None,
) -> QuantizeResult:
    """
    Dither raster onto palette.

    Unknown method names warn and use floyd. strength only affects the
    ordered methods. rng seeds the random method.
    """
    require_palette(palette)
    name = resolve_method(method)
    if name in DIFFUSION_KERNELS:
        return error_diffusion(
            raster, palette, matcher, name, match_policy, transparency_policy
        )
    return ordered_dither(
        raster,
        palette,
        matcher,
        name,
        strength,
        match_policy,
        transparency_policy,
        rng,
    )


__all__ = [
    "apply_dithering",
    "error_diffusion",
    "ordered_dither",
    "resolve_method",
    "DIFFUSION_KERNELS",
    "BAYER_MATRICES",
    "DITHER_METHODS",
    "METHOD_ALIASES",
]
