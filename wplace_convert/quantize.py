# wplace_convert/quantize.py
from __future__ import annotations

"""
Eligibility rules and plain (undithered) palette quantisation.

A pixel is eligible when
  (paint_transparent or alpha >= transparency_threshold)
  and (paint_white or not all channels >= white_threshold).

Ineligible pixels come out with alpha 0. Eligible transparent pixels (only
possible with paint_transparent) come out as (0,0,0,0) and still count as
written. Everything else is matched and written with alpha 255.
"""

from typing import Optional, Sequence, Tuple

import numpy as np

from .colour_match import ColourMatcher
from .config import MatchPolicy, TransparencyPolicy
from .core_types import BoolMask, PaletteEntry, QuantizeResult, Raster
from .errors import EmptyPaletteError


def require_palette(palette: Sequence[PaletteEntry]) -> None:
    if not palette:
        raise EmptyPaletteError("palette has no entries")


def white_mask(rgb: np.ndarray, threshold: int) -> BoolMask:
    return np.all(rgb >= threshold, axis=-1)


def eligibility_mask(
    raster: Raster, policy: Optional[TransparencyPolicy] = None
) -> Tuple[BoolMask, BoolMask]:
    """
    Returns (eligible, paint_clear).

    paint_clear marks eligible pixels that are written as transparent black
    without matching.
    """
    policy = policy or TransparencyPolicy()
    transparent = raster.alpha < policy.transparency_threshold
    eligible = policy.paint_transparent | ~transparent
    if not policy.paint_white:
        eligible &= ~white_mask(raster.rgb, policy.white_threshold)
    if policy.paint_transparent:
        paint_clear = eligible & transparent
    else:
        paint_clear = np.zeros_like(eligible)
    return eligible, paint_clear


def match_colours(
    rgb: np.ndarray,
    palette: Sequence[PaletteEntry],
    matcher: ColourMatcher,
    policy: MatchPolicy,
    exact_match: bool = False,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Match an (N, 3) uint8 array, one lookup per unique colour.

    Returns (matched rgb (N, 3) uint8, found (N,) bool). found is False only in
    exact mode when a colour has no identical palette entry.
    """
    if rgb.shape[0] == 0:
        return np.zeros((0, 3), dtype=np.uint8), np.zeros((0,), dtype=bool)
    uniques, inverse = np.unique(rgb, axis=0, return_inverse=True)
    mapped = np.empty_like(uniques)
    found = np.ones(uniques.shape[0], dtype=bool)
    for i, row in enumerate(uniques):
        target = (int(row[0]), int(row[1]), int(row[2]))
        if exact_match:
            result = matcher.resolve_colour(target, palette, policy, exact_match=True)
            found[i] = result.id is not None
        else:
            result = matcher.find_closest(target, palette, policy)
        mapped[i] = result.rgb
    inverse = inverse.reshape(-1)
    return mapped[inverse], found[inverse]


def quantize_targets(
    raster: Raster,
    targets: np.ndarray,
    palette: Sequence[PaletteEntry],
    matcher: ColourMatcher,
    match_policy: Optional[MatchPolicy] = None,
    transparency_policy: Optional[TransparencyPolicy] = None,
    exact_match: bool = False,
) -> QuantizeResult:
    """
    Shared write path: eligibility comes from raster, colours from targets.

    targets is an (H, W, 3) uint8 array (the raster's own rgb for plain
    quantisation, perturbed values for ordered dithering).
    """
    require_palette(palette)
    match_policy = match_policy or MatchPolicy()
    eligible, paint_clear = eligibility_mask(raster, transparency_policy)

    out = raster.pixels.copy()
    out[~eligible, 3] = 0
    out[paint_clear] = 0

    to_match = eligible & ~paint_clear
    matched, found = match_colours(
        targets[to_match], palette, matcher, match_policy, exact_match
    )
    block = out[to_match]
    block[:, :3] = matched
    block[:, 3] = np.where(found, 255, 0)
    out[to_match] = block

    valid = int(np.count_nonzero(paint_clear)) + int(np.count_nonzero(found))
    return QuantizeResult(Raster(out), valid)


def quantize(
    raster: Raster,
    palette: Sequence[PaletteEntry],
    matcher: ColourMatcher,
    match_policy: Optional[MatchPolicy] = None,
    transparency_policy: Optional[TransparencyPolicy] = None,
    exact_match: bool = False,
) -> QuantizeResult:
    """
    Map every eligible pixel to its closest palette colour.

    With exact_match, colours missing from the palette are dropped (alpha 0)
    and not counted.
    """
    return quantize_targets(
        raster,
        raster.rgb,
        palette,
        matcher,
        match_policy,
        transparency_policy,
        exact_match,
    )


__all__ = [
    "require_palette",
    "white_mask",
    "eligibility_mask",
    "match_colours",
    "quantize_targets",
    "quantize",
]
