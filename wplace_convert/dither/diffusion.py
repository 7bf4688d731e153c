# wplace_convert/dither/diffusion.py
from __future__ import annotations

"""
Error-diffusion dithering.

Strictly sequential raster scan: each pixel sees the error of every pixel
processed before it. Error pushed into an ineligible or out-of-bounds
neighbour is dropped.
"""

from typing import List, Optional, Sequence

import numpy as np

from ..colour_match import ColourMatcher
from ..config import MatchPolicy, TransparencyPolicy
from ..core_types import PaletteEntry, QuantizeResult, Raster
from ..quantize import eligibility_mask, require_palette
from .kernels import DIFFUSION_KERNELS


def error_diffusion(
    raster: Raster,
    palette: Sequence[PaletteEntry],
    matcher: ColourMatcher,
    method: str = "floyd",
    match_policy: Optional[MatchPolicy] = None,
    transparency_policy: Optional[TransparencyPolicy] = None,
) -> QuantizeResult:
    """
    Dither with the named kernel (see kernels.DIFFUSION_KERNELS).

    Eligible pixels are matched from their accumulated value and written with
    alpha 255. The error (accumulated - chosen) is spread over the kernel taps;
    updated neighbours are clamped to 0..255.
    """
    require_palette(palette)
    match_policy = match_policy or MatchPolicy()
    divisor, offsets = DIFFUSION_KERNELS[method]
    taps = [(dx, dy, weight / float(divisor)) for dx, dy, weight in offsets]

    eligible, paint_clear = eligibility_mask(raster, transparency_policy)
    h, w = raster.height, raster.width

    out = raster.pixels.copy()
    out[~eligible, 3] = 0

    work: List[List[List[float]]] = raster.rgb.astype(np.float64).tolist()
    elig: List[List[bool]] = eligible.tolist()
    clear: List[List[bool]] = paint_clear.tolist()
    valid = 0

    for y in range(h):
        row = work[y]
        for x in range(w):
            if not elig[y][x]:
                continue
            if clear[y][x]:
                out[y, x] = 0
                valid += 1
                continue

            r0, g0, b0 = row[x]
            nr, ng, nb = matcher.find_closest((r0, g0, b0), palette, match_policy).rgb
            out[y, x] = (nr, ng, nb, 255)
            valid += 1

            er, eg, eb = r0 - nr, g0 - ng, b0 - nb
            if er == 0 and eg == 0 and eb == 0:
                continue
            for dx, dy, f in taps:
                nx, ny = x + dx, y + dy
                if nx < 0 or nx >= w or ny >= h or not elig[ny][nx]:
                    continue
                px = work[ny][nx]
                px[0] = min(255.0, max(0.0, px[0] + er * f))
                px[1] = min(255.0, max(0.0, px[1] + eg * f))
                px[2] = min(255.0, max(0.0, px[2] + eb * f))

    return QuantizeResult(Raster(out), valid)


__all__ = ["error_diffusion"]
