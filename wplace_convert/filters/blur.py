# wplace_convert/filters/blur.py
from __future__ import annotations

"""
Smoothing filters: box, gaussian (three box passes), kuwahara, unsharp mask.

All functions take a Raster and return a new one.
"""

import numpy as np

from ..colour_convert import luma_array
from ..constants import GAUSSIAN_BOX_PASSES, OPAQUE_ALPHA
from ..core_types import Raster
from ..utils import warn

# ---------- box / gaussian ----------------------------------------------------


def _box_pass(arr: np.ndarray, r: int, axis: int) -> np.ndarray:
    """Edge-clamped sliding sum along axis, floor-divided by the window size."""
    win = 2 * r + 1
    pad = [(0, 0)] * arr.ndim
    pad[axis] = (r, r)
    padded = np.pad(arr, pad, mode="edge")
    csum = np.cumsum(padded, axis=axis, dtype=np.int64)
    zero_shape = list(csum.shape)
    zero_shape[axis] = 1
    csum = np.concatenate([np.zeros(zero_shape, dtype=np.int64), csum], axis=axis)
    n = arr.shape[axis]
    hi = np.take(csum, np.arange(win, win + n), axis=axis)
    lo = np.take(csum, np.arange(0, n), axis=axis)
    return (hi - lo) // win


def box_blur(raster: Raster, radius: int) -> Raster:
    """Separable box blur over all four channels. radius <= 0 is a no-op."""
    r = int(radius)
    if r <= 0 or raster.width == 0 or raster.height == 0:
        return raster
    arr = raster.pixels.astype(np.int64)
    arr = _box_pass(arr, r, axis=1)
    arr = _box_pass(arr, r, axis=0)
    return Raster(arr.astype(np.uint8))


def gaussian_blur(raster: Raster, radius: int) -> Raster:
    """Gaussian approximation: three box passes at max(1, radius)."""
    r = max(1, int(radius))
    out = raster
    for _ in range(GAUSSIAN_BOX_PASSES):
        out = box_blur(out, r)
    return out


# ---------- kuwahara ----------------------------------------------------------


def _integral(values: np.ndarray) -> np.ndarray:
    """Summed-area table with a leading zero row and column."""
    h, w = values.shape
    table = np.zeros((h + 1, w + 1), dtype=np.float64)
    table[1:, 1:] = values.cumsum(axis=0).cumsum(axis=1)
    return table


def _rect_sum(
    table: np.ndarray, x0: np.ndarray, y0: np.ndarray, x1: np.ndarray, y1: np.ndarray
) -> np.ndarray:
    """Inclusive rectangle sums for broadcast index arrays."""
    return (
        table[y1 + 1, x1 + 1] - table[y0, x1 + 1] - table[y1 + 1, x0] + table[y0, x0]
    )


def kuwahara(raster: Raster, radius: int) -> Raster:
    """
    Edge-preserving smoothing.

    For each opaque pixel, look at the four (r+1)x(r+1) quadrants that share
    the pixel as a corner, and take the floor-mean RGB of the quadrant with the
    lowest luminance variance. Only opaque pixels feed the statistics.
    Transparent pixels pass through untouched.
    """
    r = int(radius)
    h, w = raster.height, raster.width
    if r <= 0 or h == 0 or w == 0:
        return raster

    src = raster.pixels
    opaque = src[..., 3] >= OPAQUE_ALPHA
    c = opaque.astype(np.float64)
    rgb = src[..., :3].astype(np.float64) * c[..., None]
    lum = luma_array(src[..., :3]) * c

    t_r = _integral(rgb[..., 0])
    t_g = _integral(rgb[..., 1])
    t_b = _integral(rgb[..., 2])
    t_c = _integral(c)
    t_l = _integral(lum)
    t_l2 = _integral(lum * lum)

    ys, xs = np.nonzero(opaque)
    if ys.size == 0:
        return raster
    x_lo = np.maximum(0, xs - r)
    x_hi = np.minimum(w - 1, xs + r)
    y_lo = np.maximum(0, ys - r)
    y_hi = np.minimum(h - 1, ys + r)

    quadrants = (
        (x_lo, y_lo, xs, ys),
        (xs, y_lo, x_hi, ys),
        (x_lo, ys, xs, y_hi),
        (xs, ys, x_hi, y_hi),
    )

    n = ys.size
    variances = np.full((4, n), np.inf)
    means = np.zeros((4, n, 3))
    for k, (qx0, qy0, qx1, qy1) in enumerate(quadrants):
        cnt = _rect_sum(t_c, qx0, qy0, qx1, qy1)
        ok = cnt > 0
        safe = np.where(ok, cnt, 1.0)
        mean_l = _rect_sum(t_l, qx0, qy0, qx1, qy1) / safe
        var = _rect_sum(t_l2, qx0, qy0, qx1, qy1) / safe - mean_l * mean_l
        variances[k] = np.where(ok, var, np.inf)
        means[k, :, 0] = _rect_sum(t_r, qx0, qy0, qx1, qy1) / safe
        means[k, :, 1] = _rect_sum(t_g, qx0, qy0, qx1, qy1) / safe
        means[k, :, 2] = _rect_sum(t_b, qx0, qy0, qx1, qy1) / safe

    # argmin keeps the first quadrant on ties
    best = np.argmin(variances, axis=0)
    chosen = means[best, np.arange(n)]
    # float sums can land a hair under an exact integer mean
    chosen = np.floor(chosen + 1e-9)

    out = src.copy()
    out[ys, xs, :3] = np.clip(chosen, 0, 255).astype(np.uint8)
    out[ys, xs, 3] = 255
    return Raster(out)


# ---------- dispatch / sharpen ------------------------------------------------


def apply_blur(raster: Raster, mode: str, radius: int) -> Raster:
    """Dispatch none / box / gaussian / kuwahara. Unknown modes warn and no-op."""
    key = (mode or "none").lower()
    if key == "none" or int(radius) <= 0:
        return raster
    if key == "box":
        return box_blur(raster, radius)
    if key == "gaussian":
        return gaussian_blur(raster, radius)
    if key == "kuwahara":
        return kuwahara(raster, radius)
    warn(f"unknown blur mode {mode!r}, skipping blur")
    return raster


def sharpen(
    raster: Raster, amount: float, radius: int = 1, threshold: int = 0
) -> Raster:
    """
    Unsharp mask on RGB: v + amount * (v - blurred) where |v - blurred| >= threshold.

    The blurred copy is a gaussian_blur at radius. Alpha is untouched.
    """
    if amount <= 0 or radius <= 0:
        return raster
    blurred = gaussian_blur(raster, radius).pixels[..., :3].astype(np.float64)
    orig = raster.pixels[..., :3].astype(np.float64)
    diff = orig - blurred
    sharpened = np.where(np.abs(diff) >= threshold, orig + amount * diff, orig)
    out = raster.pixels.copy()
    out[..., :3] = np.clip(np.rint(sharpened), 0, 255).astype(np.uint8)
    return Raster(out)


__all__ = [
    "box_blur",
    "gaussian_blur",
    "kuwahara",
    "apply_blur",
    "sharpen",
]
