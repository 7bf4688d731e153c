# wplace_convert/resample.py
from __future__ import annotations

"""
Raster resampling.

Methods:
  nearest    pixel-centre sampling, hard edges
  bilinear   Pillow bilinear (premultiplied alpha)
  box        rounded mean of each F x F block, all four channels
  median     per-channel 16-bin histogram median of each block
  dominant   most frequent 4:4:4 bucket of each block, alpha forced to 255

Block methods need one integral factor F = sw / dw = sh / dh. Otherwise the
call falls back to nearest. Blocks are clamped to the source edge.
"""

from typing import Callable, Dict, List, Tuple

import numpy as np
from PIL import Image

from .constants import INTEGER_FACTOR_EPS, RESAMPLE_METHODS
from .core_types import Raster, U8Pixels, require_raster
from .errors import ConfigError
from .utils import debug_log

BLOCK_METHODS = ("box", "median", "dominant")


def _block_bounds(n_dst: int, n_src: int, factor: int) -> List[Tuple[int, int]]:
    """(start, stop) per destination index. Never empty, never out of range."""
    bounds: List[Tuple[int, int]] = []
    for i in range(n_dst):
        start = min(i * factor, n_src - 1)
        bounds.append((start, min(n_src, start + factor)))
    return bounds


def _nearest(src: U8Pixels, dst_w: int, dst_h: int) -> U8Pixels:
    sh, sw = src.shape[:2]
    xs = np.minimum(((np.arange(dst_w) + 0.5) * sw / dst_w).astype(np.int64), sw - 1)
    ys = np.minimum(((np.arange(dst_h) + 0.5) * sh / dst_h).astype(np.int64), sh - 1)
    return src[ys[:, None], xs[None, :]]


def _bilinear(src: U8Pixels, dst_w: int, dst_h: int) -> U8Pixels:
    im = Image.fromarray(src)
    out = im.resize((dst_w, dst_h), resample=Image.Resampling.BILINEAR)
    return np.array(out, dtype=np.uint8)


def _box(src: U8Pixels, dst_w: int, dst_h: int, factor: int) -> U8Pixels:
    sh, sw = src.shape[:2]
    if sw == dst_w * factor and sh == dst_h * factor:
        blocks = src.reshape(dst_h, factor, dst_w, factor, 4).astype(np.float64)
        mean = blocks.mean(axis=(1, 3))
        return np.floor(mean + 0.5).astype(np.uint8)

    out = np.empty((dst_h, dst_w, 4), dtype=np.uint8)
    rows = _block_bounds(dst_h, sh, factor)
    cols = _block_bounds(dst_w, sw, factor)
    for y, (y0, y1) in enumerate(rows):
        for x, (x0, x1) in enumerate(cols):
            block = src[y0:y1, x0:x1].reshape(-1, 4).astype(np.float64)
            out[y, x] = np.floor(block.mean(axis=0) + 0.5).astype(np.uint8)
    return out


def _median_block(block: np.ndarray) -> np.ndarray:
    bins = block >> 4
    half = bins.shape[0] >> 1
    result = np.empty(4, dtype=np.uint8)
    for c in range(4):
        cum = np.cumsum(np.bincount(bins[:, c], minlength=16))
        result[c] = int(np.argmax(cum > half)) * 17
    return result


def _median(src: U8Pixels, dst_w: int, dst_h: int, factor: int) -> U8Pixels:
    sh, sw = src.shape[:2]
    out = np.empty((dst_h, dst_w, 4), dtype=np.uint8)
    rows = _block_bounds(dst_h, sh, factor)
    cols = _block_bounds(dst_w, sw, factor)
    for y, (y0, y1) in enumerate(rows):
        for x, (x0, x1) in enumerate(cols):
            block = src[y0:y1, x0:x1].reshape(-1, 4).astype(np.int64)
            out[y, x] = _median_block(block)
    return out


def _dominant_bucket(keys: np.ndarray) -> int:
    """Bucket that first reached the final maximum count in scan order."""
    counts = np.bincount(keys, minlength=4096)
    top = int(counts.max())
    best_bucket = -1
    best_pos = keys.shape[0]
    for bucket in np.flatnonzero(counts == top):
        pos = int(np.flatnonzero(keys == bucket)[top - 1])
        if pos < best_pos:
            best_pos = pos
            best_bucket = int(bucket)
    return best_bucket


def _dominant(src: U8Pixels, dst_w: int, dst_h: int, factor: int) -> U8Pixels:
    sh, sw = src.shape[:2]
    q = (src[..., :3] >> 4).astype(np.int64)
    keys_all = (q[..., 0] << 8) | (q[..., 1] << 4) | q[..., 2]
    out = np.empty((dst_h, dst_w, 4), dtype=np.uint8)
    rows = _block_bounds(dst_h, sh, factor)
    cols = _block_bounds(dst_w, sw, factor)
    for y, (y0, y1) in enumerate(rows):
        for x, (x0, x1) in enumerate(cols):
            bucket = _dominant_bucket(keys_all[y0:y1, x0:x1].ravel())
            out[y, x] = (
                ((bucket >> 8) & 0xF) * 17,
                ((bucket >> 4) & 0xF) * 17,
                (bucket & 0xF) * 17,
                255,
            )
    return out


_BLOCK_FUNCS: Dict[str, Callable[[U8Pixels, int, int, int], U8Pixels]] = {
    "box": _box,
    "median": _median,
    "dominant": _dominant,
}


def integral_factor(src_w: int, dst_w: int) -> int | None:
    """F when src_w / dst_w is within epsilon of an integer, else None."""
    factor = src_w / float(dst_w)
    nearest = round(factor)
    if abs(factor - nearest) < INTEGER_FACTOR_EPS:
        return max(1, int(nearest))
    return None


def resample(
    raster: Raster,
    dst_w: int,
    dst_h: int,
    method: str = "nearest",
    debug: bool = False,
) -> Raster:
    """
    Resample raster to dst_w x dst_h.

    Unknown methods use nearest, as do block methods unless both axes shrink
    by the same integer factor.
    """
    if dst_w < 1 or dst_h < 1:
        raise ConfigError(f"target size must be at least 1x1, got {dst_w}x{dst_h}")
    require_raster(raster)
    src = raster.pixels
    method = (method or "nearest").lower()
    if method not in RESAMPLE_METHODS:
        if debug:
            debug_log(f"resample: unknown method {method!r}, using nearest")
        method = "nearest"

    if method == "bilinear":
        return Raster(_bilinear(src, dst_w, dst_h))
    if method in BLOCK_METHODS:
        factor = integral_factor(raster.width, dst_w)
        if factor is None or integral_factor(raster.height, dst_h) != factor:
            if debug:
                debug_log(
                    f"resample: {method} needs the same integer factor on both "
                    f"axes ({raster.width}x{raster.height}->{dst_w}x{dst_h}), "
                    "using nearest"
                )
        else:
            return Raster(_BLOCK_FUNCS[method](src, dst_w, dst_h, factor))
    return Raster(np.ascontiguousarray(_nearest(src, dst_w, dst_h)))


__all__ = ["resample", "integral_factor", "BLOCK_METHODS"]
