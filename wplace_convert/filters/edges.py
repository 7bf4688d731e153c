# wplace_convert/filters/edges.py
from __future__ import annotations

"""
Edge detection on rounded luma, plus the black edge overlay.

Algorithms: sobel, prewitt, roberts, laplacian.
Magnitude is |gx| + |gy| (|laplacian| for laplacian). The direction flag is
0 (horizontal) when |gx| >= |gy|, else 1.
"""

from typing import Tuple

import numpy as np

from ..colour_convert import gray_u8
from ..constants import EDGE_ALGORITHMS, EDGE_MAX_THICKNESS
from ..core_types import BoolMask, Raster
from ..utils import warn
from .morphology import dilate_mask

SOBEL_X = np.array([[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]], dtype=np.int32)
SOBEL_Y = np.array([[-1, -2, -1], [0, 0, 0], [1, 2, 1]], dtype=np.int32)
PREWITT_X = np.array([[-1, 0, 1], [-1, 0, 1], [-1, 0, 1]], dtype=np.int32)
PREWITT_Y = np.array([[1, 1, 1], [0, 0, 0], [-1, -1, -1]], dtype=np.int32)
LAPLACIAN = np.array([[0, -1, 0], [-1, 4, -1], [0, -1, 0]], dtype=np.int32)

for _k in (SOBEL_X, SOBEL_Y, PREWITT_X, PREWITT_Y, LAPLACIAN):
    _k.setflags(write=False)


def _correlate_interior(gray: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """3x3 correlation over interior pixels; result is (H-2, W-2)."""
    h, w = gray.shape
    acc = np.zeros((h - 2, w - 2), dtype=np.int32)
    for ky in range(3):
        for kx in range(3):
            k = int(kernel[ky, kx])
            if k:
                acc += k * gray[ky : ky + h - 2, kx : kx + w - 2]
    return acc


def gradient(gray: np.ndarray, algorithm: str) -> Tuple[np.ndarray, np.ndarray]:
    """Magnitude (float32) and direction flag (int8) arrays of gray's shape."""
    h, w = gray.shape
    mag = np.zeros((h, w), dtype=np.float32)
    direction = np.zeros((h, w), dtype=np.int8)

    if algorithm == "roberts":
        if h < 2 or w < 2:
            return mag, direction
        gx = gray[:-1, :-1] - gray[1:, 1:]
        gy = gray[:-1, 1:] - gray[1:, :-1]
        mag[:-1, :-1] = np.abs(gx) + np.abs(gy)
        direction[:-1, :-1] = np.where(np.abs(gx) >= np.abs(gy), 0, 1)
        return mag, direction

    if h < 3 or w < 3:
        return mag, direction

    if algorithm == "laplacian":
        mag[1:-1, 1:-1] = np.abs(_correlate_interior(gray, LAPLACIAN))
        return mag, direction

    kx, ky = (PREWITT_X, PREWITT_Y) if algorithm == "prewitt" else (SOBEL_X, SOBEL_Y)
    gx = _correlate_interior(gray, kx)
    gy = _correlate_interior(gray, ky)
    mag[1:-1, 1:-1] = np.abs(gx) + np.abs(gy)
    direction[1:-1, 1:-1] = np.where(np.abs(gx) >= np.abs(gy), 0, 1)
    return mag, direction


def _thin(mag: np.ndarray, direction: np.ndarray, threshold: float) -> BoolMask:
    """Interior pixels at or above threshold that peak along their gradient axis."""
    h, w = mag.shape
    edges = np.zeros((h, w), dtype=bool)
    if h < 3 or w < 3:
        return edges
    m = mag[1:-1, 1:-1]
    horiz = direction[1:-1, 1:-1] == 0
    n1 = np.where(horiz, mag[1:-1, :-2], mag[:-2, 1:-1])
    n2 = np.where(horiz, mag[1:-1, 2:], mag[2:, 1:-1])
    edges[1:-1, 1:-1] = (m >= threshold) & (m >= n1) & (m >= n2)
    return edges


def detect_edges(
    raster: Raster, algorithm: str = "sobel", threshold: float = 60, thin: bool = False
) -> BoolMask:
    """Bool edge mask. Unknown algorithms warn and use sobel."""
    algo = (algorithm or "sobel").lower()
    if algo not in EDGE_ALGORITHMS:
        warn(f"unknown edge algorithm {algorithm!r}, using sobel")
        algo = "sobel"
    gray = gray_u8(raster.pixels)
    mag, direction = gradient(gray, algo)
    if thin and algo != "laplacian":
        return _thin(mag, direction, threshold)
    return mag > threshold


def edge_overlay(
    raster: Raster,
    algorithm: str = "sobel",
    threshold: float = 60,
    thickness: int = 1,
    thin: bool = False,
) -> Raster:
    """Paint detected edges (0,0,0,255), dilated thickness-1 times (thickness 1..6)."""
    t = max(1, min(EDGE_MAX_THICKNESS, int(thickness or 1)))
    mask = dilate_mask(detect_edges(raster, algorithm, threshold, thin), t - 1)
    if not mask.any():
        return raster
    out = raster.pixels.copy()
    out[mask] = (0, 0, 0, 255)
    return Raster(out)


__all__ = ["gradient", "detect_edges", "edge_overlay"]
