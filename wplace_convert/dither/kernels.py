# wplace_convert/dither/kernels.py
from __future__ import annotations

"""
Error-diffusion kernels and Bayer matrices.

DIFFUSION_KERNELS[name] = (divisor, ((dx, dy, weight), ...))
BAYER_MATRICES[name]    = read-only (n, n) float array of thresholds in [0, 1)
"""

from types import MappingProxyType
from typing import Mapping, Tuple

import numpy as np

from ..constants import DEFAULT_DITHER_METHOD
from ..utils import warn

Kernel = Tuple[int, Tuple[Tuple[int, int, int], ...]]

DIFFUSION_KERNELS: Mapping[str, Kernel] = MappingProxyType(
    {
        "floyd": (16, ((1, 0, 7), (-1, 1, 3), (0, 1, 5), (1, 1, 1))),
        "atkinson": (
            8,
            ((1, 0, 1), (2, 0, 1), (-1, 1, 1), (0, 1, 1), (1, 1, 1), (0, 2, 1)),
        ),
        "jarvis": (
            48,
            (
                (1, 0, 7), (2, 0, 5),
                (-2, 1, 3), (-1, 1, 5), (0, 1, 7), (1, 1, 5), (2, 1, 3),
                (-2, 2, 1), (-1, 2, 3), (0, 2, 5), (1, 2, 3), (2, 2, 1),
            ),
        ),
        "stucki": (
            42,
            (
                (1, 0, 8), (2, 0, 4),
                (-2, 1, 2), (-1, 1, 4), (0, 1, 8), (1, 1, 4), (2, 1, 2),
                (-2, 2, 1), (-1, 2, 2), (0, 2, 4), (1, 2, 2), (2, 2, 1),
            ),
        ),
        "burkes": (
            32,
            (
                (1, 0, 8), (2, 0, 4),
                (-2, 1, 2), (-1, 1, 4), (0, 1, 8), (1, 1, 4), (2, 1, 2),
            ),
        ),
        "sierra": (
            32,
            (
                (1, 0, 5), (2, 0, 3),
                (-2, 1, 2), (-1, 1, 4), (0, 1, 5), (1, 1, 4), (2, 1, 2),
                (-1, 2, 2), (0, 2, 3), (1, 2, 2),
            ),
        ),
    }
)


def _bayer(rows) -> np.ndarray:
    arr = np.array(rows, dtype=np.float64)
    arr /= arr.size
    arr.setflags(write=False)
    return arr


BAYER_MATRICES: Mapping[str, np.ndarray] = MappingProxyType(
    {
        "bayer2": _bayer([[0, 2], [3, 1]]),
        "bayer4": _bayer(
            [
                [0, 8, 2, 10],
                [12, 4, 14, 6],
                [3, 11, 1, 9],
                [15, 7, 13, 5],
            ]
        ),
        "bayer8": _bayer(
            [
                [0, 32, 8, 40, 2, 34, 10, 42],
                [48, 16, 56, 24, 50, 18, 58, 26],
                [12, 44, 4, 36, 14, 46, 6, 38],
                [60, 28, 52, 20, 62, 30, 54, 22],
                [3, 35, 11, 43, 1, 33, 9, 41],
                [51, 19, 59, 27, 49, 17, 57, 25],
                [15, 47, 7, 39, 13, 45, 5, 37],
                [63, 31, 55, 23, 61, 29, 53, 21],
            ]
        ),
    }
)

ORDERED_METHODS = tuple(BAYER_MATRICES) + ("random",)
DITHER_METHODS = tuple(DIFFUSION_KERNELS) + ORDERED_METHODS
METHOD_ALIASES = {
    "floyd-steinberg": "floyd",
    "floyd_steinberg": "floyd",
    "fs": "floyd",
    "ordered": "bayer4",
}


def resolve_method(name: str) -> str:
    """Canonical dither method name. Unknown names warn and become floyd."""
    key = (name or "").strip().lower()
    key = METHOD_ALIASES.get(key, key)
    if key not in DITHER_METHODS:
        warn(f"unknown dither method {name!r}, using {DEFAULT_DITHER_METHOD}")
        return DEFAULT_DITHER_METHOD
    return key


__all__ = [
    "Kernel",
    "DIFFUSION_KERNELS",
    "BAYER_MATRICES",
    "ORDERED_METHODS",
    "DITHER_METHODS",
    "METHOD_ALIASES",
    "resolve_method",
]
