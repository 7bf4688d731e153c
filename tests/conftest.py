from __future__ import annotations

from typing import Sequence

import numpy as np
import pytest

from wplace_convert.colour_match import ColourMatcher
from wplace_convert.core_types import PaletteEntry, Raster
from wplace_convert.palette_data import build_palette


def solid(width: int, height: int, rgba: Sequence[int]) -> Raster:
    return Raster.filled(width, height, rgba)


def from_rows(rows) -> Raster:
    """Raster from nested [[(r, g, b, a), ...], ...] rows."""
    return Raster(np.array(rows, dtype=np.uint8))


@pytest.fixture
def matcher() -> ColourMatcher:
    return ColourMatcher()


@pytest.fixture
def bw_palette():
    return [
        PaletteEntry(1, (0, 0, 0), "Black"),
        PaletteEntry(5, (255, 255, 255), "White"),
    ]


@pytest.fixture
def wplace_palette():
    return build_palette()


@pytest.fixture
def checkerboard() -> Raster:
    arr = np.zeros((4, 4, 4), dtype=np.uint8)
    arr[..., 3] = 255
    for y in range(4):
        for x in range(4):
            if (x + y) % 2:
                arr[y, x, :3] = 255
    return Raster(arr)
