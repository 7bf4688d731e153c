# wplace_convert/filters/morphology.py
from __future__ import annotations

"""
Mask and region operators.

dilate_mask       iterative 4-neighbour binary dilation
erode             shrink opaque areas from their transparent side
outline           paint a black ring just outside the opaque mask
mode_filter       majority vote of opaque colours in an n x n window
simplify_regions  merge small same-colour regions into their main neighbour
"""

from collections import deque
from typing import Dict, List, Tuple

import numpy as np

from ..constants import OPAQUE_ALPHA
from ..core_types import BoolMask, Raster, unpack_rgb


def _packed_keys(raster: Raster) -> np.ndarray:
    rgb = raster.rgb.astype(np.int64)
    return (rgb[..., 0] << 16) | (rgb[..., 1] << 8) | rgb[..., 2]


def dilate_mask(mask: BoolMask, iterations: int) -> BoolMask:
    """Grow a bool mask by one 4-neighbour step per iteration."""
    out = np.asarray(mask, dtype=bool).copy()
    for _ in range(max(0, int(iterations))):
        grown = out.copy()
        grown[1:, :] |= out[:-1, :]
        grown[:-1, :] |= out[1:, :]
        grown[:, 1:] |= out[:, :-1]
        grown[:, :-1] |= out[:, 1:]
        out = grown
    return out


def erode(raster: Raster, amount: int) -> Raster:
    """
    amount passes. An interior pixel with alpha > 128 turns transparent when any
    pixel of its 3x3 window was transparent (< 128) at the start of the pass.
    Border rows and columns are left as they are.
    """
    h, w = raster.height, raster.width
    if amount <= 0 or h < 3 or w < 3:
        return raster
    out = raster.pixels.copy()
    for _ in range(int(amount)):
        alpha = out[..., 3]
        clear = alpha < OPAQUE_ALPHA
        near = np.zeros((h - 2, w - 2), dtype=bool)
        for dy in range(3):
            for dx in range(3):
                near |= clear[dy : dy + h - 2, dx : dx + w - 2]
        inner = alpha[1:-1, 1:-1]
        hit = near & (inner > OPAQUE_ALPHA)
        if not hit.any():
            break
        inner[hit] = 0
    return Raster(out)


def outline(raster: Raster, thickness: int) -> Raster:
    """Paint (0,0,0,255) on pixels within thickness steps outside the opaque mask."""
    t = max(0, int(thickness))
    if t <= 0:
        return raster
    mask = raster.alpha >= OPAQUE_ALPHA
    ring = dilate_mask(mask, t) & ~mask
    out = raster.pixels.copy()
    out[ring] = (0, 0, 0, 255)
    return Raster(out)


def _first_to_reach_max(keys: np.ndarray) -> int:
    """Value whose count first hits the final maximum when scanning keys in order."""
    values, inverse, counts = np.unique(keys, return_inverse=True, return_counts=True)
    top = int(counts.max())
    best_pos = keys.shape[0]
    best = int(keys[0])
    for vi in np.flatnonzero(counts == top):
        pos = int(np.flatnonzero(inverse.reshape(-1) == vi)[top - 1])
        if pos < best_pos:
            best_pos = pos
            best = int(values[vi])
    return best


def mode_filter(raster: Raster, size: int) -> Raster:
    """
    Majority colour over an size x size window, opaque pixels only.

    The window spans [-(size-1)//2, size-1-(size-1)//2]. Ties go to the colour
    that reached the winning count first in scan order. Opaque pixels come out
    with alpha 255; transparent pixels pass through.
    """
    n = int(size)
    h, w = raster.height, raster.width
    if n <= 1 or h == 0 or w == 0:
        return raster
    left = (n - 1) // 2
    right = n - 1 - left

    keys = _packed_keys(raster)
    opaque = raster.alpha >= OPAQUE_ALPHA
    out = raster.pixels.copy()

    for y, x in zip(*np.nonzero(opaque)):
        y0, y1 = max(0, y - left), min(h, y + right + 1)
        x0, x1 = max(0, x - left), min(w, x + right + 1)
        win_keys = keys[y0:y1, x0:x1]
        voters = win_keys[opaque[y0:y1, x0:x1]]
        out[y, x, :3] = unpack_rgb(_first_to_reach_max(voters))
        out[y, x, 3] = 255
    return Raster(out)


_NEIGHBOURS = ((1, 0), (-1, 0), (0, 1), (0, -1))


def _simplify_pass(out: np.ndarray, keys: np.ndarray, threshold: int) -> int:
    """One scan-order pass. Mutates out and keys; returns components repainted."""
    h, w = keys.shape
    opaque = out[..., 3] >= OPAQUE_ALPHA
    visited = ~opaque
    repainted = 0

    for sy in range(h):
        for sx in range(w):
            if visited[sy, sx]:
                continue
            key = int(keys[sy, sx])
            visited[sy, sx] = True
            queue = deque([(sy, sx)])
            comp: List[Tuple[int, int]] = []
            border: Dict[int, int] = {}
            while queue:
                cy, cx = queue.popleft()
                comp.append((cy, cx))
                for dx, dy in _NEIGHBOURS:
                    ny, nx = cy + dy, cx + dx
                    if ny < 0 or nx < 0 or ny >= h or nx >= w or not opaque[ny, nx]:
                        continue
                    nkey = int(keys[ny, nx])
                    if nkey == key:
                        if not visited[ny, nx]:
                            visited[ny, nx] = True
                            queue.append((ny, nx))
                    else:
                        border[nkey] = border.get(nkey, 0) + 1

            if len(comp) >= threshold or not border:
                continue
            top = max(border.values())
            new_key = min(k for k, c in border.items() if c == top)
            rgb = unpack_rgb(new_key)
            for cy, cx in comp:
                keys[cy, cx] = new_key
                out[cy, cx, :3] = rgb
                out[cy, cx, 3] = 255
            repainted += 1
    return repainted


def simplify_regions(raster: Raster, min_area: int) -> Raster:
    """
    Repaint 4-connected same-colour opaque components smaller than min_area with
    the most frequent differing opaque colour on their border (lowest packed rgb
    on ties). Passes repeat until nothing changes, so the result is stable.
    """
    threshold = int(min_area)
    if threshold <= 1 or raster.width == 0 or raster.height == 0:
        return raster
    out = raster.pixels.copy()
    keys = _packed_keys(raster)
    while _simplify_pass(out, keys, threshold):
        pass
    return Raster(out)


__all__ = [
    "dilate_mask",
    "erode",
    "outline",
    "mode_filter",
    "simplify_regions",
]
