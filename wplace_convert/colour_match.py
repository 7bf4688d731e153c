# wplace_convert/colour_match.py
from __future__ import annotations

"""
Nearest palette colour search.

ColourMatcher owns two bounded caches:
  - match results keyed by (packed rgb, policy, mode)
  - Lab triples keyed by packed rgb

Scores per distance space:
  rgb    red-mean weighted distance with integer >>8 shifts
  hsv    (circular dh / 360)^2 + ds^2 + dv^2
  oklab  squared Euclidean
  lab    squared Euclidean, plus an optional chroma penalty

The first strictly lowest score wins; a zero score ends the scan.
"""

from typing import Any, Callable, Dict, Hashable, Optional, Sequence, Tuple

import numpy as np

from .colour_convert import rgb_to_hsv, rgb_to_lab, rgb_to_oklab
from .config import MatchPolicy
from .constants import CHROMA_PENALTY_MIN, LAB_CACHE_LIMIT, MATCH_CACHE_LIMIT
from .core_types import (
    FloatTriple,
    MatchResult,
    PaletteEntry,
    RGBTuple,
    clamp_byte,
    pack_rgb,
)

_DEFAULT_POLICY = MatchPolicy()


class BoundedCache:
    """Dict memo with a hard cap. Cleared wholesale when full."""

    def __init__(self, limit: int) -> None:
        if limit < 1:
            raise ValueError("cache limit must be >= 1")
        self.limit = int(limit)
        self._data: Dict[Hashable, Any] = {}

    def get(self, key: Hashable, default: Any = None) -> Any:
        return self._data.get(key, default)

    def put(self, key: Hashable, value: Any) -> None:
        if key not in self._data and len(self._data) >= self.limit:
            self._data.clear()
        self._data[key] = value

    def clear(self) -> None:
        self._data.clear()

    def __contains__(self, key: Hashable) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


def is_white(r: float, g: float, b: float, threshold: int) -> bool:
    return r >= threshold and g >= threshold and b >= threshold


def _as_target(target: Sequence[float]) -> RGBTuple:
    return (clamp_byte(target[0]), clamp_byte(target[1]), clamp_byte(target[2]))


class _PreparedPalette:
    """Per-entry coordinates for one palette, built once per palette change."""

    def __init__(
        self,
        entries: Tuple[PaletteEntry, ...],
        lab_of: Callable[[RGBTuple], FloatTriple],
    ) -> None:
        self.entries = entries
        self.rgb = np.array([e.rgb for e in entries], dtype=np.int64).reshape(-1, 3)
        self.lab = np.array([lab_of(e.rgb) for e in entries], dtype=np.float64).reshape(
            -1, 3
        )
        self.chroma = np.hypot(self.lab[:, 1], self.lab[:, 2])
        self._oklab: Optional[np.ndarray] = None
        self._hsv: Optional[np.ndarray] = None

    @property
    def oklab(self) -> np.ndarray:
        if self._oklab is None:
            self._oklab = np.array(
                [rgb_to_oklab(*e.rgb) for e in self.entries], dtype=np.float64
            ).reshape(-1, 3)
        return self._oklab

    @property
    def hsv(self) -> np.ndarray:
        if self._hsv is None:
            self._hsv = np.array(
                [rgb_to_hsv(*e.rgb) for e in self.entries], dtype=np.float64
            ).reshape(-1, 3)
        return self._hsv


class ColourMatcher:
    """
    Palette matcher with bounded memo caches.

    The prepared palette is rebuilt (and the match cache cleared) whenever a
    palette with different contents is passed in. Passing the same sequence
    object again is the fast path.
    """

    def __init__(
        self,
        cache_limit: int = MATCH_CACHE_LIMIT,
        lab_cache_limit: int = LAB_CACHE_LIMIT,
    ) -> None:
        self._match_cache = BoundedCache(cache_limit)
        self._lab_cache = BoundedCache(lab_cache_limit)
        self._palette_key: Optional[Tuple[PaletteEntry, ...]] = None
        self._prepared: Optional[_PreparedPalette] = None

    # caches

    def clear_caches(self) -> None:
        self._match_cache.clear()
        self._lab_cache.clear()
        self._palette_key = None
        self._prepared = None

    @property
    def match_cache_size(self) -> int:
        return len(self._match_cache)

    @property
    def lab_cache_size(self) -> int:
        return len(self._lab_cache)

    def lab(self, rgb: RGBTuple) -> FloatTriple:
        """Cached Lab triple for an integer RGB tuple."""
        key = pack_rgb(*rgb)
        hit = self._lab_cache.get(key)
        if hit is None:
            hit = rgb_to_lab(*rgb)
            self._lab_cache.put(key, hit)
        return hit

    def _bind(self, palette: Sequence[PaletteEntry]) -> _PreparedPalette:
        key = tuple(palette)
        if key != self._palette_key or self._prepared is None:
            self._match_cache.clear()
            self._prepared = _PreparedPalette(key, self.lab)
            self._palette_key = key
        return self._prepared

    # scoring

    def _scores(
        self, target: RGBTuple, prepared: _PreparedPalette, policy: MatchPolicy
    ) -> np.ndarray:
        space = policy.distance_space
        if space == "rgb":
            pal = prepared.rgb
            tr, tg, tb = target
            rmean = (pal[:, 0] + tr) / 2.0
            dr = pal[:, 0] - tr
            dg = pal[:, 1] - tg
            db = pal[:, 2] - tb
            red = np.floor((512.0 + rmean) * dr * dr).astype(np.int64) >> 8
            blue = np.floor((767.0 - rmean) * db * db).astype(np.int64) >> 8
            return np.sqrt((red + 4 * dg * dg + blue).astype(np.float64))
        if space == "hsv":
            ht, st, vt = rgb_to_hsv(*target)
            pal = prepared.hsv
            dh_raw = np.abs(pal[:, 0] - ht)
            dh = np.minimum(dh_raw, 360.0 - dh_raw) / 360.0
            return dh * dh + (pal[:, 1] - st) ** 2 + (pal[:, 2] - vt) ** 2
        if space == "oklab":
            diff = prepared.oklab - np.asarray(rgb_to_oklab(*target))
            return np.einsum("ij,ij->i", diff, diff)

        lab_t = self.lab(target)
        diff = prepared.lab - np.asarray(lab_t)
        dist = np.einsum("ij,ij->i", diff, diff)
        if policy.chroma_penalty and policy.chroma_penalty_weight > 0:
            target_chroma = float(np.hypot(lab_t[1], lab_t[2]))
            if target_chroma > CHROMA_PENALTY_MIN:
                gap = np.maximum(target_chroma - prepared.chroma, 0.0)
                dist = dist + gap * gap * policy.chroma_penalty_weight
        return dist

    def _best(
        self, target: RGBTuple, prepared: _PreparedPalette, policy: MatchPolicy
    ) -> MatchResult:
        scores = self._scores(target, prepared, policy)
        # argmin returns the first minimum, which is also where a zero-score scan stops.
        idx = int(np.argmin(scores))
        entry = prepared.entries[idx]
        return MatchResult(entry.id, entry.rgb)

    # public API

    def find_closest(
        self,
        target: Sequence[float],
        palette: Sequence[PaletteEntry],
        policy: MatchPolicy = _DEFAULT_POLICY,
    ) -> MatchResult:
        """
        Closest palette entry to target under policy.

        Float targets are rounded and clamped to 0..255 first.
        An empty palette returns MatchResult(None, target).
        """
        rgb = _as_target(target)
        if not palette:
            return MatchResult(None, rgb)
        prepared = self._bind(palette)
        key = (pack_rgb(*rgb), policy, "closest")
        hit = self._match_cache.get(key)
        if hit is not None:
            return hit
        result = self._best(rgb, prepared, policy)
        self._match_cache.put(key, result)
        return result

    def resolve_colour(
        self,
        target: Sequence[float],
        palette: Sequence[PaletteEntry],
        policy: MatchPolicy = _DEFAULT_POLICY,
        exact_match: bool = False,
    ) -> MatchResult:
        """
        find_closest plus two policies:
          exact_match  first entry with identical rgb, else the sentinel
          white        near-white targets snap to the closest near-white entry
        """
        rgb = _as_target(target)
        if not palette:
            return MatchResult(None, rgb)
        prepared = self._bind(palette)
        mode = "exact" if exact_match else "resolve"
        key = (pack_rgb(*rgb), policy, mode)
        hit = self._match_cache.get(key)
        if hit is not None:
            return hit

        if exact_match:
            result = MatchResult(None, rgb)
            for entry in prepared.entries:
                if entry.rgb == rgb:
                    result = MatchResult(entry.id, entry.rgb)
                    break
            self._match_cache.put(key, result)
            return result

        thr = policy.white_threshold
        if is_white(*rgb, thr):
            white = (prepared.rgb >= thr).all(axis=1)
            if white.any():
                scores = self._scores(rgb, prepared, policy)
                scores = np.where(white, scores, np.inf)
                entry = prepared.entries[int(np.argmin(scores))]
                result = MatchResult(entry.id, entry.rgb)
                self._match_cache.put(key, result)
                return result

        result = self.find_closest(rgb, palette, policy)
        self._match_cache.put(key, result)
        return result


__all__ = [
    "BoundedCache",
    "ColourMatcher",
    "is_white",
]
