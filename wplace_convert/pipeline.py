# wplace_convert/pipeline.py
from __future__ import annotations

"""
ImageProcessor: owns the loaded raster and the matcher caches, exposes one
method per stage, and runs a full PipelineConfig in its stage order.

Default order:
  adjust -> blur -> sharpen -> resample -> edges -> posterize -> mode
  -> simplify -> erode -> quantize (or dither) -> outline
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Sequence, Tuple

import numpy as np

from .colour_match import ColourMatcher
from .config import MatchPolicy, PipelineConfig, TransparencyPolicy
from .constants import (
    DEFAULT_DITHER_METHOD,
    DEFAULT_DITHER_STRENGTH,
    LAB_CACHE_LIMIT,
    MATCH_CACHE_LIMIT,
    POSTERIZE_OFF_LEVELS,
)
from .core_types import PaletteEntry, QuantizeResult, Raster, require_raster
from .dither import apply_dithering
from .errors import NoImageLoadedError
from .filters import (
    apply_blur,
    colour_correct,
    edge_overlay,
    erode,
    mode_filter,
    outline,
    posterize,
    sharpen,
    simplify_regions,
)
from .quantize import quantize as quantize_raster
from .resample import resample
from .utils import debug_log, format_seconds_compact

NEUTRAL_ADJUST = (0.0, 0.0, 0.0, 0.0, 1.0)


@dataclass(frozen=True)
class PipelineResult:
    raster: Raster
    valid_pixels: int
    timings: Dict[str, float] = field(default_factory=dict)


class ImageProcessor:
    """
    Stateful wrapper around one working raster.

    Stage methods replace the working raster with their output and return it.
    process() always starts from the raster given to load().
    """

    def __init__(
        self,
        cache_limit: int = MATCH_CACHE_LIMIT,
        lab_cache_limit: int = LAB_CACHE_LIMIT,
    ) -> None:
        self.matcher = ColourMatcher(cache_limit, lab_cache_limit)
        self._source: Optional[Raster] = None
        self._raster: Optional[Raster] = None
        self.valid_pixels: int = 0

    # state

    def load(self, raster: Raster) -> None:
        """Set a new source raster and drop all cached colour lookups."""
        require_raster(raster)
        self._source = raster
        self._raster = raster
        self.valid_pixels = 0
        self.clear_caches()

    def reset(self) -> Raster:
        """Restore the working raster to the loaded source."""
        self._raster = self._require_source()
        self.valid_pixels = 0
        return self._raster

    def clear_caches(self) -> None:
        self.matcher.clear_caches()

    def _require_source(self) -> Raster:
        if self._source is None:
            raise NoImageLoadedError("no image loaded")
        return self._source

    @property
    def raster(self) -> Raster:
        if self._raster is None:
            raise NoImageLoadedError("no image loaded")
        return self._raster

    def dimensions(self) -> Tuple[int, int]:
        return self.raster.size

    def pixel_data(self) -> bytes:
        """Flat RGBA bytes of the working raster, row-major."""
        return self.raster.to_bytes()

    def _set(self, raster: Raster) -> Raster:
        self._raster = raster
        return raster

    # stages

    def adjust_colours(
        self,
        brightness: float = 0.0,
        contrast: float = 0.0,
        saturation: float = 0.0,
        hue: float = 0.0,
        gamma: float = 1.0,
    ) -> Raster:
        return self._set(
            colour_correct(self.raster, brightness, contrast, saturation, hue, gamma)
        )

    def blur(self, mode: str = "box", radius: int = 1) -> Raster:
        return self._set(apply_blur(self.raster, mode, radius))

    def sharpen(
        self, amount: float = 0.5, radius: int = 1, threshold: int = 0
    ) -> Raster:
        return self._set(sharpen(self.raster, amount, radius, threshold))

    def resize(
        self, width: int, height: int, method: str = "nearest", debug: bool = False
    ) -> Raster:
        return self._set(resample(self.raster, width, height, method, debug=debug))

    def edge_overlay(
        self,
        algorithm: str = "sobel",
        threshold: float = 60,
        thickness: int = 1,
        thin: bool = False,
    ) -> Raster:
        return self._set(
            edge_overlay(self.raster, algorithm, threshold, thickness, thin)
        )

    def posterize(self, levels: int) -> Raster:
        return self._set(posterize(self.raster, levels))

    def mode_filter(self, size: int) -> Raster:
        return self._set(mode_filter(self.raster, size))

    def simplify(self, min_area: int) -> Raster:
        return self._set(simplify_regions(self.raster, min_area))

    def erode(self, amount: int) -> Raster:
        return self._set(erode(self.raster, amount))

    def outline(self, thickness: int) -> Raster:
        return self._set(outline(self.raster, thickness))

    def _store(self, result: QuantizeResult) -> QuantizeResult:
        self._raster = result.raster
        self.valid_pixels = result.valid_pixels
        return result

    def quantize(
        self,
        palette: Sequence[PaletteEntry],
        match_policy: Optional[MatchPolicy] = None,
        transparency_policy: Optional[TransparencyPolicy] = None,
        exact_match: bool = False,
    ) -> QuantizeResult:
        return self._store(
            quantize_raster(
                self.raster,
                palette,
                self.matcher,
                match_policy,
                transparency_policy,
                exact_match,
            )
        )

    def dither(
        self,
        palette: Sequence[PaletteEntry],
        method: str = DEFAULT_DITHER_METHOD,
        strength: float = DEFAULT_DITHER_STRENGTH,
        match_policy: Optional[MatchPolicy] = None,
        transparency_policy: Optional[TransparencyPolicy] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> QuantizeResult:
        return self._store(
            apply_dithering(
                self.raster,
                palette,
                self.matcher,
                method,
                strength,
                match_policy,
                transparency_policy,
                rng,
            )
        )

    # full run

    def _stage_runner(
        self,
        stage: str,
        config: PipelineConfig,
        palette: Tuple[PaletteEntry, ...],
        debug: bool,
    ) -> Optional[Callable[[], object]]:
        """Callable for an enabled stage, or None when config switches it off."""
        c = config
        if stage == "adjust":
            tone = (c.brightness, c.contrast, c.saturation, c.hue, c.gamma)
            if tone == NEUTRAL_ADJUST:
                return None
            return lambda: self.adjust_colours(
                c.brightness, c.contrast, c.saturation, c.hue, c.gamma
            )
        if stage == "blur":
            if c.blur_mode == "none" or c.blur_radius <= 0:
                return None
            return lambda: self.blur(c.blur_mode, c.blur_radius)
        if stage == "sharpen":
            if c.sharpen_amount <= 0:
                return None
            return lambda: self.sharpen(
                c.sharpen_amount, c.sharpen_radius, c.sharpen_threshold
            )
        if stage == "resample":
            tw, th = c.target_size(self.raster.width, self.raster.height)
            if (tw, th) == self.raster.size:
                return None
            return lambda: self.resize(tw, th, c.resample_method, debug=debug)
        if stage == "edges":
            if not c.edge_overlay:
                return None
            return lambda: self.edge_overlay(
                c.edge_algorithm, c.edge_threshold, c.edge_thickness, c.edge_thin
            )
        if stage == "posterize":
            levels = c.posterize_levels
            if levels is None or levels >= POSTERIZE_OFF_LEVELS:
                return None
            return lambda: self.posterize(levels)
        if stage == "mode":
            if c.mode_filter_size <= 1:
                return None
            return lambda: self.mode_filter(c.mode_filter_size)
        if stage == "simplify":
            if c.simplify_min_area <= 1:
                return None
            return lambda: self.simplify(c.simplify_min_area)
        if stage == "erode":
            if c.erode_amount <= 0:
                return None
            return lambda: self.erode(c.erode_amount)
        if stage == "quantize":
            if c.dither:
                rng = np.random.default_rng(c.dither_seed)
                return lambda: self.dither(
                    palette,
                    c.dither_method,
                    c.dither_strength,
                    c.match,
                    c.transparency,
                    rng,
                )
            return lambda: self.quantize(
                palette, c.match, c.transparency, c.exact_match
            )
        if stage == "outline":
            if c.outline_thickness <= 0:
                return None
            return lambda: self.outline(c.outline_thickness)
        return None

    def process(
        self,
        config: Optional[PipelineConfig] = None,
        palette: Sequence[PaletteEntry] = (),
        debug: bool = False,
    ) -> PipelineResult:
        """
        Run every enabled stage of config in config.stage_order, starting from
        the loaded source. Raises NoImageLoadedError before load() and
        EmptyPaletteError when the quantise stage gets no palette.
        """
        config = config or PipelineConfig()
        self.reset()
        pal = tuple(palette)
        timings: Dict[str, float] = {}

        for stage in config.stage_order:
            runner = self._stage_runner(stage, config, pal, debug)
            if runner is None:
                continue
            t0 = time.perf_counter()
            runner()
            timings[stage] = time.perf_counter() - t0
            if debug:
                w, h = self.raster.size
                took = format_seconds_compact(timings[stage])
                debug_log(f"stage {stage}: {w}x{h} in {took}")

        return PipelineResult(self.raster, self.valid_pixels, timings)


def run_pipeline(
    raster: Raster,
    palette: Sequence[PaletteEntry],
    config: Optional[PipelineConfig] = None,
    debug: bool = False,
) -> PipelineResult:
    """One-shot helper: fresh processor, load, process."""
    processor = ImageProcessor()
    processor.load(raster)
    return processor.process(config, palette, debug=debug)


__all__ = ["PipelineResult", "ImageProcessor", "run_pipeline"]
