# wplace_convert/__init__.py
"""
wplace_convert package.

Purpose:
  Convert RGBA rasters into palette-limited pixel art for wplace. See
  convert_image.py for the CLI.

Public API:
  ImageProcessor : stateful pipeline (load, per-stage methods, process).
  run_pipeline   : one-shot convenience wrapper.
  PipelineConfig : every stage knob plus the stage order.
  MatchPolicy    : palette distance settings (rgb, hsv, oklab, lab).
  ColourMatcher  : cached nearest palette colour search.
  resample       : nearest / bilinear / box / median / dominant resizing.
  apply_dithering: error-diffusion and ordered dithering.
  filters        : blur, sharpen, posterize, mode, simplify, edges, erode, outline.
  colour_convert : scalar colour space transforms.
  palette_data   : the wplace palette and palette builders.

Quick start:
  from wplace_convert import Raster, PipelineConfig, build_palette, run_pipeline
  result = run_pipeline(raster, build_palette(), PipelineConfig(target_width=64))
"""

__version__ = "0.1.0"

from . import colour_convert, filters, palette_data, utils
from .colour_match import BoundedCache, ColourMatcher, is_white
from .config import MatchPolicy, PipelineConfig, TransparencyPolicy
from .core_types import MatchResult, PaletteEntry, QuantizeResult, Raster
from .dither import apply_dithering
from .errors import (
    ConfigError,
    EmptyPaletteError,
    NoImageLoadedError,
    RasterError,
    WplaceConvertError,
)
from .palette_data import (
    WPLACE_PALETTE,
    build_palette,
    palette_from_records,
    restrict_palette,
)
from .pipeline import ImageProcessor, PipelineResult, run_pipeline
from .quantize import eligibility_mask, quantize
from .resample import resample

__all__ = [
    "__version__",
    "colour_convert",
    "filters",
    "palette_data",
    "utils",
    "BoundedCache",
    "ColourMatcher",
    "is_white",
    "MatchPolicy",
    "PipelineConfig",
    "TransparencyPolicy",
    "MatchResult",
    "PaletteEntry",
    "QuantizeResult",
    "Raster",
    "apply_dithering",
    "ConfigError",
    "EmptyPaletteError",
    "NoImageLoadedError",
    "RasterError",
    "WplaceConvertError",
    "WPLACE_PALETTE",
    "build_palette",
    "palette_from_records",
    "restrict_palette",
    "ImageProcessor",
    "PipelineResult",
    "run_pipeline",
    "eligibility_mask",
    "quantize",
    "resample",
]
