# wplace_convert/filters/adjust.py
from __future__ import annotations

"""
Tone and colour adjustments on RGB (alpha untouched).
"""

from typing import Tuple

import numpy as np

from ..colour_convert import hsl_to_rgb, rgb_to_hsl
from ..constants import BRIGHTNESS_SCALE
from ..core_types import Raster, clamp_byte, clamp_value
from ..errors import ConfigError


def _correct_one(
    rgb: Tuple[int, int, int],
    brightness: float,
    contrast: float,
    saturation: float,
    hue: float,
    gamma: float,
) -> Tuple[int, int, int]:
    r, g, b = float(rgb[0]), float(rgb[1]), float(rgb[2])

    if brightness != 0:
        shift = brightness * BRIGHTNESS_SCALE
        r = clamp_value(r + shift, 0.0, 255.0)
        g = clamp_value(g + shift, 0.0, 255.0)
        b = clamp_value(b + shift, 0.0, 255.0)

    if contrast != 0:
        factor = (contrast + 100.0) / 100.0
        r = clamp_value((r - 128.0) * factor + 128.0, 0.0, 255.0)
        g = clamp_value((g - 128.0) * factor + 128.0, 0.0, 255.0)
        b = clamp_value((b - 128.0) * factor + 128.0, 0.0, 255.0)

    if saturation != 0:
        h, s, lightness = rgb_to_hsl(r, g, b)
        r, g, b = hsl_to_rgb(h, clamp_value(s + saturation, 0.0, 100.0), lightness)

    if hue != 0:
        h, s, lightness = rgb_to_hsl(r, g, b)
        r, g, b = hsl_to_rgb((h + hue) % 360.0, s, lightness)

    if gamma != 1.0:
        inv = 1.0 / gamma
        r = (r / 255.0) ** inv * 255.0
        g = (g / 255.0) ** inv * 255.0
        b = (b / 255.0) ** inv * 255.0

    return clamp_byte(r), clamp_byte(g), clamp_byte(b)


def colour_correct(
    raster: Raster,
    brightness: float = 0.0,
    contrast: float = 0.0,
    saturation: float = 0.0,
    hue: float = 0.0,
    gamma: float = 1.0,
) -> Raster:
    """
    Brightness, contrast, saturation, hue, gamma, in that order.

    brightness  -100..100, added as brightness * 2.55
    contrast    -100..100, linear around 128
    saturation  HSL saturation delta in percent points
    hue         HSL hue rotation in degrees
    gamma       > 0, applied as (v/255)^(1/gamma)
    """
    if gamma <= 0:
        raise ConfigError(f"gamma must be > 0, got {gamma}")
    if (brightness, contrast, saturation, hue, gamma) == (0, 0, 0, 0, 1.0):
        return raster
    if raster.width == 0 or raster.height == 0:
        return raster

    flat = raster.rgb.reshape(-1, 3)
    uniques, inverse = np.unique(flat, axis=0, return_inverse=True)
    mapped = np.array(
        [
            _correct_one(
                (int(u[0]), int(u[1]), int(u[2])),
                brightness,
                contrast,
                saturation,
                hue,
                gamma,
            )
            for u in uniques
        ],
        dtype=np.uint8,
    ).reshape(-1, 3)

    out = raster.pixels.copy()
    out[..., :3] = mapped[inverse.reshape(-1)].reshape(raster.height, raster.width, 3)
    return Raster(out)


def posterize(raster: Raster, levels: int) -> Raster:
    """Per-channel floor(v / step) * step with step = 256 / levels, RGB only."""
    if levels < 1:
        raise ConfigError(f"posterize levels must be >= 1, got {levels}")
    step = 256.0 / float(levels)
    rgb = raster.rgb.astype(np.float64)
    stepped = np.floor(rgb / step) * step
    out = raster.pixels.copy()
    out[..., :3] = np.clip(np.rint(stepped), 0, 255).astype(np.uint8)
    return Raster(out)


__all__ = ["colour_correct", "posterize"]
