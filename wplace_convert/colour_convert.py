# wplace_convert/colour_convert.py
from __future__ import annotations

"""
Colour conversions (sRGB, D65).

Scalar forward/inverse pairs for every space the matcher and filters use:
  rgb_to_xyz   / xyz_to_rgb
  rgb_to_lab   / lab_to_rgb
  rgb_to_luv   / luv_to_rgb
  rgb_to_lch   / lch_to_rgb     (via Lab)
  rgb_to_oklab / oklab_to_rgb
  rgb_to_hsv   / hsv_to_rgb     (h in degrees, s and v in 0..1)
  rgb_to_hsl   / hsl_to_rgb     (h in degrees, s and l in 0..100)
  rgb_to_yuv   / yuv_to_rgb     (BT.601, 0..255 scale)

Forward functions take 0..255 channels (ints or floats) and return float triples.
Inverse functions return clamped, rounded 0..255 int triples.
Caching is left to callers (see colour_match.ColourMatcher).
"""

import math

import numpy as np

from .core_types import FloatTriple, RGBTuple, U8Pixels

# D65 reference white
XN, YN, ZN = 0.95047, 1.00000, 1.08883

# Lab / Luv breakpoints (CIE, classic approximations)
LAB_EPSILON = 0.008856
LAB_KAPPA_SLOPE = 7.787
LUV_KAPPA = 903.3

_U_PRIME_N = (4.0 * XN) / (XN + 15.0 * YN + 3.0 * ZN)
_V_PRIME_N = (9.0 * YN) / (XN + 15.0 * YN + 3.0 * ZN)


# sRGB transfer curve


def srgb_to_linear(c: float) -> float:
    """sRGB (non-linear 0..1) to linear (0..1)."""
    return c / 12.92 if c <= 0.04045 else ((c + 0.055) / 1.055) ** 2.4


def linear_to_srgb(c: float) -> float:
    """Linear (0..1) to sRGB (non-linear 0..1). Negative input maps to 0."""
    if c <= 0.0031308:
        return 12.92 * c
    return 1.055 * c ** (1.0 / 2.4) - 0.055


def _unit_to_byte(c: float) -> int:
    c = 0.0 if c < 0.0 else 1.0 if c > 1.0 else c
    return int(math.floor(c * 255.0 + 0.5))


def _clamp_round(c: float) -> int:
    c = 0.0 if c < 0.0 else 255.0 if c > 255.0 else c
    return int(math.floor(c + 0.5))


def luma(r: float, g: float, b: float) -> float:
    """BT.601 luma on the 0..255 scale."""
    return 0.299 * r + 0.587 * g + 0.114 * b


def luma_array(rgb: np.ndarray) -> np.ndarray:
    """Vectorised luma for an (..., 3) array. Returns float64."""
    rgb_f = rgb.astype(np.float64, copy=False)
    return 0.299 * rgb_f[..., 0] + 0.587 * rgb_f[..., 1] + 0.114 * rgb_f[..., 2]


def gray_u8(pixels: U8Pixels) -> np.ndarray:
    """Rounded luma as an int32 (H, W) array."""
    return np.floor(luma_array(pixels[..., :3]) + 0.5).astype(np.int32)


# XYZ


def rgb_to_xyz(r: float, g: float, b: float) -> FloatTriple:
    """sRGB 0..255 to CIE XYZ (D65, Y in 0..1)."""
    rl = srgb_to_linear(r / 255.0)
    gl = srgb_to_linear(g / 255.0)
    bl = srgb_to_linear(b / 255.0)
    x = 0.4124564 * rl + 0.3575761 * gl + 0.1804375 * bl
    y = 0.2126729 * rl + 0.7151522 * gl + 0.0721750 * bl
    z = 0.0193339 * rl + 0.1191920 * gl + 0.9503041 * bl
    return (x, y, z)


def xyz_to_rgb(x: float, y: float, z: float) -> RGBTuple:
    rl = 3.2404542 * x - 1.5371385 * y - 0.4985314 * z
    gl = -0.9692660 * x + 1.8760108 * y + 0.0415560 * z
    bl = 0.0556434 * x - 0.2040259 * y + 1.0572252 * z
    return (
        _unit_to_byte(linear_to_srgb(rl)),
        _unit_to_byte(linear_to_srgb(gl)),
        _unit_to_byte(linear_to_srgb(bl)),
    )


# Lab


def _lab_f(t: float) -> float:
    return t ** (1.0 / 3.0) if t > LAB_EPSILON else LAB_KAPPA_SLOPE * t + 16.0 / 116.0


def _lab_f_inv(f: float) -> float:
    f3 = f * f * f
    return f3 if f3 > LAB_EPSILON else (f - 16.0 / 116.0) / LAB_KAPPA_SLOPE


def rgb_to_lab(r: float, g: float, b: float) -> FloatTriple:
    """sRGB 0..255 to CIE Lab (D65). L in 0..100."""
    x, y, z = rgb_to_xyz(r, g, b)
    fx = _lab_f(x / XN)
    fy = _lab_f(y / YN)
    fz = _lab_f(z / ZN)
    return (116.0 * fy - 16.0, 500.0 * (fx - fy), 200.0 * (fy - fz))


def lab_to_rgb(L: float, a: float, b: float) -> RGBTuple:
    fy = (L + 16.0) / 116.0
    fx = fy + a / 500.0
    fz = fy - b / 200.0
    return xyz_to_rgb(XN * _lab_f_inv(fx), YN * _lab_f_inv(fy), ZN * _lab_f_inv(fz))


# LCh (cylindrical Lab)


def lab_to_lch(L: float, a: float, b: float) -> FloatTriple:
    """Lab to LCh with hue in degrees [0, 360)."""
    c = math.hypot(a, b)
    h = math.degrees(math.atan2(b, a)) % 360.0
    return (L, c, h)


def lch_to_lab(L: float, c: float, h: float) -> FloatTriple:
    h_rad = math.radians(h)
    return (L, c * math.cos(h_rad), c * math.sin(h_rad))


def rgb_to_lch(r: float, g: float, b: float) -> FloatTriple:
    return lab_to_lch(*rgb_to_lab(r, g, b))


def lch_to_rgb(L: float, c: float, h: float) -> RGBTuple:
    return lab_to_rgb(*lch_to_lab(L, c, h))


# Luv


def rgb_to_luv(r: float, g: float, b: float) -> FloatTriple:
    """sRGB 0..255 to CIE Luv (D65). L in 0..100."""
    x, y, z = rgb_to_xyz(r, g, b)
    yr = y / YN
    L = 116.0 * yr ** (1.0 / 3.0) - 16.0 if yr > LAB_EPSILON else LUV_KAPPA * yr
    denom = x + 15.0 * y + 3.0 * z
    if denom == 0.0:
        up = vp = 0.0
    else:
        up = 4.0 * x / denom
        vp = 9.0 * y / denom
    return (L, 13.0 * L * (up - _U_PRIME_N), 13.0 * L * (vp - _V_PRIME_N))


def luv_to_rgb(L: float, u: float, v: float) -> RGBTuple:
    # L == 0 is black whatever u, v say; the general formula divides by L.
    if L <= 0.0:
        return (0, 0, 0)
    y = YN * ((L + 16.0) / 116.0) ** 3 if L > 8.0 else YN * L / LUV_KAPPA
    up = u / (13.0 * L) + _U_PRIME_N
    vp = v / (13.0 * L) + _V_PRIME_N
    if vp == 0.0:
        return (0, 0, 0)
    x = y * 9.0 * up / (4.0 * vp)
    z = y * (12.0 - 3.0 * up - 20.0 * vp) / (4.0 * vp)
    return xyz_to_rgb(x, y, z)


# Oklab


def rgb_to_oklab(r: float, g: float, b: float) -> FloatTriple:
    """sRGB 0..255 to Oklab (L roughly 0..1)."""
    rl = srgb_to_linear(r / 255.0)
    gl = srgb_to_linear(g / 255.0)
    bl = srgb_to_linear(b / 255.0)

    l_ = math.pow(0.4122214708 * rl + 0.5363325363 * gl + 0.0514459929 * bl, 1.0 / 3.0)
    m_ = math.pow(0.2119034982 * rl + 0.6806995451 * gl + 0.1073969566 * bl, 1.0 / 3.0)
    s_ = math.pow(0.0883024619 * rl + 0.2817188376 * gl + 0.6299787005 * bl, 1.0 / 3.0)

    return (
        0.2104542553 * l_ + 0.7936177850 * m_ - 0.0040720468 * s_,
        1.9779984951 * l_ - 2.4285922050 * m_ + 0.4505937099 * s_,
        0.0259040371 * l_ + 0.7827717662 * m_ - 0.8086757660 * s_,
    )


def oklab_to_rgb(L: float, a: float, b: float) -> RGBTuple:
    l_ = L + 0.3963377774 * a + 0.2158037573 * b
    m_ = L - 0.1055613458 * a - 0.0638541728 * b
    s_ = L - 0.0894841775 * a - 1.2914855480 * b

    l3, m3, s3 = l_ * l_ * l_, m_ * m_ * m_, s_ * s_ * s_

    rl = 4.0767416621 * l3 - 3.3077115913 * m3 + 0.2309699292 * s3
    gl = -1.2684380046 * l3 + 2.6097574011 * m3 - 0.3413193965 * s3
    bl = -0.0041960863 * l3 - 0.7034186147 * m3 + 1.7076147010 * s3
    return (
        _unit_to_byte(linear_to_srgb(rl)),
        _unit_to_byte(linear_to_srgb(gl)),
        _unit_to_byte(linear_to_srgb(bl)),
    )


# HSV / HSL


def _hue_degrees(r: float, g: float, b: float, mx: float, delta: float) -> float:
    if delta == 0.0:
        return 0.0
    if mx == r:
        h = ((g - b) / delta) % 6.0
    elif mx == g:
        h = (b - r) / delta + 2.0
    else:
        h = (r - g) / delta + 4.0
    return (h * 60.0) % 360.0


def rgb_to_hsv(r: float, g: float, b: float) -> FloatTriple:
    """sRGB 0..255 to HSV: h degrees [0,360), s and v in 0..1."""
    r, g, b = r / 255.0, g / 255.0, b / 255.0
    mx = max(r, g, b)
    delta = mx - min(r, g, b)
    s = 0.0 if mx == 0.0 else delta / mx
    return (_hue_degrees(r, g, b, mx, delta), s, mx)


def hsv_to_rgb(h: float, s: float, v: float) -> RGBTuple:
    h = h % 360.0
    c = v * s
    x = c * (1.0 - abs((h / 60.0) % 2.0 - 1.0))
    m = v - c
    sector = int(h // 60.0)
    r, g, b = (
        (c, x, 0.0),
        (x, c, 0.0),
        (0.0, c, x),
        (0.0, x, c),
        (x, 0.0, c),
        (c, 0.0, x),
    )[min(sector, 5)]
    return (_unit_to_byte(r + m), _unit_to_byte(g + m), _unit_to_byte(b + m))


def rgb_to_hsl(r: float, g: float, b: float) -> FloatTriple:
    """sRGB 0..255 to HSL: h degrees [0,360), s and l in 0..100."""
    r, g, b = r / 255.0, g / 255.0, b / 255.0
    mx = max(r, g, b)
    mn = min(r, g, b)
    delta = mx - mn
    lightness = (mx + mn) / 2.0
    if delta == 0.0:
        return (0.0, 0.0, lightness * 100.0)
    s = delta / (2.0 - mx - mn) if lightness > 0.5 else delta / (mx + mn)
    return (_hue_degrees(r, g, b, mx, delta), s * 100.0, lightness * 100.0)


def _hue_to_channel(p: float, q: float, t: float) -> float:
    if t < 0.0:
        t += 1.0
    if t > 1.0:
        t -= 1.0
    if t < 1.0 / 6.0:
        return p + (q - p) * 6.0 * t
    if t < 0.5:
        return q
    if t < 2.0 / 3.0:
        return p + (q - p) * (2.0 / 3.0 - t) * 6.0
    return p


def hsl_to_rgb(h: float, s: float, lightness: float) -> RGBTuple:
    h = (h % 360.0) / 360.0
    s /= 100.0
    lightness /= 100.0
    if s == 0.0:
        v = _unit_to_byte(lightness)
        return (v, v, v)
    q = lightness * (1.0 + s) if lightness < 0.5 else lightness + s - lightness * s
    p = 2.0 * lightness - q
    return (
        _unit_to_byte(_hue_to_channel(p, q, h + 1.0 / 3.0)),
        _unit_to_byte(_hue_to_channel(p, q, h)),
        _unit_to_byte(_hue_to_channel(p, q, h - 1.0 / 3.0)),
    )


# YUV


def rgb_to_yuv(r: float, g: float, b: float) -> FloatTriple:
    """BT.601 YUV on the 0..255 scale."""
    y = luma(r, g, b)
    u = -0.14713 * r - 0.28886 * g + 0.436 * b
    v = 0.615 * r - 0.51499 * g - 0.10001 * b
    return (y, u, v)


def yuv_to_rgb(y: float, u: float, v: float) -> RGBTuple:
    return (
        _clamp_round(y + 1.13983 * v),
        _clamp_round(y - 0.39465 * u - 0.58060 * v),
        _clamp_round(y + 2.03211 * u),
    )


# Lookup by name (used by tests and the matcher)

FORWARD = {
    "xyz": rgb_to_xyz,
    "lab": rgb_to_lab,
    "luv": rgb_to_luv,
    "lch": rgb_to_lch,
    "oklab": rgb_to_oklab,
    "hsv": rgb_to_hsv,
    "hsl": rgb_to_hsl,
    "yuv": rgb_to_yuv,
}

INVERSE = {
    "xyz": xyz_to_rgb,
    "lab": lab_to_rgb,
    "luv": luv_to_rgb,
    "lch": lch_to_rgb,
    "oklab": oklab_to_rgb,
    "hsv": hsv_to_rgb,
    "hsl": hsl_to_rgb,
    "yuv": yuv_to_rgb,
}


__all__ = [
    "srgb_to_linear",
    "linear_to_srgb",
    "luma",
    "luma_array",
    "gray_u8",
    "rgb_to_xyz",
    "xyz_to_rgb",
    "rgb_to_lab",
    "lab_to_rgb",
    "lab_to_lch",
    "lch_to_lab",
    "rgb_to_lch",
    "lch_to_rgb",
    "rgb_to_luv",
    "luv_to_rgb",
    "rgb_to_oklab",
    "oklab_to_rgb",
    "rgb_to_hsv",
    "hsv_to_rgb",
    "rgb_to_hsl",
    "hsl_to_rgb",
    "rgb_to_yuv",
    "yuv_to_rgb",
    "FORWARD",
    "INVERSE",
]
