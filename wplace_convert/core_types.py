# wplace_convert/core_types.py
from __future__ import annotations

"""
Core type aliases, small value objects, and lightweight helpers.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from .errors import RasterError

# Basic aliases

RGBTuple = Tuple[int, int, int]
FloatTriple = Tuple[float, float, float]
HexStr = str

U8Pixels = NDArray[np.uint8]  # (H, W, 4) RGBA
BoolMask = NDArray[np.bool_]  # (H, W)

# Value objects


@dataclass(frozen=True)
class Raster:
    """
    RGBA raster backed by a contiguous uint8 array of shape (height, width, 4).

    Stages never mutate a raster they receive; they return a new one.
    """

    pixels: U8Pixels

    def __post_init__(self) -> None:
        arr = self.pixels
        if not isinstance(arr, np.ndarray) or arr.dtype != np.uint8:
            raise RasterError("raster pixels must be a uint8 numpy array")
        if arr.ndim != 3 or arr.shape[2] != 4:
            raise RasterError(f"expected (H,W,4) pixels, got shape {arr.shape}")
        if not arr.flags["C_CONTIGUOUS"]:
            object.__setattr__(self, "pixels", np.ascontiguousarray(arr))

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def rgb(self) -> NDArray[np.uint8]:
        return self.pixels[..., :3]

    @property
    def alpha(self) -> NDArray[np.uint8]:
        return self.pixels[..., 3]

    @classmethod
    def blank(cls, width: int, height: int) -> "Raster":
        """Fully transparent black raster."""
        if width < 0 or height < 0:
            raise RasterError(f"negative raster size {width}x{height}")
        return cls(np.zeros((height, width, 4), dtype=np.uint8))

    @classmethod
    def filled(cls, width: int, height: int, rgba: Sequence[int]) -> "Raster":
        """Raster with every pixel set to one RGBA value."""
        if width < 0 or height < 0:
            raise RasterError(f"negative raster size {width}x{height}")
        arr = np.empty((height, width, 4), dtype=np.uint8)
        arr[...] = np.asarray(rgba, dtype=np.uint8)
        return cls(arr)

    @classmethod
    def from_bytes(
        cls, width: int, height: int, data: Union[bytes, bytearray, memoryview]
    ) -> "Raster":
        """Build from a flat RGBA byte sequence of exactly width*height*4 bytes."""
        if width < 0 or height < 0:
            raise RasterError(f"negative raster size {width}x{height}")
        expected = width * height * 4
        if len(data) != expected:
            raise RasterError(
                f"buffer has {len(data)} bytes, expected {expected} "
                f"for {width}x{height}"
            )
        arr = np.frombuffer(bytes(data), dtype=np.uint8).reshape(height, width, 4)
        return cls(arr.copy())

    def to_bytes(self) -> bytes:
        return self.pixels.tobytes()

    def copy(self) -> "Raster":
        return Raster(self.pixels.copy())


@dataclass(frozen=True)
class PaletteEntry:
    """Palette colour with the host's stable protocol id."""

    id: int
    rgb: RGBTuple
    name: str = ""


@dataclass(frozen=True)
class MatchResult:
    """Outcome of a palette lookup. id is None when nothing could be matched."""

    id: Optional[int]
    rgb: RGBTuple


@dataclass(frozen=True)
class QuantizeResult:
    """Quantised raster plus the number of pixels actually written."""

    raster: Raster
    valid_pixels: int


# Small helpers


def clamp_value(value: float, lo: float, hi: float) -> float:
    """Clamp value to [lo, hi]."""
    return lo if value < lo else hi if value > hi else value


def clamp_byte(value: float) -> int:
    """Round half up and clamp to 0..255."""
    v = int(value + 0.5) if value >= 0 else 0
    return 255 if v > 255 else v


def pack_rgb(r: int, g: int, b: int) -> int:
    """24-bit packed key used by the colour caches."""
    return (r << 16) | (g << 8) | b


def unpack_rgb(key: int) -> RGBTuple:
    return ((key >> 16) & 255, (key >> 8) & 255, key & 255)


def rgb_to_hex(rgb: RGBTuple) -> HexStr:
    """RGB tuple to lowercase hex string '#rrggbb'."""
    return f"#{rgb[0]:02x}{rgb[1]:02x}{rgb[2]:02x}"


def hex_to_rgb(hex_str: str) -> RGBTuple:
    """Parse '#rgb' or '#rrggbb' (case-insensitive) into an RGB tuple."""
    s = hex_str.strip().lower()
    if not s.startswith("#"):
        raise ValueError("hex must start with '#'")
    if len(s) == 4:
        r, g, b = s[1], s[2], s[3]
        s = f"#{r}{r}{g}{g}{b}{b}"
    if len(s) != 7:
        raise ValueError("hex must be '#rrggbb' or '#rgb'")
    return (int(s[1:3], 16), int(s[3:5], 16), int(s[5:7], 16))


def require_raster(raster: Raster) -> Raster:
    """Validate that a raster has a non-zero area."""
    if raster.width == 0 or raster.height == 0:
        raise RasterError(f"empty raster {raster.width}x{raster.height}")
    return raster


__all__ = [
    # aliases / types
    "RGBTuple",
    "FloatTriple",
    "HexStr",
    "U8Pixels",
    "BoolMask",
    # value objects
    "Raster",
    "PaletteEntry",
    "MatchResult",
    "QuantizeResult",
    # helpers
    "clamp_value",
    "clamp_byte",
    "pack_rgb",
    "unpack_rgb",
    "rgb_to_hex",
    "hex_to_rgb",
    "require_raster",
]
