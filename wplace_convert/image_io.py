# wplace_convert/image_io.py
from __future__ import annotations

"""
Image file I/O for the CLI: decode to an sRGB RGBA Raster and encode back to PNG.
"""

import io
from pathlib import Path

import numpy as np
from PIL import Image, ImageCms, ImageOps, UnidentifiedImageError

from .core_types import Raster
from .errors import RasterError


def _convert_to_srgb_rgba(im: Image.Image) -> Image.Image:
    """Apply EXIF orientation, then convert an embedded ICC profile to sRGB."""
    im = ImageOps.exif_transpose(im)
    icc_bytes = im.info.get("icc_profile")

    if icc_bytes:
        try:
            src_prof = ImageCms.ImageCmsProfile(io.BytesIO(icc_bytes))
            dst_prof = ImageCms.createProfile("sRGB")
            im2 = ImageCms.profileToProfile(
                im.convert("RGBA"),
                src_prof,
                dst_prof,
                renderingIntent=ImageCms.Intent.PERCEPTUAL,
                outputMode="RGBA",
            )
            if im2 is not None:
                return im2
        except (ImageCms.PyCMSError, OSError, ValueError):
            # Broken or unsupported profile: keep the raw pixels.
            return im.convert("RGBA")

    return im.convert("RGBA")


def load_raster(path: Path) -> Raster:
    """Decode any Pillow-readable image into an RGBA Raster."""
    try:
        with Image.open(path) as im0:
            im = _convert_to_srgb_rgba(im0)
            arr = np.array(im, dtype=np.uint8)
    except UnidentifiedImageError as exc:
        raise RasterError(f"not an image: {path}") from exc
    return Raster(np.ascontiguousarray(arr))


def save_raster(path: Path, raster: Raster) -> Path:
    """Write raster as PNG. A non-.png suffix is replaced with .png."""
    path = Path(path)
    if path.suffix.lower() != ".png":
        path = path.with_suffix(".png")
    Image.fromarray(raster.pixels).save(path)
    return path


__all__ = ["load_raster", "save_raster"]
