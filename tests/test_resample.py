from __future__ import annotations

import numpy as np
import pytest

from conftest import solid
from wplace_convert.core_types import Raster
from wplace_convert.errors import ConfigError, RasterError
from wplace_convert.resample import integral_factor, resample


@pytest.mark.parametrize("size,factor", [(8, 2), (9, 3), (12, 4), (5, 5)])
def test_box_keeps_uniform_colour(size, factor):
    src = solid(size, size, (12, 200, 77, 255))
    out = resample(src, size // factor, size // factor, "box")
    assert out.size == (size // factor, size // factor)
    assert np.all(out.pixels == (12, 200, 77, 255))


def test_box_rounds_block_mean():
    arr = np.zeros((2, 2, 4), dtype=np.uint8)
    arr[..., 3] = 255
    arr[0, 0, 0] = 1
    arr[0, 1, 0] = 2
    out = resample(Raster(arr), 1, 1, "box")
    # (1 + 2 + 0 + 0) / 4 = 0.75
    assert out.pixels[0, 0, 0] == 1


def test_dominant_picks_majority():
    arr = np.zeros((4, 4, 4), dtype=np.uint8)
    arr[...] = (34, 68, 102, 255)
    arr[0, 0] = (255, 0, 0, 255)
    arr[1, 2] = (0, 255, 0, 255)
    arr[3, 3] = (0, 0, 255, 255)
    out = resample(Raster(arr), 1, 1, "dominant")
    assert tuple(out.pixels[0, 0]) == (34, 68, 102, 255)


def test_dominant_forces_opaque_and_quantises():
    src = solid(2, 2, (40, 40, 40, 90))
    out = resample(src, 1, 1, "dominant")
    # 40 >> 4 = 2, decoded as 2 * 17
    assert tuple(out.pixels[0, 0]) == (34, 34, 34, 255)


def test_median_uses_histogram_bins():
    arr = np.zeros((3, 3, 4), dtype=np.uint8)
    arr[..., 3] = 255
    arr[..., 0] = np.array([[0, 0, 0], [0, 200, 200], [200, 200, 200]])
    out = resample(Raster(arr), 1, 1, "median")
    # five of nine pixels sit in bin 12
    assert out.pixels[0, 0, 0] == 12 * 17
    assert out.pixels[0, 0, 3] == 255


def test_nearest_samples_pixel_centres():
    arr = np.arange(16, dtype=np.uint8).reshape(4, 4)
    pixels = np.zeros((4, 4, 4), dtype=np.uint8)
    pixels[..., 0] = arr
    out = resample(Raster(pixels), 2, 2, "nearest")
    assert out.pixels[..., 0].tolist() == [[5, 7], [13, 15]]


def test_upscale_nearest_repeats_pixels():
    src = Raster(np.array([[[1, 2, 3, 255], [9, 8, 7, 255]]], dtype=np.uint8))
    out = resample(src, 4, 2, "nearest")
    assert out.pixels[:, :2, 0].tolist() == [[1, 1], [1, 1]]
    assert out.pixels[:, 2:, 0].tolist() == [[9, 9], [9, 9]]


def test_block_method_with_fractional_factor_falls_back(capsys):
    src = Raster(np.random.default_rng(3).integers(0, 256, (7, 7, 4), dtype=np.uint8))
    via_box = resample(src, 3, 3, "box", debug=True)
    via_nearest = resample(src, 3, 3, "nearest")
    assert np.array_equal(via_box.pixels, via_nearest.pixels)
    assert "[debug]" in capsys.readouterr().out


def test_unknown_method_uses_nearest():
    src = Raster(np.random.default_rng(5).integers(0, 256, (6, 6, 4), dtype=np.uint8))
    assert np.array_equal(
        resample(src, 3, 3, "lanczos").pixels, resample(src, 3, 3).pixels
    )


def test_bilinear_shape_and_uniform_colour():
    out = resample(solid(10, 6, (50, 60, 70, 255)), 5, 3, "bilinear")
    assert out.size == (5, 3)
    assert np.all(out.pixels == (50, 60, 70, 255))


@pytest.mark.parametrize("method", ["box", "median", "dominant"])
def test_block_method_needs_same_factor_on_both_axes(method, capsys):
    # 4 -> 2 wide is integral (F = 2) but 4 -> 4 tall is not F = 2.
    src = Raster(np.random.default_rng(9).integers(0, 256, (4, 4, 4), dtype=np.uint8))
    out = resample(src, 2, 4, method, debug=True)
    assert out.size == (2, 4)
    assert np.array_equal(out.pixels, resample(src, 2, 4, "nearest").pixels)
    assert "[debug] resample" in capsys.readouterr().out


def test_box_runs_when_both_axes_share_the_factor():
    pixels = np.zeros((4, 2, 4), dtype=np.uint8)
    pixels[..., 3] = 255
    pixels[:2, :, 0] = [0, 100]
    pixels[2:, :, 0] = 50
    out = resample(Raster(pixels), 1, 2, "box")
    assert out.pixels[..., 0].tolist() == [[50], [50]]
    assert resample(Raster(pixels), 1, 2, "nearest").pixels[0, 0, 0] == 100


def test_integral_factor():
    assert integral_factor(8, 4) == 2
    assert integral_factor(9, 4) is None
    assert integral_factor(4, 4) == 1
    assert integral_factor(3, 6) is None


def test_invalid_sizes():
    with pytest.raises(ConfigError):
        resample(solid(4, 4, (0, 0, 0, 255)), 0, 2)
    with pytest.raises(RasterError):
        resample(Raster.blank(0, 0), 2, 2)
