from __future__ import annotations

import numpy as np
import pytest

from conftest import from_rows, solid
from wplace_convert.colour_match import ColourMatcher
from wplace_convert.config import TransparencyPolicy
from wplace_convert.core_types import Raster
from wplace_convert.dither import DITHER_METHODS, apply_dithering, resolve_method
from wplace_convert.dither.ordered import threshold_map
from wplace_convert.errors import EmptyPaletteError
from wplace_convert.quantize import eligibility_mask, quantize


def test_bayer2_checkerboard_is_exact(matcher, bw_palette, checkerboard):
    result = apply_dithering(checkerboard, bw_palette, matcher, "bayer2", 1.0)
    assert np.array_equal(result.raster.pixels, checkerboard.pixels)
    assert result.valid_pixels == 16
    again = apply_dithering(checkerboard, bw_palette, ColourMatcher(), "bayer2", 1.0)
    assert np.array_equal(again.raster.pixels, result.raster.pixels)


def test_floyd_keeps_average_luminance(matcher, bw_palette):
    src = solid(32, 32, (128, 128, 128, 255))
    result = apply_dithering(src, bw_palette, matcher, "floyd")
    out = result.raster.pixels
    assert set(np.unique(out[..., 0]).tolist()) == {0, 255}
    assert abs(float(out[..., 0].mean()) - 128.0) < 12.0
    assert result.valid_pixels == 32 * 32
    assert np.all(out[..., 3] == 255)


@pytest.mark.parametrize("method", ["atkinson", "jarvis", "stucki", "burkes", "sierra"])
def test_diffusion_kernels_only_use_palette(matcher, bw_palette, method):
    src = solid(12, 9, (90, 90, 90, 255))
    out = apply_dithering(src, bw_palette, matcher, method).raster.pixels
    colours = {tuple(p) for p in out.reshape(-1, 4).tolist()}
    assert colours <= {(0, 0, 0, 255), (255, 255, 255, 255)}
    assert len(colours) == 2


def test_unknown_method_warns_and_matches_floyd(matcher, bw_palette, capsys):
    src = solid(10, 10, (100, 140, 90, 255))
    floyd = apply_dithering(src, bw_palette, matcher, "floyd")
    other = apply_dithering(src, bw_palette, ColourMatcher(), "no-such-dither")
    assert "[warn]" in capsys.readouterr().out
    assert np.array_equal(floyd.raster.pixels, other.raster.pixels)


def test_aliases():
    assert resolve_method("Floyd-Steinberg") == "floyd"
    assert resolve_method("ordered") == "bayer4"
    for name in DITHER_METHODS:
        assert resolve_method(name) == name


def test_empty_palette_raises(matcher):
    src = solid(2, 2, (1, 2, 3, 255))
    with pytest.raises(EmptyPaletteError):
        apply_dithering(src, [], matcher, "floyd")
    with pytest.raises(EmptyPaletteError):
        apply_dithering(src, [], matcher, "bayer4")
    with pytest.raises(EmptyPaletteError):
        quantize(src, [], matcher)


def test_random_dither_is_seeded(matcher, bw_palette):
    src = solid(16, 16, (128, 128, 128, 255))
    a = apply_dithering(
        src, bw_palette, matcher, "random", 1.0, rng=np.random.default_rng(7)
    )
    b = apply_dithering(
        src, bw_palette, matcher, "random", 1.0, rng=np.random.default_rng(7)
    )
    assert np.array_equal(a.raster.pixels, b.raster.pixels)


def test_strength_zero_is_plain_quantisation(matcher, wplace_palette):
    arr = np.random.default_rng(11).integers(0, 256, (8, 8, 4), dtype=np.uint8)
    arr[..., 3] = 255
    src = Raster(arr)
    dithered = apply_dithering(src, wplace_palette, matcher, "bayer8", 0.0)
    plain = quantize(src, wplace_palette, matcher)
    assert np.array_equal(dithered.raster.pixels, plain.raster.pixels)


def test_threshold_map_tiles_bayer():
    tm = threshold_map("bayer2", 3, 5)
    assert tm.shape == (3, 5)
    assert tm[0, 0] == tm[0, 2] == tm[2, 4] == 0.0
    assert tm[1, 0] == 0.75


def test_eligibility_rules():
    raster = from_rows(
        [
            [(10, 10, 10, 255), (250, 250, 250, 255)],
            [(10, 10, 10, 0), (10, 10, 10, 127)],
        ]
    )
    eligible, clear = eligibility_mask(raster)
    assert eligible.tolist() == [[True, True], [False, False]]
    assert not clear.any()

    policy = TransparencyPolicy(paint_transparent=True, paint_white=False)
    eligible, clear = eligibility_mask(raster, policy)
    assert eligible.tolist() == [[True, False], [True, True]]
    assert clear.tolist() == [[False, False], [True, True]]


@pytest.mark.parametrize("method", ["floyd", "bayer4"])
def test_valid_count_and_skipped_pixels(matcher, bw_palette, method):
    raster = from_rows(
        [
            [(10, 10, 10, 255), (250, 250, 250, 255)],
            [(90, 10, 10, 0), (10, 10, 10, 127)],
        ]
    )
    skip_white = TransparencyPolicy(paint_white=False)
    result = apply_dithering(
        raster, bw_palette, matcher, method, transparency_policy=skip_white
    )
    out = result.raster.pixels
    assert result.valid_pixels == 1
    assert tuple(out[0, 0]) == (0, 0, 0, 255)
    assert out[0, 1, 3] == 0 and out[1, 0, 3] == 0 and out[1, 1, 3] == 0

    paint_all = TransparencyPolicy(paint_transparent=True)
    result = apply_dithering(
        raster, bw_palette, matcher, method, transparency_policy=paint_all
    )
    assert result.valid_pixels == 4
    assert tuple(result.raster.pixels[1, 0]) == (0, 0, 0, 0)


def test_quantize_exact_match_drops_unknown_colours(matcher, bw_palette):
    raster = from_rows([[(0, 0, 0, 255), (3, 3, 3, 255), (255, 255, 255, 255)]])
    result = quantize(raster, bw_palette, matcher, exact_match=True)
    assert result.valid_pixels == 2
    assert result.raster.pixels[0, 1, 3] == 0
    assert result.raster.pixels[0, 2, 3] == 255


def test_floyd_drops_error_at_ineligible_neighbour(matcher, bw_palette):
    # (0, 0) goes black with error 100. Its 7/16 tap hits the transparent pixel
    # and is lost; 5/16 lifts (0, 1) to 131.25 (white), 1/16 lifts (1, 1) to
    # 106.25, then white's -123.75 * 7/16 pulls (1, 1) down to black.
    raster = from_rows(
        [
            [(100, 100, 100, 255), (200, 200, 200, 0)],
            [(100, 100, 100, 255), (100, 100, 100, 255)],
        ]
    )
    result = apply_dithering(raster, bw_palette, matcher, "floyd")
    out = result.raster.pixels
    assert result.valid_pixels == 3
    assert tuple(out[0, 0]) == (0, 0, 0, 255)
    assert tuple(out[0, 1]) == (200, 200, 200, 0)
    assert tuple(out[1, 0]) == (255, 255, 255, 255)
    assert tuple(out[1, 1]) == (0, 0, 0, 255)


def test_dropped_error_is_not_passed_further_along_the_row(matcher, bw_palette):
    row = [(100, 100, 100, 255), (200, 200, 200, 0), (100, 100, 100, 255)]
    result = apply_dithering(from_rows([row]), bw_palette, matcher, "floyd")
    out = result.raster.pixels
    # 100 + 7/16 * 100 would round up to white; undisturbed 100 stays black.
    assert tuple(out[0, 2]) == (0, 0, 0, 255)
    assert tuple(out[0, 1]) == (200, 200, 200, 0)
