from __future__ import annotations

import itertools

import pytest

from wplace_convert import colour_convert as cc

GRID = list(range(0, 256, 17)) + [1, 254]
SAMPLES = list(itertools.product(GRID, repeat=3))


@pytest.mark.parametrize("space", sorted(cc.FORWARD))
def test_round_trip_within_one(space):
    fwd, inv = cc.FORWARD[space], cc.INVERSE[space]
    worst = 0
    for rgb in SAMPLES:
        back = inv(*fwd(*rgb))
        worst = max(worst, *(abs(a - b) for a, b in zip(rgb, back)))
    assert worst <= 1


@pytest.mark.parametrize("space", ["hsv", "hsl", "lch"])
def test_hue_is_normalised(space):
    index = 2 if space == "lch" else 0
    for rgb in SAMPLES:
        h = cc.FORWARD[space](*rgb)[index]
        assert 0.0 <= h < 360.0


def test_reference_points():
    L, a, b = cc.rgb_to_lab(255, 255, 255)
    assert L == pytest.approx(100.0, abs=0.01)
    assert a == pytest.approx(0.0, abs=0.01)
    assert b == pytest.approx(0.0, abs=0.01)
    assert cc.rgb_to_lab(0, 0, 0)[0] == pytest.approx(0.0)

    ok_l, _, _ = cc.rgb_to_oklab(255, 255, 255)
    assert ok_l == pytest.approx(1.0, abs=1e-3)

    assert cc.rgb_to_hsv(255, 0, 0) == pytest.approx((0.0, 1.0, 1.0))
    assert cc.rgb_to_hsl(0, 0, 255) == pytest.approx((240.0, 100.0, 50.0))


def test_luv_black_inverse():
    assert cc.luv_to_rgb(0.0, 12.0, -7.0) == (0, 0, 0)
    assert cc.rgb_to_luv(0, 0, 0)[0] == 0.0


def test_inverses_clamp_out_of_gamut():
    assert cc.yuv_to_rgb(300.0, 0.0, 0.0) == (255, 255, 255)
    assert cc.lab_to_rgb(50.0, 200.0, 0.0)[1] == 0


def test_luma_weights():
    assert cc.luma(255, 255, 255) == pytest.approx(255.0)
    assert cc.luma(100, 0, 0) == pytest.approx(29.9)
