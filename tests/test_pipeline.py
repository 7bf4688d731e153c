from __future__ import annotations

import numpy as np
import pytest

from conftest import solid
from wplace_convert.config import MatchPolicy, PipelineConfig, TransparencyPolicy
from wplace_convert.core_types import Raster
from wplace_convert.errors import ConfigError, EmptyPaletteError, NoImageLoadedError
from wplace_convert.pipeline import ImageProcessor, run_pipeline


def gradient_raster(width: int = 8, height: int = 8) -> Raster:
    arr = np.zeros((height, width, 4), dtype=np.uint8)
    arr[..., 0] = np.linspace(0, 255, width, dtype=np.uint8)[None, :]
    arr[..., 1] = 80
    arr[..., 2] = np.linspace(255, 0, height, dtype=np.uint8)[:, None]
    arr[..., 3] = 255
    arr[0, 0, 3] = 0
    return Raster(arr)


def test_operations_need_a_loaded_image(bw_palette):
    processor = ImageProcessor()
    with pytest.raises(NoImageLoadedError):
        processor.process(PipelineConfig(), bw_palette)
    with pytest.raises(NoImageLoadedError):
        processor.dimensions()
    with pytest.raises(NoImageLoadedError):
        processor.blur("box", 1)
    with pytest.raises(NoImageLoadedError):
        processor.pixel_data()


def test_load_clears_caches(bw_palette):
    processor = ImageProcessor()
    processor.load(solid(2, 2, (10, 10, 10, 255)))
    processor.quantize(bw_palette)
    assert processor.matcher.match_cache_size > 0
    processor.load(solid(3, 1, (10, 10, 10, 255)))
    assert processor.matcher.match_cache_size == 0
    assert processor.dimensions() == (3, 1)
    assert len(processor.pixel_data()) == 3 * 1 * 4


def test_run_pipeline_quantises_to_palette(wplace_palette):
    config = PipelineConfig(target_width=4, resample_method="box")
    result = run_pipeline(gradient_raster(), wplace_palette, config)
    out = result.raster
    assert out.size == (4, 4)
    assert set(np.unique(out.alpha).tolist()) <= {0, 255}
    colours = {e.rgb for e in wplace_palette}
    opaque = out.pixels[out.alpha == 255][:, :3]
    assert all(tuple(int(c) for c in px) in colours for px in opaque)
    assert result.valid_pixels == int(np.count_nonzero(out.alpha == 255))
    assert "resample" in result.timings and "quantize" in result.timings


def test_process_restarts_from_source(bw_palette):
    processor = ImageProcessor()
    processor.load(gradient_raster())
    config = PipelineConfig(
        target_width=2, target_height=2, blur_mode="box", blur_radius=1
    )
    first = processor.process(config, bw_palette)
    second = processor.process(config, bw_palette)
    assert np.array_equal(first.raster.pixels, second.raster.pixels)
    assert processor.dimensions() == (2, 2)
    processor.reset()
    assert processor.dimensions() == (8, 8)


def test_dither_stage_is_seeded(bw_palette):
    config = PipelineConfig(
        dither=True, dither_method="random", dither_strength=1.0, dither_seed=3
    )
    a = run_pipeline(gradient_raster(), bw_palette, config)
    b = run_pipeline(gradient_raster(), bw_palette, config)
    assert np.array_equal(a.raster.pixels, b.raster.pixels)
    assert a.valid_pixels == 63


def test_policies_flow_through(bw_palette):
    config = PipelineConfig(
        match=MatchPolicy(distance_space="rgb"),
        transparency=TransparencyPolicy(paint_transparent=True),
    )
    result = run_pipeline(gradient_raster(), bw_palette, config)
    assert result.valid_pixels == 64
    assert tuple(result.raster.pixels[0, 0]) == (0, 0, 0, 0)


def test_outline_runs_after_quantise(bw_palette):
    arr = np.zeros((6, 6, 4), dtype=np.uint8)
    arr[2:4, 2:4] = (255, 255, 255, 255)
    result = run_pipeline(Raster(arr), bw_palette, PipelineConfig(outline_thickness=1))
    out = result.raster.pixels
    assert tuple(out[1, 2]) == (0, 0, 0, 255)
    assert tuple(out[2, 2]) == (255, 255, 255, 255)
    assert result.valid_pixels == 4


def test_empty_palette_in_process():
    with pytest.raises(EmptyPaletteError):
        run_pipeline(gradient_raster(), [], PipelineConfig())


def test_debug_logs_each_stage(bw_palette, capsys):
    config = PipelineConfig(posterize_levels=4)
    run_pipeline(gradient_raster(), bw_palette, config, debug=True)
    out = capsys.readouterr().out
    assert "[debug] stage posterize" in out
    assert "[debug] stage quantize" in out


@pytest.mark.parametrize(
    "order",
    [
        ("adjust", "quantize"),
        ("resample", "quantize", "quantize"),
        ("resample", "sparkle", "quantize"),
        ("resample", "blur", "blur", "quantize"),
    ],
)
def test_stage_order_validation(order):
    with pytest.raises(ConfigError):
        PipelineConfig(stage_order=order)


def test_custom_stage_order_accepted():
    config = PipelineConfig(stage_order=["quantize", "resample"])
    assert config.stage_order == ("quantize", "resample")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"target_width": 0},
        {"dither_strength": 1.5},
        {"gamma": 0.0},
        {"posterize_levels": 0},
        {"erode_amount": -1},
        {"sharpen_radius": 0},
        {"edge_threshold": 300},
    ],
)
def test_config_validation(kwargs):
    with pytest.raises(ConfigError):
        PipelineConfig(**kwargs)


def test_target_size_keeps_aspect():
    assert PipelineConfig().target_size(40, 20) == (40, 20)
    assert PipelineConfig(target_width=10).target_size(40, 20) == (10, 5)
    assert PipelineConfig(target_height=10).target_size(40, 20) == (20, 10)
    assert PipelineConfig(target_width=3, target_height=7).target_size(40, 20) == (3, 7)
