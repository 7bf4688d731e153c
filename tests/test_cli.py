from __future__ import annotations

import json

import numpy as np
import pytest
from PIL import Image

import convert_image
from wplace_convert.image_io import load_raster, save_raster
from conftest import from_rows


def write_png(path, rows):
    Image.fromarray(np.array(rows, dtype=np.uint8)).save(path)
    return path


@pytest.fixture
def small_png(tmp_path):
    rows = [
        [(250, 10, 10, 255), (250, 10, 10, 255), (10, 10, 250, 255), (0, 0, 0, 0)],
        [(250, 10, 10, 255), (250, 10, 10, 255), (10, 10, 250, 255), (0, 0, 0, 0)],
    ]
    return write_png(tmp_path / "sprite.png", rows)


def test_png_round_trip(tmp_path):
    raster = from_rows(
        [[(1, 2, 3, 255), (4, 5, 6, 0)], [(7, 8, 9, 128), (0, 0, 0, 255)]]
    )
    written = save_raster(tmp_path / "out.webp", raster)
    assert written.suffix == ".png"
    assert np.array_equal(load_raster(written).pixels, raster.pixels)


def test_cli_converts_single_file(small_png, capsys):
    convert_image.main([str(small_png), "--colours", "1,5,7,19"])
    out_path = small_png.with_name("sprite_wplace.png")
    assert out_path.exists()
    raster = load_raster(out_path)
    assert raster.size == (4, 2)
    assert raster.alpha[0, 3] == 0
    text = capsys.readouterr().out
    assert "[run]" in text
    assert "Colours used:" in text
    assert "Valid pixels: 6" in text
    assert "#ed1c24" in text


def test_cli_resize_dither_and_outdir(tmp_path, small_png, capsys):
    outdir = tmp_path / "out"
    convert_image.main(
        [
            str(small_png),
            "--outdir",
            str(outdir),
            "--width",
            "2",
            "--resample",
            "box",
            "--dither",
            "--match",
            "oklab",
        ]
    )
    raster = load_raster(outdir / "sprite_wplace.png")
    assert raster.size == (2, 1)
    assert "Colours used:" in capsys.readouterr().out


def test_cli_folder_mode_skips_outputs(tmp_path, capsys):
    rows = [[(120, 120, 120, 255)]]
    write_png(tmp_path / "a.png", rows)
    write_png(tmp_path / "b.png", rows)
    write_png(tmp_path / "c_wplace.png", rows)
    convert_image.main([str(tmp_path), "--jobs", "2"])
    assert (tmp_path / "a_wplace.png").exists()
    assert (tmp_path / "b_wplace.png").exists()
    assert not (tmp_path / "c_wplace_wplace.png").exists()
    text = capsys.readouterr().out
    assert text.index("=== a.png ===") < text.index("=== b.png ===")


def test_cli_custom_palette_file(tmp_path, small_png):
    palette = tmp_path / "palette.json"
    palette.write_text(json.dumps([{"id": 42, "r": 0, "g": 200, "b": 0}]))
    out = tmp_path / "green.png"
    convert_image.main([str(small_png), "--palette", str(palette), "--out", str(out)])
    raster = load_raster(out)
    opaque = raster.pixels[raster.alpha == 255]
    assert np.all(opaque[:, :3] == (0, 200, 0))


def test_cli_missing_source_exits_2(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        convert_image.main([str(tmp_path / "nope.png")])
    assert exc.value.code == 2
    assert "not found" in capsys.readouterr().err


def test_cli_bad_config_exits_2(small_png, capsys):
    with pytest.raises(SystemExit) as exc:
        convert_image.main([str(small_png), "--colours", "999"])
    assert exc.value.code == 2
    assert "[error] palette is empty" in capsys.readouterr().err

    with pytest.raises(SystemExit) as exc:
        convert_image.main([str(small_png), "--stage-order", "resample"])
    assert exc.value.code == 2
