from __future__ import annotations

import pytest

from wplace_convert.core_types import PaletteEntry, hex_to_rgb, rgb_to_hex
from wplace_convert.errors import ConfigError
from wplace_convert.palette_data import (
    WPLACE_PALETTE,
    build_palette,
    palette_from_records,
    restrict_palette,
)


def test_wplace_palette_shape():
    palette = build_palette()
    assert len(palette) == 63
    ids = [e.id for e in palette]
    assert len(set(ids)) == len(ids)
    by_id = {e.id: e for e in palette}
    assert by_id[1].rgb == (0, 0, 0)
    assert by_id[5].rgb == (255, 255, 255)
    assert by_id[5].name == "White"
    assert [e.id for e in palette] == [pid for pid, _, _ in WPLACE_PALETTE]


def test_palette_from_records():
    palette = palette_from_records(
        [
            {"id": 3, "r": 1, "g": 2, "b": 3},
            {"id": 4, "r": 1, "g": 2, "b": 3, "name": "again"},
        ]
    )
    assert palette == [
        PaletteEntry(3, (1, 2, 3), ""),
        PaletteEntry(4, (1, 2, 3), "again"),
    ]


@pytest.mark.parametrize(
    "records",
    [
        [{"id": 1, "r": 0, "g": 0, "b": 0}, {"id": 1, "r": 9, "g": 9, "b": 9}],
        [{"r": 0, "g": 0, "b": 0}],
        [{"id": 2, "r": 0, "g": 256, "b": 0}],
        [{"id": 2, "r": 0, "g": "x", "b": 0}],
        [["id", 1]],
    ],
)
def test_malformed_records(records):
    with pytest.raises(ConfigError):
        palette_from_records(records)


def test_restrict_keeps_palette_order():
    palette = build_palette()
    picked = restrict_palette(palette, [5, 1, 99])
    assert [e.id for e in picked] == [1, 5]
    assert restrict_palette(palette, []) == []


def test_hex_helpers():
    assert hex_to_rgb("#FFF") == (255, 255, 255)
    assert hex_to_rgb("#0a0b0c") == (10, 11, 12)
    assert rgb_to_hex((10, 11, 12)) == "#0a0b0c"
    with pytest.raises(ValueError):
        hex_to_rgb("123456")
