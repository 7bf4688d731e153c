# wplace_convert/palette_data.py
from __future__ import annotations

"""
Palette definitions and builders.

Exports:
  WPLACE_PALETTE: list[tuple[int, str, str]]  # [(id, hex, name), ...]
  build_palette(records=WPLACE_PALETTE) -> list[PaletteEntry]
  palette_from_records([{"id", "r", "g", "b"}, ...]) -> list[PaletteEntry]
  restrict_palette(palette, ids) -> list[PaletteEntry]
"""

from typing import Any, Iterable, List, Mapping, Sequence, Tuple

from .core_types import PaletteEntry, hex_to_rgb
from .errors import ConfigError

# Ids are the host's colour indices; 0 is reserved for transparent.
WPLACE_PALETTE: List[Tuple[int, str, str]] = [
    (1, "#000000", "Black"),
    (2, "#3c3c3c", "Dark Gray"),
    (3, "#787878", "Gray"),
    (4, "#d2d2d2", "Light Gray"),
    (5, "#ffffff", "White"),
    (6, "#600018", "Deep Red"),
    (7, "#ed1c24", "Red"),
    (8, "#ff7f27", "Orange"),
    (9, "#f6aa09", "Gold"),
    (10, "#f9dd3b", "Yellow"),
    (11, "#fffabc", "Light Yellow"),
    (12, "#0eb968", "Dark Green"),
    (13, "#13e67b", "Green"),
    (14, "#87ff5e", "Light Green"),
    (15, "#0c816e", "Dark Teal"),
    (16, "#10aea6", "Teal"),
    (17, "#13e1be", "Light Teal"),
    (18, "#28509e", "Dark Blue"),
    (19, "#4093e4", "Blue"),
    (20, "#60f7f2", "Cyan"),
    (21, "#6b50f6", "Indigo"),
    (22, "#99b1fb", "Light Indigo"),
    (23, "#780c99", "Dark Purple"),
    (24, "#aa38b9", "Purple"),
    (25, "#e09ff9", "Light Purple"),
    (26, "#cb007a", "Dark Pink"),
    (27, "#ec1f80", "Pink"),
    (28, "#f38da9", "Light Pink"),
    (29, "#684634", "Dark Brown"),
    (30, "#95682a", "Brown"),
    (31, "#f8b277", "Beige"),
    (32, "#aaaaaa", "Medium Gray"),
    (33, "#a50e1e", "Dark Red"),
    (34, "#fa8072", "Light Red"),
    (35, "#e45c1a", "Dark Orange"),
    (36, "#d6b594", "Light Tan"),
    (37, "#9c8431", "Dark Goldenrod"),
    (38, "#c5ad31", "Goldenrod"),
    (39, "#e8d45f", "Light Goldenrod"),
    (40, "#4a6b3a", "Dark Olive"),
    (41, "#5a944a", "Olive"),
    (42, "#84c573", "Light Olive"),
    (43, "#0f799f", "Dark Cyan"),
    (44, "#bbfaf2", "Light Cyan"),
    (45, "#7dc7ff", "Light Blue"),
    (46, "#4d31b8", "Dark Indigo"),
    (47, "#4a4284", "Dark Slate Blue"),
    (48, "#7a71c4", "Slate Blue"),
    (49, "#b5aef1", "Light Slate Blue"),
    (50, "#dba463", "Light Brown"),
    (51, "#d18051", "Dark Beige"),
    (52, "#ffc5a5", "Light Beige"),
    (53, "#9b5249", "Dark Peach"),
    (54, "#d18078", "Peach"),
    (55, "#fab6a4", "Light Peach"),
    (56, "#7b6352", "Dark Tan"),
    (57, "#9c846b", "Tan"),
    (58, "#333941", "Dark Slate"),
    (59, "#6d758d", "Slate"),
    (60, "#b3b9d1", "Light Slate"),
    (61, "#6d643f", "Dark Stone"),
    (62, "#948c6b", "Stone"),
    (63, "#cdc59e", "Light Stone"),
]


def build_palette(
    records: Iterable[Tuple[int, str, str]] = WPLACE_PALETTE,
) -> List[PaletteEntry]:
    """Convert (id, hex, name) triples into PaletteEntry objects, order kept."""
    return [PaletteEntry(int(pid), hex_to_rgb(hx), name) for pid, hx, name in records]


def _channel(record: Mapping[str, Any], key: str) -> int:
    try:
        value = int(record[key])
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigError(f"palette record {record!r} has no valid {key!r}") from exc
    if not 0 <= value <= 255:
        raise ConfigError(f"palette record {record!r}: {key}={value} is out of 0..255")
    return value


def palette_from_records(records: Iterable[Mapping[str, Any]]) -> List[PaletteEntry]:
    """
    Build a palette from host-style records: {"id": int, "r": u8, "g": u8, "b": u8}.

    An optional "name" key is kept. Duplicate ids and malformed records raise
    ConfigError; duplicate colours are allowed.
    """
    out: List[PaletteEntry] = []
    seen = set()
    for record in records:
        if not isinstance(record, Mapping):
            raise ConfigError(f"palette record must be a mapping, got {record!r}")
        try:
            pid = int(record["id"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ConfigError(f"palette record {record!r} has no valid 'id'") from exc
        if pid in seen:
            raise ConfigError(f"duplicate palette id {pid}")
        seen.add(pid)
        rgb = (_channel(record, "r"), _channel(record, "g"), _channel(record, "b"))
        out.append(PaletteEntry(pid, rgb, str(record.get("name", ""))))
    return out


def restrict_palette(
    palette: Sequence[PaletteEntry], ids: Iterable[int]
) -> List[PaletteEntry]:
    """Keep entries whose id is in ids, preserving palette order."""
    wanted = {int(i) for i in ids}
    return [entry for entry in palette if entry.id in wanted]


__all__ = [
    "WPLACE_PALETTE",
    "build_palette",
    "palette_from_records",
    "restrict_palette",
]
