#!/usr/bin/env python3
"""
convert_image.py
Convert RGBA images into wplace palette pixel art.

Usage:
  python convert_image.py INPUT [--out OUTPUT] [--width W] [--height H]
      [--resample nearest|bilinear|box|median|dominant] [--match lab|oklab|hsv|rgb]
      [--dither [METHOD]] [--strength S] [--colours 1,5,7] [--palette FILE.json]
      [--debug]

Pipeline (default order, see --stage-order):
  adjust -> blur -> sharpen -> resample -> edges -> posterize -> mode
  -> simplify -> erode -> quantize (or dither) -> outline

Input:
  Any Pillow-readable image, or a folder of them (files run in --jobs worker
  processes). EXIF orientation and embedded ICC profiles are honoured.

Output:
  PNG. If --out is omitted, writes <stem>_wplace.png next to INPUT (or in --outdir).

Palette:
  The 63 wplace colours by default. --palette takes a JSON list of
  {"id": int, "r": u8, "g": u8, "b": u8, "name": str?} records. --colours keeps
  only the listed ids.
"""

from __future__ import annotations

import argparse
import io
import json
import os
import sys
import time
from concurrent.futures import ProcessPoolExecutor
from contextlib import redirect_stdout
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from wplace_convert.config import MatchPolicy, PipelineConfig, TransparencyPolicy
from wplace_convert.constants import (
    DEFAULT_DITHER_METHOD,
    DEFAULT_DITHER_STRENGTH,
    DEFAULT_EDGE_THRESHOLD,
    DEFAULT_STAGE_ORDER,
    RESAMPLE_METHODS,
    TRANSPARENCY_THRESHOLD,
    WHITE_THRESHOLD,
)
from wplace_convert.core_types import PaletteEntry
from wplace_convert.errors import ConfigError, WplaceConvertError
from wplace_convert.image_io import load_raster, save_raster
from wplace_convert.palette_data import (
    build_palette,
    palette_from_records,
    restrict_palette,
)
from wplace_convert.pipeline import ImageProcessor
from wplace_convert.utils import (
    colour_usage_report,
    debug_log,
    enable_line_buffered_stdout,
    error,
    format_seconds_compact,
    format_total_duration_compact,
    key_value_pairs_to_string,
    log,
    print_banner,
    print_config_line,
)

IMAGE_EXTS = {".png", ".jpg", ".jpeg", ".webp", ".bmp", ".gif"}
OUTPUT_SUFFIX = "_wplace"

# CLI args & small helpers


def parse_cli_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parse CLI arguments for palette conversion.

    Every PipelineConfig field has a flag; stages are off unless asked for.
    """
    parser = argparse.ArgumentParser(
        prog="convert_image",
        description="Convert image(s) to the wplace palette.",
    )
    parser.add_argument("src", type=Path, help="Input image or folder")
    parser.add_argument(
        "--out", type=Path, default=None, help="Output file (single image only)"
    )
    parser.add_argument(
        "--outdir", type=Path, default=None, help="Output directory (optional)"
    )

    g = parser.add_argument_group("palette")
    g.add_argument(
        "--palette", type=Path, default=None, help="JSON palette file (id, r, g, b)"
    )
    g.add_argument(
        "--colours",
        "--colors",
        dest="colours",
        default=None,
        help="Comma separated palette ids to keep, e.g. 1,5,7",
    )

    g = parser.add_argument_group("resample")
    g.add_argument("--width", type=int, default=None, help="Target width")
    g.add_argument("--height", type=int, default=None, help="Target height")
    g.add_argument(
        "--resample",
        choices=list(RESAMPLE_METHODS),
        default="nearest",
        help="Scaling method. Block methods need an integral scale factor.",
    )

    g = parser.add_argument_group("matching")
    g.add_argument(
        "--match",
        default="lab",
        help="Distance space: lab, oklab, hsv, rgb (alias legacy)",
    )
    g.add_argument(
        "--chroma-penalty", action="store_true", help="Penalise greys for vivid input"
    )
    g.add_argument("--chroma-weight", type=float, default=None)
    g.add_argument("--exact", action="store_true", help="Only keep exact matches")
    g.add_argument("--white-threshold", type=int, default=WHITE_THRESHOLD)
    g.add_argument(
        "--transparency-threshold", type=int, default=TRANSPARENCY_THRESHOLD
    )
    g.add_argument(
        "--paint-transparent",
        action="store_true",
        help="Write transparent pixels as clear instead of skipping them",
    )
    g.add_argument(
        "--skip-white", action="store_true", help="Leave near-white pixels unpainted"
    )

    g = parser.add_argument_group("dither")
    g.add_argument(
        "--dither",
        nargs="?",
        const=DEFAULT_DITHER_METHOD,
        default=None,
        help=f"Dither method. Omit value for {DEFAULT_DITHER_METHOD}.",
    )
    g.add_argument("--strength", type=float, default=DEFAULT_DITHER_STRENGTH)
    g.add_argument("--seed", type=int, default=None, help="Seed for random dither")

    g = parser.add_argument_group("colour correction")
    g.add_argument("--brightness", type=float, default=0.0)
    g.add_argument("--contrast", type=float, default=0.0)
    g.add_argument("--saturation", type=float, default=0.0)
    g.add_argument("--hue", type=float, default=0.0)
    g.add_argument("--gamma", type=float, default=1.0)

    g = parser.add_argument_group("filters")
    g.add_argument("--blur", default="none", help="none, box, gaussian, kuwahara")
    g.add_argument("--blur-radius", type=int, default=1)
    g.add_argument("--sharpen", type=float, default=0.0, help="Sharpen amount")
    g.add_argument("--sharpen-radius", type=int, default=1)
    g.add_argument("--sharpen-threshold", type=int, default=0)
    g.add_argument(
        "--edges",
        nargs="?",
        const="sobel",
        default=None,
        help="Edge overlay algorithm: sobel, prewitt, roberts, laplacian",
    )
    g.add_argument("--edge-threshold", type=int, default=DEFAULT_EDGE_THRESHOLD)
    g.add_argument("--edge-thickness", type=int, default=1)
    g.add_argument("--edge-thin", action="store_true")
    g.add_argument("--posterize", type=int, default=None, help="Levels per channel")
    g.add_argument("--mode-filter", type=int, default=0, help="Window size")
    g.add_argument("--simplify", type=int, default=0, help="Minimum region area")
    g.add_argument("--erode", type=int, default=0, help="Erosion passes")
    g.add_argument("--outline", type=int, default=0, help="Outline thickness")
    g.add_argument(
        "--stage-order",
        default=None,
        help=f"Comma separated stages (default {','.join(DEFAULT_STAGE_ORDER)})",
    )

    parser.add_argument(
        "--jobs", type=int, default=2, help="Files processed in parallel"
    )
    parser.add_argument("--debug", action="store_true", help="Verbose stage details")
    return parser.parse_args(argv)


def _parse_id_list(text: str) -> List[int]:
    try:
        return [int(part) for part in text.split(",") if part.strip()]
    except ValueError as exc:
        raise ConfigError(f"--colours expects ids like 1,5,7, got {text!r}") from exc


def build_config(args: argparse.Namespace) -> PipelineConfig:
    """Translate parsed flags into a validated PipelineConfig."""
    match_kwargs = {}
    if args.chroma_weight is not None:
        match_kwargs["chroma_penalty_weight"] = args.chroma_weight
    match = MatchPolicy(
        distance_space=args.match,
        chroma_penalty=args.chroma_penalty,
        white_threshold=args.white_threshold,
        **match_kwargs,
    )
    transparency = TransparencyPolicy(
        paint_transparent=args.paint_transparent,
        paint_white=not args.skip_white,
        transparency_threshold=args.transparency_threshold,
        white_threshold=args.white_threshold,
    )
    stage_order = DEFAULT_STAGE_ORDER
    if args.stage_order:
        stage_order = tuple(
            s.strip().lower() for s in args.stage_order.split(",") if s.strip()
        )
    return PipelineConfig(
        target_width=args.width,
        target_height=args.height,
        resample_method=args.resample,
        match=match,
        transparency=transparency,
        exact_match=args.exact,
        dither=args.dither is not None,
        dither_method=args.dither or DEFAULT_DITHER_METHOD,
        dither_strength=args.strength,
        dither_seed=args.seed,
        brightness=args.brightness,
        contrast=args.contrast,
        saturation=args.saturation,
        hue=args.hue,
        gamma=args.gamma,
        blur_mode=args.blur,
        blur_radius=args.blur_radius if args.blur != "none" else 0,
        sharpen_amount=args.sharpen,
        sharpen_radius=args.sharpen_radius,
        sharpen_threshold=args.sharpen_threshold,
        edge_overlay=args.edges is not None,
        edge_algorithm=args.edges or "sobel",
        edge_threshold=args.edge_threshold,
        edge_thickness=args.edge_thickness,
        edge_thin=args.edge_thin,
        posterize_levels=args.posterize,
        mode_filter_size=args.mode_filter,
        simplify_min_area=args.simplify,
        erode_amount=args.erode,
        outline_thickness=args.outline,
        stage_order=stage_order,
    )


def load_palette(
    palette_path: Optional[Path], colours: Optional[str]
) -> List[PaletteEntry]:
    """Default wplace palette or a JSON file, optionally restricted to ids."""
    if palette_path is None:
        palette = build_palette()
    else:
        try:
            records = json.loads(palette_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigError(f"cannot read palette {palette_path}: {exc}") from exc
        if not isinstance(records, list):
            raise ConfigError(f"palette {palette_path} must hold a JSON list")
        palette = palette_from_records(records)
    if colours:
        palette = restrict_palette(palette, _parse_id_list(colours))
    if not palette:
        raise ConfigError("palette is empty")
    return palette


# Per-file processing


def _process_single_image(
    src_path: Path,
    out_path: Optional[Path],
    config: PipelineConfig,
    palette: Sequence[PaletteEntry],
    debug: bool,
) -> bool:
    """
    Process a single image path end-to-end:
      load -> pipeline -> save -> report.
    Returns False when the file could not be converted.
    """
    t_start = time.perf_counter()
    if out_path is None:
        out_path = src_path.with_name(f"{src_path.stem}{OUTPUT_SUFFIX}.png")

    print_banner(src_path.name)

    try:
        raster = load_raster(src_path)
    except (OSError, WplaceConvertError) as exc:
        error(f"{src_path.name}: {exc}")
        return False
    t_loaded = time.perf_counter()

    if debug:
        alpha = raster.alpha
        debug_log(
            key_value_pairs_to_string(
                [
                    ("Loaded", f"{raster.width}x{raster.height}"),
                    ("Alpha=255", int((alpha == 255).sum())),
                    ("Alpha=0", int((alpha == 0).sum())),
                ]
            )
        )

    processor = ImageProcessor()
    processor.load(raster)
    try:
        result = processor.process(config, palette, debug=debug)
    except WplaceConvertError as exc:
        error(f"{src_path.name}: {exc}")
        return False
    t_processed = time.perf_counter()

    written = save_raster(out_path, result.raster)
    t_saved = time.perf_counter()

    # Report
    width, height = result.raster.size
    log(
        f"Wrote {written.name} | size={width}x{height} | palette_size={len(palette)}"
    )
    log("Colours used:")
    for pid, hex_code, name, count in colour_usage_report(result.raster, palette):
        pid_text = "-" if pid is None else str(pid)
        log(f"  {pid_text:>3}  {hex_code}  {name}: {count:,}")
    log(f"Valid pixels: {result.valid_pixels:,}")

    if debug:
        stages = ", ".join(
            f"{name}={format_seconds_compact(secs)}"
            for name, secs in result.timings.items()
        )
        debug_log(
            f"Total {format_total_duration_compact(t_saved - t_start)}  "
            f"(load={format_seconds_compact(t_loaded - t_start)}, "
            f"process={format_seconds_compact(t_processed - t_loaded)}, "
            f"save={format_seconds_compact(t_saved - t_processed)})"
        )
        if stages:
            debug_log(f"stages: {stages}")
    else:
        log(f"Total time {format_total_duration_compact(t_saved - t_start)}")
    return True


def _process_one_captured(
    path: Path,
    outdir: Optional[Path],
    config: PipelineConfig,
    palette: Sequence[PaletteEntry],
    debug: bool,
) -> Tuple[str, bool]:
    """
    Process a single file with stdout capture.

    Used for concurrent execution where output should be printed in order.
    """
    buf = io.StringIO()
    with redirect_stdout(buf):
        ok = _process_single_image(
            path, _output_path(path, outdir), config, palette, debug
        )
    return buf.getvalue(), ok


def _output_path(path: Path, outdir: Optional[Path]) -> Optional[Path]:
    """Destination inside outdir, or None to write next to the source."""
    if outdir is None:
        return None
    return outdir / f"{path.stem}{OUTPUT_SUFFIX}.png"


def _list_images(folder: Path) -> List[Path]:
    files = [
        p
        for p in folder.iterdir()
        if p.is_file()
        and p.suffix.lower() in IMAGE_EXTS
        and not p.stem.endswith(OUTPUT_SUFFIX)
    ]
    files.sort(key=lambda p: p.name.lower())
    return files


# Entry point


def main(argv: Optional[Sequence[str]] = None) -> None:
    """
    CLI entry point.

    Handles single file or folder. In folder mode supports --jobs parallelism
    while preserving readable output ordering.
    """
    enable_line_buffered_stdout()
    args = parse_cli_args(argv)

    print_config_line(
        "run",
        [("CPU cores", os.cpu_count() or 1), ("Jobs", args.jobs)],
        debug=False,
    )

    src: Path = args.src
    if not src.exists():
        print(f"error: not found: {src}", file=sys.stderr, flush=True)
        sys.exit(2)

    try:
        config = build_config(args)
        palette = load_palette(args.palette, args.colours)
    except ConfigError as exc:
        error(str(exc))
        sys.exit(2)

    print_config_line(
        "pipeline",
        [
            ("Size", f"{config.target_width or '-'}x{config.target_height or '-'}"),
            ("Resample", config.resample_method),
            ("Match", config.match.distance_space),
            ("Dither", config.dither_method if config.dither else False),
            ("Palette", len(palette)),
        ],
        debug=False,
    )
    if args.debug:
        debug_log(f"stage order: {' -> '.join(config.stage_order)}")

    if args.outdir is not None:
        args.outdir.mkdir(parents=True, exist_ok=True)

    if src.is_dir():
        files = _list_images(src)
        if args.debug:
            debug_log(
                key_value_pairs_to_string([("Images", len(files)), ("Jobs", args.jobs)])
            )
        if args.jobs <= 1:
            results = []
            for p in files:
                dst = _output_path(p, args.outdir)
                results.append(
                    _process_single_image(p, dst, config, palette, args.debug)
                )
        else:
            with ProcessPoolExecutor(max_workers=args.jobs) as ex:
                futures = [
                    ex.submit(
                        _process_one_captured,
                        p,
                        args.outdir,
                        config,
                        palette,
                        args.debug,
                    )
                    for p in files
                ]
                blocks = [f.result() for f in futures]
            print("".join(text for text, _ in blocks), end="", flush=True)
            results = [ok for _, ok in blocks]
        if not all(results):
            sys.exit(1)
    else:
        dst = args.out if args.out is not None else _output_path(src, args.outdir)
        if not _process_single_image(src, dst, config, palette, args.debug):
            sys.exit(1)


if __name__ == "__main__":
    main()
