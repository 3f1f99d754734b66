#!/usr/bin/env python3
"""
town_guide.py
Convert images to the town palette and export a tiled pixel guide.

Usage:
  python town_guide.py INPUT --preset [pattern|book_cover] --width W --height H
                       --limit K --tile-size T --upscale U
                       --crop-x X --crop-y Y --scale S | --fit
                       --text "TEXT@X,Y[,SIZE[,#RRGGBB]]" ... --debug

Input:
  Any Pillow-readable image, or a folder of them. The image is drawn centred on
  a white W x H canvas, shifted by (crop-x, crop-y) and scaled by --scale (or
  scaled to cover the canvas with --fit). Text layers are drawn on top and
  quantized with the image.

Output:
  <stem>_town.png                   quantized canvas at 1 px per cell
  <stem>_town_studio_guide_<ms>.zip tiles, full_view.png, palette_list.txt
  Written next to INPUT unless --outdir is given.

Notes:
  Palette data and the colour metric come from town_palette.palette_data and
  town_palette.colour_distance. Tiles render on a thread pool when --workers > 1;
  --jobs > 1 processes files in separate processes with captured output.
"""

from __future__ import annotations

import argparse
import io
import os
import sys
import time
from concurrent.futures import ProcessPoolExecutor
from contextlib import redirect_stdout
from pathlib import Path
from typing import List, Optional

from PIL import Image

from town_palette.compose import clamp_scale, fit_to_canvas
from town_palette.constants import (
    CANVAS_PRESETS,
    DEFAULT_COLOUR_LIMIT,
    DEFAULT_TEXT_COLOR,
    DEFAULT_TEXT_SIZE,
    DEFAULT_TILE_SIZE,
    OVERVIEW_UPSCALE,
    TILE_UPSCALE,
)
from town_palette.core_types import (
    CropTransform,
    PixelData,
    TextLayer,
    hex_list_to_u8_rgb_array,
    hex_to_rgb,
)
from town_palette.errors import TownPaletteError
from town_palette.export import default_archive_name, export_guide
from town_palette.image_io import load_source_image
from town_palette.quantize import quantize_source
from town_palette.utils import (
    colour_usage_report,
    debug_log,
    enable_line_buffered_stdout,
    error,
    format_duration,
    format_palette_entry,
    format_pairs,
    log,
    print_banner,
    print_config_line,
)

ARTIFACT_SUFFIX = "_town"

# CLI args & small helpers


def _default_workers() -> int:
    """Leave a few cores free for the system; returns a sensible worker count."""
    n = os.cpu_count() or 4
    reserve = 1 if n <= 6 else 2 if n <= 12 else 3 if n <= 18 else 4
    return max(1, n - reserve)


def parse_text_layer(value: str) -> TextLayer:
    """
    Parse 'TEXT@X,Y[,SIZE[,#RRGGBB]]' into a TextLayer.
    X and Y are percentages of the canvas; SIZE is in canvas pixels.
    """
    text, sep, rest = value.rpartition("@")
    if not sep or not text:
        raise argparse.ArgumentTypeError(
            f"text layer must look like TEXT@X,Y[,SIZE[,#RRGGBB]]: {value!r}"
        )
    parts = [p.strip() for p in rest.split(",")]
    if len(parts) < 2 or len(parts) > 4:
        raise argparse.ArgumentTypeError(f"bad text layer position: {rest!r}")
    try:
        x = float(parts[0])
        y = float(parts[1])
        size = int(parts[2]) if len(parts) > 2 else DEFAULT_TEXT_SIZE
        color = parts[3] if len(parts) > 3 else DEFAULT_TEXT_COLOR
        hex_to_rgb(color)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"bad text layer {value!r}: {e}") from None
    return TextLayer(id=f"cli-{text}@{x:g},{y:g}", text=text, x=x, y=y, size=size, color=color)


def parse_cli_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse CLI arguments for guide generation.

    Returns:
      argparse.Namespace with:
        src: Path to image or folder
        outdir: optional Path for outputs
        width/height: canvas size (preset when omitted)
        limit: active palette size
        tile_size / upscale: guide tile geometry
        crop_x / crop_y / scale / fit: source placement
        text: list of TextLayer
        jobs: parallel file workers
        workers: tile render threads
        debug: bool for verbose details
    """
    parser = argparse.ArgumentParser(
        prog="town_guide",
        description="Convert image(s) to the town palette and export pixel guides.",
    )
    parser.add_argument("src", type=Path, help="Input image or folder")
    parser.add_argument(
        "--outdir", type=Path, default=None, help="Output directory (optional)"
    )
    parser.add_argument(
        "--preset",
        choices=sorted(CANVAS_PRESETS),
        default="pattern",
        help="Canvas size preset.",
    )
    parser.add_argument("--width", type=int, default=None, help="Canvas width (cells)")
    parser.add_argument("--height", type=int, default=None, help="Canvas height (cells)")
    parser.add_argument(
        "--limit",
        type=int,
        default=DEFAULT_COLOUR_LIMIT,
        help="Maximum number of palette colours kept.",
    )
    parser.add_argument(
        "--tile-size", type=int, default=DEFAULT_TILE_SIZE, help="Guide tile edge (cells)"
    )
    parser.add_argument(
        "--upscale", type=int, default=TILE_UPSCALE, help="Pixels per cell in tiles"
    )
    parser.add_argument(
        "--overview-upscale",
        type=int,
        default=OVERVIEW_UPSCALE,
        help="Pixels per cell in full_view.png",
    )
    parser.add_argument("--crop-x", type=float, default=0.0, help="Horizontal offset")
    parser.add_argument("--crop-y", type=float, default=0.0, help="Vertical offset")
    parser.add_argument(
        "--scale", type=float, default=1.0, help="Source scale (clamped to 0.1-5)"
    )
    parser.add_argument(
        "--fit", action="store_true", help="Scale the source to cover the canvas"
    )
    parser.add_argument(
        "--text",
        type=parse_text_layer,
        action="append",
        default=[],
        help='Text layer "TEXT@X,Y[,SIZE[,#RRGGBB]]" (repeatable)',
    )
    parser.add_argument("--font", type=str, default=None, help="TTF font path")
    parser.add_argument(
        "--jobs", type=int, default=1, help="Files processed in parallel"
    )
    parser.add_argument(
        "--workers", type=int, default=_default_workers(), help="Tile render threads"
    )
    parser.add_argument("--debug", action="store_true", help="Verbose details")
    return parser.parse_args(argv)


def _canvas_size(args: argparse.Namespace) -> tuple[int, int]:
    preset_w, preset_h = CANVAS_PRESETS[args.preset]
    return (
        args.width if args.width is not None else preset_w,
        args.height if args.height is not None else preset_h,
    )


def _invalid_numeric_options(args: argparse.Namespace) -> List[str]:
    """Flags whose value is below 1; --width/--height only when given."""
    checks = [
        ("--width", args.width),
        ("--height", args.height),
        ("--limit", args.limit),
        ("--tile-size", args.tile_size),
        ("--upscale", args.upscale),
        ("--overview-upscale", args.overview_upscale),
        ("--jobs", args.jobs),
        ("--workers", args.workers),
    ]
    return [flag for flag, value in checks if value is not None and value < 1]


def _save_preview(path: Path, data: PixelData) -> None:
    """1 px per cell PNG of the quantized grid."""
    grid = hex_list_to_u8_rgb_array(data.colors).reshape(data.height, data.width, 3)
    Image.fromarray(grid).save(path)


# Per-file processing


def _process_single_image(
    src_path: Path, outdir: Optional[Path], args: argparse.Namespace
) -> bool:
    """
    Process a single image path end-to-end:
      load -> place -> quantize -> preview -> guide archive -> report.
    Returns False when the image could not be processed.
    """
    t_start = time.perf_counter()
    print_banner(src_path.name)
    width, height = _canvas_size(args)
    dst_dir = outdir if outdir is not None else src_path.parent

    try:
        source = load_source_image(src_path)
        if args.fit:
            crop = fit_to_canvas(source.size, (width, height))
        else:
            crop = CropTransform(args.crop_x, args.crop_y, clamp_scale(args.scale))
        if args.debug:
            debug_log(
                format_pairs(
                    [
                        ("Loaded", f"{source.width}x{source.height}"),
                        ("Canvas", f"{width}x{height}"),
                        ("Crop", f"{crop.x:g},{crop.y:g}"),
                        ("Scale", crop.scale),
                        ("Text layers", len(args.text)),
                    ]
                )
            )

        data = quantize_source(
            source,
            width,
            height,
            args.limit,
            crop,
            args.text,
            font_path=args.font,
            debug=args.debug,
        )
        t_quant = time.perf_counter()

        dst_dir.mkdir(parents=True, exist_ok=True)
        preview_path = dst_dir / f"{src_path.stem}{ARTIFACT_SUFFIX}.png"
        _save_preview(preview_path, data)

        print_config_line(
            "export",
            [
                ("Tile size", args.tile_size),
                ("Upscale", args.upscale),
                ("Workers", args.workers),
            ],
            debug=args.debug,
        )
        archive = export_guide(
            data,
            args.tile_size,
            args.upscale,
            overview_upscale=args.overview_upscale,
            workers=args.workers,
            font_path=args.font,
            progress=sys.stdout.isatty(),
            debug=args.debug,
        )
        zip_path = archive.write_zip(
            dst_dir / f"{src_path.stem}_{default_archive_name()}"
        )
    except (TownPaletteError, ValueError, OSError) as e:
        error(f"{src_path.name}: {e}")
        return False
    t_done = time.perf_counter()

    log(f"Wrote {preview_path.name} | size={width}x{height} | palette_size={len(data.palette)}")
    log(f"Wrote {zip_path.name} | entries={len(archive.entries)} | skipped={len(archive.skipped)}")
    log("Palette:")
    for rank, entry in enumerate(data.palette, start=1):
        log(format_palette_entry(rank, entry))
    if args.debug:
        debug_log("Output colours:")
        for hex_code, count in colour_usage_report(data.colors):
            debug_log(f"  {hex_code}: {count:,}")
        debug_log(
            f"Total {format_duration(t_done - t_start)}  "
            f"(quantize={format_duration(t_quant - t_start)}, "
            f"export={format_duration(t_done - t_quant)})"
        )
    else:
        log(f"Total time {format_duration(t_done - t_start)}")
    return True


def _process_one_captured(
    path: Path, outdir: Optional[Path], args: argparse.Namespace
) -> tuple[str, bool]:
    """
    Process a single file with stdout capture.

    Runs in a worker process so output can be printed in submission order.
    """
    buf = io.StringIO()
    with redirect_stdout(buf):
        ok = _process_single_image(path, outdir, args)
    return buf.getvalue(), ok


# Entry point


def main(argv: Optional[List[str]] = None) -> int:
    """
    CLI entry point.

    Handles single file or folder. In folder mode supports --jobs parallelism
    while preserving readable output ordering.
    """
    enable_line_buffered_stdout()
    args = parse_cli_args(argv)

    print_config_line(
        "run",
        [("CPU cores", os.cpu_count() or 1), ("Workers", args.workers), ("Jobs", args.jobs)],
        debug=False,
    )

    src = args.src
    if not src.exists():
        error(f"not found: {src}")
        return 2
    bad = _invalid_numeric_options(args)
    if bad:
        error(f"{', '.join(bad)} must be >= 1")
        return 2

    exts = {".png", ".jpg", ".jpeg", ".webp", ".bmp", ".gif"}
    if not src.is_dir():
        return 0 if _process_single_image(src, args.outdir, args) else 1

    files = sorted(
        (
            p
            for p in src.iterdir()
            if p.is_file()
            and p.suffix.lower() in exts
            and not p.stem.endswith(ARTIFACT_SUFFIX)
        ),
        key=lambda p: p.name.lower(),
    )
    if args.debug:
        debug_log(format_pairs([("Images", len(files)), ("Jobs", args.jobs)]))

    results: List[bool] = []
    if args.jobs <= 1:
        for p in files:
            results.append(_process_single_image(p, args.outdir, args))
    else:
        with ProcessPoolExecutor(max_workers=args.jobs) as ex:
            futures = [ex.submit(_process_one_captured, p, args.outdir, args) for p in files]
            blocks = [f.result() for f in futures]
        print("".join(text for text, _ in blocks), end="", flush=True)
        results = [ok for _, ok in blocks]

    return 0 if all(results) else 1


if __name__ == "__main__":
    sys.exit(main())
