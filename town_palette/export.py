# town_palette/export.py
from __future__ import annotations

"""
Guide export: slice a quantized grid into labelled tiles, add an overview and
a palette manifest, and package everything as a ZIP.

Archive layout (order is fixed for a given PixelData and tile size):
  guide_row{r}_col{c}.png   one per tile, row-major, 1-indexed
  full_view.png             whole image at OVERVIEW_UPSCALE, no lines or labels
  palette_list.txt          header plus one line per active palette entry

Tile drawing:
  - every source pixel is an upscale x upscale block in its colour
  - light grid line around every block
  - heavier line on the right of every 5th column and the bottom of every 5th
    row, counted in image coordinates so the lines stay aligned across tiles
  - palette id label centred in the block, black on light colours and white
    on dark ones
A tile whose surface cannot be created is skipped with a warning. A failed
overview is omitted. Only finalising the archive raises.
"""

import io
import math
import time
import zipfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import numpy as np
from PIL import Image, ImageDraw

from .compose import SurfaceFactory, new_surface
from .constants import (
    ARCHIVE_NAME,
    DEFAULT_TILE_SIZE,
    EMPHASIS_EVERY,
    EMPHASIS_LINE_RGBA,
    GRID_LINE_RGBA,
    LABEL_SCALE,
    LUMINANCE_THRESHOLD,
    MANIFEST_NAME,
    MANIFEST_TITLE,
    OVERVIEW_NAME,
    OVERVIEW_UPSCALE,
    TILE_NAME,
    TILE_UPSCALE,
)
from .core_types import HexStr, PixelData, RGBTuple, hex_list_to_u8_rgb_array, hex_to_rgb
from .errors import ArchiveWriteError, RenderingUnavailable, TileRenderSkipped
from .image_io import encode_png, load_font
from .utils import (
    debug_log,
    format_duration,
    format_pairs,
    print_progress,
    warn,
)

BLACK: RGBTuple = (0, 0, 0)
WHITE: RGBTuple = (255, 255, 255)
EMPHASIS_LINE_WIDTH = 2

# Fixed timestamp for archive members so identical content gives identical bytes.
_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


# --------------------------- data ---------------------------


@dataclass(frozen=True)
class TileExtent:
    row: int  # 0-based
    col: int  # 0-based
    x0: int
    y0: int
    width: int
    height: int

    @property
    def name(self) -> str:
        return TILE_NAME.format(row=self.row + 1, col=self.col + 1)


@dataclass
class GuideArchive:
    """Named byte entries in archive order, plus the tiles that were skipped."""

    entries: List[Tuple[str, bytes]] = field(default_factory=list)
    skipped: List[TileRenderSkipped] = field(default_factory=list)

    def add(self, name: str, data: bytes) -> None:
        self.entries.append((name, data))

    def names(self) -> List[str]:
        return [n for n, _ in self.entries]

    def get(self, name: str) -> bytes:
        for n, data in self.entries:
            if n == name:
                return data
        raise KeyError(name)

    def to_zip_bytes(self) -> bytes:
        """Finalise to a single ZIP blob. Raises ArchiveWriteError."""
        buf = io.BytesIO()
        try:
            with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                for name, data in self.entries:
                    info = zipfile.ZipInfo(name, date_time=_ZIP_EPOCH)
                    info.compress_type = zipfile.ZIP_DEFLATED
                    zf.writestr(info, data)
        except (OSError, ValueError, zipfile.BadZipFile) as e:
            raise ArchiveWriteError(f"cannot finalise guide archive: {e}") from e
        return buf.getvalue()

    def write_zip(self, path: Union[str, Path]) -> Path:
        """Write the ZIP to path (parents created). Raises ArchiveWriteError."""
        out = Path(path)
        blob = self.to_zip_bytes()
        try:
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_bytes(blob)
        except OSError as e:
            raise ArchiveWriteError(f"cannot write {out}: {e}") from e
        return out


# --------------------------- helpers ---------------------------


def tile_extents(width: int, height: int, tile_size: int) -> List[TileExtent]:
    """Row-major tile extents; edge tiles are clamped to the image."""
    if tile_size < 1:
        raise ValueError(f"tile_size must be >= 1, got {tile_size}")
    cols = math.ceil(width / tile_size)
    rows = math.ceil(height / tile_size)
    out: List[TileExtent] = []
    for r in range(rows):
        for c in range(cols):
            x0 = c * tile_size
            y0 = r * tile_size
            out.append(
                TileExtent(
                    row=r,
                    col=c,
                    x0=x0,
                    y0=y0,
                    width=min(tile_size, width - x0),
                    height=min(tile_size, height - y0),
                )
            )
    return out


def _luma_milli(rgb: RGBTuple) -> int:
    # 1000 x luminance, exact
    return 299 * int(rgb[0]) + 587 * int(rgb[1]) + 114 * int(rgb[2])


def luminance(rgb: RGBTuple) -> float:
    return _luma_milli(rgb) / 1000.0


def label_ink(hex_str: HexStr) -> RGBTuple:
    """Label colour drawn on a block of hex_str: BLACK when luminance >= 128, else WHITE."""
    return BLACK if _luma_milli(hex_to_rgb(hex_str)) >= LUMINANCE_THRESHOLD * 1000 else WHITE


def contrast_text_colour(hex_str: HexStr) -> str:
    """'black' or 'white', matching label_ink."""
    return "black" if label_ink(hex_str) == BLACK else "white"


def default_archive_name(now: Optional[float] = None) -> str:
    """town_studio_guide_<unix ms>.zip"""
    stamp = int((time.time() if now is None else now) * 1000)
    return ARCHIVE_NAME.format(stamp=stamp)


def palette_manifest(pixel_data: PixelData, tile_size: int) -> str:
    lines = [
        MANIFEST_TITLE,
        "",
        f"Total Dimension: {pixel_data.width}x{pixel_data.height}",
        f"Split Size: {tile_size}x{tile_size}",
        "",
        "COLOR PALETTE LIST:",
    ]
    for rank, p in enumerate(pixel_data.palette, start=1):
        lines.append(f"[{rank}] ID: {p.index} | HEX: {p.hex} | COUNT: {p.count}px")
    return "\n".join(lines) + "\n"


# --------------------------- render ---------------------------


def render_tile(
    pixel_data: PixelData,
    extent: TileExtent,
    upscale: int,
    *,
    surface_factory: SurfaceFactory = new_surface,
    font_path: Optional[str] = None,
    label_of: Optional[Dict[HexStr, str]] = None,
) -> Image.Image:
    """Rasterise one tile. RenderingUnavailable propagates to the caller."""
    surface = surface_factory(extent.width * upscale, extent.height * upscale)
    draw = ImageDraw.Draw(surface, "RGBA")
    font = load_font(max(1, int(upscale * LABEL_SCALE)), font_path)
    labels = label_of if label_of is not None else pixel_data.palette_index_map()
    half = upscale / 2.0

    for y in range(extent.height):
        gy = extent.y0 + y
        for x in range(extent.width):
            gx = extent.x0 + x
            color = pixel_data.colors[gy * pixel_data.width + gx]
            dx = x * upscale
            dy = y * upscale
            x1 = dx + upscale - 1
            y1 = dy + upscale - 1

            draw.rectangle([dx, dy, x1, y1], fill=hex_to_rgb(color) + (255,))
            draw.rectangle([dx, dy, x1, y1], outline=GRID_LINE_RGBA, width=1)

            if (gx + 1) % EMPHASIS_EVERY == 0:
                draw.rectangle(
                    [x1 - EMPHASIS_LINE_WIDTH + 1, dy, x1, y1], fill=EMPHASIS_LINE_RGBA
                )
            if (gy + 1) % EMPHASIS_EVERY == 0:
                draw.rectangle(
                    [dx, y1 - EMPHASIS_LINE_WIDTH + 1, x1, y1], fill=EMPHASIS_LINE_RGBA
                )

            label = labels.get(color)
            if label:
                ink = label_ink(color)
                draw.text((dx + half, dy + half), label, fill=ink, font=font, anchor="mm")

    return surface


def render_overview(
    pixel_data: PixelData,
    upscale: int = OVERVIEW_UPSCALE,
    *,
    surface_factory: SurfaceFactory = new_surface,
) -> Image.Image:
    """Whole grid as plain colour blocks."""
    w, h = pixel_data.width, pixel_data.height
    surface = surface_factory(w * upscale, h * upscale)
    grid = hex_list_to_u8_rgb_array(pixel_data.colors).reshape(h, w, 3)
    blocks = np.repeat(np.repeat(grid, upscale, axis=0), upscale, axis=1)
    surface.paste(Image.fromarray(blocks), (0, 0))
    return surface


def _render_tile_entry(
    pixel_data: PixelData,
    extent: TileExtent,
    upscale: int,
    surface_factory: SurfaceFactory,
    font_path: Optional[str],
    label_of: Dict[HexStr, str],
) -> Union[Tuple[str, bytes], TileRenderSkipped]:
    try:
        img = render_tile(
            pixel_data,
            extent,
            upscale,
            surface_factory=surface_factory,
            font_path=font_path,
            label_of=label_of,
        )
        return extent.name, encode_png(img)
    except (RenderingUnavailable, OSError) as e:
        return TileRenderSkipped(extent.row + 1, extent.col + 1, str(e))


def _validate_pixel_data(pixel_data: PixelData) -> None:
    if pixel_data.width <= 0 or pixel_data.height <= 0:
        raise ValueError("pixel data must have positive dimensions")
    if len(pixel_data.colors) != pixel_data.width * pixel_data.height:
        raise ValueError(
            f"colors has {len(pixel_data.colors)} entries, "
            f"expected {pixel_data.width * pixel_data.height}"
        )


def export_guide(
    pixel_data: PixelData,
    tile_size: int = DEFAULT_TILE_SIZE,
    upscale: int = TILE_UPSCALE,
    *,
    overview_upscale: int = OVERVIEW_UPSCALE,
    workers: int = 1,
    surface_factory: SurfaceFactory = new_surface,
    font_path: Optional[str] = None,
    progress: bool = False,
    debug: bool = False,
) -> GuideArchive:
    """
    Build the guide archive entries for pixel_data.

    Args:
      tile_size: tile edge in source pixels (>= 1)
      upscale: block edge in output pixels for tiles (>= 1)
      overview_upscale: block edge for full_view.png
      workers: >1 renders tiles on a thread pool; entry order is unchanged
      progress: single-line tile counter on stdout
    Returns:
      GuideArchive; call to_zip_bytes() or write_zip() to finalise.
    """
    _validate_pixel_data(pixel_data)
    if upscale < 1 or overview_upscale < 1:
        raise ValueError("upscale factors must be >= 1")

    t0 = time.perf_counter()
    extents = tile_extents(pixel_data.width, pixel_data.height, tile_size)
    label_of = pixel_data.palette_index_map()
    archive = GuideArchive()
    total = len(extents)

    def _collect(i: int, result: Union[Tuple[str, bytes], TileRenderSkipped]) -> None:
        if isinstance(result, TileRenderSkipped):
            warn(str(result))
            archive.skipped.append(result)
        else:
            archive.add(*result)
        if progress:
            print_progress("tiles", i + 1, total)

    if workers > 1 and total > 1:
        with ThreadPoolExecutor(max_workers=workers) as ex:
            futures = [
                ex.submit(
                    _render_tile_entry,
                    pixel_data,
                    ext,
                    upscale,
                    surface_factory,
                    font_path,
                    label_of,
                )
                for ext in extents
            ]
            for i, fu in enumerate(futures):
                _collect(i, fu.result())
    else:
        for i, ext in enumerate(extents):
            _collect(
                i,
                _render_tile_entry(
                    pixel_data, ext, upscale, surface_factory, font_path, label_of
                ),
            )

    try:
        overview = render_overview(
            pixel_data, overview_upscale, surface_factory=surface_factory
        )
        archive.add(OVERVIEW_NAME, encode_png(overview))
    except (RenderingUnavailable, OSError) as e:
        warn(f"overview omitted: {e}")

    archive.add(MANIFEST_NAME, palette_manifest(pixel_data, tile_size).encode("utf-8"))

    if debug:
        debug_log(
            format_pairs(
                [
                    ("Tiles", total),
                    ("Skipped", len(archive.skipped)),
                    ("Entries", len(archive.entries)),
                    ("Workers", workers),
                    ("Time", format_duration(time.perf_counter() - t0, precise=True)),
                ]
            )
        )
    return archive


__all__ = [
    "TileExtent",
    "GuideArchive",
    "tile_extents",
    "luminance",
    "label_ink",
    "contrast_text_colour",
    "default_archive_name",
    "palette_manifest",
    "render_tile",
    "render_overview",
    "export_guide",
]
