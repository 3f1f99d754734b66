# town_palette/quantize.py
from __future__ import annotations

"""
Two-pass quantization to the town palette.

Pipeline (each stage is a pure function and can be called on its own):
  clamp_extremes      near-white / near-black snap to the palette endpoints
  map_full_palette    nearest palette index per pixel over the whole table
  tally_ids           pixel count per palette id, in first-seen order
  rank_active_ids     top-K ids by count (ties keep first-seen order)
  sort_display_order  (group, slot) ascending
  remap_to_active     hex per pixel, substituting ids that missed the cut

quantize(image, width, height, colour_limit) runs the chain and returns
PixelData. palette[i].count is the full-palette tally, taken before the
remap; it is not the number of output pixels showing that hex.
"""

import time
from typing import Dict, List, Optional, Sequence, Union

import numpy as np
from PIL import Image

from .compose import SurfaceFactory, composite_canvas, new_surface, validate_dimensions
from .constants import (
    BLACK_SNAP,
    CANVAS_BACKGROUND,
    DEFAULT_COLOUR_LIMIT,
    NEAR_BLACK_MAX,
    NEAR_WHITE_MIN,
    WHITE_SNAP,
)
from .core_types import (
    ActiveEntry,
    CropTransform,
    PaletteId,
    PixelData,
    TextLayer,
    U8Image,
    assert_u8_image_rgb,
    parse_palette_id,
)
from .image_io import ImageSource, load_source_image
from .nearest import closest_in_active_set, nearest_palette_indices
from .palette_data import PALETTE_IDS, PALETTE_RGB_ARRAY, lookup_hex
from .utils import (
    debug_log,
    format_duration,
    format_pairs,
    unique_colours_with_inverse,
)

QuantizeInput = Union[np.ndarray, Image.Image]


# Stages


def clamp_extremes(rgb: U8Image) -> U8Image:
    """Snap pixels with every channel > 250 to WHITE_SNAP and every channel < 5 to BLACK_SNAP."""
    out = np.array(rgb, dtype=np.uint8, copy=True)
    near_white = np.all(out > NEAR_WHITE_MIN, axis=-1)
    near_black = np.all(out < NEAR_BLACK_MAX, axis=-1)
    out[near_white] = WHITE_SNAP
    out[near_black] = BLACK_SNAP
    return out


def map_full_palette(rgb: U8Image) -> np.ndarray:
    """
    Nearest palette row (into PALETTE_IDS) for every pixel, row-major.

    Distances are computed once per unique colour.
    """
    unique_rgb, inverse_idx = unique_colours_with_inverse(rgb)
    if unique_rgb.shape[0] == 0:
        return np.zeros((0,), dtype=np.int32)
    nearest = nearest_palette_indices(unique_rgb, PALETTE_RGB_ARRAY)
    return nearest[inverse_idx]


def tally_ids(pixel_rows: np.ndarray) -> Dict[PaletteId, int]:
    """Pixel count per palette id. Keys are ordered by first appearance in pixel_rows."""
    if pixel_rows.size == 0:
        return {}
    rows, first_pos, counts = np.unique(
        pixel_rows, return_index=True, return_counts=True
    )
    order = np.argsort(first_pos, kind="stable")
    return {PALETTE_IDS[int(rows[k])]: int(counts[k]) for k in order}


def rank_active_ids(tally: Dict[PaletteId, int], colour_limit: int) -> List[PaletteId]:
    """Top colour_limit ids by count, descending. Equal counts keep tally order."""
    ranked = sorted(tally.items(), key=lambda kv: -kv[1])
    return [pid for pid, _count in ranked[: max(0, int(colour_limit))]]


def sort_display_order(ids: Sequence[PaletteId]) -> List[PaletteId]:
    """Sort ids by (group, slot) ascending."""
    return sorted(ids, key=parse_palette_id)


def build_active_palette(
    display_ids: Sequence[PaletteId], tally: Dict[PaletteId, int]
) -> List[ActiveEntry]:
    return [
        ActiveEntry(index=pid, hex=lookup_hex(pid), count=int(tally.get(pid, 0)))
        for pid in display_ids
    ]


def remap_to_active(
    pixel_rows: np.ndarray, active: Sequence[ActiveEntry]
) -> List[str]:
    """
    Hex per pixel. Ids in the active set keep their own hex; others take the
    nearest active colour (resolved once per distinct id).
    """
    active_ids = {e.index for e in active}
    hex_by_row: Dict[int, str] = {}
    for row in np.unique(pixel_rows).tolist():
        pid = PALETTE_IDS[int(row)]
        if pid in active_ids:
            hex_by_row[int(row)] = lookup_hex(pid)
        else:
            hex_by_row[int(row)] = closest_in_active_set(pid, active)
    return [hex_by_row[row] for row in pixel_rows.tolist()]


def full_palette_tally(rgb: U8Image) -> Dict[PaletteId, int]:
    """Pre-remap tally of an image exactly as quantize() computes it."""
    return tally_ids(map_full_palette(clamp_extremes(rgb)))


# Entry points


def _as_rgb_array(image: QuantizeInput) -> U8Image:
    if isinstance(image, Image.Image):
        if image.mode in ("RGBA", "LA", "P"):
            rgba = image.convert("RGBA")
            flat = Image.new("RGB", rgba.size, CANVAS_BACKGROUND)
            flat.paste(rgba, (0, 0), rgba)
            return np.array(flat, dtype=np.uint8)
        return np.array(image.convert("RGB"), dtype=np.uint8)
    return assert_u8_image_rgb(np.asarray(image))[..., :3]


def quantize(
    image: QuantizeInput,
    width: int,
    height: int,
    colour_limit: int = DEFAULT_COLOUR_LIMIT,
    *,
    debug: bool = False,
) -> PixelData:
    """
    Quantize a composited width x height canvas to at most colour_limit palette colours.

    Args:
      image: uint8 [H,W,3/4] array (alpha ignored) or a Pillow image
      width, height: canvas size; must match the image
      colour_limit: maximum number of active palette entries (>= 1)
    Returns:
      PixelData with row-major hex colours and the (group, slot)-sorted active palette
    """
    width, height = validate_dimensions(width, height)
    if int(colour_limit) < 1:
        raise ValueError(f"colour_limit must be >= 1, got {colour_limit}")

    t0 = time.perf_counter()
    rgb = _as_rgb_array(image)
    if rgb.shape[:2] != (height, width):
        raise ValueError(
            f"image is {rgb.shape[1]}x{rgb.shape[0]}, expected {width}x{height}"
        )

    pixel_rows = map_full_palette(clamp_extremes(rgb))
    tally = tally_ids(pixel_rows)
    ranked = rank_active_ids(tally, colour_limit)
    active = build_active_palette(sort_display_order(ranked), tally)
    colors = remap_to_active(pixel_rows, active)

    if debug:
        kept = set(ranked)
        remapped = sum(n for pid, n in tally.items() if pid not in kept)
        debug_log(
            format_pairs(
                [
                    ("Canvas", f"{width}x{height}"),
                    ("Observed", len(tally)),
                    ("Limit", int(colour_limit)),
                    ("Active", len(active)),
                    ("Remapped px", remapped),
                    ("Time", format_duration(time.perf_counter() - t0, precise=True)),
                ]
            )
        )

    return PixelData(width=width, height=height, colors=colors, palette=active)


def quantize_source(
    source: Optional[ImageSource],
    width: int,
    height: int,
    colour_limit: int = DEFAULT_COLOUR_LIMIT,
    crop: CropTransform = CropTransform(),
    text_layers: Sequence[TextLayer] = (),
    *,
    surface_factory: SurfaceFactory = new_surface,
    font_path: Optional[str] = None,
    debug: bool = False,
) -> PixelData:
    """
    Load, composite and quantize in one call.

    Raises ImageLoadError if the source cannot be decoded and
    RenderingUnavailable if the canvas cannot be created.
    """
    src_img = load_source_image(source) if source is not None else None
    canvas = composite_canvas(
        src_img,
        width,
        height,
        crop,
        text_layers,
        surface_factory=surface_factory,
        font_path=font_path,
    )
    return quantize(canvas, width, height, colour_limit, debug=debug)


__all__ = [
    "clamp_extremes",
    "map_full_palette",
    "tally_ids",
    "rank_active_ids",
    "sort_display_order",
    "build_active_palette",
    "remap_to_active",
    "full_palette_tally",
    "quantize",
    "quantize_source",
]
