# town_palette/palette_data.py
from __future__ import annotations

"""
Town palette definitions and lookups.

Exports:
  TOWN_PALETTE: list[tuple[PaletteId, RGBTuple]]  # declaration order
  PALETTE_RGB / PALETTE_HEX: id -> rgb / id -> "#RRGGBB"
  PALETTE_ENTRIES: list[PaletteEntry]
  PALETTE_RGB_ARRAY: uint8 [P,3] in declaration order
  lookup_rgb(id), lookup_hex(id), all_ids(), build_palette(pairs)

Declaration order is part of the contract: nearest-colour ties resolve to
the entry declared first.
"""

from typing import Dict, List, Tuple

import numpy as np

from .core_types import PaletteEntry, PaletteId, RGBTuple, U8Image, rgb_to_hex


TOWN_PALETTE: List[Tuple[PaletteId, RGBTuple]] = [
    # neutrals
    ("1-1", (5, 22, 22)),
    ("1-2", (65, 69, 69)),
    ("1-3", (128, 130, 130)),
    ("1-4", (191, 192, 192)),
    ("1-5", (254, 255, 255)),
    # reds
    ("5-1", (208, 53, 77)),
    ("5-2", (238, 110, 114)),
    ("5-3", (166, 38, 61)),
    ("5-4", (245, 172, 166)),
    ("5-5", (201, 132, 131)),
    ("5-6", (163, 93, 94)),
    ("5-7", (105, 49, 59)),
    ("5-8", (230, 213, 212)),
    ("5-9", (192, 172, 171)),
    ("5-10", (117, 94, 94)),
    # oranges
    ("6-1", (232, 94, 43)),
    ("6-2", (249, 131, 88)),
    ("6-3", (171, 66, 38)),
    ("6-4", (254, 186, 159)),
    ("6-5", (218, 147, 124)),
    ("6-6", (175, 107, 88)),
    ("6-7", (117, 59, 49)),
    ("6-8", (232, 213, 208)),
    ("6-9", (193, 172, 166)),
    ("6-10", (117, 94, 89)),
    # ambers
    ("7-1", (243, 158, 22)),
    ("7-2", (254, 174, 59)),
    ("7-3", (177, 110, 22)),
    ("7-4", (254, 206, 145)),
    ("7-5", (218, 167, 108)),
    ("7-6", (179, 129, 75)),
    ("7-7", (121, 81, 38)),
    ("7-8", (245, 227, 206)),
    ("7-9", (206, 188, 169)),
    ("7-10", (128, 110, 94)),
    # yellows
    ("8-1", (237, 201, 22)),
    ("8-2", (249, 216, 56)),
    ("8-3", (179, 148, 22)),
    ("8-4", (250, 230, 144)),
    ("8-5", (210, 190, 110)),
    ("8-6", (171, 149, 75)),
    ("8-7", (117, 99, 38)),
    ("8-8", (238, 230, 198)),
    ("8-9", (198, 191, 162)),
    ("8-10", (120, 114, 89)),
    # limes
    ("9-1", (168, 188, 22)),
    ("9-2", (183, 200, 49)),
    ("9-3", (117, 134, 22)),
    ("9-4", (215, 223, 147)),
    ("9-5", (173, 183, 108)),
    ("9-6", (133, 144, 75)),
    ("9-7", (84, 94, 43)),
    ("9-8", (229, 233, 198)),
    ("9-9", (189, 194, 163)),
    ("9-10", (110, 116, 93)),
    # greens
    ("10-1", (5, 162, 93)),
    ("10-2", (65, 185, 123)),
    ("10-3", (5, 116, 70)),
    ("10-4", (156, 217, 173)),
    ("10-5", (118, 178, 139)),
    ("10-6", (80, 137, 104)),
    ("10-7", (36, 86, 64)),
    ("10-8", (196, 224, 203)),
    ("10-9", (157, 183, 166)),
    ("10-10", (84, 104, 93)),
]


def build_palette(
    id_rgb_pairs: List[Tuple[PaletteId, RGBTuple]] = TOWN_PALETTE,
) -> Tuple[List[PaletteEntry], Dict[PaletteId, RGBTuple], Dict[PaletteId, str], U8Image]:
    """
    Convert a list of (id, rgb) into:
      entries: list[PaletteEntry] in declaration order
      rgb_of:  dict id -> RGBTuple
      hex_of:  dict id -> "#RRGGBB"
      pal_rgb: uint8 array [P,3]
    """
    entries: List[PaletteEntry] = []
    rgb_of: Dict[PaletteId, RGBTuple] = {}
    hex_of: Dict[PaletteId, str] = {}

    for palette_id, rgb in id_rgb_pairs:
        if palette_id in rgb_of:
            raise ValueError(f"duplicate palette id {palette_id!r}")
        rgb_tuple: RGBTuple = (int(rgb[0]), int(rgb[1]), int(rgb[2]))
        hx = rgb_to_hex(rgb_tuple)
        entries.append(PaletteEntry(index=palette_id, hex=hx, rgb=rgb_tuple))
        rgb_of[palette_id] = rgb_tuple
        hex_of[palette_id] = hx

    pal_rgb: U8Image = np.array([e.rgb for e in entries], dtype=np.uint8).reshape(-1, 3)
    pal_rgb.setflags(write=False)
    return entries, rgb_of, hex_of, pal_rgb


PALETTE_ENTRIES, PALETTE_RGB, PALETTE_HEX, PALETTE_RGB_ARRAY = build_palette()
PALETTE_IDS: Tuple[PaletteId, ...] = tuple(e.index for e in PALETTE_ENTRIES)


def lookup_rgb(palette_id: PaletteId) -> RGBTuple:
    """RGB of a palette id. Unknown ids raise KeyError."""
    return PALETTE_RGB[palette_id]


def lookup_hex(palette_id: PaletteId) -> str:
    """Uppercase '#RRGGBB' of a palette id. Unknown ids raise KeyError."""
    return PALETTE_HEX[palette_id]


def all_ids() -> frozenset:
    """Every palette id in the table."""
    return frozenset(PALETTE_IDS)


def first_palette_hex() -> str:
    """Hex of the first declared entry (empty active-set fallback)."""
    return PALETTE_ENTRIES[0].hex


__all__ = [
    "TOWN_PALETTE",
    "PALETTE_ENTRIES",
    "PALETTE_RGB",
    "PALETTE_HEX",
    "PALETTE_RGB_ARRAY",
    "PALETTE_IDS",
    "build_palette",
    "lookup_rgb",
    "lookup_hex",
    "all_ids",
    "first_palette_hex",
]
