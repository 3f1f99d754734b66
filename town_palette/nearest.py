# town_palette/nearest.py
from __future__ import annotations

"""
Nearest-palette lookups built on the directional colour distance.

Exports:
  closest_full_palette(rgb) -> PaletteId
  closest_in_active_set(source_id, active_entries) -> hex
  nearest_palette_indices(samples, pal_rgb) -> int32 [N]

Scans run in palette declaration order and keep the first minimum, so ties go
to the entry declared first.
"""

from typing import Sequence

import numpy as np

from .colour_distance import colour_distances, distance_matrix
from .core_types import ActiveEntry, PaletteId, RGBTuple
from .palette_data import (
    PALETTE_IDS,
    PALETTE_RGB_ARRAY,
    first_palette_hex,
    lookup_rgb,
)

# Rows per distance-matrix block; bounds memory at ~block * P * 8 bytes.
_BLOCK_ROWS = 65_536


def nearest_palette_indices(samples: np.ndarray, pal_rgb: np.ndarray) -> np.ndarray:
    """For each sample RGB row, index of the nearest pal_rgb row (first on ties)."""
    s = np.asarray(samples).reshape(-1, 3)
    out = np.empty((s.shape[0],), dtype=np.int32)
    for start in range(0, s.shape[0], _BLOCK_ROWS):
        block = s[start : start + _BLOCK_ROWS]
        out[start : start + block.shape[0]] = np.argmin(
            distance_matrix(block, pal_rgb), axis=1
        )
    return out


def closest_full_palette(rgb: RGBTuple) -> PaletteId:
    """Nearest palette id for one sampled colour over the whole table."""
    d = colour_distances(rgb, PALETTE_RGB_ARRAY)
    return PALETTE_IDS[int(np.argmin(d))]


def closest_in_active_set(
    source_id: PaletteId, active_entries: Sequence[ActiveEntry]
) -> str:
    """
    Hex of the active entry nearest to source_id's colour.

    Only active_entries are scanned, in the order given. An empty set falls
    back to the first declared palette hex.
    """
    if not active_entries:
        return first_palette_hex()
    cand_rgb = np.array([lookup_rgb(e.index) for e in active_entries], dtype=np.uint8)
    d = colour_distances(lookup_rgb(source_id), cand_rgb)
    return active_entries[int(np.argmin(d))].hex


__all__ = [
    "closest_full_palette",
    "closest_in_active_set",
    "nearest_palette_indices",
]
