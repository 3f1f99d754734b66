# tests/test_nearest.py
import numpy as np

from town_palette.core_types import ActiveEntry
from town_palette.nearest import (
    closest_full_palette,
    closest_in_active_set,
    nearest_palette_indices,
)
from town_palette.palette_data import PALETTE_ENTRIES, lookup_hex, lookup_rgb


def _active(*ids):
    return [ActiveEntry(index=pid, hex=lookup_hex(pid), count=1) for pid in ids]


def test_exact_palette_colours_map_to_themselves():
    for entry in PALETTE_ENTRIES:
        assert lookup_rgb(closest_full_palette(entry.rgb)) == entry.rgb


def test_endpoints():
    assert closest_full_palette((255, 255, 255)) == "1-5"
    assert closest_full_palette((5, 22, 22)) == "1-1"


def test_ties_go_to_first_declared():
    pal = np.array([[10, 10, 10], [50, 50, 50], [50, 50, 50]], dtype=np.uint8)
    samples = np.array([[50, 50, 50], [49, 49, 49], [0, 0, 0]], dtype=np.uint8)
    assert nearest_palette_indices(samples, pal).tolist() == [1, 1, 0]


def test_active_set_empty_falls_back_to_first_entry():
    assert closest_in_active_set("5-1", []) == "#051616"


def test_active_member_maps_to_itself():
    active = _active("1-1", "1-5", "5-1")
    assert closest_in_active_set("5-1", active) == lookup_hex("5-1")
    assert closest_in_active_set("1-1", active) == lookup_hex("1-1")


def test_active_set_only_scans_given_entries():
    active = _active("1-1", "1-5")
    # 1-4 is a light grey; only black and white are available.
    assert closest_in_active_set("1-4", active) == lookup_hex("1-5")
    assert closest_in_active_set("1-2", active) == lookup_hex("1-1")


def test_nearest_indices_shape():
    samples = np.zeros((7, 3), dtype=np.uint8)
    pal = np.array([[0, 0, 0], [255, 255, 255]], dtype=np.uint8)
    out = nearest_palette_indices(samples, pal)
    assert out.shape == (7,)
    assert (out == 0).all()
