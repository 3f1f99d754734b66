# tests/test_quantize.py
import numpy as np
import pytest
from PIL import Image

from town_palette.constants import BLACK_SNAP, WHITE_SNAP
from town_palette.core_types import parse_palette_id
from town_palette.errors import ImageLoadError, RenderingUnavailable
from town_palette.palette_data import PALETTE_IDS, all_ids, lookup_hex
from town_palette.quantize import (
    clamp_extremes,
    full_palette_tally,
    quantize,
    quantize_source,
    rank_active_ids,
    sort_display_order,
    tally_ids,
)

from conftest import failing_factory, png_bytes


def _solid(h, w, rgb):
    arr = np.zeros((h, w, 3), dtype=np.uint8)
    arr[:, :] = rgb
    return arr


def test_all_white_single_entry():
    data = quantize(_solid(4, 4, (255, 255, 255)), 4, 4, 5)
    assert [p.index for p in data.palette] == ["1-5"]
    assert data.palette[0].count == 16
    assert data.colors == ["#FEFFFF"] * 16


def test_majority_colour_wins_with_limit_one():
    img = _solid(4, 4, (255, 0, 0))
    img[3, :] = (0, 0, 255)
    data = quantize(img, 4, 4, 1)
    assert len(data.palette) == 1
    assert set(data.colors) == {data.palette[0].hex}
    assert data.palette[0].count == full_palette_tally(img)[data.palette[0].index]
    assert data.palette[0].count >= 12


def test_output_is_contained_in_active_palette(rng):
    img = rng.integers(0, 256, size=(8, 10, 3), dtype=np.uint8)
    data = quantize(img, 10, 8, 3)
    hexes = {p.hex for p in data.palette}
    ids = [p.index for p in data.palette]
    assert 1 <= len(data.palette) <= 3
    assert len(data.colors) == 80
    assert set(data.colors) <= hexes
    assert len(set(ids)) == len(ids)
    assert set(ids) <= all_ids()
    assert ids == sorted(ids, key=parse_palette_id)


def test_counts_are_pre_remap_tally(rng):
    img = rng.integers(0, 256, size=(6, 6, 3), dtype=np.uint8)
    tally = full_palette_tally(img)
    data = quantize(img, 6, 6, 2)
    for p in data.palette:
        assert p.count == tally[p.index]
    top_two = sorted(tally.values(), reverse=True)[:2]
    assert sorted((p.count for p in data.palette), reverse=True) == top_two


def test_limit_above_observed_keeps_everything():
    img = _solid(2, 2, (255, 255, 255))
    img[0, 0] = (5, 22, 22)
    data = quantize(img, 2, 2, 64)
    assert [p.index for p in data.palette] == ["1-1", "1-5"]
    assert data.colors == ["#051616", "#FEFFFF", "#FEFFFF", "#FEFFFF"]


def test_deterministic(rng):
    img = rng.integers(0, 256, size=(9, 7, 3), dtype=np.uint8)
    assert quantize(img, 7, 9, 4) == quantize(img, 7, 9, 4)


def test_alpha_channel_ignored_for_arrays():
    rgba = np.zeros((2, 2, 4), dtype=np.uint8)
    rgba[..., :3] = 255
    assert quantize(rgba, 2, 2).colors == ["#FEFFFF"] * 4


def test_transparent_pillow_image_flattens_to_white():
    img = Image.new("RGBA", (3, 2), (0, 0, 0, 0))
    assert quantize(img, 3, 2).colors == ["#FEFFFF"] * 6


def test_invalid_arguments():
    img = _solid(2, 2, (0, 0, 0))
    with pytest.raises(ValueError):
        quantize(img, 2, 2, 0)
    with pytest.raises(ValueError):
        quantize(img, 3, 2)
    with pytest.raises(ValueError):
        quantize(img, 0, 2)
    with pytest.raises(TypeError):
        quantize(img.astype(np.float32), 2, 2)


def test_clamp_extremes():
    img = np.array(
        [[[251, 251, 251], [250, 251, 251], [4, 4, 4], [5, 0, 0]]], dtype=np.uint8
    )
    out = clamp_extremes(img)
    assert tuple(out[0, 0]) == WHITE_SNAP
    assert tuple(out[0, 1]) == (250, 251, 251)
    assert tuple(out[0, 2]) == BLACK_SNAP
    assert tuple(out[0, 3]) == (5, 0, 0)
    assert tuple(img[0, 0]) == (251, 251, 251)


def test_tally_first_seen_order():
    rows = np.array([3, 0, 3, 1], dtype=np.int32)
    tally = tally_ids(rows)
    assert list(tally) == [PALETTE_IDS[3], PALETTE_IDS[0], PALETTE_IDS[1]]
    assert list(tally.values()) == [2, 1, 1]
    assert tally_ids(np.zeros((0,), dtype=np.int32)) == {}


def test_rank_ties_keep_tally_order():
    tally = {"5-1": 3, "1-1": 3, "1-5": 5}
    assert rank_active_ids(tally, 2) == ["1-5", "5-1"]
    assert rank_active_ids(tally, 10) == ["1-5", "5-1", "1-1"]


def test_display_order_is_group_then_slot():
    assert sort_display_order(["10-2", "5-1", "1-5", "1-1"]) == ["1-1", "1-5", "5-1", "10-2"]


def test_quantize_source_without_image_is_white():
    data = quantize_source(None, 3, 3)
    assert data.colors == [lookup_hex("1-5")] * 9


def test_quantize_source_from_png_bytes():
    arr = _solid(4, 4, (5, 22, 22))
    data = quantize_source(png_bytes(arr), 4, 4)
    assert data.colors == ["#051616"] * 16


def test_quantize_source_bad_bytes():
    with pytest.raises(ImageLoadError):
        quantize_source(b"definitely not an image", 4, 4)


def test_quantize_source_rendering_unavailable():
    with pytest.raises(RenderingUnavailable):
        quantize_source(None, 4, 4, surface_factory=failing_factory((4, 4)))
