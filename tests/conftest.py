"""Shared fixtures for town_palette tests."""
import io

import numpy as np
import pytest
from PIL import Image

from town_palette.core_types import ActiveEntry, PixelData
from town_palette.errors import RenderingUnavailable

BLACK_HEX = "#051616"
WHITE_HEX = "#FEFFFF"


def png_bytes(arr):
    """Encode a uint8 [H,W,3|4] array as PNG bytes."""
    buf = io.BytesIO()
    Image.fromarray(arr).save(buf, format="PNG")
    return buf.getvalue()


def failing_factory(*bad_sizes):
    """Surface factory that refuses the given (width, height) sizes."""
    bad = set(bad_sizes)

    def factory(width, height):
        if (width, height) in bad:
            raise RenderingUnavailable(f"no surface for {width}x{height}")
        return Image.new("RGB", (width, height), (255, 255, 255))

    return factory


@pytest.fixture
def checker_pixel_data():
    """5x3 grid alternating the black and white endpoints."""
    colors = [BLACK_HEX if (x + y) % 2 == 0 else WHITE_HEX for y in range(3) for x in range(5)]
    palette = [
        ActiveEntry(index="1-1", hex=BLACK_HEX, count=colors.count(BLACK_HEX)),
        ActiveEntry(index="1-5", hex=WHITE_HEX, count=colors.count(WHITE_HEX)),
    ]
    return PixelData(width=5, height=3, colors=colors, palette=palette)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
