# town_palette/core_types.py
from __future__ import annotations

"""
Core type aliases, small value objects, and lightweight helpers.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

# Basic aliases

RGBTuple = Tuple[int, int, int]
HexStr = str
PaletteId = str  # "<group>-<slot>"

U8Image = NDArray[np.uint8]  # (H, W, 3)

# Value objects


@dataclass(frozen=True)
class PaletteEntry:
    """One fixed town colour."""

    index: PaletteId
    hex: HexStr
    rgb: RGBTuple


@dataclass(frozen=True)
class ActiveEntry:
    """Palette entry used by a quantized image, with its pre-remap pixel count."""

    index: PaletteId
    hex: HexStr
    count: int


@dataclass
class PixelData:
    """
    Quantized grid.

    colors is row-major with len == width * height. Every value is the hex of
    some entry in palette.
    """

    width: int
    height: int
    colors: List[HexStr]
    palette: List[ActiveEntry] = field(default_factory=list)

    def palette_index_map(self) -> Dict[HexStr, PaletteId]:
        """hex -> palette id for the active entries."""
        return {p.hex: p.index for p in self.palette}

    def color_at(self, x: int, y: int) -> HexStr:
        return self.colors[y * self.width + x]


@dataclass(frozen=True)
class CropTransform:
    """
    Placement of the source image on the canvas.

    x, y: offset of the image centre from the canvas centre, in canvas pixels.
    scale: multiplier applied to the source size.
    """

    x: float = 0.0
    y: float = 0.0
    scale: float = 1.0


@dataclass(frozen=True)
class TextLayer:
    """Text stamped on the canvas before quantization. x/y are percentages."""

    id: str
    text: str
    x: float = 50.0
    y: float = 50.0
    size: int = 8
    color: HexStr = "#000000"


# Small helpers


def rgb_to_hex(rgb: RGBTuple) -> HexStr:
    """RGB tuple to uppercase hex string '#RRGGBB'."""
    return f"#{int(rgb[0]):02X}{int(rgb[1]):02X}{int(rgb[2]):02X}"


def hex_to_rgb(hex_str: str) -> RGBTuple:
    """Parse '#rgb' or '#rrggbb' (case-insensitive) into an RGB tuple."""
    s = hex_str.strip().lower()
    if not s.startswith("#"):
        raise ValueError("hex must start with '#'")
    if len(s) == 4:
        r, g, b = s[1], s[2], s[3]
        s = f"#{r}{r}{g}{g}{b}{b}"
    if len(s) != 7:
        raise ValueError("hex must be '#rrggbb' or '#rgb'")
    return (int(s[1:3], 16), int(s[3:5], 16), int(s[5:7], 16))


def parse_palette_id(palette_id: PaletteId) -> Tuple[int, int]:
    """'10-3' -> (10, 3)."""
    group, _, slot = palette_id.partition("-")
    if not slot:
        raise ValueError(f"palette id must look like '<group>-<slot>': {palette_id!r}")
    return int(group), int(slot)


def hex_list_to_u8_rgb_array(hex_list: Sequence[str]) -> U8Image:
    """
    Convert a sequence of hex strings ('#rrggbb' or 'rrggbb') to a (N,3) uint8 array.
    Uses hex_to_rgb for a single source of truth.
    """
    out = np.empty((len(hex_list), 3), dtype=np.uint8)
    for i, hx in enumerate(hex_list):
        r, g, b = hex_to_rgb(hx if hx.startswith("#") else f"#{hx}")
        out[i, 0] = r
        out[i, 1] = g
        out[i, 2] = b
    return out


def assert_u8_image_rgb(image: np.ndarray) -> U8Image:
    """Validate a uint8 (H,W,3 or 4) image and return it typed as U8Image."""
    if image.dtype != np.uint8 or image.ndim != 3 or image.shape[-1] not in (3, 4):
        raise TypeError("expected uint8 (H,W,3/4) image")
    return image  # type: ignore[return-value]


__all__ = [
    # aliases / types
    "RGBTuple",
    "HexStr",
    "PaletteId",
    "U8Image",
    # value objects
    "PaletteEntry",
    "ActiveEntry",
    "PixelData",
    "CropTransform",
    "TextLayer",
    # helpers
    "rgb_to_hex",
    "hex_to_rgb",
    "parse_palette_id",
    "hex_list_to_u8_rgb_array",
    "assert_u8_image_rgb",
]
