"""
Tunables used across the project.

- Colour distance weights and blue/green correction thresholds
- Quantization clamps and defaults
- Guide export geometry, line colours, label fonts
- Canvas presets
"""
from __future__ import annotations

from typing import Dict, List, Tuple

# =========================
# Colour distance
# =========================
GREEN_WEIGHT = 4.0
BLUE_WEIGHT_BOOST = 1.25

# Sample clearly blue: b exceeds both r and g by more than this.
BLUE_SAMPLE_MARGIN = 15
# Candidate clearly green: g exceeds b by more than this.
GREEN_CANDIDATE_MARGIN = 30
BLUE_GREEN_PENALTY = 10.0

# Blue-dominant sample: b above the floor and above g by more than the margin.
BLUE_DOMINANT_FLOOR = 160
BLUE_DOMINANT_MARGIN = 35
BLUE_DOMINANT_WEIGHT = 2.5

# =========================
# Quantization
# =========================
DEFAULT_COLOUR_LIMIT = 64

NEAR_WHITE_MIN = 250  # all channels strictly above -> WHITE_SNAP
NEAR_BLACK_MAX = 5  # all channels strictly below -> BLACK_SNAP
WHITE_SNAP: Tuple[int, int, int] = (254, 255, 255)
BLACK_SNAP: Tuple[int, int, int] = (5, 22, 22)

CANVAS_BACKGROUND: Tuple[int, int, int] = (255, 255, 255)

# =========================
# Guide export
# =========================
DEFAULT_TILE_SIZE = 24
TILE_UPSCALE = 40
OVERVIEW_UPSCALE = 10
LABEL_SCALE = 0.35  # label font px = upscale * LABEL_SCALE
EMPHASIS_EVERY = 5

GRID_LINE_RGBA: Tuple[int, int, int, int] = (0, 0, 0, 26)  # black @ 10%
EMPHASIS_LINE_RGBA: Tuple[int, int, int, int] = (0, 0, 0, 77)  # black @ 30%
LUMINANCE_THRESHOLD = 128  # compared as (299R + 587G + 114B) / 1000

TILE_NAME = "guide_row{row}_col{col}.png"
OVERVIEW_NAME = "full_view.png"
MANIFEST_NAME = "palette_list.txt"
ARCHIVE_NAME = "town_studio_guide_{stamp}.zip"
MANIFEST_TITLE = "TOWN HUB PIXEL ART GUIDE"

LABEL_FONT_CANDIDATES: List[str] = [
    r"C:\Windows\Fonts\arialbd.ttf",
    r"C:\Windows\Fonts\arial.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
]

# =========================
# Canvas / crop
# =========================
CANVAS_PRESETS: Dict[str, Tuple[int, int]] = {
    "pattern": (48, 48),
    "book_cover": (150, 84),
}
INITIAL_CROP_SCALE = 0.8
MIN_CROP_SCALE = 0.1
MAX_CROP_SCALE = 5.0

DEFAULT_TEXT = "Hello"
DEFAULT_TEXT_SIZE = 8
DEFAULT_TEXT_COLOR = "#000000"
