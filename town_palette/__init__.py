# town_palette/__init__.py
"""
town_palette package.

Purpose:
  Convert images to the fixed town palette and export printable pixel guides.
  See town_guide.py for the CLI.

Public API:
  quantize        : composited canvas -> PixelData (top-K active palette).
  quantize_source : load + crop + text + quantize in one call.
  export_guide    : PixelData -> GuideArchive (tiles, overview, manifest).
  lookup_hex / lookup_rgb / all_ids : static palette accessors.
  colour_distance : directional redmean metric (sample, candidate).
  core_types      : value objects (PixelData, ActiveEntry, CropTransform, TextLayer).
  errors          : ImageLoadError, RenderingUnavailable, TileRenderSkipped, ArchiveWriteError.

Quick start:
  from town_palette import quantize_source, export_guide
  data = quantize_source("photo.png", 48, 48, colour_limit=64)
  export_guide(data, tile_size=24).write_zip("guide.zip")
"""

__version__ = "0.1.0"

from . import core_types
from . import palette_data
from . import errors
from . import utils

from .colour_distance import colour_distance
from .compose import composite_canvas, fit_to_canvas, initial_crop
from .core_types import ActiveEntry, CropTransform, PaletteEntry, PixelData, TextLayer
from .errors import (
    ArchiveWriteError,
    ImageLoadError,
    RenderingUnavailable,
    TileRenderSkipped,
    TownPaletteError,
)
from .export import GuideArchive, contrast_text_colour, export_guide, tile_extents
from .nearest import closest_full_palette, closest_in_active_set
from .palette_data import all_ids, lookup_hex, lookup_rgb
from .quantize import quantize, quantize_source

__all__ = [
    "__version__",
    "core_types",
    "palette_data",
    "errors",
    "utils",
    "colour_distance",
    "composite_canvas",
    "fit_to_canvas",
    "initial_crop",
    "ActiveEntry",
    "CropTransform",
    "PaletteEntry",
    "PixelData",
    "TextLayer",
    "ArchiveWriteError",
    "ImageLoadError",
    "RenderingUnavailable",
    "TileRenderSkipped",
    "TownPaletteError",
    "GuideArchive",
    "contrast_text_colour",
    "export_guide",
    "tile_extents",
    "closest_full_palette",
    "closest_in_active_set",
    "all_ids",
    "lookup_hex",
    "lookup_rgb",
    "quantize",
    "quantize_source",
]
