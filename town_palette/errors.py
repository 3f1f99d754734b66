"""Error kinds surfaced by the quantizer and the guide exporter."""
from __future__ import annotations


class TownPaletteError(RuntimeError):
    """Base class for town_palette failures."""


class ImageLoadError(TownPaletteError):
    """Source image could not be opened or decoded."""


class RenderingUnavailable(TownPaletteError):
    """A raster surface could not be created for compositing or drawing."""


class TileRenderSkipped(TownPaletteError):
    """One guide tile failed to render. Logged by the exporter, never raised out of it."""

    def __init__(self, row: int, col: int, reason: str) -> None:
        super().__init__(f"tile r{row} c{col} skipped: {reason}")
        self.row = row
        self.col = col
        self.reason = reason


class ArchiveWriteError(TownPaletteError):
    """The guide archive could not be finalised."""


__all__ = [
    "TownPaletteError",
    "ImageLoadError",
    "RenderingUnavailable",
    "TileRenderSkipped",
    "ArchiveWriteError",
]
