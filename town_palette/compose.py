# town_palette/compose.py
from __future__ import annotations

"""
Canvas compositing: white background, cropped/scaled source, text layers.

Exports:
  SurfaceFactory                 : (width, height) -> PIL RGB image
  new_surface(width, height)     : default white RGB surface
  composite_canvas(source, width, height, crop, text_layers) -> uint8 [H,W,3]
  initial_crop() / reset_position(crop) / reset_scale(crop) / clamp_scale(scale)
  fit_to_canvas(source_size, canvas_size) -> CropTransform
  new_text_layer(layer_id) -> TextLayer

The source is drawn centred: its centre lands on the canvas centre shifted by
(crop.x, crop.y), at crop.scale times its native size. Text is anchored at its
centre, positioned in percent of the canvas size.
"""

import math
from typing import Callable, Optional, Sequence, Tuple

import numpy as np
from PIL import Image, ImageDraw

from .constants import (
    CANVAS_BACKGROUND,
    DEFAULT_TEXT,
    DEFAULT_TEXT_COLOR,
    DEFAULT_TEXT_SIZE,
    INITIAL_CROP_SCALE,
    MAX_CROP_SCALE,
    MIN_CROP_SCALE,
)
from .core_types import CropTransform, TextLayer, U8Image, hex_to_rgb
from .errors import RenderingUnavailable
from .image_io import load_font

SurfaceFactory = Callable[[int, int], Image.Image]


def new_surface(width: int, height: int) -> Image.Image:
    """Opaque white RGB surface. Raises RenderingUnavailable if Pillow cannot allocate it."""
    try:
        return Image.new("RGB", (int(width), int(height)), CANVAS_BACKGROUND)
    except (ValueError, MemoryError) as e:
        raise RenderingUnavailable(f"cannot create {width}x{height} surface: {e}") from e


def validate_dimensions(width: int, height: int) -> Tuple[int, int]:
    """Positive integer canvas size or ValueError."""
    for name, v in (("width", width), ("height", height)):
        if isinstance(v, float) and not math.isfinite(v):
            raise ValueError(f"{name} must be finite, got {v}")
        if int(v) != v or int(v) <= 0:
            raise ValueError(f"{name} must be a positive integer, got {v}")
    return int(width), int(height)


def _validate_crop(crop: CropTransform) -> None:
    for name in ("x", "y", "scale"):
        v = float(getattr(crop, name))
        if not math.isfinite(v):
            raise ValueError(f"crop.{name} must be finite, got {v}")


def _draw_source(
    canvas: Image.Image, source: Image.Image, crop: CropTransform
) -> None:
    canvas_w, canvas_h = canvas.size
    draw_w = int(round(source.width * crop.scale))
    draw_h = int(round(source.height * crop.scale))
    if draw_w <= 0 or draw_h <= 0:
        return

    left = canvas_w / 2.0 + crop.x - draw_w / 2.0
    top = canvas_h / 2.0 + crop.y - draw_h / 2.0

    rgba = source if source.mode == "RGBA" else source.convert("RGBA")
    if (draw_w, draw_h) != rgba.size:
        rgba = rgba.resize((draw_w, draw_h), Image.Resampling.BILINEAR)
    canvas.paste(rgba, (int(math.floor(left)), int(math.floor(top))), rgba)


def _draw_text_layers(
    canvas: Image.Image,
    text_layers: Sequence[TextLayer],
    font_path: Optional[str],
) -> None:
    if not text_layers:
        return
    canvas_w, canvas_h = canvas.size
    draw = ImageDraw.Draw(canvas)
    for layer in text_layers:
        if not layer.text:
            continue
        cx = canvas_w * float(layer.x) / 100.0
        cy = canvas_h * float(layer.y) / 100.0
        font = load_font(int(layer.size), font_path)
        draw.text(
            (cx, cy), layer.text, fill=hex_to_rgb(layer.color), font=font, anchor="mm"
        )


def composite_canvas(
    source: Optional[Image.Image],
    width: int,
    height: int,
    crop: CropTransform = CropTransform(),
    text_layers: Sequence[TextLayer] = (),
    *,
    surface_factory: SurfaceFactory = new_surface,
    font_path: Optional[str] = None,
) -> U8Image:
    """
    Render source + text onto a white width x height canvas and read it back.

    Returns:
      uint8 [H,W,3]. Drawing is synchronous, so readback sees the committed draw.
    """
    width, height = validate_dimensions(width, height)
    _validate_crop(crop)

    canvas = surface_factory(width, height)
    if canvas.mode != "RGB":
        canvas = canvas.convert("RGB")
    if source is not None:
        _draw_source(canvas, source, crop)
    _draw_text_layers(canvas, text_layers, font_path)
    return np.array(canvas, dtype=np.uint8)


# Crop helpers


def initial_crop() -> CropTransform:
    """Transform applied when an image is first placed."""
    return CropTransform(0.0, 0.0, INITIAL_CROP_SCALE)


def reset_position(crop: CropTransform) -> CropTransform:
    return CropTransform(0.0, 0.0, crop.scale)


def clamp_scale(scale: float) -> float:
    """Keep a user-entered scale inside the zoom slider range."""
    return min(MAX_CROP_SCALE, max(MIN_CROP_SCALE, float(scale)))


def reset_scale(crop: CropTransform) -> CropTransform:
    return CropTransform(crop.x, crop.y, 1.0)


def fit_to_canvas(
    source_size: Tuple[int, int], canvas_size: Tuple[int, int]
) -> CropTransform:
    """Centred transform with the smallest scale that covers the whole canvas."""
    src_w, src_h = source_size
    canvas_w, canvas_h = canvas_size
    if src_w <= 0 or src_h <= 0:
        raise ValueError("source size must be positive")
    scale = max(canvas_w / float(src_w), canvas_h / float(src_h))
    return CropTransform(0.0, 0.0, scale)


def new_text_layer(layer_id: str) -> TextLayer:
    return TextLayer(
        id=layer_id,
        text=DEFAULT_TEXT,
        x=50.0,
        y=50.0,
        size=DEFAULT_TEXT_SIZE,
        color=DEFAULT_TEXT_COLOR,
    )


__all__ = [
    "SurfaceFactory",
    "new_surface",
    "validate_dimensions",
    "composite_canvas",
    "initial_crop",
    "reset_position",
    "reset_scale",
    "clamp_scale",
    "fit_to_canvas",
    "new_text_layer",
]
