# town_palette/image_io.py
from __future__ import annotations

import io
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

from PIL import Image, ImageFont, ImageOps, UnidentifiedImageError

from .constants import LABEL_FONT_CANDIDATES
from .errors import ImageLoadError

"""
Image I/O helpers: decode sources to sRGB RGBA, encode PNG bytes, pick fonts.
"""

try:
    from PIL import ImageCms  # ICC conversion if profile present
except ImportError:  # pragma: no cover
    ImageCms = None  # type: ignore[assignment]

ImageSource = Union[str, Path, bytes, Image.Image]


def _convert_to_srgb_rgba(im: Image.Image) -> Image.Image:
    im = ImageOps.exif_transpose(im)
    icc_bytes = im.info.get("icc_profile")

    if icc_bytes and ImageCms is not None:
        try:
            src_prof = ImageCms.ImageCmsProfile(io.BytesIO(icc_bytes))
            dst_prof = ImageCms.createProfile("sRGB")
            im2 = ImageCms.profileToProfile(
                im,
                src_prof,
                dst_prof,
                renderingIntent=ImageCms.Intent.PERCEPTUAL,
                outputMode="RGBA",
            )
            if im2 is None:
                return im.convert("RGBA")
            return im2
        except (ImageCms.PyCMSError, OSError, ValueError):
            return im.convert("RGBA")

    return im.convert("RGBA")


def load_source_image(source: ImageSource) -> Image.Image:
    """
    Decode a path, raw bytes or an already-open image into an RGBA image.

    Raises ImageLoadError when the data cannot be read or decoded.
    """
    if isinstance(source, Image.Image):
        return _convert_to_srgb_rgba(source)
    try:
        if isinstance(source, bytes):
            with Image.open(io.BytesIO(source)) as im0:
                im0.load()
                return _convert_to_srgb_rgba(im0)
        with Image.open(Path(source)) as im0:
            im0.load()
            return _convert_to_srgb_rgba(im0)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        name = "<bytes>" if isinstance(source, bytes) else str(source)
        raise ImageLoadError(f"cannot load image {name}: {e}") from e


def encode_png(image: Image.Image) -> bytes:
    """PNG-encode an image in memory."""
    buf = io.BytesIO()
    image.save(buf, format="PNG", optimize=False)
    return buf.getvalue()


@lru_cache(maxsize=32)
def load_font(
    size: int, font_path: Optional[str] = None
) -> Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]:
    """
    TrueType font at `size` px. Tries `font_path`, then common system fonts,
    then Pillow's built-in default font.
    """
    size = max(1, int(size))
    candidates = ([font_path] if font_path else []) + LABEL_FONT_CANDIDATES
    for p in candidates:
        try:
            if Path(p).exists():
                return ImageFont.truetype(p, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


__all__ = [
    "ImageSource",
    "load_source_image",
    "encode_png",
    "load_font",
]
