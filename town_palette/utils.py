# town_palette/utils.py
from __future__ import annotations

"""
Console output and small colour helpers shared by the pipeline and the CLI.

Everything prints straight to stdout (errors to stderr) with a short tag so
folder runs can capture a whole file's output and replay it in order.
"""

import sys
from collections import Counter
from typing import Any, Iterable, List, Optional, Sequence, TextIO, Tuple

import numpy as np

from .core_types import ActiveEntry, U8Image


# Colour helpers


def unique_colours_with_inverse(rgb: U8Image) -> Tuple[U8Image, np.ndarray]:
    """
    Distinct RGB rows of an [H,W,3] image.

    Returns:
      unique_rgb: uint8 [U,3]
      inverse_idx: int64 [H*W] with unique_rgb[inverse_idx] == rgb.reshape(-1, 3)
    """
    flat = np.ascontiguousarray(rgb).reshape(-1, 3)
    if not len(flat):
        return np.empty((0, 3), dtype=np.uint8), np.empty((0,), dtype=np.int64)
    unique_rgb, inverse_idx = np.unique(flat, axis=0, return_inverse=True)
    # numpy 2 keeps the input's leading shape on the inverse
    return unique_rgb.astype(np.uint8), np.ravel(inverse_idx).astype(np.int64)


def colour_usage_report(colors: Sequence[str]) -> List[Tuple[str, int]]:
    """(hex, pixels) for quantized output, most used first."""
    return Counter(colors).most_common()


def format_palette_entry(rank: int, entry: ActiveEntry) -> str:
    return f"{rank:>3}. {entry.index:<6} {entry.hex}  {entry.count:,} px"


# Value formatting


def format_duration(seconds: float, precise: bool = False) -> str:
    """
    '12.3ms', '4.2s' or '3m 07s'. precise=True keeps milliseconds on the
    seconds form ('4.217s'), used for per-stage timings.
    """
    if seconds < 1.0:
        return f"{seconds * 1000.0:.1f}ms"
    if seconds < 60.0:
        return f"{seconds:.3f}s" if precise else f"{seconds:.1f}s"
    whole = int(round(seconds))
    return f"{whole // 60}m {whole % 60:02d}s"


def format_value(value: Any) -> str:
    """on/off for bools, 1,234 for ints, trimmed floats, str() otherwise."""
    if value is True or value is False:
        return "on" if value else "off"
    if isinstance(value, int):
        return f"{value:,}"
    if isinstance(value, float):
        return f"{value:.3f}".rstrip("0").rstrip(".") or "0"
    return str(value)


def format_pairs(pairs: Iterable[Tuple[str, Any]], sep: str = "  ") -> str:
    """[('Tiles', 4), ('Workers', 2)] -> 'Tiles: 4  Workers: 2'"""
    return sep.join(f"{name}: {format_value(value)}" for name, value in pairs)


# Console output


def _emit(message: str, tag: Optional[str] = None, stream: Optional[TextIO] = None) -> None:
    line = f"[{tag}] {message}" if tag else message
    print(line, file=stream if stream is not None else sys.stdout, flush=True)


def log(message: str) -> None:
    _emit(message)


def debug_log(message: str) -> None:
    _emit(message, "debug")


def warn(message: str) -> None:
    _emit(message, "warn")


def error(message: str) -> None:
    _emit(message, "error", sys.stderr)


def print_banner(title: str) -> None:
    _emit(f"\n=== {title} ===")


def print_config_line(section: str, pairs: Iterable[Tuple[str, Any]], debug: bool) -> None:
    """'[export] Tile size: 24  Upscale: 40', via debug_log when debug is set."""
    line = f"[{section}] {format_pairs(pairs)}"
    if debug:
        debug_log(line)
    else:
        log(line)


def print_progress(label: str, done: int, total: int) -> None:
    """Rewrite the current terminal line with 'label done/total (pct%)'."""
    pct = 100 if total <= 0 else int(100 * done / total)
    sys.stdout.write(f"\r\033[K{label} {done}/{total} ({pct}%)")
    if done >= total:
        sys.stdout.write("\n")
    sys.stdout.flush()


def enable_line_buffered_stdout() -> None:
    """Flush stdout per line where the stream supports reconfigure()."""
    reconfigure = getattr(sys.stdout, "reconfigure", None)
    if not callable(reconfigure):
        return
    try:
        reconfigure(line_buffering=True)
    except (OSError, ValueError):
        # detached or already-wrapped streams
        return


__all__ = [
    "unique_colours_with_inverse",
    "colour_usage_report",
    "format_palette_entry",
    "format_duration",
    "format_value",
    "format_pairs",
    "log",
    "debug_log",
    "warn",
    "error",
    "print_banner",
    "print_config_line",
    "print_progress",
    "enable_line_buffered_stdout",
]
