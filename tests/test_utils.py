# tests/test_utils.py
import numpy as np

from town_palette.core_types import ActiveEntry
from town_palette.utils import (
    colour_usage_report,
    format_duration,
    format_palette_entry,
    format_pairs,
    format_value,
    print_config_line,
    unique_colours_with_inverse,
)


def test_unique_colours_rebuild_image(rng):
    img = rng.integers(0, 4, size=(5, 6, 3), dtype=np.uint8)
    uniq, inv = unique_colours_with_inverse(img)
    assert inv.shape == (30,)
    assert (uniq[inv] == img.reshape(-1, 3)).all()
    assert len(np.unique(uniq, axis=0)) == len(uniq)


def test_unique_colours_empty():
    uniq, inv = unique_colours_with_inverse(np.zeros((0, 0, 3), dtype=np.uint8))
    assert uniq.shape == (0, 3)
    assert inv.shape == (0,)


def test_colour_usage_report_most_used_first():
    assert colour_usage_report(["#A", "#B", "#B", "#C", "#B", "#A"]) == [
        ("#B", 3),
        ("#A", 2),
        ("#C", 1),
    ]


def test_format_duration():
    assert format_duration(0.0123) == "12.3ms"
    assert format_duration(4.26) == "4.3s"
    assert format_duration(4.217, precise=True) == "4.217s"
    assert format_duration(187.0) == "3m 07s"


def test_format_value_and_pairs():
    assert format_value(True) == "on"
    assert format_value(False) == "off"
    assert format_value(12345) == "12,345"
    assert format_value(0.5) == "0.5"
    assert format_value(2.0) == "2"
    assert format_value("48x48") == "48x48"
    assert format_pairs([("Tiles", 4), ("Debug", False)]) == "Tiles: 4  Debug: off"


def test_format_palette_entry():
    entry = ActiveEntry(index="5-1", hex="#D0354D", count=1200)
    assert format_palette_entry(1, entry) == "  1. 5-1    #D0354D  1,200 px"


def test_print_config_line(capsys):
    print_config_line("export", [("Workers", 2)], debug=False)
    print_config_line("export", [("Workers", 2)], debug=True)
    out = capsys.readouterr().out.splitlines()
    assert out == ["[export] Workers: 2", "[debug] [export] Workers: 2"]
