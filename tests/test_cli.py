# tests/test_cli.py
import argparse
import zipfile

import numpy as np
import pytest
from PIL import Image

import town_guide


def test_parse_text_layer_full():
    layer = town_guide.parse_text_layer("Hi there@10,20,12,#FF0000")
    assert (layer.text, layer.x, layer.y, layer.size, layer.color) == (
        "Hi there",
        10.0,
        20.0,
        12,
        "#FF0000",
    )


def test_parse_text_layer_defaults():
    layer = town_guide.parse_text_layer("a@b@50,50")
    assert layer.text == "a@b"
    assert (layer.size, layer.color) == (8, "#000000")


@pytest.mark.parametrize("value", ["no-position", "@1,2", "x@1", "x@1,2,3,#12", "x@a,b"])
def test_parse_text_layer_rejects(value):
    with pytest.raises(argparse.ArgumentTypeError):
        town_guide.parse_text_layer(value)


def test_missing_source_exits_2(tmp_path, capsys):
    assert town_guide.main([str(tmp_path / "nope.png")]) == 2
    assert "[error] not found" in capsys.readouterr().err


def test_bad_limit_exits_2(tmp_path):
    src = tmp_path / "in.png"
    Image.new("RGB", (4, 4), (0, 0, 0)).save(src)
    assert town_guide.main([str(src), "--limit", "0"]) == 2


@pytest.mark.parametrize(
    "flags",
    [
        ["--width", "0"],
        ["--width", "-3"],
        ["--height", "0"],
        ["--tile-size", "0"],
        ["--upscale", "0"],
        ["--overview-upscale", "0"],
        ["--jobs", "0"],
        ["--workers", "0"],
    ],
)
def test_bad_numeric_option_exits_2(tmp_path, capsys, flags):
    src = tmp_path / "in.png"
    Image.new("RGB", (4, 4), (0, 0, 0)).save(src)
    assert town_guide.main([str(src), *flags]) == 2
    assert f"{flags[0]} must be >= 1" in capsys.readouterr().err
    assert not list(tmp_path.glob("*_town*"))


def test_explicit_size_overrides_preset():
    args = town_guide.parse_cli_args(["x.png", "--width", "7", "--height", "9"])
    assert town_guide._canvas_size(args) == (7, 9)
    args = town_guide.parse_cli_args(["x.png"])
    assert town_guide._canvas_size(args) == town_guide.CANVAS_PRESETS[args.preset]


def test_single_image_end_to_end(tmp_path):
    src = tmp_path / "photo.png"
    arr = np.zeros((8, 8, 3), dtype=np.uint8)
    arr[:4] = (255, 255, 255)
    Image.fromarray(arr).save(src)
    out = tmp_path / "out"

    rc = town_guide.main(
        [
            str(src),
            "--outdir", str(out),
            "--width", "8",
            "--height", "8",
            "--tile-size", "4",
            "--upscale", "4",
            "--workers", "1",
            "--text", "A@50,50,6",
        ]
    )
    assert rc == 0
    preview = out / "photo_town.png"
    assert Image.open(preview).size == (8, 8)
    zips = list(out.glob("photo_town_studio_guide_*.zip"))
    assert len(zips) == 1
    with zipfile.ZipFile(zips[0]) as zf:
        names = zf.namelist()
    assert names[:4] == [
        "guide_row1_col1.png",
        "guide_row1_col2.png",
        "guide_row2_col1.png",
        "guide_row2_col2.png",
    ]
    assert names[4:] == ["full_view.png", "palette_list.txt"]


def test_folder_skips_outputs(tmp_path):
    for name in ("a.png", "b.png"):
        Image.new("RGB", (6, 6), (255, 255, 255)).save(tmp_path / name)
    rc = town_guide.main(
        [str(tmp_path), "--width", "6", "--height", "6", "--jobs", "2", "--workers", "1"]
    )
    assert rc == 0
    assert sorted(p.name for p in tmp_path.glob("*_town.png")) == ["a_town.png", "b_town.png"]
    # A second run ignores the previews it wrote.
    assert town_guide.main([str(tmp_path), "--width", "6", "--height", "6"]) == 0
    assert len(list(tmp_path.glob("*_town_town.png"))) == 0


def test_unreadable_image_fails(tmp_path):
    src = tmp_path / "broken.png"
    src.write_bytes(b"not a png")
    assert town_guide.main([str(src), "--width", "4", "--height", "4"]) == 1
