"""
Command-line tests for render, embed-dpi, show-dpi and presets commands.
"""
import json
import logging

import pytest
from PIL import Image

from pattern_tool.main import main
from pattern_tool.services.png_dpi import read_dpi


@pytest.fixture(autouse=True)
def detach_log_handlers():
    yield
    logger = logging.getLogger("pattern_tool")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)


@pytest.fixture
def presets_file(tmp_path):
    return tmp_path / "presets.json"


def test_render(tmp_path, make_image_file, presets_file):
    out = tmp_path / "out.png"
    code = main([
        "--presets-file", str(presets_file),
        "render",
        "-i", str(make_image_file("a.png")),
        "-i", str(make_image_file("b.png", color=(0, 0, 255, 255))),
        "--rows", "4", "--cols", "4", "--width", "80", "--height", "40",
        "--dpi", "300", "--background", "white", "--seed", "1",
        "-o", str(out),
    ])
    assert code == 0
    with Image.open(out) as im:
        assert im.size == (80, 40)
    assert read_dpi(out.read_bytes()) == pytest.approx(300, abs=0.01)


def test_render_with_preset(tmp_path, presets_file):
    out = tmp_path / "preset.png"
    assert main(["--presets-file", str(presets_file), "render", "--preset", "2", "-o", str(out)]) == 0
    with Image.open(out) as im:
        assert im.size == (480, 480)


def test_render_rejects_bad_dpi(tmp_path, presets_file):
    out = tmp_path / "bad.png"
    assert main(["--presets-file", str(presets_file), "render", "--dpi", "-5", "-o", str(out)]) == 2
    assert not out.exists()


def test_render_missing_image(tmp_path, presets_file):
    code = main(["--presets-file", str(presets_file), "render", "-i", str(tmp_path / "nope.png"), "-o", str(tmp_path / "x.png")])
    assert code == 2


def test_embed_and_show(tmp_path, capsys):
    src, dst = tmp_path / "in.png", tmp_path / "out.png"
    Image.new("RGB", (3, 3)).save(src)
    assert main(["embed-dpi", str(src), str(dst), "--dpi", "254"]) == 0
    assert len(dst.read_bytes()) == len(src.read_bytes()) + 21
    assert main(["show-dpi", str(dst)]) == 0
    assert capsys.readouterr().out.strip().endswith("254.00")


def test_embed_rejects_short_file(tmp_path):
    src = tmp_path / "short.png"
    src.write_bytes(b"\x89PNG")
    assert main(["embed-dpi", str(src), str(tmp_path / "o.png"), "--dpi", "72"]) == 2


def test_presets_cycle(presets_file, capsys):
    assert main(["--presets-file", str(presets_file), "presets", "save", "--rows", "3", "--cols", "2", "--width", "30", "--height", "20"]) == 0
    index = int(capsys.readouterr().out.strip())
    assert json.loads(presets_file.read_text()) == [[3, 2, 30, 20]]

    assert main(["--presets-file", str(presets_file), "presets", "list"]) == 0
    listing = capsys.readouterr().out
    assert f"{index}: 3×2 / 30×20px" in listing

    assert main(["--presets-file", str(presets_file), "presets", "delete", "0"]) == 2
    assert main(["--presets-file", str(presets_file), "presets", "delete", str(index)]) == 0
    assert json.loads(presets_file.read_text()) == []


def test_render_truncated_image(tmp_path, presets_file, truncated_png):
    src = tmp_path / "cut.png"
    src.write_bytes(truncated_png)
    out = tmp_path / "out.png"
    code = main(["--presets-file", str(presets_file), "render", "-i", str(src), "-o", str(out)])
    assert code == 2
    assert not out.exists()


def test_render_output_is_directory(tmp_path, presets_file):
    assert main(["--presets-file", str(presets_file), "render", "--rows", "2", "--cols", "2", "-o", str(tmp_path)]) == 2
    assert tmp_path.is_dir()
    assert not list(tmp_path.parent.glob(f".{tmp_path.name}.*.tmp"))
