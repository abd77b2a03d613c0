"""Общие фикстуры: минимальные PNG-потоки и файлы изображений."""
from __future__ import annotations

import io
from pathlib import Path
from typing import Callable, Tuple

import numpy as np
import pytest
from PIL import Image

from png_helpers import build_png


@pytest.fixture
def minimal_png() -> bytes:
    return build_png()


@pytest.fixture
def make_image_file(tmp_path: Path) -> Callable[..., Path]:
    """Фабрика PNG-файлов заданного цвета и размера."""
    def _make(name: str = "img.png", size: Tuple[int, int] = (10, 10), color=(255, 0, 0, 255)) -> Path:
        path = tmp_path / name
        Image.new("RGBA", size, color).save(path)
        return path

    return _make


@pytest.fixture
def truncated_png() -> bytes:
    """PNG с целым заголовком, но оборванным IDAT: открывается, не декодируется."""
    noise = np.random.default_rng(0).integers(0, 256, size=(64, 64, 3), dtype=np.uint8)
    buf = io.BytesIO()
    Image.fromarray(noise).save(buf, format="PNG")
    return buf.getvalue()[:200]
