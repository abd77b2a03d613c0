"""Модель загруженного исходного изображения для ячеек паттерна.

Принципы:
- SRP: только структура данных, без логики загрузки и отрисовки.
- Неизменяемость (`frozen=True`): рендер не может подменить исходник.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import Image


@dataclass(frozen=True)
class ImageData:
    """Декодированное изображение и его метаданные.

    Fields:
        path: Путь к исходному файлу или `None` для данных из памяти.
        pil_image: Изображение PIL в режиме RGBA.
        width: Ширина, px.
        height: Высота, px.
        mode: Режим PIL, всегда "RGBA" после загрузки.
        size_bytes: Размер исходных данных, если известен.
    """
    path: Optional[Path]
    pil_image: Image.Image
    width: int
    height: int
    mode: str
    size_bytes: Optional[int]

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height if self.height else 1.0
