"""Загрузка исходных изображений для ячеек паттерна.

Принципы:
- SRP: класс отвечает только за декодирование и базовое извлечение свойств.
- Асинхронная загрузка возвращает готовый `ImageData`; размеры читаются
  только после завершения декодирования.
"""
from __future__ import annotations

import asyncio
import io
import logging
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

from pattern_tool.models.image_model import ImageData

logger = logging.getLogger(__name__)


class ImageService:
    def load_image(self, file_path: str | Path) -> ImageData:
        """Загружает изображение с диска и возвращает его вместе с метаданными.

        Args:
            file_path: Путь до файла изображения.

        Returns:
            `ImageData` c `PIL.Image.Image` (в режиме RGBA), размерами, режимом и размером файла.

        Raises:
            FileNotFoundError: если путь не существует или не указывает на файл.
            ValueError: если файл не распознан как изображение.
        """
        path = Path(file_path)
        if not path.exists() or not path.is_file():
            raise FileNotFoundError(f"Файл не найден: {path}")

        try:
            with Image.open(path) as src:
                pil_image = src.convert("RGBA")
        except (UnidentifiedImageError, OSError) as exc:
            raise ValueError(f"Файл не является изображением: {path}") from exc

        try:
            size_bytes: Optional[int] = path.stat().st_size
        except OSError:
            size_bytes = None

        logger.debug("Loaded %s (%dx%d)", path, pil_image.width, pil_image.height)
        return self._pack(path, pil_image, size_bytes)

    def load_image_bytes(self, data: bytes) -> ImageData:
        """Декодирует изображение из байтов (например, содержимого загруженного файла).

        Raises:
            ValueError: если данные не распознаны как изображение.
        """
        try:
            with Image.open(io.BytesIO(data)) as src:
                pil_image = src.convert("RGBA")
        except (UnidentifiedImageError, OSError) as exc:
            raise ValueError("Данные не являются изображением") from exc
        return self._pack(None, pil_image, len(data))

    async def load_image_async(self, file_path: str | Path) -> ImageData:
        """Асинхронный вариант `load_image`: декодирование в рабочем потоке."""
        return await asyncio.to_thread(self.load_image, file_path)

    @staticmethod
    def _pack(path: Optional[Path], pil_image: Image.Image, size_bytes: Optional[int]) -> ImageData:
        width, height = pil_image.size
        return ImageData(
            path=path,
            pil_image=pil_image,
            width=width,
            height=height,
            mode=pil_image.mode,
            size_bytes=size_bytes,
        )
