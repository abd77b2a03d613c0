"""Контроллер экспорта: оркестрация слотов изображений, пресетов, рендера и сохранения.

SOLID:
- SRP: класс хранит состояние сеанса и связывает сервисы, не рисует и не кодирует сам.
- DIP: каталог пресетов, рендерер и загрузчик изображений внедряются при создании.
"""
from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, List, Optional

from pattern_tool.models.image_model import ImageData
from pattern_tool.models.pattern_config import MAX_IMAGES, PatternConfig, Preset
from pattern_tool.services.image_service import ImageService
from pattern_tool.services.pattern_service import PatternRenderer, Rotations
from pattern_tool.services.preset_store import InMemoryPresetStore, PresetCatalog

logger = logging.getLogger(__name__)


def _empty_slots() -> List[Optional[ImageData]]:
    return [None] * MAX_IMAGES


def _write_atomic(path: Path, data: bytes) -> None:
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as tmp:
            tmp.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        os.unlink(tmp_name)
        raise


@dataclass
class ExportController:
    """Состояние одного сеанса работы с паттерном.

    Ответственности:
    - Слоты изображений (до четырёх) и их загрузка через `ImageService`.
    - Текущая конфигурация и применение/сохранение пресетов через `PresetCatalog`.
    - Углы поворота: генерируются заново при смене размеров сетки или набора изображений.
    - Экспорт: рендер, встраивание DPI и запись файла.
    """
    renderer: PatternRenderer = field(default_factory=PatternRenderer)
    image_service: ImageService = field(default_factory=ImageService)
    catalog: PresetCatalog = field(default_factory=lambda: PresetCatalog(InMemoryPresetStore()))
    config: PatternConfig = field(default_factory=PatternConfig)

    _slots: List[Optional[ImageData]] = field(default_factory=_empty_slots, init=False, repr=False)
    _rotations: Rotations = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        self.reset_rotations()

    @property
    def slots(self) -> List[Optional[ImageData]]:
        return list(self._slots)

    @property
    def rotations(self) -> Rotations:
        return [list(r) for r in self._rotations]

    # ---- Images ----
    def set_image(self, slot: int, file_path: str | Path) -> ImageData:
        self._check_slot(slot)
        image = self.image_service.load_image(file_path)
        self._slots[slot] = image
        self.reset_rotations()
        return image

    async def set_image_async(self, slot: int, file_path: str | Path) -> ImageData:
        self._check_slot(slot)
        image = await self.image_service.load_image_async(file_path)
        self._slots[slot] = image
        self.reset_rotations()
        return image

    def clear_image(self, slot: int) -> None:
        self._check_slot(slot)
        self._slots[slot] = None
        self.reset_rotations()

    # ---- Config & presets ----
    def update_config(self, **changes: Any) -> PatternConfig:
        """Меняет поля конфигурации; при смене размеров сетки углы генерируются заново."""
        new_config = replace(self.config, **changes)
        grid_changed = (new_config.rows, new_config.cols) != (self.config.rows, self.config.cols)
        self.config = new_config
        if grid_changed:
            self.reset_rotations()
        return new_config

    def apply_preset(self, index: int) -> PatternConfig:
        preset = self.catalog.get(index)
        logger.debug("Applying preset %s", preset.label())
        return self.update_config(
            rows=preset.rows,
            cols=preset.cols,
            canvas_width=preset.canvas_width,
            canvas_height=preset.canvas_height,
        )

    def save_current_as_preset(self) -> int:
        return self.catalog.add(Preset.from_config(self.config))

    def delete_preset(self, index: int) -> Preset:
        return self.catalog.delete(index)

    def reset_rotations(self) -> Rotations:
        self._rotations = self.renderer.generate_rotations(self.config.rows, self.config.cols)
        return self.rotations

    # ---- Export ----
    def render_png(self) -> bytes:
        return self.renderer.export_png(self.config, self._slots, self._rotations)

    def export(self, output_path: str | Path) -> Path:
        """Рендерит паттерн и пишет PNG с DPI.

        Байты готовятся целиком до открытия файла и пишутся во временный файл
        рядом с целевым, который затем атомарно переименовывается; при любой
        ошибке целевой файл не создаётся и не обрезается.
        """
        data = self.render_png()
        path = Path(output_path)
        _write_atomic(path, data)
        logger.info("Saved pattern to %s", path)
        return path

    # ---- Helpers ----
    @staticmethod
    def _check_slot(slot: int) -> None:
        if not 0 <= slot < MAX_IMAGES:
            raise IndexError(f"Слот изображения должен быть в диапазоне 0..{MAX_IMAGES - 1}, получено {slot}")
