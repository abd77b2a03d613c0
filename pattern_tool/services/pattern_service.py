"""Рендер паттерна: сетка в шахматном порядке с поворотом каждой ячейки.

Правила раскладки:
- Ячейка (row, col) рисуется, только если чётности строки и столбца совпадают,
  поэтому в сетке R×C рисуется ceil(R*C/2) ячеек.
- Изображение для ячейки выбирается по строке: `slots[row % len(slots)]`;
  пустой слот означает пустую ячейку.
- Поворот каждой ячейки — независимое целое число градусов из [0, 360),
  воспроизводимость между рендерами не гарантируется.
"""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image

from pattern_tool.models.image_model import ImageData
from pattern_tool.models.pattern_config import MAX_IMAGES, Color, PatternConfig
from pattern_tool.services.png_dpi import embed_dpi

logger = logging.getLogger(__name__)

Rotations = List[List[int]]
Slots = Sequence[Optional[ImageData]]

TRANSPARENT = (0, 0, 0, 0)


@dataclass(frozen=True)
class Cell:
    """Рисуемая ячейка сетки: индексы, прямоугольник на холсте и поворот."""
    row: int
    col: int
    x: float
    y: float
    width: float
    height: float
    rotation: int

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)


def should_draw(row: int, col: int) -> bool:
    return row % 2 == col % 2


def drawn_cell_count(rows: int, cols: int) -> int:
    return (rows * cols + 1) // 2


def image_index(row: int, n_slots: int) -> int:
    return row % n_slots


def _normalize_slots(images: Slots) -> List[Optional[ImageData]]:
    if len(images) > MAX_IMAGES:
        raise ValueError(f"Допускается не более {MAX_IMAGES} изображений, получено {len(images)}")
    slots = list(images)
    # хвостовые пустые слоты не участвуют в цикле по строкам
    while slots and slots[-1] is None:
        slots.pop()
    return slots


def _fill_color(background: Optional[Color]) -> Color:
    if background is None:
        return TRANSPARENT
    if isinstance(background, tuple) and len(background) == 3:
        return (*background, 255)
    return background


class PatternRenderer:
    """Строит растр паттерна и итоговый PNG с DPI.

    Генератор случайных чисел внедряется снаружи (`numpy.random.Generator`),
    иначе создаётся новый без фиксированного seed.
    """

    def __init__(self, rng: Optional[np.random.Generator] = None) -> None:
        self._rng = rng if rng is not None else np.random.default_rng()

    def generate_rotations(self, rows: int, cols: int) -> Rotations:
        """Независимые равномерные углы [0, 360) для каждой ячейки сетки."""
        return self._rng.integers(0, 360, size=(rows, cols)).tolist()

    def iter_cells(self, config: PatternConfig, rotations: Optional[Rotations] = None) -> Iterator[Cell]:
        """Рисуемые ячейки в порядке строк; отсутствующие углы считаются нулём."""
        cw, ch = config.cell_width, config.cell_height
        for row in range(config.rows):
            row_rot = rotations[row] if rotations is not None and row < len(rotations) else ()
            for col in range(config.cols):
                if not should_draw(row, col):
                    continue
                rotation = int(row_rot[col]) if col < len(row_rot) else 0
                yield Cell(row, col, col * cw, row * ch, cw, ch, rotation)

    def render(self, config: PatternConfig, images: Slots, rotations: Optional[Rotations] = None) -> Image.Image:
        """Рисует паттерн на RGBA-холсте `canvas_width × canvas_height`.

        Args:
            config: Размеры сетки и холста, фон, режим масштабирования.
            images: До четырёх слотов; `None` — пустой слот.
            rotations: Углы по ячейкам `[row][col]`; если не заданы, генерируются.

        Returns:
            Новое изображение PIL в режиме RGBA.

        Raises:
            ValueError: если слотов больше четырёх.
        """
        slots = _normalize_slots(images)
        canvas = Image.new("RGBA", (config.canvas_width, config.canvas_height), _fill_color(config.background))
        if not slots:
            logger.debug("No images supplied, rendering background only")
            return canvas
        if rotations is None:
            rotations = self.generate_rotations(config.rows, config.cols)

        drawn = 0
        for cell in self.iter_cells(config, rotations):
            source = slots[image_index(cell.row, len(slots))]
            if source is None:
                continue
            tile = self._prepare_tile(source.pil_image, cell, config.fit)
            self._composite_centered(canvas, tile, cell.center)
            drawn += 1
        logger.debug("Rendered %d cells on %dx%d canvas", drawn, config.canvas_width, config.canvas_height)
        return canvas

    def encode_png(self, image: Image.Image) -> bytes:
        """PNG без метаданных разрешения: IHDR сразу за сигнатурой."""
        buf = io.BytesIO()
        image.save(buf, format="PNG")
        return buf.getvalue()

    def export_png(self, config: PatternConfig, images: Slots, rotations: Optional[Rotations] = None) -> bytes:
        """Рендер, кодирование в PNG и встраивание DPI (ровно один вызов `embed_dpi`)."""
        base = self.encode_png(self.render(config, images, rotations))
        out = embed_dpi(base, config.dpi)
        logger.info("Exported %dx%d PNG at %s DPI (%d bytes)", config.canvas_width, config.canvas_height, config.dpi, len(out))
        return out

    # ---- Helpers ----
    @staticmethod
    def _prepare_tile(src: Image.Image, cell: Cell, fit: str) -> Image.Image:
        if fit == "stretch":
            size = (max(1, round(cell.width)), max(1, round(cell.height)))
        else:
            scale = min(cell.width / src.width, cell.height / src.height)
            size = (max(1, round(src.width * scale)), max(1, round(src.height * scale)))
        tile = src if src.size == size else src.resize(size, Image.Resampling.LANCZOS)
        if cell.rotation % 360:
            # PIL вращает против часовой стрелки, угол ячейки по часовой
            tile = tile.rotate(-cell.rotation, resample=Image.Resampling.BICUBIC, expand=True)
        return tile

    @staticmethod
    def _composite_centered(canvas: Image.Image, tile: Image.Image, center: Tuple[float, float]) -> None:
        left = round(center[0] - tile.width / 2)
        top = round(center[1] - tile.height / 2)
        # обрезаем часть плитки за пределами холста
        src_left, src_top = max(0, -left), max(0, -top)
        src_right = min(tile.width, canvas.width - left)
        src_bottom = min(tile.height, canvas.height - top)
        if src_right <= src_left or src_bottom <= src_top:
            return
        canvas.alpha_composite(
            tile,
            dest=(max(0, left), max(0, top)),
            source=(src_left, src_top, src_right, src_bottom),
        )
