"""Параметры паттерна и пресеты размеров сетки.

Принципы:
- Неизменяемые записи (`frozen=True`); изменения через `dataclasses.replace`.
- Валидация в `__post_init__`: некорректная конфигурация не создаётся вовсе.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Literal, Optional, Tuple, Union

MAX_IMAGES = 4

Color = Union[str, Tuple[int, int, int], Tuple[int, int, int, int]]
FitMode = Literal["stretch", "contain"]
FIT_MODES: Tuple[str, ...] = ("stretch", "contain")


def _require_positive_int(name: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{name} должно быть целым числом >= 1, получено {value!r}")


@dataclass(frozen=True)
class PatternConfig:
    """Конфигурация одного рендера.

    Fields:
        rows: Число строк сетки.
        cols: Число столбцов сетки.
        canvas_width: Ширина холста, px.
        canvas_height: Высота холста, px.
        dpi: Разрешение, записываемое в чанк pHYs.
        background: Цвет фона (строка PIL или RGB/RGBA) или `None` для прозрачного.
        fit: "stretch" растягивает картинку на ячейку, "contain" вписывает с сохранением пропорций.
    """
    rows: int = 9
    cols: int = 9
    canvas_width: int = 720
    canvas_height: int = 720
    dpi: float = 72
    background: Optional[Color] = None
    fit: FitMode = "contain"

    def __post_init__(self) -> None:
        _require_positive_int("rows", self.rows)
        _require_positive_int("cols", self.cols)
        _require_positive_int("canvas_width", self.canvas_width)
        _require_positive_int("canvas_height", self.canvas_height)
        if isinstance(self.dpi, bool) or not isinstance(self.dpi, (int, float)):
            raise ValueError(f"dpi должно быть числом, получено {self.dpi!r}")
        if not math.isfinite(self.dpi) or self.dpi <= 0:
            raise ValueError(f"dpi должно быть конечным положительным числом, получено {self.dpi!r}")
        if self.fit not in FIT_MODES:
            raise ValueError(f"fit должно быть одним из {FIT_MODES}, получено {self.fit!r}")

    @property
    def cell_width(self) -> float:
        return self.canvas_width / self.cols

    @property
    def cell_height(self) -> float:
        return self.canvas_height / self.rows

    def with_preset(self, preset: "Preset") -> "PatternConfig":
        """Новая конфигурация с размерами сетки и холста из пресета."""
        return replace(
            self,
            rows=preset.rows,
            cols=preset.cols,
            canvas_width=preset.canvas_width,
            canvas_height=preset.canvas_height,
        )


@dataclass(frozen=True)
class Preset:
    """Сохраняемый набор размеров: строки, столбцы, ширина и высота холста."""
    rows: int
    cols: int
    canvas_width: int
    canvas_height: int
    builtin: bool = False

    def __post_init__(self) -> None:
        _require_positive_int("rows", self.rows)
        _require_positive_int("cols", self.cols)
        _require_positive_int("canvas_width", self.canvas_width)
        _require_positive_int("canvas_height", self.canvas_height)

    @property
    def dimensions(self) -> Tuple[int, int, int, int]:
        return (self.rows, self.cols, self.canvas_width, self.canvas_height)

    @classmethod
    def from_config(cls, config: PatternConfig) -> "Preset":
        return cls(config.rows, config.cols, config.canvas_width, config.canvas_height)

    def label(self) -> str:
        kind = "стандарт" if self.builtin else "пользовательский"
        return f"{self.rows}×{self.cols} / {self.canvas_width}×{self.canvas_height}px ({kind})"


DEFAULT_PRESETS: Tuple[Preset, ...] = (
    Preset(9, 9, 720, 720, builtin=True),
    Preset(12, 12, 1024, 1024, builtin=True),
    Preset(6, 6, 480, 480, builtin=True),
    Preset(10, 15, 1280, 720, builtin=True),
    Preset(15, 10, 720, 1280, builtin=True),
)
