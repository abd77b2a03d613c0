"""Хранилище пользовательских пресетов.

Хранилище внедряется в `PresetCatalog` при создании; глобального состояния нет.
На диске пресеты лежат JSON-массивом `[[rows, cols, width, height], ...]`.
Встроенные пресеты не сохраняются, они всегда добавляются каталогом.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Protocol, Sequence

from pattern_tool.models.pattern_config import DEFAULT_PRESETS, Preset

logger = logging.getLogger(__name__)


class PresetStoreError(Exception):
    """Файл пресетов повреждён или не может быть записан."""


class PresetStore(Protocol):
    def load(self) -> List[Preset]: ...

    def save(self, presets: Sequence[Preset]) -> None: ...


class InMemoryPresetStore:
    def __init__(self, presets: Sequence[Preset] = ()) -> None:
        self._presets = list(presets)

    def load(self) -> List[Preset]:
        return list(self._presets)

    def save(self, presets: Sequence[Preset]) -> None:
        self._presets = list(presets)


class JsonPresetStore:
    """Пресеты в JSON-файле; отсутствующий файл означает пустой список."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> List[Preset]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise PresetStoreError(f"Не удалось прочитать пресеты из {self.path}") from exc
        if not isinstance(raw, list):
            raise PresetStoreError(f"Ожидался JSON-массив в {self.path}")

        presets: List[Preset] = []
        for item in raw:
            if not isinstance(item, list) or len(item) != 4:
                raise PresetStoreError(f"Некорректная запись пресета: {item!r}")
            try:
                presets.append(Preset(*item))
            except ValueError as exc:
                raise PresetStoreError(f"Некорректная запись пресета: {item!r}") from exc
        return presets

    def save(self, presets: Sequence[Preset]) -> None:
        data = [list(p.dimensions) for p in presets]
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data), encoding="utf-8")
        except OSError as exc:
            raise PresetStoreError(f"Не удалось сохранить пресеты в {self.path}") from exc
        logger.debug("Saved %d presets to %s", len(data), self.path)


class PresetCatalog:
    """Встроенные пресеты плюс пользовательские из хранилища.

    Индексы сквозные: сначала встроенные, затем пользовательские.
    """

    def __init__(self, store: PresetStore, builtins: Sequence[Preset] = DEFAULT_PRESETS) -> None:
        self._store = store
        self._builtins = tuple(builtins)
        self._custom = store.load()

    def all(self) -> List[Preset]:
        return [*self._builtins, *self._custom]

    def get(self, index: int) -> Preset:
        presets = self.all()
        if not 0 <= index < len(presets):
            raise IndexError(f"Нет пресета с индексом {index}")
        return presets[index]

    def add(self, preset: Preset) -> int:
        """Добавляет пресет и возвращает его индекс.

        Совпадающий по размерам со встроенным или уже сохранённым пресет
        не дублируется; возвращается индекс существующего.
        """
        for i, existing in enumerate(self.all()):
            if existing.dimensions == preset.dimensions:
                return i
        added = Preset(*preset.dimensions)
        updated = [*self._custom, added]
        # состояние меняется только после успешной записи
        self._store.save(updated)
        self._custom = updated
        logger.info("Saved preset %s", added.label())
        return len(self._builtins) + len(self._custom) - 1

    def delete(self, index: int) -> Preset:
        """Удаляет пользовательский пресет.

        Raises:
            ValueError: попытка удалить встроенный пресет.
            IndexError: индекс вне диапазона.
        """
        preset = self.get(index)
        if index < len(self._builtins):
            raise ValueError(f"Встроенный пресет {preset.label()} нельзя удалить")
        pos = index - len(self._builtins)
        updated = [*self._custom[:pos], *self._custom[pos + 1:]]
        self._store.save(updated)
        self._custom = updated
        logger.info("Deleted preset %s", preset.label())
        return preset
