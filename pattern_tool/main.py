"""Точка входа: командная строка для рендера паттерна и работы с DPI."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

import numpy as np

from pattern_tool.controllers.export_controller import ExportController
from pattern_tool.logging_setup import configure_logging
from pattern_tool.models.pattern_config import FIT_MODES, MAX_IMAGES, PatternConfig, Preset
from pattern_tool.services.pattern_service import PatternRenderer
from pattern_tool.services.png_dpi import embed_dpi, read_dpi
from pattern_tool.services.preset_store import JsonPresetStore, PresetCatalog, PresetStoreError

logger = logging.getLogger(__name__)

DEFAULT_PRESETS_FILE = Path.home() / ".pattern_tool" / "presets.json"
EXIT_INVALID = 2


def _add_grid_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--rows", type=int, help="Число строк сетки")
    parser.add_argument("--cols", type=int, help="Число столбцов сетки")
    parser.add_argument("--width", type=int, help="Ширина холста, px")
    parser.add_argument("--height", type=int, help="Высота холста, px")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pattern-tool", description="Генератор шахматного паттерна из изображений")
    parser.add_argument("-v", "--verbose", action="store_true", help="Подробный лог")
    parser.add_argument("--presets-file", type=Path, default=DEFAULT_PRESETS_FILE, help="JSON-файл пользовательских пресетов")
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Нарисовать паттерн и сохранить PNG с DPI")
    render.add_argument("-i", "--image", action="append", default=[], type=Path, help=f"Изображение (до {MAX_IMAGES})")
    _add_grid_args(render)
    render.add_argument("--preset", type=int, help="Индекс пресета (см. `presets list`)")
    render.add_argument("--dpi", type=float, default=72, help="Разрешение, точек на дюйм")
    render.add_argument("--background", help="Цвет фона, например white или #ff0000; по умолчанию прозрачный")
    render.add_argument("--fit", choices=FIT_MODES, default="contain", help="Масштабирование изображения в ячейке")
    render.add_argument("--seed", type=int, help="Seed генератора углов поворота")
    render.add_argument("-o", "--output", type=Path, default=Path("pattern.png"), help="Выходной файл")

    embed = sub.add_parser("embed-dpi", help="Вставить чанк pHYs в существующий PNG")
    embed.add_argument("input", type=Path)
    embed.add_argument("output", type=Path)
    embed.add_argument("--dpi", type=float, required=True)

    show = sub.add_parser("show-dpi", help="Показать DPI из чанка pHYs")
    show.add_argument("input", type=Path)

    presets = sub.add_parser("presets", help="Управление пресетами")
    presets_sub = presets.add_subparsers(dest="action", required=True)
    presets_sub.add_parser("list", help="Список пресетов")
    save = presets_sub.add_parser("save", help="Сохранить пресет")
    _add_grid_args(save)
    delete = presets_sub.add_parser("delete", help="Удалить пользовательский пресет")
    delete.add_argument("index", type=int)
    return parser


def _cmd_render(args: argparse.Namespace, catalog: PresetCatalog) -> int:
    if len(args.image) > MAX_IMAGES:
        raise ValueError(f"Допускается не более {MAX_IMAGES} изображений, получено {len(args.image)}")

    rng = np.random.default_rng(args.seed)
    controller = ExportController(renderer=PatternRenderer(rng), catalog=catalog)
    if args.preset is not None:
        controller.apply_preset(args.preset)
    overrides = {
        key: value
        for key, value in (
            ("rows", args.rows),
            ("cols", args.cols),
            ("canvas_width", args.width),
            ("canvas_height", args.height),
        )
        if value is not None
    }
    controller.update_config(dpi=args.dpi, background=args.background, fit=args.fit, **overrides)
    for slot, path in enumerate(args.image):
        controller.set_image(slot, path)

    path = controller.export(args.output)
    print(path)
    return 0


def _cmd_embed(args: argparse.Namespace) -> int:
    data = embed_dpi(args.input.read_bytes(), args.dpi)
    args.output.write_bytes(data)
    logger.info("Embedded %s DPI into %s", args.dpi, args.output)
    return 0


def _cmd_show(args: argparse.Namespace) -> int:
    dpi = read_dpi(args.input.read_bytes())
    print("нет pHYs" if dpi is None else f"{dpi:.2f}")
    return 0


def _cmd_presets(args: argparse.Namespace, catalog: PresetCatalog) -> int:
    if args.action == "list":
        for i, preset in enumerate(catalog.all()):
            print(f"{i}: {preset.label()}")
    elif args.action == "save":
        base = PatternConfig()
        preset = Preset(
            args.rows if args.rows is not None else base.rows,
            args.cols if args.cols is not None else base.cols,
            args.width if args.width is not None else base.canvas_width,
            args.height if args.height is not None else base.canvas_height,
        )
        print(catalog.add(preset))
    else:
        catalog.delete(args.index)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Разбирает аргументы и выполняет команду; ошибки ввода дают код 2."""
    args = build_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        if args.command == "embed-dpi":
            return _cmd_embed(args)
        if args.command == "show-dpi":
            return _cmd_show(args)
        catalog = PresetCatalog(JsonPresetStore(args.presets_file))
        if args.command == "render":
            return _cmd_render(args, catalog)
        return _cmd_presets(args, catalog)
    except (ValueError, IndexError, OSError, PresetStoreError) as exc:
        logger.error("%s", exc)
        return EXIT_INVALID


if __name__ == "__main__":
    sys.exit(main())
