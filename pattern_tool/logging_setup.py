"""Настройка логирования приложения."""
from __future__ import annotations

import logging
import sys

LOGGER_NAME = "pattern_tool"


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    """Настраивает и возвращает корневой логгер пакета.

    Повторный вызов не добавляет обработчики, только меняет уровень.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    if logger.handlers:
        return logger

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return logger
