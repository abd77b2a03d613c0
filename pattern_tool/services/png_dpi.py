"""Встраивание физического разрешения (DPI) в готовый PNG.

Модуль работает с PNG как с последовательностью чанков `length | type | data | crc`
и не декодирует изображение. Чанк `pHYs` вставляется сразу после первого чанка
потока (IHDR), т.е. для PNG, экспортированного с холста, по смещению 33.

Принципы:
- Чистые функции: вход не мутируется, результат всегда новый `bytes`.
- Ошибки входа — `InvalidInputError` до построения выходного буфера.
"""
from __future__ import annotations

import base64
import binascii
import math
import numbers
import struct
import zlib
from typing import Iterator, Optional, Tuple, Union

BytesLike = Union[bytes, bytearray, memoryview]

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
PHYS_TYPE = b"pHYs"
UNIT_METER = 1
INCH_IN_METERS = 0.0254
U32_MAX = 0xFFFFFFFF

# signature (8) + IHDR: length/type (8) + payload (13) + crc (4)
CANVAS_PREFIX_SIZE = 33
# length/type (8) + payload (9) + crc (4)
PHYS_CHUNK_SIZE = 21

_CHUNK_HEAD = struct.Struct(">I4s")
_PHYS_PAYLOAD = struct.Struct(">IIB")
_DATA_URL_PREFIX = "data:image/png;base64,"


class InvalidInputError(ValueError):
    """Некорректный PNG-поток или значение DPI."""


def crc32(data: BytesLike) -> int:
    """CRC-32 (полином 0xEDB88320, init 0xFFFFFFFF, финальная инверсия)."""
    return zlib.crc32(data) & U32_MAX


def dpi_to_ppm(dpi: float) -> int:
    """Переводит DPI в пиксели на метр с округлением к ближайшему целому.

    Raises:
        InvalidInputError: DPI не число, не конечен, не положителен
            или плотность не помещается в беззнаковое 32-битное поле.
    """
    if isinstance(dpi, bool) or not isinstance(dpi, numbers.Real):
        raise InvalidInputError(f"DPI должен быть числом, получено {type(dpi).__name__}")
    try:
        value = float(dpi)
    except OverflowError as exc:
        raise InvalidInputError(f"DPI слишком велик для 32-битного поля pHYs: {dpi!r}") from exc
    if not math.isfinite(value) or value <= 0:
        raise InvalidInputError(f"DPI должен быть конечным положительным числом: {dpi!r}")

    if value > U32_MAX:
        raise InvalidInputError(f"DPI слишком велик для 32-битного поля pHYs: {dpi!r}")

    # half-up, как Math.round; для положительных значений совпадает с half-away-from-zero
    ppm = math.floor(value * (1 / INCH_IN_METERS) + 0.5)
    if ppm < 1:
        raise InvalidInputError(f"DPI слишком мал, плотность округляется до нуля: {dpi!r}")
    if ppm > U32_MAX:
        raise InvalidInputError(f"DPI слишком велик для 32-битного поля pHYs: {dpi!r}")
    return ppm


def ppm_to_dpi(ppm: int) -> float:
    return ppm * INCH_IN_METERS


def build_phys_chunk(dpi: float) -> bytes:
    """Собирает 21-байтовый чанк pHYs с одинаковой плотностью по X и Y."""
    ppm = dpi_to_ppm(dpi)
    payload = _PHYS_PAYLOAD.pack(ppm, ppm, UNIT_METER)
    return (
        _CHUNK_HEAD.pack(len(payload), PHYS_TYPE)
        + payload
        + struct.pack(">I", crc32(PHYS_TYPE + payload))
    )


def _check_png(png: BytesLike) -> memoryview:
    if not isinstance(png, (bytes, bytearray, memoryview)):
        raise InvalidInputError(f"PNG должен быть bytes-подобным объектом, получено {type(png).__name__}")
    view = memoryview(png).cast("B")
    if len(view) < CANVAS_PREFIX_SIZE:
        raise InvalidInputError(
            f"PNG слишком короткий: {len(view)} байт, нужно минимум {CANVAS_PREFIX_SIZE}"
        )
    if bytes(view[:8]) != PNG_SIGNATURE:
        raise InvalidInputError("Поток не начинается с сигнатуры PNG")
    return view


def iter_chunks(png: BytesLike) -> Iterator[Tuple[bytes, int, int]]:
    """Обходит чанки после сигнатуры.

    Yields:
        `(type, start, end)`, где `start`/`end` — границы всего чанка
        (от поля длины до конца CRC) в исходном потоке.

    Raises:
        InvalidInputError: сигнатура неверна или чанк выходит за конец потока.
    """
    view = _check_png(png)
    total = len(view)
    offset = len(PNG_SIGNATURE)
    while offset < total:
        if offset + _CHUNK_HEAD.size > total:
            raise InvalidInputError(f"Обрезанный заголовок чанка по смещению {offset}")
        length, chunk_type = _CHUNK_HEAD.unpack_from(view, offset)
        end = offset + _CHUNK_HEAD.size + length + 4
        if end > total:
            raise InvalidInputError(
                f"Чанк {chunk_type!r} по смещению {offset} выходит за конец потока"
            )
        yield chunk_type, offset, end
        offset = end


def _insertion_offset(png: BytesLike) -> int:
    for _chunk_type, _start, end in iter_chunks(png):
        return end
    raise InvalidInputError("PNG не содержит ни одного чанка")


def embed_dpi(png: BytesLike, dpi: float) -> bytes:
    """Возвращает копию PNG с чанком pHYs сразу после первого чанка (IHDR).

    Args:
        png: Полный PNG-поток, например результат экспорта холста.
        dpi: Разрешение, точек на дюйм.

    Returns:
        Новый поток длиной `len(png) + 21`; байты до и после точки вставки
        сохраняются без изменений.

    Raises:
        InvalidInputError: см. `dpi_to_ppm` и проверки структуры потока.
    """
    chunk = build_phys_chunk(dpi)
    offset = _insertion_offset(png)
    data = bytes(png)
    return data[:offset] + chunk + data[offset:]


def read_dpi(png: BytesLike) -> Optional[float]:
    """Читает DPI из первого чанка pHYs, расположенного до данных изображения.

    Returns:
        DPI по горизонтали или `None`, если чанка нет либо единица не метр.

    Raises:
        InvalidInputError: структура потока нарушена или CRC чанка pHYs неверен.
    """
    view = _check_png(png)
    for chunk_type, start, end in iter_chunks(view):
        if chunk_type in (b"IDAT", b"IEND"):
            break
        if chunk_type != PHYS_TYPE:
            continue
        body = bytes(view[start + 4:end - 4])
        (expected,) = struct.unpack_from(">I", view, end - 4)
        if crc32(body) != expected:
            raise InvalidInputError(f"Неверный CRC чанка pHYs по смещению {start}")
        if len(body) - 4 != _PHYS_PAYLOAD.size:
            raise InvalidInputError(f"Неверная длина чанка pHYs: {len(body) - 4}")
        ppm_x, _ppm_y, unit = _PHYS_PAYLOAD.unpack_from(body, 4)
        if unit != UNIT_METER:
            return None
        return ppm_to_dpi(ppm_x)
    return None


def embed_dpi_data_url(data_url: str, dpi: float) -> str:
    """То же, что `embed_dpi`, но для `data:image/png;base64,...`."""
    if not isinstance(data_url, str) or not data_url.startswith(_DATA_URL_PREFIX):
        raise InvalidInputError("Ожидается data URL вида data:image/png;base64,...")
    try:
        png = base64.b64decode(data_url[len(_DATA_URL_PREFIX):], validate=True)
    except binascii.Error as exc:
        raise InvalidInputError("Некорректный base64 в data URL") from exc
    out = embed_dpi(png, dpi)
    return _DATA_URL_PREFIX + base64.b64encode(out).decode("ascii")
