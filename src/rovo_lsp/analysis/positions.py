"""Conversions between LSP UTF-16 columns, UTF-8 byte offsets and str indices.

Editors address characters in UTF-16 code units while Python slices strings
by code point. Every conversion here works on a single line of text; a column
that lands past the end of the line or between the two halves of a surrogate
pair has no counterpart and yields ``None``.
"""

from __future__ import annotations

import re

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


def split_lines(text: str) -> list[str]:
    """Split ``text`` the way LSP counts lines (``\\r\\n``, ``\\r`` or ``\\n``)."""
    return _LINE_BREAK_RE.split(text)


def _utf16_units(char: str) -> int:
    return 2 if ord(char) > 0xFFFF else 1


def utf16_length(text: str) -> int:
    return sum(_utf16_units(char) for char in text)


def utf16_to_char_index(line: str, column: int) -> int | None:
    if column < 0:
        return None
    units = 0
    for index, char in enumerate(line):
        if units == column:
            return index
        if units > column:
            return None
        units += _utf16_units(char)
    if units == column:
        return len(line)
    return None


def char_index_to_utf16(line: str, index: int) -> int:
    index = max(0, min(index, len(line)))
    return utf16_length(line[:index])


def utf16_to_byte_index(line: str, column: int) -> int | None:
    """UTF-16 column to UTF-8 byte offset within ``line``."""
    index = utf16_to_char_index(line, column)
    if index is None:
        return None
    return len(line[:index].encode("utf-8"))


def byte_index_to_utf16(line: str, byte_index: int) -> int:
    """UTF-8 byte offset to UTF-16 column; offsets past the end clamp to it."""
    consumed = 0
    units = 0
    for char in line:
        if consumed >= byte_index:
            break
        consumed += len(char.encode("utf-8"))
        units += _utf16_units(char)
    return units
