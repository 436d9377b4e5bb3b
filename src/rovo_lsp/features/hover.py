"""Hover text for status codes, security schemes, types and annotations."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence

from rovo_lsp.analysis.annotations import STATUS_LINE_RE, annotation_name
from rovo_lsp.analysis.comments import (
    DEFAULT_HANDLER_LOOKAHEAD,
    doc_line,
    is_doc_comment,
    is_near_handler,
)
from rovo_lsp.analysis.context import section_at
from rovo_lsp.analysis.docs import (
    SECURITY_SCHEMES,
    annotation_documentation,
    section_documentation,
    status_code_info,
)
from rovo_lsp.analysis.model import SECTION_HEADERS, Section
from rovo_lsp.analysis.positions import split_lines, utf16_to_char_index
from rovo_lsp.analysis.type_resolver import (
    WRAPPER_TYPES,
    declaration_snippet,
    extract_inner_type,
    find_declaration,
)

_WORD_RE = re.compile(r"[A-Za-z0-9_]+")
_SEPARATOR_RE = re.compile(r"\s-(?:\s|$)")
_RUST_KEYWORDS = frozenset({"Self", "None", "Some", "Ok", "Err"})


@dataclass(frozen=True)
class CursorLine:
    lines: Sequence[str]
    line: int
    raw: str
    index: int


def cursor_line(text: str, line: int, character: int) -> CursorLine | None:
    lines = split_lines(text)
    if line < 0 or line >= len(lines):
        return None
    raw = lines[line]
    index = utf16_to_char_index(raw, character)
    if index is None:
        return None
    return CursorLine(lines, line, raw, index)


def word_at(raw: str, index: int) -> tuple[str, int, int] | None:
    for match in _WORD_RE.finditer(raw):
        if match.start() <= index <= match.end():
            return match.group(0), match.start(), match.end()
    return None


def _type_region(cursor: CursorLine, section: Section) -> tuple[int, int] | None:
    """Columns holding a type expression or example value on the cursor line."""
    dl = doc_line(cursor.line, cursor.raw)
    status = STATUS_LINE_RE.match(dl.content)
    if section is Section.RESPONSES:
        if status is None:
            return None
        colon = cursor.raw.find(":", dl.span_of(status.group(1)).end)
        start = colon + 1
        separator = _SEPARATOR_RE.search(cursor.raw, start)
        end = separator.start() if separator else len(cursor.raw)
        return start, end
    if section is Section.EXAMPLES:
        if status is None:
            return dl.column, len(cursor.raw)
        colon = cursor.raw.find(":", dl.span_of(status.group(1)).end)
        return colon + 1, len(cursor.raw)
    return None


def type_under_cursor(cursor: CursorLine) -> str | None:
    """The type name a hover or goto-definition on the cursor should resolve."""
    if not is_doc_comment(cursor.raw):
        return None
    section = section_at(cursor.lines, cursor.line)
    region = _type_region(cursor, section)
    if region is None or not region[0] <= cursor.index <= region[1]:
        return None
    found = word_at(cursor.raw, cursor.index)
    if found is None:
        return None
    word, start, end = found
    if start < region[0] or end > region[1]:
        return None
    if word in WRAPPER_TYPES and section is Section.RESPONSES:
        return extract_inner_type(cursor.raw[region[0]:region[1]]) or None
    if not word[:1].isupper() or word in _RUST_KEYWORDS:
        return None
    return word


def _type_hover(text: str, name: str) -> str | None:
    line = find_declaration(text, name)
    if line is None:
        return None
    snippet = declaration_snippet(text, line)
    return f"**{name}**\n\nDefined at line {line + 1}\n\n```rust\n{snippet}\n```"


def get_hover(
    text: str,
    line: int,
    character: int,
    *,
    window: int = DEFAULT_HANDLER_LOOKAHEAD,
) -> str | None:
    """Markdown for the token under the cursor, or ``None``."""
    cursor = cursor_line(text, line, character)
    if cursor is None or not is_doc_comment(cursor.raw):
        return None
    if not is_near_handler(cursor.lines, line, window):
        return None
    dl = doc_line(line, cursor.raw)
    content = dl.content
    section = section_at(cursor.lines, line)

    if content in SECTION_HEADERS:
        span = dl.span_of(content)
        if span.start <= cursor.index <= span.end:
            return section_documentation(content)
        return None

    name = annotation_name(content) if content.startswith("@") else None
    if name is not None:
        keyword = dl.span_of(f"@{name}")
        if keyword.start <= cursor.index <= keyword.end:
            return annotation_documentation(f"@{name}")
        if name == "security":
            found = word_at(cursor.raw, cursor.index)
            if found is not None and found[0] in SECURITY_SCHEMES:
                return SECURITY_SCHEMES[found[0]].markdown
        return None

    if section in (Section.RESPONSES, Section.EXAMPLES):
        status = STATUS_LINE_RE.match(content)
        if status is not None:
            span = dl.span_of(status.group(1))
            if span.start <= cursor.index <= span.end and len(status.group(1)) == 3:
                return status_code_info(int(status.group(1)))

    type_name = type_under_cursor(cursor)
    if type_name is not None:
        return _type_hover(text, type_name)
    return None
