"""Find-references and rename for ``@tag`` values across a document."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Sequence

from rovo_lsp.analysis.comments import doc_line, is_doc_comment
from rovo_lsp.analysis.model import Span
from rovo_lsp.analysis.positions import split_lines, utf16_to_char_index

_TAG_LINE_RE = re.compile(r"^@tag\s+(\S+)")


@dataclass(frozen=True)
class TagOccurrence:
    name: str
    span: Span
    keyword_start: int

    def under(self, index: int) -> bool:
        return self.keyword_start <= index <= self.span.end


@dataclass(frozen=True)
class TextEdit:
    span: Span
    new_text: str


def tag_occurrences(lines: Sequence[str]) -> Iterator[TagOccurrence]:
    for index, raw in enumerate(lines):
        if not is_doc_comment(raw):
            continue
        dl = doc_line(index, raw)
        match = _TAG_LINE_RE.match(dl.content)
        if match is None:
            continue
        keyword_start = raw.find("@tag", dl.column)
        name = match.group(1)
        name_start = raw.find(name, keyword_start + len("@tag"))
        yield TagOccurrence(name, Span(index, name_start, name_start + len(name)), keyword_start)


def tag_at(text: str, line: int, character: int) -> tuple[TagOccurrence, list[str]] | None:
    lines = split_lines(text)
    if line < 0 or line >= len(lines):
        return None
    index = utf16_to_char_index(lines[line], character)
    if index is None:
        return None
    for occurrence in tag_occurrences(lines):
        if occurrence.span.line == line and occurrence.under(index):
            return occurrence, lines
    return None


def find_references(text: str, line: int, character: int) -> list[Span] | None:
    """Every ``@tag`` value equal to the one under the cursor."""
    found = tag_at(text, line, character)
    if found is None:
        return None
    target, lines = found
    return [occ.span for occ in tag_occurrences(lines) if occ.name == target.name]


def prepare_rename(text: str, line: int, character: int) -> tuple[Span, str] | None:
    found = tag_at(text, line, character)
    if found is None:
        return None
    target, _lines = found
    return target.span, target.name


def rename_tag(text: str, line: int, character: int, new_name: str) -> list[TextEdit] | None:
    """Edits renaming the tag under the cursor everywhere in ``text``.

    Returns ``None`` when the cursor is not on a tag or ``new_name`` is empty
    or contains whitespace.
    """
    new_name = new_name.strip()
    if not new_name or any(char.isspace() for char in new_name):
        return None
    spans = find_references(text, line, character)
    if spans is None:
        return None
    return [TextEdit(span, new_name) for span in spans]
