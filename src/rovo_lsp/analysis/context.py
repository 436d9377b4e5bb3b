from __future__ import annotations

from typing import Sequence

from rovo_lsp.analysis.comments import comment_content, is_doc_comment
from rovo_lsp.analysis.model import SECTION_HEADERS, Section
from rovo_lsp.analysis.parser import HEADER_RE


def section_at(lines: Sequence[str], line: int) -> Section:
    """Section enclosing ``line``, recomputed from the surrounding comment lines.

    The scan walks upward through contiguous ``///`` lines; the nearest header
    decides. A heading the parser does not recognise closes the search with
    ``Section.NONE`` the same way the parser stops interpreting content below
    it.
    """
    if line < 0 or line >= len(lines):
        return Section.NONE
    for index in range(line, -1, -1):
        raw = lines[index]
        if not is_doc_comment(raw):
            return Section.NONE
        content = comment_content(raw)
        if content in SECTION_HEADERS:
            return SECTION_HEADERS[content]
        if HEADER_RE.match(content):
            return Section.NONE
    return Section.NONE


def section_start(lines: Sequence[str], line: int) -> int | None:
    """Line of the header opening the section that contains ``line``."""
    if line < 0 or line >= len(lines):
        return None
    for index in range(line, -1, -1):
        raw = lines[index]
        if not is_doc_comment(raw):
            return None
        if HEADER_RE.match(comment_content(raw)):
            return index
    return None


def section_lines(lines: Sequence[str], line: int) -> list[int]:
    """Indices of the comment lines belonging to the section around ``line``."""
    start = section_start(lines, line)
    if start is None:
        return []
    members: list[int] = []
    for index in range(start + 1, len(lines)):
        raw = lines[index]
        if not is_doc_comment(raw) or HEADER_RE.match(comment_content(raw)):
            break
        members.append(index)
    return members
