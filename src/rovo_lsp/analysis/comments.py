"""Recognition of doc-comment lines, handler markers and handler blocks."""

from __future__ import annotations

import re
from typing import Sequence

from rovo_lsp.analysis.model import DocLine, HandlerBlock

DOC_PREFIX = "///"
DEFAULT_HANDLER_LOOKAHEAD = 20
_SIGNATURE_SCAN_LIMIT = 40

_MARKER_RE = re.compile(r"^#\[\s*(?:\w+::)*rovo\b")
_DEPRECATED_RE = re.compile(r"^#\[\s*deprecated\b")
_FN_NAME_RE = re.compile(r"\bfn\s+([A-Za-z_][A-Za-z0-9_]*)")


def is_doc_comment(line: str) -> bool:
    return line.lstrip().startswith(DOC_PREFIX)


def is_attribute(line: str) -> bool:
    return line.lstrip().startswith("#[")


def is_handler_marker(line: str) -> bool:
    return bool(_MARKER_RE.match(line.strip()))


def comment_content(line: str) -> str:
    """Trimmed text after the ``///`` prefix, or ``""`` for other lines."""
    stripped = line.lstrip()
    if not stripped.startswith(DOC_PREFIX):
        return ""
    return stripped[len(DOC_PREFIX):].strip()


def doc_line(index: int, raw: str) -> DocLine:
    stripped = raw.lstrip()
    column = len(raw) - len(stripped) + len(DOC_PREFIX)
    text = stripped[len(DOC_PREFIX):]
    if text.startswith(" "):
        text = text[1:]
        column += 1
    return DocLine(line=index, text=text.rstrip(), column=column, raw=raw)


def doc_lines_from_text(text: str) -> list[DocLine]:
    """Every ``///`` line of ``text`` as a DocLine, other lines dropped."""
    from rovo_lsp.analysis.positions import split_lines

    return [
        doc_line(index, raw)
        for index, raw in enumerate(split_lines(text))
        if is_doc_comment(raw)
    ]


def is_near_handler(
    lines: Sequence[str],
    line: int,
    window: int = DEFAULT_HANDLER_LOOKAHEAD,
) -> bool:
    """Whether ``line`` sits in a comment block that leads to a handler marker.

    The scan walks forward at most ``window`` lines across doc comments,
    attributes and blank lines; any other code ends the block.
    """
    if line < 0 or line >= len(lines):
        return False
    for index in range(line, min(line + window, len(lines))):
        trimmed = lines[index].strip()
        if is_handler_marker(trimmed):
            return True
        if trimmed and not trimmed.startswith(DOC_PREFIX) and not trimmed.startswith("#["):
            return False
    return False


def _collect_signature(lines: Sequence[str], start: int) -> tuple[str, int | None]:
    collected: list[str] = []
    depth = 0
    seen_params = False
    first_line: int | None = None
    for index in range(start, min(start + _SIGNATURE_SCAN_LIMIT, len(lines))):
        raw = lines[index]
        if first_line is None:
            if not _FN_NAME_RE.search(raw):
                if raw.strip():
                    return "", None
                continue
            first_line = index
        kept: list[str] = []
        for char in raw:
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
                if depth == 0:
                    seen_params = True
            elif seen_params and depth == 0 and char in "{;":
                collected.append("".join(kept))
                return "\n".join(collected).strip(), first_line
            kept.append(char)
        collected.append("".join(kept))
    return "\n".join(collected).strip(), first_line


def find_handlers(lines: Sequence[str]) -> list[HandlerBlock]:
    """Locate every handler marker and the doc block and signature around it."""
    blocks: list[HandlerBlock] = []
    for index, raw in enumerate(lines):
        if not is_handler_marker(raw):
            continue
        deprecated = False
        docs: list[DocLine] = []
        cursor = index - 1
        while cursor >= 0:
            candidate = lines[cursor]
            stripped = candidate.strip()
            if is_doc_comment(candidate):
                docs.append(doc_line(cursor, candidate))
            elif stripped.startswith("#["):
                deprecated = deprecated or bool(_DEPRECATED_RE.match(stripped))
            elif stripped:
                break
            cursor -= 1
        docs.reverse()

        cursor = index + 1
        while cursor < len(lines):
            stripped = lines[cursor].strip()
            if stripped.startswith("#["):
                deprecated = deprecated or bool(_DEPRECATED_RE.match(stripped))
            elif stripped and not stripped.startswith("//"):
                break
            cursor += 1
        signature_text, signature_line = _collect_signature(lines, cursor)
        name_match = _FN_NAME_RE.search(signature_text)
        blocks.append(
            HandlerBlock(
                marker_line=index,
                doc_lines=tuple(docs),
                name=name_match.group(1) if name_match else None,
                signature_text=signature_text,
                signature_line=signature_line,
                deprecated=deprecated,
            )
        )
    return blocks


def handler_at(lines: Sequence[str], line: int) -> HandlerBlock | None:
    for block in find_handlers(lines):
        last = block.signature_line if block.signature_line is not None else block.marker_line
        if block.first_line <= line <= last:
            return block
    return None
