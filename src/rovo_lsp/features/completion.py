"""Completion proposals for annotation comment lines."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Sequence

from rovo_lsp.analysis.comments import (
    DEFAULT_HANDLER_LOOKAHEAD,
    DOC_PREFIX,
    comment_content,
    handler_at,
    is_near_handler,
)
from rovo_lsp.analysis.annotations import PATH_PARAM_LINE_RE
from rovo_lsp.analysis.context import section_at, section_lines
from rovo_lsp.analysis.docs import (
    ANNOTATIONS,
    COMMON_STATUS_CODES,
    SECTIONS,
    SECURITY_SCHEMES,
    status_code_info,
    status_code_summary,
)
from rovo_lsp.analysis.document import handler_signature
from rovo_lsp.analysis.model import SECTION_HEADERS, Section
from rovo_lsp.analysis.parser import parse_doc_lines
from rovo_lsp.analysis.positions import split_lines, utf16_to_char_index


class CompletionKind(str, Enum):
    KEYWORD = "keyword"
    SNIPPET = "snippet"
    VALUE = "value"


@dataclass(frozen=True)
class CompletionItem:
    label: str
    kind: CompletionKind
    detail: str | None = None
    documentation: str | None = None
    insert_text: str | None = None
    # Code point columns on the cursor line that the insert text replaces.
    replace: tuple[int, int] | None = None


ANNOTATION_SNIPPETS: Mapping[str, str] = MappingProxyType(
    {
        "@tag": "@tag ${1:tag_name}",
        "@security": "@security ${1:bearer}",
        "@id": "@id ${1:operation_id}",
        "@hidden": "@hidden",
    }
)

_SECTION_BODIES: Mapping[Section, str] = MappingProxyType(
    {
        Section.RESPONSES: "${1:200}: ${2:Json<T>} - ${3:Successful response}",
        Section.EXAMPLES: "${1:200}: ${2:T::default()}",
        Section.METADATA: "@tag ${1:tag_name}",
        Section.PATH_PARAMETERS: "${1:name}: ${2:Description}",
    }
)

_IDENT_PREFIX_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*|")
_METADATA_CONTEXTS = (Section.NONE, Section.METADATA)


def _section_items(typed: str, replace: tuple[int, int], indent: str) -> list[CompletionItem]:
    items: list[CompletionItem] = []
    for header, section in SECTION_HEADERS.items():
        if not header.startswith(typed):
            continue
        body = _SECTION_BODIES[section]
        entry = SECTIONS[header]
        items.append(
            CompletionItem(
                label=header,
                kind=CompletionKind.SNIPPET,
                detail=entry.summary,
                documentation=entry.markdown,
                insert_text=f"{header}\n{indent}///\n{indent}/// {body}",
                replace=replace,
            )
        )
    return items


def _security_items(typed: str, cursor: int) -> list[CompletionItem]:
    parts = typed.split()
    if len(parts) == 1:
        prefix = ""
    elif len(parts) == 2 and not typed.endswith((" ", "\t")):
        prefix = parts[1]
    else:
        return []
    return [
        CompletionItem(
            label=scheme,
            kind=CompletionKind.KEYWORD,
            detail=entry.summary,
            documentation=entry.markdown,
            insert_text=scheme,
            replace=(cursor - len(prefix), cursor),
        )
        for scheme, entry in SECURITY_SCHEMES.items()
        if scheme.startswith(prefix)
    ]


def _annotation_items(typed: str, replace: tuple[int, int]) -> list[CompletionItem]:
    if any(char.isspace() for char in typed):
        return []
    return [
        CompletionItem(
            label=label,
            kind=CompletionKind.SNIPPET,
            detail=ANNOTATIONS[label].summary,
            documentation=ANNOTATIONS[label].markdown,
            insert_text=snippet,
            replace=replace,
        )
        for label, snippet in ANNOTATION_SNIPPETS.items()
        if label.startswith(typed)
    ]


def _documented_codes(lines: Sequence[str], line: int) -> list[int]:
    block = handler_at(lines, line)
    if block is None:
        return []
    doc = parse_doc_lines(block.doc_lines, errors=[])
    return list(dict.fromkeys(doc.response_codes))


def _status_items(
    lines: Sequence[str],
    line: int,
    section: Section,
    typed: str,
    replace: tuple[int, int],
) -> list[CompletionItem]:
    codes: Sequence[int] = COMMON_STATUS_CODES
    if section is Section.EXAMPLES:
        codes = _documented_codes(lines, line) or COMMON_STATUS_CODES
    items: list[CompletionItem] = []
    for code in codes:
        label = str(code)
        if not label.startswith(typed):
            continue
        summary = status_code_summary(code)
        if section is Section.RESPONSES:
            response_type = "()" if code == 204 else "Json<T>"
            insert = f"{code}: ${{1:{response_type}}} - ${{2:{summary}}}"
        else:
            insert = f"{code}: ${{1:T::default()}}"
        items.append(
            CompletionItem(
                label=label,
                kind=CompletionKind.SNIPPET,
                detail=summary,
                documentation=status_code_info(code),
                insert_text=insert,
                replace=replace,
            )
        )
    return items


def _path_param_items(
    lines: Sequence[str],
    line: int,
    typed: str,
    replace: tuple[int, int],
) -> list[CompletionItem]:
    documented: set[str] = set()
    for index in section_lines(lines, line):
        if index == line:
            continue
        match = PATH_PARAM_LINE_RE.match(comment_content(lines[index]))
        if match is not None:
            documented.add(match.group(1))
    block = handler_at(lines, line)
    signature = handler_signature(block) if block is not None else None
    bindings = signature.bindings if signature is not None else ()
    items = [
        CompletionItem(
            label=name,
            kind=CompletionKind.SNIPPET,
            detail="Path parameter",
            insert_text=f"{name}: ${{1:Description}}",
            replace=replace,
        )
        for name in bindings
        if name not in documented and name.startswith(typed)
    ]
    if items:
        return items
    return [
        CompletionItem(
            label="name: description",
            kind=CompletionKind.SNIPPET,
            detail="Path parameter",
            insert_text="${1:name}: ${2:Description}",
            replace=replace,
        )
    ]


def get_completions(text: str, line: int, character: int) -> list[CompletionItem]:
    """Proposals for the cursor at (``line``, UTF-16 ``character``) in ``text``."""
    lines = split_lines(text)
    if line < 0 or line >= len(lines):
        return []
    raw = lines[line]
    cursor = utf16_to_char_index(raw, character)
    if cursor is None:
        cursor = len(raw)
    prefix = raw[:cursor]
    stripped = prefix.lstrip()
    if not stripped.startswith(DOC_PREFIX):
        return []
    indent = prefix[: len(prefix) - len(stripped)]
    typed = stripped[len(DOC_PREFIX):].lstrip()
    replace = (cursor - len(typed), cursor)
    section = section_at(lines, line)

    if typed.startswith("#"):
        return _section_items(typed, replace, indent)
    if section in _METADATA_CONTEXTS and typed.startswith("@security") and typed[9:10].isspace():
        return _security_items(typed, cursor)
    if section in _METADATA_CONTEXTS and typed.startswith("@"):
        return _annotation_items(typed, replace)
    if section in (Section.RESPONSES, Section.EXAMPLES) and (not typed or typed.isdigit()):
        return _status_items(lines, line, section, typed, replace)
    if section is Section.PATH_PARAMETERS and _IDENT_PREFIX_RE.fullmatch(typed):
        return _path_param_items(lines, line, typed, replace)
    return []


def completion_at(
    text: str,
    line: int,
    character: int,
    *,
    window: int = DEFAULT_HANDLER_LOOKAHEAD,
) -> list[CompletionItem]:
    """Completions restricted to comment blocks that belong to a handler."""
    if not is_near_handler(split_lines(text), line, window):
        return []
    return get_completions(text, line, character)
