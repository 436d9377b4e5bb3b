"""Code actions: scaffold sections and annotations, fix reported problems."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from rovo_lsp.analysis.comments import comment_content, handler_at, is_attribute
from rovo_lsp.analysis.context import section_lines
from rovo_lsp.analysis.document import handler_signature
from rovo_lsp.analysis.model import (
    SECTION_HEADERS,
    Diagnostic,
    DocInfo,
    HandlerBlock,
    Section,
    Span,
)
from rovo_lsp.analysis.parser import parse_doc_lines
from rovo_lsp.analysis.positions import split_lines
from rovo_lsp.features.references import TextEdit

STATUS_FIXES = (200, 201, 400, 404, 500)
COMMON_REST_RESPONSES = (
    "200: Json<T> - Success",
    "400: Json<Error> - Bad request",
    "404: Json<Error> - Not found",
    "500: Json<Error> - Internal server error",
)
_FN_RE = re.compile(r"^\s*(?:pub(?:\s*\([^)]*\))?\s+)?(?:async\s+)?fn\s+\w+")
_ANNOTATION_KEYWORD_RE = re.compile(r"@[\w-]+")


class ActionKind(str, Enum):
    QUICK_FIX = "quickfix"
    REFACTOR = "refactor.rewrite"


@dataclass(frozen=True)
class CodeActionSpec:
    title: str
    kind: ActionKind
    edits: tuple[TextEdit, ...]
    preferred: bool = False


def _indent(raw: str) -> str:
    return raw[: len(raw) - len(raw.lstrip())]


def _insert(line: int, indent: str, contents: Sequence[str]) -> TextEdit:
    text = "".join(f"{indent}///{' ' + content if content else ''}\n" for content in contents)
    return TextEdit(Span(line, 0, 0), text)


def _block_insert_line(lines: Sequence[str], block: HandlerBlock) -> int:
    if block.doc_lines:
        return block.doc_lines[-1].line + 1
    line = block.marker_line
    while line > 0 and is_attribute(lines[line - 1]):
        line -= 1
    return line


def _present_sections(block: HandlerBlock) -> dict[Section, int]:
    present: dict[Section, int] = {}
    for dl in block.doc_lines:
        section = SECTION_HEADERS.get(dl.content)
        if section is not None:
            present.setdefault(section, dl.line)
    return present


def _section_actions(
    lines: Sequence[str],
    block: HandlerBlock,
    doc: DocInfo,
    present: dict[Section, int],
) -> list[CodeActionSpec]:
    indent = _indent(lines[block.marker_line])
    at = _block_insert_line(lines, block)
    lead = [""] if block.doc_lines else []
    bodies: dict[Section, list[str]] = {
        Section.RESPONSES: ["200: Json<T> - Success"],
        Section.EXAMPLES: [f"{(doc.response_codes or [200])[0]}: T::default()"],
        Section.METADATA: ["@tag TAG_NAME"],
    }
    signature = handler_signature(block)
    if signature is not None and signature.bindings:
        bodies[Section.PATH_PARAMETERS] = [f"{name}: Description" for name in signature.bindings]

    actions: list[CodeActionSpec] = []
    for header, section in SECTION_HEADERS.items():
        if section in present or section not in bodies:
            continue
        actions.append(
            CodeActionSpec(
                f"Add {header} section",
                ActionKind.REFACTOR,
                (_insert(at, indent, [*lead, header, "", *bodies[section]]),),
            )
        )
    if Section.RESPONSES not in present:
        actions.append(
            CodeActionSpec(
                "Add common REST responses",
                ActionKind.REFACTOR,
                (_insert(at, indent, [*lead, "# Responses", "", *COMMON_REST_RESPONSES]),),
            )
        )
    return actions


def _metadata_actions(
    lines: Sequence[str],
    block: HandlerBlock,
    doc: DocInfo,
    present: dict[Section, int],
) -> list[CodeActionSpec]:
    indent = _indent(lines[block.marker_line])
    candidates = [("Add @tag", "@tag TAG_NAME"), ("Add @security", "@security SCHEME")]
    if doc.operation_id is None:
        candidates.append(("Add @id", "@id OPERATION_ID"))
    if not doc.hidden:
        candidates.append(("Add @hidden", "@hidden"))

    header_line = present.get(Section.METADATA)
    if header_line is not None:
        members = section_lines(lines, header_line)
        at = (members[-1] if members else header_line) + 1
        prefix: list[str] = []
    else:
        at = _block_insert_line(lines, block)
        prefix = ["", "# Metadata", ""] if block.doc_lines else ["# Metadata", ""]
    return [
        CodeActionSpec(title, ActionKind.REFACTOR, (_insert(at, indent, [*prefix, annotation]),))
        for title, annotation in candidates
    ]


def _init_action(lines: Sequence[str], line: int) -> list[CodeActionSpec]:
    if not _FN_RE.match(lines[line]):
        return []
    edit = TextEdit(Span(line, 0, 0), f"{_indent(lines[line])}#[rovo]\n")
    return [CodeActionSpec("Add #[rovo] macro", ActionKind.REFACTOR, (edit,))]


def get_code_actions(text: str, line: int) -> list[CodeActionSpec]:
    """Scaffolding actions for the handler whose doc block or header holds ``line``."""
    lines = split_lines(text)
    if line < 0 or line >= len(lines):
        return []
    block = handler_at(lines, line)
    if block is None:
        return _init_action(lines, line)
    doc = parse_doc_lines(block.doc_lines, errors=[])
    present = _present_sections(block)
    return [
        *_section_actions(lines, block, doc, present),
        *_metadata_actions(lines, block, doc, present),
    ]


def get_diagnostic_actions(text: str, diagnostic: Diagnostic) -> list[CodeActionSpec]:
    """Quick fixes for one reported diagnostic."""
    span = diagnostic.span
    if span is None:
        return []
    if diagnostic.message.startswith("Invalid HTTP status code"):
        return [
            CodeActionSpec(
                f"Change to {status}",
                ActionKind.QUICK_FIX,
                (TextEdit(span, str(status)),),
                preferred=status == 200,
            )
            for status in STATUS_FIXES
        ]
    if diagnostic.suggestion:
        lines = split_lines(text)
        if span.line >= len(lines):
            return []
        raw = lines[span.line]
        match = _ANNOTATION_KEYWORD_RE.search(raw, span.start)
        if match is None or not comment_content(raw):
            return []
        target = Span(span.line, match.start(), match.end())
        replacement = f"@{diagnostic.suggestion}"
        return [
            CodeActionSpec(
                f"Replace with '{replacement}'",
                ActionKind.QUICK_FIX,
                (TextEdit(target, replacement),),
                preferred=True,
            )
        ]
    return []
