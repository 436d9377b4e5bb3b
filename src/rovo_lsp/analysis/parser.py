"""Section-aware parser turning a handler's doc-comment lines into DocInfo.

One implementation serves both front-ends. Called without an ``errors`` list
the parser is strict: the first grammar error is raised as
:class:`AnnotationError`. Called with a list it collects every error there and
keeps going with the next line, which is what live diagnostics need.
"""

from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass, field
from typing import Sequence

from rovo_lsp.analysis.annotations import (
    STATUS_LINE_RE,
    annotation_name,
    bracket_delta,
    is_annotation_line,
    parse_annotation,
    parse_path_param_line,
    parse_response_line,
    parse_status,
)
from rovo_lsp.analysis.comments import doc_lines_from_text
from rovo_lsp.analysis.model import (
    SECTION_HEADERS,
    Annotation,
    AnnotationKind,
    DocInfo,
    DocLine,
    ExampleEntry,
    PathParamDoc,
    ResponseEntry,
    Section,
    Span,
)
from rovo_lsp.exceptions import AnnotationError
from rovo_lsp.invariants import never

HEADER_RE = re.compile(r"^#\s+\S")
FENCE = "```"


@dataclass
class _PendingExample:
    status_code: int
    span: Span
    parts: list[str] = field(default_factory=list)
    depth: int = 0
    in_code_block: bool = False


class DocParser:
    def __init__(self, errors: list[AnnotationError] | None = None):
        self.errors = errors
        self.doc = DocInfo()
        # None marks the region under an unrecognised "# Heading".
        self.section: Section | None = Section.NONE
        self._description: list[str] = []
        self._pending: _PendingExample | None = None
        self._continuation_open = False
        self._swallow_continuation = False

    def _report(self, error: AnnotationError) -> None:
        if self.errors is None:
            raise error
        self.errors.append(error)

    def parse(self, lines: Sequence[DocLine]) -> DocInfo:
        for line in lines:
            content = line.content
            if self._in_code_block():
                self._example_line(line)
                continue
            if annotation_name(content) == "rovo-ignore":
                self._pending = None
                self.doc.add_annotation(
                    Annotation(AnnotationKind.ROVO_IGNORE, None, line.span_of("@rovo-ignore"))
                )
                self.doc.ignored_from = line.line
                break
            if HEADER_RE.match(content):
                self._switch_section(content)
                continue
            self._dispatch(line)
        else:
            self._close_section()
        description = "\n".join(self._description).strip()
        self.doc.description = description or None
        return self.doc

    def _in_code_block(self) -> bool:
        return self._pending is not None and self._pending.in_code_block

    def _switch_section(self, content: str) -> None:
        self._close_section()
        self.section = SECTION_HEADERS.get(content)
        self._continuation_open = False
        self._swallow_continuation = False

    def _close_section(self) -> None:
        if self.section is Section.EXAMPLES:
            self._flush_example()
        elif self.section is Section.PATH_PARAMETERS:
            self._close_path_param()

    def _dispatch(self, line: DocLine) -> None:
        section = self.section
        if section is None:
            return
        if section is Section.NONE:
            self._free_text_line(line)
        elif section is Section.METADATA:
            self._metadata_line(line)
        elif section is Section.RESPONSES:
            self._response_line(line)
        elif section is Section.EXAMPLES:
            self._example_line(line)
        elif section is Section.PATH_PARAMETERS:
            self._path_param_line(line)
        else:
            never("unhandled doc section", section=section)

    def _misplaced_annotation(self, line: DocLine) -> None:
        self._report(
            AnnotationError(
                f"Annotation '{line.content.split()[0]}' is not allowed here\n"
                "help: move it into the '# Metadata' section",
                line.span,
            )
        )

    def _annotation(self, line: DocLine) -> None:
        content = line.content
        try:
            annotation = parse_annotation(content, line.span_of(content))
        except AnnotationError as exc:
            self._report(exc)
            return
        self.doc.add_annotation(annotation)

    def _free_text_line(self, line: DocLine) -> None:
        content = line.content
        if is_annotation_line(content):
            self._annotation(line)
            return
        if self.doc.title is None:
            if content:
                self.doc.title = content
            return
        if content or self._description:
            self._description.append(content)

    def _metadata_line(self, line: DocLine) -> None:
        content = line.content
        if not content:
            return
        if is_annotation_line(content):
            self._annotation(line)
            return
        self._report(
            AnnotationError(
                f"Invalid metadata line '{content}'\n"
                "help: metadata lines are annotations such as '@tag users'",
                line.span,
            )
        )

    def _response_line(self, line: DocLine) -> None:
        content = line.content
        if not content:
            return
        if is_annotation_line(content):
            self._misplaced_annotation(line)
            return
        status = STATUS_LINE_RE.match(content)
        span = line.span_of(status.group(1)) if status else line.span
        try:
            parsed = parse_response_line(content, span)
        except AnnotationError as exc:
            self._continuation_open = False
            self._swallow_continuation = True
            self._report(exc)
            return
        if parsed is not None:
            code, type_expression, description = parsed
            self.doc.responses.append(ResponseEntry(code, type_expression, description, span))
            self._continuation_open = True
            self._swallow_continuation = False
            return
        if self._continuation_open and self.doc.responses:
            last = self.doc.responses[-1]
            joined = f"{last.description} {content}".strip()
            self.doc.responses[-1] = dataclasses.replace(last, description=joined)
            return
        if self._swallow_continuation:
            return
        self._report(
            AnnotationError(
                f"Invalid response line '{content}'\n"
                "help: expected 'STATUS: TYPE - DESCRIPTION'\n"
                "note: example '200: Json<User> - Successfully retrieved user'",
                line.span,
            )
        )

    def _example_line(self, line: DocLine) -> None:
        content = line.content
        pending = self._pending
        if pending is not None and pending.in_code_block:
            if content == FENCE:
                self._finish_example()
            else:
                pending.parts.append(line.text)
            return
        if not content:
            return
        status = STATUS_LINE_RE.match(content)
        if status is not None and (pending is None or not pending.parts):
            if pending is not None:
                self._flush_example()
            span = line.span_of(status.group(1))
            try:
                code = parse_status(status.group(1), span)
            except AnnotationError as exc:
                self._report(exc)
                return
            self._pending = _PendingExample(code, span)
            rest = status.group(2).strip()
            if rest.startswith(FENCE):
                self._pending.in_code_block = True
            elif rest:
                self._append_expression(rest)
            return
        if pending is None:
            if is_annotation_line(content):
                self._misplaced_annotation(line)
            elif content.startswith(FENCE):
                self._report(
                    AnnotationError(
                        "Code block in '# Examples' must follow a 'STATUS:' line\n"
                        "help: write the status code on the line before the fence, e.g. '200:'",
                        line.span,
                    )
                )
            else:
                self._report(
                    AnnotationError(
                        f"Invalid example line '{content}'\n"
                        "help: expected 'STATUS: EXPRESSION'\n"
                        "note: examples: '200: User::default()', "
                        "'201: User { id: 1, name: \"Alice\".into() }'",
                        line.span,
                    )
                )
            return
        if not pending.parts and content.startswith(FENCE):
            pending.in_code_block = True
            return
        self._append_expression(content)

    def _append_expression(self, text: str) -> None:
        pending = self._pending
        if pending is None:
            never("expression text without a pending example")
        pending.parts.append(text)
        pending.depth += bracket_delta(text)
        if pending.depth <= 0:
            self._finish_example()

    def _finish_example(self) -> None:
        pending = self._pending
        if pending is None:
            never("finishing an example that was never started")
        self._pending = None
        expression = "\n".join(pending.parts)
        if not pending.in_code_block:
            expression = expression.strip()
        if not expression.strip():
            self._report(self._empty_example(pending))
            return
        if pending.depth < 0:
            self._report(
                AnnotationError(
                    f"Unbalanced closing bracket in example for status {pending.status_code}\n"
                    "help: check that every ')', ']' and '}' has a matching opener",
                    pending.span,
                )
            )
            return
        self.doc.examples.append(
            ExampleEntry(pending.status_code, expression, pending.in_code_block, pending.span)
        )

    def _flush_example(self) -> None:
        pending = self._pending
        if pending is None:
            return
        self._pending = None
        if pending.in_code_block:
            self._report(
                AnnotationError(
                    f"Unterminated code block in example for status {pending.status_code}\n"
                    "help: close the block with a line containing only ```",
                    pending.span,
                )
            )
        elif not pending.parts:
            self._report(self._empty_example(pending))
        else:
            self._report(
                AnnotationError(
                    f"Unclosed bracket in example for status {pending.status_code}\n"
                    "help: the example expression ends before its brackets are balanced",
                    pending.span,
                )
            )

    @staticmethod
    def _empty_example(pending: _PendingExample) -> AnnotationError:
        code = pending.status_code
        return AnnotationError(
            f"Empty example expression for status {code}\n"
            "help: provide a value after the status code or in a fenced code block\n"
            f"note: example '{code}: User::default()'",
            pending.span,
        )

    def _path_param_line(self, line: DocLine) -> None:
        content = line.content
        if not content:
            return
        if is_annotation_line(content):
            self._misplaced_annotation(line)
            return
        parsed = parse_path_param_line(content)
        if parsed is not None:
            self._close_path_param()
            name, description = parsed
            self.doc.path_params.append(PathParamDoc(name, description, line.span_of(name)))
            self._continuation_open = True
            return
        if self._continuation_open and self.doc.path_params:
            last = self.doc.path_params[-1]
            joined = f"{last.description} {content}".strip()
            self.doc.path_params[-1] = dataclasses.replace(last, description=joined)
            return
        self._report(
            AnnotationError(
                f"Invalid path parameter line '{content}'\n"
                "help: expected 'NAME: DESCRIPTION'\n"
                "note: example 'id: The user identifier'",
                line.span,
            )
        )

    def _close_path_param(self) -> None:
        if not self._continuation_open or not self.doc.path_params:
            return
        self._continuation_open = False
        last = self.doc.path_params[-1]
        if not last.description:
            self._report(
                AnnotationError(
                    f"Missing description for path parameter '{last.name}'\n"
                    f"help: write '{last.name}: DESCRIPTION'",
                    last.span,
                )
            )


def parse_doc_lines(
    lines: Sequence[DocLine],
    *,
    errors: list[AnnotationError] | None = None,
    deprecated: bool = False,
) -> DocInfo:
    """Parse a handler's doc lines.

    Without ``errors`` the first grammar error is raised; with a list every
    error is appended to it and the best-effort DocInfo is returned.
    """
    doc = DocParser(errors).parse(lines)
    doc.deprecated = deprecated
    return doc


def parse_doc_text(
    text: str,
    *,
    errors: list[AnnotationError] | None = None,
    deprecated: bool = False,
) -> DocInfo:
    """Parse every ``///`` line of ``text`` as a single doc block."""
    return parse_doc_lines(doc_lines_from_text(text), errors=errors, deprecated=deprecated)
