from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Section(str, Enum):
    NONE = "none"
    RESPONSES = "responses"
    EXAMPLES = "examples"
    METADATA = "metadata"
    PATH_PARAMETERS = "path_parameters"


SECTION_HEADERS: dict[str, Section] = {
    "# Responses": Section.RESPONSES,
    "# Examples": Section.EXAMPLES,
    "# Metadata": Section.METADATA,
    "# Path Parameters": Section.PATH_PARAMETERS,
}


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class AnnotationKind(str, Enum):
    TAG = "tag"
    SECURITY = "security"
    ID = "id"
    HIDDEN = "hidden"
    ROVO_IGNORE = "rovo-ignore"


@dataclass(frozen=True)
class Span:
    """A range of code point columns on one line."""

    line: int
    start: int
    end: int

    def contains(self, line: int, column: int) -> bool:
        return line == self.line and self.start <= column <= self.end


@dataclass(frozen=True)
class DocLine:
    line: int
    text: str
    column: int
    raw: str

    @property
    def content(self) -> str:
        return self.text.strip()

    @property
    def span(self) -> Span:
        start = len(self.raw) - len(self.raw.lstrip())
        return Span(self.line, start, max(len(self.raw.rstrip()), start))

    def span_of(self, fragment: str) -> Span:
        """Span of the first occurrence of ``fragment`` in the line."""
        offset = self.raw.find(fragment, self.column) if fragment else -1
        if offset < 0:
            return self.span
        return Span(self.line, offset, offset + len(fragment))


@dataclass(frozen=True)
class Annotation:
    kind: AnnotationKind
    value: str | None = None
    span: Span | None = field(default=None, compare=False)

    def render(self) -> str:
        if self.value is None:
            return f"@{self.kind.value}"
        return f"@{self.kind.value} {self.value}"


@dataclass(frozen=True)
class ResponseEntry:
    status_code: int
    type_expression: str
    description: str
    span: Span | None = field(default=None, compare=False)


@dataclass(frozen=True)
class ExampleEntry:
    status_code: int
    expression: str
    is_code_block: bool = False
    span: Span | None = field(default=None, compare=False)

    @property
    def canonical_expression(self) -> str:
        from rovo_lsp.analysis.annotations import canonicalize_expression

        return canonicalize_expression(self.expression)


@dataclass(frozen=True)
class PathParamDoc:
    name: str
    description: str
    span: Span | None = field(default=None, compare=False)


@dataclass
class DocInfo:
    title: str | None = None
    description: str | None = None
    responses: list[ResponseEntry] = field(default_factory=list)
    examples: list[ExampleEntry] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    security_requirements: list[str] = field(default_factory=list)
    operation_id: str | None = None
    hidden: bool = False
    deprecated: bool = False
    path_params: list[PathParamDoc] = field(default_factory=list)
    annotations: list[Annotation] = field(default_factory=list)
    ignored_from: int | None = None

    def add_annotation(self, annotation: Annotation) -> None:
        self.annotations.append(annotation)
        if annotation.kind is AnnotationKind.TAG and annotation.value is not None:
            self.tags.append(annotation.value)
        elif annotation.kind is AnnotationKind.SECURITY and annotation.value is not None:
            self.security_requirements.append(annotation.value)
        elif annotation.kind is AnnotationKind.ID:
            self.operation_id = annotation.value
        elif annotation.kind is AnnotationKind.HIDDEN:
            self.hidden = True

    def metadata_lines(self) -> list[str]:
        return [
            annotation.render()
            for annotation in self.annotations
            if annotation.kind is not AnnotationKind.ROVO_IGNORE
        ]

    @property
    def response_codes(self) -> list[int]:
        return [entry.status_code for entry in self.responses]


@dataclass(frozen=True)
class SignatureInfo:
    bindings: tuple[str, ...] = ()
    inner_type: str = ""
    is_struct_pattern: bool = False
    state_type: str | None = None

    @property
    def has_path_extractor(self) -> bool:
        return bool(self.bindings) or self.is_struct_pattern


@dataclass(frozen=True)
class HandlerBlock:
    """One ``#[rovo]`` handler found in a source document."""

    marker_line: int
    doc_lines: tuple[DocLine, ...]
    name: str | None = None
    signature_text: str = ""
    signature_line: int | None = None
    deprecated: bool = False

    @property
    def first_line(self) -> int:
        if self.doc_lines:
            return self.doc_lines[0].line
        return self.marker_line

    def covers(self, line: int) -> bool:
        return self.first_line <= line <= self.marker_line


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    message: str
    span: Span | None = None
    suggestion: str | None = None

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR
