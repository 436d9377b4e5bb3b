from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel

from rovo_lsp.analysis.document import HandlerAnalysis
from rovo_lsp.analysis.model import Diagnostic, DocInfo, SignatureInfo, Span


class SpanDTO(BaseModel):
    line: int
    start: int
    end: int


class DiagnosticDTO(BaseModel):
    severity: str
    message: str
    span: Optional[SpanDTO] = None
    suggestion: Optional[str] = None


class ResponseDTO(BaseModel):
    status_code: int
    type_expression: str
    description: str


class ExampleDTO(BaseModel):
    status_code: int
    expression: str
    is_code_block: bool = False


class PathParamDTO(BaseModel):
    name: str
    description: str


class DocInfoDTO(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    responses: List[ResponseDTO] = []
    examples: List[ExampleDTO] = []
    tags: List[str] = []
    security_requirements: List[str] = []
    operation_id: Optional[str] = None
    hidden: bool = False
    deprecated: bool = False
    path_params: List[PathParamDTO] = []
    metadata: List[str] = []


class SignatureDTO(BaseModel):
    bindings: List[str] = []
    inner_type: str = ""
    is_struct_pattern: bool = False
    state_type: Optional[str] = None


class HandlerDTO(BaseModel):
    name: Optional[str] = None
    marker_line: int
    doc: DocInfoDTO
    signature: Optional[SignatureDTO] = None
    diagnostics: List[DiagnosticDTO] = []


class InspectRequest(BaseModel):
    uri: str


class InspectResponse(BaseModel):
    uri: str
    handlers: List[HandlerDTO] = []
    exit_code: int = 0
    errors: List[str] = []


class CheckFindingDTO(BaseModel):
    path: str
    line: int
    column: int
    severity: str
    message: str


class CheckResponse(BaseModel):
    files: int
    handlers: int
    findings: List[CheckFindingDTO] = []
    exit_code: int = 0


def span_dto(span: Span | None) -> SpanDTO | None:
    if span is None:
        return None
    return SpanDTO(line=span.line, start=span.start, end=span.end)


def diagnostic_dto(diagnostic: Diagnostic) -> DiagnosticDTO:
    return DiagnosticDTO(
        severity=diagnostic.severity.value,
        message=diagnostic.message,
        span=span_dto(diagnostic.span),
        suggestion=diagnostic.suggestion,
    )


def doc_info_dto(doc: DocInfo) -> DocInfoDTO:
    return DocInfoDTO(
        title=doc.title,
        description=doc.description,
        responses=[
            ResponseDTO(
                status_code=entry.status_code,
                type_expression=entry.type_expression,
                description=entry.description,
            )
            for entry in doc.responses
        ],
        examples=[
            ExampleDTO(
                status_code=entry.status_code,
                expression=entry.expression,
                is_code_block=entry.is_code_block,
            )
            for entry in doc.examples
        ],
        tags=list(doc.tags),
        security_requirements=list(doc.security_requirements),
        operation_id=doc.operation_id,
        hidden=doc.hidden,
        deprecated=doc.deprecated,
        path_params=[
            PathParamDTO(name=param.name, description=param.description)
            for param in doc.path_params
        ],
        metadata=doc.metadata_lines(),
    )


def signature_dto(signature: SignatureInfo | None) -> SignatureDTO | None:
    if signature is None:
        return None
    return SignatureDTO(
        bindings=list(signature.bindings),
        inner_type=signature.inner_type,
        is_struct_pattern=signature.is_struct_pattern,
        state_type=signature.state_type,
    )


def handler_dto(analysis: HandlerAnalysis) -> HandlerDTO:
    return HandlerDTO(
        name=analysis.block.name,
        marker_line=analysis.block.marker_line,
        doc=doc_info_dto(analysis.doc),
        signature=signature_dto(analysis.signature),
        diagnostics=[diagnostic_dto(item) for item in analysis.diagnostics],
    )
