from rovo_lsp.analysis.comments import find_handlers, handler_at, is_near_handler
from rovo_lsp.analysis.context import section_at
from rovo_lsp.analysis.document import (
    HandlerAnalysis,
    analyze_document,
    analyze_handler,
    check_document,
    check_handler,
    document_diagnostics,
)
from rovo_lsp.analysis.model import (
    Annotation,
    AnnotationKind,
    Diagnostic,
    DocInfo,
    DocLine,
    ExampleEntry,
    HandlerBlock,
    PathParamDoc,
    ResponseEntry,
    Section,
    Severity,
    SignatureInfo,
    Span,
)
from rovo_lsp.analysis.parser import parse_doc_lines, parse_doc_text
from rovo_lsp.analysis.signature import extract_signature
from rovo_lsp.analysis.type_resolver import extract_inner_type, find_declaration
from rovo_lsp.analysis.validator import validate

__all__ = [
    "Annotation",
    "AnnotationKind",
    "Diagnostic",
    "DocInfo",
    "DocLine",
    "ExampleEntry",
    "HandlerAnalysis",
    "HandlerBlock",
    "PathParamDoc",
    "ResponseEntry",
    "Section",
    "Severity",
    "SignatureInfo",
    "Span",
    "analyze_document",
    "analyze_handler",
    "check_document",
    "check_handler",
    "document_diagnostics",
    "extract_inner_type",
    "extract_signature",
    "find_declaration",
    "find_handlers",
    "handler_at",
    "is_near_handler",
    "parse_doc_lines",
    "parse_doc_text",
    "section_at",
    "validate",
]
