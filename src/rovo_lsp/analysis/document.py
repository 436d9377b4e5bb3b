"""Whole-document analysis: both front-ends over every handler in a file."""

from __future__ import annotations

from dataclasses import dataclass, field

from rovo_lsp.analysis.comments import find_handlers
from rovo_lsp.analysis.model import Diagnostic, DocInfo, HandlerBlock, SignatureInfo
from rovo_lsp.analysis.parser import parse_doc_lines
from rovo_lsp.analysis.positions import split_lines
from rovo_lsp.analysis.signature import extract_signature, parameter_list
from rovo_lsp.analysis.validator import diagnostic_from_error, first_error, validate
from rovo_lsp.exceptions import AnnotationError


@dataclass
class HandlerAnalysis:
    block: HandlerBlock
    doc: DocInfo
    signature: SignatureInfo | None
    diagnostics: list[Diagnostic] = field(default_factory=list)


def handler_signature(block: HandlerBlock) -> SignatureInfo | None:
    if not block.signature_text:
        return None
    return extract_signature(parameter_list(block.signature_text))


def analyze_handler(block: HandlerBlock) -> HandlerAnalysis:
    """Edit-time analysis of one handler: every finding, nothing raised."""
    errors: list[AnnotationError] = []
    doc = parse_doc_lines(block.doc_lines, errors=errors, deprecated=block.deprecated)
    signature = handler_signature(block)
    diagnostics = [diagnostic_from_error(error) for error in errors]
    diagnostics.extend(validate(doc, signature))
    return HandlerAnalysis(block, doc, signature, diagnostics)


def check_handler(block: HandlerBlock) -> DocInfo:
    """Compile-time validation of one handler; raises the first error."""
    doc = parse_doc_lines(block.doc_lines, deprecated=block.deprecated)
    failure = first_error(validate(doc, handler_signature(block)))
    if failure is not None:
        raise failure
    return doc


def analyze_document(text: str) -> list[HandlerAnalysis]:
    return [analyze_handler(block) for block in find_handlers(split_lines(text))]


def document_diagnostics(text: str) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for analysis in analyze_document(text):
        diagnostics.extend(analysis.diagnostics)
    return diagnostics


def check_document(text: str) -> list[tuple[HandlerBlock, DocInfo]]:
    """Strict pass over every handler in ``text``, stopping at the first error."""
    return [(block, check_handler(block)) for block in find_handlers(split_lines(text))]
