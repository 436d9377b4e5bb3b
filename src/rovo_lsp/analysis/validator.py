"""Structural cross-checks over a parsed DocInfo."""

from __future__ import annotations

from rovo_lsp.analysis.annotations import status_range_error
from rovo_lsp.analysis.model import (
    AnnotationKind,
    Diagnostic,
    DocInfo,
    ExampleEntry,
    Severity,
    SignatureInfo,
)
from rovo_lsp.exceptions import AnnotationError

MIN_STATUS = 100
MAX_STATUS = 599


def is_valid_status(code: int) -> bool:
    return MIN_STATUS <= code <= MAX_STATUS


def diagnostic_from_error(error: AnnotationError) -> Diagnostic:
    return Diagnostic(Severity.ERROR, error.message, error.span, error.suggestion)


def validate(doc: DocInfo, signature: SignatureInfo | None = None) -> list[Diagnostic]:
    """Every cross-reference finding for ``doc``; never raises."""
    findings: list[Diagnostic] = []

    seen_codes: set[int] = set()
    for response in doc.responses:
        code = response.status_code
        if not is_valid_status(code):
            findings.append(diagnostic_from_error(status_range_error(code, response.span)))
        if not response.description.strip():
            findings.append(
                Diagnostic(
                    Severity.ERROR,
                    f"Missing description for response {code}\n"
                    f"help: write '{code}: {response.type_expression} - DESCRIPTION'",
                    response.span,
                )
            )
        if code in seen_codes:
            findings.append(
                Diagnostic(
                    Severity.WARNING,
                    f"Duplicate response for status code {code}",
                    response.span,
                )
            )
        seen_codes.add(code)

    for example in doc.examples:
        if not is_valid_status(example.status_code):
            findings.append(diagnostic_from_error(status_range_error(example.status_code, example.span)))

    unmatched = [e for e in doc.examples if e.status_code not in seen_codes]
    if doc.responses and unmatched:
        findings.append(_unmatched_examples(doc, unmatched))

    if doc.path_params:
        findings.extend(_path_param_findings(doc, signature))

    ids = [a for a in doc.annotations if a.kind is AnnotationKind.ID]
    for repeated in ids[1:]:
        findings.append(
            Diagnostic(
                Severity.WARNING,
                f"Operation ID is set more than once; '{ids[-1].value}' wins",
                repeated.span,
            )
        )
    return findings


def _unmatched_examples(doc: DocInfo, unmatched: list[ExampleEntry]) -> Diagnostic:
    """One error for every example whose status code has no response."""
    defined = ", ".join(str(code) for code in dict.fromkeys(doc.response_codes))
    codes = list(dict.fromkeys(example.status_code for example in unmatched))
    if len(codes) == 1:
        headline = f"Example status code {codes[0]} has no matching response"
    else:
        listed = ", ".join(str(code) for code in codes)
        headline = f"Example status codes {listed} have no matching response"
    return Diagnostic(
        Severity.ERROR,
        f"{headline}\n"
        f"help: defined response codes: {defined}\n"
        f"note: add a '{codes[0]}: TYPE - DESCRIPTION' line to the '# Responses' section",
        unmatched[0].span,
    )


def _path_param_findings(doc: DocInfo, signature: SignatureInfo | None) -> list[Diagnostic]:
    if signature is None or not signature.has_path_extractor:
        first = doc.path_params[0]
        return [
            Diagnostic(
                Severity.ERROR,
                "Path parameters are documented but no path extractor found "
                "in the handler signature\n"
                "help: add a 'Path(...)' parameter or remove the '# Path Parameters' section",
                first.span,
            )
        ]
    if signature.is_struct_pattern:
        return []
    available = ", ".join(signature.bindings)
    findings: list[Diagnostic] = []
    for param in doc.path_params:
        if param.name in signature.bindings:
            continue
        findings.append(
            Diagnostic(
                Severity.ERROR,
                f"Path parameter '{param.name}' not found in handler signature\n"
                f"help: available bindings: {available}",
                param.span,
            )
        )
    return findings


def first_error(diagnostics: list[Diagnostic]) -> AnnotationError | None:
    """The compile-time failure for a list of findings, if any is an error."""
    for diagnostic in diagnostics:
        if diagnostic.is_error:
            return AnnotationError(
                diagnostic.message, diagnostic.span, suggestion=diagnostic.suggestion
            )
    return None
