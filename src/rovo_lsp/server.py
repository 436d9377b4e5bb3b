from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Callable, Sequence
from urllib.parse import unquote, urlparse

from pygls.lsp.server import LanguageServer
from pydantic import ValidationError
from lsprotocol.types import (
    INITIALIZED,
    TEXT_DOCUMENT_CODE_ACTION,
    TEXT_DOCUMENT_COMPLETION,
    TEXT_DOCUMENT_DEFINITION,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_CLOSE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_HOVER,
    TEXT_DOCUMENT_PREPARE_RENAME,
    TEXT_DOCUMENT_REFERENCES,
    TEXT_DOCUMENT_RENAME,
    CodeAction,
    CodeActionKind,
    CodeActionOptions,
    CodeActionParams,
    CompletionItem,
    CompletionItemKind,
    CompletionList,
    CompletionOptions,
    CompletionParams,
    DefinitionParams,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    Hover,
    HoverParams,
    InitializedParams,
    InsertTextFormat,
    Location,
    MarkupContent,
    MarkupKind,
    Position,
    PrepareRenameParams,
    PrepareRenamePlaceholder,
    PublishDiagnosticsParams,
    Range,
    ReferenceParams,
    RenameOptions,
    RenameParams,
    TextDocumentSyncKind,
    TextEdit,
    WorkspaceEdit,
)

from rovo_lsp import __version__
from rovo_lsp.analysis import analyze_document, document_diagnostics
from rovo_lsp.analysis.model import Diagnostic as RovoDiagnostic
from rovo_lsp.analysis.model import Severity, Span
from rovo_lsp.analysis.positions import char_index_to_utf16, split_lines, utf16_to_char_index
from rovo_lsp.config import DEFAULT_TRIGGER_CHARACTERS, LspSettings, lsp_defaults, lsp_settings
from rovo_lsp.features import (
    ActionKind,
    CodeActionSpec,
    CompletionKind,
    completion_at,
    find_references,
    get_code_actions,
    get_definition,
    get_diagnostic_actions,
    get_hover,
    prepare_rename,
    rename_tag,
)
from rovo_lsp.features import CompletionItem as RovoCompletionItem
from rovo_lsp.features import TextEdit as RovoTextEdit
from rovo_lsp.invariants import never
from rovo_lsp.schema import InspectRequest, InspectResponse, handler_dto
from rovo_lsp.store import DocumentStore

logger = logging.getLogger(__name__)

INSPECT_COMMAND = "rovo.inspect"
DIAGNOSTIC_SOURCE = "rovo"

_SEVERITIES = {
    Severity.ERROR: DiagnosticSeverity.Error,
    Severity.WARNING: DiagnosticSeverity.Warning,
}
_COMPLETION_KINDS = {
    CompletionKind.KEYWORD: CompletionItemKind.Keyword,
    CompletionKind.SNIPPET: CompletionItemKind.Snippet,
    CompletionKind.VALUE: CompletionItemKind.Value,
}
_ACTION_KINDS = {
    ActionKind.QUICK_FIX: CodeActionKind.QuickFix,
    ActionKind.REFACTOR: CodeActionKind.RefactorRewrite,
}


class RovoLanguageServer(LanguageServer):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.documents = DocumentStore()
        self.settings = LspSettings()


server = RovoLanguageServer(
    "rovo-lsp",
    __version__,
    text_document_sync_kind=TextDocumentSyncKind.Full,
)


def _require_payload(payload: object, *, command: str) -> dict[str, object]:
    if payload is None:
        never("missing command payload", command=command)
    if not isinstance(payload, dict):
        never(
            "invalid command payload type",
            command=command,
            payload_type=type(payload).__name__,
        )
    return payload


def _uri_to_path(uri: str) -> Path:
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    return Path(uri)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _to_range(lines: Sequence[str], span: Span | None) -> Range:
    if span is None or span.line >= len(lines):
        origin = Position(line=0, character=0)
        return Range(start=origin, end=origin)
    raw = lines[span.line]
    return Range(
        start=Position(line=span.line, character=char_index_to_utf16(raw, span.start)),
        end=Position(line=span.line, character=char_index_to_utf16(raw, span.end)),
    )


def _from_range(lines: Sequence[str], rng: Range) -> Span:
    line = rng.start.line
    if line >= len(lines):
        return Span(line, 0, 0)
    raw = lines[line]
    start = utf16_to_char_index(raw, rng.start.character)
    end = utf16_to_char_index(raw, rng.end.character) if rng.end.line == line else None
    start = start if start is not None else 0
    return Span(line, start, end if end is not None else len(raw))


def _lsp_diagnostic(lines: Sequence[str], diagnostic: RovoDiagnostic) -> Diagnostic:
    return Diagnostic(
        range=_to_range(lines, diagnostic.span),
        message=diagnostic.message,
        severity=_SEVERITIES[diagnostic.severity],
        source=DIAGNOSTIC_SOURCE,
        data={"suggestion": diagnostic.suggestion} if diagnostic.suggestion else None,
    )


def _rovo_diagnostic(lines: Sequence[str], diagnostic: Diagnostic) -> RovoDiagnostic:
    suggestion = None
    if isinstance(diagnostic.data, dict):
        value = diagnostic.data.get("suggestion")
        suggestion = value if isinstance(value, str) else None
    severity = Severity.WARNING if diagnostic.severity == DiagnosticSeverity.Warning else Severity.ERROR
    return RovoDiagnostic(severity, diagnostic.message, _from_range(lines, diagnostic.range), suggestion)


def _diagnostics_for_text(text: str) -> list[Diagnostic]:
    lines = split_lines(text)
    return [_lsp_diagnostic(lines, item) for item in document_diagnostics(text)]


def _publish(ls: RovoLanguageServer, uri: str, text: str | None) -> None:
    diagnostics = _diagnostics_for_text(text) if text is not None else []
    logger.debug("publishing %d diagnostics for %s", len(diagnostics), uri)
    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
    )


def _workspace_edit(uri: str, lines: Sequence[str], edits: Sequence[RovoTextEdit]) -> WorkspaceEdit:
    return WorkspaceEdit(
        changes={
            uri: [TextEdit(range=_to_range(lines, edit.span), new_text=edit.new_text) for edit in edits]
        }
    )


def _completion_item(raw: str, line: int, item: RovoCompletionItem) -> CompletionItem:
    text_edit = None
    if item.replace is not None and item.insert_text is not None:
        start, end = item.replace
        text_edit = TextEdit(
            range=Range(
                start=Position(line=line, character=char_index_to_utf16(raw, start)),
                end=Position(line=line, character=char_index_to_utf16(raw, end)),
            ),
            new_text=item.insert_text,
        )
    return CompletionItem(
        label=item.label,
        kind=_COMPLETION_KINDS[item.kind],
        detail=item.detail,
        documentation=(
            MarkupContent(kind=MarkupKind.Markdown, value=item.documentation)
            if item.documentation
            else None
        ),
        insert_text=item.insert_text if text_edit is None else None,
        insert_text_format=(
            InsertTextFormat.Snippet
            if item.kind is CompletionKind.SNIPPET
            else InsertTextFormat.PlainText
        ),
        text_edit=text_edit,
    )


def _code_action(
    uri: str,
    lines: Sequence[str],
    spec: CodeActionSpec,
    diagnostic: Diagnostic | None = None,
) -> CodeAction:
    return CodeAction(
        title=spec.title,
        kind=_ACTION_KINDS[spec.kind],
        diagnostics=[diagnostic] if diagnostic is not None else None,
        edit=_workspace_edit(uri, lines, spec.edits),
        is_preferred=True if spec.preferred else None,
    )


@server.feature(INITIALIZED)
def initialized(ls: RovoLanguageServer, params: InitializedParams) -> None:
    root_path = getattr(ls.workspace, "root_path", None)
    root = Path(root_path) if root_path else None
    ls.settings = lsp_settings(lsp_defaults(root))
    logger.info("rovo-lsp %s ready (lookahead=%d)", __version__, ls.settings.handler_lookahead)


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: RovoLanguageServer, params: DidOpenTextDocumentParams) -> None:
    uri = params.text_document.uri
    ls.documents.set(uri, params.text_document.text)
    _publish(ls, uri, params.text_document.text)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: RovoLanguageServer, params: DidChangeTextDocumentParams) -> None:
    uri = params.text_document.uri
    if not params.content_changes:
        return
    text = params.content_changes[-1].text
    ls.documents.set(uri, text)
    _publish(ls, uri, text)


@server.feature(TEXT_DOCUMENT_DID_CLOSE)
def did_close(ls: RovoLanguageServer, params: DidCloseTextDocumentParams) -> None:
    uri = params.text_document.uri
    ls.documents.remove(uri)
    _publish(ls, uri, None)


@server.feature(
    TEXT_DOCUMENT_COMPLETION,
    CompletionOptions(trigger_characters=list(DEFAULT_TRIGGER_CHARACTERS)),
)
def completion(ls: RovoLanguageServer, params: CompletionParams) -> CompletionList | None:
    text = ls.documents.get(params.text_document.uri)
    if text is None:
        return None
    trigger = params.context.trigger_character if params.context is not None else None
    if trigger and trigger not in ls.settings.trigger_characters:
        return None
    line = params.position.line
    items = completion_at(
        text, line, params.position.character, window=ls.settings.handler_lookahead
    )
    lines = split_lines(text)
    raw = lines[line] if line < len(lines) else ""
    return CompletionList(
        is_incomplete=False,
        items=[_completion_item(raw, line, item) for item in items],
    )


@server.feature(TEXT_DOCUMENT_HOVER)
def hover(ls: RovoLanguageServer, params: HoverParams) -> Hover | None:
    text = ls.documents.get(params.text_document.uri)
    if text is None:
        return None
    markdown = get_hover(
        text,
        params.position.line,
        params.position.character,
        window=ls.settings.handler_lookahead,
    )
    if markdown is None:
        return None
    return Hover(contents=MarkupContent(kind=MarkupKind.Markdown, value=markdown))


@server.feature(TEXT_DOCUMENT_DEFINITION)
def definition(ls: RovoLanguageServer, params: DefinitionParams) -> Location | None:
    uri = params.text_document.uri
    text = ls.documents.get(uri)
    if text is None:
        return None
    span = get_definition(
        text,
        params.position.line,
        params.position.character,
        window=ls.settings.handler_lookahead,
    )
    if span is None:
        return None
    return Location(uri=uri, range=_to_range(split_lines(text), span))


@server.feature(TEXT_DOCUMENT_REFERENCES)
def references(ls: RovoLanguageServer, params: ReferenceParams) -> list[Location] | None:
    uri = params.text_document.uri
    text = ls.documents.get(uri)
    if text is None:
        return None
    spans = find_references(text, params.position.line, params.position.character)
    if spans is None:
        return None
    lines = split_lines(text)
    return [Location(uri=uri, range=_to_range(lines, span)) for span in spans]


@server.feature(TEXT_DOCUMENT_PREPARE_RENAME)
def prepare_rename_handler(
    ls: RovoLanguageServer, params: PrepareRenameParams
) -> PrepareRenamePlaceholder | None:
    text = ls.documents.get(params.text_document.uri)
    if text is None:
        return None
    found = prepare_rename(text, params.position.line, params.position.character)
    if found is None:
        return None
    span, placeholder = found
    return PrepareRenamePlaceholder(range=_to_range(split_lines(text), span), placeholder=placeholder)


@server.feature(TEXT_DOCUMENT_RENAME, RenameOptions(prepare_provider=True))
def rename(ls: RovoLanguageServer, params: RenameParams) -> WorkspaceEdit | None:
    uri = params.text_document.uri
    text = ls.documents.get(uri)
    if text is None:
        return None
    edits = rename_tag(text, params.position.line, params.position.character, params.new_name)
    if edits is None:
        return None
    logger.debug("renaming %d tag occurrences in %s", len(edits), uri)
    return _workspace_edit(uri, split_lines(text), edits)


@server.feature(
    TEXT_DOCUMENT_CODE_ACTION,
    CodeActionOptions(code_action_kinds=[CodeActionKind.QuickFix, CodeActionKind.RefactorRewrite]),
)
def code_action(ls: RovoLanguageServer, params: CodeActionParams) -> list[CodeAction]:
    uri = params.text_document.uri
    text = ls.documents.get(uri)
    if text is None:
        return []
    lines = split_lines(text)
    actions: list[CodeAction] = []
    for diagnostic in params.context.diagnostics:
        if diagnostic.source != DIAGNOSTIC_SOURCE:
            continue
        for spec in get_diagnostic_actions(text, _rovo_diagnostic(lines, diagnostic)):
            actions.append(_code_action(uri, lines, spec, diagnostic))
    for spec in get_code_actions(text, params.range.start.line):
        actions.append(_code_action(uri, lines, spec))
    return actions


@server.command(INSPECT_COMMAND)
def execute_inspect(ls: RovoLanguageServer, payload: dict | None = None) -> dict:
    payload = _require_payload(payload, command=INSPECT_COMMAND)
    try:
        request = InspectRequest.model_validate(payload)
    except ValidationError as exc:
        return {"exit_code": 2, "errors": [str(exc)]}
    text = ls.documents.get(request.uri)
    if text is None:
        path = _uri_to_path(request.uri)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            return InspectResponse(uri=request.uri, exit_code=2, errors=[str(exc)]).model_dump()
    handlers = [handler_dto(analysis) for analysis in analyze_document(text)]
    exit_code = 1 if any(d.severity == "error" for h in handlers for d in h.diagnostics) else 0
    return InspectResponse(uri=request.uri, handlers=handlers, exit_code=exit_code).model_dump()


def start(
    start_fn: Callable[[], None] | None = None,
    *,
    settings: LspSettings | None = None,
) -> None:
    """Start the language server on stdio."""
    server.settings = settings if settings is not None else lsp_settings(lsp_defaults())
    configure_logging(server.settings.log_level)
    logger.info("starting rovo-lsp %s", __version__)
    (start_fn or server.start_io)()


if __name__ == "__main__":  # pragma: no cover
    start()  # pragma: no cover
