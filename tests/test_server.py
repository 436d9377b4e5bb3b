from __future__ import annotations

from pathlib import Path

import pytest

from rovo_lsp.config import LspSettings
from rovo_lsp.exceptions import NeverThrown
from rovo_lsp.store import DocumentStore

URI = "file:///workspace/src/handlers.rs"

BROKEN = (
    "/// Broken\n"  # 0
    "///\n"  # 1
    "/// # Responses\n"  # 2
    "/// 200: Json<User> - ok\n"  # 3
    "/// 700: () - impossible\n"  # 4
    "///\n"  # 5
    "/// # Metadata\n"  # 6
    "/// @tag users\n"  # 7
    "/// @tga \U0001F600\n"  # 8
    "#[rovo]\n"  # 9
    "async fn broken() -> Json<User> {}\n"  # 10
    "\n"  # 11
    "/// Other\n"  # 12
    "/// @tag users\n"  # 13
    "#[rovo]\n"  # 14
    "async fn other() {}\n"  # 15
)


def _load():
    pytest.importorskip("pygls")
    pytest.importorskip("lsprotocol")
    from rovo_lsp import server

    return server


class _Client:
    def __init__(self) -> None:
        self.documents = DocumentStore()
        self.settings = LspSettings()
        self.published = []

    def text_document_publish_diagnostics(self, params) -> None:
        self.published.append(params)


def _open(server, client: _Client, text: str = BROKEN, uri: str = URI) -> None:
    from lsprotocol.types import DidOpenTextDocumentParams, TextDocumentItem

    server.did_open(
        client,
        DidOpenTextDocumentParams(
            text_document=TextDocumentItem(uri=uri, language_id="rust", version=1, text=text)
        ),
    )


def _doc_id(uri: str = URI):
    from lsprotocol.types import TextDocumentIdentifier

    return TextDocumentIdentifier(uri=uri)


def _position(line: int, character: int):
    from lsprotocol.types import Position

    return Position(line=line, character=character)


def test_uri_to_path() -> None:
    server = _load()
    path = Path("/tmp/demo.rs")
    assert server._uri_to_path(path.as_uri()) == path
    assert server._uri_to_path("relative/path.rs") == Path("relative/path.rs")


def test_require_payload() -> None:
    server = _load()
    assert server._require_payload({"uri": "x"}, command="c") == {"uri": "x"}
    with pytest.raises(NeverThrown, match="missing command payload"):
        server._require_payload(None, command="c")
    with pytest.raises(NeverThrown, match="payload_type='list'"):
        server._require_payload([], command="c")


def test_did_open_publishes_utf16_diagnostics() -> None:
    server = _load()
    from lsprotocol.types import DiagnosticSeverity

    client = _Client()
    _open(server, client)
    assert client.documents.get(URI) == BROKEN
    (published,) = client.published
    assert published.uri == URI
    unknown, status = published.diagnostics
    assert unknown.message.startswith("Unknown annotation '@tga'")
    assert unknown.severity == DiagnosticSeverity.Error
    assert unknown.source == "rovo"
    assert unknown.data == {"suggestion": "tag"}
    assert (unknown.range.start.line, unknown.range.start.character) == (8, 4)
    assert (unknown.range.end.line, unknown.range.end.character) == (8, 11)
    assert status.message.startswith("Invalid HTTP status code 700")
    assert status.data is None


def test_did_change_and_close() -> None:
    server = _load()
    from lsprotocol.types import (
        DidChangeTextDocumentParams,
        DidCloseTextDocumentParams,
        TextDocumentContentChangeWholeDocument,
        VersionedTextDocumentIdentifier,
    )

    client = _Client()
    _open(server, client)
    fixed = BROKEN.replace("700", "500").replace("@tga \U0001F600", "@security bearer")
    server.did_change(
        client,
        DidChangeTextDocumentParams(
            text_document=VersionedTextDocumentIdentifier(uri=URI, version=2),
            content_changes=[TextDocumentContentChangeWholeDocument(text=fixed)],
        ),
    )
    assert client.documents.get(URI) == fixed
    assert client.published[-1].diagnostics == []

    server.did_close(client, DidCloseTextDocumentParams(text_document=_doc_id()))
    assert URI not in client.documents
    assert client.published[-1].uri == URI
    assert client.published[-1].diagnostics == []


def test_completion() -> None:
    server = _load()
    from lsprotocol.types import CompletionItemKind, CompletionParams, InsertTextFormat

    client = _Client()
    _open(server, client, "/// @\n#[rovo]\nfn f() {}\n")
    result = server.completion(
        client, CompletionParams(text_document=_doc_id(), position=_position(0, 5))
    )
    assert [item.label for item in result.items] == ["@tag", "@security", "@id", "@hidden"]
    first = result.items[0]
    assert first.kind == CompletionItemKind.Snippet
    assert first.insert_text_format == InsertTextFormat.Snippet
    assert first.text_edit.new_text == "@tag ${1:tag_name}"
    assert (first.text_edit.range.start.character, first.text_edit.range.end.character) == (4, 5)
    assert first.documentation.value.startswith("# @tag")


def test_completion_unknown_document() -> None:
    server = _load()
    from lsprotocol.types import CompletionParams

    result = server.completion(
        _Client(), CompletionParams(text_document=_doc_id(), position=_position(0, 0))
    )
    assert result is None


def test_completion_respects_handler_lookahead() -> None:
    server = _load()
    from lsprotocol.types import CompletionParams

    client = _Client()
    client.settings = LspSettings(handler_lookahead=2)
    _open(server, client, "/// @\n///\n///\n#[rovo]\nfn f() {}\n")
    result = server.completion(
        client, CompletionParams(text_document=_doc_id(), position=_position(0, 5))
    )
    assert result.items == []


def test_hover_and_definition(todo_source: str) -> None:
    server = _load()
    from lsprotocol.types import DefinitionParams, HoverParams, MarkupKind

    client = _Client()
    _open(server, client, todo_source)
    lines = todo_source.split("\n")
    line = lines.index("/// 200: Json<TodoItem> - The todo item")
    column = lines[line].index("TodoItem") + 1
    hover = server.hover(client, HoverParams(text_document=_doc_id(), position=_position(line, column)))
    assert hover.contents.kind == MarkupKind.Markdown
    assert hover.contents.value.startswith("**TodoItem**")

    location = server.definition(
        client, DefinitionParams(text_document=_doc_id(), position=_position(line, column))
    )
    declared = lines.index("pub struct TodoItem {")
    assert location.uri == URI
    assert (location.range.start.line, location.range.start.character) == (declared, 11)
    assert location.range.end.character == 19

    assert server.hover(client, HoverParams(text_document=_doc_id(), position=_position(0, 0))) is None
    assert server.definition(client, DefinitionParams(text_document=_doc_id(), position=_position(0, 0))) is None


def test_references_and_rename() -> None:
    server = _load()
    from lsprotocol.types import (
        PrepareRenameParams,
        ReferenceContext,
        ReferenceParams,
        RenameParams,
    )

    client = _Client()
    _open(server, client)
    refs = server.references(
        client,
        ReferenceParams(
            text_document=_doc_id(),
            position=_position(7, 10),
            context=ReferenceContext(include_declaration=True),
        ),
    )
    assert [(ref.range.start.line, ref.range.start.character, ref.range.end.character) for ref in refs] == [
        (7, 9, 14),
        (13, 9, 14),
    ]

    prepared = server.prepare_rename_handler(
        client, PrepareRenameParams(text_document=_doc_id(), position=_position(13, 11))
    )
    assert prepared.placeholder == "users"
    assert (prepared.range.start.line, prepared.range.start.character) == (13, 9)

    edit = server.rename(
        client, RenameParams(text_document=_doc_id(), position=_position(7, 10), new_name="people")
    )
    assert [e.new_text for e in edit.changes[URI]] == ["people", "people"]
    assert server.rename(
        client, RenameParams(text_document=_doc_id(), position=_position(7, 10), new_name="two words")
    ) is None
    assert server.prepare_rename_handler(
        client, PrepareRenameParams(text_document=_doc_id(), position=_position(0, 0))
    ) is None


def test_code_action_quick_fixes_and_scaffolding() -> None:
    server = _load()
    from lsprotocol.types import CodeActionContext, CodeActionKind, CodeActionParams, Range

    client = _Client()
    _open(server, client)
    unknown, status = client.published[-1].diagnostics
    params = CodeActionParams(
        text_document=_doc_id(),
        range=status.range,
        context=CodeActionContext(diagnostics=[unknown, status]),
    )
    actions = server.code_action(client, params)
    titles = [action.title for action in actions]
    assert titles[0] == "Replace with '@tag'"
    assert titles[1:6] == [
        "Change to 200",
        "Change to 201",
        "Change to 400",
        "Change to 404",
        "Change to 500",
    ]
    assert "Add # Examples section" in titles
    fix = actions[0]
    assert fix.kind == CodeActionKind.QuickFix
    assert fix.is_preferred
    assert fix.diagnostics == [unknown]
    (text_edit,) = fix.edit.changes[URI]
    assert text_edit.new_text == "@tag"
    assert (text_edit.range.start.character, text_edit.range.end.character) == (4, 8)
    change = actions[1].edit.changes[URI][0]
    assert (change.range.start.line, change.range.start.character) == (4, 4)
    assert change.new_text == "200"

    assert server.code_action(
        _Client(),
        CodeActionParams(
            text_document=_doc_id(),
            range=Range(start=_position(0, 0), end=_position(0, 0)),
            context=CodeActionContext(diagnostics=[]),
        ),
    ) == []


def test_code_action_ignores_foreign_diagnostics() -> None:
    server = _load()
    from lsprotocol.types import CodeActionContext, CodeActionParams, Diagnostic, Range

    client = _Client()
    _open(server, client)
    foreign = Diagnostic(
        range=Range(start=_position(4, 4), end=_position(4, 7)),
        message="Invalid HTTP status code 700",
        source="rust-analyzer",
    )
    actions = server.code_action(
        client,
        CodeActionParams(
            text_document=_doc_id(),
            range=foreign.range,
            context=CodeActionContext(diagnostics=[foreign]),
        ),
    )
    assert not any(action.title.startswith("Change to") for action in actions)


def test_execute_inspect_from_store() -> None:
    server = _load()
    client = _Client()
    _open(server, client)
    result = server.execute_inspect(client, {"uri": URI})
    assert result["uri"] == URI
    assert result["exit_code"] == 1
    assert [handler["name"] for handler in result["handlers"]] == ["broken", "other"]
    broken = result["handlers"][0]
    assert broken["doc"]["tags"] == ["users"]
    assert broken["doc"]["metadata"] == ["@tag users"]
    assert [d["severity"] for d in broken["diagnostics"]] == ["error", "error"]


def test_execute_inspect_reads_files(tmp_path: Path, todo_source: str) -> None:
    server = _load()
    target = tmp_path / "todo_api.rs"
    target.write_text(todo_source, encoding="utf-8")
    result = server.execute_inspect(_Client(), {"uri": target.as_uri()})
    assert result["exit_code"] == 0
    assert result["handlers"][1]["doc"]["operation_id"] == "get_todo"
    assert result["handlers"][1]["signature"]["bindings"] == ["id"]

    missing = server.execute_inspect(_Client(), {"uri": (tmp_path / "gone.rs").as_uri()})
    assert missing["exit_code"] == 2
    assert missing["errors"]

    latin1 = tmp_path / "latin1.rs"
    latin1.write_bytes("/// caf\u00e9\n".encode("latin-1"))
    undecodable = server.execute_inspect(_Client(), {"uri": latin1.as_uri()})
    assert undecodable["exit_code"] == 2
    assert undecodable["handlers"] == []


def test_execute_inspect_rejects_bad_payloads() -> None:
    server = _load()
    invalid = server.execute_inspect(_Client(), {"path": "x"})
    assert invalid["exit_code"] == 2
    assert invalid["errors"]
    with pytest.raises(NeverThrown):
        server.execute_inspect(_Client(), None)


def test_start_uses_injected_runner_and_settings() -> None:
    server = _load()
    calls: list[bool] = []

    def _start() -> None:
        calls.append(True)

    settings = LspSettings(handler_lookahead=7, log_level="debug")
    server.start(_start, settings=settings)
    assert calls == [True]
    assert server.server.settings == settings


def test_initialized_reads_workspace_config(tmp_path: Path) -> None:
    server = _load()
    from types import SimpleNamespace

    from lsprotocol.types import InitializedParams

    (tmp_path / "rovo.toml").write_text("[lsp]\nhandler_lookahead = 9\n", encoding="utf-8")
    client = _Client()
    client.workspace = SimpleNamespace(root_path=str(tmp_path))
    server.initialized(client, InitializedParams())
    assert client.settings.handler_lookahead == 9

    client.workspace = SimpleNamespace(root_path=None)
    server.initialized(client, InitializedParams())
    assert client.settings == LspSettings()


def test_completion_ignores_unconfigured_trigger() -> None:
    server = _load()
    from lsprotocol.types import CompletionContext, CompletionParams, CompletionTriggerKind

    client = _Client()
    client.settings = LspSettings(trigger_characters=("@",))
    _open(server, client, "/// #\n#[rovo]\nfn f() {}\n")
    params = CompletionParams(
        text_document=_doc_id(),
        position=_position(0, 5),
        context=CompletionContext(
            trigger_kind=CompletionTriggerKind.TriggerCharacter, trigger_character="#"
        ),
    )
    assert server.completion(client, params) is None

    invoked = CompletionParams(
        text_document=_doc_id(),
        position=_position(0, 5),
        context=CompletionContext(trigger_kind=CompletionTriggerKind.Invoked),
    )
    labels = [item.label for item in server.completion(client, invoked).items]
    assert "# Responses" in labels
