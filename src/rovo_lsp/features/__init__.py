from rovo_lsp.features.code_actions import (
    ActionKind,
    CodeActionSpec,
    get_code_actions,
    get_diagnostic_actions,
)
from rovo_lsp.features.completion import (
    CompletionItem,
    CompletionKind,
    completion_at,
    get_completions,
)
from rovo_lsp.features.definition import get_definition
from rovo_lsp.features.hover import get_hover
from rovo_lsp.features.references import (
    TextEdit,
    find_references,
    prepare_rename,
    rename_tag,
)

__all__ = [
    "ActionKind",
    "CodeActionSpec",
    "CompletionItem",
    "CompletionKind",
    "TextEdit",
    "completion_at",
    "find_references",
    "get_code_actions",
    "get_completions",
    "get_definition",
    "get_diagnostic_actions",
    "get_hover",
    "prepare_rename",
    "rename_tag",
]
