from __future__ import annotations

from rovo_lsp.analysis.comments import DEFAULT_HANDLER_LOOKAHEAD, is_near_handler
from rovo_lsp.analysis.model import Span
from rovo_lsp.analysis.type_resolver import declaration_column, find_declaration
from rovo_lsp.features.hover import cursor_line, type_under_cursor


def get_definition(
    text: str,
    line: int,
    character: int,
    *,
    window: int = DEFAULT_HANDLER_LOOKAHEAD,
) -> Span | None:
    """Span of the declared name for the type under the cursor."""
    cursor = cursor_line(text, line, character)
    if cursor is None or not is_near_handler(cursor.lines, line, window):
        return None
    name = type_under_cursor(cursor)
    if name is None:
        return None
    target = find_declaration(text, name)
    if target is None:
        return None
    columns = declaration_column(text, target, name)
    if columns is None:
        return Span(target, 0, 0)
    return Span(target, columns[0], columns[1])
