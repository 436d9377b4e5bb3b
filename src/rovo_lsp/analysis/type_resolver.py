"""Resolve response type expressions to the declarations they name."""

from __future__ import annotations

import re

from rovo_lsp.analysis.annotations import is_char_literal
from rovo_lsp.analysis.positions import split_lines
from rovo_lsp.analysis.signature import split_top_level

WRAPPER_TYPES = ("Json", "Vec", "Option", "Result", "Arc", "Box", "Rc")

_WRAPPER_RE = re.compile(r"^(?:[\w]+::)*(?:" + "|".join(WRAPPER_TYPES) + r")\s*<(.*)>$", re.S)
_GENERIC_TAIL_RE = re.compile(r"^([^<]+)<.*>$", re.S)
_SNIPPET_LIMIT = 15


def extract_inner_type(expression: str) -> str:
    """Innermost domain type of a wrapper expression.

    ``Json<Vec<Option<User>>>`` resolves to ``User``; ``Result<T, E>`` follows
    its first argument; a non-wrapper generic keeps only its own name.
    """
    current = expression.strip()
    while True:
        match = _WRAPPER_RE.match(current)
        if match is None:
            break
        arguments = split_top_level(match.group(1))
        if not arguments:
            return ""
        current = arguments[0]
    generic = _GENERIC_TAIL_RE.match(current)
    if generic is not None:
        current = generic.group(1)
    return current.strip()


def _declaration_re(name: str) -> re.Pattern[str]:
    return re.compile(
        r"^\s*(?:#\[[^\]]*\]\s*)*"
        r"(?:pub(?:\s*\([^)]*\))?\s+)?"
        r"(?:struct|enum|union|type)\s+"
        rf"({re.escape(name)})\b"
    )


def _code_lines(text: str) -> list[str]:
    """Lines of ``text`` with comments and string literal contents blanked."""
    out: list[str] = []
    in_block = False
    quote = False
    for raw in split_lines(text):
        kept: list[str] = []
        index = 0
        while index < len(raw):
            pair = raw[index:index + 2]
            char = raw[index]
            if in_block:
                if pair == "*/":
                    in_block = False
                    index += 2
                    kept.append("  ")
                    continue
                kept.append(" ")
            elif quote:
                if char == "\\":
                    kept.append("  ")
                    index += 2
                    continue
                if char == '"':
                    quote = False
                    kept.append(char)
                else:
                    kept.append(" ")
            elif pair == "//":
                break
            elif pair == "/*":
                in_block = True
                kept.append("  ")
                index += 2
                continue
            elif char == "'" and is_char_literal(raw, index):
                close = raw.find("'", index + (3 if raw[index + 1] == "\\" else 2))
                if close < 0:
                    close = len(raw) - 1
                kept.append(raw[index:close + 1])
                index = close + 1
                continue
            else:
                if char == '"':
                    quote = True
                kept.append(char)
            index += 1
        out.append("".join(kept))
    return out


def find_declaration(text: str, type_name: str) -> int | None:
    """First line declaring ``type_name`` as a struct, enum, union or alias."""
    name = type_name.strip().rsplit("::", 1)[-1]
    if not name:
        return None
    pattern = _declaration_re(name)
    for index, code in enumerate(_code_lines(text)):
        if pattern.match(code):
            return index
    return None


def declaration_column(text: str, line: int, type_name: str) -> tuple[int, int] | None:
    """Start and end columns of the declared name on ``line``."""
    name = type_name.strip().rsplit("::", 1)[-1]
    codes = _code_lines(text)
    if line < 0 or line >= len(codes):
        return None
    match = _declaration_re(name).match(codes[line])
    if match is None:
        return None
    return match.start(1), match.end(1)


def declaration_snippet(text: str, line: int) -> str:
    """The declaration starting at ``line`` up to its closing brace or semicolon."""
    lines = split_lines(text)
    codes = _code_lines(text)
    collected: list[str] = []
    depth = 0
    opened = False
    for index in range(line, min(line + _SNIPPET_LIMIT, len(lines))):
        collected.append(lines[index])
        code = codes[index]
        depth += code.count("{") - code.count("}")
        opened = opened or "{" in code
        if (opened and depth <= 0) or (not opened and code.rstrip().endswith(";")):
            break
    return "\n".join(collected).rstrip()
