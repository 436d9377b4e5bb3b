"""Lexical extraction of path bindings and extractor types from a handler signature."""

from __future__ import annotations

import re

from rovo_lsp.analysis.model import SignatureInfo

_PATH_PATTERN_RE = re.compile(r"\bPath\s*\(")
_PATH_TYPE_RE = re.compile(r"\bPath\s*<")
_STATE_TYPE_RE = re.compile(r"\bState\s*<")

_PAIRS = {"(": ")", "<": ">", "[": "]", "{": "}"}


def _match_close(text: str, open_index: int) -> int | None:
    """Index of the bracket closing the one at ``open_index``."""
    opener = text[open_index]
    closer = _PAIRS[opener]
    depth = 0
    for index in range(open_index, len(text)):
        char = text[index]
        if char == opener:
            depth += 1
        elif char == closer:
            if opener == "<" and index > 0 and text[index - 1] == "-":
                continue
            depth -= 1
            if depth == 0:
                return index
    return None


def split_top_level(text: str, separator: str = ",") -> list[str]:
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for char in text:
        if char in "(<[{":
            depth += 1
        elif char in ")>]}":
            depth -= 1
        if char == separator and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    parts.append("".join(current))
    return [part.strip() for part in parts if part.strip()]


def _binding_name(pattern: str) -> str:
    pattern = pattern.strip()
    if pattern.startswith("mut "):
        pattern = pattern[4:].strip()
    if pattern.startswith("ref "):
        pattern = pattern[4:].strip()
    return pattern


def parameter_list(signature: str) -> str:
    """The text between the parentheses of a ``fn name(...)`` header."""
    fn_index = signature.find("fn ")
    open_index = signature.find("(", fn_index if fn_index >= 0 else 0)
    if open_index < 0:
        return ""
    close_index = _match_close(signature, open_index)
    if close_index is None:
        return signature[open_index + 1:]
    return signature[open_index + 1:close_index]


def _generic_argument(text: str, pattern: re.Pattern[str], start: int = 0) -> str | None:
    match = pattern.search(text, start)
    if match is None:
        return None
    open_index = match.end() - 1
    close_index = _match_close(text, open_index)
    if close_index is None:
        return None
    return text[open_index + 1:close_index].strip()


def extract_state_type(text: str) -> str | None:
    return _generic_argument(text, _STATE_TYPE_RE)


def extract_signature(text: str) -> SignatureInfo:
    """Read the path extractor and state type from parameter-list text.

    ``Path(id): Path<u64>`` yields one binding, ``Path((a, b))`` a tuple of
    bindings and ``Path(Params { a, b })`` a struct destructuring pattern with
    no bindings of its own.
    """
    state_type = extract_state_type(text)
    match = _PATH_PATTERN_RE.search(text)
    if match is None:
        return SignatureInfo(state_type=state_type)
    open_index = match.end() - 1
    close_index = _match_close(text, open_index)
    if close_index is None:
        return SignatureInfo(state_type=state_type)
    pattern = text[open_index + 1:close_index].strip()
    inner_type = _generic_argument(text, _PATH_TYPE_RE, close_index) or ""

    if "{" in pattern:
        return SignatureInfo(
            bindings=(),
            inner_type=inner_type,
            is_struct_pattern=True,
            state_type=state_type,
        )
    if pattern.startswith("(") and pattern.endswith(")"):
        names = [_binding_name(part) for part in split_top_level(pattern[1:-1])]
        bindings = tuple(name for name in names if name)
    else:
        name = _binding_name(pattern)
        bindings = (name,) if name else ()
    return SignatureInfo(bindings=bindings, inner_type=inner_type, state_type=state_type)
