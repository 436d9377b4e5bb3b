"""Single-line grammar pieces shared by the section parser.

Each ``parse_*`` function takes one trimmed comment line and either returns
the parsed value or raises :class:`AnnotationError` with a compiler-style
message (headline, ``help:`` and ``note:`` lines).
"""

from __future__ import annotations

import re

from rovo_lsp.analysis.model import Annotation, AnnotationKind, Span
from rovo_lsp.exceptions import AnnotationError

VALID_ANNOTATIONS = ("tag", "security", "id", "hidden", "rovo-ignore")
RETIRED_ANNOTATIONS = {"response": "# Responses", "example": "# Examples"}
SUGGESTION_DISTANCE = 2

STATUS_LINE_RE = re.compile(r"^(\d+)\s*:(.*)$")
PATH_PARAM_LINE_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\s*:(.*)$")
_ANNOTATION_RE = re.compile(r"^@([A-Za-z][\w-]*)(.*)$")
_RESPONSE_SPLIT_RE = re.compile(r"\s-(?:\s|$)")

_VALID_NOTE = "note: valid annotations are " + ", ".join(
    f"@{name}" for name in VALID_ANNOTATIONS
)
_COMMON_CODES_NOTE = (
    "note: common codes: 200 (OK), 201 (Created), 400 (Bad Request), "
    "404 (Not Found), 500 (Internal Error)"
)
_DESCRIPTION_WORDS = frozenset(
    {
        "item",
        "deleted",
        "successfully",
        "created",
        "updated",
        "not",
        "error",
        "failed",
        "success",
        "the",
        "a",
        "an",
        "user",
        "data",
        "resource",
        "found",
        "missing",
        "invalid",
        "request",
        "response",
    }
)
_OPENERS = "([{"
_CLOSERS = ")]}"


def levenshtein(left: str, right: str) -> int:
    if len(left) < len(right):
        left, right = right, left
    previous = list(range(len(right) + 1))
    for i, lchar in enumerate(left, start=1):
        current = [i]
        for j, rchar in enumerate(right, start=1):
            cost = 0 if lchar == rchar else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def closest_annotation(name: str, candidates: tuple[str, ...] = VALID_ANNOTATIONS) -> str | None:
    """Closest valid annotation to ``name`` when it is at most two edits away."""
    lowered = name.lower()
    best: str | None = None
    best_distance = SUGGESTION_DISTANCE + 1
    for candidate in candidates:
        distance = levenshtein(lowered, candidate)
        if distance < best_distance:
            best, best_distance = candidate, distance
    return best


def unknown_annotation_error(name: str, span: Span | None = None) -> AnnotationError:
    suggestion = closest_annotation(name)
    if suggestion is None:
        return AnnotationError(f"Unknown annotation '@{name}'\n{_VALID_NOTE}", span)
    return AnnotationError(
        f"Unknown annotation '@{name}'\nhelp: did you mean '@{suggestion}'?\n{_VALID_NOTE}",
        span,
        suggestion=suggestion,
    )


def looks_like_description(text: str) -> bool:
    """Heuristic for prose written where a response type was expected."""
    words = text.split()
    if not words:
        return False
    if any(marker in text for marker in ("<", "(", ")", "::")):
        return False
    if words[0] in _DESCRIPTION_WORDS:
        return True
    if len(words) == 1:
        return False
    return any(word.lower() in _DESCRIPTION_WORDS for word in words) or (
        words[0][:1].islower() and words[1][:1].islower()
    )


def status_range_error(code: int, span: Span | None = None) -> AnnotationError:
    return AnnotationError(
        f"Invalid HTTP status code {code}\n"
        f"help: status code must be between 100 and 599\n{_COMMON_CODES_NOTE}",
        span,
    )


def parse_status(text: str, span: Span | None = None) -> int:
    try:
        return int(text)
    except ValueError:
        raise AnnotationError(
            f"Invalid status code '{text}'\n"
            f"help: status code must be a number between 100-599\n{_COMMON_CODES_NOTE}",
            span,
        ) from None


def parse_response_line(content: str, span: Span | None = None) -> tuple[int, str, str] | None:
    """Parse ``STATUS: TYPE - DESCRIPTION``; ``None`` when not a status line.

    The description may be empty when the separator ends the line; it is then
    filled from continuation lines.
    """
    match = STATUS_LINE_RE.match(content)
    if match is None:
        return None
    code = parse_status(match.group(1), span)
    rest = match.group(2).strip()
    if not rest:
        raise AnnotationError(
            f"Invalid response line '{content}'\n"
            "help: expected 'STATUS: TYPE - DESCRIPTION'\n"
            "note: example '200: Json<User> - Successfully retrieved user'",
            span,
        )
    split = _RESPONSE_SPLIT_RE.search(f" {rest}")
    if split is None:
        if looks_like_description(rest):
            raise missing_type_error(code, rest, span)
        raise AnnotationError(
            f"Missing description for response {code}\n"
            f"help: write '{code}: {rest} - DESCRIPTION'\n"
            f"note: example '{code}: {rest} - Successfully retrieved resource'",
            span,
        )
    type_expression = rest[: max(split.start() - 1, 0)].strip()
    description = rest[max(split.end() - 1, 0):].strip()
    if not type_expression:
        raise missing_type_error(code, description or "DESCRIPTION", span)
    return code, type_expression, description


def missing_type_error(code: int, description: str, span: Span | None = None) -> AnnotationError:
    return AnnotationError(
        f"Missing response type for status {code}\n"
        f"help: write '{code}: TYPE - {description}'\n"
        "note: common types: () for empty responses, Json<T> for JSON, "
        "(StatusCode, Json<T>) for custom status",
        span,
    )


def parse_path_param_line(content: str) -> tuple[str, str] | None:
    match = PATH_PARAM_LINE_RE.match(content)
    if match is None:
        return None
    return match.group(1), match.group(2).strip()


def bracket_delta(text: str) -> int:
    """Net change of bracket depth over ``text``, skipping literals."""
    depth = 0
    quote: str | None = None
    escaped = False
    index = 0
    while index < len(text):
        char = text[index]
        if quote is not None:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
        elif char == '"':
            quote = char
        elif char == "'" and is_char_literal(text, index):
            quote = char
        elif char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            depth -= 1
        index += 1
    return depth


def is_char_literal(text: str, index: int) -> bool:
    rest = text[index + 1:]
    if rest.startswith("\\"):
        return "'" in rest[1:4]
    return len(rest) >= 2 and rest[1] == "'"


def canonicalize_expression(expression: str) -> str:
    """Whitespace-insensitive form of an example expression.

    Whitespace outside string literals is dropped except for a single space
    between two word characters, so reflowing a multi-line example does not
    change its canonical form.
    """
    out: list[str] = []
    quote: str | None = None
    escaped = False
    pending_space = False
    for index, char in enumerate(expression):
        if quote is not None:
            out.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char.isspace():
            pending_space = True
            continue
        if pending_space and out and _is_word(out[-1]) and _is_word(char):
            out.append(" ")
        pending_space = False
        if char == '"' or (char == "'" and is_char_literal(expression, index)):
            quote = char
        out.append(char)
    return "".join(out)


def _is_word(char: str) -> bool:
    return char.isalnum() or char == "_"


def _simple_argument(content: str, name: str, placeholder: str, example: str, span: Span | None) -> str:
    keyword = f"@{name}"
    rest = content[len(keyword):]
    if rest and not rest[0].isspace():
        raise AnnotationError(
            f"Invalid {keyword} annotation format\n"
            f"help: expected '{keyword} {placeholder}'\n"
            f"note: example '{keyword} {example}'",
            span,
        )
    value = rest.strip()
    if not value:
        raise AnnotationError(
            f"Empty {placeholder} in {keyword} annotation\n"
            f"help: provide a {placeholder} after {keyword}\n"
            f"note: example '{keyword} {example}'",
            span,
        )
    return value


def is_annotation_line(content: str) -> bool:
    return content.startswith("@")


def annotation_name(content: str) -> str | None:
    match = _ANNOTATION_RE.match(content)
    return match.group(1) if match else None


def parse_annotation(content: str, span: Span | None = None) -> Annotation:
    """Parse one ``@keyword [value]`` metadata line."""
    name = annotation_name(content)
    if name is None:
        raise AnnotationError(
            f"Invalid annotation '{content}'\nhelp: annotations look like '@tag users'\n{_VALID_NOTE}",
            span,
        )
    if name == "tag":
        value = _simple_argument(content, "tag", "<tag_name>", "users", span)
        return Annotation(AnnotationKind.TAG, value, span)
    if name == "security":
        value = _simple_argument(content, "security", "<scheme_name>", "bearer", span)
        return Annotation(AnnotationKind.SECURITY, value, span)
    if name == "id":
        value = _simple_argument(content, "id", "<operation_id>", "getUserById", span)
        if not all(char.isalnum() or char == "_" for char in value):
            raise AnnotationError(
                f"Invalid operation ID '{value}'\n"
                "help: operation IDs may only contain letters, digits and underscores\n"
                "note: valid examples: 'getUserById', 'create_user', 'deleteItem123'",
                span,
            )
        return Annotation(AnnotationKind.ID, value, span)
    if name in {"hidden", "rovo-ignore"}:
        if content != f"@{name}":
            raise AnnotationError(
                f"'@{name}' does not take an argument\nhelp: write '@{name}' on its own line",
                span,
            )
        kind = AnnotationKind.HIDDEN if name == "hidden" else AnnotationKind.ROVO_IGNORE
        return Annotation(kind, None, span)
    if name in RETIRED_ANNOTATIONS:
        section = RETIRED_ANNOTATIONS[name]
        raise AnnotationError(
            f"'@{name}' is no longer supported\n"
            f"help: document it in a '{section}' section instead",
            span,
        )
    raise unknown_annotation_error(name, span)
