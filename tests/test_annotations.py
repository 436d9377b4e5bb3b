from __future__ import annotations

import pytest

from rovo_lsp.analysis import annotations
from rovo_lsp.analysis.model import Annotation, AnnotationKind
from rovo_lsp.exceptions import AnnotationError


def test_levenshtein() -> None:
    assert annotations.levenshtein("kitten", "sitting") == 3
    assert annotations.levenshtein("", "tag") == 3
    assert annotations.levenshtein("tag", "tag") == 0


def test_closest_annotation_within_two_edits() -> None:
    assert annotations.closest_annotation("tga") == "tag"
    assert annotations.closest_annotation("securty") == "security"
    assert annotations.closest_annotation("HIDEN") == "hidden"
    assert annotations.closest_annotation("frobnicate") is None


@pytest.mark.parametrize(
    ("content", "expected"),
    [
        ("@tag users", Annotation(AnnotationKind.TAG, "users")),
        ("@security bearer", Annotation(AnnotationKind.SECURITY, "bearer")),
        ("@id get_user_1", Annotation(AnnotationKind.ID, "get_user_1")),
        ("@hidden", Annotation(AnnotationKind.HIDDEN)),
        ("@rovo-ignore", Annotation(AnnotationKind.ROVO_IGNORE)),
    ],
)
def test_parse_annotation(content: str, expected: Annotation) -> None:
    assert annotations.parse_annotation(content) == expected


@pytest.mark.parametrize(
    ("content", "headline"),
    [
        ("@tag", "Empty <tag_name> in @tag annotation"),
        ("@security   ", "Empty <scheme_name> in @security annotation"),
        ("@id get-user", "Invalid operation ID 'get-user'"),
        ("@hidden yes", "'@hidden' does not take an argument"),
        ("@response 200 Json<User>", "'@response' is no longer supported"),
        ("@example 200 User::default()", "'@example' is no longer supported"),
        ("@frobnicate", "Unknown annotation '@frobnicate'"),
        ("@ tag", "Invalid annotation '@ tag'"),
    ],
)
def test_parse_annotation_errors(content: str, headline: str) -> None:
    with pytest.raises(AnnotationError) as excinfo:
        annotations.parse_annotation(content)
    assert excinfo.value.headline == headline


def test_unknown_annotation_carries_suggestion() -> None:
    with pytest.raises(AnnotationError) as excinfo:
        annotations.parse_annotation("@tga users")
    error = excinfo.value
    assert error.suggestion == "tag"
    assert "help: did you mean '@tag'?" in error.message
    assert "note: valid annotations are @tag, @security, @id, @hidden, @rovo-ignore" in error.message


def test_retired_annotation_points_at_section() -> None:
    with pytest.raises(AnnotationError) as excinfo:
        annotations.parse_annotation("@response 200 Json<User>")
    assert "'# Responses'" in excinfo.value.message


@pytest.mark.parametrize(
    ("content", "expected"),
    [
        ("200: Json<User> - User found", (200, "Json<User>", "User found")),
        ("204: () - Deleted", (204, "()", "Deleted")),
        ("201: (StatusCode, Json<User>) - Created user", (201, "(StatusCode, Json<User>)", "Created user")),
        ("200: Json<User> -", (200, "Json<User>", "")),
        ("404 : Json<Error> - Not - found", (404, "Json<Error>", "Not - found")),
    ],
)
def test_parse_response_line(content: str, expected: tuple[int, str, str]) -> None:
    assert annotations.parse_response_line(content) == expected


def test_parse_response_line_ignores_non_status_lines() -> None:
    assert annotations.parse_response_line("continues the description") is None
    assert annotations.parse_response_line("abc: Json<T> - x") is None


@pytest.mark.parametrize(
    ("content", "headline"),
    [
        ("200: Todo item deleted successfully", "Missing response type for status 200"),
        ("200: - Something", "Missing response type for status 200"),
        ("200: Json<User>", "Missing description for response 200"),
        ("200:", "Invalid response line '200:'"),
    ],
)
def test_parse_response_line_errors(content: str, headline: str) -> None:
    with pytest.raises(AnnotationError) as excinfo:
        annotations.parse_response_line(content)
    assert excinfo.value.headline == headline


def test_looks_like_description() -> None:
    assert annotations.looks_like_description("not found")
    assert annotations.looks_like_description("Todo item deleted")
    assert not annotations.looks_like_description("Json<User>")
    assert not annotations.looks_like_description("User")
    assert not annotations.looks_like_description("")


def test_status_range_error_message() -> None:
    error = annotations.status_range_error(99)
    assert error.headline == "Invalid HTTP status code 99"
    assert "between 100 and 599" in error.message


def test_parse_path_param_line() -> None:
    assert annotations.parse_path_param_line("id: The user id") == ("id", "The user id")
    assert annotations.parse_path_param_line("org_id:") == ("org_id", "")
    assert annotations.parse_path_param_line("no colon here") is None


def test_bracket_delta_skips_literals() -> None:
    assert annotations.bracket_delta('User { name: "}".into() }') == 0
    assert annotations.bracket_delta("User {") == 1
    assert annotations.bracket_delta("'}'") == 0
    assert annotations.bracket_delta("&'a str)") == -1


def test_canonicalize_expression_ignores_layout() -> None:
    flat = annotations.canonicalize_expression('User { id: 1, name: "A  b" }')
    spread = annotations.canonicalize_expression('User {\n    id: 1,\n    name: "A  b"\n}')
    assert flat == spread == 'User{id:1,name:"A  b"}'
    assert annotations.canonicalize_expression("Some(a as u8)") == "Some(a as u8)"
