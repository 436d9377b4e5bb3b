from __future__ import annotations

from rovo_lsp.features.completion import CompletionKind, completion_at, get_completions

HANDLER = (
    "/// Get a user.\n"  # 0
    "///\n"  # 1
    "/// # Path Parameters\n"  # 2
    "///\n"  # 3
    "/// org: The organisation\n"  # 4
    "/// \n"  # 5
    "///\n"  # 6
    "/// # Responses\n"  # 7
    "///\n"  # 8
    "/// 200: Json<User> - ok\n"  # 9
    "/// 404: () - missing\n"  # 10
    "/// 2\n"  # 11
    "/// # Examples\n"  # 12
    "/// \n"  # 13
    "/// # Metadata\n"  # 14
    "/// @\n"  # 15
    "/// @security b\n"  # 16
    "#[rovo]\n"  # 17
    "async fn get_user(Path((org, id)): Path<(String, u64)>) -> Json<User> {\n"  # 18
    "}\n"
)


def _labels(items) -> list[str]:
    return [item.label for item in items]


def test_annotation_keywords() -> None:
    items = get_completions(HANDLER, 15, 5)
    assert _labels(items) == ["@tag", "@security", "@id", "@hidden"]
    assert all(item.kind is CompletionKind.SNIPPET for item in items)
    assert all(item.documentation for item in items)
    assert items[0].insert_text == "@tag ${1:tag_name}"
    assert items[0].replace == (4, 5)


def test_annotation_prefix_filter() -> None:
    assert _labels(get_completions("/// @h\n#[rovo]\nfn f() {}\n", 0, 6)) == ["@hidden"]
    assert get_completions("/// @tag users\n", 0, 14) == []


def test_annotations_only_outside_sections_or_in_metadata() -> None:
    text = "/// # Responses\n/// @\n#[rovo]\nfn f() {}\n"
    assert get_completions(text, 1, 5) == []


def test_security_schemes() -> None:
    items = get_completions(HANDLER, 16, 15)
    assert _labels(items) == ["bearer", "basic"]
    assert items[0].replace == (14, 15)
    assert items[0].kind is CompletionKind.KEYWORD
    all_schemes = get_completions("/// @security \n", 0, 14)
    assert _labels(all_schemes) == ["bearer", "basic", "apiKey", "oauth2"]


def test_section_headers() -> None:
    items = get_completions("/// #\n", 0, 5)
    assert _labels(items) == ["# Responses", "# Examples", "# Metadata", "# Path Parameters"]
    narrowed = get_completions("    /// # R\n", 0, 11)
    assert _labels(narrowed) == ["# Responses"]
    assert narrowed[0].insert_text == (
        "# Responses\n    ///\n    /// ${1:200}: ${2:Json<T>} - ${3:Successful response}"
    )
    assert narrowed[0].replace == (8, 11)


def test_status_codes_in_responses() -> None:
    items = get_completions(HANDLER, 11, 5)
    assert _labels(items) == ["200", "201", "204"]
    assert items[2].insert_text == "204: ${1:()} - ${2:No Content}"
    assert items[0].documentation.startswith("**200 OK**")


def test_example_codes_follow_documented_responses() -> None:
    items = get_completions(HANDLER, 13, 4)
    assert _labels(items) == ["200", "404"]
    assert items[0].insert_text == "200: ${1:T::default()}"


def test_example_codes_fall_back_to_common_codes() -> None:
    text = "/// # Examples\n/// \n#[rovo]\nfn f() {}\n"
    assert "500" in _labels(get_completions(text, 1, 4))


def test_path_parameters_offer_undocumented_bindings() -> None:
    items = get_completions(HANDLER, 5, 4)
    assert _labels(items) == ["id"]
    assert items[0].insert_text == "id: ${1:Description}"


def test_path_parameter_placeholder() -> None:
    no_bindings = "/// # Path Parameters\n/// \n#[rovo]\nasync fn f(State(s): State<App>) {}\n"
    assert _labels(get_completions(no_bindings, 1, 4)) == ["name: description"]
    documented = "/// # Path Parameters\n/// id: x\n/// \n#[rovo]\nasync fn f(Path(id): Path<u64>) {}\n"
    assert _labels(get_completions(documented, 2, 4)) == ["name: description"]


def test_no_completions_outside_comments() -> None:
    assert get_completions("let x = 1;\n", 0, 3) == []
    assert get_completions("/// @\n", 5, 0) == []
    assert get_completions("/// 200: Json<T> - ok\n", 0, 4) == []


def test_cursor_past_line_end_uses_whole_line() -> None:
    assert len(get_completions("/// @", 0, 99)) == 4


def test_completion_at_requires_handler_context() -> None:
    orphan = "/// @\nfn helper() {}\n"
    assert len(get_completions(orphan, 0, 5)) == 4
    assert completion_at(orphan, 0, 5) == []
    assert len(completion_at("/// @\n#[rovo]\nfn f() {}\n", 0, 5)) == 4
    far = "/// @\n" + "///\n" * 5 + "#[rovo]\nfn f() {}\n"
    assert completion_at(far, 0, 5, window=3) == []
