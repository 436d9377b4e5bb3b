from __future__ import annotations

from pathlib import Path

from rovo_lsp import config


def _write_config(root: Path, body: str) -> Path:
    path = root / config.DEFAULT_CONFIG_NAME
    path.write_text(body, encoding="utf-8")
    return path


def test_defaults_without_config(tmp_path: Path) -> None:
    assert config.load_config(tmp_path) == {}
    settings = config.lsp_settings(config.lsp_defaults(tmp_path))
    assert settings == config.LspSettings()
    assert settings.handler_lookahead == 20
    assert settings.trigger_characters == ("@", "#")
    section = config.check_defaults(tmp_path)
    assert config.check_exclude_list(section) == ["target", ".git"]
    assert config.check_extensions(section) == [".rs"]
    assert config.check_fail_fast(section)


def test_config_sections(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        "[lsp]\n"
        "handler_lookahead = 40\n"
        'log_level = "DEBUG"\n'
        'trigger_characters = ["@"]\n'
        "\n"
        "[check]\n"
        'exclude = ["vendor", "build, dist"]\n'
        'extensions = ["rs", ".rsx"]\n'
        "fail_fast = false\n",
    )
    settings = config.lsp_settings(config.lsp_defaults(tmp_path))
    assert settings == config.LspSettings(handler_lookahead=40, log_level="debug", trigger_characters=("@",))
    section = config.check_defaults(tmp_path)
    assert config.check_exclude_list(section) == ["vendor", "build", "dist"]
    assert config.check_extensions(section) == [".rs", ".rsx"]
    assert not config.check_fail_fast(section)


def test_explicit_config_path(tmp_path: Path) -> None:
    path = tmp_path / "custom.toml"
    path.write_text("[check]\nexclude = []\n", encoding="utf-8")
    section = config.check_defaults(config_path=path)
    assert config.check_exclude_list(section) == []


def test_invalid_toml_is_ignored(tmp_path: Path) -> None:
    _write_config(tmp_path, "[lsp\nbroken = ")
    assert config.load_config(tmp_path) == {}
    _write_config(tmp_path, 'lsp = "not a table"\n')
    assert config.lsp_defaults(tmp_path) == {}


def test_lsp_settings_coercion() -> None:
    assert config.lsp_settings({"handler_lookahead": 0}).handler_lookahead == 20
    assert config.lsp_settings({"handler_lookahead": "15"}).handler_lookahead == 15
    assert config.lsp_settings({"handler_lookahead": True}).handler_lookahead == 20
    assert config.lsp_settings({"log_level": "  "}).log_level == "warning"
    assert config.lsp_settings({"trigger_characters": "@, #, $"}).trigger_characters == ("@", "#", "$")
    assert config.lsp_settings(None) == config.LspSettings()


def test_fail_fast_coercion() -> None:
    assert config.check_fail_fast({"fail_fast": "no"}) is False
    assert config.check_fail_fast({"fail_fast": 1}) is True
    assert config.check_fail_fast({"fail_fast": None}) is True
    assert config.check_fail_fast(None) is True


def test_merge_payload_prefers_explicit_values() -> None:
    merged = config.merge_payload({"a": None, "b": 2}, {"a": 1, "b": 1, "c": 3})
    assert merged == {"a": 1, "b": 2, "c": 3}


def test_non_utf8_config_is_empty(tmp_path: Path) -> None:
    (tmp_path / config.DEFAULT_CONFIG_NAME).write_bytes(b"[lsp]\nlog_level = \"\xff\"\n")
    assert config.load_config(tmp_path) == {}
