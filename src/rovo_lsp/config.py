from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from pathlib import Path
from typing import TypeAlias
import tomllib

from rovo_lsp.analysis.comments import DEFAULT_HANDLER_LOOKAHEAD

DEFAULT_CONFIG_NAME = "rovo.toml"
DEFAULT_LOG_LEVEL = "warning"
DEFAULT_TRIGGER_CHARACTERS = ("@", "#")
DEFAULT_EXTENSIONS = (".rs",)
DEFAULT_EXCLUDE = ("target", ".git")

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return {}
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    if config_path is None:
        base = root if root is not None else Path.cwd()
        config_path = base / DEFAULT_CONFIG_NAME
    return _load_toml(config_path)


def _section(name: str, root: Path | None, config_path: Path | None) -> TomlTable:
    data = load_config(root=root, config_path=config_path)
    section = data.get(name, {})
    return section if isinstance(section, dict) else {}


def lsp_defaults(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    return _section("lsp", root, config_path)


def check_defaults(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    return _section("check", root, config_path)


def _normalize_name_list(value: TomlValue) -> list[str]:
    items: list[str] = []
    if value is None:
        return items
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",") if part.strip()]
    elif isinstance(value, (list, tuple, set)):
        for item in value:
            if isinstance(item, str):
                items.extend([part.strip() for part in item.split(",") if part.strip()])
    return [item for item in items if item]


def _as_bool(value: TomlValue, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return default


def _as_positive_int(value: TomlValue, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value if value > 0 else default
    if isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
        return parsed if parsed > 0 else default
    return default


@dataclass(frozen=True)
class LspSettings:
    handler_lookahead: int = DEFAULT_HANDLER_LOOKAHEAD
    log_level: str = DEFAULT_LOG_LEVEL
    trigger_characters: tuple[str, ...] = DEFAULT_TRIGGER_CHARACTERS


def lsp_settings(section: TomlTable | None) -> LspSettings:
    if not isinstance(section, dict):
        return LspSettings()
    level = section.get("log_level")
    triggers = _normalize_name_list(section.get("trigger_characters"))
    return LspSettings(
        handler_lookahead=_as_positive_int(
            section.get("handler_lookahead"), DEFAULT_HANDLER_LOOKAHEAD
        ),
        log_level=level.strip().lower() if isinstance(level, str) and level.strip() else DEFAULT_LOG_LEVEL,
        trigger_characters=tuple(triggers) or DEFAULT_TRIGGER_CHARACTERS,
    )


def check_exclude_list(section: TomlTable | None) -> list[str]:
    if not isinstance(section, dict) or "exclude" not in section:
        return list(DEFAULT_EXCLUDE)
    return _normalize_name_list(section.get("exclude"))


def check_extensions(section: TomlTable | None) -> list[str]:
    if not isinstance(section, dict):
        return list(DEFAULT_EXTENSIONS)
    extensions = _normalize_name_list(section.get("extensions"))
    normalized = [ext if ext.startswith(".") else f".{ext}" for ext in extensions]
    return normalized or list(DEFAULT_EXTENSIONS)


def check_fail_fast(section: TomlTable | None) -> bool:
    if not isinstance(section, dict):
        return True
    return _as_bool(section.get("fail_fast"), default=True)


def merge_payload(payload: TomlTable, defaults: TomlTable) -> TomlTable:
    merged = dict(defaults)
    for key, value in payload.items():
        if value is None:
            continue
        merged[key] = value
    return merged
