"""Invariant markers for rovo-lsp."""

from __future__ import annotations

from typing import NoReturn

from rovo_lsp.exceptions import NeverThrown


def _render_env(env: dict[str, object]) -> str:
    if not env:
        return ""
    parts = [f"{key}={env[key]!r}" for key in sorted(env)]
    return " (" + ", ".join(parts) + ")"


def never(reason: str = "", **env: object) -> NoReturn:
    """Mark a code path as intentionally unreachable.

    The env payload is attached to the raised exception and rendered into its
    message so a reached marker can be diagnosed from logs alone.
    """
    message = (reason or "never() marker reached") + _render_env(env)
    raise NeverThrown(message, env=env)

