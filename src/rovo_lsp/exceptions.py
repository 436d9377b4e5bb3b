"""Exception types raised by the rovo annotation analysis."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rovo_lsp.analysis.model import Span


class RovoError(Exception):
    """Base class for every error raised by rovo-lsp."""


class AnnotationError(RovoError):
    """A malformed or inconsistent annotation block.

    The message follows the compiler convention of a headline followed by
    optional ``help:`` and ``note:`` lines. ``span`` points at the offending
    comment line when one is known; ``suggestion`` carries the closest valid
    annotation name for unknown ``@`` keywords.
    """

    def __init__(
        self,
        message: str,
        span: Span | None = None,
        *,
        suggestion: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.span = span
        self.suggestion = suggestion

    @property
    def headline(self) -> str:
        return self.message.splitlines()[0] if self.message else ""


class NeverThrown(RuntimeError):
    """Raised by never() when a code path assumed unreachable is reached."""

    def __init__(self, message: str, *, env: dict[str, object] | None = None):
        super().__init__(message)
        self.env = dict(env or {})
