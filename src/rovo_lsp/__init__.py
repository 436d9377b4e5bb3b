"""rovo-lsp package root."""

from rovo_lsp.exceptions import AnnotationError, NeverThrown, RovoError
from rovo_lsp.invariants import never

__all__ = ["__version__", "AnnotationError", "NeverThrown", "RovoError", "never"]

__version__ = "0.3.0"
