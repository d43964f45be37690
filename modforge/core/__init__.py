"""Core domain types shared by every layer."""

from .diagnostics import Diagnostic, DiagnosticKind
from .errors import ErrorCode
from .result import Err, Ok, Result

__all__ = [
    # diagnostics
    "Diagnostic",
    "DiagnosticKind",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
]
