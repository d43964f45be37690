"""Diagnostic presentation utilities.

Centralized severity and exit code mapping so every command reports
resolver and sequencer findings the same way.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Literal

from modforge.core.diagnostics import Diagnostic, DiagnosticKind
from modforge.core.errors import ErrorCode

if TYPE_CHECKING:
    from modforge.output.console import ConsoleProtocol

__all__ = ["Severity", "diagnostics_exit_code", "print_diagnostics", "severity"]

type Severity = Literal["info", "warning"]


def severity(kind: DiagnosticKind) -> Severity:
    match kind:
        case "resolved_online":
            return "info"
        case _:
            return "warning"


def print_diagnostics(diagnostics: Iterable[Diagnostic], console: ConsoleProtocol) -> int:
    """Print each diagnostic with its severity. Returns the number of warnings."""
    warnings = 0
    for d in diagnostics:
        if severity(d.kind) == "info":
            console.info(d.message)
        else:
            console.warning(d.message)
            warnings += 1
        if d.hint:
            console.hint(d.hint)
    return warnings


def diagnostics_exit_code(diagnostics: Iterable[Diagnostic]) -> ErrorCode:
    """Exit code for ``--strict`` runs: the first warning decides."""
    for d in diagnostics:
        match d.kind:
            case "resolved_online":
                continue
            case "registry_failed":
                return ErrorCode.NETWORK_ERROR
            case "invalid_project_file":
                return ErrorCode.IO_ERROR
            case _:
                return ErrorCode.USER_ERROR
    return ErrorCode.OK
