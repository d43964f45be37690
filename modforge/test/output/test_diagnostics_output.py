"""Tests for modforge.output.diagnostics module."""

from __future__ import annotations

from modforge.core.diagnostics import Diagnostic
from modforge.core.errors import ErrorCode
from modforge.output.console import MockConsole, Style
from modforge.output.diagnostics import diagnostics_exit_code, print_diagnostics, severity


def test_severity() -> None:
    assert severity("resolved_online") == "info"
    assert severity("publish_cycle") == "warning"
    assert severity("unresolved_version") == "warning"


def test_print_diagnostics_counts_warnings() -> None:
    console = MockConsole()
    diagnostics = [
        Diagnostic(kind="resolved_online", message="Lib: filled from registry"),
        Diagnostic(kind="outdated", message="Lib 1.0 is installed; 1.1 is available"),
        Diagnostic(kind="registry_failed", message="Other: offline", hint="check network"),
    ]

    assert print_diagnostics(diagnostics, console) == 2
    assert console.messages == [
        "info: Lib: filled from registry",
        "warning: Lib 1.0 is installed; 1.1 is available",
        "warning: Other: offline",
        "hint: check network",
    ]
    assert console.count(Style.WARNING) == 2


def test_exit_code() -> None:
    assert diagnostics_exit_code([]) == ErrorCode.OK
    assert diagnostics_exit_code([Diagnostic("resolved_online", "x")]) == ErrorCode.OK
    assert diagnostics_exit_code([Diagnostic("registry_failed", "x")]) == ErrorCode.NETWORK_ERROR
    assert diagnostics_exit_code([Diagnostic("invalid_project_file", "x")]) == ErrorCode.IO_ERROR
    assert diagnostics_exit_code([Diagnostic("publish_cycle", "x")]) == ErrorCode.USER_ERROR
