"""Structured, non-fatal findings returned next to a primary result.

Components never print. They hand back diagnostics and the caller decides
whether a kind is informational, a warning, or a reason to fail.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

__all__ = ["Diagnostic", "DiagnosticKind"]

DiagnosticKind = Literal[
    "unresolved_version",
    "unresolved_guid",
    "resolved_online",
    "outdated",
    "missing_locally",
    "unparsable_version",
    "minimum_conflict",
    "registry_failed",
    "publish_cycle",
    "invalid_project_file",
    "name_only_dependency",
]


@dataclass(frozen=True, slots=True)
class Diagnostic:
    kind: DiagnosticKind
    message: str
    # Module or project names the finding is about, sorted for stable output.
    subjects: tuple[str, ...] = ()
    hint: str | None = None
