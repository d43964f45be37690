"""``Ok``/``Err`` values for failures that are part of normal operation.

A malformed template, a missing PowerShell provider or an unreadable config
file is reported as ``Err(error)``; callers pattern-match:

    match step_version("1.2.X", baseline):
        case Ok(version):
            ...
        case Err(error):
            ...
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Ok[T]:
    value: T


@dataclass(frozen=True, slots=True)
class Err[E]:
    error: E


type Result[T, E] = Ok[T] | Err[E]
