"""The only place modforge starts a child process.

Used by the PowerShell adapters. Output is captured as UTF-8 text; a non-zero
exit, a timeout or a failure to spawn all come back as ``Err(ProcessError)``
with whatever output was produced, since the line protocol may report its
error on stdout.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from modforge.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run"]

# Prefix of ProcessError.stderr when the timeout fired.
_TIMEOUT_PREFIX = "Command timed out"


@dataclass(frozen=True, slots=True)
class ProcessError:
    """``returncode`` is -1 when the process timed out or never started."""

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def timed_out(self) -> bool:
        return self.returncode == -1 and self.stderr.startswith(_TIMEOUT_PREFIX)

    def __str__(self) -> str:
        shown = " ".join(self.command[:3]) + (" ..." if len(self.command) > 3 else "")
        return f"{shown} failed (exit {self.returncode})"


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Run ``cmd`` in ``cwd`` and return its stdout."""
    command = tuple(cmd)
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        partial = e.stdout if isinstance(e.stdout, str) else ""
        return Err(ProcessError(command, -1, partial, f"{_TIMEOUT_PREFIX} after {timeout}s"))
    except OSError as e:
        return Err(ProcessError(command, -1, "", str(e)))

    if proc.returncode != 0:
        return Err(ProcessError(command, proc.returncode, proc.stdout, proc.stderr))
    return Ok(proc.stdout)
