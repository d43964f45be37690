"""Shared helpers for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, NoReturn

import typer

from modforge.core.errors import ErrorCode
from modforge.core.result import Err, Result
from modforge.manifest.editor import find_manifest

if TYPE_CHECKING:
    from modforge.cli.context import CLIContext


def exit_on_error[T, E](
    result: Result[T, E],
    ctx: CLIContext,
    error_code: ErrorCode = ErrorCode.USER_ERROR,
) -> T:
    """Return the Ok value, or print the error and exit.

    Expects error objects to have 'message' and optional 'hint' attributes.
    """
    if isinstance(result, Err):
        error = result.error
        message: str = getattr(error, "message", str(error))
        hint: str | None = getattr(error, "hint", None)
        ctx.console.error(message)
        if hint:
            ctx.console.hint(hint)
        raise typer.Exit(code=int(error_code))
    return result.value


def fail(ctx: CLIContext, message: str, code: ErrorCode, *, hint: str | None = None) -> NoReturn:
    ctx.console.error(message)
    if hint:
        ctx.console.hint(hint)
    raise typer.Exit(code=int(code))


def resolve_manifest(ctx: CLIContext, explicit: Path | None) -> Path:
    """``--manifest``, else ``[manifest].path`` from config, else the one in cwd."""
    if explicit is not None:
        path: Path | None = explicit
    elif ctx.config is not None and ctx.config.manifest_path is not None:
        path = ctx.config.manifest_path
    else:
        path = find_manifest(ctx.cwd)

    if path is None:
        fail(
            ctx,
            f"no module manifest found in {ctx.cwd}",
            ErrorCode.IO_ERROR,
            hint="Pass --manifest or set [manifest].path in modforge.toml",
        )
    if not path.is_file():
        fail(ctx, f"manifest not found: {path}", ErrorCode.IO_ERROR)
    return path


def parse_section(section: str | None) -> tuple[str, ...]:
    """``PrivateData.PSData`` -> ``("PrivateData", "PSData")``."""
    if not section:
        return ()
    return tuple(s.strip() for s in section.split(".") if s.strip())
