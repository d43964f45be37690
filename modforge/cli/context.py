from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from modforge.core.config import ReleaseConfig, find_config, load_release_config
from modforge.core.errors import ErrorCode
from modforge.core.result import Err
from modforge.output.console import ConsoleProtocol, RichConsole

# Set by the ``--config`` global option.
CONFIG_ENV = "MODFORGE_CONFIG"


@dataclass(frozen=True, slots=True)
class CLIContext:
    cwd: Path
    config: ReleaseConfig | None
    console: ConsoleProtocol


def _config_path(cwd: Path) -> Path | None:
    explicit = os.environ.get(CONFIG_ENV, "").strip()
    if explicit:
        return Path(explicit)
    return find_config(cwd)


def build_context() -> CLIContext:
    cwd = Path.cwd()

    config: ReleaseConfig | None = None
    path = _config_path(cwd)
    if path is not None:
        config_result = load_release_config(path)
        if isinstance(config_result, Err):
            typer.echo(f"error: {config_result.error.message}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))
        config = config_result.value

    return CLIContext(cwd=cwd, config=config, console=RichConsole())
