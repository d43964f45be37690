from __future__ import annotations

import os
from importlib import metadata
from pathlib import Path

import typer

from modforge.cli.commands.deps_cmd import deps_app
from modforge.cli.commands.manifest_cmd import manifest_app
from modforge.cli.commands.publish_cmd import publish_app
from modforge.cli.commands.version_cmd import version_app
from modforge.cli.context import CONFIG_ENV
from modforge.core.errors import ErrorCode


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Release tooling for PowerShell modules.",
)


# Sub-apps
app.add_typer(manifest_app, name="manifest")
app.add_typer(version_app, name="version")
app.add_typer(deps_app, name="deps")
app.add_typer(publish_app, name="publish")


def _package_version() -> str:
    try:
        return metadata.version("modforge")
    except metadata.PackageNotFoundError:
        return "0.0.0"


def _show_version(value: bool) -> None:
    if value:
        typer.echo(_package_version())
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        callback=_show_version,
        is_eager=True,
        help="Show version and exit.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Path to modforge.toml (overrides auto detection)",
    ),
) -> None:
    if config is not None:
        path = config.expanduser()
        if not path.is_file():
            typer.echo(f"error: --config '{path}' does not exist", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))
        os.environ[CONFIG_ENV] = str(path.absolute())


def main() -> None:
    app()
