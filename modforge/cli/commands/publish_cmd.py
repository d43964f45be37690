from __future__ import annotations

from pathlib import Path

import typer

from modforge.cli.commands._helpers import fail
from modforge.cli.context import build_context
from modforge.core.errors import ErrorCode
from modforge.output.diagnostics import diagnostics_exit_code, print_diagnostics
from modforge.publish.projects import Project
from modforge.publish.sequencer import order_projects

publish_app = typer.Typer(
    no_args_is_help=True,
    help="Plan multi-project publishing.",
    add_completion=False,
)


@publish_app.command("order")
def order(
    paths: list[Path] = typer.Argument(None, help="Project files (default: [[projects]] from config)"),
    strict: bool = typer.Option(False, "--strict", help="Exit non-zero on a cycle or unreadable project"),
) -> None:
    """Print projects in publish order, dependencies first."""
    ctx = build_context()
    if paths:
        projects = [Project(name=p.stem, path=p) for p in paths]
    elif ctx.config is not None and ctx.config.projects:
        projects = list(ctx.config.projects)
    else:
        fail(
            ctx,
            "no projects to order",
            ErrorCode.USER_ERROR,
            hint="Pass project files or add [[projects]] to modforge.toml",
        )

    plan = order_projects(projects)
    for i, project in enumerate(plan.projects, start=1):
        ctx.console.print(f"{i}. {project.name}")
    print_diagnostics(plan.diagnostics, ctx.console)

    code = diagnostics_exit_code(plan.diagnostics) if strict else ErrorCode.OK
    if code.is_error:
        raise typer.Exit(code=int(code))
