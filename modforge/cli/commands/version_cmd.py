from __future__ import annotations

from pathlib import Path

import typer

from modforge.cli.commands._helpers import exit_on_error, fail, resolve_manifest
from modforge.cli.context import build_context
from modforge.core.errors import ErrorCode
from modforge.dependencies.powershell import default_lookup
from modforge.manifest.editor import try_set_module_version
from modforge.manifest.model import ManifestStructureError
from modforge.output.console import Style
from modforge.versioning.stepper import VersionStepper
from modforge.versioning.version import compare_versions, parse_version

version_app = typer.Typer(
    no_args_is_help=True,
    help="Compare versions and compute the next release version.",
    add_completion=False,
)

_SYMBOLS = {-1: "<", 0: "=", 1: ">"}


@version_app.command("compare")
def compare(
    left: str = typer.Argument(..., help="First version"),
    right: str = typer.Argument(..., help="Second version"),
) -> None:
    """Print '<', '=' or '>' for LEFT versus RIGHT."""
    ctx = build_context()
    a = parse_version(left)
    b = parse_version(right)
    if a is None or b is None:
        bad = left if a is None else right
        fail(ctx, f"not a version: {bad!r}", ErrorCode.USER_ERROR)
    ctx.console.print(f"{a} {_SYMBOLS[compare_versions(a, b)]} {b}")


@version_app.command("step")
def step(
    template: str | None = typer.Argument(None, help="Template such as 1.2.X (default: from config)"),
    module: str | None = typer.Option(None, "--module", help="Look up the current version in the registry"),
    manifest: Path | None = typer.Option(None, "--manifest", "-m", help="Manifest holding the current version"),
    repository: str | None = typer.Option(None, "--repository", help="Registry repository to query"),
    prerelease: bool = typer.Option(False, "--prerelease", help="Consider prerelease versions"),
    write: bool = typer.Option(False, "--write", help="Write the result to the manifest's ModuleVersion"),
) -> None:
    """Compute the smallest version matching TEMPLATE above the current one."""
    ctx = build_context()
    version_config = ctx.config.version if ctx.config is not None else None

    expected = template or (version_config.template if version_config is not None else None)
    if not expected:
        fail(
            ctx,
            "no version template given",
            ErrorCode.USER_ERROR,
            hint="Pass TEMPLATE or set [version].template in modforge.toml",
        )

    repo = repository or (version_config.repository if version_config is not None else None)
    wants_prerelease = prerelease or (version_config.prerelease if version_config is not None else False)

    # A literal version needs no baseline, so no manifest unless writing.
    pinned = parse_version(expected) is not None
    local: Path | None = None
    if (module is None or manifest is not None) and (write or not pinned):
        local = resolve_manifest(ctx, manifest)

    needs_registry = module is not None and local is None and not pinned
    stepper = VersionStepper(default_lookup() if needs_registry else None)
    result = exit_on_error(
        stepper.step(
            expected,
            module_name=module,
            local_manifest=local,
            repositories=(repo,) if repo else (),
            prerelease=wants_prerelease,
        ),
        ctx,
    )

    if result.used_auto_versioning:
        current = str(result.current_version) if result.current_version is not None else "none"
        ctx.console.print(f"current: {current} ({result.source})", Style.DIM)
    ctx.console.print(str(result.version))

    if not write:
        return
    target = local or resolve_manifest(ctx, None)
    try:
        ok = try_set_module_version(target, str(result.version))
    except ManifestStructureError as e:
        fail(ctx, str(e), ErrorCode.MANIFEST_ERROR)
    if not ok:
        fail(ctx, f"cannot set ModuleVersion in {target}", ErrorCode.MANIFEST_ERROR)
    ctx.console.success(f"ModuleVersion = {result.version}")
