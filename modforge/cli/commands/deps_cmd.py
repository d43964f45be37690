from __future__ import annotations

from pathlib import Path

import typer

from modforge.cli.commands._helpers import fail, resolve_manifest
from modforge.cli.commands.manifest_cmd import describe_entry, name_only_diagnostics
from modforge.cli.context import build_context
from modforge.core.config import DependenciesConfig
from modforge.core.errors import ErrorCode
from modforge.dependencies.model import RequiredModuleDraft
from modforge.dependencies.powershell import default_lookup
from modforge.dependencies.resolver import resolve_required_modules
from modforge.manifest.editor import (
    try_get_name_only_required_modules,
    try_get_required_modules,
    try_set_required_modules,
)
from modforge.manifest.model import ManifestStructureError, RequiredModuleEntry
from modforge.output.console import Style
from modforge.output.diagnostics import diagnostics_exit_code, print_diagnostics

deps_app = typer.Typer(
    no_args_is_help=True,
    help="Resolve RequiredModules against installed modules and registries.",
    add_completion=False,
)


def _draft_from_entry(entry: RequiredModuleEntry) -> RequiredModuleDraft:
    return RequiredModuleDraft(
        module_name=entry.module_name,
        module_version=entry.module_version,
        required_version=entry.required_version,
        maximum_version=entry.maximum_version,
        guid=entry.guid,
    )


@deps_app.command("resolve")
def resolve(
    manifest: Path | None = typer.Option(None, "--manifest", "-m", help="Manifest to read or update"),
    write: bool = typer.Option(False, "--write", help="Write the resolved RequiredModules"),
    offline: bool = typer.Option(False, "--offline", help="Never fill values from the registry"),
    outdated: bool = typer.Option(False, "--outdated", help="Warn when a newer version is published"),
    strict: bool = typer.Option(False, "--strict", help="Exit non-zero on any warning"),
) -> None:
    """Resolve configured dependencies (or the manifest's own) to concrete entries."""
    ctx = build_context()
    deps = ctx.config.dependencies if ctx.config is not None else DependenciesConfig()
    drafts = list(deps.modules)
    # Configured drafts only need the manifest when writing or when one is named.
    path: Path | None = None
    if not drafts or write or manifest is not None:
        path = resolve_manifest(ctx, manifest)
    if not drafts and path is not None:
        drafts = [_draft_from_entry(e) for e in try_get_required_modules(path) or []]
    if not drafts:
        ctx.console.print("No required modules", Style.DIM)
        return

    result = resolve_required_modules(
        drafts,
        default_lookup(timeout=deps.timeout_seconds),
        allow_online_lookup=deps.allow_online_lookup and not offline,
        warn_if_outdated=deps.warn_if_outdated or outdated,
        repositories=deps.repositories,
        prerelease=deps.prerelease,
    )

    ctx.console.header("Required modules")
    for entry in result.modules:
        ctx.console.print(f"  {describe_entry(entry)}")

    diagnostics = list(result.diagnostics)
    if not write and path is not None:
        diagnostics.extend(name_only_diagnostics(try_get_name_only_required_modules(path) or []))
    print_diagnostics(diagnostics, ctx.console)

    if write:
        path = path or resolve_manifest(ctx, manifest)
        try:
            ok = try_set_required_modules(path, result.modules)
        except ManifestStructureError as e:
            fail(ctx, str(e), ErrorCode.MANIFEST_ERROR)
        if not ok:
            fail(ctx, f"cannot write RequiredModules in {path}", ErrorCode.MANIFEST_ERROR)
        ctx.console.success(f"updated {path.name}")

    code = diagnostics_exit_code(diagnostics) if strict else ErrorCode.OK
    if code.is_error:
        raise typer.Exit(code=int(code))
