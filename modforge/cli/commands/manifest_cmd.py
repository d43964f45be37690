from __future__ import annotations

from pathlib import Path

import typer

from modforge.cli.commands._helpers import fail, parse_section, resolve_manifest
from modforge.cli.context import build_context
from modforge.core.diagnostics import Diagnostic
from modforge.core.errors import ErrorCode
from modforge.manifest.editor import (
    try_get_name_only_required_modules,
    try_get_required_modules,
    try_get_section_string,
    try_get_section_string_array,
    try_remove_section_key,
    try_set_section_string,
    try_set_section_string_array,
)
from modforge.manifest.model import ManifestStructureError, RequiredModuleEntry
from modforge.output.console import Style
from modforge.output.diagnostics import print_diagnostics

manifest_app = typer.Typer(
    no_args_is_help=True,
    help="Read and edit a module manifest (.psd1) in place.",
    add_completion=False,
)

_MANIFEST_OPTION = typer.Option(None, "--manifest", "-m", help="Manifest path (default: from config or cwd)")
_SECTION_OPTION = typer.Option(None, "--section", "-s", help="Nested section, e.g. PrivateData.PSData")


def describe_entry(entry: RequiredModuleEntry) -> str:
    details = [f"{f.key}={v}" for f, v in entry.fields() if f.key != "ModuleName"]
    if not details:
        return entry.module_name
    return f"{entry.module_name} ({', '.join(details)})"


def name_only_diagnostics(names: list[str]) -> list[Diagnostic]:
    return [
        Diagnostic(
            kind="name_only_dependency",
            message=f"{name}: RequiredModules entry declares no version",
            subjects=(name,),
            hint="Add ModuleVersion or RequiredVersion to pin the dependency",
        )
        for name in names
    ]


@manifest_app.command("get")
def get(
    key: str = typer.Argument(..., help="Key to read"),
    section: str | None = _SECTION_OPTION,
    manifest: Path | None = _MANIFEST_OPTION,
) -> None:
    """Print a string value."""
    ctx = build_context()
    path = resolve_manifest(ctx, manifest)
    value = try_get_section_string(path, parse_section(section), key)
    if value is None:
        fail(ctx, f"{key}: not found or not a string", ErrorCode.USER_ERROR)
    ctx.console.print(value)


@manifest_app.command("set")
def set_(
    key: str = typer.Argument(..., help="Key to write"),
    value: str = typer.Argument(..., help="String value"),
    section: str | None = _SECTION_OPTION,
    manifest: Path | None = _MANIFEST_OPTION,
) -> None:
    """Set a string value, creating the key (and sections) when missing."""
    ctx = build_context()
    path = resolve_manifest(ctx, manifest)
    try:
        ok = try_set_section_string(path, parse_section(section), key, value)
    except ManifestStructureError as e:
        fail(ctx, str(e), ErrorCode.MANIFEST_ERROR)
    if not ok:
        fail(ctx, f"cannot set {key} in {path}", ErrorCode.MANIFEST_ERROR)
    ctx.console.success(f"{key} = {value}")


@manifest_app.command("remove")
def remove(
    key: str = typer.Argument(..., help="Key to delete"),
    section: str | None = _SECTION_OPTION,
    manifest: Path | None = _MANIFEST_OPTION,
) -> None:
    """Delete a key. Absent keys are reported, not an error."""
    ctx = build_context()
    path = resolve_manifest(ctx, manifest)
    try:
        removed = try_remove_section_key(path, parse_section(section), key)
    except ManifestStructureError as e:
        fail(ctx, str(e), ErrorCode.MANIFEST_ERROR)
    if removed:
        ctx.console.success(f"removed {key}")
    else:
        ctx.console.print(f"{key} not present", Style.DIM)


@manifest_app.command("get-array")
def get_array(
    key: str = typer.Argument(..., help="Key to read"),
    section: str | None = _SECTION_OPTION,
    manifest: Path | None = _MANIFEST_OPTION,
) -> None:
    """Print a string array, one item per line."""
    ctx = build_context()
    path = resolve_manifest(ctx, manifest)
    values = try_get_section_string_array(path, parse_section(section), key)
    if values is None:
        fail(ctx, f"{key}: not found or not a string array", ErrorCode.USER_ERROR)
    for v in values:
        ctx.console.print(v)


@manifest_app.command("set-array")
def set_array(
    key: str = typer.Argument(..., help="Key to write"),
    values: list[str] = typer.Argument(None, help="Items (none writes an empty array)"),
    section: str | None = _SECTION_OPTION,
    manifest: Path | None = _MANIFEST_OPTION,
) -> None:
    """Set a string array."""
    ctx = build_context()
    path = resolve_manifest(ctx, manifest)
    items = values or []
    try:
        ok = try_set_section_string_array(path, parse_section(section), key, items)
    except ManifestStructureError as e:
        fail(ctx, str(e), ErrorCode.MANIFEST_ERROR)
    if not ok:
        fail(ctx, f"cannot set {key} in {path}", ErrorCode.MANIFEST_ERROR)
    ctx.console.success(f"{key} = @({', '.join(items)})")


@manifest_app.command("modules")
def modules(
    manifest: Path | None = _MANIFEST_OPTION,
) -> None:
    """List RequiredModules and flag entries that pin no version."""
    ctx = build_context()
    path = resolve_manifest(ctx, manifest)
    entries = try_get_required_modules(path)
    # Hashtables without ModuleName are dropped from entries but still reported.
    name_only = name_only_diagnostics(try_get_name_only_required_modules(path) or [])

    if entries:
        ctx.console.header("Required modules")
        for entry in entries:
            ctx.console.print(f"  {describe_entry(entry)}")
    else:
        ctx.console.print("No required modules", Style.DIM)

    print_diagnostics(name_only, ctx.console)
