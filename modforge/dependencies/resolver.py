"""Resolve dependency drafts into concrete RequiredModules entries.

Per module name:

1. Ask the installed-module locator for the best local copy.
2. Query the registry when a placeholder cannot be filled locally (and
   online lookup is allowed), or when outdated checks are requested.
3. Pick the highest remote version (prereleases only when asked).
4. Fill each ``Auto``/``Latest`` field from local data, else remote data.
   Literal values pass through. A placeholder with no data is dropped and
   reported, never fatal.
5. An exact ``RequiredVersion`` suppresses ``ModuleVersion``. When both a
   minimum and a module version are given literally and differ, the minimum
   wins and a warning is reported.
6. With ``warn_if_outdated``, compare local against remote for reporting only.

Nothing here writes; the result is entries plus diagnostics.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from modforge.core.diagnostics import Diagnostic
from modforge.core.result import Err
from modforge.dependencies.model import (
    ModuleInfo,
    ModuleLookup,
    RegistryItem,
    RequiredModuleDraft,
    ResolutionResult,
    is_placeholder,
)
from modforge.manifest.model import RequiredModuleEntry
from modforge.versioning.version import parse_version, select_latest

__all__ = ["resolve_required_modules"]


@dataclass(frozen=True, slots=True)
class _Remote:
    version: str | None
    guid: str | None
    unparsable: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class _Available:
    version: str | None
    guid: str | None


def _distinct_names(drafts: Sequence[RequiredModuleDraft]) -> list[str]:
    seen: set[str] = set()
    names: list[str] = []
    for d in drafts:
        name = d.module_name.strip()
        if name.casefold() not in seen:
            seen.add(name.casefold())
            names.append(name)
    return names


def _needs_remote(drafts: Sequence[RequiredModuleDraft], local: ModuleInfo | None) -> bool:
    has_version = local is not None and bool(local.version)
    has_guid = local is not None and bool(local.guid)
    return any(
        (d.wants_version and not has_version) or (d.wants_guid and not has_guid) for d in drafts
    )


def _query_remote(
    lookup: ModuleLookup,
    name: str,
    *,
    repositories: Sequence[str],
    prerelease: bool,
    diagnostics: list[Diagnostic],
) -> _Remote | None:
    found = lookup.find([name], repositories=repositories, prerelease=prerelease)
    if isinstance(found, Err):
        diagnostics.append(
            Diagnostic(
                kind="registry_failed",
                message=f"{name}: {found.error.message}",
                subjects=(name,),
                hint=found.error.hint,
            )
        )
        return None

    items: list[RegistryItem] = [i for i in found.value if i.name.casefold() == name.casefold()]
    best, unparsable = select_latest((i.version for i in items), allow_prerelease=prerelease)
    guid = None
    if best is not None:
        guid = next((i.guid for i in items if i.version.strip() == best and i.guid), None)
    return _Remote(version=best, guid=guid, unparsable=unparsable)


def _fill(
    value: str | None,
    available: str | None,
    *,
    name: str,
    label: str,
    kind: str,
    diagnostics: list[Diagnostic],
) -> str | None:
    if value is None or not value.strip():
        return None
    if not is_placeholder(value):
        return value.strip()
    if available:
        return available
    diagnostics.append(
        Diagnostic(
            kind="unresolved_guid" if kind == "guid" else "unresolved_version",
            message=(
                f"{name}: {label} is '{value.strip()}' but no installed or registry "
                f"value was found; omitting it"
            ),
            subjects=(name,),
            hint="Install the module locally or enable online lookup",
        )
    )
    return None


def _resolve_draft(
    draft: RequiredModuleDraft,
    available: _Available,
    diagnostics: list[Diagnostic],
) -> RequiredModuleEntry:
    name = draft.module_name.strip()

    def fill(value: str | None, label: str, kind: str = "version") -> str | None:
        source = available.guid if kind == "guid" else available.version
        return _fill(value, source, name=name, label=label, kind=kind, diagnostics=diagnostics)

    raw_min = (draft.minimum_version or "").strip()
    raw_mod = (draft.module_version or "").strip()
    module_version = fill(draft.minimum_source, "MinimumVersion" if raw_min else "ModuleVersion")
    required_version = fill(draft.required_version, "RequiredVersion")
    maximum_version = fill(draft.maximum_version, "MaximumVersion")
    guid = fill(draft.guid, "Guid", "guid")

    if (
        raw_min
        and raw_mod
        and not is_placeholder(raw_min)
        and not is_placeholder(raw_mod)
        and raw_min.casefold() != raw_mod.casefold()
    ):
        diagnostics.append(
            Diagnostic(
                kind="minimum_conflict",
                message=(
                    f"{name}: MinimumVersion '{raw_min}' and ModuleVersion "
                    f"'{raw_mod}' differ; using MinimumVersion"
                ),
                subjects=(name,),
            )
        )

    if required_version is not None:
        module_version = None

    return RequiredModuleEntry(
        module_name=name,
        module_version=module_version,
        required_version=required_version,
        maximum_version=maximum_version,
        guid=guid,
    )


def _report_freshness(
    name: str,
    local: ModuleInfo | None,
    remote: _Remote,
    diagnostics: list[Diagnostic],
) -> None:
    if remote.unparsable:
        diagnostics.append(
            Diagnostic(
                kind="unparsable_version",
                message=(
                    f"{name}: ignored registry versions that could not be parsed: "
                    + ", ".join(remote.unparsable)
                ),
                subjects=(name,),
            )
        )
    if remote.version is None:
        return

    if local is None or not local.version:
        diagnostics.append(
            Diagnostic(
                kind="missing_locally",
                message=f"{name} is not installed locally (latest is {remote.version})",
                subjects=(name,),
            )
        )
        return

    local_version = parse_version(local.version)
    if local_version is None:
        diagnostics.append(
            Diagnostic(
                kind="unparsable_version",
                message=f"{name}: installed version '{local.version}' could not be parsed",
                subjects=(name,),
            )
        )
        return

    latest = parse_version(remote.version)
    if latest is not None and local_version < latest:
        diagnostics.append(
            Diagnostic(
                kind="outdated",
                message=f"{name} {local.version} is installed; {remote.version} is available",
                subjects=(name,),
            )
        )


def resolve_required_modules(
    drafts: Sequence[RequiredModuleDraft],
    lookup: ModuleLookup,
    *,
    allow_online_lookup: bool,
    warn_if_outdated: bool,
    repositories: Sequence[str] = (),
    prerelease: bool = False,
) -> ResolutionResult:
    """Resolve drafts in order; one entry per draft.

    Remote data only fills placeholders when ``allow_online_lookup`` is set.
    With ``warn_if_outdated`` alone it feeds the freshness report.
    """
    names = _distinct_names(drafts)
    if not names:
        return ResolutionResult()

    diagnostics: list[Diagnostic] = []
    installed: Mapping[str, ModuleInfo] = {
        k.casefold(): v for k, v in lookup.resolve(names).items()
    }

    available: dict[str, _Available] = {}
    for name in names:
        key = name.casefold()
        local = installed.get(key)
        group = [d for d in drafts if d.module_name.strip().casefold() == key]

        remote: _Remote | None = None
        if warn_if_outdated or (allow_online_lookup and _needs_remote(group, local)):
            remote = _query_remote(
                lookup,
                name,
                repositories=repositories,
                prerelease=prerelease,
                diagnostics=diagnostics,
            )

        version = local.version if local is not None and local.version else None
        guid = local.guid if local is not None and local.guid else None
        online = False
        if allow_online_lookup and remote is not None:
            if version is None and remote.version is not None:
                version = remote.version
                online = True
            if guid is None and remote.guid is not None:
                guid = remote.guid
                online = True
        available[key] = _Available(version=version, guid=guid)

        if online and any(d.wants_version or d.wants_guid for d in group):
            diagnostics.append(
                Diagnostic(
                    kind="resolved_online",
                    message=f"{name}: filled from registry data (version {version or '-'})",
                    subjects=(name,),
                )
            )

        if warn_if_outdated and remote is not None:
            _report_freshness(name, local, remote, diagnostics)

    modules = [
        _resolve_draft(d, available[d.module_name.strip().casefold()], diagnostics) for d in drafts
    ]
    return ResolutionResult(modules=modules, diagnostics=diagnostics)
