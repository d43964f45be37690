"""Dependency drafts, lookup results, and the lookup seam the resolver uses."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Literal, Protocol

from modforge.core.diagnostics import Diagnostic
from modforge.core.result import Result
from modforge.manifest.model import RequiredModuleEntry

__all__ = [
    "InstalledModuleLocator",
    "ModuleInfo",
    "ModuleLookup",
    "RegistryClient",
    "RegistryError",
    "RegistryItem",
    "RequiredModuleDraft",
    "ResolutionResult",
    "is_placeholder",
]

PLACEHOLDERS = frozenset({"auto", "latest"})


def is_placeholder(value: str | None) -> bool:
    """True for ``Auto``/``Latest`` (any case): "fill this in for me"."""
    return value is not None and value.strip().casefold() in PLACEHOLDERS


@dataclass(frozen=True, slots=True)
class RequiredModuleDraft:
    """A dependency as configured; any field but the name may be a placeholder."""

    module_name: str
    module_version: str | None = None
    minimum_version: str | None = None
    required_version: str | None = None
    maximum_version: str | None = None
    guid: str | None = None

    def __post_init__(self) -> None:
        if not self.module_name or not self.module_name.strip():
            raise ValueError("module_name must not be empty")

    @property
    def minimum_source(self) -> str | None:
        """MinimumVersion when set, else ModuleVersion; the other one is ignored."""
        if self.minimum_version is not None and self.minimum_version.strip():
            return self.minimum_version
        return self.module_version

    @property
    def version_fields(self) -> tuple[str | None, ...]:
        return (
            self.minimum_source,
            self.required_version,
            self.maximum_version,
        )

    @property
    def wants_version(self) -> bool:
        return any(is_placeholder(v) for v in self.version_fields)

    @property
    def wants_guid(self) -> bool:
        return is_placeholder(self.guid)


@dataclass(frozen=True, slots=True)
class ModuleInfo:
    """Best installed copy of a module."""

    name: str
    version: str | None = None
    guid: str | None = None


@dataclass(frozen=True, slots=True)
class RegistryItem:
    name: str
    version: str
    repository: str | None = None
    guid: str | None = None


@dataclass(frozen=True, slots=True)
class RegistryError:
    kind: Literal["unavailable", "failed", "timeout"]
    message: str
    hint: str | None = None

    @property
    def unavailable(self) -> bool:
        """The provider itself is missing (not an error with the query)."""
        return self.kind == "unavailable"


class InstalledModuleLocator(Protocol):
    def resolve(self, names: Sequence[str]) -> Mapping[str, ModuleInfo]:
        """Installed modules by name; names that are not installed are absent."""
        ...


class RegistryClient(Protocol):
    def find(
        self,
        names: Sequence[str],
        *,
        repositories: Sequence[str],
        prerelease: bool,
    ) -> Result[list[RegistryItem], RegistryError]:
        """Every published version of the named modules."""
        ...


class ModuleLookup(InstalledModuleLocator, RegistryClient, Protocol):
    """Local and remote module data, as seen by the resolver."""


def _no_entries() -> list[RequiredModuleEntry]:
    return []


def _no_diagnostics() -> list[Diagnostic]:
    return []


@dataclass(frozen=True, slots=True)
class ResolutionResult:
    modules: list[RequiredModuleEntry] = field(default_factory=_no_entries)
    diagnostics: list[Diagnostic] = field(default_factory=_no_diagnostics)
