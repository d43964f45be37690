"""Composition of module data sources.

``FallbackRegistry`` asks the modern registry client first and only falls
back to the legacy one when the first is missing, fails, or finds nothing.
``ModuleSources`` pairs an installed-module locator with a registry so the
resolver sees a single ``ModuleLookup``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from modforge.core.result import Err, Ok, Result
from modforge.dependencies.model import (
    InstalledModuleLocator,
    ModuleInfo,
    RegistryClient,
    RegistryError,
    RegistryItem,
)

__all__ = ["FallbackRegistry", "ModuleSources"]


class FallbackRegistry:
    def __init__(self, primary: RegistryClient, legacy: RegistryClient) -> None:
        self._primary = primary
        self._legacy = legacy

    def find(
        self,
        names: Sequence[str],
        *,
        repositories: Sequence[str],
        prerelease: bool,
    ) -> Result[list[RegistryItem], RegistryError]:
        first = self._primary.find(names, repositories=repositories, prerelease=prerelease)
        if isinstance(first, Ok) and first.value:
            return first

        second = self._legacy.find(names, repositories=repositories, prerelease=prerelease)
        if isinstance(second, Ok):
            return second
        if isinstance(first, Ok):
            # Primary answered (with nothing); the legacy failure adds no information.
            return first

        if first.error.unavailable and second.error.unavailable:
            return Err(
                RegistryError(
                    kind="unavailable",
                    message="no registry client is available",
                    hint="Install Microsoft.PowerShell.PSResourceGet or PowerShellGet",
                )
            )
        failed = second.error if not second.error.unavailable else first.error
        return Err(
            RegistryError(
                kind=failed.kind,
                message=f"registry lookup failed: {first.error.message}; {second.error.message}",
                hint=failed.hint,
            )
        )


class ModuleSources:
    """``ModuleLookup`` built from a locator and a registry client."""

    def __init__(self, locator: InstalledModuleLocator, registry: RegistryClient) -> None:
        self._locator = locator
        self._registry = registry

    def resolve(self, names: Sequence[str]) -> Mapping[str, ModuleInfo]:
        return self._locator.resolve(names)

    def find(
        self,
        names: Sequence[str],
        *,
        repositories: Sequence[str],
        prerelease: bool,
    ) -> Result[list[RegistryItem], RegistryError]:
        return self._registry.find(names, repositories=repositories, prerelease=prerelease)
