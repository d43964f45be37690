"""Types shared by the manifest parser, the text edits and the file editor."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

__all__ = [
    "ManifestInfo",
    "ManifestStructureError",
    "RequiredModuleEntry",
    "RequiredModuleField",
]


class RequiredModuleField(Enum):
    """Keys of a RequiredModules hashtable, in the order they are written."""

    GUID = "Guid"
    MODULE_NAME = "ModuleName"
    MODULE_VERSION = "ModuleVersion"
    REQUIRED_VERSION = "RequiredVersion"
    MAXIMUM_VERSION = "MaximumVersion"

    @property
    def key(self) -> str:
        return self.value

    @property
    def attr(self) -> str:
        return self.name.lower()

    @classmethod
    def from_key(cls, key: str) -> RequiredModuleField | None:
        folded = key.strip().casefold()
        for member in cls:
            if member.value.casefold() == folded:
                return member
        return None


_VERSION_FIELDS = (
    RequiredModuleField.MODULE_VERSION,
    RequiredModuleField.REQUIRED_VERSION,
    RequiredModuleField.MAXIMUM_VERSION,
)


@dataclass(frozen=True, slots=True)
class RequiredModuleEntry:
    """One element of a manifest's ``RequiredModules`` list."""

    module_name: str
    module_version: str | None = None
    required_version: str | None = None
    maximum_version: str | None = None
    guid: str | None = None

    def __post_init__(self) -> None:
        if not self.module_name or not self.module_name.strip():
            raise ValueError("module_name must not be empty")

    def get(self, f: RequiredModuleField) -> str | None:
        return getattr(self, f.attr)

    @property
    def has_version_constraint(self) -> bool:
        return any(_present(self.get(f)) for f in _VERSION_FIELDS)

    def fields(self) -> list[tuple[RequiredModuleField, str]]:
        """Non-empty fields in canonical order.

        An exact ``RequiredVersion`` pin suppresses ``ModuleVersion``.
        """
        pinned = _present(self.required_version)
        out: list[tuple[RequiredModuleField, str]] = []
        for f in RequiredModuleField:
            if f is RequiredModuleField.MODULE_VERSION and pinned:
                continue
            value = self.get(f)
            if value is not None and _present(value):
                out.append((f, value))
        return out


def _present(value: str | None) -> bool:
    return value is not None and bool(value.strip())


def _no_modules() -> list[RequiredModuleEntry]:
    return []


@dataclass(frozen=True, slots=True)
class ManifestInfo:
    """Headline values read from a module project's manifest."""

    path: Path
    module_name: str
    module_version: str | None = None
    root_module: str | None = None
    guid: str | None = None
    powershell_version: str | None = None
    required_modules: list[RequiredModuleEntry] = field(default_factory=_no_modules)


class ManifestStructureError(Exception):
    """Raised by write operations when a manifest has no usable root mapping."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason
