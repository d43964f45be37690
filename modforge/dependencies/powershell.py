"""Registry clients and installed-module locator backed by ``pwsh``.

Each operation writes one of the scripts in ``modforge.dependencies.scripts``
to a temp file and runs it with ``pwsh -NoProfile -NonInteractive -File``.
Results come back on stdout as base64 ``MFPS::`` lines.

Usage:
    runner = PwshRunner()
    registry = FallbackRegistry(PSResourceGetClient(runner), PowerShellGetClient(runner))
    lookup = ModuleSources(PowerShellModuleLocator(runner), registry)
"""

from __future__ import annotations

import base64
import binascii
import os
import tempfile
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Protocol

from modforge.core.result import Err, Ok, Result
from modforge.dependencies import scripts
from modforge.dependencies.model import ModuleInfo, RegistryError, RegistryItem
from modforge.dependencies.registry import FallbackRegistry, ModuleSources
from modforge.dependencies.timeouts import (
    INSTALLED_MODULES_TIMEOUT,
    REGISTRY_QUERY_TIMEOUT,
    REPOSITORY_REGISTER_TIMEOUT,
)
from modforge.platform.process import ProcessError, run

__all__ = [
    "DEFAULT_REPOSITORY",
    "PSResourceGetClient",
    "PowerShellGetClient",
    "PowerShellModuleLocator",
    "PwshRunner",
    "ScriptRunner",
    "default_lookup",
    "encode_lines",
    "parse_items",
]

DEFAULT_REPOSITORY = "PSGallery"
PROVIDER_UNAVAILABLE_EXIT = 3

_ITEM_PREFIX = "MFPS::ITEM::"
_ERROR_PREFIX = "MFPS::ERROR::"

# Messages PowerShell prints when the default repository is not registered.
_MISSING_REPOSITORY_MARKERS = (
    "Unable to find repository",
    "Try Get-PSRepository",
    "No match was found for the specified search criteria",
    "Unable to find module repositories",
)


class ScriptRunner(Protocol):
    def run(
        self,
        script: str,
        args: Sequence[str],
        *,
        timeout: float,
    ) -> Result[str, ProcessError]: ...


class PwshRunner:
    def __init__(self, executable: str = "pwsh", *, cwd: Path | None = None) -> None:
        self._executable = executable
        self._cwd = cwd

    def run(
        self,
        script: str,
        args: Sequence[str],
        *,
        timeout: float,
    ) -> Result[str, ProcessError]:
        fd, name = tempfile.mkstemp(prefix="modforge_", suffix=".ps1")
        path = Path(name)
        try:
            # pwsh on Windows PowerShell hosts reads BOM-less scripts as ANSI.
            with os.fdopen(fd, "w", encoding="utf-8-sig") as handle:
                handle.write(script)
            cmd = [self._executable, "-NoProfile", "-NonInteractive", "-File", str(path), *args]
            return run(cmd, cwd=self._cwd or Path.cwd(), timeout=timeout)
        finally:
            path.unlink(missing_ok=True)


def encode_lines(values: Sequence[str]) -> str:
    return base64.b64encode("\n".join(values).encode("utf-8")).decode("ascii")


def _decode(b64: str) -> str:
    if not b64.strip():
        return ""
    try:
        return base64.b64decode(b64, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return ""


def parse_items(stdout: str) -> list[RegistryItem]:
    """Decode ``MFPS::ITEM::`` lines; malformed lines are skipped."""
    items: list[RegistryItem] = []
    for line in stdout.splitlines():
        line = line.strip()
        if not line.startswith(_ITEM_PREFIX):
            continue
        parts = line[len(_ITEM_PREFIX) :].split("::")
        if len(parts) < 2:
            continue
        name = _decode(parts[0]).strip()
        version = _decode(parts[1]).strip()
        if not name or not version:
            continue
        repository = _decode(parts[2]).strip() if len(parts) > 2 else ""
        guid = _decode(parts[3]).strip() if len(parts) > 3 else ""
        items.append(RegistryItem(name, version, repository or None, guid or None))
    return items


def _extract_error(stdout: str) -> str | None:
    for line in stdout.splitlines():
        line = line.strip()
        if line.startswith(_ERROR_PREFIX):
            message = _decode(line[len(_ERROR_PREFIX) :]).strip()
            if message:
                return message
    return None


def _distinct(values: Sequence[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for v in values:
        s = v.strip()
        if s and s.casefold() not in seen:
            seen.add(s.casefold())
            out.append(s)
    return out


class _ScriptRegistryClient:
    provider = ""
    find_script = ""
    register_script = ""
    register_hint = ""

    def __init__(
        self,
        runner: ScriptRunner,
        *,
        timeout: float = REGISTRY_QUERY_TIMEOUT,
        register_timeout: float = REPOSITORY_REGISTER_TIMEOUT,
    ) -> None:
        self._runner = runner
        self._timeout = timeout
        self._register_timeout = register_timeout
        self._registration_attempted = False

    def find(
        self,
        names: Sequence[str],
        *,
        repositories: Sequence[str],
        prerelease: bool,
    ) -> Result[list[RegistryItem], RegistryError]:
        wanted = _distinct(names)
        if not wanted:
            return Ok([])
        repos = _distinct(repositories) or [DEFAULT_REPOSITORY]

        result = self._query(wanted, repos, prerelease)
        if isinstance(result, Err) and self._should_register(result.error, repos):
            if self._register_default_repository():
                result = self._query(wanted, repos, prerelease)
        return result

    def _query(
        self,
        names: list[str],
        repos: list[str],
        prerelease: bool,
    ) -> Result[list[RegistryItem], RegistryError]:
        args = [encode_lines(names), encode_lines(repos), "1" if prerelease else "0"]
        out = self._runner.run(self.find_script, args, timeout=self._timeout)
        if isinstance(out, Ok):
            return Ok(parse_items(out.value))

        err = out.error
        if err.timed_out:
            return Err(
                RegistryError(
                    kind="timeout",
                    message=f"{self.provider} query timed out after {self._timeout:g}s",
                    hint="Raise dependencies.timeout_seconds or check network access",
                )
            )
        if err.returncode == PROVIDER_UNAVAILABLE_EXIT:
            return Err(RegistryError(kind="unavailable", message=f"{self.provider} is not installed"))

        message = _extract_error(err.stdout) or err.stderr.strip() or str(err)
        return Err(
            RegistryError(
                kind="failed",
                message=f"{self.provider} query failed: {message}",
                hint=self.register_hint if _mentions_missing_repository(message) else None,
            )
        )

    def _should_register(self, error: RegistryError, repos: list[str]) -> bool:
        if self._registration_attempted or error.kind != "failed":
            return False
        if any(r.casefold() != DEFAULT_REPOSITORY.casefold() for r in repos):
            return False
        return _mentions_missing_repository(error.message)

    def _register_default_repository(self) -> bool:
        self._registration_attempted = True
        out = self._runner.run(self.register_script, [], timeout=self._register_timeout)
        return isinstance(out, Ok)


def _mentions_missing_repository(message: str) -> bool:
    folded = message.casefold()
    return any(m.casefold() in folded for m in _MISSING_REPOSITORY_MARKERS)


class PSResourceGetClient(_ScriptRegistryClient):
    """Modern registry client (``Find-PSResource``)."""

    provider = "PSResourceGet"
    find_script = scripts.FIND_PSRESOURCE
    register_script = scripts.REGISTER_PSRESOURCE_REPOSITORY
    register_hint = "Run Register-PSResourceRepository -PSGallery"


class PowerShellGetClient(_ScriptRegistryClient):
    """Legacy registry client (``Find-Module``)."""

    provider = "PowerShellGet"
    find_script = scripts.FIND_MODULE
    register_script = scripts.REGISTER_PSREPOSITORY
    register_hint = "Run Register-PSRepository -Default"


class PowerShellModuleLocator:
    """Highest installed version of each module via ``Get-Module -ListAvailable``."""

    def __init__(self, runner: ScriptRunner, *, timeout: float = INSTALLED_MODULES_TIMEOUT) -> None:
        self._runner = runner
        self._timeout = timeout

    def resolve(self, names: Sequence[str]) -> Mapping[str, ModuleInfo]:
        wanted = _distinct(names)
        if not wanted:
            return {}
        out = self._runner.run(scripts.INSTALLED_MODULES, [encode_lines(wanted)], timeout=self._timeout)
        # No pwsh, or a failed listing, means nothing is known to be installed.
        stdout = out.value if isinstance(out, Ok) else out.error.stdout
        found: dict[str, ModuleInfo] = {}
        for item in parse_items(stdout):
            found[item.name] = ModuleInfo(name=item.name, version=item.version, guid=item.guid)
        return found


def default_lookup(*, timeout: float = REGISTRY_QUERY_TIMEOUT) -> ModuleSources:
    runner = PwshRunner()
    registry = FallbackRegistry(
        PSResourceGetClient(runner, timeout=timeout),
        PowerShellGetClient(runner, timeout=timeout),
    )
    return ModuleSources(PowerShellModuleLocator(runner), registry)
