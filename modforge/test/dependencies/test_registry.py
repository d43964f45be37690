"""Tests for modforge.dependencies.registry module."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from modforge.core.result import Err, Ok, Result
from modforge.dependencies.model import ModuleInfo, RegistryError, RegistryItem
from modforge.dependencies.registry import FallbackRegistry, ModuleSources

type FindResult = Result[list[RegistryItem], RegistryError]


class StubClient:
    def __init__(self, result: FindResult) -> None:
        self.result = result
        self.calls = 0

    def find(
        self,
        names: Sequence[str],
        *,
        repositories: Sequence[str],
        prerelease: bool,
    ) -> FindResult:
        self.calls += 1
        return self.result


def unavailable(name: str) -> Err[RegistryError]:
    return Err(RegistryError(kind="unavailable", message=f"{name} is not installed"))


def failed(message: str) -> Err[RegistryError]:
    return Err(RegistryError(kind="failed", message=message, hint="retry later"))


def find(registry: FallbackRegistry) -> FindResult:
    return registry.find(["Lib"], repositories=(), prerelease=False)


class TestFallbackRegistry:
    def test_primary_hit_skips_legacy(self) -> None:
        primary = StubClient(Ok([RegistryItem("Lib", "1.0")]))
        legacy = StubClient(Ok([RegistryItem("Lib", "0.9")]))

        result = find(FallbackRegistry(primary, legacy))

        assert result == Ok([RegistryItem("Lib", "1.0")])
        assert legacy.calls == 0

    def test_primary_missing_uses_legacy(self) -> None:
        legacy = StubClient(Ok([RegistryItem("Lib", "0.9")]))

        result = find(FallbackRegistry(StubClient(unavailable("PSResourceGet")), legacy))

        assert result == Ok([RegistryItem("Lib", "0.9")])

    def test_primary_empty_tries_legacy(self) -> None:
        legacy = StubClient(Ok([RegistryItem("Lib", "0.9")]))

        result = find(FallbackRegistry(StubClient(Ok([])), legacy))

        assert result == Ok([RegistryItem("Lib", "0.9")])
        assert legacy.calls == 1

    def test_primary_empty_legacy_failed_keeps_empty(self) -> None:
        result = find(FallbackRegistry(StubClient(Ok([])), StubClient(failed("boom"))))
        assert result == Ok([])

    def test_both_unavailable(self) -> None:
        result = find(
            FallbackRegistry(StubClient(unavailable("PSResourceGet")), StubClient(unavailable("PowerShellGet")))
        )

        assert isinstance(result, Err)
        assert result.error.kind == "unavailable"
        assert result.error.hint is not None

    def test_both_failed_combines_messages(self) -> None:
        result = find(FallbackRegistry(StubClient(failed("first")), StubClient(failed("second"))))

        assert isinstance(result, Err)
        assert result.error.kind == "failed"
        assert "first" in result.error.message
        assert "second" in result.error.message

    def test_missing_primary_and_failed_legacy_reports_failure(self) -> None:
        result = find(FallbackRegistry(StubClient(unavailable("PSResourceGet")), StubClient(failed("net down"))))

        assert isinstance(result, Err)
        assert result.error.kind == "failed"
        assert result.error.hint == "retry later"


class StubLocator:
    def resolve(self, names: Sequence[str]) -> Mapping[str, ModuleInfo]:
        return {n: ModuleInfo(n, "1.0") for n in names}


def test_module_sources_delegates() -> None:
    registry = StubClient(Ok([RegistryItem("Lib", "2.0")]))
    sources = ModuleSources(StubLocator(), registry)

    assert sources.resolve(["Lib"]) == {"Lib": ModuleInfo("Lib", "1.0")}
    assert sources.find(["Lib"], repositories=("PSGallery",), prerelease=True) == Ok([RegistryItem("Lib", "2.0")])
    assert registry.calls == 1
