"""Tests for modforge.dependencies.powershell module."""

from __future__ import annotations

import base64
from collections.abc import Sequence
from pathlib import Path

import pytest

from modforge.core.result import Err, Ok, Result
from modforge.dependencies import scripts
from modforge.dependencies.model import ModuleInfo, RegistryItem
from modforge.dependencies.powershell import (
    PowerShellGetClient,
    PowerShellModuleLocator,
    PSResourceGetClient,
    PwshRunner,
    encode_lines,
    parse_items,
)
from modforge.platform.process import ProcessError


def b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def item_line(name: str, version: str, repo: str = "", guid: str = "") -> str:
    return f"MFPS::ITEM::{b64(name)}::{b64(version)}::{b64(repo)}::{b64(guid)}"


def error_line(message: str) -> str:
    return f"MFPS::ERROR::{b64(message)}"


def failure(returncode: int, stdout: str = "", stderr: str = "") -> Err[ProcessError]:
    return Err(ProcessError(command=("pwsh",), returncode=returncode, stdout=stdout, stderr=stderr))


class FakeRunner:
    """Replays queued results and records every script it was asked to run."""

    def __init__(self, *results: Result[str, ProcessError]) -> None:
        self.results = list(results)
        self.calls: list[tuple[str, list[str], float]] = []

    def run(self, script: str, args: Sequence[str], *, timeout: float) -> Result[str, ProcessError]:
        self.calls.append((script, list(args), timeout))
        return self.results.pop(0)


class TestLineProtocol:
    def test_encode_lines(self) -> None:
        assert base64.b64decode(encode_lines(["A", "Bé"])).decode("utf-8") == "A\nBé"

    def test_parse_items(self) -> None:
        stdout = "\n".join(
            [
                "WARNING: noise",
                item_line("Lib", "2.3.0", "PSGallery", "g-1"),
                item_line("Other", "1.0"),
                "MFPS::ITEM::not-base64!::x",
                f"MFPS::ITEM::{b64('NoVersion')}",
            ]
        )

        assert parse_items(stdout) == [
            RegistryItem("Lib", "2.3.0", "PSGallery", "g-1"),
            RegistryItem("Other", "1.0", None, None),
        ]


class TestPSResourceGetClient:
    def test_find_sends_encoded_arguments(self) -> None:
        runner = FakeRunner(Ok(item_line("Lib", "2.3.0", "PSGallery")))
        client = PSResourceGetClient(runner, timeout=12)

        result = client.find(["Lib", "lib", " "], repositories=[], prerelease=True)

        assert result == Ok([RegistryItem("Lib", "2.3.0", "PSGallery", None)])
        script, args, timeout = runner.calls[0]
        assert script == scripts.FIND_PSRESOURCE
        assert args == [encode_lines(["Lib"]), encode_lines(["PSGallery"]), "1"]
        assert timeout == 12

    def test_no_names_runs_nothing(self) -> None:
        runner = FakeRunner()
        assert PSResourceGetClient(runner).find([], repositories=[], prerelease=False) == Ok([])
        assert runner.calls == []

    def test_provider_missing_is_unavailable(self) -> None:
        result = PSResourceGetClient(FakeRunner(failure(3))).find(["Lib"], repositories=[], prerelease=False)

        assert isinstance(result, Err)
        assert result.error.unavailable

    def test_timeout(self) -> None:
        runner = FakeRunner(failure(-1, stderr="Command timed out after 5s"))
        result = PSResourceGetClient(runner, timeout=5).find(["Lib"], repositories=[], prerelease=False)

        assert isinstance(result, Err)
        assert result.error.kind == "timeout"

    def test_failure_message_from_protocol(self) -> None:
        runner = FakeRunner(failure(1, stdout=error_line("server said no")))
        result = PSResourceGetClient(runner).find(["Lib"], repositories=["Internal"], prerelease=False)

        assert isinstance(result, Err)
        assert result.error.kind == "failed"
        assert "server said no" in result.error.message
        assert len(runner.calls) == 1

    def test_registers_default_repository_once_and_retries(self) -> None:
        missing = failure(1, stdout=error_line("Unable to find repository 'PSGallery'"))
        runner = FakeRunner(missing, Ok(""), Ok(item_line("Lib", "1.0")))
        client = PSResourceGetClient(runner)

        result = client.find(["Lib"], repositories=[], prerelease=False)

        assert result == Ok([RegistryItem("Lib", "1.0", None, None)])
        assert [c[0] for c in runner.calls] == [
            scripts.FIND_PSRESOURCE,
            scripts.REGISTER_PSRESOURCE_REPOSITORY,
            scripts.FIND_PSRESOURCE,
        ]

    def test_registration_not_repeated(self) -> None:
        missing = failure(1, stdout=error_line("Unable to find repository 'PSGallery'"))
        runner = FakeRunner(missing, Ok(""), missing, missing)
        client = PSResourceGetClient(runner)

        first = client.find(["Lib"], repositories=[], prerelease=False)
        second = client.find(["Lib"], repositories=[], prerelease=False)

        assert isinstance(first, Err) and isinstance(second, Err)
        assert first.error.hint == "Run Register-PSResourceRepository -PSGallery"
        assert len(runner.calls) == 4

    def test_no_registration_for_custom_repositories(self) -> None:
        missing = failure(1, stdout=error_line("Unable to find repository 'Internal'"))
        runner = FakeRunner(missing)

        result = PSResourceGetClient(runner).find(["Lib"], repositories=["Internal"], prerelease=False)

        assert isinstance(result, Err)
        assert len(runner.calls) == 1


def test_legacy_client_uses_its_own_scripts() -> None:
    missing = failure(1, stderr="No match was found for the specified search criteria")
    runner = FakeRunner(missing, Ok(""), Ok(item_line("Lib", "0.9")))

    result = PowerShellGetClient(runner).find(["Lib"], repositories=["PSGallery"], prerelease=False)

    assert result == Ok([RegistryItem("Lib", "0.9", None, None)])
    assert runner.calls[0][0] == scripts.FIND_MODULE
    assert runner.calls[1][0] == scripts.REGISTER_PSREPOSITORY
    assert runner.calls[1][1] == []


class TestPowerShellModuleLocator:
    def test_resolve(self) -> None:
        runner = FakeRunner(Ok(item_line("Lib", "1.4.0", "", "g-1")))

        found = PowerShellModuleLocator(runner, timeout=7).resolve(["Lib", "Missing"])

        assert found == {"Lib": ModuleInfo("Lib", "1.4.0", "g-1")}
        assert runner.calls[0][0] == scripts.INSTALLED_MODULES
        assert runner.calls[0][1] == [encode_lines(["Lib", "Missing"])]
        assert runner.calls[0][2] == 7

    def test_failure_means_nothing_installed(self) -> None:
        runner = FakeRunner(failure(-1, stderr="[Errno 2] No such file or directory: 'pwsh'"))
        assert PowerShellModuleLocator(runner).resolve(["Lib"]) == {}


class TestPwshRunner:
    def test_runs_script_file_and_cleans_up(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import modforge.dependencies.powershell as powershell

        seen: dict[str, object] = {}

        def fake_run(
            cmd: list[str],
            cwd: Path,
            env: dict[str, str] | None = None,
            *,
            timeout: float | None = None,
        ) -> Result[str, ProcessError]:
            script = Path(cmd[4])
            seen["cmd"] = cmd
            seen["cwd"] = cwd
            seen["timeout"] = timeout
            seen["script"] = script
            seen["content"] = script.read_bytes()
            return Ok("done")

        monkeypatch.setattr(powershell, "run", fake_run)

        result = PwshRunner("pwsh-test", cwd=tmp_path).run("Write-Output 'hi'", ["a", "b"], timeout=3)

        assert result == Ok("done")
        cmd = seen["cmd"]
        assert isinstance(cmd, list)
        assert cmd[:4] == ["pwsh-test", "-NoProfile", "-NonInteractive", "-File"]
        assert cmd[5:] == ["a", "b"]
        assert seen["cwd"] == tmp_path
        assert seen["timeout"] == 3
        assert seen["content"] == b"\xef\xbb\xbfWrite-Output 'hi'"
        script = seen["script"]
        assert isinstance(script, Path)
        assert not script.exists()
