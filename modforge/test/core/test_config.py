"""Tests for modforge.core.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from modforge.core.config import (
    CONFIG_FILENAME,
    DependenciesConfig,
    ReleaseConfig,
    find_config,
    load_release_config,
)
from modforge.core.result import Err, Ok
from modforge.dependencies.model import RequiredModuleDraft
from modforge.dependencies.timeouts import REGISTRY_QUERY_TIMEOUT

FULL = """
[manifest]
path = "MyModule.psd1"

[version]
template = "1.2.X"
repository = "Internal"
prerelease = true

[dependencies]
allow_online_lookup = false
warn_if_outdated = true
repositories = ["PSGallery", "Internal"]
timeout_seconds = 30

[[dependencies.modules]]
name = "Lib"
required_version = "Latest"

[[dependencies.modules]]
name = "Other"
module_version = "1.0"
guid = "Auto"

[[projects]]
name = "Core"
path = "src/Core/Core.csproj"

[[projects]]
path = 'src\\App\\App.csproj'
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / CONFIG_FILENAME
    path.write_text(text, encoding="utf-8")
    return path


class TestDependenciesConfig:
    def test_defaults(self) -> None:
        config = DependenciesConfig()
        assert config.allow_online_lookup is True
        assert config.warn_if_outdated is False
        assert config.repositories == ()
        assert config.timeout_seconds == REGISTRY_QUERY_TIMEOUT
        assert config.modules == ()

    def test_frozen(self) -> None:
        config = DependenciesConfig()
        with pytest.raises(AttributeError):
            config.prerelease = True  # type: ignore[misc]


class TestLoadReleaseConfig:
    def test_full_file(self, tmp_path: Path) -> None:
        result = load_release_config(_write(tmp_path, FULL))

        assert isinstance(result, Ok)
        config = result.value
        assert config.manifest_path == tmp_path / "MyModule.psd1"
        assert config.version.template == "1.2.X"
        assert config.version.repository == "Internal"
        assert config.version.prerelease is True

        deps = config.dependencies
        assert deps.allow_online_lookup is False
        assert deps.warn_if_outdated is True
        assert deps.repositories == ("PSGallery", "Internal")
        assert deps.timeout_seconds == 30
        assert deps.modules == (
            RequiredModuleDraft(module_name="Lib", required_version="Latest"),
            RequiredModuleDraft(module_name="Other", module_version="1.0", guid="Auto"),
        )

    def test_project_names_default_to_file_stem(self, tmp_path: Path) -> None:
        result = load_release_config(_write(tmp_path, FULL))

        assert isinstance(result, Ok)
        projects = result.value.projects
        assert [p.name for p in projects] == ["Core", "App"]
        assert projects[1].path == tmp_path / "src" / "App" / "App.csproj"

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        result = load_release_config(_write(tmp_path, ""))

        assert isinstance(result, Ok)
        assert result.value.manifest_path is None
        assert result.value.dependencies == DependenciesConfig()
        assert result.value.projects == ()

    def test_missing_file(self, tmp_path: Path) -> None:
        result = load_release_config(tmp_path / "nope.toml")

        assert isinstance(result, Err)
        assert "not found" in result.error.message

    def test_invalid_toml(self, tmp_path: Path) -> None:
        result = load_release_config(_write(tmp_path, "[manifest\npath = 1"))

        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message

    def test_module_without_name(self, tmp_path: Path) -> None:
        text = '[[dependencies.modules]]\nrequired_version = "Latest"\n'
        result = load_release_config(_write(tmp_path, text))

        assert isinstance(result, Err)
        assert "missing 'name'" in result.error.message

    def test_duplicate_project_names(self, tmp_path: Path) -> None:
        text = '[[projects]]\npath = "a/Core.csproj"\n\n[[projects]]\npath = "b/core.csproj"\n'
        result = load_release_config(_write(tmp_path, text))

        assert isinstance(result, Err)
        assert "duplicate project name" in result.error.message

    def test_non_positive_timeout(self, tmp_path: Path) -> None:
        result = load_release_config(_write(tmp_path, "[dependencies]\ntimeout_seconds = 0\n"))

        assert isinstance(result, Err)

    def test_repositories_must_be_strings(self, tmp_path: Path) -> None:
        result = load_release_config(_write(tmp_path, "[dependencies]\nrepositories = [1, 2]\n"))

        assert isinstance(result, Err)
        assert "repositories" in result.error.message


class TestFromDict:
    def test_relative_paths_use_root(self, tmp_path: Path) -> None:
        config = ReleaseConfig.from_dict({"manifest": {"path": "x/M.psd1"}}, root=tmp_path)
        assert config.manifest_path == tmp_path / "x" / "M.psd1"


class TestFindConfig:
    def test_walks_up_to_parent(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)

        assert find_config(nested) == path.absolute()

    def test_none_when_absent(self, tmp_path: Path) -> None:
        nested = tmp_path / "empty"
        nested.mkdir()
        found = find_config(nested)
        assert found is None or not found.is_relative_to(tmp_path)
