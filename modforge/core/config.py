"""Typed release configuration loaded from ``modforge.toml``.

Example:

    [manifest]
    path = "MyModule.psd1"

    [version]
    template = "1.2.X"

    [dependencies]
    allow_online_lookup = true
    repositories = ["PSGallery"]

    [[dependencies.modules]]
    name = "Lib"
    required_version = "Latest"

    [[projects]]
    name = "Core"
    path = "src/Core/Core.csproj"

Relative paths are resolved against the directory holding the file.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from modforge.dependencies.model import RequiredModuleDraft
from modforge.dependencies.timeouts import REGISTRY_QUERY_TIMEOUT
from modforge.publish.projects import Project

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_float, get_list, get_str, get_str_list, get_table

__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "DependenciesConfig",
    "ManifestConfig",
    "ReleaseConfig",
    "VersionConfig",
    "find_config",
    "load_release_config",
]

CONFIG_FILENAME = "modforge.toml"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ManifestConfig:
    path: str | None = None


@dataclass(frozen=True, slots=True)
class VersionConfig:
    """Release version template and where to look up the current version."""

    template: str | None = None
    repository: str | None = None
    prerelease: bool = False


def _no_repositories() -> tuple[str, ...]:
    return ()


def _no_modules() -> tuple[RequiredModuleDraft, ...]:
    return ()


@dataclass(frozen=True, slots=True)
class DependenciesConfig:
    allow_online_lookup: bool = True
    warn_if_outdated: bool = False
    prerelease: bool = False
    repositories: tuple[str, ...] = field(default_factory=_no_repositories)
    timeout_seconds: float = REGISTRY_QUERY_TIMEOUT
    modules: tuple[RequiredModuleDraft, ...] = field(default_factory=_no_modules)


def _no_projects() -> tuple[Project, ...]:
    return ()


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Main configuration container."""

    root: Path
    manifest: ManifestConfig = field(default_factory=ManifestConfig)
    version: VersionConfig = field(default_factory=VersionConfig)
    dependencies: DependenciesConfig = field(default_factory=DependenciesConfig)
    projects: tuple[Project, ...] = field(default_factory=_no_projects)

    @property
    def manifest_path(self) -> Path | None:
        if self.manifest.path is None:
            return None
        return self.root / self.manifest.path

    @classmethod
    def from_dict(cls, data: Mapping[str, object], root: Path) -> ReleaseConfig:
        """Create ReleaseConfig from a mapping (parsed TOML).

        Raises:
            ValueError: On entries that are present but unusable.
        """
        manifest: StrDict = get_table(data, "manifest") or {}
        version: StrDict = get_table(data, "version") or {}
        deps: StrDict = get_table(data, "dependencies") or {}

        timeout = get_float(deps, "timeout_seconds")
        if timeout is not None and timeout <= 0:
            raise ValueError("dependencies.timeout_seconds must be positive")

        repositories = get_str_list(deps, "repositories")
        if "repositories" in deps and repositories is None:
            raise ValueError("dependencies.repositories must be a list of strings")

        return cls(
            root=root,
            manifest=ManifestConfig(path=get_str(manifest, "path")),
            version=VersionConfig(
                template=get_str(version, "template"),
                repository=get_str(version, "repository"),
                prerelease=bool(get_bool(version, "prerelease")),
            ),
            dependencies=DependenciesConfig(
                allow_online_lookup=get_bool(deps, "allow_online_lookup") is not False,
                warn_if_outdated=bool(get_bool(deps, "warn_if_outdated")),
                prerelease=bool(get_bool(deps, "prerelease")),
                repositories=tuple(repositories or ()),
                timeout_seconds=timeout or REGISTRY_QUERY_TIMEOUT,
                modules=_parse_modules(deps),
            ),
            projects=_parse_projects(data, root),
        )


def _tables(data: Mapping[str, object], key: str) -> list[StrDict]:
    items = get_list(data, key)
    if items is None:
        if key in data:
            raise ValueError(f"'{key}' must be an array of tables")
        return []
    tables: list[StrDict] = []
    for i, item in enumerate(items):
        table = as_str_dict(item)
        if table is None:
            raise ValueError(f"{key}[{i}] must be a table")
        tables.append(table)
    return tables


def _parse_modules(deps: Mapping[str, object]) -> tuple[RequiredModuleDraft, ...]:
    drafts: list[RequiredModuleDraft] = []
    for i, table in enumerate(_tables(deps, "modules")):
        name = get_str(table, "name")
        if name is None:
            raise ValueError(f"dependencies.modules[{i}] is missing 'name'")
        drafts.append(
            RequiredModuleDraft(
                module_name=name,
                module_version=get_str(table, "module_version"),
                minimum_version=get_str(table, "minimum_version"),
                required_version=get_str(table, "required_version"),
                maximum_version=get_str(table, "maximum_version"),
                guid=get_str(table, "guid"),
            )
        )
    return tuple(drafts)


def _parse_projects(data: Mapping[str, object], root: Path) -> tuple[Project, ...]:
    projects: list[Project] = []
    seen: set[str] = set()
    for i, table in enumerate(_tables(data, "projects")):
        path = get_str(table, "path")
        if path is None:
            raise ValueError(f"projects[{i}] is missing 'path'")
        name = get_str(table, "name") or Path(path.replace("\\", "/")).stem
        if name.casefold() in seen:
            raise ValueError(f"duplicate project name: {name}")
        seen.add(name.casefold())
        projects.append(Project(name=name, path=root / path.replace("\\", "/")))
    return tuple(projects)


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling import and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_release_config(path: Path) -> Result[ReleaseConfig, ConfigError]:
    """Load and parse the release configuration.

    Args:
        path: Path to modforge.toml

    Returns:
        Ok(ReleaseConfig) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(ReleaseConfig.from_dict(result.value, root=path.parent))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def find_config(start: Path) -> Path | None:
    """Nearest modforge.toml in ``start`` or one of its parents."""
    current = start.absolute()
    for candidate in (current, *current.parents):
        path = candidate / CONFIG_FILENAME
        if path.is_file():
            return path
    return None
