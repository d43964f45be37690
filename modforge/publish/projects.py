"""Projects taking part in a multi-project publish, and their references."""

from __future__ import annotations

import os
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from modforge.core.result import Err, Ok, Result

__all__ = [
    "Project",
    "ProjectFileError",
    "normalize_path",
    "read_project_references",
]


@dataclass(frozen=True, slots=True)
class Project:
    name: str
    # Build-description file (e.g. a .csproj) declaring ProjectReference items.
    path: Path


@dataclass(frozen=True, slots=True)
class ProjectFileError:
    kind: Literal["not_found", "invalid_xml"]
    message: str
    hint: str | None = None


def normalize_path(path: Path) -> str:
    """Absolute, normalized, case-folded path text used to match references."""
    return os.path.normcase(os.path.normpath(path.absolute())).casefold()


def _local_name(tag: str) -> str:
    # Old-style MSBuild files put every element in a namespace.
    return tag.rsplit("}", 1)[-1]


def read_project_references(path: Path) -> Result[list[Path], ProjectFileError]:
    """Paths of every ``<ProjectReference Include="...">``, relative to the file.

    Windows separators in ``Include`` are accepted on every platform.
    """
    try:
        tree = ET.parse(path)
    except FileNotFoundError:
        return Err(ProjectFileError(kind="not_found", message=f"project file not found: {path}"))
    except OSError as e:
        return Err(ProjectFileError(kind="not_found", message=f"cannot read {path}: {e}"))
    except ET.ParseError as e:
        return Err(
            ProjectFileError(
                kind="invalid_xml",
                message=f"invalid project file {path}: {e}",
                hint="The project is treated as having no dependencies",
            )
        )

    refs: list[Path] = []
    for element in tree.getroot().iter():
        if _local_name(element.tag) != "ProjectReference":
            continue
        include = (element.get("Include") or "").strip()
        if not include:
            continue
        refs.append(path.parent / include.replace("\\", "/"))
    return Ok(refs)
