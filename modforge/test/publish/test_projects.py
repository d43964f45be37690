"""Tests for modforge.publish.projects module."""

from __future__ import annotations

from pathlib import Path

from modforge.core.result import Err, Ok
from modforge.publish.projects import normalize_path, read_project_references

SDK_STYLE = """<Project Sdk="Microsoft.NET.Sdk">
  <ItemGroup>
    <ProjectReference Include="..\\Core\\Core.csproj" />
    <ProjectReference Include="../Util/Util.csproj" />
    <ProjectReference Include="  " />
    <PackageReference Include="Newtonsoft.Json" Version="13.0.1" />
  </ItemGroup>
</Project>
"""

LEGACY = """<?xml version="1.0" encoding="utf-8"?>
<Project ToolsVersion="15.0" xmlns="http://schemas.microsoft.com/developer/msbuild/2003">
  <ItemGroup>
    <ProjectReference Include="..\\Core\\Core.csproj">
      <Name>Core</Name>
    </ProjectReference>
  </ItemGroup>
</Project>
"""


def _project(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "App" / "App.csproj"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_reads_project_references(tmp_path: Path) -> None:
    path = _project(tmp_path, SDK_STYLE)

    result = read_project_references(path)

    assert isinstance(result, Ok)
    assert [normalize_path(p) for p in result.value] == [
        normalize_path(tmp_path / "Core" / "Core.csproj"),
        normalize_path(tmp_path / "Util" / "Util.csproj"),
    ]


def test_namespaced_project_file(tmp_path: Path) -> None:
    result = read_project_references(_project(tmp_path, LEGACY))

    assert isinstance(result, Ok)
    assert [p.name for p in result.value] == ["Core.csproj"]


def test_missing_file(tmp_path: Path) -> None:
    result = read_project_references(tmp_path / "Nope.csproj")

    assert isinstance(result, Err)
    assert result.error.kind == "not_found"


def test_malformed_xml(tmp_path: Path) -> None:
    result = read_project_references(_project(tmp_path, "<Project><ItemGroup></Project>"))

    assert isinstance(result, Err)
    assert result.error.kind == "invalid_xml"
    assert result.error.hint is not None


def test_normalize_path_ignores_case_and_dots(tmp_path: Path) -> None:
    a = tmp_path / "Dir" / ".." / "Core.csproj"
    b = tmp_path / "core.CSPROJ"
    assert normalize_path(a) == normalize_path(b)
