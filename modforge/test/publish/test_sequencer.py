"""Tests for modforge.publish.sequencer module."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from modforge.core.result import Err, Ok, Result
from modforge.publish.projects import Project, ProjectFileError
from modforge.publish.sequencer import build_dependency_graph, order_projects


def project(name: str) -> Project:
    return Project(name=name, path=Path("/src") / name / f"{name}.csproj")


def reader(refs: dict[str, list[str]]) -> Callable[[Path], Result[list[Path], ProjectFileError]]:
    def read(path: Path) -> Result[list[Path], ProjectFileError]:
        if path.stem == "Broken":
            return Err(ProjectFileError(kind="invalid_xml", message=f"invalid project file {path}"))
        return Ok([Path("/src") / r / f"{r}.csproj" for r in refs.get(path.stem, [])])

    return read


def names(projects: list[Project]) -> list[str]:
    return [p.name for p in projects]


class TestOrderProjects:
    def test_dependencies_first(self) -> None:
        projects = [project("App"), project("Core"), project("Util")]
        refs = {"App": ["Core", "Util"], "Util": ["Core"]}

        plan = order_projects(projects, read_references=reader(refs))

        assert names(plan.projects) == ["Core", "Util", "App"]
        assert plan.diagnostics == []
        assert plan.cycle is False

    def test_independent_projects_are_deterministic(self) -> None:
        projects = [project("B"), project("A"), project("C")]

        plan = order_projects(projects, read_references=reader({}))

        assert names(plan.projects) == ["C", "A", "B"]

    def test_every_dependency_precedes_dependent(self) -> None:
        projects = [project(n) for n in ("E", "D", "C", "B", "A")]
        refs = {"A": ["B", "C"], "B": ["D"], "C": ["D", "E"], "D": ["E"]}

        order = names(order_projects(projects, read_references=reader(refs)).projects)

        for dependent, deps in refs.items():
            for dep in deps:
                assert order.index(dep) < order.index(dependent)

    def test_cycle_falls_back_to_alphabetical(self) -> None:
        projects = [project("B"), project("a")]
        refs = {"a": ["B"], "B": ["a"]}

        plan = order_projects(projects, read_references=reader(refs))

        assert names(plan.projects) == ["a", "B"]
        assert plan.cycle is True
        assert [d.kind for d in plan.diagnostics] == ["publish_cycle"]
        assert plan.diagnostics[0].subjects == ("a", "B")

    def test_self_reference_ignored(self) -> None:
        plan = order_projects([project("A")], read_references=reader({"A": ["A"]}))

        assert names(plan.projects) == ["A"]
        assert plan.diagnostics == []

    def test_unreadable_project_has_no_dependencies(self) -> None:
        projects = [project("App"), project("Broken")]

        plan = order_projects(projects, read_references=reader({"App": ["Broken"]}))

        assert names(plan.projects) == ["Broken", "App"]
        assert [d.kind for d in plan.diagnostics] == ["invalid_project_file"]
        assert plan.diagnostics[0].subjects == ("Broken",)

    def test_empty(self) -> None:
        plan = order_projects([])
        assert plan.projects == []


def test_graph_matches_by_stem_when_paths_differ() -> None:
    projects = [project("App"), Project(name="Core", path=Path("/elsewhere/Core.csproj"))]

    graph, diagnostics = build_dependency_graph(projects, reader({"App": ["Core", "Unknown"]}))

    assert graph == {"App": {"Core"}, "Core": set()}
    assert diagnostics == []


def test_reads_real_project_files(tmp_path: Path) -> None:
    core = tmp_path / "Core" / "Core.csproj"
    app = tmp_path / "App" / "App.csproj"
    core.parent.mkdir()
    app.parent.mkdir()
    core.write_text("<Project />", encoding="utf-8")
    app.write_text(
        '<Project><ItemGroup><ProjectReference Include="..\\Core\\Core.csproj" /></ItemGroup></Project>',
        encoding="utf-8",
    )

    plan = order_projects([Project("App", app), Project("Core", core)])

    assert names(plan.projects) == ["Core", "App"]
