"""Publish order for interdependent projects.

Each dependency gets an in-degree equal to the number of projects that
reference it. A queue-based topological sort then peels projects off from
the top (nothing depends on them) down. That dequeue order lists dependents
first, so it is NOT what gets returned: the result is the dequeue order
reversed, which publishes every dependency before its dependents. Callers
that want the raw dequeue order can reverse ``PublishOrder.projects``.

A cycle never fails the run: the partial order is discarded and projects are
returned alphabetically (case-insensitive) with one ``publish_cycle``
diagnostic. A project file that cannot be read counts as having no
references.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from modforge.core.diagnostics import Diagnostic
from modforge.core.result import Err, Result
from modforge.publish.projects import (
    Project,
    ProjectFileError,
    normalize_path,
    read_project_references,
)

__all__ = ["PublishOrder", "build_dependency_graph", "order_projects"]

type ReferenceReader = Callable[[Path], Result[list[Path], ProjectFileError]]


def _no_diagnostics() -> list[Diagnostic]:
    return []


@dataclass(frozen=True, slots=True)
class PublishOrder:
    projects: list[Project]
    diagnostics: list[Diagnostic] = field(default_factory=_no_diagnostics)
    cycle: bool = False


def build_dependency_graph(
    projects: Sequence[Project],
    read_references: ReferenceReader = read_project_references,
) -> tuple[dict[str, set[str]], list[Diagnostic]]:
    """Map each project name to the names of the projects it references.

    References match a known project by full path first, then by file stem.
    References to unknown projects and to the project itself are ignored.
    """
    by_path: dict[str, str] = {}
    by_stem: dict[str, str] = {}
    for p in projects:
        by_path.setdefault(normalize_path(p.path), p.name)
        by_stem.setdefault(p.path.stem.casefold(), p.name)

    graph: dict[str, set[str]] = {p.name: set() for p in projects}
    diagnostics: list[Diagnostic] = []
    for p in projects:
        refs = read_references(p.path)
        if isinstance(refs, Err):
            diagnostics.append(
                Diagnostic(
                    kind="invalid_project_file",
                    message=refs.error.message,
                    subjects=(p.name,),
                    hint=refs.error.hint,
                )
            )
            continue
        for ref in refs.value:
            target = by_path.get(normalize_path(ref)) or by_stem.get(ref.stem.casefold())
            if target is not None and target != p.name:
                graph[p.name].add(target)
    return graph, diagnostics


def order_projects(
    projects: Sequence[Project],
    *,
    read_references: ReferenceReader = read_project_references,
) -> PublishOrder:
    """Order projects so that every dependency comes before its dependents."""
    graph, diagnostics = build_dependency_graph(projects, read_references)
    position = {p.name: i for i, p in enumerate(projects)}
    by_name = {p.name: p for p in projects}

    indegree = {p.name: 0 for p in projects}
    for name in graph:
        for dep in graph[name]:
            indegree[dep] += 1

    queue = deque(p.name for p in projects if indegree[p.name] == 0)
    peeled: list[str] = []
    while queue:
        name = queue.popleft()
        peeled.append(name)
        for dep in sorted(graph[name], key=position.__getitem__):
            indegree[dep] -= 1
            if indegree[dep] == 0:
                queue.append(dep)

    if len(peeled) < len(by_name):
        done = set(peeled)
        stuck = sorted((n for n in by_name if n not in done), key=str.casefold)
        diagnostics.append(
            Diagnostic(
                kind="publish_cycle",
                message="dependency cycle among " + ", ".join(stuck) + "; publishing alphabetically",
                subjects=tuple(stuck),
            )
        )
        ordered = sorted(by_name.values(), key=lambda p: p.name.casefold())
        return PublishOrder(projects=ordered, diagnostics=diagnostics, cycle=True)

    return PublishOrder(
        projects=[by_name[n] for n in reversed(peeled)],
        diagnostics=diagnostics,
    )
