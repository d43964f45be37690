from __future__ import annotations

import ast
from pathlib import Path

import pytest

PACKAGE_ROOT = Path(__file__).resolve().parents[2]

# Libraries that may only show up behind the output and cli layers.
_PRESENTATION = ("modforge.cli", "modforge.output", "rich", "typer")
_LIBRARY_PACKAGES = ("core", "platform", "manifest", "versioning", "dependencies", "publish")


def _python_files(base: Path) -> list[Path]:
    return [p for p in sorted(base.rglob("*.py")) if "__pycache__" not in p.parts]


def _imports(path: Path) -> list[tuple[str, int]]:
    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    found: list[tuple[str, int]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            found.extend((alias.name, node.lineno) for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module and not node.level:
            found.append((node.module, node.lineno))
    return found


def _matches(module: str, prefix: str) -> bool:
    return module == prefix or module.startswith(prefix + ".")


@pytest.mark.parametrize("package", _LIBRARY_PACKAGES)
def test_library_packages_do_not_import_presentation(package: str) -> None:
    offenders: list[str] = []
    for path in _python_files(PACKAGE_ROOT / package):
        for module, line in _imports(path):
            if any(_matches(module, prefix) for prefix in _PRESENTATION):
                offenders.append(f"{path.relative_to(PACKAGE_ROOT)}:{line}: imports {module}")

    assert not offenders, "\n".join(offenders)


def test_library_packages_never_print() -> None:
    offenders: list[str] = []
    for package in _LIBRARY_PACKAGES:
        for path in _python_files(PACKAGE_ROOT / package):
            tree = ast.parse(path.read_text(encoding="utf-8"))
            for node in ast.walk(tree):
                if isinstance(node, ast.Call) and isinstance(node.func, ast.Name) and node.func.id == "print":
                    offenders.append(f"{path.relative_to(PACKAGE_ROOT)}:{node.lineno}")

    assert not offenders, "\n".join(offenders)


def test_subprocess_only_in_process_wrapper() -> None:
    offenders: list[str] = []
    for path in _python_files(PACKAGE_ROOT):
        rel = path.relative_to(PACKAGE_ROOT)
        if rel.parts[0] == "test" or rel.as_posix() == "platform/process.py":
            continue
        if any(_matches(module, "subprocess") for module, _ in _imports(path)):
            offenders.append(str(rel))

    assert not offenders, "\n".join(offenders)
