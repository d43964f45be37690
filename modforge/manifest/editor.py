"""Read and edit module manifests on disk.

Each call reads the file, parses it fresh, applies one edit and writes the
result back atomically with the original byte-order mark and line endings.

Reads never raise: a missing, unreadable or unparsable file reads as None.
Writes return False when the file does not exist or nothing could be set,
and raise ManifestStructureError when the file has no root mapping to edit.

Usage:
    try_set_string(path, "Description", "Build helpers")
    version = try_get_string(path, "ModuleVersion")
    try_set_section_string(path, ("PrivateData", "PSData"), "ProjectUri", uri)
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

from modforge.manifest.document import (
    ManifestDocument,
    ensure_section,
    find_section,
    name_only_required_modules,
    read_required_modules,
    read_string_array,
    remove_binding,
    render_bool,
    render_required_modules,
    render_string_array,
    render_string_array_map,
    render_string_like,
    set_binding,
)
from modforge.manifest.model import ManifestInfo, ManifestStructureError, RequiredModuleEntry
from modforge.manifest.parser import MappingNode, Node, StringNode, parse_manifest
from modforge.platform.files import atomic_write_bytes

__all__ = [
    "PSDATA",
    "find_manifest",
    "read_module_info",
    "try_add_to_string_array",
    "try_get_name_only_required_modules",
    "try_get_required_modules",
    "try_get_section_string",
    "try_get_section_string_array",
    "try_get_string",
    "try_get_string_array",
    "try_remove_from_string_array",
    "try_remove_key",
    "try_remove_required_module",
    "try_remove_section_key",
    "try_set_module_version",
    "try_set_required_modules",
    "try_set_section_bool",
    "try_set_section_string",
    "try_set_section_string_array",
    "try_set_string",
    "try_set_string_array",
    "try_set_string_array_map",
    "try_upsert_required_module",
]

PSDATA: tuple[str, ...] = ("PrivateData", "PSData")
REQUIRED_MODULES = "RequiredModules"

type _Edit = Callable[[ManifestDocument, MappingNode], str | None]
type _ValueFor = Callable[[Node | None, str], str]


# -- plumbing ------------------------------------------------------------------


def _read(path: Path) -> ManifestDocument | None:
    try:
        return ManifestDocument.from_bytes(path.read_bytes())
    except (OSError, UnicodeDecodeError):
        return None


def _lookup(path: Path, section: Sequence[str], key: str) -> Node | None:
    doc = _read(path)
    if doc is None or doc.root is None:
        return None
    mapping = find_section(doc.root, section)
    if mapping is None:
        return None
    binding = mapping.get(key)
    return binding.value if binding is not None else None


def _edit(path: Path, edit: _Edit) -> bool:
    if not path.is_file():
        return False
    try:
        doc = ManifestDocument.from_bytes(path.read_bytes())
    except UnicodeDecodeError as e:
        raise ManifestStructureError(path, f"not valid UTF-8: {e}") from e
    if doc.root is None:
        raise ManifestStructureError(path, doc.error or "no root mapping")

    updated = edit(doc, doc.root)
    if updated is None:
        return False
    if updated != doc.text:
        atomic_write_bytes(path, doc.encode(updated))
    return True


def _set(path: Path, section: Sequence[str], key: str, value_for: _ValueFor) -> bool:
    def edit(doc: ManifestDocument, _root: MappingNode) -> str | None:
        text = ensure_section(doc.text, section, doc.newline)
        if text is None:
            return None
        mapping = find_section(parse_manifest(text), section)
        if mapping is None:
            return None
        return set_binding(text, mapping, key, value_for, doc.newline)

    return _edit(path, edit)


def _remove(path: Path, section: Sequence[str], key: str) -> bool:
    def edit(doc: ManifestDocument, root: MappingNode) -> str | None:
        mapping = find_section(root, section)
        binding = mapping.get(key) if mapping is not None else None
        if binding is None:
            return None
        return remove_binding(doc.text, binding)

    return _edit(path, edit)


def _string_value(value: str) -> _ValueFor:
    return lambda existing, _indent: render_string_like(existing, value)


def _fixed_value(rendered: str) -> _ValueFor:
    return lambda _existing, _indent: rendered


# -- top level -----------------------------------------------------------------


def try_get_string(path: Path, key: str) -> str | None:
    node = _lookup(path, (), key)
    return node.value if isinstance(node, StringNode) else None


def try_set_string(path: Path, key: str, value: str) -> bool:
    """Set a top-level string, keeping the quote style of an existing value."""
    return _set(path, (), key, _string_value(value))


def try_set_module_version(path: Path, version: str) -> bool:
    return try_set_string(path, "ModuleVersion", version)


def try_get_string_array(path: Path, key: str) -> list[str] | None:
    """Read a string array, flattening nested arrays.

    Returns None if the key is missing or any element is not a string literal.
    """
    node = _lookup(path, (), key)
    if node is None:
        return None
    return read_string_array(node)


def try_set_string_array(path: Path, key: str, values: Sequence[str]) -> bool:
    return _set(path, (), key, _fixed_value(render_string_array(values)))


def try_add_to_string_array(path: Path, key: str, item: str) -> bool:
    """Append ``item`` unless already present (case-insensitive)."""
    current = try_get_string_array(path, key) or []
    if any(v.casefold() == item.casefold() for v in current):
        return True
    return try_set_string_array(path, key, [*current, item])


def try_remove_from_string_array(path: Path, key: str, item: str) -> bool:
    """Drop ``item`` (case-insensitive). False when it was not in the array."""
    current = try_get_string_array(path, key)
    if current is None:
        return False
    kept = [v for v in current if v.casefold() != item.casefold()]
    if len(kept) == len(current):
        return False
    return try_set_string_array(path, key, kept)


def try_set_string_array_map(path: Path, key: str, values: Mapping[str, Sequence[str]]) -> bool:
    """Set a hashtable whose values are string arrays.

    False when every array is empty.
    """
    if render_string_array_map(values, "", "\n") is None:
        return False

    def edit(doc: ManifestDocument, root: MappingNode) -> str | None:
        def value_for(_existing: Node | None, indent: str) -> str:
            return render_string_array_map(values, indent, doc.newline) or "@{}"

        return set_binding(doc.text, root, key, value_for, doc.newline)

    return _edit(path, edit)


def try_remove_key(path: Path, key: str) -> bool:
    """Delete a top-level binding. False when the key is not present."""
    return _remove(path, (), key)


# -- required modules ----------------------------------------------------------


def try_get_required_modules(path: Path) -> list[RequiredModuleEntry] | None:
    node = _lookup(path, (), REQUIRED_MODULES)
    if node is None:
        return None
    return read_required_modules(node)


def try_get_name_only_required_modules(path: Path) -> list[str] | None:
    """Names of RequiredModules hashtables that declare no version at all."""
    node = _lookup(path, (), REQUIRED_MODULES)
    if node is None:
        return None
    return name_only_required_modules(node)


def try_set_required_modules(path: Path, entries: Sequence[RequiredModuleEntry]) -> bool:
    def edit(doc: ManifestDocument, root: MappingNode) -> str | None:
        return set_binding(
            doc.text,
            root,
            REQUIRED_MODULES,
            lambda _existing, indent: render_required_modules(entries, indent, doc.newline),
            doc.newline,
        )

    return _edit(path, edit)


def try_upsert_required_module(path: Path, entry: RequiredModuleEntry) -> bool:
    """Replace the entry with the same name (case-insensitive) or append it."""
    current = try_get_required_modules(path) or []
    folded = entry.module_name.casefold()
    updated: list[RequiredModuleEntry] = []
    replaced = False
    for m in current:
        if m.module_name.casefold() == folded and not replaced:
            updated.append(entry)
            replaced = True
        else:
            updated.append(m)
    if not replaced:
        updated.append(entry)
    return try_set_required_modules(path, updated)


def try_remove_required_module(path: Path, module_name: str) -> bool:
    current = try_get_required_modules(path)
    if current is None:
        return False
    folded = module_name.casefold()
    kept = [m for m in current if m.module_name.casefold() != folded]
    if len(kept) == len(current):
        return False
    return try_set_required_modules(path, kept)


# -- nested sections -----------------------------------------------------------


def try_get_section_string(path: Path, section: Sequence[str], key: str) -> str | None:
    node = _lookup(path, section, key)
    return node.value if isinstance(node, StringNode) else None


def try_get_section_string_array(path: Path, section: Sequence[str], key: str) -> list[str] | None:
    node = _lookup(path, section, key)
    if node is None:
        return None
    return read_string_array(node)


def try_set_section_string(path: Path, section: Sequence[str], key: str, value: str) -> bool:
    """Set ``key`` inside the mapping at ``section``, creating mappings as needed.

    False when a name on the path is bound to something other than a mapping.
    """
    return _set(path, section, key, _string_value(value))


def try_set_section_bool(path: Path, section: Sequence[str], key: str, value: bool) -> bool:
    return _set(path, section, key, _fixed_value(render_bool(value)))


def try_set_section_string_array(
    path: Path,
    section: Sequence[str],
    key: str,
    values: Sequence[str],
) -> bool:
    return _set(path, section, key, _fixed_value(render_string_array(values)))


def try_remove_section_key(path: Path, section: Sequence[str], key: str) -> bool:
    return _remove(path, section, key)


# -- project helpers -----------------------------------------------------------


def find_manifest(project_dir: Path) -> Path | None:
    """The project's manifest: ``<dir name>.psd1``, else the only ``*.psd1``."""
    if not project_dir.is_dir():
        return None
    named = project_dir / f"{project_dir.name}.psd1"
    if named.is_file():
        return named
    candidates = sorted(p for p in project_dir.glob("*.psd1") if p.is_file())
    return candidates[0] if len(candidates) == 1 else None


def read_module_info(project_dir: Path) -> ManifestInfo | None:
    manifest = find_manifest(project_dir)
    if manifest is None:
        return None
    doc = _read(manifest)
    if doc is None or doc.root is None:
        return None
    root = doc.root

    def text(key: str) -> str | None:
        binding = root.get(key)
        if binding is None or not isinstance(binding.value, StringNode):
            return None
        return binding.value.value

    modules = root.get(REQUIRED_MODULES)
    return ManifestInfo(
        path=manifest,
        module_name=manifest.stem,
        module_version=text("ModuleVersion"),
        root_module=text("RootModule"),
        guid=text("GUID"),
        powershell_version=text("PowerShellVersion"),
        required_modules=read_required_modules(modules.value) if modules is not None else [],
    )
