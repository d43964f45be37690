"""Pure manifest text edits.

Every function takes the current text (plus nodes parsed from that exact
text) and returns new text. Nothing here touches the filesystem or keeps a
tree between edits; callers re-parse after each change.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass

from modforge.manifest.model import RequiredModuleEntry, RequiredModuleField
from modforge.manifest.parser import (
    ArrayNode,
    Binding,
    ManifestParseError,
    MappingNode,
    Node,
    StringNode,
    parse_manifest,
)

__all__ = [
    "INDENT",
    "ManifestDocument",
    "detect_newline",
    "ensure_section",
    "find_section",
    "insert_binding",
    "insertion_indent",
    "line_indent",
    "name_only_required_modules",
    "quote_string",
    "read_required_modules",
    "read_string_array",
    "remove_binding",
    "render_bool",
    "render_key",
    "render_required_modules",
    "render_string_array",
    "render_string_array_map",
    "render_string_like",
    "set_binding",
]

BOM = b"\xef\xbb\xbf"
INDENT = "    "

_BARE_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_REMOVABLE_TAIL_RE = re.compile(r"[ \t]*;?[ \t]*(?:#.*)?")
_TRAILING_SEMICOLON_RE = re.compile(r"[ \t]*;[ \t]*")


def detect_newline(text: str) -> str:
    """First line terminator in the text, ``\\n`` when there is none."""
    for i, ch in enumerate(text):
        if ch == "\r":
            return "\r\n" if text.startswith("\r\n", i) else "\r"
        if ch == "\n":
            return "\n"
    return "\n"


@dataclass(frozen=True, slots=True)
class ManifestDocument:
    """One read of a manifest: text, its encoding details, and its parse."""

    text: str
    newline: str
    bom: bool
    root: MappingNode | None
    error: str | None = None

    @classmethod
    def parse(cls, text: str, *, bom: bool = False) -> ManifestDocument:
        try:
            root: MappingNode | None = parse_manifest(text)
            error = None
        except ManifestParseError as e:
            root = None
            error = str(e)
        return cls(text=text, newline=detect_newline(text), bom=bom, root=root, error=error)

    @classmethod
    def from_bytes(cls, data: bytes) -> ManifestDocument:
        """Decode UTF-8 (with or without BOM). Raises UnicodeDecodeError."""
        bom = data.startswith(BOM)
        text = data[len(BOM) :].decode("utf-8") if bom else data.decode("utf-8")
        return cls.parse(text, bom=bom)

    def encode(self, text: str) -> bytes:
        """Encode edited text the way this document was stored."""
        body = text.encode("utf-8")
        return BOM + body if self.bom else body


# -- positions -----------------------------------------------------------------


def _line_start(text: str, pos: int) -> int:
    i = pos
    while i > 0 and text[i - 1] not in "\r\n":
        i -= 1
    return i


def _line_end(text: str, pos: int) -> int:
    i = pos
    while i < len(text) and text[i] not in "\r\n":
        i += 1
    return i


def _terminator_length(text: str, pos: int) -> int:
    if text.startswith("\r\n", pos):
        return 2
    if pos < len(text) and text[pos] in "\r\n":
        return 1
    return 0


def line_indent(text: str, pos: int) -> str:
    """Leading whitespace of the line containing ``pos``."""
    start = _line_start(text, pos)
    end = start
    while end < len(text) and text[end] in " \t":
        end += 1
    return text[start:end]


def insertion_indent(text: str, mapping: MappingNode) -> str:
    """Indentation for a new binding: the first binding's, when it starts a line."""
    if mapping.bindings:
        first = mapping.bindings[0]
        lead = text[_line_start(text, first.start) : first.start]
        if not lead.strip():
            return lead
    return line_indent(text, mapping.start) + INDENT


# -- tree lookups --------------------------------------------------------------


def find_section(root: MappingNode, section: Sequence[str]) -> MappingNode | None:
    mapping = root
    for name in section:
        binding = mapping.get(name)
        if binding is None or not isinstance(binding.value, MappingNode):
            return None
        mapping = binding.value
    return mapping


def _flatten(node: Node) -> Iterator[Node]:
    if isinstance(node, ArrayNode):
        for item in node.items:
            yield from _flatten(item)
    else:
        yield node


def read_string_array(node: Node) -> list[str] | None:
    """All elements as strings, or None if any element is not a string literal."""
    values: list[str] = []
    for item in _flatten(node):
        if not isinstance(item, StringNode):
            return None
        values.append(item.value)
    return values


def _required_module_fields(mapping: MappingNode) -> dict[RequiredModuleField, str]:
    found: dict[RequiredModuleField, str] = {}
    for b in mapping.bindings:
        f = RequiredModuleField.from_key(b.key)
        if f is not None and isinstance(b.value, StringNode):
            found[f] = b.value.value
    return found


def read_required_modules(node: Node) -> list[RequiredModuleEntry]:
    """Bare names and hashtables from a RequiredModules value.

    Hashtables without a ``ModuleName`` are skipped.
    """
    entries: list[RequiredModuleEntry] = []
    for item in _flatten(node):
        if isinstance(item, StringNode):
            if item.value.strip():
                entries.append(RequiredModuleEntry(module_name=item.value))
        elif isinstance(item, MappingNode):
            found = _required_module_fields(item)
            name = found.get(RequiredModuleField.MODULE_NAME)
            if not name or not name.strip():
                continue
            entries.append(
                RequiredModuleEntry(
                    module_name=name,
                    module_version=found.get(RequiredModuleField.MODULE_VERSION),
                    required_version=found.get(RequiredModuleField.REQUIRED_VERSION),
                    maximum_version=found.get(RequiredModuleField.MAXIMUM_VERSION),
                    guid=found.get(RequiredModuleField.GUID),
                )
            )
    return entries


def name_only_required_modules(node: Node) -> list[str]:
    """Hashtable entries that carry no version constraint at all."""
    names: list[str] = []
    constraints = (
        RequiredModuleField.MODULE_VERSION,
        RequiredModuleField.REQUIRED_VERSION,
        RequiredModuleField.MAXIMUM_VERSION,
    )
    for item in _flatten(node):
        if not isinstance(item, MappingNode):
            continue
        found = _required_module_fields(item)
        if any((found.get(f) or "").strip() for f in constraints):
            continue
        name = (found.get(RequiredModuleField.MODULE_NAME) or "").strip()
        names.append(name or "<unknown>")
    return names


# -- rendering -----------------------------------------------------------------


def quote_string(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def _quote_double(value: str) -> str:
    escaped = value.replace("`", "``").replace('"', '""').replace("$", "`$")
    return f'"{escaped}"'


def render_string_like(existing: Node | None, value: str) -> str:
    """Quote ``value`` in the style of the string it replaces."""
    if isinstance(existing, StringNode) and existing.quote == "double":
        return _quote_double(value)
    return quote_string(value)


def render_key(key: str) -> str:
    return key if _BARE_KEY_RE.match(key) else quote_string(key)


def render_bool(value: bool) -> str:
    return "$true" if value else "$false"


def render_string_array(values: Sequence[str]) -> str:
    return "@(" + ", ".join(quote_string(v) for v in values) + ")"


def render_string_array_map(
    values: Mapping[str, Sequence[str]],
    indent: str,
    newline: str,
) -> str | None:
    """A hashtable of string arrays; None when nothing is left to write.

    Keys are sorted case-insensitively; blank keys and empty arrays are skipped.
    """
    lines: list[str] = []
    for key in sorted((k for k in values if k.strip()), key=str.casefold):
        items = [v.strip() for v in values[key] if v.strip()]
        if not items:
            continue
        lines.append(f"{indent}{INDENT}{quote_string(key.strip())} = {render_string_array(items)}")
    if not lines:
        return None
    return "@{" + newline + newline.join(lines) + newline + indent + "}"


def render_required_modules(
    entries: Sequence[RequiredModuleEntry],
    indent: str,
    newline: str,
) -> str:
    """Render a RequiredModules array for a binding indented by ``indent``.

    Entries without a version constraint become bare names. The others become
    hashtables with keys in canonical order and ``=`` aligned across all of
    them.
    """
    if not entries:
        return "@()"

    width = max(
        (len(f.key) for e in entries if e.has_version_constraint for f, _ in e.fields()),
        default=0,
    )
    inner = indent + INDENT * 2
    closing = indent + INDENT

    parts: list[str] = []
    for entry in entries:
        if not entry.has_version_constraint:
            parts.append(quote_string(entry.module_name))
            continue
        lines = [f"{inner}{f.key.ljust(width)} = {quote_string(v)}" for f, v in entry.fields()]
        parts.append("@{" + newline + newline.join(lines) + newline + closing + "}")
    return "@(" + ", ".join(parts) + ")"


# -- edits ---------------------------------------------------------------------


def insert_binding(
    text: str,
    mapping: MappingNode,
    key: str,
    value: str,
    newline: str,
    indent: str,
) -> str:
    """Insert ``key = value`` just before the mapping's closing brace."""
    close = mapping.close
    start = _line_start(text, close)
    binding = f"{render_key(key)} = {value}"
    if not text[start:close].strip():
        return text[:start] + indent + binding + newline + text[start:]

    # The brace shares its line with other content: give the binding its own line.
    cut = close
    while cut > mapping.start + 2 and text[cut - 1] in " \t":
        cut -= 1
    closing_indent = line_indent(text, mapping.start)
    return text[:cut] + newline + indent + binding + newline + closing_indent + text[close:]


def set_binding(
    text: str,
    mapping: MappingNode,
    key: str,
    value_for: Callable[[Node | None, str], str],
    newline: str,
) -> str:
    """Replace the value of ``key`` in place, or insert the binding.

    ``value_for(existing_value, indent)`` renders the new value; ``indent`` is
    the indentation of the binding's line.
    """
    existing = mapping.get(key)
    if existing is not None:
        value = value_for(existing.value, line_indent(text, existing.start))
        return text[: existing.value.start] + value + text[existing.value.end :]
    indent = insertion_indent(text, mapping)
    return insert_binding(text, mapping, key, value_for(None, indent), newline, indent)


def remove_binding(text: str, binding: Binding) -> str:
    """Delete a binding.

    A binding alone on its line(s) takes the whole lines and one terminator
    with it; one that shares a line only takes itself and its separator.
    """
    start = _line_start(text, binding.start)
    end = _line_end(text, binding.end)
    lead = text[start : binding.start]
    tail = text[binding.end : end]
    if not lead.strip() and _REMOVABLE_TAIL_RE.fullmatch(tail):
        return text[:start] + text[end + _terminator_length(text, end) :]

    m = _TRAILING_SEMICOLON_RE.match(text, binding.end)
    if m is not None:
        return text[: binding.start] + text[m.end() :]

    cut = binding.start
    while cut > start and text[cut - 1] in " \t":
        cut -= 1
    if cut > start and text[cut - 1] == ";":
        return text[: cut - 1] + text[binding.end :]
    return text[: binding.start] + text[binding.end :]


def ensure_section(text: str, section: Sequence[str], newline: str) -> str | None:
    """Create any missing mappings along ``section``.

    Returns None when a name on the path is bound to something other than a
    mapping.
    """
    while True:
        mapping = parse_manifest(text)
        for name in section:
            binding = mapping.get(name)
            if binding is None:
                indent = insertion_indent(text, mapping)
                text = insert_binding(text, mapping, name, "@{}", newline, indent)
                break
            if not isinstance(binding.value, MappingNode):
                return None
            mapping = binding.value
        else:
            return text
