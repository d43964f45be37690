"""Parser for PowerShell data files (``.psd1``).

Only the data subset is understood: hashtables, arrays, strings, and a few
opaque forms (numbers, variables, barewords, parenthesised expressions, type
casts) that are kept as raw source text. Nothing is evaluated.

Every node records ``start``/``end`` offsets into the parsed text so that
edits can splice replacement text without touching anything else. Nodes are
immutable and only valid for the exact text they were parsed from.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

__all__ = [
    "ArrayNode",
    "Binding",
    "ManifestParseError",
    "MappingNode",
    "Node",
    "ScalarNode",
    "StringNode",
    "parse_manifest",
]


class ManifestParseError(ValueError):
    def __init__(self, message: str, offset: int) -> None:
        super().__init__(f"{message} (offset {offset})")
        self.offset = offset


QuoteStyle = Literal["single", "double", "here_single", "here_double"]


@dataclass(frozen=True, slots=True)
class StringNode:
    start: int
    end: int
    value: str
    quote: QuoteStyle


@dataclass(frozen=True, slots=True)
class ScalarNode:
    """A value kept verbatim: ``$true``, ``1.0``, ``(Get-Date)``, ``[version]'1.0'``."""

    start: int
    end: int
    text: str


@dataclass(frozen=True, slots=True)
class ArrayNode:
    """``@( ... )`` (``wrapped``) or a bare ``a, b, c`` list."""

    start: int
    end: int
    items: tuple[Node, ...]
    wrapped: bool = False


@dataclass(frozen=True, slots=True)
class Binding:
    key: str
    start: int
    key_end: int
    value: Node

    @property
    def end(self) -> int:
        return self.value.end


@dataclass(frozen=True, slots=True)
class MappingNode:
    start: int
    end: int
    bindings: tuple[Binding, ...]

    @property
    def close(self) -> int:
        """Offset of the closing brace."""
        return self.end - 1

    def get(self, key: str) -> Binding | None:
        folded = key.casefold()
        for b in self.bindings:
            if b.key.casefold() == folded:
                return b
        return None


type Node = StringNode | ScalarNode | ArrayNode | MappingNode


_HSPACE = " \t"
_EOL = "\r\n"
_BAREWORD_STOP = frozenset(" \t\r\n;,(){}=#'\"")
_VALUE_END = frozenset(["\r", "\n", ";", "}", ")", ""])
_BACKTICK = {
    "0": "\0",
    "a": "\a",
    "b": "\b",
    "e": "\x1b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
}


def _unescape_double(raw: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(raw):
        ch = raw[i]
        if ch == "`" and i + 1 < len(raw):
            nxt = raw[i + 1]
            out.append(_BACKTICK.get(nxt, nxt))
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def peek(self, offset: int = 0) -> str:
        i = self.pos + offset
        return self.text[i] if i < len(self.text) else ""

    def error(self, message: str, offset: int | None = None) -> ManifestParseError:
        return ManifestParseError(message, self.pos if offset is None else offset)

    # -- trivia --------------------------------------------------------------

    def skip(self, *, newlines: bool) -> None:
        text = self.text
        while self.pos < len(text):
            ch = text[self.pos]
            if ch in _HSPACE or ch == "\ufeff":
                self.pos += 1
            elif ch in _EOL:
                if not newlines:
                    return
                self.pos += 1
            elif ch == "`" and self.peek(1) in ("\r", "\n"):
                # Line continuation.
                self.pos += 3 if text.startswith("`\r\n", self.pos) else 2
            elif text.startswith("<#", self.pos):
                close = text.find("#>", self.pos + 2)
                if close < 0:
                    raise self.error("unterminated block comment")
                self.pos = close + 2
            elif ch == "#":
                while self.pos < len(text) and text[self.pos] not in _EOL:
                    self.pos += 1
            else:
                return

    def skip_separators(self) -> None:
        while True:
            self.skip(newlines=True)
            if self.peek() != ";":
                return
            self.pos += 1

    # -- structure -----------------------------------------------------------

    def parse_document(self) -> MappingNode:
        self.skip(newlines=True)
        if not self.text.startswith("@{", self.pos):
            raise self.error("expected '@{' to open the root mapping")
        root = self.parse_mapping()
        self.skip(newlines=True)
        if self.pos < len(self.text):
            raise self.error("unexpected content after the root mapping")
        return root

    def parse_mapping(self) -> MappingNode:
        start = self.pos
        self.pos += 2
        bindings: list[Binding] = []
        while True:
            self.skip_separators()
            ch = self.peek()
            if ch == "":
                raise self.error("unterminated mapping", start)
            if ch == "}":
                self.pos += 1
                return MappingNode(start, self.pos, tuple(bindings))
            bindings.append(self.parse_binding())
            self.skip(newlines=False)
            if self.peek() not in _VALUE_END or self.peek() == ")":
                raise self.error("expected a newline, ';' or '}' after a value")

    def parse_binding(self) -> Binding:
        start = self.pos
        if self.peek() in ("'", '"'):
            key = self.parse_string().value
        else:
            key = self.read_bareword()
            if not key:
                raise self.error("expected a key")
        key_end = self.pos
        self.skip(newlines=False)
        if self.peek() != "=":
            raise self.error(f"expected '=' after key {key!r}")
        self.pos += 1
        self.skip(newlines=True)
        value = self.parse_expression()
        return Binding(key, start, key_end, value)

    def parse_array(self) -> ArrayNode:
        start = self.pos
        self.pos += 2
        items: list[Node] = []
        while True:
            self.skip_separators()
            ch = self.peek()
            if ch == "":
                raise self.error("unterminated array", start)
            if ch == ")":
                self.pos += 1
                return ArrayNode(start, self.pos, tuple(items), wrapped=True)
            statement = self.parse_expression()
            # @( 'a', 'b' ) is one flat array, not an array holding a list.
            if isinstance(statement, ArrayNode) and not statement.wrapped:
                items.extend(statement.items)
            else:
                items.append(statement)
            self.skip(newlines=False)
            if self.peek() not in _VALUE_END or self.peek() == "}":
                raise self.error("expected a newline, ';' or ')' after an array element")

    def parse_expression(self) -> Node:
        first = self.parse_primary()
        items = [first]
        while True:
            mark = self.pos
            self.skip(newlines=False)
            if self.peek() != ",":
                self.pos = mark
                break
            self.pos += 1
            self.skip(newlines=True)
            items.append(self.parse_primary())
        if len(items) == 1:
            return first
        return ArrayNode(first.start, items[-1].end, tuple(items))

    def parse_primary(self) -> Node:
        ch = self.peek()
        nxt = self.peek(1)
        if ch == "@":
            if nxt == "{":
                return self.parse_mapping()
            if nxt == "(":
                return self.parse_array()
            if nxt in ("'", '"'):
                return self.parse_here_string()
            raise self.error("unexpected '@'")
        if ch in ("'", '"'):
            return self.parse_string()
        if ch == "(" or (ch == "$" and nxt == "("):
            return self.parse_group()
        if ch == "[":
            return self.parse_cast()
        if ch == "":
            raise self.error("expected a value")
        start = self.pos
        word = self.read_bareword()
        if not word:
            raise self.error(f"unexpected {ch!r}")
        return ScalarNode(start, self.pos, word)

    # -- leaves --------------------------------------------------------------

    def read_bareword(self) -> str:
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] not in _BAREWORD_STOP:
            self.pos += 1
        return self.text[start : self.pos]

    def parse_string(self) -> StringNode:
        text = self.text
        start = self.pos
        quote = text[start]
        self.pos += 1
        out: list[str] = []
        while True:
            if self.pos >= len(text):
                raise self.error("unterminated string", start)
            ch = text[self.pos]
            if ch == quote:
                if self.peek(1) == quote:
                    out.append(quote)
                    self.pos += 2
                    continue
                self.pos += 1
                break
            if quote == '"' and ch == "`" and self.pos + 1 < len(text):
                nxt = text[self.pos + 1]
                out.append(_BACKTICK.get(nxt, nxt))
                self.pos += 2
                continue
            out.append(ch)
            self.pos += 1
        style: QuoteStyle = "single" if quote == "'" else "double"
        return StringNode(start, self.pos, "".join(out), style)

    def parse_here_string(self) -> StringNode:
        text = self.text
        start = self.pos
        quote = text[start + 1]
        self.pos += 2
        while self.peek() in (" ", "\t"):
            self.pos += 1
        opener_eol = self.pos
        if text.startswith("\r\n", self.pos):
            self.pos += 2
        elif self.peek() in ("\r", "\n"):
            self.pos += 1
        else:
            raise self.error("here-string header must end the line")

        closer = re.compile(r"(?:\r\n|\n|\r)" + re.escape(quote) + "@")
        m = closer.search(text, opener_eol)
        if m is None:
            raise self.error("unterminated here-string", start)
        raw = text[self.pos : m.start()] if m.start() > opener_eol else ""
        self.pos = m.end()
        if quote == "'":
            return StringNode(start, self.pos, raw, "here_single")
        return StringNode(start, self.pos, _unescape_double(raw), "here_double")

    def parse_group(self) -> ScalarNode:
        text = self.text
        start = self.pos
        if self.peek() == "$":
            self.pos += 1
        depth = 0
        while self.pos < len(text):
            ch = text[self.pos]
            if ch in ("'", '"'):
                self.parse_string()
                continue
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
                if depth == 0:
                    self.pos += 1
                    return ScalarNode(start, self.pos, text[start : self.pos])
            self.pos += 1
        raise self.error("unterminated parenthesis", start)

    def parse_cast(self) -> ScalarNode:
        text = self.text
        start = self.pos
        close = text.find("]", start)
        if close < 0:
            raise self.error("unterminated type literal")
        self.pos = close + 1
        mark = self.pos
        self.skip(newlines=False)
        if self.peek() in _VALUE_END or self.peek() in (",", "#"):
            self.pos = mark
        else:
            self.parse_primary()
        return ScalarNode(start, self.pos, text[start : self.pos])


def parse_manifest(text: str) -> MappingNode:
    """Parse a whole data file and return its root mapping.

    Raises:
        ManifestParseError: If the text is not a single ``@{ ... }`` literal
            (optionally surrounded by comments) or is malformed inside.
    """
    return _Parser(text).parse_document()
