"""Console output abstraction.

Commands talk to ``ConsoleProtocol`` only. ``RichConsole`` renders with Rich
for interactive use; ``MockConsole`` records what would have been printed so
tests can assert on it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Protocol

__all__ = [
    "ConsoleProtocol",
    "MockConsole",
    "OutputRecord",
    "RichConsole",
    "Style",
]


class Style(Enum):
    DEFAULT = auto()
    SUCCESS = auto()
    ERROR = auto()
    WARNING = auto()
    INFO = auto()
    DIM = auto()
    HEADER = auto()

    def __str__(self) -> str:
        return self.name.lower()


class ConsoleProtocol(Protocol):
    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        """Print a message, optionally styled."""
        ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def hint(self, message: str) -> None:
        """Print a dimmed follow-up line under an error or warning."""
        ...

    def header(self, message: str) -> None: ...

    def newline(self) -> None: ...


_RICH_STYLES = {
    Style.DEFAULT: "",
    Style.SUCCESS: "green",
    Style.ERROR: "red bold",
    Style.WARNING: "yellow",
    Style.INFO: "cyan",
    Style.DIM: "dim",
    Style.HEADER: "blue bold",
}


class RichConsole:
    """Production console backed by ``rich.console.Console``."""

    def __init__(self, *, stderr: bool = False) -> None:
        # Import Rich lazily so library users never pay for it.
        from rich.console import Console

        self._console = Console(stderr=stderr, highlight=False)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        rich_style = _RICH_STYLES.get(style, "")
        if rich_style:
            self._console.print(message, style=rich_style, markup=False)
        else:
            self._console.print(message, markup=False)

    def success(self, message: str) -> None:
        self._console.print(f"[green]OK[/green] {_escape(message)}")

    def error(self, message: str) -> None:
        self._console.print(f"[red bold]error:[/red bold] {_escape(message)}")

    def warning(self, message: str) -> None:
        self._console.print(f"[yellow]warning:[/yellow] {_escape(message)}")

    def info(self, message: str) -> None:
        self._console.print(f"[cyan]info:[/cyan] {_escape(message)}")

    def hint(self, message: str) -> None:
        self._console.print(f"  hint: {message}", style="dim", markup=False)

    def header(self, message: str) -> None:
        self._console.print(f"\n[blue bold]{_escape(message)}[/blue bold]")

    def newline(self) -> None:
        self._console.print()


def _escape(text: str) -> str:
    from rich.markup import escape

    return escape(text)


@dataclass
class OutputRecord:
    message: str
    style: Style


def _empty_outputs() -> list[OutputRecord]:
    return []


@dataclass
class MockConsole:
    """Console that captures output for tests."""

    outputs: list[OutputRecord] = field(default_factory=_empty_outputs)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.outputs.append(OutputRecord(message, style))

    def success(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"OK {message}", Style.SUCCESS))

    def error(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"error: {message}", Style.ERROR))

    def warning(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"warning: {message}", Style.WARNING))

    def info(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"info: {message}", Style.INFO))

    def hint(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"hint: {message}", Style.DIM))

    def header(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.HEADER))

    def newline(self) -> None:
        self.outputs.append(OutputRecord("", Style.DEFAULT))

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        return "\n".join(self.messages)

    def has_error(self) -> bool:
        return any(o.style == Style.ERROR for o in self.outputs)

    def has_warning(self) -> bool:
        return any(o.style == Style.WARNING for o in self.outputs)

    def find(self, substring: str) -> list[OutputRecord]:
        return [o for o in self.outputs if substring in o.message]

    def count(self, style: Style) -> int:
        return sum(1 for o in self.outputs if o.style == style)
