"""Output abstraction layer."""

from .console import (
    ConsoleProtocol,
    MockConsole,
    RichConsole,
    Style,
)
from .diagnostics import print_diagnostics

__all__ = [
    "ConsoleProtocol",
    "MockConsole",
    "RichConsole",
    "Style",
    "print_diagnostics",
]
