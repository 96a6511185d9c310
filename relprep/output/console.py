"""Console output abstraction.

Release preparation reports progress on an informational channel (stdout)
and failures, with their hints, on an error channel (stderr). Services write
through ConsoleProtocol so they never depend on Rich directly, and tests
capture output with MockConsole.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Protocol

__all__ = [
    "Style",
    "ConsoleProtocol",
    "RichConsole",
    "MockConsole",
    "OutputRecord",
]


class Style(Enum):
    """Text styles for console output."""

    DEFAULT = auto()
    SUCCESS = auto()
    ERROR = auto()
    HINT = auto()
    DIM = auto()

    def __str__(self) -> str:
        return self.name.lower()


class ConsoleProtocol(Protocol):
    """Line-oriented output with an informational and an error channel."""

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        """Print a message on the informational channel."""
        ...

    def success(self, message: str) -> None:
        """Report a completed step (informational channel)."""
        ...

    def error(self, message: str) -> None:
        """Report a failure on the error channel."""
        ...

    def hint(self, message: str) -> None:
        """Suggest a remedy for the failure just reported (error channel)."""
        ...


class RichConsole:
    """Console implementation using Rich; errors go to stderr.

    With `progress_to_stderr`, the informational channel is sent to stderr
    too, leaving stdout free for machine-readable output.
    """

    def __init__(self, *, progress_to_stderr: bool = False) -> None:
        # Import Rich lazily to avoid import-time dependency
        from rich.console import Console

        self._out = Console(stderr=progress_to_stderr)
        self._err = Console(stderr=True)
        self._style_map = {
            Style.DEFAULT: "",
            Style.SUCCESS: "green",
            Style.ERROR: "red bold",
            Style.HINT: "dim",
            Style.DIM: "dim",
        }

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        rich_style = self._style_map.get(style, "")
        if rich_style:
            self._out.print(message, style=rich_style, highlight=False, markup=False)
        else:
            self._out.print(message, highlight=False, markup=False)

    def success(self, message: str) -> None:
        self._out.print(f"[green]OK[/green] {_escape(message)}", highlight=False)

    def error(self, message: str) -> None:
        self._err.print(f"[red bold]error:[/red bold] {_escape(message)}", highlight=False)

    def hint(self, message: str) -> None:
        self._err.print(f"hint: {message}", style="dim", highlight=False, markup=False)


def _escape(text: str) -> str:
    from rich.markup import escape

    return escape(text)


@dataclass
class OutputRecord:
    """A single output record for MockConsole."""

    message: str
    style: Style


def _empty_outputs() -> list[OutputRecord]:
    return []


@dataclass
class MockConsole:
    """Console implementation that captures output for testing."""

    outputs: list[OutputRecord] = field(default_factory=_empty_outputs)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.outputs.append(OutputRecord(message, style))

    def success(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"OK {message}", Style.SUCCESS))

    def error(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"error: {message}", Style.ERROR))

    def hint(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"hint: {message}", Style.HINT))

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        return "\n".join(self.messages)

    @property
    def errors(self) -> list[str]:
        return [o.message for o in self.outputs if o.style == Style.ERROR]

    def has_error(self) -> bool:
        return any(o.style == Style.ERROR for o in self.outputs)

    def has_success(self) -> bool:
        return any(o.style == Style.SUCCESS for o in self.outputs)

    def find(self, substring: str) -> list[OutputRecord]:
        return [o for o in self.outputs if substring in o.message]
