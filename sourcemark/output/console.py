"""Console output abstraction.

Plugins and services print through ConsoleProtocol and never touch Rich
directly. RichConsole renders to the terminal, MockConsole records lines for
tests, and PrefixedConsole tags every line with the plugin name while
applying the ``silent`` and ``debug`` options.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Protocol

__all__ = [
    "ConsoleProtocol",
    "MockConsole",
    "OutputRecord",
    "PrefixedConsole",
    "RichConsole",
    "Style",
]


class Style(Enum):
    """Text styles for console output."""

    DEFAULT = auto()
    SUCCESS = auto()
    ERROR = auto()
    WARNING = auto()
    INFO = auto()
    DEBUG = auto()
    DIM = auto()
    HEADER = auto()

    def __str__(self) -> str:
        return self.name.lower()


# Leading label of each leveled message, shared by every backend.
LABELS: dict[Style, str] = {
    Style.SUCCESS: "OK",
    Style.ERROR: "error:",
    Style.WARNING: "warning:",
    Style.INFO: "info:",
    Style.DEBUG: "debug:",
}

_RICH_STYLES: dict[Style, str] = {
    Style.DEFAULT: "",
    Style.SUCCESS: "green",
    Style.ERROR: "red bold",
    Style.WARNING: "yellow",
    Style.INFO: "cyan",
    Style.DEBUG: "dim",
    Style.DIM: "dim",
    Style.HEADER: "blue bold",
}


class ConsoleProtocol(Protocol):
    """Interface for styled console output."""

    def print(self, message: str, style: Style = Style.DEFAULT) -> None: ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def debug(self, message: str) -> None: ...

    def header(self, message: str) -> None: ...


class RichConsole:
    """Console backed by Rich.

    Messages are rendered as Text objects, so file names or CLI output that
    happen to contain square brackets are never read as Rich markup.

    Args:
        stderr: Write to stderr, so bundler stdout stays clean.
    """

    def __init__(self, *, stderr: bool = False) -> None:
        # Import Rich lazily to avoid import-time dependency
        from rich.console import Console
        from rich.text import Text

        self._console = Console(stderr=stderr, highlight=False)
        self._text = Text

    def _leveled(self, style: Style, message: str) -> None:
        line = self._text(LABELS[style], style=_RICH_STYLES[style])
        line.append(" ")
        line.append(message, style="dim" if style is Style.DEBUG else "")
        self._console.print(line)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self._console.print(self._text(message, style=_RICH_STYLES.get(style, "")))

    def success(self, message: str) -> None:
        self._leveled(Style.SUCCESS, message)

    def error(self, message: str) -> None:
        self._leveled(Style.ERROR, message)

    def warning(self, message: str) -> None:
        self._leveled(Style.WARNING, message)

    def info(self, message: str) -> None:
        self._leveled(Style.INFO, message)

    def debug(self, message: str) -> None:
        self._leveled(Style.DEBUG, message)

    def header(self, message: str) -> None:
        self._console.print()
        self._console.print(self._text(message, style=_RICH_STYLES[Style.HEADER]))


class PrefixedConsole:
    """Wrap another console with a message prefix and verbosity options.

    ``silent`` drops everything except errors; ``debug`` enables debug
    messages, which are dropped otherwise.
    """

    def __init__(
        self,
        inner: ConsoleProtocol,
        *,
        prefix: str,
        silent: bool = False,
        debug: bool = False,
    ) -> None:
        self._inner = inner
        self._prefix = prefix
        self._silent = silent
        self._debug = debug

    def _fmt(self, message: str) -> str:
        return f"{self._prefix} {message}"

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        if not self._silent:
            self._inner.print(self._fmt(message), style)

    def success(self, message: str) -> None:
        if not self._silent:
            self._inner.success(self._fmt(message))

    def error(self, message: str) -> None:
        self._inner.error(self._fmt(message))

    def warning(self, message: str) -> None:
        if not self._silent:
            self._inner.warning(self._fmt(message))

    def info(self, message: str) -> None:
        if not self._silent:
            self._inner.info(self._fmt(message))

    def debug(self, message: str) -> None:
        if self._debug and not self._silent:
            self._inner.debug(self._fmt(message))

    def header(self, message: str) -> None:
        if not self._silent:
            self._inner.header(self._fmt(message))


@dataclass
class OutputRecord:
    """One captured line: the rendered text (label included) and its style."""

    message: str
    style: Style


def _no_records() -> list[OutputRecord]:
    return []


@dataclass
class MockConsole:
    """Console that records lines instead of printing them."""

    outputs: list[OutputRecord] = field(default_factory=_no_records)

    def _leveled(self, style: Style, message: str) -> None:
        self.outputs.append(OutputRecord(f"{LABELS[style]} {message}", style))

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.outputs.append(OutputRecord(message, style))

    def success(self, message: str) -> None:
        self._leveled(Style.SUCCESS, message)

    def error(self, message: str) -> None:
        self._leveled(Style.ERROR, message)

    def warning(self, message: str) -> None:
        self._leveled(Style.WARNING, message)

    def info(self, message: str) -> None:
        self._leveled(Style.INFO, message)

    def debug(self, message: str) -> None:
        self._leveled(Style.DEBUG, message)

    def header(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.HEADER))

    # Assertion helpers

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        return "\n".join(self.messages)

    def has_error(self) -> bool:
        return self.count(Style.ERROR) > 0

    def has_warning(self) -> bool:
        return self.count(Style.WARNING) > 0

    def find(self, substring: str) -> list[OutputRecord]:
        """Records whose text contains substring."""
        return [o for o in self.outputs if substring in o.message]

    def count(self, style: Style) -> int:
        return sum(1 for o in self.outputs if o.style == style)
