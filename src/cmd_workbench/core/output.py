"""Output sink contract used by command invokers.

Panels implement OutputSink; TextOutputSink is the plain in-memory version
used headless and in tests.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


NL = "\n"


@runtime_checkable
class OutputSink(Protocol):
    """Append-only destination for streamed command output."""

    def append(self, line: str) -> None:
        ...


@runtime_checkable
class ClearableOutputSink(OutputSink, Protocol):
    """Sink that can also be emptied at the start of a run."""

    def clear(self) -> str:
        ...


class TextOutputSink:
    """Buffer that terminates every appended line with a newline."""

    def __init__(self) -> None:
        self._parts: list[str] = []

    def append(self, line: str) -> None:
        self._parts.append(line + NL)

    def clear(self) -> str:
        """Empty the buffer and return what it held."""
        last = self.text
        self._parts.clear()
        return last

    @property
    def text(self) -> str:
        return "".join(self._parts)

    @property
    def appends(self) -> int:
        return len(self._parts)
