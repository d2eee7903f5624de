"""Parser - splits template source into literal and directive events.

The parser is a single forward pass over the source. It never evaluates
directive contents; everything between markers is handed on as opaque text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterator, Protocol

from pydantic import ValidationError

from tplc.errors import ConfigurationError, TemplateSyntaxError
from tplc.parser.syntax import EventKind, Syntax


@dataclass(frozen=True)
class Position:
    """1-based line and column of a span in the template source."""

    lineno: int
    column: int


@dataclass(frozen=True)
class Event:
    """A classified span of template source."""

    kind: EventKind
    text: str
    position: Position


class Visitor(Protocol):
    def plain(self, text: str) -> Any: ...

    def compiler_control(self, code: str) -> Any: ...

    def write_escaped(self, code: str) -> Any: ...

    def write_unescaped(self, code: str) -> Any: ...

    def control(self, code: str) -> Any: ...


class _LineTracker:
    """Converts increasing offsets to positions without rescanning the source."""

    def __init__(self, source: str):
        self.source = source
        self.offset = 0
        self.lineno = 1
        self.line_start = 0

    def position(self, offset: int) -> Position:
        newlines = self.source.count("\n", self.offset, offset)
        if newlines:
            self.lineno += newlines
            self.line_start = self.source.rfind("\n", self.offset, offset) + 1
        self.offset = offset
        return Position(self.lineno, offset - self.line_start + 1)


def _opener_pattern(syntax: Syntax) -> re.Pattern[str]:
    # Longest first, so "<?=" wins over "<?" at the same offset.
    openers = sorted(syntax.openers(), key=len, reverse=True)
    return re.compile("|".join(re.escape(opener) for opener in openers))


def parse(
    source: str, syntax: Syntax | dict | None = None, filename: str | None = None
) -> Iterator[Event]:
    """Yield template events in source order.

    Args:
        source: Template source text.
        syntax: Marker table, or a partial mapping merged over the defaults.
        filename: Used only in error messages.

    Raises:
        TemplateSyntaxError: If a directive is opened but never closed.
        ConfigurationError: If the syntax table is invalid.
    """
    try:
        table = Syntax.coerce(syntax)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid syntax table: {e}") from e

    openers = table.openers()
    pattern = _opener_pattern(table)
    lines = _LineTracker(source)
    pos = 0

    while True:
        match = pattern.search(source, pos)
        if match is None:
            break

        start = match.start()
        if start > pos:
            yield Event(EventKind.PLAIN, source[pos:start], lines.position(pos))

        kind = openers[match.group()]
        closer = table.markers(kind)[1]
        end = source.find(closer, match.end())
        if end == -1:
            where = lines.position(start)
            raise TemplateSyntaxError(
                f"Unterminated directive, expected {closer!r}",
                kind=kind.value,
                lineno=where.lineno,
                column=where.column,
                filename=filename,
            )

        yield Event(kind, source[match.end() : end], lines.position(start))
        pos = end + len(closer)

    if pos < len(source):
        yield Event(EventKind.PLAIN, source[pos:], lines.position(pos))


def visit(
    source: str,
    visitor: Visitor,
    syntax: Syntax | dict | None = None,
    filename: str | None = None,
) -> None:
    """Dispatch each event of ``source`` to the matching visitor method."""
    for event in parse(source, syntax, filename):
        getattr(visitor, event.kind.value)(event.text)
