"""tplc Parser - classifies template source into directive events."""

from tplc.parser.parser import Event, Position, Visitor, parse, visit
from tplc.parser.syntax import DEFAULT_SYNTAX, EventKind, Syntax

__all__ = [
    "DEFAULT_SYNTAX",
    "Event",
    "EventKind",
    "Position",
    "Syntax",
    "Visitor",
    "parse",
    "visit",
]
