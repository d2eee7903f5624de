"""Directive syntax table."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class EventKind(str, Enum):
    """Kinds of spans found in template source."""

    PLAIN = "plain"
    COMPILER_CONTROL = "compiler_control"
    WRITE_ESCAPED = "write_escaped"
    WRITE_UNESCAPED = "write_unescaped"
    CONTROL = "control"


Markers = tuple[str, str]


class Syntax(BaseModel):
    """Open/close markers for each directive kind.

    ``plain`` markers delimit verbatim text: whatever sits between them is
    emitted as literal output, which is the only way to write the other
    markers into a template. Text outside any directive is plain as well.
    """

    plain: Markers = ("<?!", "?>")
    compiler_control: Markers = ("<?:", "?>")
    write_escaped: Markers = ("<?=", "?>")
    write_unescaped: Markers = ("<?-", "?>")
    control: Markers = ("<?", "?>")

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def _check_markers(self) -> "Syntax":
        seen: dict[str, str] = {}
        for kind in EventKind:
            opener, closer = getattr(self, kind.value)
            if not opener or not closer:
                raise ValueError(f"Empty marker for {kind.value} directives")
            if opener in seen:
                raise ValueError(
                    f"Open marker {opener!r} is shared by "
                    f"{seen[opener]} and {kind.value} directives"
                )
            seen[opener] = kind.value
        return self

    def markers(self, kind: EventKind) -> Markers:
        return getattr(self, kind.value)

    def openers(self) -> dict[str, EventKind]:
        """Map each open marker to its directive kind."""
        return {self.markers(kind)[0]: kind for kind in EventKind}

    @classmethod
    def coerce(cls, value: Any) -> "Syntax":
        """Build a table from ``None``, a ``Syntax`` or a partial mapping."""
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        return cls.model_validate(dict(value))


DEFAULT_SYNTAX = Syntax()
