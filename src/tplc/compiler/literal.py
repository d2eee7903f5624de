"""Render Python values as source literals."""

from __future__ import annotations

import dataclasses
import math
from typing import Any

import msgspec
from pydantic import BaseModel

from tplc.errors import EmbedError


def string_escape(text: str) -> str:
    """Escape ``text`` for use between single quotes in Python source."""
    return (
        str(text)
        .replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )


def _normalise(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="python")
    if isinstance(value, msgspec.Struct) or (
        dataclasses.is_dataclass(value) and not isinstance(value, type)
    ):
        return msgspec.to_builtins(value)
    return value


def _float(value: float) -> str:
    if math.isnan(value):
        return "float('nan')"
    if math.isinf(value):
        return "float('inf')" if value > 0 else "-float('inf')"
    return repr(value)


def to_literal(value: Any) -> str:
    """Return Python source that evaluates to ``value``.

    Raises:
        EmbedError: If ``value`` is cyclic or holds a type with no safe
            literal form.
    """
    return _literal(value, set())


def _literal(value: Any, path: set[int]) -> str:
    value = _normalise(value)

    if value is None or isinstance(value, bool):
        return repr(value)
    # Subclasses (enums, Markup) may repr as something that is not a literal.
    if isinstance(value, int):
        return repr(int(value))
    if isinstance(value, float):
        return _float(float(value))
    if isinstance(value, str):
        return repr(str(value))
    if isinstance(value, bytes):
        return repr(bytes(value))

    if not isinstance(value, (dict, list, tuple, set, frozenset)):
        raise EmbedError(f"Cannot embed value of type {type(value).__name__}")

    marker = id(value)
    if marker in path:
        raise EmbedError(f"Cannot embed cyclic {type(value).__name__}")
    path.add(marker)
    try:
        if isinstance(value, dict):
            items = ", ".join(
                f"{_literal(k, path)}: {_literal(v, path)}" for k, v in value.items()
            )
            return "{" + items + "}"

        items = ", ".join(_literal(item, path) for item in value)
        if isinstance(value, list):
            return "[" + items + "]"
        if isinstance(value, tuple):
            return "(" + items + ("," if len(value) == 1 else "") + ")"
        if isinstance(value, frozenset):
            return "frozenset({" + items + "})" if value else "frozenset()"
        return "{" + items + "}" if value else "set()"
    finally:
        path.discard(marker)
