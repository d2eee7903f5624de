"""Tests for literal rendering used by embed_object."""

import ast
import dataclasses
import enum

import pytest
from pydantic import BaseModel

from tplc import EmbedError
from tplc.compiler.literal import string_escape, to_literal


class Color(enum.IntEnum):
    RED = 1


class Point(BaseModel):
    x: int
    y: int


@dataclasses.dataclass
class Box:
    label: str
    size: float


def test_nested_builtins_round_trip_through_literal_eval():
    value = {"a": [1, 2.5, None, True], "b": ("x",), "c": {"k": b"\x00"}}
    assert ast.literal_eval(to_literal(value)) == value


def test_sets_and_empty_containers():
    assert to_literal(set()) == "set()"
    assert to_literal(frozenset()) == "frozenset()"
    assert to_literal({3}) == "{3}"
    assert to_literal(()) == "()"


def test_non_finite_floats_are_expressions():
    assert to_literal(float("inf")) == "float('inf')"
    assert to_literal(float("-inf")) == "-float('inf')"
    assert to_literal(float("nan")) == "float('nan')"


def test_int_subclasses_render_as_plain_ints():
    assert to_literal(Color.RED) == "1"


def test_models_and_dataclasses_are_converted():
    assert ast.literal_eval(to_literal(Point(x=1, y=2))) == {"x": 1, "y": 2}
    assert ast.literal_eval(to_literal(Box("a", 1.5))) == {"label": "a", "size": 1.5}


def test_cyclic_data_is_rejected():
    data = []
    data.append(data)
    with pytest.raises(EmbedError):
        to_literal(data)


def test_shared_but_acyclic_references_are_fine():
    shared = [1]
    assert to_literal([shared, shared]) == "[[1], [1]]"


def test_unsupported_types_are_rejected():
    with pytest.raises(EmbedError):
        to_literal({"when": object()})


def test_string_escape_fits_single_quotes():
    text = "a'b\\c\nd"
    assert ast.literal_eval("'" + string_escape(text) + "'") == text
