"""Packaging - turns artifact source into a callable or a module."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

from jinja2 import Environment, FileSystemLoader

from tplc.compiler import sandbox
from tplc.compiler.services import ARTIFACT_NAME
from tplc.errors import ConfigurationError
from tplc.runtime import BINDINGS

RUNTIME_MODULE = "tplc.runtime"

MODULE_TYPES = ("import", "importlib")


def load(code: str) -> Callable[..., Any]:
    """Instantiate artifact source with only the runtime helpers in scope."""
    return sandbox.run(code, BINDINGS, ARTIFACT_NAME, label="artifact")


def _get_env() -> Environment:
    templates_dir = Path(__file__).parent.parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(templates_dir)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def build_module(code: str, module_type: str = "import") -> str:
    """Wrap artifact source as importable module text exporting ``render``.

    Raises:
        ConfigurationError: If ``module_type`` is not a known convention.
    """
    if module_type not in MODULE_TYPES:
        raise ConfigurationError(
            f"Unknown module type {module_type!r}, expected one of {list(MODULE_TYPES)}"
        )
    tmpl = _get_env().get_template("module.py.j2")
    return tmpl.render(
        module_type=module_type,
        runtime=RUNTIME_MODULE,
        runtime_literal=repr(RUNTIME_MODULE),
        name=ARTIFACT_NAME,
        code=code,
    )
