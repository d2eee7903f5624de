"""Compile options."""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any, Callable, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from tplc.errors import ConfigurationError
from tplc.parser.syntax import Syntax

ModuleType = Literal["import", "importlib"]


class CompileOptions(BaseModel):
    """Options recognised by every compile entry point.

    ``async`` is a keyword, so the field is ``is_async`` with ``async`` as
    its alias; both spellings are accepted.
    """

    syntax: Syntax = Field(default_factory=Syntax)
    filename: str | None = None
    encoding: str = "utf-8"
    is_async: bool = Field(False, alias="async")
    extend: Callable[..., Any] | None = None
    cache: Any = None
    module_type: ModuleType = "import"

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    @field_validator("filename", mode="before")
    @classmethod
    def _fspath(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("cache")
    @classmethod
    def _check_cache(cls, value: Any) -> Any:
        # Kept by identity: the whole include graph shares one mapping.
        if value is not None and not isinstance(value, MutableMapping):
            raise ValueError("cache must be a mutable mapping")
        return value

    def merge(self, overrides: Mapping[str, Any] | None = None) -> "CompileOptions":
        """Return a copy with ``overrides`` applied and re-validated."""
        if not overrides:
            return self
        data = {name: getattr(self, name) for name in type(self).model_fields}
        return resolve_options(data, **overrides)


def resolve_options(
    options: CompileOptions | Mapping[str, Any] | None = None,
    **overrides: Any,
) -> CompileOptions:
    """Normalise the options accepted by the public API.

    Raises:
        ConfigurationError: For unknown options or invalid values.
    """
    if isinstance(options, CompileOptions):
        return options.merge(overrides)

    data = dict(options or {})
    data.update(overrides)
    if "async" in data:
        data["is_async"] = data.pop("async")
    try:
        return CompileOptions.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid compile options: {e}") from e
