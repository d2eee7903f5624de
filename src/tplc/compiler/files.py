"""File collaborator - asynchronous reads and path resolution."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Any

import msgspec
import yaml

from tplc.errors import ConfigurationError, ResolutionError

log = logging.getLogger(__name__)

DATA_SUFFIXES = {".json", ".yaml", ".yml"}


def resolve_path(request: str | os.PathLike, origin: str | None, purpose: str = "include") -> str:
    """Resolve ``request`` to an absolute, normalised path.

    Relative requests are resolved against the directory of ``origin``.

    Raises:
        ConfigurationError: If ``request`` is relative and ``origin`` is unknown.
    """
    path = os.fspath(request)
    if not os.path.isabs(path):
        if not origin:
            raise ConfigurationError(
                f"The filename option is required for relative {purpose}s: {path!r}"
            )
        path = os.path.join(os.path.dirname(origin), path)
    return os.path.abspath(path)


async def read_text(path: str, encoding: str = "utf-8") -> str:
    """Read a text file without blocking the event loop.

    Raises:
        ResolutionError: If the file cannot be read or decoded.
    """
    log.debug("Reading %s", path)
    try:
        return await asyncio.to_thread(Path(path).read_text, encoding=encoding)
    except (OSError, UnicodeDecodeError) as e:
        raise ResolutionError(path, getattr(e, "strerror", None) or str(e)) from e


def parse_data(text: str, path: str) -> Any:
    """Decode JSON or YAML text according to the suffix of ``path``."""
    suffix = Path(path).suffix.lower()
    if suffix not in DATA_SUFFIXES:
        raise ConfigurationError(
            f"Unsupported data file {path!r}, expected one of {sorted(DATA_SUFFIXES)}"
        )
    try:
        if suffix == ".json":
            return msgspec.json.decode(text)
        return yaml.safe_load(text)
    except (msgspec.DecodeError, yaml.YAMLError) as e:
        raise ResolutionError(path, f"invalid {suffix[1:].upper()}: {e}") from e


async def read_data(path: str, encoding: str = "utf-8") -> Any:
    return parse_data(await read_text(path, encoding), path)
