"""Sandbox - executes generated source against an explicit set of bindings.

Nothing from the caller's scope leaks in: the code runs in a brand-new
namespace holding only builtins and the names passed in ``bindings``.

Generated source is registered with ``linecache`` so tracebacks can show it.
The entry lives as long as the object ``run`` returned, or until
``release`` is called for it.
"""

from __future__ import annotations

import builtins
import itertools
import linecache
import logging
import weakref
from typing import Any, Mapping

from tplc.errors import EvaluationError

log = logging.getLogger(__name__)

_counter = itertools.count()

_finalizers: "weakref.WeakKeyDictionary[Any, weakref.finalize]" = weakref.WeakKeyDictionary()


def _register_source(source: str, label: str) -> str:
    """Make generated source visible to tracebacks."""
    filename = f"<tplc:{label}#{next(_counter)}>"
    linecache.cache[filename] = (
        len(source),
        None,
        source.splitlines(keepends=True),
        filename,
    )
    return filename


def _forget(filename: str) -> None:
    linecache.cache.pop(filename, None)


def release(obj: Any) -> None:
    """Drop the traceback source registered for ``obj`` right away."""
    finalizer = _finalizers.pop(obj, None)
    if finalizer is not None:
        finalizer()


def run(
    source: str,
    bindings: Mapping[str, Any],
    entry: str,
    label: str = "template",
) -> Any:
    """Execute ``source`` and return the object it binds to ``entry``.

    Args:
        source: Python module source, typically a single function definition.
        bindings: The complete set of names visible to ``source``.
        entry: Name to fetch from the namespace after execution.
        label: Shown in tracebacks and error messages.

    Raises:
        EvaluationError: If ``source`` is not valid Python or fails to load.
    """
    filename = _register_source(source, label)
    try:
        code = compile(source, filename, "exec", dont_inherit=True)
    except SyntaxError as e:
        _forget(filename)
        lines = source.splitlines()
        offending = lines[e.lineno - 1].strip() if e.lineno and e.lineno <= len(lines) else ""
        raise EvaluationError(
            f"Generated code is not valid Python: {e.msg} at line {e.lineno}: {offending!r}",
            filename=label,
        ) from e

    namespace: dict[str, Any] = {"__builtins__": builtins}
    namespace.update(bindings)
    log.debug("Executing %s with bindings %s", filename, sorted(bindings))
    try:
        exec(code, namespace)
    except BaseException:
        _forget(filename)
        raise

    try:
        result = namespace[entry]
    except KeyError as e:
        _forget(filename)
        raise EvaluationError(f"Generated code did not define {entry!r}", filename=label) from e

    _finalizers[result] = weakref.finalize(result, _forget, filename)
    return result
