"""Runtime helpers - the only names visible to compiled templates.

Compiled templates depend on nothing else: ``escape`` is bound as ``__e``
and ``template`` as ``__t``. Neither can reach the filesystem or any
compile-time capability.
"""

from __future__ import annotations

import functools
import types
from typing import Any, Callable, Mapping

from markupsafe import escape as _markup_escape


def escape(value: Any) -> str:
    """HTML-escape ``value`` and return plain ``str``.

    Objects implementing ``__html__`` are trusted as already safe.
    """
    return str(_markup_escape(value))


def template(
    fn: Callable[..., Any], parent: Mapping[str, Any] | None = None
) -> Callable[..., Any]:
    """Bind a generated render function to its input record.

    Every call re-creates ``fn`` over a fresh global namespace: the globals
    it was defined under, then ``parent``, overlaid with the record.
    ``parent`` is the namespace of the template that binds ``fn``, so free
    names resolve against the record first and the enclosing template's
    record after that. Nothing survives between calls.
    """
    fn = getattr(fn, "__wrapped__", fn)

    @functools.wraps(fn)
    def render(locals: Mapping[str, Any] | None = None, /, **values: Any) -> Any:
        record = dict(locals or {})
        record.update(values)
        namespace = dict(fn.__globals__)
        if parent is not None:
            namespace.update(parent)
        namespace.update(record)
        bound = types.FunctionType(
            fn.__code__, namespace, fn.__name__, fn.__defaults__, fn.__closure__
        )
        return bound(record)

    return render


BINDINGS: dict[str, Any] = {"__e": escape, "__t": template}
