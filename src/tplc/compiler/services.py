"""Composition services - privileged operations for compile-time code.

Everything here runs while a template is being compiled, never while it is
rendered. The operations write into the template body accumulator, which
becomes the body of the compiled render function.
"""

from __future__ import annotations

import asyncio
import keyword
import logging
import os
from typing import Any, Awaitable, Callable, Mapping

from tplc.compiler.files import read_data, resolve_path
from tplc.compiler.literal import string_escape, to_literal
from tplc.compiler.writer import CodeWriter
from tplc.config import CompileOptions
from tplc.errors import ConfigurationError, TemplateSyntaxError

log = logging.getLogger(__name__)

ARTIFACT_NAME = "__template__"

BINDER = "@__t\n"

TEMPLATE_END = "    return __r\n"

CompileFile = Callable[[str, CompileOptions], Awaitable[str]]


def template_begin(is_async: bool = False, name: str = ARTIFACT_NAME) -> str:
    """Header of a render function: signature and empty result."""
    qualifier = "async " if is_async else ""
    return f"{qualifier}def {name}(locals):\n    __r = ''\n"


def bind_template(name: str, helper: str) -> str:
    """Bind a hoisted render function under the calling template's record."""
    return f"{name} = __t({helper}, globals())"


def _check_name(name: str) -> str:
    if not isinstance(name, str) or not name.isidentifier() or keyword.iskeyword(name):
        raise ValueError(f"Not a valid binding name: {name!r}")
    return name


class CompilerContext:
    """Privileged bindings visible to compile-time code.

    Every attribute becomes a name inside the compiler program, so host
    extensions add capabilities simply by setting attributes.
    """

    def __init__(self, **bindings: Any):
        self.__dict__.update(bindings)

    def bindings(self) -> dict[str, Any]:
        return dict(vars(self))

    def __repr__(self) -> str:
        return f"CompilerContext({', '.join(sorted(vars(self)))})"


class TemplateBlock:
    """Context manager that diverts body writes into a hoisted render function.

    The nested function is defined at module level, never inside the
    enclosing one, so it cannot capture the enclosing template's locals.
    """

    def __init__(self, composer: "Composer", name: str, options: Mapping[str, Any]):
        unknown = set(options) - {"async"}
        if unknown:
            raise ConfigurationError(f"Unknown inline template options: {sorted(unknown)}")
        self.composer = composer
        self.name = _check_name(name)
        self.is_async = bool(options.get("async", False))
        self._outer: CodeWriter | None = None

    def __enter__(self) -> "TemplateBlock":
        self._outer = self.composer.body
        self.composer.body = CodeWriter(level=1)
        self.composer.floors.append(1)
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        composer = self.composer
        inner = composer.body
        composer.body = self._outer
        composer.floors.pop()
        if exc_type is not None:
            return False

        if inner.level != 1:
            raise TemplateSyntaxError(f"Unclosed block in inline template {self.name!r}")
        helper = composer.helper_name()
        composer.hoisted.raw(template_begin(self.is_async, helper))
        composer.hoisted.raw(inner.getvalue())
        composer.hoisted.raw(TEMPLATE_END)
        composer.body.line(bind_template(self.name, helper))
        return False


class Composer:
    """Owns the body accumulator of one compilation and the services writing to it."""

    def __init__(
        self,
        options: CompileOptions,
        fragments: list[str],
        compile_file: CompileFile,
    ):
        self.options = options
        self.fragments = fragments
        self.body = CodeWriter(level=1)
        self.floors = [1]
        # Module-level definitions emitted ahead of the render function.
        self.hoisted = CodeWriter()
        self._compile_file = compile_file
        self._helpers = 0

    def helper_name(self) -> str:
        self._helpers += 1
        return f"__tplc_{self._helpers}"

    def write(self, code: str) -> None:
        """Inject raw source into the body at the current position."""
        self.body.write(str(code), floor=self.floors[-1])

    def output(self, text: str) -> None:
        """Append literal text to the render result."""
        self.body.line(f"__r += {str(text)!r}")

    def embed_object(self, name: str, data: Any) -> None:
        self.body.line(f"{_check_name(name)} = {to_literal(data)}")

    async def load_data(self, request: str | os.PathLike) -> Any:
        """Load a JSON or YAML file at compile time."""
        path = resolve_path(request, self.options.filename, "data file")
        return await read_data(path, self.options.encoding)

    async def embed_file(self, name: str, request: str | os.PathLike) -> None:
        _check_name(name)
        self.embed_object(name, await self.load_data(request))

    async def include(
        self,
        name: str,
        request: str | os.PathLike,
        overrides: Mapping[str, Any] | None = None,
    ) -> None:
        """Compile another template file and bind it as ``name``."""
        _check_name(name)
        body = self.body
        path = resolve_path(request, self.options.filename)
        log.debug("Including %s as %s", path, name)

        inherited = CompileOptions(
            syntax=self.options.syntax,
            extend=self.options.extend,
            encoding=self.options.encoding,
            cache=self.options.cache,
        )
        code = await self._compile_file(path, inherited.merge(overrides))

        # The included artifact may carry hoisted helpers of its own, so it
        # is wrapped in a factory that keeps those names private.
        helper = self.helper_name()
        self.hoisted.line(f"def {helper}():")
        self.hoisted.level += 1
        self.hoisted.raw(code)
        self.hoisted.line(f"return {ARTIFACT_NAME}")
        self.hoisted.level -= 1
        self.hoisted.line(f"{helper} = {helper}()")
        body.line(bind_template(name, helper))

    async def include_all(self, mapping: Mapping[str, Any]) -> None:
        """Run several includes concurrently.

        Each value is either a request or a ``[request, overrides]`` pair.
        """
        tasks = []
        for name, value in mapping.items():
            if isinstance(value, (list, tuple)):
                tasks.append(self.include(name, *value))
            else:
                tasks.append(self.include(name, value))
        await asyncio.gather(*tasks)

    def template(
        self,
        name: str,
        options: Mapping[str, Any] | Callable[[], Any] | None = None,
        body: Callable[[], Any] | None = None,
    ) -> TemplateBlock | None:
        """Declare an inline nested template.

        With ``body``, the body is invoked immediately between the nested
        header and footer. Without it, a context manager is returned.
        """
        if body is None and callable(options):
            body, options = options, None

        block = TemplateBlock(self, name, options or {})
        if body is None:
            return block
        with block:
            body()
        return None

    def close(self) -> None:
        if self.body.level != 1:
            raise TemplateSyntaxError("Unclosed block at end of template")

    def context(self) -> CompilerContext:
        filename = self.options.filename
        dirname = (os.path.dirname(filename) or ".") if filename else None
        return CompilerContext(
            include=self.include,
            include_all=self.include_all,
            template=self.template,
            embed_object=self.embed_object,
            embed_file=self.embed_file,
            load_data=self.load_data,
            write=self.write,
            output=self.output,
            string_escape=string_escape,
            literal=to_literal,
            filename=filename,
            dirname=dirname,
            **{"__x": self.fragments},
        )
