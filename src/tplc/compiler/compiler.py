"""Compiler - turns template source into render-function source.

Compilation happens in two stages:

1. Parser events are translated into a *compiler program*: an ``async``
   function whose statements are the template's compile-time directives,
   interleaved with ``write(__x[i])`` calls that emit runtime code.
2. The compiler program runs once in the sandbox. Its writes accumulate the
   body of the final render function.

Runtime code passes through the fragment table ``__x`` by index, so it is
never re-escaped as a string literal inside the compiler program.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Callable, Mapping

from tplc.compiler import sandbox
from tplc.compiler.files import read_text
from tplc.compiler.packaging import build_module, load
from tplc.compiler.services import BINDER, TEMPLATE_END, Composer, template_begin
from tplc.compiler.writer import CodeWriter
from tplc.config import CompileOptions, resolve_options
from tplc.errors import EvaluationError, TemplateError, TemplateSyntaxError
from tplc.parser import Event, parse

log = logging.getLogger(__name__)

COMPILER_ENTRY = "__compile__"

Options = CompileOptions | Mapping[str, Any] | None


class ProgramBuilder:
    """Translates parser events into compiler-program source.

    Adjacent output (literal text and ``write_*`` expressions) is coalesced
    into a single ``__r += ...`` fragment, flushed whenever a control
    directive interrupts it.
    """

    def __init__(self) -> None:
        self.fragments: list[str] = []
        self.program = CodeWriter(level=1)
        self.program.line("pass")
        self._parts: list[str] = []

    def external(self, code: str) -> str:
        index = len(self.fragments)
        self.fragments.append(code)
        return f"__x[{index}]"

    def flush(self) -> None:
        if self._parts:
            self.program.line(f"write({self.external('__r += ' + ' + '.join(self._parts))})")
            self._parts = []

    def feed(self, event: Event) -> None:
        getattr(self, event.kind.value)(event.text)

    def plain(self, text: str) -> None:
        self._parts.append(repr(text))

    def write_escaped(self, code: str) -> None:
        self._parts.append(f"__e({code.strip()})")

    def write_unescaped(self, code: str) -> None:
        self._parts.append(f"str({code.strip()})")

    def control(self, code: str) -> None:
        self.flush()
        self.program.line(f"write({self.external(code)})")

    def compiler_control(self, code: str) -> None:
        self.flush()
        self.program.write(code, floor=1)

    def finish(self) -> str:
        self.flush()
        if self.program.level != 1:
            raise TemplateSyntaxError("Unclosed compile-time block at end of template")
        return f"async def {COMPILER_ENTRY}():\n" + self.program.getvalue()


def _build_program(source: str, options: CompileOptions) -> ProgramBuilder:
    builder = ProgramBuilder()
    for event in parse(source, options.syntax, options.filename):
        try:
            builder.feed(event)
        except TemplateSyntaxError as e:
            raise TemplateSyntaxError(
                e.message,
                kind=event.kind.value,
                lineno=event.position.lineno,
                column=event.position.column,
                filename=options.filename,
            ) from None
    return builder


async def compile_code(source: str, options: Options = None, **overrides: Any) -> str:
    """Compile template source into render-function source.

    Raises:
        TemplateSyntaxError: For malformed directives or unbalanced blocks.
        ConfigurationError: For invalid options or relative paths without a
            filename.
        ResolutionError: If an included or loaded file cannot be read.
        EvaluationError: If compile-time code fails.
    """
    opts = resolve_options(options, **overrides)
    label = opts.filename or "<template>"
    log.debug("Compiling %s", label)

    builder = _build_program(source, opts)
    program = builder.finish()

    composer = Composer(opts, builder.fragments, compile_file_code)
    context = composer.context()

    entry = None
    try:
        if opts.extend is not None:
            opts.extend(context)
        entry = sandbox.run(program, context.bindings(), COMPILER_ENTRY, label=label)
        await entry()
        composer.close()
    except TemplateSyntaxError as e:
        if e.filename is None:
            raise TemplateSyntaxError(e.message, kind=e.kind, filename=label) from e
        raise
    except TemplateError:
        raise
    except Exception as e:
        raise EvaluationError(
            f"Compile-time code failed: {type(e).__name__}: {e}", filename=label
        ) from e
    finally:
        if entry is not None:
            sandbox.release(entry)

    code = (
        composer.hoisted.getvalue()
        + BINDER
        + template_begin(opts.is_async)
        + composer.body.getvalue()
        + TEMPLATE_END
    )
    log.debug(
        "Compiled %s: %d fragments, %d bytes of source",
        label,
        len(builder.fragments),
        len(code),
    )
    return code


async def _compile_path(path: str, options: CompileOptions) -> str:
    source = await read_text(path, options.encoding)
    return await compile_code(source, options.merge({"filename": path}))


async def compile_file_code(
    filename: str | os.PathLike, options: Options = None, **overrides: Any
) -> str:
    """Compile a template file into render-function source.

    With a ``cache``, concurrent compilations of the same resolved path share
    one task, so each file is read and compiled at most once per cache.
    """
    opts = resolve_options(options, **overrides)
    path = os.path.abspath(os.fspath(filename))
    cache = opts.cache

    if cache is None:
        return await _compile_path(path, opts)

    pending = cache.get(path)
    if pending is not None:
        log.debug("Cache hit for %s", path)
        return await pending

    log.debug("Cache miss for %s", path)
    task = asyncio.ensure_future(_compile_path(path, opts))
    cache[path] = task
    return await task


async def compile(
    source: str, options: Options = None, **overrides: Any
) -> Callable[..., Any]:
    """Compile template source into a render function."""
    return load(await compile_code(source, options, **overrides))


async def compile_file(
    filename: str | os.PathLike, options: Options = None, **overrides: Any
) -> Callable[..., Any]:
    """Compile a template file into a render function."""
    return load(await compile_file_code(filename, options, **overrides))


async def compile_to_module(source: str, options: Options = None, **overrides: Any) -> str:
    """Compile template source into importable module text."""
    opts = resolve_options(options, **overrides)
    return build_module(await compile_code(source, opts), opts.module_type)


async def compile_file_to_module(
    filename: str | os.PathLike, options: Options = None, **overrides: Any
) -> str:
    """Compile a template file into importable module text."""
    opts = resolve_options(options, **overrides)
    return build_module(await compile_file_code(filename, opts), opts.module_type)
