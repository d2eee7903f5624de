"""tplc - a two-stage template compiler.

Templates mix literal text with Python directives:

    <?= expr ?>    escaped output
    <?- expr ?>    unescaped output
    <? stmt ?>     runtime statement (``for x in xs:`` ... ``end``)
    <?: stmt ?>    compile-time statement (includes, inline templates, data)
    <?! text ?>    verbatim text

Compiling yields a plain render function of one input record.

Usage:
    import asyncio
    import tplc

    render = asyncio.run(tplc.compile("Hello <?= name ?>!"))
    render({"name": "World"})  # 'Hello World!'
"""

from tplc._version import __version__
from tplc.compiler import (
    CompilerContext,
    build_module,
    compile,
    compile_code,
    compile_file,
    compile_file_code,
    compile_file_to_module,
    compile_to_module,
    load,
)
from tplc.config import CompileOptions
from tplc.errors import (
    ConfigurationError,
    EmbedError,
    EvaluationError,
    ResolutionError,
    TemplateError,
    TemplateSyntaxError,
)
from tplc.parser import Event, EventKind, Syntax, parse, visit

__all__ = [
    "CompileOptions",
    "CompilerContext",
    "ConfigurationError",
    "EmbedError",
    "EvaluationError",
    "Event",
    "EventKind",
    "ResolutionError",
    "Syntax",
    "TemplateError",
    "TemplateSyntaxError",
    "__version__",
    "build_module",
    "compile",
    "compile_code",
    "compile_file",
    "compile_file_code",
    "compile_file_to_module",
    "compile_to_module",
    "load",
    "parse",
    "visit",
]
