"""tplc Compiler - turns template source into render functions."""

from tplc.compiler.compiler import (
    ProgramBuilder,
    compile,
    compile_code,
    compile_file,
    compile_file_code,
    compile_file_to_module,
    compile_to_module,
)
from tplc.compiler.packaging import MODULE_TYPES, build_module, load
from tplc.compiler.services import CompilerContext

__all__ = [
    "MODULE_TYPES",
    "CompilerContext",
    "ProgramBuilder",
    "build_module",
    "compile",
    "compile_code",
    "compile_file",
    "compile_file_code",
    "compile_file_to_module",
    "compile_to_module",
    "load",
]
