"""tplc CLI Entry Point

Usage:
    tplc render page.html --data data.yaml      # Render to stdout
    tplc render page.html --set name=World      # Inline values
    tplc build page.html -o page.py             # Write importable module
    tplc code page.html                         # Print render-function source
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Any, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from tplc._version import __version__
from tplc.compiler import compile_file, compile_file_code, compile_file_to_module
from tplc.compiler.files import parse_data
from tplc.errors import TemplateError, exit_with_error

log = logging.getLogger(__name__)

console = Console(stderr=True)

app = typer.Typer(help="Compile templates with compile-time Python directives.")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the tplc CLI.

    Log levels:
    - Normal: only warnings/errors shown
    - Verbose (-v): INFO level
    - Debug (TPLC_DEBUG=1): DEBUG level - compiler stages, cache hits, includes
    """
    debug = bool(os.environ.get("TPLC_DEBUG"))
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=console,
        show_time=verbose,
        show_path=debug,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    tplc_logger = logging.getLogger("tplc")
    tplc_logger.setLevel(level)
    tplc_logger.handlers = [handler]
    tplc_logger.propagate = False


def load_record(data: Optional[Path], values: Optional[List[str]]) -> dict[str, Any]:
    """Build the input record from a data file and ``key=value`` pairs."""
    record: dict[str, Any] = {}
    if data is not None:
        loaded = parse_data(data.read_text(encoding="utf-8"), str(data))
        if not isinstance(loaded, dict):
            exit_with_error(f"Data file must hold a mapping: {data}")
        record.update(loaded)

    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            exit_with_error(f"Expected key=value, got {item!r}")
        record[key] = value
    return record


@app.callback()
def main(
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Show progress."),
) -> None:
    setup_logging(verbose)


@app.command()
def version() -> None:
    """Show version and exit."""
    typer.echo(__version__)


@app.command()
def render(
    template: Path = typer.Argument(..., help="Template file to render."),
    data: Optional[Path] = typer.Option(None, "-d", "--data", help="JSON or YAML input record."),
    values: Optional[List[str]] = typer.Option(None, "-s", "--set", help="key=value pairs."),
    is_async: bool = typer.Option(False, "--async", help="Compile as an async template."),
    encoding: str = typer.Option("utf-8", "--encoding", help="Template file encoding."),
) -> None:
    """Compile TEMPLATE and print its output."""
    try:
        record = load_record(data, values)
    except (OSError, TemplateError) as e:
        exit_with_error(e)

    async def run() -> str:
        fn = await compile_file(template, is_async=is_async, encoding=encoding, cache={})
        result = fn(record)
        if is_async:
            result = await result
        return result

    try:
        output = asyncio.run(run())
    except TemplateError as e:
        exit_with_error(e)
    log.info("Rendered %s", template)
    typer.echo(output, nl=False)


@app.command()
def build(
    template: Path = typer.Argument(..., help="Template file to compile."),
    output: Optional[Path] = typer.Option(None, "-o", "--output", help="Write module to file."),
    module_type: str = typer.Option("import", "--module-type", help="import or importlib."),
    is_async: bool = typer.Option(False, "--async", help="Compile as an async template."),
) -> None:
    """Compile TEMPLATE into an importable Python module."""
    try:
        code = asyncio.run(
            compile_file_to_module(
                template, module_type=module_type, is_async=is_async, cache={}
            )
        )
    except TemplateError as e:
        exit_with_error(e)

    if output is None:
        typer.echo(code, nl=False)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(code, encoding="utf-8")
    log.info("Wrote %s", output)


@app.command()
def code(
    template: Path = typer.Argument(..., help="Template file to compile."),
    is_async: bool = typer.Option(False, "--async", help="Compile as an async template."),
) -> None:
    """Print the generated render-function source for TEMPLATE."""
    try:
        source = asyncio.run(compile_file_code(template, is_async=is_async, cache={}))
    except TemplateError as e:
        exit_with_error(e)
    typer.echo(source, nl=False)


if __name__ == "__main__":
    app()
