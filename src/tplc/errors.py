"""tplc Exceptions

Error taxonomy shared by the parser, the compiler and the CLI.
"""

from __future__ import annotations

from typing import NoReturn

import typer


class TemplateError(Exception):
    """Base exception for all tplc errors."""

    pass


class TemplateSyntaxError(TemplateError):
    """Raised for malformed directives or unbalanced blocks."""

    def __init__(
        self,
        message: str,
        *,
        kind: str | None = None,
        lineno: int | None = None,
        column: int | None = None,
        filename: str | None = None,
    ):
        self.message = message
        self.kind = kind
        self.lineno = lineno
        self.column = column
        self.filename = filename
        super().__init__(self._format())

    def _format(self) -> str:
        where = self.filename or "<template>"
        if self.lineno is not None:
            where = f"{where}:{self.lineno}"
            if self.column is not None:
                where = f"{where}:{self.column}"
        detail = f" ({self.kind} directive)" if self.kind else ""
        return f"{where}: {self.message}{detail}"


class ConfigurationError(TemplateError):
    """Raised when compile options are missing, unknown or invalid."""

    pass


class ResolutionError(TemplateError):
    """Raised when an include or data file cannot be read."""

    def __init__(self, path: str, reason: str | None = None):
        self.path = path
        message = f"Cannot read template file: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class EvaluationError(TemplateError):
    """Raised when compile-time or generated code fails."""

    def __init__(self, message: str, filename: str | None = None):
        self.filename = filename
        if filename:
            message = f"{filename}: {message}"
        super().__init__(message)


class EmbedError(EvaluationError):
    """Raised when a value has no safe Python literal form."""

    pass


def describe(error: BaseException) -> str:
    """One-line report of ``error`` and the exception that caused it."""
    message = str(error)
    cause = error.__cause__
    if cause is not None and str(cause) not in message:
        message = f"{message}: {type(cause).__name__}: {cause}"
    return message


def exit_with_error(error: str | BaseException, exit_code: int = 1) -> NoReturn:
    """Report ``error`` on stderr and leave the CLI with ``exit_code``."""
    message = error if isinstance(error, str) else describe(error)
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(exit_code)
