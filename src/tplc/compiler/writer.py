"""CodeWriter - builds indented Python source from directive fragments.

Directive text carries no indentation of its own, so block structure is
tracked here:

- a statement whose last line is a header ending in ``:`` opens a block
  (a colon in a trailing comment does not count);
- a statement that is exactly ``end`` closes the innermost block;
- ``elif``/``else``/``except``/``finally`` close the current block and
  open a sibling.

Every opened block gets a ``pass`` so that empty blocks stay valid.
"""

from __future__ import annotations

import io
import re
import textwrap
import tokenize

from tplc.errors import TemplateSyntaxError

INDENT = "    "

END_KEYWORD = "end"

_CONTINUATION = re.compile(r"^(elif\b|else\s*:|except\b|finally\s*:)")

_IGNORED_TOKENS = {
    tokenize.COMMENT,
    tokenize.NL,
    tokenize.NEWLINE,
    tokenize.INDENT,
    tokenize.DEDENT,
    tokenize.ENDMARKER,
}


def opens_block(code: str) -> bool:
    """True if ``code`` ends in a compound-statement header such as ``for x in xs:``.

    The statement is tokenized, so a colon inside a comment or a string does
    not count. A header on an indented last line belongs to code the caller
    already structured and opens nothing.
    """
    last = code.splitlines()[-1] if code else ""
    if not last or last[:1].isspace():
        return False
    try:
        tokens = list(tokenize.generate_tokens(io.StringIO(code).readline))
    except (tokenize.TokenError, SyntaxError):
        return False
    significant = [token for token in tokens if token.type not in _IGNORED_TOKENS]
    if not significant:
        return False
    return significant[-1].type == tokenize.OP and significant[-1].string == ":"


class CodeWriter:
    """Accumulates source lines at a tracked indentation level."""

    def __init__(self, level: int = 0):
        self.level = level
        self._lines: list[str] = []

    def __len__(self) -> int:
        return len(self._lines)

    def getvalue(self) -> str:
        return "".join(line + "\n" for line in self._lines)

    def line(self, text: str) -> None:
        """Append one line at the current level."""
        self._lines.append(INDENT * self.level + text if text else "")

    def raw(self, code: str) -> None:
        """Append already-structured source, shifted to the current level."""
        for text in code.splitlines():
            self.line(text)

    def indent(self) -> None:
        self.level += 1
        self.line("pass")

    def dedent(self, floor: int = 0) -> None:
        if self.level <= floor:
            raise TemplateSyntaxError(f"'{END_KEYWORD}' without an open block")
        self.level -= 1

    def write(self, code: str, floor: int = 0) -> None:
        """Append a directive statement, applying the block rules.

        Args:
            code: Statement text, possibly spanning several lines.
            floor: Level below which ``end`` may not close blocks.
        """
        text = textwrap.dedent(code.strip("\n")).rstrip()
        if not text.strip():
            return

        if text.strip() == END_KEYWORD:
            self.dedent(floor)
            return

        lines = text.splitlines()
        if _CONTINUATION.match(lines[0]):
            self.dedent(floor)

        for line in lines:
            self.line(line.rstrip())

        if opens_block(text):
            self.indent()
