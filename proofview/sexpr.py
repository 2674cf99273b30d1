"""
S-expression reader and printer.

A single-pass recursive-descent parser over a text buffer. Atoms come back as
plain ``str`` and lists as ``list``; nothing else is interpreted here.

Syntax:
  atom  foo  :key  a;b          unquoted, ends at whitespace, ( or )
  "a\\nb"                        string, escapes \\n \\t \\r \\\\ \\"
  |a b|                         quoted atom, verbatim up to the next |
  (a b (c))  ()                 lists
  ; comment                     to end of line, between expressions
"""

from __future__ import annotations

import logging
from typing import List, Union

from .errors import (
    NestingTooDeepError,
    ParseError,
    TrailingInputError,
    UnclosedListError,
    UnclosedQuotedAtomError,
    UnclosedStringError,
    UnexpectedCloseParenError,
    UnexpectedEndError,
)

logger = logging.getLogger(__name__)

SExpr = Union[str, List["SExpr"]]

WHITESPACE = " \t\n\r"
ATOM_TERMINATORS = WHITESPACE + "()"
DEFAULT_MAX_DEPTH = 250

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", '"': '"'}


class SExprParser:
    """Recursive-descent parser over one text buffer.

    ``pos`` is left where parsing stopped, including after an error, so
    ``parse_all`` can decide whether a failure was only a trailing fragment.
    """

    def __init__(self, text: str, max_depth: int = DEFAULT_MAX_DEPTH):
        self.text = text
        self.pos = 0
        self.length = len(text)
        self.max_depth = max_depth
        self._depth = 0

    # -------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------

    def parse(self) -> SExpr:
        """Parse exactly one expression; only whitespace may follow it."""
        self.skip_whitespace()
        result = self.parse_expr()
        self.skip_whitespace()
        if self.pos < self.length:
            raise TrailingInputError(self.pos)
        return result

    def parse_all(self) -> list[SExpr]:
        """Parse every top-level expression in the buffer."""
        results: list[SExpr] = []
        self.skip_whitespace()
        while self.pos < self.length:
            start = self.pos
            try:
                results.append(self.parse_expr())
            except ParseError as e:
                self._depth = 0
                self.skip_whitespace()
                if self.pos < self.length:
                    raise
                logger.warning("Ignoring malformed trailing fragment at "
                               "position %d: %s", start, e.reason)
                break
            self.skip_whitespace()
        return results

    # -------------------------------------------------------------------
    # Grammar
    # -------------------------------------------------------------------

    def parse_expr(self) -> SExpr:
        self.skip_whitespace()
        if self.pos >= self.length:
            raise UnexpectedEndError(self.pos)

        char = self.text[self.pos]
        if char == "(":
            return self.parse_list()
        if char == ")":
            raise UnexpectedCloseParenError(self.pos)
        if char == '"':
            return self.parse_string()
        if char == "|":
            return self.parse_quoted_atom()
        return self.parse_atom()

    def parse_list(self) -> list[SExpr]:
        start = self.pos
        if self._depth >= self.max_depth:
            raise NestingTooDeepError(start, self.max_depth)
        self.pos += 1  # (
        self._depth += 1

        items: list[SExpr] = []
        self.skip_whitespace()
        while self.pos < self.length and self.text[self.pos] != ")":
            items.append(self.parse_expr())
            self.skip_whitespace()

        if self.pos >= self.length:
            raise UnclosedListError(start)

        self.pos += 1  # )
        self._depth -= 1
        return items

    def parse_string(self) -> str:
        start = self.pos
        self.pos += 1  # opening quote

        chunks: list[str] = []
        escaped = False
        while self.pos < self.length:
            char = self.text[self.pos]
            self.pos += 1
            if escaped:
                chunks.append(_ESCAPES.get(char, char))
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                return "".join(chunks)
            else:
                chunks.append(char)

        raise UnclosedStringError(start)

    def parse_quoted_atom(self) -> str:
        start = self.pos
        end = self.text.find("|", start + 1)
        if end < 0:
            self.pos = self.length
            raise UnclosedQuotedAtomError(start)
        self.pos = end + 1
        return self.text[start + 1:end]

    def parse_atom(self) -> str:
        start = self.pos
        while self.pos < self.length and self.text[self.pos] not in ATOM_TERMINATORS:
            self.pos += 1
        return self.text[start:self.pos]

    def skip_whitespace(self) -> None:
        """Skip whitespace and ; comments."""
        while self.pos < self.length:
            char = self.text[self.pos]
            if char in WHITESPACE:
                self.pos += 1
            elif char == ";":
                newline = self.text.find("\n", self.pos)
                self.pos = self.length if newline < 0 else newline
            else:
                break


def parse_one(text: str, max_depth: int = DEFAULT_MAX_DEPTH) -> SExpr:
    return SExprParser(text, max_depth).parse()


def parse_all(text: str, max_depth: int = DEFAULT_MAX_DEPTH) -> list[SExpr]:
    return SExprParser(text, max_depth).parse_all()


# ============================================================
# Printing
# ============================================================

def _is_bare(atom: str) -> bool:
    """True when ``atom`` re-reads as the same unquoted atom."""
    if not atom or atom[0] in '"|;':
        return False
    return not any(c in ATOM_TERMINATORS for c in atom)


def render_atom(atom: str) -> str:
    if _is_bare(atom):
        return atom
    if "|" not in atom:
        return f"|{atom}|"
    escaped = (atom.replace("\\", "\\\\").replace('"', '\\"')
               .replace("\n", "\\n").replace("\t", "\\t").replace("\r", "\\r"))
    return f'"{escaped}"'


def render(expr: SExpr) -> str:
    """Canonical text for ``expr``; ``parse_one(render(x)) == x``."""
    if isinstance(expr, str):
        return render_atom(expr)
    return "(" + " ".join(render(e) for e in expr) + ")"


def render_all(exprs: list[SExpr]) -> str:
    return "\n".join(render(e) for e in exprs)
