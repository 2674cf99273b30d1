"""
Exception hierarchy for proofview.

Parse and conversion errors subclass ValueError so callers that only care
about "bad input" can catch that.
"""

from __future__ import annotations


class ProofViewError(Exception):
    """Base class for every error raised by proofview."""


# ---------------------------------------------------------------------------
# Lexical / syntax errors
# ---------------------------------------------------------------------------

class ParseError(ProofViewError, ValueError):
    """Syntax error at a character offset of the input."""

    def __init__(self, message: str, offset: int):
        super().__init__(f"{message} at position {offset}")
        self.reason = message
        self.offset = offset


class UnclosedListError(ParseError):
    def __init__(self, offset: int):
        super().__init__("Unclosed list: missing closing parenthesis", offset)


class UnclosedStringError(ParseError):
    def __init__(self, offset: int):
        super().__init__("Unclosed string literal", offset)


class UnclosedQuotedAtomError(ParseError):
    def __init__(self, offset: int):
        super().__init__("Unclosed quoted atom: missing closing |", offset)


class UnexpectedCloseParenError(ParseError):
    def __init__(self, offset: int):
        super().__init__("Unexpected ')'", offset)


class UnexpectedEndError(ParseError):
    def __init__(self, offset: int):
        super().__init__("Unexpected end of input", offset)


class TrailingInputError(ParseError):
    def __init__(self, offset: int):
        super().__init__("Unexpected characters after expression", offset)


class NestingTooDeepError(ParseError):
    def __init__(self, offset: int, max_depth: int):
        super().__init__(f"Nesting deeper than {max_depth} levels", offset)
        self.max_depth = max_depth


# ---------------------------------------------------------------------------
# Structural errors during conversion
# ---------------------------------------------------------------------------

class ConversionError(ProofViewError, ValueError):
    """The expression does not follow the tree conventions."""


class MalformedBindingError(ConversionError):
    """A let/let-proof bindings clause is not a list of (NAME VALUE) pairs."""


class BindingNameError(ConversionError):
    """A binding name is a list instead of an atom."""


class ConversionDepthError(ConversionError):
    """Expression nesting exceeds the converter's depth limit."""


# ---------------------------------------------------------------------------
# Acquisition errors
# ---------------------------------------------------------------------------

class LoadError(ProofViewError):
    """The source text could not be obtained (file read or URL fetch)."""

    def __init__(self, message: str, source: str = "", hint: str | None = None):
        super().__init__(message)
        self.source = source
        self.hint = hint
