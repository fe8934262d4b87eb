"""
Error handling for the Isere parser.

A syntax error aborts the construct being parsed. The parser raises
``ParseError``; the driver reports it and resynchronizes by skipping a
token.

Author: xwest
"""

from typing import Optional

from ..diagnostics import Diagnostic
from ..lexer.tokens import Token, SourceLocation


class ParseError(Exception):
    """
    Exception raised when the parser encounters a syntax error.

    Contains detailed diagnostic information for error reporting.
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        token: Optional[Token] = None,
        code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.diagnostic = Diagnostic(
            message=message,
            location=location,
            severity="error",
            code=code
        )
        self.token = token

    def __str__(self) -> str:
        return str(self.diagnostic)


class ParseWarning:
    """
    Represents a parser warning that doesn't stop compilation.
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        token: Optional[Token] = None,
        code: Optional[str] = None
    ):
        self.message = message
        self.diagnostic = Diagnostic(
            message=message,
            location=location,
            severity="warning",
            code=code
        )
        self.token = token

    def __str__(self) -> str:
        return str(self.diagnostic)


# Parse error codes for categorization
PARSE_ERROR_CODES = {
    "P001": "Unknown token when expecting an expression",
    "P002": "Expected ',' or ')' in argument list",
    "P003": "Expected ')'",
    "P004": "Expected function name in prototype",
    "P005": "Expected '(' in prototype",
    "P006": "Expected ')' in prototype",
    "P007": "Expression nested too deeply",
    "P101": "Duplicate parameter name",
}


def _error(code: str, token: Token, message: Optional[str] = None) -> ParseError:
    return ParseError(
        message=message or PARSE_ERROR_CODES[code],
        location=token.location,
        token=token,
        code=code
    )


def create_unknown_token_error(token: Token) -> ParseError:
    """Create an error for a token that cannot start an expression."""
    return _error("P001", token)


def create_argument_list_error(token: Token) -> ParseError:
    """Create an error for a call argument not followed by ',' or ')'."""
    return _error("P002", token)


def create_missing_paren_error(token: Token) -> ParseError:
    """Create an error for a parenthesized expression missing its ')'."""
    return _error("P003", token)


def create_prototype_error(code: str, token: Token) -> ParseError:
    """Create one of the prototype errors (P004-P006)."""
    return _error(code, token)


def create_duplicate_parameter_warning(name: str, token: Token) -> ParseWarning:
    """Create a warning for a parameter name repeated within one prototype."""
    return ParseWarning(
        message=f"Duplicate parameter name '{name}'; the later parameter shadows the earlier one",
        location=token.location,
        token=token,
        code="P101"
    )


def create_nesting_error(token: Token) -> ParseError:
    """Create an error for parentheses or calls nested past the parser's limit."""
    return _error("P007", token)
