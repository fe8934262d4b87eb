"""
Error handling for the Isere lexer.

The lexer has a single recoverable error, an unterminated block comment.
It is reported and the lexer yields end of input.

Author: xwest
"""

from typing import Optional

from ..diagnostics import Diagnostic
from .tokens import SourceLocation


class LexerError(Exception):
    """
    Error raised (or recorded) when the lexer meets malformed input.

    Contains detailed diagnostic information for error reporting.
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        code: Optional[str] = None
    ):
        super().__init__(message)
        self.diagnostic = Diagnostic(
            message=message,
            location=location,
            severity="error",
            code=code
        )

    def __str__(self) -> str:
        return str(self.diagnostic)


# Error codes for categorization
ERROR_CODES = {
    "L001": "Unterminated multi-line comment",
}


def create_unterminated_comment_error(location: SourceLocation) -> LexerError:
    """Create an error for a block comment that runs into end of input."""
    return LexerError(
        message="Unterminated multi-line comment",
        location=location,
        code="L001"
    )
