"""
Code generation error handling for Isere.

Lowering errors (unknown names, arity mismatches, redefinitions) abort the
current top-level construct only. IR verification and evaluation problems
come from the IR-construction backends.

Author: xwest
"""

from typing import Optional

from ..diagnostics import Diagnostic
from ..lexer.tokens import SourceLocation


class CodegenError(Exception):
    """
    Exception raised when an AST node cannot be lowered to IR.

    Contains detailed diagnostic information for error reporting.
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        node: Optional[object] = None,
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
        self.node = node

    def __str__(self) -> str:
        return str(self.diagnostic)


class IRVerificationError(Exception):
    """Raised by ``IRBuilder.finalize`` when a finished function is malformed."""

    def __init__(self, message: str, function_name: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.function_name = function_name


class IREvaluationError(Exception):
    """Raised when a backend cannot evaluate a function."""


# Code generation error codes for categorization
CODEGEN_ERROR_CODES = {
    "C001": "Unknown variable name",
    "C002": "Unknown function referenced",
    "C003": "Incorrect number of arguments passed into function call",
    "C004": "Function cannot be redefined",
    "C005": "Invalid binary operator",
    "C006": "Function definition does not match its declaration",
    "C007": "Function failed verification",
    "C008": "Cannot generate code for node",
}


def _node_location(node) -> Optional[SourceLocation]:
    return getattr(node, "location", None)


def create_codegen_error(code: str, node=None, detail: Optional[str] = None) -> CodegenError:
    """Create a code generation error; ``detail`` is appended to the message."""
    message = CODEGEN_ERROR_CODES[code]
    if detail:
        message = f"{message}: {detail}"
    return CodegenError(message, _node_location(node), node, code)
