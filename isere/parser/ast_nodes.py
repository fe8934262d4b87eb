"""
Abstract Syntax Tree node definitions for Isere.

The language is tiny and closed: four expression kinds, a prototype
(function signature) and a function definition. Nodes are frozen
dataclasses; a node owns its children outright, so a parsed construct is a
plain tree.

The ``location`` field is informational only and is excluded from equality,
which lets tests compare trees built by hand against parser output.

Author: xwest
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from ..lexer.tokens import SourceLocation


# Binary operators the AST can hold
BINARY_OPERATORS = frozenset("+-*<")


@dataclass(frozen=True)
class NumberLiteral:
    """Numeric literal like ``1.0``."""
    value: float
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        return f"{self.value:g}"


@dataclass(frozen=True)
class VariableReference:
    """Reference to a parameter, like ``a``."""
    name: str
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class BinaryOp:
    """Binary operation ``left <operator> right``."""
    operator: str
    left: "Expression"
    right: "Expression"
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if self.operator not in BINARY_OPERATORS:
            raise ValueError(f"not a binary operator: {self.operator!r}")

    def __str__(self) -> str:
        return f"({self.left} {self.operator} {self.right})"


@dataclass(frozen=True)
class Call:
    """Function call ``callee(args...)``."""
    callee: str
    args: Tuple["Expression", ...] = ()
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        return f"{self.callee}({', '.join(str(arg) for arg in self.args)})"


Expression = Union[NumberLiteral, VariableReference, BinaryOp, Call]
EXPRESSION_TYPES = (NumberLiteral, VariableReference, BinaryOp, Call)


@dataclass(frozen=True)
class Prototype:
    """
    A function's name and parameter names.

    An empty name marks the wrapper the parser builds around a bare
    top-level expression.
    """
    name: str
    params: Tuple[str, ...] = ()
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False)

    @property
    def arity(self) -> int:
        return len(self.params)

    @property
    def is_anonymous(self) -> bool:
        return self.name == ""

    def __str__(self) -> str:
        return f"{self.name}({' '.join(self.params)})"


@dataclass(frozen=True)
class FunctionDefinition:
    """A prototype plus its single body expression."""
    prototype: Prototype
    body: Expression
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False)

    @property
    def name(self) -> str:
        return self.prototype.name

    def __str__(self) -> str:
        return f"fn {self.prototype} {self.body}"


ASTNode = Union[NumberLiteral, VariableReference, BinaryOp, Call, Prototype, FunctionDefinition]
