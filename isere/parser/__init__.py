"""
Isere Parser Package

Implements a recursive descent parser with operator precedence climbing for
the Isere language.

Key Features:
- One token of lookahead, pulled from the lexer on demand
- Precedence climbing for binary expressions
- Immutable AST nodes with source locations
- Syntax errors as exceptions carrying diagnostics

Author: xwest
"""

from .ast_nodes import *
from .parser import Parser, BINOP_PRECEDENCE, MAX_NESTING_DEPTH, parse_expression_string
from .errors import ParseError, ParseWarning

__all__ = [
    # Core parser
    "Parser", "BINOP_PRECEDENCE", "MAX_NESTING_DEPTH", "parse_expression_string",

    # AST nodes
    "ASTNode", "Expression", "EXPRESSION_TYPES", "BINARY_OPERATORS",
    "NumberLiteral", "VariableReference", "BinaryOp", "Call",
    "Prototype", "FunctionDefinition",

    # Error handling
    "ParseError", "ParseWarning",
]
