"""
Isere Recursive Descent Parser

Recursive descent for primaries, prototypes and definitions, with operator
precedence climbing for binary expressions. The parser keeps exactly one
token of lookahead (``current_token``) and pulls tokens from the lexer on
demand.

Every ``parse_*`` method expects ``current_token`` to hold the first token
of its construct and leaves it just past the construct. On a syntax error
it raises ``ParseError`` before building any node from the failed part.

Author: xwest
"""

from types import MappingProxyType
from typing import List, Mapping, Optional, Union

from ..lexer.lexer import Lexer
from ..lexer.tokens import Token, TokenType
from .ast_nodes import (
    BINARY_OPERATORS, Expression, NumberLiteral, VariableReference, BinaryOp,
    Call, Prototype, FunctionDefinition
)
from .errors import (
    ParseError, ParseWarning, create_unknown_token_error,
    create_argument_list_error, create_missing_paren_error,
    create_prototype_error, create_duplicate_parameter_warning, create_nesting_error
)


# Binary operator precedence; higher binds tighter. Read-only.
BINOP_PRECEDENCE: Mapping[str, int] = MappingProxyType({
    "<": 10,
    "+": 20,
    "-": 20,
    "*": 40,
})

# Deepest nesting of parentheses and call arguments the parser accepts
MAX_NESTING_DEPTH = 100


class Parser:
    """
    Isere parser.

    Consumes tokens from a ``Lexer`` and produces AST nodes.
    """

    def __init__(self, lexer: Lexer, precedence: Optional[Mapping[str, int]] = None):
        """
        Initialize the parser and prime the first token.

        Args:
            lexer: Token source
            precedence: Operator precedence table; defaults to BINOP_PRECEDENCE.
                Entries at or below 0 mark a character as not an operator.

        Raises:
            ValueError: If a character the AST has no operator for is given
                a positive precedence
        """
        if precedence is None:
            precedence = BINOP_PRECEDENCE
        active = {op: level for op, level in precedence.items() if level > 0}
        unknown = set(active) - BINARY_OPERATORS
        if unknown:
            raise ValueError(f"precedence table has non-operators: {sorted(unknown)}")

        self.lexer = lexer
        self.precedence = MappingProxyType(active)
        self.max_nesting_depth = MAX_NESTING_DEPTH
        self.warnings: List[ParseWarning] = []
        self._nesting = 0
        self.current_token: Token = lexer.next_token()

    def advance(self) -> Token:
        """Read the next token into current_token and return it."""
        self.current_token = self.lexer.next_token()
        return self.current_token

    def get_token_precedence(self) -> int:
        """Precedence of the pending binary operator, or -1 if it isn't one."""
        token = self.current_token
        if token.type != TokenType.CHAR:
            return -1
        precedence = self.precedence.get(token.value, 0)
        if precedence <= 0:
            return -1
        return precedence

    # Expressions

    def parse_expression(self) -> Expression:
        """
        expression ::= primary binoprhs

        Raises ParseError (P007) when parentheses and call arguments nest
        deeper than ``max_nesting_depth``.
        """
        self._nesting += 1
        try:
            if self._nesting > self.max_nesting_depth:
                raise create_nesting_error(self.current_token)
            lhs = self.parse_primary()
            return self.parse_bin_op_rhs(0, lhs)
        finally:
            self._nesting -= 1

    def parse_primary(self) -> Expression:
        """
        primary
          ::= identifierexpr
          ::= numberexpr
          ::= parenexpr
        """
        token = self.current_token
        if token.type == TokenType.IDENTIFIER:
            return self.parse_identifier_expr()
        if token.type == TokenType.NUMBER:
            return self.parse_number_expr()
        if token.is_char("("):
            return self.parse_paren_expr()
        raise create_unknown_token_error(token)

    def parse_identifier_expr(self) -> Union[VariableReference, Call]:
        """
        identifierexpr
          ::= identifier
          ::= identifier '(' expression* ')'
        """
        name_token = self.current_token
        self.advance()  # eat identifier

        if not self.current_token.is_char("("):
            return VariableReference(name_token.value, name_token.location)

        self.advance()  # eat '('
        args = []
        if not self.current_token.is_char(")"):
            while True:
                args.append(self.parse_expression())

                if self.current_token.is_char(")"):
                    break
                if not self.current_token.is_char(","):
                    raise create_argument_list_error(self.current_token)
                self.advance()
        self.advance()  # eat ')'

        return Call(name_token.value, tuple(args), name_token.location)

    def parse_number_expr(self) -> NumberLiteral:
        """numberexpr ::= number"""
        token = self.current_token
        self.advance()
        return NumberLiteral(token.value, token.location)

    def parse_paren_expr(self) -> Expression:
        """parenexpr ::= '(' expression ')'"""
        self.advance()  # eat '('
        expr = self.parse_expression()
        if not self.current_token.is_char(")"):
            raise create_missing_paren_error(self.current_token)
        self.advance()  # eat ')'
        return expr

    def parse_bin_op_rhs(self, min_precedence: int, lhs: Expression) -> Expression:
        """
        binoprhs ::= (binop primary)*

        Precedence climbing: keep folding operators that bind at least as
        tightly as ``min_precedence`` into ``lhs``.
        """
        while True:
            token_precedence = self.get_token_precedence()
            if token_precedence < min_precedence:
                return lhs

            op_token = self.current_token
            self.advance()  # eat binop

            rhs = self.parse_primary()

            # If the next operator binds tighter, it takes rhs as its lhs first
            next_precedence = self.get_token_precedence()
            if token_precedence < next_precedence:
                rhs = self.parse_bin_op_rhs(token_precedence + 1, rhs)

            lhs = BinaryOp(op_token.value, lhs, rhs, op_token.location)

    # Top-level constructs

    def parse_prototype(self) -> Prototype:
        """prototype ::= identifier '(' identifier* ')'"""
        name_token = self.current_token
        if name_token.type != TokenType.IDENTIFIER:
            raise create_prototype_error("P004", name_token)

        self.advance()
        if not self.current_token.is_char("("):
            raise create_prototype_error("P005", self.current_token)

        params: List[str] = []
        while self.advance().type == TokenType.IDENTIFIER:
            param = self.current_token.value
            # Repeats are accepted; the later parameter wins during lowering
            if param in params:
                self.warnings.append(create_duplicate_parameter_warning(param, self.current_token))
            params.append(param)
        if not self.current_token.is_char(")"):
            raise create_prototype_error("P006", self.current_token)

        self.advance()  # eat ')'
        return Prototype(name_token.value, tuple(params), name_token.location)

    def parse_function_definition(self) -> FunctionDefinition:
        """definition ::= 'fn' prototype expression"""
        fn_token = self.current_token
        self.advance()  # eat 'fn'
        prototype = self.parse_prototype()
        body = self.parse_expression()
        return FunctionDefinition(prototype, body, fn_token.location)

    def parse_import(self) -> Prototype:
        """import ::= 'import' prototype"""
        self.advance()  # eat 'import'
        return self.parse_prototype()

    def parse_top_level_expression(self) -> FunctionDefinition:
        """toplevelexpr ::= expression, wrapped in an anonymous function"""
        location = self.current_token.location
        body = self.parse_expression()
        prototype = Prototype("", (), location)
        return FunctionDefinition(prototype, body, location)


def parse_expression_string(source: str, filename: str = "<string>",
                            precedence: Optional[Mapping[str, int]] = None) -> Expression:
    """
    Convenience function to parse a single expression.

    Raises:
        ParseError: If parsing fails
    """
    parser = Parser(Lexer(source, filename), precedence)
    return parser.parse_expression()
