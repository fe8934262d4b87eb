"""
Token definitions for the Isere lexer.

Isere has very few token kinds: end of input, the two keywords ``fn`` and
``import``, identifiers, numbers, and single raw characters (operators and
punctuation such as ``+``, ``(`` or ``;``).

Author: xwest
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any


class TokenType(Enum):
    """Enumeration of all token types in Isere."""

    EOF = auto()                    # End of input

    # Keywords
    FN = auto()                     # fn
    IMPORT = auto()                 # import

    # Primary
    IDENTIFIER = auto()             # add, x, foo2
    NUMBER = auto()                 # 42, 3.14, .5

    # Any other single character: + - * < ( ) , ; / ...
    CHAR = auto()


@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in the source code.

    Used for error reporting and debugging information.
    """
    filename: str
    line: int
    column: int
    offset: int  # Character offset from start of input

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"

    def __repr__(self) -> str:
        return f"SourceLocation({self.filename!r}, {self.line}, {self.column}, {self.offset})"


@dataclass(frozen=True)
class Token:
    """
    Represents a lexical token in the Isere language.

    ``value`` holds the identifier name for IDENTIFIER, the parsed ``float``
    for NUMBER, the raw character for CHAR and ``None`` otherwise.
    """
    type: TokenType
    lexeme: str                     # Raw text from source
    value: Any                      # Parsed/semantic value
    location: SourceLocation

    def __str__(self) -> str:
        if self.value is not None and self.value != self.lexeme:
            return f"{self.type.name}({self.lexeme!r} -> {self.value!r})"
        return f"{self.type.name}({self.lexeme!r})"

    def __repr__(self) -> str:
        return (f"Token({self.type.name}, {self.lexeme!r}, "
                f"{self.value!r}, {self.location!r})")

    def is_char(self, char: str) -> bool:
        """Check if this token is the single character ``char``."""
        return self.type == TokenType.CHAR and self.value == char

    @property
    def is_keyword(self) -> bool:
        return self.type in (TokenType.FN, TokenType.IMPORT)

    @property
    def is_identifier(self) -> bool:
        return self.type == TokenType.IDENTIFIER


# Keyword lookup used by the lexer
KEYWORDS = {
    "fn": TokenType.FN,
    "import": TokenType.IMPORT,
}
