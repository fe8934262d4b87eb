"""
Isere Lexer Package

Implements the lexical analyzer (tokenizer) for the Isere language.

Key Features:
- Pull-based: one token per call, one character of lookahead
- Line (//) and block (/* */) comments
- strtod-compatible numeric literals
- Source location tracking for diagnostics

Author: xwest
"""

from .tokens import Token, TokenType, SourceLocation, KEYWORDS
from .lexer import Lexer, tokenize_string, parse_number
from .errors import LexerError

__all__ = [
    "Lexer",
    "Token",
    "TokenType",
    "SourceLocation",
    "KEYWORDS",
    "tokenize_string",
    "parse_number",
    "LexerError",
]
