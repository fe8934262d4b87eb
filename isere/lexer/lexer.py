"""
Isere Lexer - turns a character stream into tokens

The lexer pulls characters one at a time from its source and keeps a single
character of lookahead (``last_char``) between calls, so it works the same
on a string and on an interactive text stream.

xwest
"""

import re
import string
from io import StringIO
from typing import List, Optional, TextIO, Union

from .tokens import Token, TokenType, SourceLocation, KEYWORDS
from .errors import LexerError, create_unterminated_comment_error
from ..diagnostics import DiagnosticSink

EOF = ""  # what read(1) returns at end of input

_WHITESPACE = frozenset(string.whitespace)  # same set as C isspace()
_LETTERS = frozenset(string.ascii_letters)
_DIGITS = frozenset(string.digits)
_ALNUM = _LETTERS | _DIGITS

# Longest prefix strtod() would accept from a run of digits and dots
_NUMERIC_PREFIX = re.compile(r"\d*(?:\.\d*)?")


def parse_number(text: str) -> float:
    """
    Parse a run of digits and dots the way C ``strtod`` does.

    Trailing garbage is ignored ("1.2.3" -> 1.2) and text with no digits
    before the garbage yields 0.0 ("." -> 0.0).
    """
    prefix = _NUMERIC_PREFIX.match(text).group(0)
    if prefix.strip(".") == "":
        return 0.0
    return float(prefix)


class Lexer:
    """
    Isere lexical analyzer.

    Call ``next_token()`` repeatedly; after ``EOF`` every further call keeps
    returning ``EOF``.
    """

    def __init__(self, source: Union[str, TextIO], filename: str = "<stdin>",
                 sink: Optional[DiagnosticSink] = None):
        """
        Initialize the lexer with a character source.

        Args:
            source: Source text, or a text stream read one character at a time
            filename: Name of the source for error reporting
            sink: Where lexical errors are reported, if anywhere
        """
        if isinstance(source, str):
            source = StringIO(source)
        self._stream = source
        self.filename = filename
        self.sink = sink
        self.errors: List[LexerError] = []

        # Position of the next character to be read
        self._line = 1
        self._column = 1
        self._offset = 0

        # One character of lookahead; starts as whitespace so the first call
        # skips straight to real content.
        self.last_char = " "
        self._char_location = SourceLocation(filename, 1, 1, 0)

    def next_token(self) -> Token:
        """Read and return exactly one token."""
        while True:
            # Skip any whitespace
            while self.last_char in _WHITESPACE:
                self._read_char()

            start = self._char_location

            # Identifiers and keywords
            if self.last_char in _LETTERS:
                chars = [self.last_char]
                self._read_char()
                while self.last_char in _ALNUM:
                    chars.append(self.last_char)
                    self._read_char()
                lexeme = "".join(chars)
                token_type = KEYWORDS.get(lexeme, TokenType.IDENTIFIER)
                value = lexeme if token_type == TokenType.IDENTIFIER else None
                return Token(token_type, lexeme, value, start)

            # Numbers
            if self.last_char in _DIGITS or self.last_char == ".":
                chars = []
                while self.last_char in _DIGITS or self.last_char == ".":
                    chars.append(self.last_char)
                    self._read_char()
                lexeme = "".join(chars)
                return Token(TokenType.NUMBER, lexeme, parse_number(lexeme), start)

            # Comments, or a plain '/'
            if self.last_char == "/":
                self._read_char()
                if self.last_char == "/":
                    self._skip_line_comment()
                    if self.last_char == EOF:
                        return self._eof_token()
                    continue
                if self.last_char == "*":
                    if not self._skip_block_comment(start):
                        return self._eof_token()
                    continue
                return Token(TokenType.CHAR, "/", "/", start)

            if self.last_char == EOF:
                return self._eof_token()

            # Anything else is a single-character token
            char = self.last_char
            self._read_char()
            return Token(TokenType.CHAR, char, char, start)

    def tokenize(self) -> List[Token]:
        """
        Tokenize the rest of the input.

        Returns:
            List of tokens ending with the EOF token
        """
        tokens = []
        while True:
            token = self.next_token()
            tokens.append(token)
            if token.type == TokenType.EOF:
                return tokens

    def _skip_line_comment(self):
        """Discard through end of line; leaves the newline (or EOF) as last_char."""
        self._read_char()
        while self.last_char not in (EOF, "\n", "\r"):
            self._read_char()

    def _skip_block_comment(self, start: SourceLocation) -> bool:
        """
        Discard everything up to and including the closing ``*/``.

        Returns False (after reporting) if the input ends first.
        """
        previous = EOF
        while True:
            self._read_char()
            if self.last_char == EOF:
                self._report(create_unterminated_comment_error(start))
                return False
            if previous == "*" and self.last_char == "/":
                break
            previous = self.last_char
        self._read_char()
        return True

    def _read_char(self):
        """Pull the next character from the source into last_char."""
        char = self._stream.read(1)
        self._char_location = SourceLocation(self.filename, self._line, self._column, self._offset)
        if char != EOF:
            self._offset += 1
            if char == "\n":
                self._line += 1
                self._column = 1
            else:
                self._column += 1
        self.last_char = char

    def _eof_token(self) -> Token:
        return Token(TokenType.EOF, "", None, self._char_location)

    def _report(self, error: LexerError):
        self.errors.append(error)
        if self.sink is not None:
            self.sink.report(error.diagnostic)

    def has_errors(self) -> bool:
        """Check if lexer encountered any errors."""
        return len(self.errors) > 0


def tokenize_string(source: str, filename: str = "<string>") -> List[Token]:
    """
    Convenience function to tokenize a source string.

    Args:
        source: Source code string
        filename: Filename for error reporting

    Returns:
        List of tokens

    Raises:
        LexerError: If lexing fails
    """
    lexer = Lexer(source, filename)
    tokens = lexer.tokenize()

    if lexer.has_errors():
        # Raise the first error encountered
        raise lexer.errors[0]

    return tokens
