"""
Test suite for the Isere lexer.

Tests cover:
- Keywords, identifiers and single-character tokens
- Numeric literals and strtod-style leniency
- Line and block comments, including unterminated ones
- Source locations

Author: xwest
"""

import io
import unittest
import sys
import os

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from isere.diagnostics import DiagnosticSink
from isere.lexer import Lexer, TokenType, LexerError, tokenize_string, parse_number


def kinds(source):
    return [token.type for token in tokenize_string(source)]


def values(source):
    return [token.value for token in tokenize_string(source) if token.type != TokenType.EOF]


class TestLexer(unittest.TestCase):
    """Test cases for tokenization."""

    def test_function_definition_tokens(self):
        tokens = tokenize_string("fn add(a b) a+b")
        self.assertEqual(
            [t.type for t in tokens],
            [TokenType.FN, TokenType.IDENTIFIER, TokenType.CHAR, TokenType.IDENTIFIER,
             TokenType.IDENTIFIER, TokenType.CHAR, TokenType.IDENTIFIER, TokenType.CHAR,
             TokenType.IDENTIFIER, TokenType.EOF]
        )
        self.assertEqual(tokens[1].value, "add")
        self.assertTrue(tokens[2].is_char("("))
        self.assertTrue(tokens[7].is_char("+"))

    def test_keywords(self):
        self.assertEqual(
            kinds("fn import fnx imports"),
            [TokenType.FN, TokenType.IMPORT, TokenType.IDENTIFIER, TokenType.IDENTIFIER, TokenType.EOF]
        )
        self.assertIsNone(tokenize_string("fn")[0].value)

    def test_identifiers_are_alphanumeric(self):
        self.assertEqual(values("x1y2 foo_bar"), ["x1y2", "foo", "_", "bar"])

    def test_number_then_identifier(self):
        tokens = tokenize_string("1x")
        self.assertEqual(tokens[0].type, TokenType.NUMBER)
        self.assertEqual(tokens[0].value, 1.0)
        self.assertEqual(tokens[1].value, "x")

    def test_numbers(self):
        self.assertEqual(values("42 3.14 .5 7."), [42.0, 3.14, 0.5, 7.0])

    def test_malformed_numbers_follow_strtod(self):
        tokens = tokenize_string("1.2.3")
        self.assertEqual(len(tokens), 2)
        self.assertEqual(tokens[0].lexeme, "1.2.3")
        self.assertEqual(tokens[0].value, 1.2)
        self.assertEqual(values("."), [0.0])

    def test_parse_number(self):
        self.assertEqual(parse_number("10"), 10.0)
        self.assertEqual(parse_number("..5"), 0.0)
        self.assertEqual(parse_number("2.5.1"), 2.5)

    def test_single_characters(self):
        self.assertEqual(values("+-*<(),;"), list("+-*<(),;"))

    def test_slash_is_a_character(self):
        self.assertEqual(values("a / b"), ["a", "/", "b"])

    def test_line_comment(self):
        self.assertEqual(values("1 // ignored 2\n3"), [1.0, 3.0])

    def test_line_comment_at_end_of_input(self):
        self.assertEqual(kinds("1 // trailing"), [TokenType.NUMBER, TokenType.EOF])

    def test_block_comment(self):
        self.assertEqual(values("1 /* two\nlines */ 2"), [1.0, 2.0])

    def test_block_comment_closed_after_stars(self):
        self.assertEqual(values("/* a **/ 3"), [3.0])

    def test_unterminated_block_comment(self):
        sink = DiagnosticSink(echo=False)
        lexer = Lexer("1 /* oops", "test.is", sink)
        tokens = lexer.tokenize()

        self.assertEqual([t.type for t in tokens], [TokenType.NUMBER, TokenType.EOF])
        self.assertTrue(lexer.has_errors())
        self.assertEqual(lexer.errors[0].diagnostic.message, "Unterminated multi-line comment")
        self.assertEqual(lexer.errors[0].diagnostic.location.column, 3)
        self.assertEqual(len(sink.errors), 1)

    def test_tokenize_string_raises_on_errors(self):
        with self.assertRaises(LexerError):
            tokenize_string("/* never closed")

    def test_eof_is_sticky(self):
        lexer = Lexer("x")
        lexer.next_token()
        self.assertEqual(lexer.next_token().type, TokenType.EOF)
        self.assertEqual(lexer.next_token().type, TokenType.EOF)

    def test_locations(self):
        tokens = tokenize_string("a\n  b", "loc.is")
        self.assertEqual((tokens[0].location.line, tokens[0].location.column), (1, 1))
        self.assertEqual((tokens[1].location.line, tokens[1].location.column), (2, 3))
        self.assertEqual(str(tokens[1].location), "loc.is:2:3")

    def test_reads_from_text_stream(self):
        lexer = Lexer(io.StringIO("fn f(x) x"))
        self.assertEqual(len(lexer.tokenize()), 7)

    def test_independent_lexers_share_no_state(self):
        first = Lexer("a b")
        second = Lexer("c")
        self.assertEqual(first.next_token().value, "a")
        self.assertEqual(second.next_token().value, "c")
        self.assertEqual(first.next_token().value, "b")


if __name__ == "__main__":
    unittest.main()
