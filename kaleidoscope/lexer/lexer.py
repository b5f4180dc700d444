"""
Kaleidoscope Lexer - turns a character stream into tokens

Reads one character at a time and keeps exactly one unconsumed character
between calls, so it works the same on a string, a file or an interactive
stdin. The lexer is total: any character that isn't part of a keyword,
identifier or number comes back as a CHAR token.

xwest
"""

import logging
import re
from io import StringIO
from typing import Iterator, List, TextIO, Union

from .tokens import (
    Token, TokenType, SourceLocation, KEYWORDS, WHITESPACE, LINE_TERMINATORS
)

logger = logging.getLogger(__name__)

# Longest prefix of a digit/dot run that a C strtod would convert
_NUMBER_PREFIX = re.compile(r'\d*\.?\d*')


def parse_number(text: str) -> float:
    """
    Convert a digit/dot run the way strtod does.

    The lexer accepts things like ``3.4.5``; only the leading valid decimal
    prefix counts (``3.4``), and no valid prefix at all gives 0.0.
    """
    prefix = _NUMBER_PREFIX.match(text).group(0)
    if prefix in ('', '.'):
        return 0.0
    return float(prefix)


class Lexer:
    """
    Kaleidoscope lexical analyzer.

    ``next_token()`` produces one token per call. Once the end of input is
    reached every further call returns another EOF token.
    """

    def __init__(self, source: Union[str, TextIO], filename: str = "<stdin>"):
        """
        Initialize the lexer.

        Args:
            source: Source text, or any text stream with ``read(1)``
            filename: Name used in token locations
        """
        if isinstance(source, str):
            source = StringIO(source)
        self.stream = source
        self.filename = filename

        # Position of self._last_char; starts one before the first character
        self.line = 1
        self.column = 0
        self.offset = -1

        # The single pushed-back character ('' once the input is exhausted)
        self._last_char = ' '

    def _read_char(self) -> str:
        """Read the next character into the pushback slot and return it."""
        if self._last_char == '\n':
            self.line += 1
            self.column = 1
        elif self._last_char:
            self.column += 1
        self.offset += 1

        self._last_char = self.stream.read(1)
        return self._last_char

    def _location(self) -> SourceLocation:
        return SourceLocation(self.filename, self.line, self.column, self.offset)

    def _make_token(self, token_type: TokenType, lexeme: str, value, location: SourceLocation) -> Token:
        token = Token(token_type, lexeme, value, location)
        logger.debug("token %s at %s", token, location)
        return token

    def next_token(self) -> Token:
        """Return the next token from the input."""
        while True:
            # Skip whitespace
            while self._last_char and self._last_char in WHITESPACE:
                self._read_char()

            location = self._location()
            char = self._last_char

            # identifier: [a-zA-Z][a-zA-Z0-9]*
            if _is_alpha(char):
                chars = [char]
                while _is_alnum(self._read_char()):
                    chars.append(self._last_char)
                text = ''.join(chars)

                keyword = KEYWORDS.get(text)
                if keyword is not None:
                    return self._make_token(keyword, text, None, location)
                return self._make_token(TokenType.IDENTIFIER, text, text, location)

            # number: [0-9.]+
            if _is_digit(char) or char == '.':
                chars = []
                while _is_digit(self._last_char) or self._last_char == '.':
                    chars.append(self._last_char)
                    self._read_char()
                text = ''.join(chars)
                return self._make_token(TokenType.NUMBER, text, parse_number(text), location)

            # comment until end of line, then start over
            if char == '#':
                while self._read_char() and self._last_char not in LINE_TERMINATORS:
                    pass
                if self._last_char:
                    continue

            if not self._last_char:
                return self._make_token(TokenType.EOF, "", None, self._location())

            # Anything else is returned as its own character
            self._read_char()
            return self._make_token(TokenType.CHAR, char, char, location)

    def tokenize(self) -> List[Token]:
        """
        Tokenize the remaining input.

        Returns:
            List of tokens ending with the EOF token
        """
        return list(self)

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                return


def _is_alpha(char: str) -> bool:
    return char.isascii() and char.isalpha()


def _is_alnum(char: str) -> bool:
    return char.isascii() and char.isalnum()


def _is_digit(char: str) -> bool:
    return char.isascii() and char.isdigit()


def tokenize_string(source: str, filename: str = "<string>") -> List[Token]:
    """
    Convenience function to tokenize a source string.

    Args:
        source: Source code string
        filename: Filename for token locations

    Returns:
        List of tokens ending with EOF
    """
    return Lexer(source, filename).tokenize()


def tokenize_file(filepath: str) -> List[Token]:
    """
    Convenience function to tokenize a source file.

    Raises:
        IOError: If file cannot be read
    """
    with open(filepath, 'r', encoding='utf-8', errors='replace') as f:
        return Lexer(f, filepath).tokenize()
