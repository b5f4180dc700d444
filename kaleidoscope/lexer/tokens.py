"""
Token definitions for the Kaleidoscope lexer.

The language has very few token kinds:
- Keywords (def, extern, if/then/else, for/in, var, unary, binary)
- Identifiers and numeric literals
- Single operator/punctuation characters
- End of input

Author: xwest
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any


class TokenType(Enum):
    """
    Enumeration of all token types in Kaleidoscope.

    Every character that is not part of a keyword, identifier or number
    comes back as a CHAR token carrying the character itself.
    """

    # ========================================================================
    # Special Tokens
    # ========================================================================
    EOF = auto()                    # End of input

    # ========================================================================
    # Keywords
    # ========================================================================
    DEF = auto()                    # def
    EXTERN = auto()                 # extern
    IF = auto()                     # if
    THEN = auto()                   # then
    ELSE = auto()                   # else
    FOR = auto()                    # for
    IN = auto()                     # in
    VAR = auto()                    # var
    UNARY = auto()                  # unary (operator definition)
    BINARY = auto()                 # binary (operator definition)

    # ========================================================================
    # Identifiers and Literals
    # ========================================================================
    IDENTIFIER = auto()             # foo, x1
    NUMBER = auto()                 # 1, 3.14, 3.4.5 (loose grammar)

    # ========================================================================
    # Operators and Punctuation
    # ========================================================================
    CHAR = auto()                   # + - * < = ( ) , ; | ! ...


@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in the source text.

    Line and column are 1-based, offset is 0-based.
    """
    filename: str
    line: int
    column: int
    offset: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"

    def __repr__(self) -> str:
        return f"SourceLocation({self.filename!r}, {self.line}, {self.column}, {self.offset})"


@dataclass(frozen=True)
class Token:
    """
    A lexical token.

    ``value`` holds the identifier text for IDENTIFIER, the float value for
    NUMBER and the character for CHAR. Keywords and EOF carry ``None``.
    """
    type: TokenType
    lexeme: str
    value: Any
    location: SourceLocation

    def __str__(self) -> str:
        if self.type == TokenType.EOF:
            return "EOF"
        if self.value is not None and self.value != self.lexeme:
            return f"{self.type.name}({self.lexeme!r} -> {self.value!r})"
        return f"{self.type.name}({self.lexeme!r})"

    def __repr__(self) -> str:
        return (f"Token({self.type.name}, {self.lexeme!r}, "
                f"{self.value!r}, {self.location!r})")

    def is_char(self, char: str) -> bool:
        """Check if this is the operator/punctuation token for ``char``."""
        return self.type == TokenType.CHAR and self.value == char

    @property
    def is_keyword(self) -> bool:
        """Check if this token is a keyword."""
        return self.lexeme in KEYWORDS and self.type == KEYWORDS[self.lexeme]

    @property
    def is_identifier(self) -> bool:
        """Check if this token is an identifier."""
        return self.type == TokenType.IDENTIFIER

    @property
    def is_ascii_char(self) -> bool:
        """Check if this is a CHAR token whose character is 7-bit ASCII."""
        return self.type == TokenType.CHAR and self.value.isascii()


# Reserved words, matched case-sensitively
KEYWORDS = {
    "def": TokenType.DEF,
    "extern": TokenType.EXTERN,
    "if": TokenType.IF,
    "then": TokenType.THEN,
    "else": TokenType.ELSE,
    "for": TokenType.FOR,
    "in": TokenType.IN,
    "var": TokenType.VAR,
    "unary": TokenType.UNARY,
    "binary": TokenType.BINARY,
}

# Characters skipped between tokens (the C isspace set)
WHITESPACE = frozenset(" \t\n\r\v\f")

# Characters that end a '#' comment
LINE_TERMINATORS = frozenset("\n\r")
