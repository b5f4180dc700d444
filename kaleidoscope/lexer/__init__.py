"""
Kaleidoscope Lexer Package

Implements the lexical analyzer for the Kaleidoscope toy language.

Key Features:
- Streams characters one at a time with a single character of pushback
- Case-sensitive keywords (def, extern, if, then, else, for, in, var, unary, binary)
- Loose numeric literals converted with strtod prefix rules
- '#' line comments
- Source location tracking on every token

Author: xwest
"""

from .tokens import Token, TokenType, SourceLocation, KEYWORDS
from .lexer import Lexer, parse_number, tokenize_string, tokenize_file

__all__ = [
    "Lexer",
    "Token",
    "TokenType",
    "SourceLocation",
    "KEYWORDS",
    "parse_number",
    "tokenize_string",
    "tokenize_file",
]
