"""
Kaleidoscope Front End

Lexer, precedence-climbing parser and AST for the Kaleidoscope toy language:
one numeric type, functions, externs, if/for/var expressions and
user-defined unary and binary operators with declared precedence.

Architecture:
    kaleidoscope/
    ├── lexer/           # Tokenization
    ├── parser/          # Precedence table, parser, AST, printers
    ├── driver.py        # Top-level loop feeding a code generator
    └── cli.py           # kal-parse command

Author: xwest
License: MIT
"""

__version__ = "0.1.0"
__author__ = "xwest"
__license__ = "MIT"

from .lexer import Lexer, Token, TokenType
from .parser import Parser, PrecedenceTable, ParseError, parse_string
from .driver import Driver, CodeGenerator, ASTDumpGenerator

__all__ = [
    # Core classes
    "Lexer",
    "Token",
    "TokenType",
    "Parser",
    "PrecedenceTable",
    "ParseError",
    "parse_string",
    "Driver",
    "CodeGenerator",
    "ASTDumpGenerator",

    # Version info
    "__version__",
    "__author__",
    "__license__",
]
