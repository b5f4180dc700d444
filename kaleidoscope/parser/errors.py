"""
Error handling for the Kaleidoscope parser.

Parse failures are raised as ParseError carrying a Diagnostic with source
location, an error code and help text. They are never fatal to a session:
the caller records them and resynchronizes at the next top-level unit.

Author: xwest
"""

import sys
from typing import Optional, List, Union
from dataclasses import dataclass

from ..lexer.tokens import Token, TokenType, SourceLocation


@dataclass
class Diagnostic:
    """A compiler diagnostic (error, warning, info)."""
    message: str
    location: SourceLocation
    severity: str  # "error", "warning", "info", "hint"
    code: Optional[str] = None
    help_text: Optional[str] = None
    suggestions: Optional[List[str]] = None

    def __str__(self) -> str:
        severity_prefix = self.severity.upper()
        result = f"{severity_prefix}: {self.message}\n"
        result += f"  --> {self.location}\n"

        if self.help_text:
            result += f"  help: {self.help_text}\n"

        if self.suggestions:
            result += "  suggestions:\n"
            for suggestion in self.suggestions:
                result += f"    - {suggestion}\n"

        return result


class ParseError(Exception):
    """
    Exception raised when a top-level unit fails to parse.

    ``message`` is the bare description; ``str()`` renders the full
    diagnostic.
    """

    def __init__(
        self,
        message: str,
        location: SourceLocation,
        token: Optional[Token] = None,
        code: Optional[str] = None,
        help_text: Optional[str] = None,
        suggestions: Optional[List[str]] = None
    ):
        super().__init__(message)
        self.message = message
        self.diagnostic = Diagnostic(
            message=message,
            location=location,
            severity="error",
            code=code,
            help_text=help_text,
            suggestions=suggestions
        )
        self.token = token

    @property
    def location(self) -> SourceLocation:
        return self.diagnostic.location

    @property
    def code(self) -> Optional[str]:
        return self.diagnostic.code

    def __str__(self) -> str:
        return str(self.diagnostic)


class SyntaxErrorRecovery:
    """
    Utilities for error recovery in the parser.

    After a failed unit the parser skips ahead to one of UNIT_BOUNDARIES,
    where the next top-level unit can start.
    """

    @staticmethod
    def is_unit_boundary(token: Token) -> bool:
        return token.type in (TokenType.DEF, TokenType.EXTERN, TokenType.EOF) or token.is_char(';')

    @staticmethod
    def suggest_missing_token(expected: str) -> List[str]:
        """Suggest what token might be missing."""
        token_suggestions = {
            ")": ["Add a closing parenthesis ')'"],
            "(": ["Add an opening parenthesis '(' before the parameter list"],
            "then": ["An 'if' needs 'then' after its condition"],
            "else": ["Every 'if' needs an 'else' branch"],
            "in": ["Add 'in' before the loop or block body"],
            "=": ["Add '=' after the loop variable"],
            ",": ["Separate the loop start and end with ','"],
        }
        return token_suggestions.get(expected, [])


# Common parser error codes for categorization
PARSER_ERROR_CODES = {
    "P001": "Unexpected token",
    "P002": "Expected token not found",
    "P005": "Invalid expression",
    "P008": "Malformed prototype",
    "P009": "Invalid operator usage",
    "P010": "Unexpected end of input",
    "P011": "Nesting too deep",
}


def _describe(token: Token) -> str:
    if token.type == TokenType.EOF:
        return "end of input"
    if token.type == TokenType.CHAR:
        return f"'{token.value}'"
    if token.type == TokenType.NUMBER:
        return f"number {token.lexeme}"
    if token.type == TokenType.IDENTIFIER:
        return f"identifier '{token.lexeme}'"
    return f"keyword '{token.lexeme}'"


# Helper functions for creating common parser errors

def create_unexpected_token_error(expected: str, found: Token, context: Optional[str] = None) -> ParseError:
    """Create an error for a token that doesn't fit the grammar here."""
    return _expectation_error(expected, found, context, "P001")


def create_expected_token_error(expected: str, found: Token, context: Optional[str] = None) -> ParseError:
    """Create an error for a token the grammar requires at this point but is missing."""
    return _expectation_error(expected, found, context, "P002")


def _expectation_error(expected: str, found: Token, context: Optional[str], code: str) -> ParseError:
    message = f"expected {expected}"
    if context:
        message += f" {context}"

    if found.type == TokenType.EOF:
        return create_unexpected_eof_error(message, found)

    return ParseError(
        message=message,
        location=found.location,
        token=found,
        code=code,
        help_text=f"found {_describe(found)} instead",
        suggestions=SyntaxErrorRecovery.suggest_missing_token(expected.strip("'"))
    )


def create_unexpected_eof_error(message: str, found: Token) -> ParseError:
    """Create an error for input that ended in the middle of a unit."""
    return ParseError(
        message=message,
        location=found.location,
        token=found,
        code="P010",
        help_text="the input ended before this unit was complete"
    )


def create_invalid_expression_error(found: Token) -> ParseError:
    """Create an error for a token that cannot start an expression."""
    if found.type == TokenType.EOF:
        return create_unexpected_eof_error("unknown token when expecting an expression", found)

    return ParseError(
        message="unknown token when expecting an expression",
        location=found.location,
        token=found,
        code="P005",
        help_text=f"{_describe(found)} cannot start an expression"
    )


def create_prototype_error(message: str, found: Token, help_text: Optional[str] = None) -> ParseError:
    """Create an error for a malformed function or operator prototype."""
    return ParseError(
        message=message,
        location=found.location,
        token=found,
        code="P008",
        help_text=help_text or f"found {_describe(found)}"
    )


def create_operator_error(message: str, location: SourceLocation,
                          token: Optional[Token] = None,
                          help_text: Optional[str] = None) -> ParseError:
    """Create an error for invalid use or declaration of an operator."""
    return ParseError(
        message=message,
        location=location,
        token=token,
        code="P009",
        help_text=help_text
    )


def create_nesting_error(found: Token) -> ParseError:
    """Create an error for input nested deeper than the parser can follow."""
    return ParseError(
        message="expression nested too deeply",
        location=found.location,
        token=found,
        code="P011",
        help_text=f"nesting is bounded by the interpreter recursion limit ({sys.getrecursionlimit()})"
    )
