"""
Kaleidoscope Parser Package

Recursive descent parser with precedence climbing for binary operators.
Produces immutable AST nodes with source spans.

Key Features:
- Precedence climbing driven by a mutable, session-scoped precedence table
- User-defined unary and binary operators (``def binary| 5 (a b) ...``)
- if/then/else, for/in and var/in expressions
- Non-fatal parse errors with diagnostics and unit-level resynchronization

Author: xwest
"""

from .ast_nodes import *
from .parser import Parser, parse_string, parse_file
from .precedence import (
    PrecedenceTable, DEFAULT_PRECEDENCES, DEFAULT_BINARY_PRECEDENCE,
    MIN_PRECEDENCE, MAX_PRECEDENCE, NOT_AN_OPERATOR
)
from .printer import ASTPrinter, to_sexpr, dump_tree
from .errors import ParseError, Diagnostic

__all__ = [
    # Core parser
    "Parser", "parse_string", "parse_file",

    # Precedence table
    "PrecedenceTable", "DEFAULT_PRECEDENCES", "DEFAULT_BINARY_PRECEDENCE",
    "MIN_PRECEDENCE", "MAX_PRECEDENCE", "NOT_AN_OPERATOR",

    # AST nodes
    "AST", "ASTNode", "ASTNodeType", "ASTVisitor", "SourceSpan",
    "Program", "Item", "Expression",
    "NumberLiteral", "VariableReference", "UnaryOp", "BinaryOp", "Call",
    "IfExpression", "ForLoop", "VarBinding",
    "Prototype", "PrototypeKind", "FunctionDef", "ANONYMOUS_FUNCTION_NAME",

    # Printing
    "ASTPrinter", "to_sexpr", "dump_tree",

    # Error handling
    "ParseError", "Diagnostic",
]
