"""
Kaleidoscope Parser Implementation

Recursive descent for definitions, externs and the control-flow constructs,
precedence climbing for binary operator chains. The precedence table is
consulted on every operator and extended whenever a ``binary`` operator
prototype is parsed, so operators defined earlier in the input are usable
(with their declared precedence) later in the same session.

Author: xwest
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple, Union

from ..lexer.lexer import Lexer
from ..lexer.tokens import Token, TokenType
from .ast_nodes import (
    ANONYMOUS_FUNCTION_NAME, SourceSpan, Expression, NumberLiteral,
    VariableReference, UnaryOp, BinaryOp, Call, IfExpression, ForLoop,
    VarBinding, Prototype, PrototypeKind, FunctionDef, Program, Item
)
from .errors import (
    ParseError, SyntaxErrorRecovery, create_unexpected_token_error,
    create_expected_token_error, create_invalid_expression_error,
    create_prototype_error, create_operator_error, create_nesting_error
)
from .precedence import (
    PrecedenceTable, NOT_AN_OPERATOR, DEFAULT_BINARY_PRECEDENCE,
    MIN_PRECEDENCE, MAX_PRECEDENCE
)

logger = logging.getLogger(__name__)

# Marks a prototype that didn't touch the precedence table
_NO_REGISTRATION = object()

# Number of operands each operator kind takes
_OPERATOR_ARITY = {
    PrototypeKind.UNARY: 1,
    PrototypeKind.BINARY: 2,
}


class Parser:
    """
    Kaleidoscope parser.

    Pulls tokens from a Lexer one at a time and keeps a single token of
    lookahead in ``current_token``. ``parse_top_level()`` is the unit of
    work: it returns a FunctionDef or Prototype, or None for a bare ``;``
    and at end of input, and raises ParseError when the unit is malformed.
    A failed unit does not poison the parser; call ``synchronize()`` and
    carry on.
    """

    def __init__(self, lexer: Union[Lexer, str], precedence: Optional[PrecedenceTable] = None):
        """
        Initialize the parser and read the first token.

        Args:
            lexer: Token source (a string is wrapped in a Lexer)
            precedence: Operator table shared with the caller; a fresh
                default table is created when omitted
        """
        if isinstance(lexer, str):
            lexer = Lexer(lexer, "<string>")
        self.lexer = lexer
        self.precedence = precedence if precedence is not None else PrecedenceTable()
        self.errors: List[ParseError] = []

        # Count of tokens consumed so far; lets callers tell whether a
        # failed unit made any progress
        self.position = 0
        self.previous_token: Optional[Token] = None
        self.current_token: Token = self.lexer.next_token()

        self.primary_parsers: Dict[TokenType, Callable[[], Expression]] = {
            TokenType.IDENTIFIER: self._parse_identifier_expr,
            TokenType.NUMBER: self._parse_number,
            TokenType.IF: self._parse_if,
            TokenType.FOR: self._parse_for,
            TokenType.VAR: self._parse_var,
        }

    # ------------------------------------------------------------------
    # Top level
    # ------------------------------------------------------------------

    def parse(self) -> Program:
        """
        Parse every top-level unit up to the end of input.

        Failed units are recorded in ``self.errors`` and skipped.

        Returns:
            Program holding the successfully parsed items

        Raises:
            ParseError: The first error, if any unit failed
        """
        start = self.current_token.location
        items: List[Item] = []

        while not self.at_end():
            unit_start = self.position
            try:
                item = self.parse_top_level()
                if item is not None:
                    items.append(item)
            except ParseError as e:
                self.errors.append(e)
                self.synchronize(unit_start)

        program = Program(items, SourceSpan(start, self.current_token.location))

        if self.errors:
            raise self.errors[0]

        return program

    def parse_top_level(self) -> Optional[Item]:
        """
        Parse one top-level unit.

        Returns:
            FunctionDef for ``def`` and bare expressions, Prototype for
            ``extern``, None for a ``;`` separator or end of input
        """
        token = self.current_token

        if token.type == TokenType.EOF:
            return None
        if token.is_char(';'):
            self._advance()
            return None
        try:
            if token.type == TokenType.DEF:
                return self.parse_definition()
            if token.type == TokenType.EXTERN:
                return self.parse_extern()
            return self.parse_top_level_expression()
        except RecursionError:
            # Parse depth is bounded by the interpreter recursion limit
            raise create_nesting_error(self.current_token) from None

    def parse_definition(self) -> FunctionDef:
        """definition ::= 'def' prototype expression"""
        start_token = self._expect(TokenType.DEF, "'def'")
        prototype, previous = self._parse_prototype()

        try:
            body = self.parse_expression()
        except (ParseError, RecursionError):
            # The operator never got a body; take its precedence back out
            if previous is not _NO_REGISTRATION:
                self.precedence.restore(prototype.operator, previous)
            raise

        return FunctionDef(prototype, body, self._span_from(start_token))

    def parse_extern(self) -> Prototype:
        """external ::= 'extern' prototype"""
        self._expect(TokenType.EXTERN, "'extern'")
        prototype, _ = self._parse_prototype()
        return prototype

    def parse_top_level_expression(self) -> FunctionDef:
        """Wrap a bare expression in a zero-argument anonymous function."""
        start_token = self.current_token
        body = self.parse_expression()
        span = self._span_from(start_token)
        prototype = Prototype(ANONYMOUS_FUNCTION_NAME, (), span=span)
        return FunctionDef(prototype, body, span)

    def parse_prototype(self) -> Prototype:
        """
        prototype ::= identifier '(' identifier* ')'
                    | 'unary' CHAR '(' identifier ')'
                    | 'binary' CHAR number? '(' identifier identifier ')'
        """
        prototype, _ = self._parse_prototype()
        return prototype

    def _parse_prototype(self) -> Tuple[Prototype, object]:
        """Parse a prototype; also returns what its registration replaced."""
        start_token = self.current_token
        kind = PrototypeKind.FUNCTION
        precedence = 0

        if start_token.type == TokenType.IDENTIFIER:
            name = start_token.value
            self._advance()
        elif start_token.type in (TokenType.UNARY, TokenType.BINARY):
            kind = PrototypeKind.UNARY if start_token.type == TokenType.UNARY else PrototypeKind.BINARY
            self._advance()

            op_token = self.current_token
            if not op_token.is_ascii_char:
                raise create_prototype_error(f"expected {kind.value} operator", op_token)
            name = kind.value + op_token.value
            self._advance()

            if kind == PrototypeKind.BINARY:
                precedence = DEFAULT_BINARY_PRECEDENCE
                if self.current_token.type == TokenType.NUMBER:
                    precedence = self._parse_declared_precedence()
        else:
            raise create_prototype_error("expected function name in prototype", start_token)

        if not self.current_token.is_char('('):
            raise create_prototype_error("expected '(' in prototype", self.current_token)
        self._advance()

        # Parameter names are separated by whitespace only
        params: List[str] = []
        while self.current_token.type == TokenType.IDENTIFIER:
            params.append(self._advance().value)

        if not self.current_token.is_char(')'):
            raise create_prototype_error(
                "expected ')' in prototype", self.current_token,
                help_text="parameter names are identifiers separated by spaces, not commas"
            )
        self._advance()

        if kind in _OPERATOR_ARITY and len(params) != _OPERATOR_ARITY[kind]:
            raise create_operator_error(
                "invalid number of operands for operator",
                start_token.location, start_token,
                help_text=f"a {kind.value} operator takes exactly {_OPERATOR_ARITY[kind]} "
                          f"operand(s), got {len(params)}"
            )

        prototype = Prototype(name, params, kind, precedence, self._span_from(start_token))

        previous = _NO_REGISTRATION
        if prototype.is_binary_op:
            previous = self.precedence.register(prototype.operator, precedence)
        return prototype, previous

    def _parse_declared_precedence(self) -> int:
        token = self._advance()
        if token.value < MIN_PRECEDENCE or token.value > MAX_PRECEDENCE:
            raise create_operator_error(
                f"invalid precedence: must be {MIN_PRECEDENCE}..{MAX_PRECEDENCE}",
                token.location, token,
                help_text=f"got {token.lexeme}"
            )
        return int(token.value)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def parse_expression(self) -> Expression:
        """expression ::= unary binoprhs"""
        left = self._parse_unary()
        return self._parse_binop_rhs(0, left)

    def _parse_unary(self) -> Expression:
        """unary ::= primary | CHAR unary"""
        token = self.current_token

        # Anything that isn't an ASCII operator character must be a primary
        if not token.is_ascii_char or token.is_char('(') or token.is_char(','):
            return self._parse_primary()

        self._advance()
        operand = self._parse_unary()
        return UnaryOp(token.value, operand, SourceSpan(token.location, operand.span.end))

    def _parse_binop_rhs(self, min_precedence: int, left: Expression) -> Expression:
        """binoprhs ::= (CHAR unary)*, climbing on the precedence table"""
        while True:
            precedence = self._current_precedence()
            if precedence < min_precedence:
                return left

            op_token = self._advance()
            right = self._parse_unary()

            # A tighter operator after the right operand takes it first
            if precedence < self._current_precedence():
                right = self._parse_binop_rhs(precedence + 1, right)

            left = self._make_binary(op_token, left, right)

    def _current_precedence(self) -> int:
        token = self.current_token
        if token.type != TokenType.CHAR:
            return NOT_AN_OPERATOR
        return self.precedence.get(token.value)

    def _make_binary(self, op_token: Token, left: Expression, right: Expression) -> BinaryOp:
        if op_token.value == '=' and not isinstance(left, VariableReference):
            raise create_operator_error(
                "destination of '=' must be a variable",
                op_token.location, op_token,
                help_text="only a plain variable name can be assigned to"
            )
        return BinaryOp(op_token.value, left, right, SourceSpan(left.span.start, right.span.end))

    def _parse_primary(self) -> Expression:
        token = self.current_token

        if token.is_char('('):
            return self._parse_paren_expr()

        parser = self.primary_parsers.get(token.type)
        if parser is None:
            raise create_invalid_expression_error(token)
        return parser()

    def _parse_number(self) -> NumberLiteral:
        """numberexpr ::= number"""
        token = self._advance()
        return NumberLiteral(token.value, SourceSpan(token.location, token.location))

    def _parse_paren_expr(self) -> Expression:
        """parenexpr ::= '(' expression ')'"""
        self._advance()
        expr = self.parse_expression()
        self._expect_char(')')
        return expr

    def _parse_identifier_expr(self) -> Expression:
        """
        identifierexpr ::= identifier
                         | identifier '(' (expression (',' expression)*)? ')'
        """
        name_token = self._advance()

        if not self.current_token.is_char('('):
            return VariableReference(name_token.value, SourceSpan(name_token.location, name_token.location))

        self._advance()
        args: List[Expression] = []
        if not self.current_token.is_char(')'):
            while True:
                args.append(self.parse_expression())
                if self.current_token.is_char(')'):
                    break
                if not self.current_token.is_char(','):
                    raise create_unexpected_token_error("')' or ','", self.current_token, "in argument list")
                self._advance()
        self._advance()

        return Call(name_token.value, args, self._span_from(name_token))

    def _parse_if(self) -> IfExpression:
        """ifexpr ::= 'if' expression 'then' expression 'else' expression"""
        start_token = self._advance()

        condition = self.parse_expression()
        self._expect(TokenType.THEN, "'then'", "after 'if' condition")
        then_branch = self.parse_expression()
        self._expect(TokenType.ELSE, "'else'", "after 'then' branch")
        else_branch = self.parse_expression()

        return IfExpression(condition, then_branch, else_branch, self._span_from(start_token))

    def _parse_for(self) -> ForLoop:
        """forexpr ::= 'for' identifier '=' expr ',' expr (',' expr)? 'in' expression"""
        start_token = self._advance()

        variable = self._expect(TokenType.IDENTIFIER, "identifier", "after 'for'").value
        self._expect_char('=', "after 'for' variable")
        start = self.parse_expression()
        self._expect_char(',', "after 'for' start value")
        end = self.parse_expression()

        step = None
        if self.current_token.is_char(','):
            self._advance()
            step = self.parse_expression()

        self._expect(TokenType.IN, "'in'", "after 'for'")
        body = self.parse_expression()

        return ForLoop(variable, start, end, step, body, self._span_from(start_token))

    def _parse_var(self) -> VarBinding:
        """varexpr ::= 'var' identifier ('=' expression)? (',' identifier ('=' expression)?)* 'in' expression"""
        start_token = self._advance()

        self._expect_identifier_ahead("after 'var'")
        bindings: List[Tuple[str, Optional[Expression]]] = []
        while True:
            name = self._advance().value

            initializer = None
            if self.current_token.is_char('='):
                self._advance()
                initializer = self.parse_expression()
            bindings.append((name, initializer))

            if not self.current_token.is_char(','):
                break
            self._advance()
            self._expect_identifier_ahead("in 'var' list")

        self._expect(TokenType.IN, "'in'", "after 'var'")
        body = self.parse_expression()

        return VarBinding(bindings, body, self._span_from(start_token))

    # ------------------------------------------------------------------
    # Recovery
    # ------------------------------------------------------------------

    def synchronize(self, unit_start: Optional[int] = None):
        """
        Skip to the start of the next top-level unit after a failure.

        Stops at ';', 'def', 'extern' or end of input without consuming it.
        If ``unit_start`` is given and the failed unit consumed nothing,
        one token is dropped first so the caller always makes progress.
        """
        if unit_start is not None and self.position == unit_start and not self.at_end():
            self._advance()
        while not SyntaxErrorRecovery.is_unit_boundary(self.current_token):
            self._advance()

    # ------------------------------------------------------------------
    # Utility methods
    # ------------------------------------------------------------------

    def at_end(self) -> bool:
        return self.current_token.type == TokenType.EOF

    def _advance(self) -> Token:
        """Consume the current token, read the next one, return the consumed one."""
        token = self.current_token
        if token.type != TokenType.EOF:
            self.previous_token = token
            self.current_token = self.lexer.next_token()
            self.position += 1
            logger.debug("consumed %s, current token %s", token, self.current_token)
        return token

    def _expect(self, token_type: TokenType, description: str, context: Optional[str] = None) -> Token:
        if self.current_token.type != token_type:
            raise create_expected_token_error(description, self.current_token, context)
        return self._advance()

    def _expect_char(self, char: str, context: Optional[str] = None) -> Token:
        if not self.current_token.is_char(char):
            raise create_expected_token_error(f"'{char}'", self.current_token, context)
        return self._advance()

    def _expect_identifier_ahead(self, context: str):
        if self.current_token.type != TokenType.IDENTIFIER:
            raise create_expected_token_error("identifier", self.current_token, context)

    def _span_from(self, start_token: Token) -> SourceSpan:
        end = self.previous_token.location if self.previous_token is not None else start_token.location
        return SourceSpan(start_token.location, end)


def parse_string(source: str, filename: str = "<string>",
                 precedence: Optional[PrecedenceTable] = None) -> Program:
    """
    Convenience function to parse a source string.

    Raises:
        ParseError: If any top-level unit fails to parse
    """
    return Parser(Lexer(source, filename), precedence).parse()


def parse_file(filepath: str, precedence: Optional[PrecedenceTable] = None) -> Program:
    """
    Convenience function to parse a source file.

    Raises:
        ParseError: If any top-level unit fails to parse
        IOError: If file cannot be read
    """
    with open(filepath, 'r', encoding='utf-8', errors='replace') as f:
        return Parser(Lexer(f, filepath), precedence).parse()
