"""
Abstract Syntax Tree node definitions for Kaleidoscope.

Every node is an immutable dataclass tagged with an ASTNodeType. Children are
owned exclusively (plain references and tuples, no sharing, no cycles), and
source spans are excluded from equality so trees compare structurally.

Author: xwest
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, List, Optional, Tuple

from ..lexer.tokens import SourceLocation


# Name given to the zero-argument function wrapping a bare top-level expression
ANONYMOUS_FUNCTION_NAME = "__anon_expr"


class ASTNodeType(Enum):
    """Enumeration of all AST node types (the tag of the node sum type)."""

    # Top-level
    PROGRAM = "Program"
    PROTOTYPE = "Prototype"
    FUNCTION_DEF = "FunctionDef"

    # Expressions
    NUMBER_LITERAL = "NumberLiteral"
    VARIABLE_REFERENCE = "VariableReference"
    UNARY_OP = "UnaryOp"
    BINARY_OP = "BinaryOp"
    CALL = "Call"
    IF_EXPRESSION = "IfExpression"
    FOR_LOOP = "ForLoop"
    VAR_BINDING = "VarBinding"


class PrototypeKind(Enum):
    """What a prototype declares."""
    FUNCTION = "function"
    UNARY = "unary"
    BINARY = "binary"


@dataclass(frozen=True)
class SourceSpan:
    """Represents a span of source code (start and end locations)."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        if self.start.filename == self.end.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start}-{self.end}"


class ASTVisitor:
    """
    Visitor base class.

    ``visit`` dispatches on the node's tag to ``visit_<NodeName>``, e.g.
    ``visit_BinaryOp``. Nodes without a handler go to ``generic_visit``.
    """

    def visit(self, node: 'ASTNode') -> Any:
        method = getattr(self, f"visit_{node.node_type.value}", self.generic_visit)
        return method(node)

    def generic_visit(self, node: 'ASTNode') -> Any:
        raise NotImplementedError(f"{type(self).__name__} has no handler for {node.node_type.value}")


class ASTNode:
    """Base class for all AST nodes."""

    node_type: ClassVar[ASTNodeType]

    def accept(self, visitor: ASTVisitor) -> Any:
        """Accept a visitor (visitor pattern)."""
        return visitor.visit(self)

    def children(self) -> List['ASTNode']:
        """Get all child nodes, in source order."""
        return []

    def walk(self):
        """Yield this node and all of its descendants, depth first."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children()))


def _span():
    return field(default=None, compare=False, repr=False)


# ============================================================================
# Expressions
# ============================================================================

class Expression(ASTNode):
    """Base class for expressions."""
    pass


@dataclass(frozen=True)
class NumberLiteral(Expression):
    """Numeric literal, e.g. ``1.0``."""
    node_type: ClassVar[ASTNodeType] = ASTNodeType.NUMBER_LITERAL
    value: float
    span: Optional[SourceSpan] = _span()


@dataclass(frozen=True)
class VariableReference(Expression):
    """Reference to a variable, e.g. ``a``."""
    node_type: ClassVar[ASTNodeType] = ASTNodeType.VARIABLE_REFERENCE
    name: str
    span: Optional[SourceSpan] = _span()


@dataclass(frozen=True)
class UnaryOp(Expression):
    """Prefix operator applied to one operand, e.g. ``!x``."""
    node_type: ClassVar[ASTNodeType] = ASTNodeType.UNARY_OP
    operator: str
    operand: Expression
    span: Optional[SourceSpan] = _span()

    def children(self) -> List[ASTNode]:
        return [self.operand]


@dataclass(frozen=True)
class BinaryOp(Expression):
    """
    Binary operation, e.g. ``a + b``.

    Assignment is the ``=`` operator; its left operand is always a
    VariableReference (the parser rejects anything else).
    """
    node_type: ClassVar[ASTNodeType] = ASTNodeType.BINARY_OP
    operator: str
    left: Expression
    right: Expression
    span: Optional[SourceSpan] = _span()

    def children(self) -> List[ASTNode]:
        return [self.left, self.right]

    @property
    def is_assignment(self) -> bool:
        return self.operator == '='


@dataclass(frozen=True)
class Call(Expression):
    """Function call, e.g. ``foo(1, x)``."""
    node_type: ClassVar[ASTNodeType] = ASTNodeType.CALL
    callee: str
    args: Tuple[Expression, ...] = ()
    span: Optional[SourceSpan] = _span()

    def __post_init__(self):
        object.__setattr__(self, 'args', tuple(self.args))

    def children(self) -> List[ASTNode]:
        return list(self.args)


@dataclass(frozen=True)
class IfExpression(Expression):
    """``if cond then a else b``; the else branch is mandatory."""
    node_type: ClassVar[ASTNodeType] = ASTNodeType.IF_EXPRESSION
    condition: Expression
    then_branch: Expression
    else_branch: Expression
    span: Optional[SourceSpan] = _span()

    def children(self) -> List[ASTNode]:
        return [self.condition, self.then_branch, self.else_branch]


@dataclass(frozen=True)
class ForLoop(Expression):
    """
    ``for i = start, end [, step] in body``.

    A missing step is None; the code generator treats it as 1.0.
    """
    node_type: ClassVar[ASTNodeType] = ASTNodeType.FOR_LOOP
    variable: str
    start: Expression
    end: Expression
    step: Optional[Expression]
    body: Expression
    span: Optional[SourceSpan] = _span()

    def children(self) -> List[ASTNode]:
        children = [self.start, self.end]
        if self.step is not None:
            children.append(self.step)
        children.append(self.body)
        return children


@dataclass(frozen=True)
class VarBinding(Expression):
    """
    ``var a = 1, b in body``.

    Each binding is a (name, initializer) pair; a missing initializer is
    None and the code generator treats it as 0.0.
    """
    node_type: ClassVar[ASTNodeType] = ASTNodeType.VAR_BINDING
    bindings: Tuple[Tuple[str, Optional[Expression]], ...]
    body: Expression
    span: Optional[SourceSpan] = _span()

    def __post_init__(self):
        object.__setattr__(self, 'bindings', tuple((name, init) for name, init in self.bindings))

    def children(self) -> List[ASTNode]:
        children = [init for _, init in self.bindings if init is not None]
        children.append(self.body)
        return children

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self.bindings)


# ============================================================================
# Top-level items
# ============================================================================

class Item(ASTNode):
    """Base class for top-level items handed to the code generator."""
    pass


@dataclass(frozen=True)
class Prototype(Item):
    """
    Signature of a function or user-defined operator.

    Operator prototypes are named ``unary<c>`` / ``binary<c>``; every
    parameter is a double.
    """
    node_type: ClassVar[ASTNodeType] = ASTNodeType.PROTOTYPE
    name: str
    params: Tuple[str, ...] = ()
    kind: PrototypeKind = PrototypeKind.FUNCTION
    precedence: int = 0
    span: Optional[SourceSpan] = _span()

    def __post_init__(self):
        object.__setattr__(self, 'params', tuple(self.params))

    @property
    def is_operator(self) -> bool:
        return self.kind != PrototypeKind.FUNCTION

    @property
    def is_unary_op(self) -> bool:
        return self.kind == PrototypeKind.UNARY and len(self.params) == 1

    @property
    def is_binary_op(self) -> bool:
        return self.kind == PrototypeKind.BINARY and len(self.params) == 2

    @property
    def operator(self) -> str:
        """The operator character of an operator prototype."""
        if not self.is_operator:
            raise ValueError(f"prototype {self.name!r} does not define an operator")
        return self.name[-1]

    @property
    def is_anonymous(self) -> bool:
        return self.name == ANONYMOUS_FUNCTION_NAME


@dataclass(frozen=True)
class FunctionDef(Item):
    """Function definition: a prototype plus a body expression."""
    node_type: ClassVar[ASTNodeType] = ASTNodeType.FUNCTION_DEF
    prototype: Prototype
    body: Expression
    span: Optional[SourceSpan] = _span()

    def children(self) -> List[ASTNode]:
        return [self.prototype, self.body]

    @property
    def name(self) -> str:
        return self.prototype.name


@dataclass(frozen=True)
class Program(ASTNode):
    """Root node for a whole parsed source: the top-level items in order."""
    node_type: ClassVar[ASTNodeType] = ASTNodeType.PROGRAM
    items: Tuple[Item, ...] = ()
    span: Optional[SourceSpan] = _span()

    def __post_init__(self):
        object.__setattr__(self, 'items', tuple(self.items))

    def children(self) -> List[ASTNode]:
        return list(self.items)


# Alias for the main AST type
AST = Program
