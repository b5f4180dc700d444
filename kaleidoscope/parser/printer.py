"""
Text renderings of the AST: compact S-expressions and an indented tree.

Author: xwest
"""

from typing import Dict, List, Tuple

from .ast_nodes import (
    ASTNode, ASTVisitor, NumberLiteral, VariableReference, UnaryOp, BinaryOp,
    Call, IfExpression, ForLoop, VarBinding, Prototype, FunctionDef, Program
)


def format_number(value: float) -> str:
    """Render 1.0 as ``1`` and 2.5 as ``2.5``."""
    value = float(value)
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


class ASTPrinter(ASTVisitor):
    """
    Renders a node as a single-line S-expression.

    Nodes are rendered children first, in reverse of walk() order, so the
    depth of the tree never turns into Python call depth.
    """

    def __init__(self):
        self._rendered: Dict[int, str] = {}

    def print(self, node: ASTNode) -> str:
        self._rendered = {}
        for child in reversed(list(node.walk())):
            self._rendered[id(child)] = self.visit(child)
        return self._rendered[id(node)]

    def _text(self, node: ASTNode) -> str:
        return self._rendered[id(node)]

    def visit_NumberLiteral(self, node: NumberLiteral) -> str:
        return format_number(node.value)

    def visit_VariableReference(self, node: VariableReference) -> str:
        return node.name

    def visit_UnaryOp(self, node: UnaryOp) -> str:
        return f"({node.operator} {self._text(node.operand)})"

    def visit_BinaryOp(self, node: BinaryOp) -> str:
        return f"({node.operator} {self._text(node.left)} {self._text(node.right)})"

    def visit_Call(self, node: Call) -> str:
        parts = ["call", node.callee] + [self._text(arg) for arg in node.args]
        return f"({' '.join(parts)})"

    def visit_IfExpression(self, node: IfExpression) -> str:
        return (f"(if {self._text(node.condition)} {self._text(node.then_branch)} "
                f"{self._text(node.else_branch)})")

    def visit_ForLoop(self, node: ForLoop) -> str:
        step = self._text(node.step) if node.step is not None else "nil"
        return (f"(for {node.variable} {self._text(node.start)} {self._text(node.end)} "
                f"{step} {self._text(node.body)})")

    def visit_VarBinding(self, node: VarBinding) -> str:
        bindings = " ".join(
            f"({name} {self._text(init) if init is not None else 'nil'})"
            for name, init in node.bindings
        )
        return f"(var ({bindings}) {self._text(node.body)})"

    def visit_Prototype(self, node: Prototype) -> str:
        name = node.name
        if node.is_binary_op:
            name = f"{name} {node.precedence}"
        return f"{name} ({' '.join(node.params)})"

    def visit_FunctionDef(self, node: FunctionDef) -> str:
        return f"(def {self._text(node.prototype)} {self._text(node.body)})"

    def visit_Program(self, node: Program) -> str:
        return "\n".join(self._text(item) for item in node.items)


def to_sexpr(node: ASTNode) -> str:
    """Shortcut for ``ASTPrinter().print(node)``; externs get an ``extern`` wrapper."""
    text = ASTPrinter().print(node)
    if isinstance(node, Prototype):
        return f"(extern {text})"
    return text


def dump_tree(node: ASTNode, indent: str = "  ") -> str:
    """Render ``node`` as an indented tree, one node per line."""
    lines: List[str] = []
    stack: List[Tuple[ASTNode, int]] = [(node, 0)]
    while stack:
        current, depth = stack.pop()
        lines.append(indent * depth + _label(current))
        stack.extend((child, depth + 1) for child in reversed(current.children()))
    return "\n".join(lines)


def _label(node: ASTNode) -> str:
    if isinstance(node, NumberLiteral):
        label = f"NumberLiteral {format_number(node.value)}"
    elif isinstance(node, VariableReference):
        label = f"VariableReference {node.name}"
    elif isinstance(node, (UnaryOp, BinaryOp)):
        label = f"{node.node_type.value} '{node.operator}'"
    elif isinstance(node, Call):
        label = f"Call {node.callee}"
    elif isinstance(node, ForLoop):
        label = f"ForLoop {node.variable}" + ("" if node.step is not None else " (default step)")
    elif isinstance(node, VarBinding):
        label = f"VarBinding {', '.join(node.names)}"
    elif isinstance(node, Prototype):
        label = f"Prototype {ASTPrinter().print(node)}"
    elif isinstance(node, FunctionDef):
        label = f"FunctionDef {node.name}"
    else:
        label = node.node_type.value
    return label
