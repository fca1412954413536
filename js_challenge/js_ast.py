"""Lightweight JavaScript syntax tree used by the challenge solver passes.

Nodes are plain dataclasses.  They compare by identity so passes can use
them as dictionary keys, and every node carries a ``parent`` link (kept up
to date by :mod:`js_challenge.visitor`) plus a free-form ``metadata`` dict
that passes use to annotate what they did.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .sandbox import UNDEFINED, SandboxValue, is_array, number_to_string

__all__ = [
    "Node",
    "Expr",
    "Stmt",
    "Identifier",
    "NumberLiteral",
    "StringLiteral",
    "BooleanLiteral",
    "NullLiteral",
    "UndefinedLiteral",
    "ArrayLiteral",
    "Property",
    "ObjectLiteral",
    "FunctionExpression",
    "Call",
    "StaticMember",
    "ComputedMember",
    "Binary",
    "Unary",
    "Conditional",
    "Assign",
    "Sequence",
    "VarDeclarator",
    "VarDeclaration",
    "FunctionDeclaration",
    "ExpressionStatement",
    "Return",
    "If",
    "For",
    "While",
    "Try",
    "Break",
    "Continue",
    "Block",
    "is_literal",
    "literal_value",
    "literal_node",
    "render_expr",
    "to_source",
]


class Node:
    __slots__ = ("parent",)

    def __post_init__(self) -> None:
        self.parent: Optional[Node] = None


class Expr(Node):
    __slots__ = ()


class Stmt(Node):
    __slots__ = ()


# ---------------------------------------------------------------------------
# Expressions


@dataclass(slots=True, eq=False)
class Identifier(Expr):
    name: str
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class NumberLiteral(Expr):
    value: float
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class StringLiteral(Expr):
    value: str
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class BooleanLiteral(Expr):
    value: bool
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class NullLiteral(Expr):
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class UndefinedLiteral(Expr):
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class ArrayLiteral(Expr):
    elements: List[Expr]
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class Property(Node):
    key: str
    value: Expr
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class ObjectLiteral(Expr):
    properties: List[Property]
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class FunctionExpression(Expr):
    params: List[Identifier]
    body: List[Stmt]
    name: Optional[Identifier] = None
    is_arrow: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class Call(Expr):
    callee: Expr
    args: List[Expr]
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class StaticMember(Expr):
    """``object.name``"""

    object: Expr
    name: str
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class ComputedMember(Expr):
    """``object[key]``"""

    object: Expr
    key: Expr
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class Binary(Expr):
    """Binary operator application, logical operators included."""

    op: str
    left: Expr
    right: Expr
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class Unary(Expr):
    op: str
    operand: Expr
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class Conditional(Expr):
    test: Expr
    consequent: Expr
    alternate: Expr
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class Assign(Expr):
    """Assignment; ``op`` is ``"="`` or a compound operator such as ``"+="``."""

    target: Expr
    op: str
    value: Expr
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class Sequence(Expr):
    expressions: List[Expr]
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


# ---------------------------------------------------------------------------
# Statements


@dataclass(slots=True, eq=False)
class VarDeclarator(Node):
    id: Identifier
    init: Optional[Expr] = None
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class VarDeclaration(Stmt):
    kind: str
    declarations: List[VarDeclarator]
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class FunctionDeclaration(Stmt):
    name: Identifier
    params: List[Identifier]
    body: List[Stmt]
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class ExpressionStatement(Stmt):
    expression: Expr
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class Return(Stmt):
    argument: Optional[Expr] = None
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class If(Stmt):
    test: Expr
    consequent: List[Stmt]
    alternate: Optional[List[Stmt]] = None
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class For(Stmt):
    init: Optional[Node]
    test: Optional[Expr]
    update: Optional[Expr]
    body: List[Stmt]
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class While(Stmt):
    test: Expr
    body: List[Stmt]
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class Try(Stmt):
    """``try``/``catch``/``finally``; ``handler`` is ``None`` without a catch clause."""

    block: List[Stmt]
    param: Optional[Identifier] = None
    handler: Optional[List[Stmt]] = None
    finalizer: Optional[List[Stmt]] = None
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class Break(Stmt):
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class Continue(Stmt):
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True, eq=False)
class Block(Stmt):
    body: List[Stmt]
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False)


# ---------------------------------------------------------------------------
# Literal helpers


def is_literal(node: Node) -> bool:
    """Return ``True`` when ``node`` is a fully literal sandbox value."""

    if isinstance(node, (NumberLiteral, StringLiteral, BooleanLiteral, UndefinedLiteral)):
        return True
    if isinstance(node, ArrayLiteral):
        return all(is_literal(element) for element in node.elements)
    return False


def literal_value(node: Node) -> SandboxValue:
    if isinstance(node, (NumberLiteral, StringLiteral, BooleanLiteral)):
        return node.value
    if isinstance(node, UndefinedLiteral):
        return UNDEFINED
    if isinstance(node, ArrayLiteral):
        return tuple(literal_value(element) for element in node.elements)
    raise TypeError(f"{type(node).__name__} is not a literal")


def literal_node(value: SandboxValue) -> Expr:
    """Build a fresh literal node holding ``value``."""

    if value is UNDEFINED:
        return UndefinedLiteral()
    if isinstance(value, bool):
        return BooleanLiteral(value)
    if isinstance(value, (int, float)):
        return NumberLiteral(float(value))
    if isinstance(value, str):
        return StringLiteral(value)
    if is_array(value):
        return ArrayLiteral([literal_node(item) for item in value])
    raise TypeError(f"cannot build a literal from {value!r}")


# ---------------------------------------------------------------------------
# Rendering

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

_BINARY_PRECEDENCE = {
    "??": 4,
    "||": 4,
    "&&": 5,
    "|": 6,
    "^": 7,
    "&": 8,
    "==": 9,
    "!=": 9,
    "===": 9,
    "!==": 9,
    "<": 10,
    ">": 10,
    "<=": 10,
    ">=": 10,
    "in": 10,
    "instanceof": 10,
    "<<": 11,
    ">>": 11,
    ">>>": 11,
    "+": 12,
    "-": 12,
    "*": 13,
    "/": 13,
    "%": 13,
    "**": 14,
}

_SEQUENCE = 1
_ASSIGN = 2
_CONDITIONAL = 3
_UNARY = 15
_POSTFIX = 18
_PRIMARY = 19


def _precedence(node: Expr) -> int:
    if isinstance(node, Sequence):
        return _SEQUENCE
    if isinstance(node, Assign):
        return _ASSIGN
    if isinstance(node, FunctionExpression) and node.is_arrow:
        return _ASSIGN
    if isinstance(node, Conditional):
        return _CONDITIONAL
    if isinstance(node, Binary):
        return _BINARY_PRECEDENCE.get(node.op, _UNARY - 1)
    if isinstance(node, Unary):
        return _UNARY
    if isinstance(node, NumberLiteral) and (node.value < 0 or math.copysign(1.0, node.value) < 0):
        return _UNARY
    if isinstance(node, (Call, StaticMember, ComputedMember)):
        return _POSTFIX
    return _PRIMARY


def _wrap(node: Expr, minimum: int) -> str:
    text = render_expr(node)
    if _precedence(node) < minimum:
        return f"({text})"
    return text


def _render_number(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if value == 0 and math.copysign(1.0, value) < 0:
        return "-0"
    return number_to_string(value)


def _render_key(key: str) -> str:
    return key if _IDENTIFIER_RE.match(key) else json.dumps(key)


def _render_callee(node: Expr) -> str:
    if isinstance(node, (FunctionExpression, ObjectLiteral)):
        return f"({render_expr(node)})"
    return _wrap(node, _POSTFIX)


def _mixes_nullish(op: str, child: Expr) -> bool:
    if not isinstance(child, Binary):
        return False
    pair = {op, child.op}
    return "??" in pair and bool(pair & {"&&", "||"})


def _render_binary(node: Binary) -> str:
    precedence = _BINARY_PRECEDENCE.get(node.op, _UNARY - 1)
    if node.op == "**":
        left_min, right_min = precedence + 2, precedence
    else:
        left_min, right_min = precedence, precedence + 1
    left = _wrap(node.left, left_min)
    right = _wrap(node.right, right_min)
    if _mixes_nullish(node.op, node.left) and not left.startswith("("):
        left = f"({left})"
    if _mixes_nullish(node.op, node.right) and not right.startswith("("):
        right = f"({right})"
    return f"{left} {node.op} {right}"


def _render_unary(node: Unary) -> str:
    operand = _wrap(node.operand, _UNARY)
    if node.op in {"typeof", "void", "delete"}:
        return f"{node.op} {operand}"
    if operand.startswith(node.op) and node.op in {"-", "+"}:
        return f"{node.op}({operand})"
    return f"{node.op}{operand}"


def render_expr(node: Expr) -> str:
    """Render an expression subtree as JavaScript source."""

    if isinstance(node, Identifier):
        return node.name
    if isinstance(node, NumberLiteral):
        return _render_number(node.value)
    if isinstance(node, StringLiteral):
        return json.dumps(node.value)
    if isinstance(node, BooleanLiteral):
        return "true" if node.value else "false"
    if isinstance(node, NullLiteral):
        return "null"
    if isinstance(node, UndefinedLiteral):
        return "undefined"
    if isinstance(node, ArrayLiteral):
        return "[" + ", ".join(_wrap(item, _ASSIGN) for item in node.elements) + "]"
    if isinstance(node, ObjectLiteral):
        if not node.properties:
            return "{}"
        entries = ", ".join(
            f"{_render_key(prop.key)}: {_wrap(prop.value, _ASSIGN)}" for prop in node.properties
        )
        return "{" + entries + "}"
    if isinstance(node, FunctionExpression):
        return _render_function(node, 0)
    if isinstance(node, Call):
        args = ", ".join(_wrap(arg, _ASSIGN) for arg in node.args)
        return f"{_render_callee(node.callee)}({args})"
    if isinstance(node, StaticMember):
        return f"{_render_callee(node.object)}.{node.name}"
    if isinstance(node, ComputedMember):
        return f"{_render_callee(node.object)}[{render_expr(node.key)}]"
    if isinstance(node, Binary):
        return _render_binary(node)
    if isinstance(node, Unary):
        return _render_unary(node)
    if isinstance(node, Conditional):
        return (
            f"{_wrap(node.test, _CONDITIONAL + 1)} ? {_wrap(node.consequent, _ASSIGN)}"
            f" : {_wrap(node.alternate, _ASSIGN)}"
        )
    if isinstance(node, Assign):
        return f"{_wrap(node.target, _POSTFIX)} {node.op} {_wrap(node.value, _ASSIGN)}"
    if isinstance(node, Sequence):
        return ", ".join(_wrap(item, _ASSIGN) for item in node.expressions)
    raise TypeError(f"cannot render {type(node).__name__} as an expression")


def _params(params: List[Identifier]) -> str:
    return ", ".join(param.name for param in params)


def _render_block(body: List[Stmt], depth: int) -> str:
    if not body:
        return "{}"
    inner = "\n".join(_render_statement(stmt, depth + 1) for stmt in body)
    return "{\n" + inner + "\n" + "  " * depth + "}"


def _render_function(node: FunctionExpression, depth: int) -> str:
    if node.is_arrow:
        return f"({_params(node.params)}) => {_render_block(node.body, depth)}"
    name = f" {node.name.name}" if node.name is not None else ""
    return f"function{name}({_params(node.params)}) {_render_block(node.body, depth)}"


def _render_declaration(node: VarDeclaration) -> str:
    parts = []
    for declarator in node.declarations:
        if declarator.init is None:
            parts.append(declarator.id.name)
        else:
            parts.append(f"{declarator.id.name} = {_wrap(declarator.init, _ASSIGN)}")
    return f"{node.kind} " + ", ".join(parts)


def _render_statement(node: Stmt, depth: int) -> str:
    pad = "  " * depth
    if isinstance(node, ExpressionStatement):
        text = render_expr(node.expression)
        if text.startswith(("function", "{")):
            text = f"({text})"
        return f"{pad}{text};"
    if isinstance(node, VarDeclaration):
        return f"{pad}{_render_declaration(node)};"
    if isinstance(node, FunctionDeclaration):
        return (
            f"{pad}function {node.name.name}({_params(node.params)}) "
            f"{_render_block(node.body, depth)}"
        )
    if isinstance(node, Return):
        if node.argument is None:
            return f"{pad}return;"
        return f"{pad}return {render_expr(node.argument)};"
    if isinstance(node, If):
        text = f"{pad}if ({render_expr(node.test)}) {_render_block(node.consequent, depth)}"
        if node.alternate is not None:
            text += f" else {_render_block(node.alternate, depth)}"
        return text
    if isinstance(node, For):
        if node.init is None:
            init = ""
        elif isinstance(node.init, VarDeclaration):
            init = _render_declaration(node.init)
        else:
            init = render_expr(node.init)  # type: ignore[arg-type]
        test = render_expr(node.test) if node.test is not None else ""
        update = render_expr(node.update) if node.update is not None else ""
        return f"{pad}for ({init}; {test}; {update}) {_render_block(node.body, depth)}"
    if isinstance(node, While):
        return f"{pad}while ({render_expr(node.test)}) {_render_block(node.body, depth)}"
    if isinstance(node, Try):
        text = f"{pad}try {_render_block(node.block, depth)}"
        if node.handler is not None:
            clause = f" catch ({node.param.name})" if node.param is not None else " catch"
            text += f"{clause} {_render_block(node.handler, depth)}"
        if node.finalizer is not None:
            text += f" finally {_render_block(node.finalizer, depth)}"
        return text
    if isinstance(node, Break):
        return f"{pad}break;"
    if isinstance(node, Continue):
        return f"{pad}continue;"
    if isinstance(node, Block):
        return f"{pad}{_render_block(node.body, depth)}"
    raise TypeError(f"cannot render {type(node).__name__} as a statement")


def to_source(node: Node) -> str:
    """Render ``node`` (statement, expression or function) as JavaScript."""

    if isinstance(node, FunctionExpression):
        return _render_function(node, 0)
    if isinstance(node, Stmt):
        return _render_statement(node, 0)
    if isinstance(node, Expr):
        return render_expr(node)
    if isinstance(node, VarDeclarator):
        return _render_declaration(VarDeclaration("var", [node]))
    raise TypeError(f"cannot render {type(node).__name__}")
