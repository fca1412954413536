"""Constrained evaluator and constant folder.

:class:`Folder` reduces an expression bottom-up.  A node becomes a literal
when all of its operands are literals; references to a free variable stay
symbolic, so folding a challenge leaves a minimal residual expression that
only mentions the seed parameter.  Global names and dotted paths resolve
through a :class:`~js_challenge.sandbox.SandboxNamespace`; anything outside
that table, or outside the supported operators, is an
:class:`~js_challenge.exceptions.EvaluationError`.

Folding never mutates its input: every call returns freshly built nodes.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Mapping, Optional, TYPE_CHECKING

from ..exceptions import EvaluationError, ShapeMismatch
from ..js_ast import (
    ArrayLiteral,
    Binary,
    BooleanLiteral,
    Call,
    ComputedMember,
    Conditional,
    Expr,
    FunctionExpression,
    Identifier,
    NumberLiteral,
    Return,
    Sequence,
    StaticMember,
    StringLiteral,
    Unary,
    UndefinedLiteral,
    is_literal,
    literal_node,
    literal_value,
    render_expr,
)
from ..sandbox import (
    BINARY_OPERATORS,
    DEFAULT_NAMESPACE,
    LOGICAL_OPERATORS,
    MEASURED_CALL,
    UNDEFINED,
    SandboxNamespace,
    SandboxValue,
    binary_op,
    to_boolean,
    to_string,
    unary_op,
)
from ..scope import Binding, ScopeInfo, resolve_scopes
from ..visitor import replace_node

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..pipeline import Context

LOG = logging.getLogger(__name__)

_UNARY_OPERATORS = frozenset({"-", "+", "!", "~", "typeof", "void"})

Resolver = Callable[..., SandboxValue]


class Folder:
    """Fold expressions against a namespace and optional bindings.

    ``scope_info`` tells bound identifiers apart from globals.  Without it
    every identifier is looked up in the namespace.  ``bindings`` supplies
    values for bound names, ``free`` lists bindings that must stay symbolic,
    and ``resolvers`` maps local function bindings to Python callables used
    when they are called with literal arguments.
    """

    def __init__(
        self,
        namespace: SandboxNamespace = DEFAULT_NAMESPACE,
        *,
        scope_info: Optional[ScopeInfo] = None,
        bindings: Optional[Mapping[Binding, SandboxValue]] = None,
        free: Iterable[Binding] = (),
        resolvers: Optional[Mapping[Binding, Resolver]] = None,
    ) -> None:
        self.namespace = namespace
        self.scope_info = scope_info
        self.bindings: Dict[Binding, SandboxValue] = dict(bindings or {})
        self.free = set(free)
        self.resolvers: Dict[Binding, Resolver] = dict(resolvers or {})

    # -- public API ------------------------------------------------------
    def fold(self, node: Expr) -> Expr:
        method = getattr(self, f"_fold_{type(node).__name__}", None)
        if method is None:
            raise EvaluationError(f"{type(node).__name__} is outside the evaluator grammar")
        return method(node)

    def evaluate(self, node: Expr) -> SandboxValue:
        """Fold ``node`` and require a literal result."""

        folded = self.fold(node)
        if not is_literal(folded):
            raise EvaluationError(f"expression does not reduce to a literal: {render_expr(folded)}")
        return literal_value(folded)

    # -- identifiers and paths -------------------------------------------
    def _binding(self, node: Identifier) -> Optional[Binding]:
        if self.scope_info is None:
            return None
        return self.scope_info.binding_of(node)

    def _path(self, node: Expr) -> str:
        """Dotted namespace path of an identifier or member chain."""

        if isinstance(node, Identifier):
            if self._binding(node) is not None:
                raise EvaluationError(f"member access on local binding {node.name!r} is not modelled")
            return node.name
        if isinstance(node, StaticMember):
            return f"{self._path(node.object)}.{node.name}"
        if isinstance(node, ComputedMember):
            key = self.fold(node.key)
            if not isinstance(key, (StringLiteral, NumberLiteral)):
                raise EvaluationError(f"computed key {render_expr(node.key)} is not static")
            return f"{self._path(node.object)}.{to_string(literal_value(key))}"
        raise EvaluationError(f"{render_expr(node)} is not a namespace path")

    @staticmethod
    def _path_node(path: str) -> Expr:
        head, *rest = path.split(".")
        node: Expr = Identifier(head)
        for name in rest:
            node = StaticMember(node, name)
        return node

    def _read(self, path: str) -> Expr:
        return literal_node(self.namespace.lookup(path).read())

    def _fold_Identifier(self, node: Identifier) -> Expr:
        binding = self._binding(node)
        if binding is None:
            return self._read(node.name)
        if binding in self.bindings:
            return literal_node(self.bindings[binding])
        if binding in self.free:
            return Identifier(node.name)
        raise EvaluationError(f"{node.name!r} is a local binding that cannot be folded")

    def _fold_StaticMember(self, node: StaticMember) -> Expr:
        return self._read(self._path(node))

    def _fold_ComputedMember(self, node: ComputedMember) -> Expr:
        return self._read(self._path(node))

    # -- literals ----------------------------------------------------------
    def _fold_NumberLiteral(self, node: NumberLiteral) -> Expr:
        return NumberLiteral(node.value)

    def _fold_StringLiteral(self, node: StringLiteral) -> Expr:
        return StringLiteral(node.value)

    def _fold_BooleanLiteral(self, node: BooleanLiteral) -> Expr:
        return BooleanLiteral(node.value)

    def _fold_UndefinedLiteral(self, node: UndefinedLiteral) -> Expr:
        return UndefinedLiteral()

    def _fold_ArrayLiteral(self, node: ArrayLiteral) -> Expr:
        return ArrayLiteral([self.fold(element) for element in node.elements])

    # -- operators ---------------------------------------------------------
    def _fold_Unary(self, node: Unary) -> Expr:
        if node.op not in _UNARY_OPERATORS:
            raise EvaluationError(f"unsupported unary operator {node.op!r}")
        operand = self.fold(node.operand)
        if is_literal(operand):
            return literal_node(unary_op(node.op, literal_value(operand)))
        return Unary(node.op, operand)

    def _fold_Binary(self, node: Binary) -> Expr:
        if node.op in LOGICAL_OPERATORS:
            return self._fold_logical(node)
        if node.op not in BINARY_OPERATORS:
            raise EvaluationError(f"unsupported binary operator {node.op!r}")
        left = self.fold(node.left)
        right = self.fold(node.right)
        if is_literal(left) and is_literal(right):
            return literal_node(binary_op(node.op, literal_value(left), literal_value(right)))
        return Binary(node.op, left, right)

    def _fold_logical(self, node: Binary) -> Expr:
        left = self.fold(node.left)
        if not is_literal(left):
            return Binary(node.op, left, self.fold(node.right))
        value = literal_value(left)
        if node.op == "&&":
            return self.fold(node.right) if to_boolean(value) else left
        if node.op == "||":
            return left if to_boolean(value) else self.fold(node.right)
        return self.fold(node.right) if value is UNDEFINED else left

    def _fold_Conditional(self, node: Conditional) -> Expr:
        test = self.fold(node.test)
        if is_literal(test):
            chosen = node.consequent if to_boolean(literal_value(test)) else node.alternate
            return self.fold(chosen)
        return Conditional(test, self.fold(node.consequent), self.fold(node.alternate))

    def _fold_Sequence(self, node: Sequence) -> Expr:
        folded = [self.fold(item) for item in node.expressions]
        if all(is_literal(item) for item in folded):
            return folded[-1]
        return Sequence(folded)

    # -- calls -------------------------------------------------------------
    def _fold_Call(self, node: Call) -> Expr:
        callee = node.callee
        if isinstance(callee, Identifier):
            binding = self._binding(callee)
            if binding is not None:
                return self._call_local(node, binding)
        path = self._path(callee)
        entry = self.namespace.lookup(path)
        if not entry.is_callable:
            raise EvaluationError(f"{path} is not callable")
        entry.check_arity(len(node.args))
        if entry.kind == MEASURED_CALL:
            # arguments of a measured call are never evaluated
            return literal_node(entry.measured_value())
        args = [self.fold(arg) for arg in node.args]
        if all(is_literal(arg) for arg in args):
            return literal_node(entry.call(tuple(literal_value(arg) for arg in args)))
        return Call(self._path_node(path), args)

    def _call_local(self, node: Call, binding: Binding) -> Expr:
        resolver = self.resolvers.get(binding)
        if resolver is None:
            raise EvaluationError(f"call to local function {binding.name!r} cannot be folded")
        args = [self.fold(arg) for arg in node.args]
        if not all(is_literal(arg) for arg in args):
            raise EvaluationError(f"call to {binding.name!r} needs literal arguments")
        try:
            value = resolver(*(literal_value(arg) for arg in args))
        except EvaluationError:
            raise
        except (TypeError, ValueError, IndexError, ArithmeticError) as exc:
            raise EvaluationError(f"call to {binding.name!r} failed: {exc}") from exc
        return literal_node(value)


def evaluate_static(node: Expr, namespace: SandboxNamespace = DEFAULT_NAMESPACE) -> SandboxValue:
    """Evaluate an expression that only uses literals and namespace paths."""

    return Folder(namespace).evaluate(node)


def find_result_expression(function: FunctionExpression) -> Expr:
    """Expression produced by ``function``, looking through ``function(){...}()``."""

    current = function
    while True:
        returned = next((stmt for stmt in current.body if isinstance(stmt, Return)), None)
        if returned is None or returned.argument is None:
            raise ShapeMismatch("function body does not return a value")
        expr = returned.argument
        if (
            isinstance(expr, Call)
            and isinstance(expr.callee, FunctionExpression)
            and not expr.args
            and not expr.callee.params
        ):
            current = expr.callee
            continue
        return expr


def fold_result(
    function: FunctionExpression,
    namespace: SandboxNamespace = DEFAULT_NAMESPACE,
) -> ArrayLiteral:
    """Fold the returned array of ``function`` in place, keeping its parameter free.

    Raises :class:`ShapeMismatch` unless the result is a three-element array.
    """

    expr = find_result_expression(function)
    info = resolve_scopes(function)
    free = [info.binding_for_declaration(param) for param in function.params]
    folder = Folder(namespace, scope_info=info, free=[binding for binding in free if binding is not None])
    if isinstance(expr, ArrayLiteral):
        if len(expr.elements) != 3:
            raise ShapeMismatch(f"expected a three element array, got {len(expr.elements)} elements")
        folded: Expr = ArrayLiteral([folder.fold(element) for element in expr.elements])
    else:
        folded = folder.fold(expr)
    if not isinstance(folded, ArrayLiteral) or len(folded.elements) != 3:
        raise ShapeMismatch(f"result does not fold to a three element array: {render_expr(folded)}")
    replace_node(expr, folded)
    return folded


def run(ctx: "Context") -> Dict[str, object]:
    if ctx.tree is None:
        return {"skipped": True}
    folded = fold_result(ctx.tree, ctx.namespace)
    ctx.result = folded
    residual: List[bool] = [not is_literal(element) for element in folded.elements]
    LOG.debug("folded result: %s", render_expr(folded))
    return {
        "elements": len(folded.elements),
        "residual": residual,
        "result": render_expr(folded),
    }


__all__ = ["Folder", "evaluate_static", "find_result_expression", "fold_result", "run"]
