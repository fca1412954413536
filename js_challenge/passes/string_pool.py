"""Recover strings hidden behind a rotating string pool.

The generator emits three cooperating pieces:

* a pool function with no parameters holding a literal array of strings,
* an accessor ``function x(n, _) { ...; n = n - K; return pool[n] }``,
* a rotating invocation ``(function (getPool, target) { ... })(pool, K2)``
  which keeps moving the first pool entry to the end until an arithmetic
  check built from accessor calls equals ``K2``.

The pass simulates the rotation, replaces every accessor call whose index
is static by the string it resolves to, and deletes the three pieces once
nothing else refers to them.  Nothing is mutated until the simulation has
converged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Iterator, List, Optional, Tuple, TYPE_CHECKING

from ..exceptions import EvaluationError, StringPoolUnresolved
from ..js_ast import (
    ArrayLiteral,
    Assign,
    Binary,
    Call,
    Expr,
    ExpressionStatement,
    FunctionDeclaration,
    FunctionExpression,
    Identifier,
    Node,
    StringLiteral,
    VarDeclarator,
    render_expr,
)
from ..sandbox import (
    BINARY_OPERATORS,
    DEFAULT_NAMESPACE,
    SandboxNamespace,
    SandboxValue,
    binary_op,
    is_number,
    strict_equals,
    to_number,
)
from ..scope import Binding, ScopeInfo, resolve_scopes
from ..visitor import ancestors, is_within, iter_child_nodes, remove_statement, replace_node, walk
from .constant_fold import Folder, evaluate_static

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..pipeline import Context

LOG = logging.getLogger(__name__)

_ARITHMETIC_OPERATORS = BINARY_OPERATORS - {
    "==",
    "!=",
    "===",
    "!==",
    "<",
    ">",
    "<=",
    ">=",
}


@dataclass
class RotatingStringPool:
    """Pool contents plus the rotation applied so far.

    ``resolve(i)`` returns the entry at ``(i <operator> offset) mod length``
    of the rotated sequence.
    """

    strings: List[str]
    offset: float = 0.0
    operator: str = "-"
    rotation: int = 0

    def __len__(self) -> int:
        return len(self.strings)

    def rotate(self) -> None:
        """Move the first entry to the end (``push(shift())``)."""

        self.rotation = (self.rotation + 1) % len(self.strings)

    def current(self) -> List[str]:
        return self.strings[self.rotation :] + self.strings[: self.rotation]

    def index_of(self, logical: SandboxValue) -> int:
        raw = to_number(binary_op(self.operator, to_number(logical), self.offset))
        if raw != raw or raw in (float("inf"), float("-inf")):
            raise EvaluationError(f"string pool index {logical!r} is not finite")
        return int(raw) % len(self.strings)

    def resolve(self, logical: SandboxValue) -> str:
        return self.strings[(self.rotation + self.index_of(logical)) % len(self.strings)]

    def snapshot(self) -> "RotatingStringPool":
        return replace(self, strings=list(self.strings))


@dataclass
class StringPoolPattern:
    """The located pieces of one rotating string pool."""

    pool_function: FunctionDeclaration
    pool_binding: Binding
    strings: List[str]
    accessor: FunctionDeclaration
    accessor_binding: Binding
    operator: str
    offset: float
    rotation: ExpressionStatement
    check: Expr
    target: SandboxValue
    scope_info: ScopeInfo = field(repr=False)


def _own_nodes(function: Node) -> Iterator[Node]:
    """Descendants of ``function`` that are not inside a nested function."""

    stack = list(reversed(list(iter_child_nodes(function))))
    while stack:
        node = stack.pop()
        yield node
        if not isinstance(node, (FunctionDeclaration, FunctionExpression)):
            stack.extend(reversed(list(iter_child_nodes(node))))


def _string_array(function: FunctionDeclaration) -> Optional[List[str]]:
    for node in _own_nodes(function):
        if isinstance(node, VarDeclarator) and isinstance(node.init, ArrayLiteral):
            elements = node.init.elements
            if elements and all(isinstance(item, StringLiteral) for item in elements):
                return [item.value for item in elements]  # type: ignore[union-attr]
    return None


def find_pool_function(root: Node, info: ScopeInfo) -> Optional[Tuple[FunctionDeclaration, Binding, List[str]]]:
    for node in walk(root):
        if not isinstance(node, FunctionDeclaration) or node.params:
            continue
        strings = _string_array(node)
        binding = info.binding_for_declaration(node)
        if strings is not None and binding is not None:
            return node, binding, strings
    return None


def _calls_binding(node: Node, binding: Binding, info: ScopeInfo) -> bool:
    for child in walk(node):
        if isinstance(child, Call) and isinstance(child.callee, Identifier):
            if info.binding_of(child.callee) is binding:
                return True
    return False


def _index_transform(function: FunctionDeclaration, namespace: SandboxNamespace) -> Optional[Tuple[str, float]]:
    for node in walk(function):
        if not isinstance(node, Assign) or node.op != "=" or not isinstance(node.target, Identifier):
            continue
        value = node.value
        if not isinstance(value, Binary) or value.op not in _ARITHMETIC_OPERATORS:
            continue
        if not isinstance(value.left, Identifier) or value.left.name != node.target.name:
            continue
        try:
            offset = evaluate_static(value.right, namespace)
        except EvaluationError:
            continue
        if is_number(offset):
            return value.op, float(offset)  # type: ignore[arg-type]
    return None


def find_accessor(
    root: Node,
    info: ScopeInfo,
    pool_function: FunctionDeclaration,
    pool_binding: Binding,
    namespace: SandboxNamespace = DEFAULT_NAMESPACE,
) -> Optional[Tuple[FunctionDeclaration, Binding, str, float]]:
    for node in walk(root):
        if not isinstance(node, FunctionDeclaration) or node is pool_function:
            continue
        if not _calls_binding(node, pool_binding, info):
            continue
        transform = _index_transform(node, namespace)
        binding = info.binding_for_declaration(node)
        if transform is not None and binding is not None:
            return node, binding, transform[0], transform[1]
    return None


def _check_expression(function: FunctionExpression) -> Optional[Expr]:
    for node in _own_nodes(function):
        if isinstance(node, VarDeclarator) and isinstance(node.init, Binary):
            return node.init
    return None


def find_rotation(
    root: Node,
    info: ScopeInfo,
    pool_binding: Binding,
    namespace: SandboxNamespace = DEFAULT_NAMESPACE,
) -> Optional[Tuple[ExpressionStatement, Expr, SandboxValue]]:
    for node in walk(root):
        if not isinstance(node, ExpressionStatement):
            continue
        call = node.expression
        if not isinstance(call, Call) or not isinstance(call.callee, FunctionExpression):
            continue
        if len(call.args) < 2 or not isinstance(call.args[0], Identifier):
            continue
        if info.binding_of(call.args[0]) is not pool_binding:
            continue
        try:
            target = evaluate_static(call.args[1], namespace)
        except EvaluationError:
            continue
        check = _check_expression(call.callee)
        if check is not None:
            return node, check, target
    return None


def find_pattern(root: Node, namespace: SandboxNamespace = DEFAULT_NAMESPACE) -> Optional[StringPoolPattern]:
    """Locate the pool pieces; ``None`` when the tree has no pool function."""

    info = resolve_scopes(root)
    pool = find_pool_function(root, info)
    if pool is None:
        return None
    pool_function, pool_binding, strings = pool
    accessor = find_accessor(root, info, pool_function, pool_binding, namespace)
    if accessor is None:
        raise StringPoolUnresolved(
            f"no accessor found for string pool function {pool_binding.name}"
        )
    accessor_function, accessor_binding, operator, offset = accessor
    rotation = find_rotation(root, info, pool_binding, namespace)
    if rotation is None:
        raise StringPoolUnresolved(
            f"no rotating invocation found for string pool function {pool_binding.name}"
        )
    statement, check, target = rotation
    return StringPoolPattern(
        pool_function=pool_function,
        pool_binding=pool_binding,
        strings=strings,
        accessor=accessor_function,
        accessor_binding=accessor_binding,
        operator=operator,
        offset=offset,
        rotation=statement,
        check=check,
        target=target,
        scope_info=info,
    )


def simulate_rotation(
    pattern: StringPoolPattern,
    pool: RotatingStringPool,
    namespace: SandboxNamespace = DEFAULT_NAMESPACE,
) -> int:
    """Rotate ``pool`` in place until the check expression hits the target.

    Returns the number of rotations applied.  At most ``len(pool)`` states
    are tried.
    """

    folder = Folder(
        namespace,
        scope_info=pattern.scope_info,
        # the accessor ignores every argument after the index
        resolvers={pattern.accessor_binding: lambda index, *_: pool.resolve(index)},
    )
    for attempt in range(len(pool)):
        try:
            value = folder.evaluate(pattern.check)
            matched = strict_equals(value, pattern.target)
        except EvaluationError as exc:
            LOG.debug("rotation %d: check failed (%s)", attempt, exc)
        else:
            if matched:
                return attempt
        pool.rotate()
    raise StringPoolUnresolved(
        f"string pool did not converge after {len(pool)} rotations "
        f"(check {render_expr(pattern.check)} never equals {pattern.target!r})"
    )


def _top_level_index(node: Node, container: Node, body: List[Node]) -> Optional[int]:
    current = node
    for parent in ancestors(node):
        if parent is container:
            for index, stmt in enumerate(body):
                if stmt is current:
                    return index
            return None
        current = parent
    return None


def _invoked_in_place(function: FunctionExpression) -> bool:
    parent = function.parent
    return isinstance(parent, Call) and parent.callee is function


def _observes_rotation(call: Call, rotation: ExpressionStatement) -> bool:
    """Whether ``call`` runs after the rotating invocation has finished."""

    container = rotation.parent
    body = getattr(container, "body", None)
    if container is None or not isinstance(body, list):
        return True
    for parent in ancestors(call):
        if parent is container:
            break
        if isinstance(parent, FunctionDeclaration) or (
            isinstance(parent, FunctionExpression) and not _invoked_in_place(parent)
        ):
            # stored functions are only invoked from later code
            return True
    rotation_index = next((i for i, stmt in enumerate(body) if stmt is rotation), None)
    call_index = _top_level_index(call, container, body)
    if rotation_index is None or call_index is None:
        return True
    return call_index > rotation_index


def plan_replacements(
    root: Node,
    pattern: StringPoolPattern,
    before: RotatingStringPool,
    after: RotatingStringPool,
    namespace: SandboxNamespace = DEFAULT_NAMESPACE,
) -> Tuple[List[Tuple[Call, StringLiteral]], Dict[str, int]]:
    info = pattern.scope_info
    planned: List[Tuple[Call, StringLiteral]] = []
    counts = {"before_rotation": 0, "after_rotation": 0, "dynamic": 0}
    for node in walk(root):
        if not isinstance(node, Call) or not isinstance(node.callee, Identifier):
            continue
        if info.binding_of(node.callee) is not pattern.accessor_binding:
            continue
        if is_within(node, pattern.accessor) or is_within(node, pattern.rotation):
            continue
        if not node.args:
            counts["dynamic"] += 1
            continue
        try:
            index = evaluate_static(node.args[0], namespace)
        except EvaluationError:
            counts["dynamic"] += 1
            continue
        if _observes_rotation(node, pattern.rotation):
            pool = after
            counts["after_rotation"] += 1
        else:
            pool = before
            counts["before_rotation"] += 1
        literal = StringLiteral(pool.resolve(index))
        literal.metadata["string_pool"] = {"index": index, "rotated": pool is after}
        planned.append((node, literal))
    return planned, counts


def _outside_references(root: Node, function: FunctionDeclaration, *ignored: Node) -> int:
    """References to ``function`` outside itself and the ``ignored`` subtrees."""

    info = resolve_scopes(root)
    binding = info.binding_for_declaration(function)
    if binding is None:
        return 0
    skip = (function,) + ignored
    return sum(1 for ref in info.references_to(binding) if not any(is_within(ref.node, node) for node in skip))


def recover_strings(root: Node, namespace: SandboxNamespace = DEFAULT_NAMESPACE) -> Dict[str, object]:
    """Run the whole recovery on ``root``; see the module docstring."""

    pattern = find_pattern(root, namespace)
    if pattern is None:
        return {"skipped": True}

    before = RotatingStringPool(list(pattern.strings), pattern.offset, pattern.operator)
    after = before.snapshot()
    rotations = simulate_rotation(pattern, after, namespace)
    planned, counts = plan_replacements(root, pattern, before, after, namespace)
    LOG.debug(
        "string pool %s: %d entries, %d rotations, %d accessor calls",
        pattern.pool_binding.name,
        len(before),
        rotations,
        len(planned),
    )

    for call, literal in planned:
        replace_node(call, literal)
    # the rotation stays as long as dynamic accessor calls remain
    removed_accessor = False
    if _outside_references(root, pattern.accessor, pattern.rotation) == 0:
        remove_statement(pattern.rotation)
        remove_statement(pattern.accessor)
        removed_accessor = True
    removed_pool = False
    if _outside_references(root, pattern.pool_function) == 0:
        remove_statement(pattern.pool_function)
        removed_pool = True

    return {
        "pool_size": len(before),
        "operator": pattern.operator,
        "offset": pattern.offset,
        "rotations": rotations,
        "replaced": len(planned),
        "before_rotation": counts["before_rotation"],
        "after_rotation": counts["after_rotation"],
        "dynamic_calls": counts["dynamic"],
        "removed_accessor": removed_accessor,
        "removed_pool": removed_pool,
        "strings": after.current(),
    }


def run(ctx: "Context") -> Dict[str, object]:
    if ctx.tree is None:
        return {"skipped": True}
    return recover_strings(ctx.tree, ctx.namespace)


__all__ = [
    "RotatingStringPool",
    "StringPoolPattern",
    "find_pool_function",
    "find_accessor",
    "find_rotation",
    "find_pattern",
    "simulate_rotation",
    "plan_replacements",
    "recover_strings",
    "run",
]
