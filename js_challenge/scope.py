"""Lexical scope resolution for challenge syntax trees.

:func:`resolve_scopes` performs one top-down walk.  Function declarations
and ``var``/``let``/``const`` declarations are hoisted to the enclosing
function scope before its body is visited, so a reference resolves to the
innermost scope declaring the name no matter where the declaration sits.
Names bound by no scope resolve to ``None`` and are treated as globals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional

from .js_ast import (
    Assign,
    Block,
    ComputedMember,
    For,
    FunctionDeclaration,
    FunctionExpression,
    Identifier,
    If,
    Node,
    Property,
    StaticMember,
    Stmt,
    Try,
    VarDeclaration,
    VarDeclarator,
    While,
)
from .visitor import NodeVisitor

__all__ = [
    "FUNCTION_DECLARATION",
    "VARIABLE_DECLARATION",
    "PARAMETER",
    "Binding",
    "Scope",
    "Reference",
    "ScopeInfo",
    "resolve_scopes",
]

FUNCTION_DECLARATION = "function-declaration"
VARIABLE_DECLARATION = "variable-declaration"
PARAMETER = "parameter"


@dataclass(eq=False)
class Binding:
    """A declared name; ``node`` is the declaration that defines its value."""

    name: str
    kind: str
    node: Node
    scope: "Scope" = field(repr=False)
    declarations: List[Node] = field(default_factory=list, repr=False)


@dataclass(eq=False)
class Scope:
    owner: Optional[Node]
    parent: Optional["Scope"] = field(default=None, repr=False)
    bindings: Dict[str, Binding] = field(default_factory=dict)

    def declare(self, name: str, kind: str, node: Node) -> Binding:
        existing = self.bindings.get(name)
        if existing is None:
            binding = Binding(name, kind, node, self, [node])
            self.bindings[name] = binding
            return binding
        existing.declarations.append(node)
        if kind == FUNCTION_DECLARATION and existing.kind != PARAMETER:
            existing.kind = kind
            existing.node = node
        return existing

    def lookup(self, name: str) -> Optional[Binding]:
        scope: Optional[Scope] = self
        while scope is not None:
            binding = scope.bindings.get(name)
            if binding is not None:
                return binding
            scope = scope.parent
        return None

    def child(self, owner: Node) -> "Scope":
        return Scope(owner, self)


@dataclass(eq=False)
class Reference:
    node: Identifier
    scope: Scope
    binding: Optional[Binding]
    is_write: bool = False


@dataclass
class ScopeInfo:
    """Everything :func:`resolve_scopes` learned about one tree."""

    global_scope: Scope
    scopes: Dict[Node, Scope] = field(default_factory=dict)
    references: List[Reference] = field(default_factory=list)
    declared: Dict[Node, Binding] = field(default_factory=dict)
    _by_node: Dict[Identifier, Reference] = field(default_factory=dict, repr=False)
    _by_binding: Dict[Binding, List[Reference]] = field(default_factory=dict, repr=False)

    def add_reference(self, reference: Reference) -> None:
        self.references.append(reference)
        self._by_node[reference.node] = reference
        if reference.binding is not None:
            self._by_binding.setdefault(reference.binding, []).append(reference)

    def reference(self, node: Identifier) -> Optional[Reference]:
        return self._by_node.get(node)

    def binding_of(self, node: Identifier) -> Optional[Binding]:
        """Binding a referencing identifier resolves to (``None`` for globals)."""

        reference = self._by_node.get(node)
        return reference.binding if reference is not None else None

    def references_to(self, binding: Binding) -> List[Reference]:
        return list(self._by_binding.get(binding, ()))

    def writes_to(self, binding: Binding) -> List[Reference]:
        return [ref for ref in self._by_binding.get(binding, ()) if ref.is_write]

    def binding_for_declaration(self, node: Node) -> Optional[Binding]:
        """Binding introduced by a declarator, declaration or parameter node."""

        return self.declared.get(node)

    def bindings(self) -> Iterator[Binding]:
        seen = set()
        for binding in self.declared.values():
            if id(binding) in seen:
                continue
            seen.add(id(binding))
            yield binding


def _hoist(statements: Iterable[Stmt], scope: Scope, info: ScopeInfo) -> None:
    for stmt in statements:
        if isinstance(stmt, FunctionDeclaration):
            info.declared[stmt] = scope.declare(stmt.name.name, FUNCTION_DECLARATION, stmt)
        elif isinstance(stmt, VarDeclaration):
            for declarator in stmt.declarations:
                info.declared[declarator] = scope.declare(
                    declarator.id.name, VARIABLE_DECLARATION, declarator
                )
        elif isinstance(stmt, If):
            _hoist(stmt.consequent, scope, info)
            _hoist(stmt.alternate or (), scope, info)
        elif isinstance(stmt, For):
            if isinstance(stmt.init, VarDeclaration):
                _hoist([stmt.init], scope, info)
            _hoist(stmt.body, scope, info)
        elif isinstance(stmt, While):
            _hoist(stmt.body, scope, info)
        elif isinstance(stmt, Try):
            _hoist(stmt.block, scope, info)
            _hoist(stmt.handler or (), scope, info)
            _hoist(stmt.finalizer or (), scope, info)
        elif isinstance(stmt, Block):
            _hoist(stmt.body, scope, info)


class _Resolver(NodeVisitor):
    def __init__(self, info: ScopeInfo) -> None:
        self.info = info
        self.scope = info.global_scope

    def _enter_function(self, node: Node, params: List[Identifier], body: List[Stmt], name: Optional[Identifier] = None) -> None:
        outer = self.scope
        scope = outer.child(node)
        self.info.scopes[node] = scope
        if name is not None:
            # a named function expression sees its own name
            self.info.declared[name] = scope.declare(name.name, FUNCTION_DECLARATION, node)
        for param in params:
            self.info.declared[param] = scope.declare(param.name, PARAMETER, param)
        _hoist(body, scope, self.info)
        self.scope = scope
        try:
            for stmt in body:
                self.visit(stmt)
        finally:
            self.scope = outer

    def visit_FunctionExpression(self, node: FunctionExpression) -> None:
        self._enter_function(node, node.params, node.body, node.name)

    def visit_FunctionDeclaration(self, node: FunctionDeclaration) -> None:
        self._enter_function(node, node.params, node.body)

    def visit_VarDeclarator(self, node: VarDeclarator) -> None:
        if node.init is not None:
            self.visit(node.init)

    def visit_Identifier(self, node: Identifier) -> None:
        self._reference(node, is_write=False)

    def visit_Assign(self, node: Assign) -> None:
        if isinstance(node.target, Identifier):
            self._reference(node.target, is_write=True)
        else:
            self.visit(node.target)
        self.visit(node.value)

    def visit_StaticMember(self, node: StaticMember) -> None:
        self.visit(node.object)

    def visit_ComputedMember(self, node: ComputedMember) -> None:
        self.visit(node.object)
        self.visit(node.key)

    def visit_Property(self, node: Property) -> None:
        self.visit(node.value)

    def visit_Try(self, node: Try) -> None:
        for stmt in node.block:
            self.visit(stmt)
        if node.handler is not None:
            outer = self.scope
            scope = outer.child(node)
            self.info.scopes[node] = scope
            if node.param is not None:
                self.info.declared[node.param] = scope.declare(node.param.name, PARAMETER, node.param)
            self.scope = scope
            try:
                for stmt in node.handler:
                    self.visit(stmt)
            finally:
                self.scope = outer
        for stmt in node.finalizer or ():
            self.visit(stmt)

    def _reference(self, node: Identifier, *, is_write: bool) -> None:
        binding = self.scope.lookup(node.name)
        self.info.add_reference(Reference(node, self.scope, binding, is_write))


def resolve_scopes(root: Node) -> ScopeInfo:
    """Resolve every identifier reference below ``root``.

    The result is a snapshot: rerun after rewriting the tree.
    """

    info = ScopeInfo(Scope(None))
    resolver = _Resolver(info)
    if isinstance(root, Stmt):
        _hoist([root], info.global_scope, info)
    resolver.visit(root)
    return info
