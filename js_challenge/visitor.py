"""Traversal and in-place rewriting helpers for :mod:`js_challenge.js_ast`."""

from __future__ import annotations

from dataclasses import fields
from typing import Any, Callable, Iterator, List, Optional, Tuple

from .exceptions import UnsupportedConstruct
from .js_ast import Node, Stmt, VarDeclaration, VarDeclarator

__all__ = [
    "REMOVE",
    "iter_fields",
    "iter_child_nodes",
    "walk",
    "link_parents",
    "ancestors",
    "is_within",
    "replace_node",
    "remove_statement",
    "NodeVisitor",
    "NodeTransformer",
    "transform",
]


class _Remove:
    __slots__ = ()

    def __repr__(self) -> str:
        return "REMOVE"


REMOVE = _Remove()
"""Returned by a transformer callback to delete a statement from its block."""


def iter_fields(node: Node) -> Iterator[Tuple[str, Any]]:
    for item in fields(node):  # type: ignore[arg-type]
        if item.name == "metadata":
            continue
        yield item.name, getattr(node, item.name)


def iter_child_nodes(node: Node) -> Iterator[Node]:
    for _, value in iter_fields(node):
        if isinstance(value, Node):
            yield value
        elif isinstance(value, list):
            for item in value:
                if isinstance(item, Node):
                    yield item


def walk(node: Node) -> Iterator[Node]:
    """Yield ``node`` and every descendant in source (pre-)order."""

    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        children = list(iter_child_nodes(current))
        stack.extend(reversed(children))


def link_parents(root: Node) -> Node:
    for parent in walk(root):
        for child in iter_child_nodes(parent):
            child.parent = parent
    return root


def ancestors(node: Node) -> Iterator[Node]:
    current = node.parent
    while current is not None:
        yield current
        current = current.parent


def is_within(node: Node, container: Node) -> bool:
    """Return ``True`` when ``node`` is ``container`` or one of its descendants."""

    if node is container:
        return True
    return any(parent is container for parent in ancestors(node))


def _locate(parent: Node, child: Node) -> Tuple[str, Optional[int]]:
    for name, value in iter_fields(parent):
        if value is child:
            return name, None
        if isinstance(value, list):
            for index, item in enumerate(value):
                if item is child:
                    return name, index
    raise ValueError(f"{type(child).__name__} is not attached to {type(parent).__name__}")


def replace_node(old: Node, new: Node) -> Node:
    """Put ``new`` where ``old`` sits in the tree and detach ``old``."""

    parent = old.parent
    if parent is None:
        raise ValueError("cannot replace a detached node")
    name, index = _locate(parent, old)
    if index is None:
        setattr(parent, name, new)
    else:
        getattr(parent, name)[index] = new
    link_parents(new)
    new.parent = parent
    old.parent = None
    return new


def remove_statement(node: Node) -> None:
    """Delete a statement (or variable declarator) from its container.

    A declaration left without declarators is removed as well; a ``for``
    initialiser is cleared instead of deleted.
    """

    if not isinstance(node, (Stmt, VarDeclarator)):
        raise UnsupportedConstruct(f"cannot delete {type(node).__name__} from its parent")
    parent = node.parent
    if parent is None:
        raise ValueError("cannot remove a detached node")
    name, index = _locate(parent, node)
    if index is None:
        setattr(parent, name, None)
    else:
        del getattr(parent, name)[index]
    node.parent = None
    if isinstance(parent, VarDeclaration) and not parent.declarations:
        remove_statement(parent)


class NodeVisitor:
    """Dispatch ``visit_<ClassName>`` methods, defaulting to :meth:`generic_visit`."""

    def visit(self, node: Node) -> Any:
        method = getattr(self, f"visit_{type(node).__name__}", self.generic_visit)
        return method(node)

    def generic_visit(self, node: Node) -> Any:
        for child in iter_child_nodes(node):
            self.visit(child)
        return None


class NodeTransformer(NodeVisitor):
    """Visitor whose ``visit_*`` results replace the visited node.

    Returning ``None`` keeps the node, a node replaces it and :data:`REMOVE`
    deletes it.  Only statements and declarators may be removed.
    """

    def generic_visit(self, node: Node) -> Any:
        for name, value in list(iter_fields(node)):
            if isinstance(value, Node):
                result = self._apply(value)
                if result is REMOVE:
                    if not isinstance(value, (Stmt, VarDeclarator)):
                        raise UnsupportedConstruct(
                            f"cannot delete {type(value).__name__} from {type(node).__name__}"
                        )
                    setattr(node, name, None)
                elif result is not value:
                    setattr(node, name, result)
                    result.parent = node
            elif isinstance(value, list):
                updated: List[Any] = []
                for item in value:
                    if not isinstance(item, Node):
                        updated.append(item)
                        continue
                    result = self._apply(item)
                    if result is REMOVE:
                        if not isinstance(item, (Stmt, VarDeclarator)):
                            raise UnsupportedConstruct(
                                f"cannot delete {type(item).__name__} from {type(node).__name__}"
                            )
                        continue
                    if result is not item:
                        result.parent = node
                    updated.append(result)
                value[:] = updated
        if isinstance(node, VarDeclaration) and not node.declarations:
            return REMOVE
        return node

    def _apply(self, node: Node) -> Any:
        result = self.visit(node)
        if result is None:
            return node
        if result is not REMOVE and result is not node:
            link_parents(result)
        return result


class _CallbackTransformer(NodeTransformer):
    def __init__(self, callback: Callable[[Node], Any], order: str) -> None:
        self._callback = callback
        self._order = order

    def visit(self, node: Node) -> Any:
        if self._order == "pre":
            result = self._callback(node)
            if result is REMOVE:
                return REMOVE
            if result is not None:
                node = result
                link_parents(node)
            return self.generic_visit(node)
        visited = self.generic_visit(node)
        if visited is REMOVE:
            return REMOVE
        result = self._callback(visited)
        return visited if result is None else result


def transform(root: Node, callback: Callable[[Node], Any], *, order: str = "post") -> Node:
    """Run ``callback`` over every node below ``root`` and apply its result.

    ``order`` selects pre-order (a replacement is traversed immediately) or
    post-order (children are rewritten before their parent is offered).
    ``root`` itself is traversed but never replaced.
    """

    if order not in {"pre", "post"}:
        raise ValueError(f"unknown traversal order {order!r}")
    transformer = _CallbackTransformer(callback, order)
    transformer.generic_visit(root)
    return root
