"""Remove proxy variables that merely alias a function declaration.

``function f(){...} var g = f; g();`` becomes ``function f(){...} f();``.
An alias is only rewritten when every use of it can safely be replaced:
the alias is never reassigned and ``f`` resolves to the same function at
every use site.  Otherwise the alias is left untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, TYPE_CHECKING

from ..js_ast import Identifier, Node, VarDeclarator
from ..scope import FUNCTION_DECLARATION, VARIABLE_DECLARATION, Binding, Reference, ScopeInfo, resolve_scopes
from ..visitor import remove_statement, replace_node

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..pipeline import Context

LOG = logging.getLogger(__name__)


@dataclass
class AliasCandidate:
    alias: Binding
    target: Binding
    declarator: VarDeclarator
    references: List[Reference]


def find_aliases(info: ScopeInfo) -> List[AliasCandidate]:
    """Return aliases of function declarations that are never reassigned."""

    candidates: List[AliasCandidate] = []
    for binding in info.bindings():
        if binding.kind != VARIABLE_DECLARATION or len(binding.declarations) != 1:
            continue
        declarator = binding.node
        if not isinstance(declarator, VarDeclarator) or not isinstance(declarator.init, Identifier):
            continue
        target = info.binding_of(declarator.init)
        if target is None or target is binding or target.kind != FUNCTION_DECLARATION:
            continue
        if info.writes_to(binding):
            continue
        candidates.append(AliasCandidate(binding, target, declarator, info.references_to(binding)))
    return candidates


def _is_unshadowed(candidate: AliasCandidate) -> bool:
    name = candidate.target.name
    return all(ref.scope.lookup(name) is candidate.target for ref in candidate.references)


def eliminate_aliases(root: Node) -> Dict[str, object]:
    """Rewrite alias references below ``root`` until no candidate is left."""

    removed = 0
    rewritten = 0
    skipped: List[str] = []
    rounds = 0
    while True:
        rounds += 1
        info = resolve_scopes(root)
        progress = False
        for candidate in find_aliases(info):
            if not _is_unshadowed(candidate):
                if candidate.alias.name not in skipped:
                    skipped.append(candidate.alias.name)
                LOG.debug(
                    "alias %s of %s is shadowed at a use site; left untouched",
                    candidate.alias.name,
                    candidate.target.name,
                )
                continue
            for ref in candidate.references:
                replace_node(ref.node, Identifier(candidate.target.name))
            remove_statement(candidate.declarator)
            LOG.debug(
                "alias %s -> %s (%d references)",
                candidate.alias.name,
                candidate.target.name,
                len(candidate.references),
            )
            removed += 1
            rewritten += len(candidate.references)
            progress = True
        if not progress:
            break

    return {
        "aliases_removed": removed,
        "references_rewritten": rewritten,
        "shadowed": skipped,
        "rounds": rounds,
    }


def run(ctx: "Context") -> Dict[str, object]:
    if ctx.tree is None:
        return {"skipped": True}
    return eliminate_aliases(ctx.tree)


__all__ = ["AliasCandidate", "find_aliases", "eliminate_aliases", "run"]
