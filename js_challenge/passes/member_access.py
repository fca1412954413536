"""Rewrite ``obj["key"]`` into ``obj.key`` when the key is a valid identifier."""

from __future__ import annotations

import logging
import re
from typing import Dict, TYPE_CHECKING

from ..js_ast import ComputedMember, Node, StaticMember, StringLiteral
from ..visitor import NodeTransformer

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..pipeline import Context

LOG = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")


class MemberAccessNormalizer(NodeTransformer):
    def __init__(self) -> None:
        self.rewritten = 0
        self.kept = 0

    def visit_ComputedMember(self, node: ComputedMember) -> Node:
        self.generic_visit(node)
        key = node.key
        if isinstance(key, StringLiteral) and _IDENTIFIER_RE.fullmatch(key.value):
            self.rewritten += 1
            return StaticMember(node.object, key.value)
        self.kept += 1
        return node


def normalize_members(root: Node) -> Dict[str, object]:
    normalizer = MemberAccessNormalizer()
    normalizer.generic_visit(root)
    LOG.debug("normalised %d computed member accesses", normalizer.rewritten)
    return {"rewritten": normalizer.rewritten, "computed_kept": normalizer.kept}


def run(ctx: "Context") -> Dict[str, object]:
    if ctx.tree is None:
        return {"skipped": True}
    return normalize_members(ctx.tree)


__all__ = ["MemberAccessNormalizer", "normalize_members", "run"]
