from __future__ import annotations

from js_challenge.js_ast import Call, Identifier, VarDeclaration, to_source
from js_challenge.parser import parse_function
from js_challenge.passes.proxy_vars import eliminate_aliases, find_aliases, run
from js_challenge.pipeline import Context
from js_challenge.scope import resolve_scopes
from js_challenge.visitor import walk


def _callee_names(root):
    return [node.callee.name for node in walk(root) if isinstance(node, Call) and isinstance(node.callee, Identifier)]


def test_alias_is_replaced_and_declaration_removed() -> None:
    function = parse_function("function(a){ function f(){ return 1; } var g = f; return g(); }")

    metadata = eliminate_aliases(function)

    assert metadata["aliases_removed"] == 1
    assert metadata["references_rewritten"] == 1
    assert _callee_names(function) == ["f"]
    assert not any(isinstance(stmt, VarDeclaration) for stmt in function.body)


def test_parameter_with_alias_name_is_untouched() -> None:
    function = parse_function(
        "function(a){ function f(){ return 1; } var h = f; function outer(g){ return g(); } return outer(h); }"
    )

    eliminate_aliases(function)

    outer = function.body[1]
    assert _callee_names(outer) == ["g"]
    assert "return outer(f);" in to_source(function)


def test_shadowed_target_leaves_alias_alone() -> None:
    source = "function(a){ function f(){ return 1; } var g = f; function inner(f){ return g(); } return g() + inner(2); }"
    function = parse_function(source)
    before = to_source(function)

    metadata = eliminate_aliases(function)

    assert metadata["aliases_removed"] == 0
    assert metadata["shadowed"] == ["g"]
    assert to_source(function) == before


def test_reassigned_alias_is_not_a_candidate() -> None:
    function = parse_function("function(a){ function f(){} function k(){} var g = f; g = k; return g(); }")

    assert find_aliases(resolve_scopes(function)) == []
    assert eliminate_aliases(function)["aliases_removed"] == 0


def test_alias_of_alias_resolves_over_rounds() -> None:
    function = parse_function("function(a){ function f(){} var g = f; var h = g; return h(); }")

    metadata = eliminate_aliases(function)

    assert metadata["aliases_removed"] == 2
    assert metadata["rounds"] == 3
    assert _callee_names(function) == ["f"]


def test_alias_in_for_initialiser(captured_challenge) -> None:
    function = parse_function(captured_challenge["c"])

    eliminate_aliases(function)

    rendered = to_source(function)
    assert "var t = x" not in rendered
    assert "var e = x" not in rendered
    assert "for (var n = e(); [];" in rendered
    assert "parseInt(x(146))" in rendered


def test_run_without_tree_is_skipped() -> None:
    ctx = Context(source="")
    assert run(ctx) == {"skipped": True}
