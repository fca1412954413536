from __future__ import annotations

import pytest

from js_challenge.exceptions import UnsupportedConstruct
from js_challenge.js_ast import (
    ExpressionStatement,
    Identifier,
    NumberLiteral,
    StringLiteral,
    render_expr,
    to_source,
)
from js_challenge.parser import parse_expression, parse_function
from js_challenge.visitor import REMOVE, is_within, remove_statement, replace_node, transform, walk


@pytest.mark.parametrize(
    "source",
    [
        "(a + b) * c",
        "a - (b - c)",
        "a - b - c",
        "(-2) ** 2",
        "2 ** -1",
        "a ? b : c ? d : e",
        "(a, b)",
        "Math.max(1, 2)[0]",
        "!(a && b)",
        "a || b && c",
        "(a ?? b) || c",
    ],
)
def test_render_expr_round_trips_precedence(source: str) -> None:
    expected = source[1:-1] if source == "(a, b)" else source
    assert render_expr(parse_expression(source)) == expected


def test_render_numbers_and_strings() -> None:
    assert render_expr(NumberLiteral(1.0)) == "1"
    assert render_expr(NumberLiteral(0.1)) == "0.1"
    assert render_expr(NumberLiteral(1e21)) == "1e+21"
    assert render_expr(NumberLiteral(-0.0)) == "-0"
    assert render_expr(NumberLiteral(float("nan"))) == "NaN"
    assert render_expr(StringLiteral('a"b')) == '"a\\"b"'


def test_to_source_wraps_function_callee() -> None:
    source = to_source(parse_expression("function(){ return 1; }()"))

    assert source == "(function() {\n  return 1;\n})()"


def test_transform_post_order_replaces_identifiers() -> None:
    function = parse_function("function(a){ return x + x * a; }")

    def callback(node):
        if isinstance(node, Identifier) and node.name == "x":
            return NumberLiteral(2.0)
        return None

    transform(function, callback)

    assert render_expr(function.body[0].argument) == "2 + 2 * a"
    for node in walk(function):
        if isinstance(node, NumberLiteral):
            assert node.parent is not None


def test_transform_pre_order_traverses_replacement() -> None:
    function = parse_function("function(a){ return y; }")
    seen = []

    def callback(node):
        seen.append(type(node).__name__)
        if isinstance(node, Identifier) and node.name == "y":
            return parse_expression("z + 1")
        return None

    transform(function, callback, order="pre")

    assert render_expr(function.body[0].argument) == "z + 1"
    # the replacement itself is not offered again, its children are
    assert "Binary" not in seen
    assert seen.count("Identifier") == 3
    assert "NumberLiteral" in seen


def test_transform_remove_deletes_statements() -> None:
    function = parse_function("function(a){ f(); var b = 1; return b; }")

    transform(function, lambda node: REMOVE if isinstance(node, ExpressionStatement) else None)

    assert [type(stmt).__name__ for stmt in function.body] == ["VarDeclaration", "Return"]


def test_transform_rejects_removing_expressions() -> None:
    function = parse_function("function(a){ return a; }")

    with pytest.raises(UnsupportedConstruct):
        transform(function, lambda node: REMOVE if isinstance(node, Identifier) else None)


def test_remove_statement_drops_empty_declaration() -> None:
    function = parse_function("function(a){ var b = 1, c = 2; for (var d = 0; d < 1;) {} return a; }")
    declaration = function.body[0]
    loop = function.body[1]

    remove_statement(declaration.declarations[0])
    assert [d.id.name for d in declaration.declarations] == ["c"]
    remove_statement(declaration.declarations[0])
    assert declaration not in function.body
    assert isinstance(function.body[0], type(loop))

    remove_statement(loop.init.declarations[0])
    assert loop.init is None


def test_replace_node_updates_parent_links() -> None:
    function = parse_function("function(a){ return a + 1; }")
    binary = function.body[0].argument

    replacement = replace_node(binary.left, parse_expression("a * 3"))

    assert replacement.parent is binary
    assert is_within(replacement.left, function)
    assert render_expr(binary) == "a * 3 + 1"


def test_walk_is_source_ordered() -> None:
    function = parse_function("function(a){ var b = 1; return c; }")
    names = [node.name for node in walk(function) if isinstance(node, Identifier)]

    assert names == ["a", "b", "c"]


def test_to_source_renders_statements() -> None:
    function = parse_function(
        "function(a){ if (a) { return 1; } else return 2; try { f(); } catch (e) { g(e); } finally { h(); } }"
    )

    rendered = to_source(function)

    assert rendered.startswith("function(a) {\n  if (a) {\n    return 1;\n  } else {\n    return 2;\n  }")
    assert "  try {\n    f();\n  } catch (e) {\n    g(e);\n  } finally {\n    h();\n  }" in rendered
