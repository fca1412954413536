from __future__ import annotations

import math

import pytest

from js_challenge.exceptions import EvaluationError, ShapeMismatch
from js_challenge.js_ast import ArrayLiteral, Binary, Identifier, NumberLiteral, is_literal, render_expr, to_source
from js_challenge.parser import parse_expression, parse_function
from js_challenge.passes.constant_fold import Folder, evaluate_static, find_result_expression, fold_result
from js_challenge.sandbox import DEFAULT_NAMESPACE, UNDEFINED, strict_equals
from js_challenge.scope import resolve_scopes

SEED = 0.5256885729603544
MEASURED = DEFAULT_NAMESPACE.with_measurements({"Object.keys": (), "globalThis.marker": UNDEFINED})


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("Math.log2(8)", 3.0),
        ("Math.max(1, 2, 3)", 3.0),
        ("1 / 0", math.inf),
        ("-1 / 0", -math.inf),
        ("Math[\"floor\"](-1.5)", -2.0),
        ("parseInt(\"4470456IQfeVa\") / 2", 2235228.0),
        ("-981043 + -131413 * 5 + 2298101", 659993.0),
        ("1 + \"2\"", "12"),
        ("true ? 1 : 2", 1.0),
        ("0 || 5", 5.0),
        ("7 >>> 1", 3.0),
        ("typeof NaN", "number"),
    ],
)
def test_evaluate_static(source: str, expected) -> None:
    assert evaluate_static(parse_expression(source)) == expected


def test_zero_over_zero_is_nan_and_never_equal() -> None:
    value = evaluate_static(parse_expression("0 / 0"))

    assert math.isnan(value)
    assert strict_equals(value, value) is False
    assert evaluate_static(parse_expression("NaN === NaN")) is False


@pytest.mark.parametrize(
    "source",
    [
        "Math.random()",
        "Math.log2()",
        "Math.abs(1, 2)",
        "window.location",
        "Math.PI()",
        "a in b",
        "null",
    ],
)
def test_evaluate_static_rejects_outside_grammar(source: str) -> None:
    with pytest.raises(EvaluationError):
        evaluate_static(parse_expression(source))


def test_free_variable_stays_symbolic() -> None:
    function = parse_function("function(a){ return [a / Math.log2(a * Math.LN10), 1 + 1, Math.PI > 3]; }")

    folded = fold_result(function, MEASURED)

    residual, two, flag = folded.elements
    assert not is_literal(residual)
    assert render_expr(residual) == f"a / Math.log2(a * {render_expr(NumberLiteral(math.log(10)))})"
    assert isinstance(two, NumberLiteral) and two.value == 2
    assert flag.value is True
    assert function.body[0].argument is folded


def test_residual_matches_direct_evaluation() -> None:
    source = "function(a){ return [a / Math.log2(a * Math.LN10), Object.keys(globalThis.process || {}), globalThis.marker]; }"

    direct = parse_function(source)
    info = resolve_scopes(direct)
    seed = {info.binding_for_declaration(direct.params[0]): SEED}
    direct_values = [
        Folder(MEASURED, scope_info=info, bindings=seed).evaluate(element)
        for element in find_result_expression(direct).elements
    ]

    folded_tree = parse_function(source)
    folded = fold_result(folded_tree, MEASURED)
    info = resolve_scopes(folded_tree)
    seed = {info.binding_for_declaration(folded_tree.params[0]): SEED}
    folded_values = [Folder(MEASURED, scope_info=info, bindings=seed).evaluate(element) for element in folded.elements]

    assert folded_values == direct_values
    assert folded_values[0] == SEED / math.log2(SEED * math.log(10))
    assert folded_values[1] == ()
    assert folded_values[2] is UNDEFINED


def test_measured_call_arguments_are_not_evaluated() -> None:
    expr = parse_expression("Object.keys(somethingUnknown.deep || {})")

    assert Folder(MEASURED).evaluate(expr) == ()


def test_unmeasured_entry_is_an_error() -> None:
    with pytest.raises(EvaluationError):
        evaluate_static(parse_expression("globalThis.marker"))


def test_local_binding_cannot_fold() -> None:
    function = parse_function("function(a){ var b = 2; return [b, 1, 1]; }")

    with pytest.raises(EvaluationError):
        fold_result(function, MEASURED)


def test_local_resolver_failures_are_evaluation_errors() -> None:
    function = parse_function("function(a){ function f(n){ return n; } return [f(4, 5), f(), 0]; }")
    info = resolve_scopes(function)
    binding = info.binding_for_declaration(function.body[0])
    folder = Folder(DEFAULT_NAMESPACE, scope_info=info, resolvers={binding: lambda n: n * 2})
    with_extra, without_args, _ = function.body[1].argument.elements

    with pytest.raises(EvaluationError, match="failed"):
        folder.evaluate(with_extra)
    with pytest.raises(EvaluationError, match="failed"):
        folder.evaluate(without_args)


def test_fold_does_not_mutate_input() -> None:
    expr = parse_expression("1 + 2 * x")
    before = render_expr(expr)
    folder = Folder(DEFAULT_NAMESPACE)

    with pytest.raises(EvaluationError):
        folder.fold(expr)
    assert render_expr(expr) == before

    partial = parse_expression("(1 + 2) * 3")
    result = folder.fold(partial)
    assert isinstance(partial, Binary)
    assert isinstance(result, NumberLiteral) and result.value == 9


@pytest.mark.parametrize(
    "source",
    [
        "function(a){ return [a, 1]; }",
        "function(a){ return a; }",
        "function(a){ return [1, 2, 3, 4]; }",
        "function(a){ a = 1; }",
    ],
)
def test_wrong_shape_is_shape_mismatch(source: str) -> None:
    with pytest.raises(ShapeMismatch):
        fold_result(parse_function(source), MEASURED)


def test_result_found_through_iife() -> None:
    function = parse_function("function(a){ return function(){ return [a, 2, 3]; }(); }")

    result = find_result_expression(function)

    assert isinstance(result, ArrayLiteral)
    assert isinstance(result.elements[0], Identifier)
    assert "return [a, 2, 3];" in to_source(function)
