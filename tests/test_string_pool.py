from __future__ import annotations

import pytest

from js_challenge.exceptions import StringPoolUnresolved
from js_challenge.js_ast import FunctionDeclaration, StringLiteral, VarDeclaration, to_source
from js_challenge.parser import parse_function
from js_challenge.passes.proxy_vars import eliminate_aliases
from js_challenge.passes.string_pool import RotatingStringPool, find_pattern, recover_strings
from js_challenge.visitor import walk


def _prepared(source: str):
    function = parse_function(source)
    eliminate_aliases(function)
    return function


def _declared_string(function, name: str) -> str:
    for stmt in function.body:
        if isinstance(stmt, VarDeclaration) and stmt.declarations[0].id.name == name:
            init = stmt.declarations[0].init
            assert isinstance(init, StringLiteral)
            return init.value
    raise AssertionError(f"no declaration of {name}")


def test_rotating_pool_resolve_and_rotate() -> None:
    pool = RotatingStringPool(["a", "b", "c"], offset=10, operator="-")

    assert pool.resolve(10) == "a"
    assert pool.resolve(12) == "c"
    assert pool.resolve(13) == "a"
    pool.rotate()
    assert pool.current() == ["b", "c", "a"]
    assert pool.resolve(10) == "b"
    assert pool.snapshot().rotation == 1


def test_recover_strings_on_generated_payload(pool_challenge: str) -> None:
    function = _prepared(pool_challenge)

    metadata = recover_strings(function)

    assert metadata["rotations"] == 1
    assert metadata["offset"] == 100
    assert metadata["removed_accessor"] is True
    assert metadata["removed_pool"] is True
    assert not any(isinstance(stmt, FunctionDeclaration) for stmt in function.body)
    rendered = to_source(function)
    assert 'Math["sqrt"](a)' in rendered
    assert 'Object["keys"]' in rendered


def test_calls_before_rotation_see_original_order(pool_challenge: str) -> None:
    function = _prepared(pool_challenge)

    metadata = recover_strings(function)

    assert _declared_string(function, "early") == "keys"
    assert _declared_string(function, "late") == "12abc"
    assert metadata["before_rotation"] == 1
    assert metadata["after_rotation"] == 3


def test_recovery_is_idempotent(pool_challenge: str) -> None:
    function = _prepared(pool_challenge)
    recover_strings(function)
    once = to_source(function)

    assert recover_strings(function) == {"skipped": True}
    assert to_source(function) == once


def test_non_convergence_leaves_tree_untouched(pool_challenge: str) -> None:
    function = _prepared(pool_challenge.replace("-8 + 40", "-8 + 41"))
    before = to_source(function)

    with pytest.raises(StringPoolUnresolved):
        recover_strings(function)

    assert to_source(function) == before


def test_pool_without_rotation_is_unresolved() -> None:
    source = """function(a){
      function q(){ var list = ["x", "y"]; return q = function(){ return list; }, q(); }
      function g(n){ var p = q(); n = n - 1; return p[n]; }
      return [g(1), 0, 0];
    }"""

    with pytest.raises(StringPoolUnresolved):
        recover_strings(_prepared(source))


def test_tree_without_pool_is_skipped() -> None:
    function = _prepared("function(a){ return [a, 1, 2]; }")

    assert recover_strings(function) == {"skipped": True}


def test_captured_challenge_pool(captured_challenge) -> None:
    function = _prepared(captured_challenge["c"])

    pattern = find_pattern(function)
    assert pattern is not None
    assert pattern.offset == 132
    assert pattern.target == 659993
    assert len(pattern.strings) == 16

    metadata = recover_strings(function)

    assert metadata["replaced"] == 4
    strings = sorted(node.value for node in walk(function) if isinstance(node, StringLiteral))
    assert strings == ["keys", "log1p", "marker", "process"]


def _strings_in(function, name: str) -> list:
    for stmt in function.body:
        if isinstance(stmt, VarDeclaration) and stmt.declarations[0].id.name == name:
            return [node.value for node in walk(stmt) if isinstance(node, StringLiteral)]
    raise AssertionError(f"no declaration of {name}")


def test_accessor_ignores_extra_arguments(pool_challenge: str) -> None:
    function = _prepared(pool_challenge.replace("parseInt(acc(100))", "parseInt(acc(100, 0))"))

    metadata = recover_strings(function)

    assert metadata["rotations"] == 1
    assert _declared_string(function, "early") == "keys"


def test_accessor_without_index_never_converges(pool_challenge: str) -> None:
    function = _prepared(pool_challenge.replace("parseInt(acc(100))", "parseInt(acc())"))

    with pytest.raises(StringPoolUnresolved):
        recover_strings(function)


def test_dynamic_calls_keep_the_rotation(pool_challenge: str) -> None:
    function = _prepared(pool_challenge.replace("return function () {", "var dyn = g(a);\nreturn function () {", 1))

    metadata = recover_strings(function)

    assert metadata["dynamic_calls"] == 1
    assert metadata["removed_accessor"] is False
    assert _declared_string(function, "late") == "12abc"
    once = to_source(function)

    again = recover_strings(function)

    assert again["replaced"] == 0
    assert again["rotations"] == 1
    assert to_source(function) == once


def test_stored_function_expressions_see_the_rotated_pool(pool_challenge: str) -> None:
    source = pool_challenge.replace(
        "var early = g(100);",
        "var early = g(100);\n"
        "var later = function () { return g(100); };\n"
        "var now = function () { return g(100); }();",
    )
    function = _prepared(source)

    metadata = recover_strings(function)

    assert _strings_in(function, "later") == ["12abc"]
    assert _strings_in(function, "now") == ["keys"]
    assert metadata["before_rotation"] == 2
    assert metadata["after_rotation"] == 4


def test_recovered_literals_record_their_pool_slot(pool_challenge: str) -> None:
    function = _prepared(pool_challenge)
    recover_strings(function)

    early = next(stmt for stmt in function.body if isinstance(stmt, VarDeclaration) and stmt.declarations[0].id.name == "early")
    late = next(stmt for stmt in function.body if isinstance(stmt, VarDeclaration) and stmt.declarations[0].id.name == "late")

    assert early.declarations[0].init.metadata["string_pool"] == {"index": 100, "rotated": False}
    assert late.declarations[0].init.metadata["string_pool"] == {"index": 100, "rotated": True}
