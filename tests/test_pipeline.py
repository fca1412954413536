from __future__ import annotations

import json
import logging

import pytest

from js_challenge.exceptions import EvaluationError, ParseError
from js_challenge.js_ast import render_expr
from js_challenge.logging_config import close_debug_logger, configure_debug_file_logger
from js_challenge.pipeline import PIPELINE, Context, PassRegistry, run_pipeline
from js_challenge.sandbox import DEFAULT_NAMESPACE, UNDEFINED
from js_challenge.utils import format_pass_summary

MEASURED = DEFAULT_NAMESPACE.with_measurements({"Object.keys": (), "globalThis.marker": UNDEFINED})


def test_pass_order() -> None:
    assert PIPELINE.names() == ["parse", "proxy_vars", "string_pool", "member_access", "constant_fold"]


def test_context_defaults_to_the_shared_namespace() -> None:
    ctx = Context(source="")

    assert ctx.namespace is DEFAULT_NAMESPACE
    assert Context(source="", namespace=MEASURED).namespace is MEASURED
    assert ctx.pass_metadata is not Context(source="").pass_metadata


def test_full_pipeline(pool_challenge: str) -> None:
    ctx = Context(source=pool_challenge, namespace=MEASURED)

    timings = run_pipeline(ctx)

    assert [name for name, _ in timings] == PIPELINE.names()
    assert ctx.result is not None
    assert render_expr(ctx.result) == "[a * Math.sqrt(a), [], undefined]"
    assert ctx.pass_metadata["parse"]["parameter"] == "a"
    assert ctx.pass_metadata["proxy_vars"]["aliases_removed"] == 2
    assert ctx.pass_metadata["string_pool"]["rotations"] == 1
    assert ctx.pass_metadata["member_access"]["rewritten"] == 3
    assert ctx.pass_metadata["constant_fold"]["residual"] == [True, False, False]
    assert "Pass" in format_pass_summary(timings)


def test_only_and_skip(pool_challenge: str) -> None:
    ctx = Context(source=pool_challenge, namespace=MEASURED, options={"only": ["parse", "proxy_vars"]})

    run_pipeline(ctx)

    assert set(ctx.pass_metadata) == {"parse", "proxy_vars"}
    assert ctx.result is None


def test_failing_pass_is_named(pool_challenge: str) -> None:
    ctx = Context(source=pool_challenge, namespace=MEASURED, options={"skip": ["string_pool"]})

    with pytest.raises(EvaluationError) as excinfo:
        run_pipeline(ctx)

    assert excinfo.value.pass_name == "constant_fold"
    assert "constant_fold" not in ctx.pass_metadata


def test_parse_error_is_named() -> None:
    with pytest.raises(ParseError) as excinfo:
        run_pipeline(Context(source="function(a){ return [a, ; }"))

    assert excinfo.value.pass_name == "parse"


def test_unmeasured_namespace_fails_in_fold(pool_challenge: str) -> None:
    with pytest.raises(EvaluationError) as excinfo:
        run_pipeline(Context(source=pool_challenge))

    assert excinfo.value.pass_name == "constant_fold"


def test_artifacts_are_written(tmp_path, pool_challenge: str) -> None:
    target = tmp_path / "artifacts"
    ctx = Context(source=pool_challenge, namespace=MEASURED, options={"artifacts": str(target)})

    run_pipeline(ctx)

    for name in PIPELINE.names():
        assert (target / f"{name}.js").exists()
        assert (target / f"{name}.json").exists()
    pool = json.loads((target / "string_pool.json").read_text(encoding="utf-8"))
    assert pool["replaced"] == 4
    assert "var early = \"keys\";" in (target / "string_pool.js").read_text(encoding="utf-8")
    assert "Math.sqrt" in (target / "member_access.js").read_text(encoding="utf-8")


def test_trace_logger(tmp_path, pool_challenge: str) -> None:
    path = tmp_path / "trace.log"
    trace = configure_debug_file_logger("js_challenge.test.trace", path)
    try:
        run_pipeline(Context(source=pool_challenge, namespace=MEASURED, trace=trace))
    finally:
        close_debug_logger(trace)

    text = path.read_text(encoding="utf-8")
    assert "// after parse" in text
    assert "// after constant_fold" in text
    assert not trace.handlers


def test_pass_summary_logged(caplog, pool_challenge: str) -> None:
    with caplog.at_level(logging.INFO, logger="js_challenge.pipeline"):
        run_pipeline(Context(source=pool_challenge, namespace=MEASURED))

    messages = [record.getMessage() for record in caplog.records]
    assert any(message.startswith("pass string_pool completed") and "rotations=1" in message for message in messages)


def test_custom_registry_orders_by_priority() -> None:
    calls = []
    registry = PassRegistry()
    registry.register_pass("second", lambda ctx: calls.append("second"), 20)
    registry.register_pass("first", lambda ctx: calls.append("first"), 10)

    registry.run_passes(Context(source=""))

    assert calls == ["first", "second"]
    assert registry.names() == ["first", "second"]
