from __future__ import annotations

import json
import math

import pytest

from js_challenge import (
    Challenge,
    MeasuredEnvironment,
    ParseError,
    ShapeMismatch,
    SolvedChallenge,
    solve_challenge,
    solve_many,
)
from js_challenge.sandbox import UNDEFINED

CAPTURED_SEED = 0.6737838719207112


def test_captured_challenge_matches_browser(captured_challenge, captured_response: str) -> None:
    challenge = Challenge.from_mapping(captured_challenge)

    solved = solve_challenge(challenge, MeasuredEnvironment(marker="mark"))

    assert challenge.seed == CAPTURED_SEED
    assert solved.answer[0] == CAPTURED_SEED + math.log1p(CAPTURED_SEED / math.pi)
    assert solved.to_json() == captured_response


def test_captured_challenge_without_marker(captured_challenge) -> None:
    solved = solve_challenge(Challenge.from_mapping(captured_challenge))

    assert solved.answer[1:] == ((), UNDEFINED)
    assert solved.as_dict()["r"][1:] == [[], None]
    assert solved.tag == captured_challenge["t"]


def test_pool_challenge(pool_challenge: str) -> None:
    solved = solve_challenge(Challenge(0.25, pool_challenge, "opaque"))

    assert solved.answer == (0.125, (), UNDEFINED)
    assert solved.to_json() == '{"r":[0.125,[],null],"t":"opaque"}'


def test_residual_with_constants_end_to_end() -> None:
    seed = 0.5256885729603544
    code = "function(a){ return [a / Math.log2(a * Math.LN10), Object.keys(globalThis.process || {}), globalThis.marker]; }"

    solved = solve_challenge(Challenge(seed, code, "t"), MeasuredEnvironment(("env",), "m"))

    assert solved.answer == (seed / math.log2(seed * math.log(10)), ("env",), "m")


def test_artifacts_and_trace(tmp_path, pool_challenge: str) -> None:
    trace = tmp_path / "trace" / "run.log"

    solve_challenge(Challenge(0.5, pool_challenge, "t"), artifacts=tmp_path / "out", trace_path=trace)

    assert (tmp_path / "out" / "constant_fold.json").exists()
    assert "// residual a * Math.sqrt(a) with seed 0.5" in trace.read_text(encoding="utf-8")


@pytest.mark.parametrize(
    "code",
    [
        "function(a){ return [a, 1]; }",
        "function(a){ return [a, a, 1]; }",
        "function(a){ return [\"x\", 1, 1]; }",
    ],
)
def test_shape_mismatch(code: str) -> None:
    with pytest.raises(ShapeMismatch):
        solve_challenge(Challenge(0.5, code, "t"))


def test_integral_numbers_serialise_like_json_stringify() -> None:
    solved = SolvedChallenge((2.0, (1.0, "x"), math.inf), "t")

    assert solved.to_json() == '{"r":[2,[1,"x"],null],"t":"t"}'


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (1e-7, "1e-7"),
        (1e21, "1e+21"),
        (-0.0, "0"),
        (0.1, "0.1"),
        (123456789012345680000.0, "123456789012345680000"),
    ],
)
def test_numbers_serialise_like_json_stringify(value: float, expected: str) -> None:
    solved = SolvedChallenge((value, (), UNDEFINED), "t")

    assert solved.to_json() == '{"r":[' + expected + ',[],null],"t":"t"}'


@pytest.mark.parametrize(
    ("text", "message"),
    [
        ("not json", "not valid JSON"),
        ("[]", "must be an object"),
        ('{"a": 1, "c": "x"}', "missing"),
        ('{"a": "1", "c": "x", "t": "y"}', "'a'"),
        ('{"a": true, "c": "x", "t": "y"}', "'a'"),
        ('{"a": 1, "c": 2, "t": "y"}', "'c'"),
        ('{"a": 1, "c": "x", "t": null}', "'t'"),
    ],
)
def test_challenge_from_json_errors(text: str, message: str) -> None:
    with pytest.raises(ParseError, match=message):
        Challenge.from_json(text)


def test_challenge_from_json(captured_challenge) -> None:
    challenge = Challenge.from_json(json.dumps(captured_challenge))

    assert challenge.code.startswith("function")
    assert challenge.tag.startswith("eyJ")


def test_solve_many_keeps_order(pool_challenge: str) -> None:
    challenges = [Challenge(seed, pool_challenge, f"t{i}") for i, seed in enumerate((0.25, 0.5, 1.0))]

    results = solve_many(challenges, jobs=2)

    assert [result.tag for result in results] == ["t0", "t1", "t2"]
    assert [result.answer[0] for result in results] == [0.125, 0.5 * math.sqrt(0.5), 1.0]
