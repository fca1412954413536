"""Solve a decoded challenge: fold its function, evaluate it with the seed."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .config import DEFAULT_ENVIRONMENT, MeasuredEnvironment
from .exceptions import ParseError, ShapeMismatch
from .js_ast import is_literal, literal_value, render_expr
from .logging_config import pass_trace
from .passes.constant_fold import Folder
from .pipeline import Context, run_pipeline
from .sandbox import DEFAULT_NAMESPACE, UNDEFINED, SandboxValue, is_array, is_number, number_to_string
from .scope import resolve_scopes
from .utils import format_pass_summary, run_parallel

LOG = logging.getLogger(__name__)

__all__ = ["Challenge", "SolvedChallenge", "solve_challenge", "solve_many"]


@dataclass(frozen=True)
class Challenge:
    """Decoded challenge payload.

    ``seed`` is field ``a``, ``code`` is field ``c`` (the function source) and
    ``tag`` is field ``t``, an opaque value echoed back untouched.
    """

    seed: float
    code: str
    tag: str

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Challenge":
        missing = [key for key in ("a", "c", "t") if key not in data]
        if missing:
            raise ParseError(f"challenge is missing field(s): {', '.join(missing)}")
        seed, code, tag = data["a"], data["c"], data["t"]
        if isinstance(seed, bool) or not isinstance(seed, (int, float)):
            raise ParseError("challenge field 'a' must be a number")
        if not isinstance(code, str):
            raise ParseError("challenge field 'c' must be a string")
        if not isinstance(tag, str):
            raise ParseError("challenge field 't' must be a string")
        return cls(float(seed), code, tag)

    @classmethod
    def from_json(cls, text: str) -> "Challenge":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ParseError(f"challenge is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ParseError("challenge JSON must be an object")
        return cls.from_mapping(data)


def _json_value(value: SandboxValue) -> Any:
    if value is UNDEFINED:
        return None
    if is_array(value):
        return [_json_value(item) for item in value]  # type: ignore[union-attr]
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        if value.is_integer() and abs(value) < 1e21:
            return int(value)
    return value


def _stringify(value: SandboxValue) -> str:
    if value is UNDEFINED:
        return "null"
    if is_array(value):
        return "[" + ",".join(_stringify(item) for item in value) + "]"  # type: ignore[union-attr]
    if isinstance(value, bool):
        return "true" if value else "false"
    if is_number(value):
        return number_to_string(float(value)) if math.isfinite(value) else "null"
    return json.dumps(value, ensure_ascii=False)


@dataclass(frozen=True)
class SolvedChallenge:
    answer: Tuple[SandboxValue, SandboxValue, SandboxValue]
    tag: str

    def as_dict(self) -> Dict[str, Any]:
        """JSON-compatible form, mirroring ``JSON.stringify`` of the browser."""

        return {"r": [_json_value(item) for item in self.answer], "t": self.tag}

    def to_json(self) -> str:
        """Serialise exactly as ``JSON.stringify`` formats numbers."""

        return '{"r":' + _stringify(self.answer) + ',"t":' + json.dumps(self.tag, ensure_ascii=False) + "}"


def solve_challenge(
    challenge: Challenge,
    environment: MeasuredEnvironment = DEFAULT_ENVIRONMENT,
    *,
    artifacts: Optional[Path] = None,
    trace_path: Optional[Path] = None,
    options: Optional[Dict[str, Any]] = None,
) -> SolvedChallenge:
    """Run the pass pipeline on ``challenge`` and evaluate it with its seed."""

    ctx = Context(
        source=challenge.code,
        namespace=DEFAULT_NAMESPACE.with_measurements(environment.measurements()),
        options=dict(options or {}),
        artifacts=artifacts,
    )
    with pass_trace(trace_path) as trace:
        ctx.trace = trace
        timings = run_pipeline(ctx)
        answer = _evaluate_result(ctx, challenge.seed)
    LOG.debug("pass summary:\n%s", format_pass_summary(timings, ctx.pass_metadata))
    LOG.info("solved challenge: %s", answer)
    return SolvedChallenge(answer, challenge.tag)


def _evaluate_result(ctx: Context, seed: float) -> Tuple[SandboxValue, SandboxValue, SandboxValue]:
    if ctx.tree is None or ctx.result is None:
        raise ShapeMismatch("pipeline did not produce a folded result")
    residual, keys, marker = ctx.result.elements
    for element in (keys, marker):
        if not is_literal(element):
            raise ShapeMismatch(f"result element {render_expr(element)} is not a constant")

    info = resolve_scopes(ctx.tree)
    parameter = info.binding_for_declaration(ctx.tree.params[0])
    bindings = {parameter: seed} if parameter is not None else {}
    value = Folder(ctx.namespace, scope_info=info, bindings=bindings).evaluate(residual)
    if not is_number(value):
        raise ShapeMismatch(f"first result element is not numeric: {value!r}")
    if ctx.trace is not None:
        ctx.trace.debug("// residual %s with seed %r = %r", render_expr(residual), seed, value)
    return value, literal_value(keys), literal_value(marker)


def solve_many(
    challenges: Sequence[Challenge],
    environment: MeasuredEnvironment = DEFAULT_ENVIRONMENT,
    *,
    jobs: int = 1,
) -> List[SolvedChallenge]:
    """Solve several challenges, in parallel when ``jobs > 1``; order is kept."""

    results, duration = run_parallel(
        challenges,
        lambda challenge: solve_challenge(challenge, environment),
        jobs=jobs,
    )
    LOG.info("solved %d challenges in %.3fs", len(results), duration)
    return results
