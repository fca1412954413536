"""Custom exception hierarchy for the challenge solver."""

from __future__ import annotations


class DeobfuscationError(Exception):
    """Base class for all deobfuscation related errors.

    ``pass_name`` is filled in by :class:`js_challenge.pipeline.PassRegistry`
    when the error escapes a pass, so callers can tell which stage failed.
    """

    pass_name: str | None = None


class ParseError(DeobfuscationError):
    """Raised when the input is not a single-parameter function expression."""


class UnsupportedConstruct(DeobfuscationError):
    """Raised when valid syntax falls outside the modelled node kinds."""


class StringPoolUnresolved(DeobfuscationError):
    """Raised when the rotating string pool cannot be recovered."""


class EvaluationError(DeobfuscationError):
    """Raised by the sandbox evaluator on unknown paths, bad arity or types."""


class ShapeMismatch(DeobfuscationError):
    """Raised when the folded body is not a three element array."""


__all__ = [
    "DeobfuscationError",
    "EvaluationError",
    "ParseError",
    "ShapeMismatch",
    "StringPoolUnresolved",
    "UnsupportedConstruct",
]
