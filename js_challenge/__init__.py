"""Static solver for obfuscated JavaScript bot-protection challenges."""

from __future__ import annotations

from .config import DEFAULT_ENVIRONMENT, MeasuredEnvironment
from .exceptions import (
    DeobfuscationError,
    EvaluationError,
    ParseError,
    ShapeMismatch,
    StringPoolUnresolved,
    UnsupportedConstruct,
)
from .token import Challenge, SolvedChallenge, solve_challenge, solve_many

__version__ = "0.1.0"

__all__ = [
    "Challenge",
    "SolvedChallenge",
    "solve_challenge",
    "solve_many",
    "MeasuredEnvironment",
    "DEFAULT_ENVIRONMENT",
    "DeobfuscationError",
    "ParseError",
    "UnsupportedConstruct",
    "StringPoolUnresolved",
    "EvaluationError",
    "ShapeMismatch",
]
