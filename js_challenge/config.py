"""Measured environment constants substituted into every challenge.

The challenge inspects two things about the browser it runs in:
``Object.keys(globalThis.process || {})`` and ``globalThis.marker``.  Both
are captured once from a real client instead of being derived per request.
If the protected site changes what its page sets up, re-capture them and
load the new values with :meth:`MeasuredEnvironment.load`.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple

from .sandbox import MARKER_PATH, PROCESS_KEYS_PATH, UNDEFINED, SandboxValue

__all__ = ["MeasuredEnvironment", "DEFAULT_ENVIRONMENT"]

_KNOWN_KEYS = frozenset({"process_keys", "marker"})


@dataclass(frozen=True)
class MeasuredEnvironment:
    process_keys: Tuple[str, ...] = ()
    marker: SandboxValue = UNDEFINED

    def measurements(self) -> Dict[str, SandboxValue]:
        """Namespace path -> measured value."""

        return {
            PROCESS_KEYS_PATH: tuple(self.process_keys),
            MARKER_PATH: self.marker,
        }

    def as_dict(self) -> Dict[str, Any]:
        return {
            "process_keys": list(self.process_keys),
            "marker": None if self.marker is UNDEFINED else self.marker,
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "MeasuredEnvironment":
        """Build an environment from JSON-style data.

        ``marker`` may be omitted or ``null`` for an absent value.
        """

        unknown = set(data) - _KNOWN_KEYS
        if unknown:
            raise ValueError(f"unknown environment keys: {', '.join(sorted(unknown))}")

        keys = data.get("process_keys", [])
        if not isinstance(keys, (list, tuple)) or not all(isinstance(key, str) for key in keys):
            raise ValueError("process_keys must be a list of strings")

        marker = data.get("marker")
        if marker is None:
            value: SandboxValue = UNDEFINED
        elif isinstance(marker, bool) or isinstance(marker, str):
            value = marker
        elif isinstance(marker, (int, float)):
            value = float(marker)
        else:
            raise ValueError("marker must be a string, number, boolean or null")
        return cls(tuple(keys), value)

    @classmethod
    def load(cls, path: str | os.PathLike[str]) -> "MeasuredEnvironment":
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
        if not isinstance(data, dict):
            raise ValueError(f"{os.fspath(path)} does not contain a JSON object")
        return cls.from_mapping(data)


DEFAULT_ENVIRONMENT = MeasuredEnvironment()
