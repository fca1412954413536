"""Pass modules orchestrated by :mod:`js_challenge.pipeline`."""

from __future__ import annotations

from . import (
    proxy_vars,
    string_pool,
    member_access,
    constant_fold,
)

__all__ = [
    "proxy_vars",
    "string_pool",
    "member_access",
    "constant_fold",
]
