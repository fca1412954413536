"""Artifact writers, metadata serialisation and the parallel solve helper."""

from __future__ import annotations

import json
import math
import os
import tempfile
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, TypeVar

from .sandbox import UNDEFINED

T = TypeVar("T")
R = TypeVar("R")

__all__ = [
    "ensure_directory",
    "write_text",
    "write_json",
    "serialise_metadata",
    "summarise_metadata",
    "describe_metadata",
    "format_pass_summary",
    "run_parallel",
]

# metadata counters worth surfacing in one-line pass summaries
SUMMARY_KEYS = ("aliases_removed", "rotations", "replaced", "rewritten", "elements")


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def write_text(path: str | os.PathLike[str], content: str, *, encoding: str = "utf-8") -> None:
    """Write ``content`` to ``path`` through a temporary file and ``os.replace``.

    A reader never observes a half-written artifact.
    """

    target = Path(path)
    ensure_directory(target.parent)
    fd, temp_path = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".partial", dir=target.parent)
    try:
        with os.fdopen(fd, "w", encoding=encoding) as handle:
            handle.write(content)
        os.replace(temp_path, target)
    except BaseException:
        Path(temp_path).unlink(missing_ok=True)
        raise


def write_json(path: str | os.PathLike[str], obj: Any, *, sort_keys: bool = False) -> None:
    write_text(path, json.dumps(obj, ensure_ascii=False, indent=2, sort_keys=sort_keys) + "\n")


def serialise_metadata(value: Any) -> Any:
    """Return a JSON-serialisable representation of pass metadata ``value``.

    ``undefined`` becomes ``null`` and non-finite numbers their ``repr`` so
    artifacts stay valid JSON.
    """

    if value is UNDEFINED or value is None:
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return repr(value)
    if isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (list, tuple, set, frozenset)):
        return [serialise_metadata(item) for item in value]
    if isinstance(value, Mapping):
        return {str(key): serialise_metadata(item) for key, item in value.items()}
    return repr(value)


def summarise_metadata(metadata: Mapping[str, Any]) -> Dict[str, Any]:
    return {str(key): serialise_metadata(value) for key, value in metadata.items()}


def describe_metadata(metadata: Optional[Mapping[str, Any]]) -> str:
    """Short ``key=value`` rendering of the counters in ``metadata``."""

    if not isinstance(metadata, Mapping):
        return ""
    parts = [
        f"{key}={metadata[key]}"
        for key in SUMMARY_KEYS
        if isinstance(metadata.get(key), int) and not isinstance(metadata.get(key), bool)
    ]
    if metadata.get("skipped"):
        parts.append("skipped=true")
    return ", ".join(parts)


def format_pass_summary(
    timings: Sequence[Tuple[str, float]],
    metadata: Optional[Mapping[str, Any]] = None,
) -> str:
    """Table of pass durations, with each pass's counters when ``metadata`` is given."""

    if not timings:
        return ""
    metadata = metadata or {}
    width = max(len("Pass"), *(len(name) for name, _ in timings))
    lines = [f"{'Pass'.ljust(width)}  Duration  Details"]
    for name, duration in timings:
        details = describe_metadata(metadata.get(name))
        lines.append(f"{name.ljust(width)}  {duration:7.3f}s  {details}".rstrip())
    return "\n".join(lines)


def run_parallel(
    items: Sequence[T],
    worker: Callable[[T], R],
    *,
    jobs: int = 1,
    timer: Callable[[], float] = time.perf_counter,
) -> Tuple[List[R], float]:
    """Map ``worker`` over ``items``, on ``jobs`` threads when ``jobs > 1``.

    Returns ``(results, seconds)`` with results in input order.  The first
    exception raised by ``worker`` propagates.
    """

    start = timer()
    if jobs <= 1 or len(items) <= 1:
        results = [worker(item) for item in items]
    else:
        with ThreadPoolExecutor(max_workers=min(jobs, len(items))) as pool:
            results = list(pool.map(worker, items))
    return results, timer() - start
