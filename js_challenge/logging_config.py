"""Per-run trace logging for the challenge solver."""

from __future__ import annotations

import itertools
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

__all__ = [
    "configure_debug_file_logger",
    "close_debug_logger",
    "pass_trace",
]

TRACE_LOGGER_PREFIX = "js_challenge.trace"

_trace_ids = itertools.count(1)


def configure_debug_file_logger(
    name: str,
    path: Path,
    *,
    level: int = logging.DEBUG,
    formatter: logging.Formatter | None = None,
) -> logging.Logger:
    """Return a logger writing pass traces to ``path``.

    Trace handlers previously installed on ``name`` are removed first so a
    rerun replaces the old trace instead of appending to it.
    """

    path.parent.mkdir(parents=True, exist_ok=True)
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    close_debug_logger(logger)

    handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    handler._js_challenge_trace = True  # type: ignore[attr-defined]
    handler.setFormatter(formatter or logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger


def close_debug_logger(logger: logging.Logger) -> None:
    """Detach and close handlers installed by :func:`configure_debug_file_logger`."""

    for handler in [h for h in logger.handlers if getattr(h, "_js_challenge_trace", False)]:
        logger.removeHandler(handler)
        handler.close()


@contextmanager
def pass_trace(path: Optional[Path]) -> Iterator[Optional[logging.Logger]]:
    """Trace logger for one solver run, or ``None`` when ``path`` is unset.

    Each run gets its own logger name.
    """

    if path is None:
        yield None
        return
    path = Path(path)
    logger = configure_debug_file_logger(f"{TRACE_LOGGER_PREFIX}.{next(_trace_ids)}", path)
    try:
        yield logger
    finally:
        close_debug_logger(logger)
