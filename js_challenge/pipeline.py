"""Pass-based orchestration for the challenge deobfuscation pipeline."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from . import utils
from .exceptions import DeobfuscationError
from .js_ast import ArrayLiteral, FunctionExpression, to_source
from .parser import parse_function
from .passes.constant_fold import run as constant_fold_run
from .passes.member_access import run as member_access_run
from .passes.proxy_vars import run as proxy_vars_run
from .passes.string_pool import run as string_pool_run
from .sandbox import DEFAULT_NAMESPACE, SandboxNamespace
from .utils import write_json, write_text

LOG = logging.getLogger(__name__)

PassFn = Callable[["Context"], None]


@dataclass
class Context:
    """Shared state threaded through individual pipeline passes."""

    source: str
    namespace: SandboxNamespace = field(default_factory=lambda: DEFAULT_NAMESPACE)
    tree: Optional[FunctionExpression] = None
    result: Optional[ArrayLiteral] = None
    pass_metadata: Dict[str, Any] = field(default_factory=dict)
    options: Dict[str, Any] = field(default_factory=dict)
    artifacts: Optional[Path] = None
    trace: Optional[logging.Logger] = None

    def __post_init__(self) -> None:
        if self.artifacts is None and self.options.get("artifacts"):
            self.artifacts = Path(self.options["artifacts"])

    def record_metadata(self, name: str, metadata: Dict[str, Any]) -> None:
        summary = utils.summarise_metadata(metadata)
        self.pass_metadata[name] = summary
        if self.artifacts:
            utils.ensure_directory(self.artifacts)
            meta_path = self.artifacts / f"{name}.json"
            write_json(meta_path, summary, sort_keys=True)

    def write_artifact(self, name: str, content: str, *, extension: str = ".js") -> None:
        if not self.artifacts:
            return
        if content is None or content == "":
            return
        utils.ensure_directory(self.artifacts)
        safe_name = name.replace(" ", "_")
        path = self.artifacts / f"{safe_name}{extension}"
        write_text(path, content)

    def checkpoint(self, name: str) -> None:
        """Dump the current tree as artifact and trace entry after pass ``name``."""

        if self.tree is None:
            return
        rendered = to_source(self.tree)
        self.write_artifact(name, rendered)
        if self.trace is not None:
            self.trace.debug("// after %s\n%s\n", name, rendered)


class PassRegistry:
    def __init__(self) -> None:
        self._passes: Dict[str, Tuple[int, PassFn]] = {}

    def register_pass(self, name: str, fn: PassFn, order: int) -> None:
        self._passes[name] = (order, fn)

    def names(self) -> List[str]:
        return [name for name, _ in sorted(self._passes.items(), key=lambda item: item[1][0])]

    def run_passes(
        self,
        ctx: Context,
        skip: Optional[Iterable[str]] = None,
        only: Optional[Iterable[str]] = None,
    ) -> List[Tuple[str, float]]:
        """Run the selected passes in order and return their timings.

        A :class:`DeobfuscationError` escaping a pass is tagged with the pass
        name and re-raised; later passes do not run.
        """

        skip_set = {name.strip() for name in (skip or []) if name}
        only_set = {name.strip() for name in (only or []) if name}
        selected = [
            name
            for name in self.names()
            if name not in skip_set and (not only_set or name in only_set)
        ]

        timings: List[Tuple[str, float]] = []
        for name in selected:
            _, fn = self._passes[name]
            start = time.perf_counter()
            try:
                fn(ctx)
            except DeobfuscationError as exc:
                exc.pass_name = name
                LOG.debug("pass %s failed: %s", name, exc)
                raise
            duration = time.perf_counter() - start
            timings.append((name, duration))
            details = utils.describe_metadata(ctx.pass_metadata.get(name))
            suffix = f" ({details})" if details else ""
            LOG.info("pass %s completed in %.3fs%s", name, duration, suffix)
        return timings


PIPELINE = PassRegistry()


# ---------------------------------------------------------------------------
# Pass implementations


def _pass_parse(ctx: Context) -> None:
    ctx.tree = parse_function(ctx.source)
    ctx.result = None
    ctx.record_metadata(
        "parse",
        {
            "source_length": len(ctx.source),
            "parameter": ctx.tree.params[0].name,
            "statements": len(ctx.tree.body),
        },
    )
    ctx.checkpoint("parse")


def _pass_proxy_vars(ctx: Context) -> None:
    metadata = proxy_vars_run(ctx)
    ctx.record_metadata("proxy_vars", metadata)
    ctx.checkpoint("proxy_vars")


def _pass_string_pool(ctx: Context) -> None:
    metadata = string_pool_run(ctx)
    ctx.record_metadata("string_pool", metadata)
    ctx.checkpoint("string_pool")


def _pass_member_access(ctx: Context) -> None:
    metadata = member_access_run(ctx)
    ctx.record_metadata("member_access", metadata)
    ctx.checkpoint("member_access")


def _pass_constant_fold(ctx: Context) -> None:
    metadata = constant_fold_run(ctx)
    ctx.record_metadata("constant_fold", metadata)
    ctx.checkpoint("constant_fold")


PIPELINE.register_pass("parse", _pass_parse, 10)
PIPELINE.register_pass("proxy_vars", _pass_proxy_vars, 20)
PIPELINE.register_pass("string_pool", _pass_string_pool, 30)
PIPELINE.register_pass("member_access", _pass_member_access, 40)
PIPELINE.register_pass("constant_fold", _pass_constant_fold, 50)


def run_pipeline(ctx: Context) -> List[Tuple[str, float]]:
    """Run the registered passes honouring ``ctx.options`` skip/only lists."""

    return PIPELINE.run_passes(
        ctx,
        skip=ctx.options.get("skip"),
        only=ctx.options.get("only"),
    )


__all__ = ["Context", "PassRegistry", "PIPELINE", "run_pipeline"]
