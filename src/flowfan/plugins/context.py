# src/flowfan/plugins/context.py
"""Processor execution context.

The ProcessContext carries everything a processor might need during one
run: run metadata, its own configuration, and the error-reporting sink.

Example:
    def process(self, unit: FlowUnit, ctx: ProcessContext) -> ProcessResult:
        if bad:
            ctx.report_error("value could not be parsed", attribute=name)
            return ProcessResult.failed(unit, reason)
"""

import threading
from dataclasses import dataclass, field
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


@dataclass
class ProcessContext:
    """Context passed to every processor operation.

    One context is shared by all invocations of a run, including
    invocations on different worker threads. report_error is the only
    mutating method and is guarded by a lock.
    """

    run_id: str
    config: dict[str, Any] = field(default_factory=dict)
    node_id: str | None = None
    plugin_name: str | None = None

    _errors_reported: int = field(default=0, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def errors_reported(self) -> int:
        """Number of recoverable per-unit errors reported during this run."""
        return self._errors_reported

    def report_error(self, message: str, *, cause: BaseException | None = None, **context: Any) -> None:
        """Report a recoverable, per-unit error.

        The error is logged as a structured event bound to this run and
        node. It does not raise; the caller still decides how to route.

        Args:
            message: Human-readable description
            cause: Exception that triggered the failure, if any
            **context: Structured fields (attribute names, raw values, etc.)
        """
        with self._lock:
            self._errors_reported += 1
        if cause is not None:
            context["exc_info"] = cause
        logger.error(
            message,
            run_id=self.run_id,
            node_id=self.node_id,
            plugin=self.plugin_name,
            **context,
        )
