# src/flowfan/engine/runner.py
"""ProcessorRunner: drives one processor over an input queue.

Each trigger opens a ProcessSession, fetches at most one unit, calls the
processor and routes every emission through the session before
committing. Invocations are independent, so run() can use several worker
threads; ordering is only guaranteed within one invocation.
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

import structlog

from flowfan.contracts import Relationship
from flowfan.core.logging import bind_run_context
from flowfan.engine.clock import DEFAULT_CLOCK, Clock
from flowfan.engine.session import ProcessSession, UnitQueue
from flowfan.plugins.base import BaseProcessor
from flowfan.plugins.context import ProcessContext

logger = structlog.get_logger(__name__)


@dataclass
class RunSummary:
    """What a run did."""

    run_id: str
    invocations: int = 0
    idle_ticks: int = 0
    counts: dict[Relationship, int] = field(default_factory=dict)
    errors_reported: int = 0

    def count(self, relationship: Relationship) -> int:
        return self.counts.get(relationship, 0)


class ProcessorRunner:
    """Runs a processor against an input queue.

    Args:
        processor: Processor instance to drive
        input_queue: Units waiting to be processed
        connections: Downstream queue per relationship. Relationships left out
            get a fresh UnitQueue; a relationship mapped to None is
            auto-terminated.
        run_id: Identifier for this run (generated when omitted)
        node_id: Node identifier handed to the processor and its context
        clock: Clock used for penalty expiry
    """

    def __init__(
        self,
        processor: BaseProcessor,
        input_queue: UnitQueue,
        connections: Mapping[Relationship, UnitQueue | None] | None = None,
        *,
        run_id: str | None = None,
        node_id: str | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._processor = processor
        self._input = input_queue
        self._clock = clock if clock is not None else DEFAULT_CLOCK

        wired = dict(connections or {})
        for relationship in processor.relationships:
            if relationship not in wired:
                wired[relationship] = UnitQueue(clock=self._clock)
        self._connections: dict[Relationship, UnitQueue | None] = wired

        processor.node_id = node_id or processor.name
        self.ctx = ProcessContext(
            run_id=run_id or uuid.uuid4().hex,
            config=dict(processor.config),
            node_id=processor.node_id,
            plugin_name=processor.name,
        )
        self._commit_lock = threading.Lock()
        self._stats_lock = threading.Lock()
        self._summary = RunSummary(run_id=self.ctx.run_id)

    def connection(self, relationship: Relationship) -> UnitQueue | None:
        """Downstream queue wired to a relationship (None if auto-terminated)."""
        return self._connections[relationship]

    @property
    def summary(self) -> RunSummary:
        with self._stats_lock:
            self._summary.errors_reported = self.ctx.errors_reported
            return RunSummary(
                run_id=self._summary.run_id,
                invocations=self._summary.invocations,
                idle_ticks=self._summary.idle_ticks,
                counts=dict(self._summary.counts),
                errors_reported=self._summary.errors_reported,
            )

    def run_once(self) -> bool:
        """Perform one trigger.

        Returns:
            False on an idle tick (nothing fetchable), True if a unit was processed

        Raises:
            Whatever the processor or session raised; the session is rolled
            back first so the unit is back at the head of the input queue.
        """
        with bind_run_context(self.ctx.run_id, self.ctx.node_id):
            return self._trigger()

    def _trigger(self) -> bool:
        session = ProcessSession(
            self._input,
            self._connections,
            self._processor.relationships,
            self._commit_lock,
        )
        unit = session.get()
        if unit is None:
            with self._stats_lock:
                self._summary.idle_ticks += 1
            return False

        try:
            result = self._processor.process(unit, self.ctx)
            for emission in result.emissions:
                session.transfer(emission.unit, emission.relationship)
            if result.penalty_seconds:
                session.penalize(result.terminal.unit, result.penalty_seconds)
            published = session.commit()
        except Exception:
            session.rollback()
            logger.error(
                "invocation aborted, unit returned to queue",
                unit_id=unit.unit_id,
                exc_info=True,
            )
            raise

        with self._stats_lock:
            self._summary.invocations += 1
            for relationship, count in published.items():
                self._summary.counts[relationship] = self._summary.counts.get(relationship, 0) + count
        logger.debug(
            "unit processed",
            unit_id=unit.unit_id,
            outcome=str(result.outcome),
            emitted=len(result.emissions),
        )
        return True

    def run(self, max_workers: int = 1) -> RunSummary:
        """Process units until a trigger finds nothing fetchable.

        Lifecycle: on_start, triggers, on_complete, close. If on_start
        raises, nothing else is called. on_complete and close run even when
        a trigger raised; the first such error is re-raised afterwards.

        Args:
            max_workers: Number of concurrent invocations

        Returns:
            RunSummary with per-relationship counts
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")

        with bind_run_context(self.ctx.run_id, self.ctx.node_id):
            return self._run(max_workers)

    def _run(self, max_workers: int) -> RunSummary:
        logger.info("run started", processor=self._processor.name, max_workers=max_workers)
        self._processor.on_start(self.ctx)
        try:
            if max_workers == 1:
                while self.run_once():
                    pass
            else:
                self._run_concurrent(max_workers)
        finally:
            try:
                self._processor.on_complete(self.ctx)
            finally:
                self._processor.close()

        summary = self.summary
        logger.info(
            "run completed",
            invocations=summary.invocations,
            counts={str(k): v for k, v in summary.counts.items()},
            errors_reported=summary.errors_reported,
        )
        return summary

    def _run_concurrent(self, max_workers: int) -> None:
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="flowfan-worker") as pool:
            while True:
                futures = [pool.submit(self.run_once) for _ in range(max_workers)]
                # Wait for the whole wave before surfacing an error
                outcomes = [f.exception() or f.result() for f in futures]
                for outcome in outcomes:
                    if isinstance(outcome, BaseException):
                        raise outcome
                if not any(outcomes):
                    return
