# src/flowfan/engine/session.py
"""In-process host session over unit queues.

A ProcessSession is the transaction around one processor invocation:

    session = ProcessSession(input_queue, connections, allowed, commit_lock)
    unit = session.get()            # None = idle tick
    session.transfer(copy, Relationship.SUCCESS)
    session.transfer(unit, Relationship.ORIGINAL)
    session.commit()                # all emissions become visible at once

Nothing transferred is visible downstream until commit(). rollback() puts
every fetched unit back at the head of the input queue and discards all
staged emissions, so an aborted invocation leaves no trace.
"""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass

from flowfan.contracts import FlowUnit, Relationship, SessionStateError
from flowfan.engine.clock import DEFAULT_CLOCK, Clock


@dataclass(frozen=True)
class QueuedUnit:
    """A unit waiting in a queue, not fetchable before available_at."""

    unit: FlowUnit
    available_at: float


class UnitQueue:
    """Thread-safe FIFO of units with per-unit penalty delays.

    Used both as a processor's input and as the downstream connection of a
    relationship; routing failure back into the input queue gives retries.
    """

    def __init__(self, *, clock: Clock | None = None) -> None:
        self._clock = clock if clock is not None else DEFAULT_CLOCK
        self._items: deque[QueuedUnit] = deque()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def put(self, unit: FlowUnit, *, delay_seconds: float = 0.0) -> None:
        """Append a unit; it becomes fetchable after delay_seconds."""
        with self._lock:
            self._items.append(QueuedUnit(unit, self._clock.monotonic() + delay_seconds))

    def put_front(self, unit: FlowUnit) -> None:
        """Return a unit to the head of the queue, immediately fetchable."""
        with self._lock:
            self._items.appendleft(QueuedUnit(unit, self._clock.monotonic()))

    def poll(self) -> FlowUnit | None:
        """Remove and return the first fetchable unit, or None. Never blocks.

        Penalized units are skipped over, not reordered.
        """
        now = self._clock.monotonic()
        with self._lock:
            for index, item in enumerate(self._items):
                if item.available_at <= now:
                    del self._items[index]
                    return item.unit
        return None

    def snapshot(self) -> list[FlowUnit]:
        """Units currently queued, in order (penalized ones included)."""
        with self._lock:
            return [item.unit for item in self._items]

    def drain(self) -> list[FlowUnit]:
        """Remove and return every queued unit regardless of penalty."""
        with self._lock:
            units = [item.unit for item in self._items]
            self._items.clear()
        return units


class ProcessSession:
    """Transaction over the emissions of one processor invocation.

    Args:
        input_queue: Queue get() polls
        connections: Downstream queue per relationship. A relationship mapped
            to None is auto-terminated: units routed there are dropped on commit.
        relationships: Relationships the processor declares
        commit_lock: Lock shared by all sessions publishing to these connections
    """

    def __init__(
        self,
        input_queue: UnitQueue,
        connections: Mapping[Relationship, UnitQueue | None],
        relationships: frozenset[Relationship],
        commit_lock: threading.Lock,
    ) -> None:
        missing = relationships - set(connections)
        if missing:
            raise SessionStateError(f"No connection configured for relationships: {sorted(str(r) for r in missing)}")
        self._input = input_queue
        self._connections = connections
        self._relationships = relationships
        self._commit_lock = commit_lock
        self._taken: dict[str, FlowUnit] = {}
        self._resolved: set[str] = set()
        self._staged: list[tuple[FlowUnit, Relationship]] = []
        self._penalties: dict[str, float] = {}
        self._closed = False

    def get(self) -> FlowUnit | None:
        """Poll the input queue. None means there is nothing to do (idle tick)."""
        self._check_open()
        unit = self._input.poll()
        if unit is not None:
            self._taken[unit.unit_id] = unit
        return unit

    def transfer(self, unit: FlowUnit, relationship: Relationship) -> None:
        """Stage a unit for routing on commit.

        Raises:
            SessionStateError: If the relationship is not declared by the processor
                or a fetched unit is transferred twice
        """
        self._check_open()
        if relationship not in self._relationships:
            raise SessionStateError(f"Relationship '{relationship}' is not declared by this processor")
        if unit.unit_id in self._taken:
            if unit.unit_id in self._resolved:
                raise SessionStateError(f"Unit {unit.unit_id} was already transferred in this session")
            self._resolved.add(unit.unit_id)
        self._staged.append((unit, relationship))

    def penalize(self, unit: FlowUnit, seconds: float) -> None:
        """Delay the unit's availability downstream by seconds after commit."""
        self._check_open()
        if seconds < 0:
            raise ValueError(f"Penalty must be non-negative, got {seconds}")
        self._penalties[unit.unit_id] = seconds

    def commit(self) -> dict[Relationship, int]:
        """Publish every staged emission, in transfer order.

        Returns:
            Number of units published per relationship

        Raises:
            SessionStateError: If a fetched unit was never transferred
        """
        self._check_open()
        unresolved = set(self._taken) - self._resolved
        if unresolved:
            raise SessionStateError(f"Units fetched but not transferred: {sorted(unresolved)}")

        counts: dict[Relationship, int] = {}
        with self._commit_lock:
            for unit, relationship in self._staged:
                target = self._connections[relationship]
                if target is not None:
                    target.put(unit, delay_seconds=self._penalties.get(unit.unit_id, 0.0))
                counts[relationship] = counts.get(relationship, 0) + 1
        self._closed = True
        return counts

    def rollback(self) -> None:
        """Discard staged emissions and return fetched units to the input queue."""
        if self._closed:
            return
        for unit in reversed(list(self._taken.values())):
            self._input.put_front(unit)
        self._staged.clear()
        self._penalties.clear()
        self._closed = True

    def _check_open(self) -> None:
        if self._closed:
            raise SessionStateError("Session is already committed or rolled back")
