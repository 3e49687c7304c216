# src/flowfan/engine/__init__.py
"""In-process host: queues, sessions and the processor runner.

Example:
    queue = UnitQueue()
    queue.put(FlowUnit.create(b"data", {"list_of_things": "lions,tigers"}))
    runner = ProcessorRunner(processor, queue)
    summary = runner.run(max_workers=4)
"""

from flowfan.engine.clock import DEFAULT_CLOCK, Clock, MockClock, SystemClock
from flowfan.engine.runner import ProcessorRunner, RunSummary
from flowfan.engine.session import ProcessSession, QueuedUnit, UnitQueue

__all__ = [
    "DEFAULT_CLOCK",
    "Clock",
    "MockClock",
    "ProcessSession",
    "ProcessorRunner",
    "QueuedUnit",
    "RunSummary",
    "SystemClock",
    "UnitQueue",
]
