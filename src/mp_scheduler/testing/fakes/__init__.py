"""Testing fakes – in-memory doubles for the scheduling ports."""
from mp_scheduler.kernel.time import FrozenClock
from mp_scheduler.testing.fakes.clock import FakeClock
from mp_scheduler.testing.fakes.handler import ScriptedHandler
from mp_scheduler.testing.fakes.queue import InMemoryJobQueue, QueuedJob
from mp_scheduler.testing.fakes.repository import InMemoryJobRepository, due_order

__all__ = [
    "FakeClock",
    "FrozenClock",
    "InMemoryJobQueue",
    "InMemoryJobRepository",
    "QueuedJob",
    "ScriptedHandler",
    "due_order",
]
