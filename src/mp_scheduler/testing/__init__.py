"""Testing – in-memory doubles for the scheduling ports and pytest fixtures."""
from mp_scheduler.testing.fakes import (
    FakeClock,
    FrozenClock,
    InMemoryJobQueue,
    InMemoryJobRepository,
    QueuedJob,
    ScriptedHandler,
)

__all__ = [
    "FakeClock",
    "FrozenClock",
    "InMemoryJobQueue",
    "InMemoryJobRepository",
    "QueuedJob",
    "ScriptedHandler",
]
