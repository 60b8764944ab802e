"""Scheduling enums – job status state machine and recurrence kinds."""
from __future__ import annotations

from enum import Enum


class JobStatus(str, Enum):
    """Lifecycle status of a :class:`~mp_scheduler.scheduling.job.ScheduledJob`.

    Transitions::

        PENDING -> RUNNING | CANCELED | FAILED_PERMANENT | PENDING
        RUNNING -> PENDING | COMPLETED | FAILED_PERMANENT
        FAILED  -> PENDING | FAILED_PERMANENT

    ``PENDING -> PENDING`` is the skip of an expired recurring occurrence.
    ``FAILED`` is never written by the execution engine; it exists for
    storage collaborators that persist an intermediate retryable failure.
    """

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    FAILED_PERMANENT = "failed_permanent"
    CANCELED = "canceled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL

    def can_execute(self) -> bool:
        return self is JobStatus.PENDING

    def can_cancel(self) -> bool:
        return self is JobStatus.PENDING

    def can_transition_to(self, target: "JobStatus") -> bool:
        return target in _TRANSITIONS[self]

    def allowed_transitions(self) -> frozenset["JobStatus"]:
        return _TRANSITIONS[self]


_TERMINAL = frozenset({JobStatus.COMPLETED, JobStatus.FAILED_PERMANENT, JobStatus.CANCELED})

_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset(
        {JobStatus.RUNNING, JobStatus.CANCELED, JobStatus.FAILED_PERMANENT, JobStatus.PENDING}
    ),
    JobStatus.RUNNING: frozenset(
        {JobStatus.PENDING, JobStatus.COMPLETED, JobStatus.FAILED_PERMANENT}
    ),
    JobStatus.FAILED: frozenset({JobStatus.PENDING, JobStatus.FAILED_PERMANENT}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED_PERMANENT: frozenset(),
    JobStatus.CANCELED: frozenset(),
}


class RecurrenceType(str, Enum):
    """How a job re-arms itself after a successful run."""

    NONE = "none"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"
    CRON = "cron"

    @property
    def is_fixed_interval(self) -> bool:
        return self not in (RecurrenceType.NONE, RecurrenceType.CRON)


__all__ = ["JobStatus", "RecurrenceType"]
