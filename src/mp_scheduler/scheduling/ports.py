"""Scheduling – collaborator ports: repository, queue, handler, cron evaluator.

Implementations live outside the core (database adapters, brokers, business
handlers); in-memory versions for tests are in :mod:`mp_scheduler.testing`.
"""
from __future__ import annotations

import abc
from datetime import datetime
from typing import Protocol, runtime_checkable

from mp_scheduler.kernel.types import JobId, TenantId
from mp_scheduler.scheduling.enums import JobStatus
from mp_scheduler.scheduling.job import ScheduledJob
from mp_scheduler.scheduling.result import JobResult


class JobRepository(abc.ABC):
    """Port: durable storage of :class:`ScheduledJob` records.

    Queries are scoped to ``tenant_id`` when one is given.  ``save`` is an
    optimistic update: when the stored record's ``version`` differs from the
    job's, it raises :class:`~mp_scheduler.kernel.errors.ConcurrencyConflictError`;
    on success it bumps ``job.version``.

    Storage adapters are responsible for row-level locking so two workers
    never execute the same job at once (e.g. ``SELECT ... FOR UPDATE SKIP
    LOCKED`` in ``find_due``).
    """

    @abc.abstractmethod
    async def save(self, job: ScheduledJob) -> None: ...

    @abc.abstractmethod
    async def find_by_id(
        self, job_id: JobId, tenant_id: TenantId | None = None
    ) -> ScheduledJob | None: ...

    @abc.abstractmethod
    async def find_due(
        self,
        as_of: datetime,
        tenant_id: TenantId | None = None,
        limit: int | None = None,
    ) -> list[ScheduledJob]:
        """``PENDING`` jobs with ``run_at <= as_of``.

        Ordered by priority (highest first), then ``run_at`` ascending, then id.
        """

    @abc.abstractmethod
    async def find_by_status(
        self, status: JobStatus, tenant_id: TenantId | None = None
    ) -> list[ScheduledJob]: ...

    @abc.abstractmethod
    async def delete(self, job_id: JobId) -> None: ...

    @abc.abstractmethod
    async def count(
        self, status: JobStatus | None = None, tenant_id: TenantId | None = None
    ) -> int: ...


class JobQueue(abc.ABC):
    """Port: hand a due job to out-of-process workers.

    ``dispatch`` returns once the item is durably enqueued; a
    ``delay_seconds`` of 0 means immediate.
    """

    @abc.abstractmethod
    async def dispatch(self, job: ScheduledJob, delay_seconds: float = 0) -> None: ...


@runtime_checkable
class JobHandler(Protocol):
    """Port: performs the business action for the job types it supports.

    Handlers must be stateless and idempotent: a crash between invoking the
    handler and persisting the outcome means the job runs again.
    """

    def supports(self, job_type: str) -> bool: ...

    async def handle(self, job: ScheduledJob) -> JobResult: ...


@runtime_checkable
class CronEvaluator(Protocol):
    """Port: optional cron-expression capability used by the recurrence engine."""

    def is_valid(self, expression: str) -> bool: ...

    def next_after(self, expression: str, reference: datetime) -> datetime:
        """First fire time strictly after *reference*."""
        ...


__all__ = ["CronEvaluator", "JobHandler", "JobQueue", "JobRepository"]
