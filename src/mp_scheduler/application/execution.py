"""Application – ExecutionEngine: one job, one complete state transition.

State machine::

    PENDING --success, no next occurrence-------------> COMPLETED
    PENDING --success, next occurrence----------------> PENDING (re-armed)
    PENDING --failure, should_retry and budget left---> PENDING (retry_count + 1)
    PENDING --failure otherwise-----------------------> FAILED_PERMANENT

``RUNNING`` is written before the handler is awaited and replaced when the
outcome is persisted.  If the process dies in between the record stays
``RUNNING`` until :meth:`ScheduleManager.recover_stale` re-arms it, so a
handler may run more than once; handlers must be idempotent.
"""
from __future__ import annotations

from datetime import datetime, timedelta

import structlog

from mp_scheduler.application.handlers import HandlerRegistry
from mp_scheduler.application.recurrence import RecurrenceEngine
from mp_scheduler.kernel.errors import (
    InvalidRecurrenceError,
    InvalidStateError,
    NoHandlerFoundError,
)
from mp_scheduler.kernel.time import Clock
from mp_scheduler.observability.logging import JobAuditLogger
from mp_scheduler.resilience.retry import RetryDelayPolicy
from mp_scheduler.scheduling.enums import JobStatus
from mp_scheduler.scheduling.job import ScheduledJob
from mp_scheduler.scheduling.ports import JobHandler, JobRepository
from mp_scheduler.scheduling.result import JobResult

logger = structlog.get_logger(__name__)

EXPIRED_ERROR = "expired"


class ExecutionEngine:
    """Run a job's handler and record the outcome on the job.

    Handler failures never escape :meth:`execute`; they end up in the job's
    status, ``retry_count`` and ``last_error``.  Configuration defects
    (no handler, unevaluable recurrence, job not ``PENDING``) are raised.
    Any error raised while applying an outcome leaves the job
    ``FAILED_PERMANENT``, never ``RUNNING``.

    Parameters
    ----------
    retry_unexpected_errors:
        A handler that raises (instead of returning a failed ``JobResult``)
        fails permanently by default.  When ``True`` the first such error is
        treated as retryable.
    """

    def __init__(
        self,
        repository: JobRepository,
        registry: HandlerRegistry,
        recurrence: RecurrenceEngine,
        clock: Clock,
        *,
        retry_policy: RetryDelayPolicy | None = None,
        audit: JobAuditLogger | None = None,
        retry_unexpected_errors: bool = False,
    ) -> None:
        self._repository = repository
        self._registry = registry
        self._recurrence = recurrence
        self._clock = clock
        self._retry_policy = retry_policy or RetryDelayPolicy()
        self._audit = audit or JobAuditLogger()
        self._retry_unexpected_errors = retry_unexpected_errors

    @property
    def registry(self) -> HandlerRegistry:
        return self._registry

    async def execute(self, job: ScheduledJob) -> ScheduledJob:
        if not job.status.can_execute():
            raise InvalidStateError(
                f"Job '{job.id}' cannot be executed from status {job.status.value}",
                job_id=job.id,
                status=job.status,
                operation="execute",
            )
        handler = self._resolve(job)

        now = self._clock.now()
        if job.is_expired(now):
            return await self._expire(job, now)

        job.mark_running(now)
        await self._repository.save(job)
        self._audit.started(job)

        result = await self._invoke(handler, job)

        finished_at = self._clock.now()
        job.last_run_at = finished_at
        try:
            if result.is_success:
                await self._on_success(job, result, finished_at)
            else:
                self._on_failure(job, result, finished_at)
        except InvalidRecurrenceError:
            raise
        except Exception as exc:
            await self._abort(job, result, finished_at, exc)
            raise
        await self._repository.save(job)
        return job

    # ------------------------------------------------------------------

    def _resolve(self, job: ScheduledJob) -> JobHandler:
        try:
            return self._registry.resolve(job.job_type)
        except NoHandlerFoundError as exc:
            self._audit.no_handler(job)
            raise NoHandlerFoundError(job.job_type, job_id=job.id) from exc

    async def _invoke(self, handler: JobHandler, job: ScheduledJob) -> JobResult:
        try:
            result = await handler.handle(job)
        except Exception as exc:  # noqa: BLE001 - handler errors become job state
            retry = self._retry_unexpected_errors and job.retry_count == 0
            logger.warning(
                "job.handler_raised",
                job_id=str(job.id),
                job_type=job.job_type,
                error=repr(exc),
                will_retry=retry,
                exc_info=True,
            )
            return JobResult.failure(
                f"{type(exc).__name__}: {exc}",
                should_retry=retry,
                context={"exception": type(exc).__name__, "unexpected": True},
            )
        if not isinstance(result, JobResult):
            return JobResult.failure(
                f"Handler {type(handler).__name__} returned {type(result).__name__}, not JobResult",
                should_retry=False,
            )
        return result

    async def _on_success(self, job: ScheduledJob, result: JobResult, now: datetime) -> None:
        if job.is_recurring:
            next_at = await self._next_or_fail(job, now, completed_runs=job.occurrence_count + 1)
            if next_at is not None:
                job.rearm(next_at, now, result)
                self._audit.rearmed(job)
                return
        job.complete(now, result)
        self._audit.completed(job)

    def _on_failure(self, job: ScheduledJob, result: JobResult, now: datetime) -> None:
        if result.should_retry and job.can_retry():
            delay = self._retry_policy.delay_seconds(job.retry_count, result.retry_delay_seconds)
            job.schedule_retry(now + timedelta(seconds=delay), now, result)
            self._audit.retry_scheduled(job, result.error, delay)
            return
        job.fail_permanently(now, result.error or "failed", result)
        self._audit.failed_permanently(job, result.error)

    async def _abort(
        self, job: ScheduledJob, result: JobResult, now: datetime, exc: Exception
    ) -> None:
        """Record an outcome that could not be applied, so the job never stays ``RUNNING``."""
        error = f"outcome not recorded: {type(exc).__name__}: {exc}"
        logger.error("job.outcome_failed", job_id=str(job.id), error=error, exc_info=True)
        if job.status is JobStatus.RUNNING:
            job.fail_permanently(now, error, result)
            self._audit.failed_permanently(job, error)
        await self._repository.save(job)

    async def _expire(self, job: ScheduledJob, now: datetime) -> ScheduledJob:
        self._audit.expired(job)
        next_at = None
        if job.is_recurring:
            next_at = await self._next_or_fail(job, now, completed_runs=job.occurrence_count)
        if next_at is not None:
            job.skip_to(next_at, now)
            self._audit.rearmed(job)
        else:
            job.fail_permanently(now, EXPIRED_ERROR)
            self._audit.failed_permanently(job, EXPIRED_ERROR)
        await self._repository.save(job)
        return job

    async def _next_or_fail(
        self, job: ScheduledJob, now: datetime, *, completed_runs: int
    ) -> datetime | None:
        """Next occurrence; an unevaluable recurrence ends the job before re-raising."""
        try:
            return self._recurrence.next_occurrence(
                job.recurrence,
                job.occurrence_at,
                origin=job.first_run_at,
                completed_runs=completed_runs,
            )
        except InvalidRecurrenceError as exc:
            job.fail_permanently(now, exc.message)
            await self._repository.save(job)
            self._audit.failed_permanently(job, exc.message)
            raise


__all__ = ["EXPIRED_ERROR", "ExecutionEngine"]
