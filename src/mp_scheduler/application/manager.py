"""Application – ScheduleManager, the façade callers and periodic drivers use.

A periodic driver (cron-triggered command, worker loop) calls
:meth:`ScheduleManager.get_due_jobs` and then either executes each job
inline (:meth:`run_due`) or hands it to a queue (:meth:`dispatch_due`) whose
workers call :meth:`execute_job`.  Every execution goes through the
:class:`~mp_scheduler.application.execution.ExecutionEngine`.
"""
from __future__ import annotations

import json
from datetime import datetime, timedelta

import structlog

from mp_scheduler.application.execution import ExecutionEngine
from mp_scheduler.application.handlers import HandlerRegistry
from mp_scheduler.application.recurrence import RecurrenceEngine
from mp_scheduler.config.settings import SchedulerSettings
from mp_scheduler.config.validation import ConfigError
from mp_scheduler.kernel.errors import (
    ConcurrencyConflictError,
    InvalidRecurrenceError,
    InvalidStateError,
    JobNotFoundError,
    NoHandlerFoundError,
    ValidationError,
)
from mp_scheduler.kernel.time import Clock
from mp_scheduler.kernel.types import JobId, TenantId
from mp_scheduler.observability.logging import JobAuditLogger
from mp_scheduler.scheduling.definition import ScheduleDefinition
from mp_scheduler.scheduling.enums import JobStatus
from mp_scheduler.scheduling.job import ScheduledJob
from mp_scheduler.scheduling.ports import JobQueue, JobRepository

logger = structlog.get_logger(__name__)

STALE_EXECUTION_ERROR = "execution interrupted: stale RUNNING marker"


def _job_id(value: JobId | str) -> JobId:
    if isinstance(value, JobId):
        return value
    try:
        return JobId(value)
    except ValidationError as exc:
        raise JobNotFoundError(value, cause=exc) from exc


def _tenant_id(value: TenantId | str | None) -> TenantId | None:
    if value is None or isinstance(value, TenantId):
        return value
    return TenantId(value)


class ScheduleManager:
    """Create, preview, list, execute and cancel scheduled jobs.

    Not-found, invalid-state, invalid-recurrence and no-handler errors are
    raised to the caller.  Handler failures are not: after
    :meth:`execute_job` the job's status and ``retry_count`` tell whether it
    completed, is waiting for a retry, or failed for good.
    """

    def __init__(
        self,
        repository: JobRepository,
        engine: ExecutionEngine,
        recurrence: RecurrenceEngine,
        clock: Clock,
        *,
        queue: JobQueue | None = None,
        settings: SchedulerSettings | None = None,
        audit: JobAuditLogger | None = None,
    ) -> None:
        self._repository = repository
        self._engine = engine
        self._recurrence = recurrence
        self._clock = clock
        self._queue = queue
        self._settings = settings or SchedulerSettings()
        self._audit = audit or JobAuditLogger()

    @property
    def settings(self) -> SchedulerSettings:
        return self._settings

    @property
    def registry(self) -> HandlerRegistry:
        return self._engine.registry

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def schedule(self, definition: ScheduleDefinition) -> ScheduledJob:
        """Validate *definition*, persist a ``PENDING`` job and return it."""
        job = self._build(definition)
        await self._repository.save(job)
        self._audit.scheduled(job)
        return job

    def preview(self, definition: ScheduleDefinition) -> ScheduledJob:
        """Build the job :meth:`schedule` would create, without persisting it."""
        return self._build(definition)

    def preview_occurrences(self, definition: ScheduleDefinition, count: int = 5) -> list[datetime]:
        """The first *count* run times of the chain *definition* would start."""
        job = self._build(definition)
        return self._recurrence.occurrences(job.recurrence, job.run_at, count)

    def _build(self, definition: ScheduleDefinition) -> ScheduledJob:
        now = self._clock.now()
        self._check_run_at(definition.run_at, now)
        self._check_payload(definition)
        self._recurrence.validate(definition.recurrence, definition.run_at)
        return ScheduledJob.from_definition(
            JobId.generate(),
            definition,
            now,
            default_max_retries=self._settings.default_max_retries,
        )

    def _check_run_at(self, run_at: datetime, now: datetime) -> None:
        if run_at < now or (run_at == now and not self._settings.allow_run_at_now):
            raise ValidationError(
                f"run_at {run_at.isoformat()} is in the past (now {now.isoformat()})",
                errors=[{"field": "run_at", "error": "must not be in the past"}],
            )

    def _check_payload(self, definition: ScheduleDefinition) -> None:
        try:
            encoded = json.dumps(definition.payload, separators=(",", ":"), ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise ValidationError(
                "payload must be JSON-serialisable",
                errors=[{"field": "payload", "error": str(exc)}],
                cause=exc,
            ) from exc
        size = len(encoded.encode("utf-8"))
        limit = self._settings.max_payload_bytes
        if size > limit:
            raise ValidationError(
                f"payload is {size} bytes, limit is {limit}",
                errors=[{"field": "payload", "error": f"exceeds {limit} bytes"}],
            )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_job(self, job_id: JobId | str, *, tenant_id: TenantId | str | None = None) -> ScheduledJob:
        tenant = _tenant_id(tenant_id)
        job = await self._repository.find_by_id(_job_id(job_id), tenant)
        if job is None:
            raise JobNotFoundError(job_id, tenant_id=tenant)
        return job

    async def get_due_jobs(
        self,
        as_of: datetime | None = None,
        *,
        tenant_id: TenantId | str | None = None,
        limit: int | None = None,
    ) -> list[ScheduledJob]:
        """``PENDING`` jobs with ``run_at <= as_of``, by priority then ``run_at`` then id."""
        as_of = as_of or self._clock.now()
        jobs = await self._repository.find_due(as_of, _tenant_id(tenant_id), limit)
        logger.debug("jobs.due", as_of=as_of.isoformat(), count=len(jobs))
        return jobs

    async def get_overdue_jobs(
        self, as_of: datetime | None = None, *, tenant_id: TenantId | str | None = None
    ) -> list[ScheduledJob]:
        """Due jobs still waiting ``overdue_threshold_seconds`` after their ``run_at``."""
        as_of = as_of or self._clock.now()
        threshold = timedelta(seconds=self._settings.overdue_threshold_seconds)
        due = await self._repository.find_due(as_of, _tenant_id(tenant_id))
        overdue = [job for job in due if job.is_overdue(as_of, threshold)]
        if overdue:
            logger.warning("jobs.overdue", as_of=as_of.isoformat(), count=len(overdue))
        return overdue

    async def count(
        self, status: JobStatus | None = None, *, tenant_id: TenantId | str | None = None
    ) -> int:
        return await self._repository.count(status, _tenant_id(tenant_id))

    # ------------------------------------------------------------------
    # State changes
    # ------------------------------------------------------------------

    async def execute_job(
        self, job_id: JobId | str, *, tenant_id: TenantId | str | None = None
    ) -> ScheduledJob:
        """Run one ``PENDING`` job through the execution engine and return it."""
        job = await self.get_job(job_id, tenant_id=tenant_id)
        if not job.status.can_execute():
            raise InvalidStateError(
                f"Job '{job.id}' cannot be executed from status {job.status.value}",
                job_id=job.id,
                status=job.status,
                operation="execute",
            )
        return await self._engine.execute(job)

    async def cancel(
        self, job_id: JobId | str, reason: str, *, tenant_id: TenantId | str | None = None
    ) -> ScheduledJob:
        """Cancel a ``PENDING`` job; any other status raises :class:`InvalidStateError`."""
        job = await self.get_job(job_id, tenant_id=tenant_id)
        job.cancel(reason, self._clock.now())
        await self._repository.save(job)
        self._audit.canceled(job, reason)
        return job

    # ------------------------------------------------------------------
    # Periodic driver helpers
    # ------------------------------------------------------------------

    async def dispatch_due(
        self, as_of: datetime | None = None, *, tenant_id: TenantId | str | None = None
    ) -> list[ScheduledJob]:
        """Enqueue every due job for out-of-process execution.

        Dispatch does not change job state; the storage adapter's locking
        decides which worker gets to execute a job that was enqueued twice.
        """
        if self._queue is None:
            raise ConfigError("dispatch_due needs a JobQueue; none is configured")
        due = await self.get_due_jobs(
            as_of, tenant_id=tenant_id, limit=self._settings.due_batch_limit
        )
        for job in due:
            await self._queue.dispatch(job, 0)
            self._audit.dispatched(job, 0)
        return due

    async def run_due(
        self, as_of: datetime | None = None, *, tenant_id: TenantId | str | None = None
    ) -> list[ScheduledJob]:
        """Execute every due job inline, one after another.

        A job without a handler, one whose recurrence cannot be evaluated (it
        is left ``FAILED_PERMANENT``) or one taken by another worker in the
        meantime is logged and skipped so the rest of the batch still runs.
        """
        due = await self.get_due_jobs(
            as_of, tenant_id=tenant_id, limit=self._settings.due_batch_limit
        )
        executed: list[ScheduledJob] = []
        for job in due:
            try:
                executed.append(await self.execute_job(job.id, tenant_id=job.tenant_id))
            except (NoHandlerFoundError, InvalidRecurrenceError) as exc:
                logger.error("jobs.run_due.skipped", job_id=str(job.id), reason=exc.code)
            except (InvalidStateError, ConcurrencyConflictError) as exc:
                logger.warning("jobs.run_due.skipped", job_id=str(job.id), reason=exc.code)
        return executed

    async def recover_stale(self, older_than_seconds: float | None = None) -> list[ScheduledJob]:
        """Reconcile ``RUNNING`` markers left behind by crashed executions.

        A marker older than the threshold counts as a failed attempt: the job
        goes back to ``PENDING`` (due immediately) while retry budget is left,
        otherwise to ``FAILED_PERMANENT``.
        """
        threshold = timedelta(
            seconds=self._settings.stale_running_after_seconds
            if older_than_seconds is None
            else older_than_seconds
        )
        now = self._clock.now()
        recovered: list[ScheduledJob] = []
        for job in await self._repository.find_by_status(JobStatus.RUNNING):
            if job.updated_at is not None and now - job.updated_at < threshold:
                continue
            if job.can_retry():
                job.schedule_retry(now, now)
                job.last_error = STALE_EXECUTION_ERROR
            else:
                job.fail_permanently(now, STALE_EXECUTION_ERROR)
            try:
                await self._repository.save(job)
            except ConcurrencyConflictError:
                logger.warning("jobs.recover_stale.conflict", job_id=str(job.id))
                continue
            self._audit.recovered(job)
            recovered.append(job)
        return recovered


__all__ = ["STALE_EXECUTION_ERROR", "ScheduleManager"]
