"""Observability – JobAuditLogger, the audit trail of job state changes.

Every state-changing scheduler call goes through one of these methods.
Normal progress is logged at ``info``, retries and cancellations at
``warning``, terminal failures and configuration defects at ``error``.
Nothing here dispatches notifications; callers react to return values.
"""
from __future__ import annotations

from typing import Any

import structlog

from mp_scheduler.scheduling.job import ScheduledJob


class JobAuditLogger:
    """Structured-log sink for job lifecycle transitions.

    Parameters
    ----------
    service:
        Logical service name bound into every entry.
    logger:
        Underlying structlog logger.  Defaults to ``structlog.get_logger("mp_scheduler.audit")``.
    """

    def __init__(self, service: str = "scheduler", logger: Any = None) -> None:
        self._log = (logger or structlog.get_logger("mp_scheduler.audit")).bind(service=service)

    @staticmethod
    def _context(job: ScheduledJob) -> dict[str, Any]:
        ctx: dict[str, Any] = {
            "job_id": str(job.id),
            "job_type": job.job_type,
            "target_id": job.target_id,
            "status": job.status.value,
            "run_at": job.run_at.isoformat(),
            "retry_count": job.retry_count,
            "max_retries": job.max_retries,
            "occurrence_count": job.occurrence_count,
        }
        if job.tenant_id is not None:
            ctx["tenant_id"] = str(job.tenant_id)
        if job.group_key is not None:
            ctx["group_key"] = job.group_key
        return ctx

    def scheduled(self, job: ScheduledJob) -> None:
        recurrence = job.recurrence.describe() if job.recurrence is not None else "once"
        self._log.info("job.scheduled", recurrence=recurrence, **self._context(job))

    def canceled(self, job: ScheduledJob, reason: str) -> None:
        self._log.warning("job.canceled", reason=reason, **self._context(job))

    def started(self, job: ScheduledJob) -> None:
        self._log.info("job.started", **self._context(job))

    def completed(self, job: ScheduledJob) -> None:
        self._log.info("job.completed", **self._context(job))

    def rearmed(self, job: ScheduledJob) -> None:
        self._log.info("job.rearmed", next_run_at=job.run_at.isoformat(), **self._context(job))

    def retry_scheduled(self, job: ScheduledJob, error: str | None, delay_seconds: float) -> None:
        self._log.warning(
            "job.retry_scheduled", error=error, delay_seconds=delay_seconds, **self._context(job)
        )

    def failed_permanently(self, job: ScheduledJob, error: str | None) -> None:
        self._log.error("job.failed_permanently", error=error, **self._context(job))

    def expired(self, job: ScheduledJob) -> None:
        self._log.warning("job.expired", ttl_seconds=job.ttl_seconds, **self._context(job))

    def recovered(self, job: ScheduledJob) -> None:
        self._log.warning("job.recovered_stale", **self._context(job))

    def no_handler(self, job: ScheduledJob) -> None:
        self._log.error("job.no_handler", **self._context(job))

    def dispatched(self, job: ScheduledJob, delay_seconds: float) -> None:
        self._log.info("job.dispatched", delay_seconds=delay_seconds, **self._context(job))


__all__ = ["JobAuditLogger"]
