"""Scheduling – ScheduledJob entity, the unit of persistence."""
from __future__ import annotations

import copy
from datetime import datetime, timedelta
from typing import Any

from mp_scheduler.kernel.ddd import Entity
from mp_scheduler.kernel.errors import InvalidStateError, ValidationError
from mp_scheduler.kernel.time import as_utc, format_utc, parse_utc
from mp_scheduler.kernel.types import JobId, TenantId
from mp_scheduler.scheduling.definition import ScheduleDefinition
from mp_scheduler.scheduling.enums import JobStatus
from mp_scheduler.scheduling.recurrence import ScheduleRecurrence
from mp_scheduler.scheduling.result import JobResult


class ScheduledJob(Entity):
    """A job record tracked through the scheduling state machine.

    ``run_at`` is always the next moment this record should be considered
    due.  ``occurrence_at`` is the nominal time of the occurrence awaiting
    execution; it only differs from ``run_at`` while a retry is pending, and
    recurrence is computed from it so retries do not make the chain drift.
    ``first_run_at`` anchors calendar (monthly) arithmetic.

    Mutated only by the execution engine and by explicit cancellation; every
    status change goes through :meth:`transition_to`.
    """

    def __init__(
        self,
        id: JobId,  # noqa: A002
        *,
        job_type: str,
        target_id: str,
        run_at: datetime,
        status: JobStatus = JobStatus.PENDING,
        payload: dict[str, Any] | None = None,
        recurrence: ScheduleRecurrence | None = None,
        tenant_id: TenantId | None = None,
        group_key: str | None = None,
        max_retries: int = 3,
        retry_count: int = 0,
        priority: int = 0,
        ttl_seconds: int | None = None,
        occurrence_count: int = 0,
        first_run_at: datetime | None = None,
        occurrence_at: datetime | None = None,
        last_run_at: datetime | None = None,
        last_result: JobResult | None = None,
        last_error: str | None = None,
        cancel_reason: str | None = None,
        metadata: dict[str, Any] | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        version: int = 0,
    ) -> None:
        super().__init__(id)
        if max_retries < 0:
            raise ValidationError("max_retries must be >= 0")
        if not 0 <= retry_count <= max_retries:
            raise ValidationError(
                f"retry_count {retry_count} outside [0, {max_retries}]",
                errors=[{"field": "retry_count", "error": "must satisfy 0 <= retry_count <= max_retries"}],
            )
        self.job_type = job_type
        self.target_id = target_id
        self.run_at = as_utc(run_at, field="run_at")
        self.status = JobStatus(status)
        self.payload: dict[str, Any] = payload or {}
        self.recurrence = recurrence
        self.tenant_id = tenant_id
        self.group_key = group_key
        self.max_retries = max_retries
        self.retry_count = retry_count
        self.priority = priority
        self.ttl_seconds = ttl_seconds
        self.occurrence_count = occurrence_count
        self.first_run_at = first_run_at or self.run_at
        self.occurrence_at = occurrence_at or self.run_at
        self.last_run_at = last_run_at
        self.last_result = last_result
        self.last_error = last_error
        self.cancel_reason = cancel_reason
        self.metadata: dict[str, Any] = metadata or {}
        self.created_at = created_at
        self.updated_at = updated_at
        self.version = version

    @classmethod
    def from_definition(
        cls,
        job_id: JobId,
        definition: ScheduleDefinition,
        now: datetime,
        *,
        default_max_retries: int = 3,
    ) -> "ScheduledJob":
        """Build a fresh ``PENDING`` job from a validated definition."""
        max_retries = definition.max_retries
        return cls(
            job_id,
            job_type=definition.job_type,
            target_id=definition.target_id,
            run_at=definition.run_at,
            payload=copy.deepcopy(definition.payload),
            recurrence=definition.recurrence,
            tenant_id=definition.tenant_id,
            group_key=definition.group_key,
            max_retries=default_max_retries if max_retries is None else max_retries,
            priority=definition.priority,
            ttl_seconds=definition.ttl_seconds,
            metadata=copy.deepcopy(definition.metadata),
            created_at=now,
            updated_at=now,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not None and self.recurrence.is_repeating

    def is_due(self, now: datetime) -> bool:
        return self.status.can_execute() and self.run_at <= now

    def is_overdue(self, now: datetime, threshold: timedelta = timedelta(minutes=5)) -> bool:
        """Due and still not picked up *threshold* after ``run_at``."""
        return self.status.can_execute() and now >= self.run_at + threshold

    def is_nearing(self, now: datetime, window: timedelta = timedelta(minutes=5)) -> bool:
        """Not yet due, but within *window* of ``run_at``."""
        return self.status.can_execute() and self.run_at - window <= now < self.run_at

    def seconds_until_due(self, now: datetime) -> float:
        """Seconds until ``run_at``; negative when already due."""
        return (self.run_at - now).total_seconds()

    def is_expired(self, now: datetime) -> bool:
        """The current occurrence outlived its time-to-live without running."""
        if self.ttl_seconds is None:
            return False
        return now > self.occurrence_at + timedelta(seconds=self.ttl_seconds)

    def can_retry(self) -> bool:
        return self.retry_count < self.max_retries

    def has_exceeded_max_retries(self) -> bool:
        return self.retry_count >= self.max_retries

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def transition_to(self, target: JobStatus, now: datetime) -> None:
        if not self.status.can_transition_to(target):
            raise InvalidStateError(
                f"Cannot transition job '{self.id}' from {self.status.value} to {target.value}",
                job_id=self.id,
                status=self.status,
                operation=f"transition:{target.value}",
            )
        self.status = target
        self.updated_at = now

    def mark_running(self, now: datetime) -> None:
        self.transition_to(JobStatus.RUNNING, now)

    def complete(self, now: datetime, result: JobResult | None = None) -> None:
        self.transition_to(JobStatus.COMPLETED, now)
        self.last_result = result
        self.last_error = None

    def rearm(self, next_run_at: datetime, now: datetime, result: JobResult | None = None) -> None:
        """Move to the next occurrence of a recurring chain."""
        self.transition_to(JobStatus.PENDING, now)
        self.run_at = next_run_at
        self.occurrence_at = next_run_at
        self.occurrence_count += 1
        self.retry_count = 0
        self.last_result = result
        self.last_error = None

    def skip_to(self, next_run_at: datetime, now: datetime) -> None:
        """Drop the current occurrence without running it (it expired)."""
        self.transition_to(JobStatus.PENDING, now)
        self.run_at = next_run_at
        self.occurrence_at = next_run_at
        self.retry_count = 0
        self.last_error = "expired"

    def schedule_retry(self, retry_at: datetime, now: datetime, result: JobResult | None = None) -> None:
        if not self.can_retry():
            raise InvalidStateError(
                f"Job '{self.id}' has exhausted its retry budget ({self.max_retries})",
                job_id=self.id,
                status=self.status,
                operation="retry",
            )
        self.transition_to(JobStatus.PENDING, now)
        self.retry_count += 1
        self.run_at = retry_at
        self.last_result = result
        self.last_error = result.error if result is not None else self.last_error

    def fail_permanently(self, now: datetime, error: str, result: JobResult | None = None) -> None:
        self.transition_to(JobStatus.FAILED_PERMANENT, now)
        self.last_result = result
        self.last_error = error

    def cancel(self, reason: str, now: datetime) -> None:
        if not self.status.can_cancel():
            raise InvalidStateError(
                f"Job '{self.id}' cannot be canceled from status {self.status.value}",
                job_id=self.id,
                status=self.status,
                operation="cancel",
            )
        self.transition_to(JobStatus.CANCELED, now)
        self.cancel_reason = reason

    # ------------------------------------------------------------------
    # Persistence shape
    # ------------------------------------------------------------------

    def copy(self) -> "ScheduledJob":
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "tenant_id": None if self.tenant_id is None else str(self.tenant_id),
            "job_type": self.job_type,
            "target_id": self.target_id,
            "payload": copy.deepcopy(self.payload),
            "recurrence": None if self.recurrence is None else self.recurrence.to_dict(),
            "run_at": format_utc(self.run_at),
            "occurrence_at": format_utc(self.occurrence_at),
            "first_run_at": format_utc(self.first_run_at),
            "status": self.status.value,
            "retry_count": self.retry_count,
            "max_retries": self.max_retries,
            "priority": self.priority,
            "ttl_seconds": self.ttl_seconds,
            "last_run_at": format_utc(self.last_run_at),
            "occurrence_count": self.occurrence_count,
            "last_result": None if self.last_result is None else self.last_result.to_dict(),
            "last_error": self.last_error,
            "cancel_reason": self.cancel_reason,
            "group_key": self.group_key,
            "metadata": copy.deepcopy(self.metadata),
            "created_at": format_utc(self.created_at),
            "updated_at": format_utc(self.updated_at),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScheduledJob":
        recurrence = data.get("recurrence")
        last_result = data.get("last_result")
        tenant_id = data.get("tenant_id")
        return cls(
            JobId(data["id"]),
            job_type=data["job_type"],
            target_id=data["target_id"],
            run_at=parse_utc(data["run_at"]),  # type: ignore[arg-type]
            status=JobStatus(data["status"]),
            payload=data.get("payload") or {},
            recurrence=None if recurrence is None else ScheduleRecurrence.from_dict(recurrence),
            tenant_id=None if tenant_id is None else TenantId(tenant_id),
            group_key=data.get("group_key"),
            max_retries=int(data.get("max_retries", 3)),
            retry_count=int(data.get("retry_count", 0)),
            priority=int(data.get("priority", 0)),
            ttl_seconds=data.get("ttl_seconds"),
            occurrence_count=int(data.get("occurrence_count", 0)),
            first_run_at=parse_utc(data.get("first_run_at")),
            occurrence_at=parse_utc(data.get("occurrence_at")),
            last_run_at=parse_utc(data.get("last_run_at")),
            last_result=None if last_result is None else JobResult.from_dict(last_result),
            last_error=data.get("last_error"),
            cancel_reason=data.get("cancel_reason"),
            metadata=data.get("metadata") or {},
            created_at=parse_utc(data.get("created_at")),
            updated_at=parse_utc(data.get("updated_at")),
            version=int(data.get("version", 0)),
        )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"ScheduledJob(id={str(self.id)!r}, job_type={self.job_type!r}, "
            f"status={self.status.value!r}, run_at={format_utc(self.run_at)!r})"
        )


__all__ = ["ScheduledJob"]
