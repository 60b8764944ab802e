"""Scheduling – ScheduleDefinition, the caller-supplied request to schedule work."""
from __future__ import annotations

import dataclasses
from datetime import datetime
from typing import Any

from mp_scheduler.kernel.ddd import ValueObject
from mp_scheduler.kernel.errors import ValidationError
from mp_scheduler.kernel.time import as_utc
from mp_scheduler.kernel.types import TenantId
from mp_scheduler.scheduling.recurrence import ScheduleRecurrence


@dataclasses.dataclass(frozen=True, kw_only=True)
class ScheduleDefinition(ValueObject):
    """What to run, against which target, and when.

    Structural rules are checked here; rules that depend on the clock or on
    deployment settings (run time not in the past, payload size) are checked
    by :class:`~mp_scheduler.application.manager.ScheduleManager`.

    ``max_retries`` left as ``None`` takes the configured default.
    ``priority``: higher values run first among jobs due at the same poll.

    Example::

        ScheduleDefinition(
            job_type="EXPORT_REPORT",
            target_id="report-2024-01",
            run_at=datetime(2024, 1, 1, tzinfo=UTC),
            payload={"format": "csv"},
            recurrence=ScheduleRecurrence.weekly(),
            max_retries=2,
        )
    """

    job_type: str
    target_id: str
    run_at: datetime
    payload: dict[str, Any] = dataclasses.field(default_factory=dict)
    recurrence: ScheduleRecurrence | None = None
    tenant_id: TenantId | None = None
    group_key: str | None = None
    max_retries: int | None = None
    priority: int = 0
    ttl_seconds: int | None = None
    metadata: dict[str, Any] = dataclasses.field(default_factory=dict)

    def _validate(self) -> None:
        errors: list[dict[str, Any]] = []
        if not isinstance(self.job_type, str) or not self.job_type.strip():
            errors.append({"field": "job_type", "error": "must be a non-empty string"})
        if not isinstance(self.target_id, str) or not self.target_id.strip():
            errors.append({"field": "target_id", "error": "must be a non-empty string"})
        if not isinstance(self.run_at, datetime):
            errors.append({"field": "run_at", "error": "must be a datetime"})
        elif self.run_at.tzinfo is None or self.run_at.utcoffset() is None:
            errors.append({"field": "run_at", "error": "must be timezone-aware"})
        if not isinstance(self.payload, dict):
            errors.append({"field": "payload", "error": "must be a mapping"})
        if self.max_retries is not None and (
            isinstance(self.max_retries, bool)
            or not isinstance(self.max_retries, int)
            or self.max_retries < 0
        ):
            errors.append({"field": "max_retries", "error": "must be an integer >= 0"})
        if isinstance(self.priority, bool) or not isinstance(self.priority, int):
            errors.append({"field": "priority", "error": "must be an integer"})
        if self.ttl_seconds is not None and self.ttl_seconds <= 0:
            errors.append({"field": "ttl_seconds", "error": "must be > 0"})
        if errors:
            raise ValidationError("Invalid schedule definition", errors=errors)

        object.__setattr__(self, "run_at", as_utc(self.run_at, field="run_at"))
        if isinstance(self.tenant_id, str):
            object.__setattr__(self, "tenant_id", TenantId(self.tenant_id))

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not None and self.recurrence.is_repeating


__all__ = ["ScheduleDefinition"]
