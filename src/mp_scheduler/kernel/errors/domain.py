"""Domain errors – scheduling rules, job lookups and state machine violations."""

from __future__ import annotations

from typing import Any

from mp_scheduler.kernel.errors.base import BaseError


class DomainError(BaseError):
    """Raised when a scheduling rule or invariant is violated."""

    default_code = "domain_error"


class ValidationError(DomainError):
    """A schedule definition or job field does not meet validation rules.

    ``errors`` is a list of field-level failures, e.g.
    ``[{"field": "max_retries", "error": "must be >= 0"}]``.
    """

    default_code = "validation_error"

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.errors: list[dict[str, Any]] = errors or []

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base["errors"] = self.errors
        return base


class NotFoundError(DomainError):
    """The requested resource does not exist."""

    default_code = "not_found"

    def __init__(
        self,
        resource: str,
        identifier: Any = None,
        **kwargs: Any,
    ) -> None:
        msg = f"{resource} not found"
        if identifier is not None:
            msg = f"{resource} '{identifier}' not found"
        super().__init__(msg, **kwargs)
        self.resource = resource
        self.identifier = identifier


class JobNotFoundError(NotFoundError):
    """No scheduled job exists with the given identifier (in the given tenant)."""

    default_code = "job_not_found"

    def __init__(self, job_id: Any, *, tenant_id: Any = None, **kwargs: Any) -> None:
        detail = kwargs.pop("detail", None) or {}
        if tenant_id is not None:
            detail.setdefault("tenant_id", str(tenant_id))
        super().__init__("ScheduledJob", str(job_id), detail=detail, **kwargs)
        self.job_id = str(job_id)
        self.tenant_id = tenant_id


class ConflictError(DomainError):
    """The operation conflicts with existing state."""

    default_code = "conflict"


class ConcurrencyConflictError(ConflictError):
    """An optimistic update lost the race: the stored record has moved on."""

    default_code = "concurrency_conflict"

    def __init__(self, job_id: Any, expected_version: int, actual_version: int) -> None:
        super().__init__(
            f"Job '{job_id}' was modified concurrently "
            f"(expected version {expected_version}, found {actual_version})",
            detail={
                "job_id": str(job_id),
                "expected_version": expected_version,
                "actual_version": actual_version,
            },
        )
        self.job_id = str(job_id)
        self.expected_version = expected_version
        self.actual_version = actual_version


class InvalidStateError(DomainError):
    """The job's current status does not permit the requested operation."""

    default_code = "invalid_state"

    def __init__(
        self,
        message: str,
        *,
        job_id: Any = None,
        status: Any = None,
        operation: str | None = None,
        **kwargs: Any,
    ) -> None:
        detail = kwargs.pop("detail", None) or {}
        if job_id is not None:
            detail.setdefault("job_id", str(job_id))
        if status is not None:
            detail.setdefault("status", getattr(status, "value", str(status)))
        if operation is not None:
            detail.setdefault("operation", operation)
        super().__init__(message, detail=detail, **kwargs)
        self.job_id = None if job_id is None else str(job_id)
        self.status = status
        self.operation = operation


class InvalidRecurrenceError(DomainError):
    """A recurrence rule is malformed or cannot be evaluated."""

    default_code = "invalid_recurrence"


class RecurrenceUnsupportedError(InvalidRecurrenceError):
    """The recurrence kind needs a capability that is not configured (cron)."""

    default_code = "recurrence_unsupported"


__all__ = [
    "ConcurrencyConflictError",
    "ConflictError",
    "DomainError",
    "InvalidRecurrenceError",
    "InvalidStateError",
    "JobNotFoundError",
    "NotFoundError",
    "RecurrenceUnsupportedError",
    "ValidationError",
]
