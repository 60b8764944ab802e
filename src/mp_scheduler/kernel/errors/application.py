"""Application-layer errors – wiring and deployment defects."""

from __future__ import annotations

from typing import Any

from mp_scheduler.kernel.errors.base import BaseError


class ApplicationError(BaseError):
    """Cross-cutting application-layer concern."""

    default_code = "application_error"


class NoHandlerFoundError(ApplicationError):
    """No registered handler supports the job type.

    A configuration defect: it is surfaced to the caller and never counted
    against the job's retry budget.
    """

    default_code = "no_handler_found"

    def __init__(self, job_type: str, *, job_id: Any = None, **kwargs: Any) -> None:
        detail = kwargs.pop("detail", None) or {}
        detail.setdefault("job_type", job_type)
        if job_id is not None:
            detail.setdefault("job_id", str(job_id))
        super().__init__(f"No handler registered for job type '{job_type}'", detail=detail, **kwargs)
        self.job_type = job_type
        self.job_id = None if job_id is None else str(job_id)


__all__ = ["ApplicationError", "NoHandlerFoundError"]
