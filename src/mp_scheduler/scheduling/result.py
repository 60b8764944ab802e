"""Scheduling – JobResult reported by a handler after it runs."""
from __future__ import annotations

import dataclasses
import math
from typing import Any

from mp_scheduler.kernel.ddd import ValueObject
from mp_scheduler.kernel.errors import ValidationError


@dataclasses.dataclass(frozen=True, kw_only=True)
class JobResult(ValueObject):
    """Outcome of one handler invocation.

    Build with :meth:`success` or :meth:`failure`.  Transient problems
    (network, throttling) should be reported with ``should_retry=True``;
    permanent business errors with ``should_retry=False`` so the retry budget
    is not wasted.
    """

    succeeded: bool
    data: dict[str, Any] | None = None
    error: str | None = None
    should_retry: bool = False
    retry_delay_seconds: float | None = None
    context: dict[str, Any] = dataclasses.field(default_factory=dict)

    def _validate(self) -> None:
        if not self.succeeded and not self.error:
            raise ValidationError("A failed JobResult needs an error message")
        delay = self.retry_delay_seconds
        if delay is not None and (not math.isfinite(delay) or delay < 0):
            raise ValidationError("retry_delay_seconds must be a finite number >= 0")

    @classmethod
    def success(cls, data: dict[str, Any] | None = None) -> "JobResult":
        return cls(succeeded=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        *,
        should_retry: bool = True,
        retry_delay_seconds: float | None = None,
        context: dict[str, Any] | None = None,
    ) -> "JobResult":
        return cls(
            succeeded=False,
            error=error,
            should_retry=should_retry,
            retry_delay_seconds=retry_delay_seconds,
            context=context or {},
        )

    @property
    def is_success(self) -> bool:
        return self.succeeded

    @property
    def is_failure(self) -> bool:
        return not self.succeeded

    def to_dict(self) -> dict[str, Any]:
        return {
            "succeeded": self.succeeded,
            "data": self.data,
            "error": self.error,
            "should_retry": self.should_retry,
            "retry_delay_seconds": self.retry_delay_seconds,
            "context": dict(self.context),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JobResult":
        return cls(
            succeeded=bool(data["succeeded"]),
            data=data.get("data"),
            error=data.get("error"),
            should_retry=bool(data.get("should_retry", False)),
            retry_delay_seconds=data.get("retry_delay_seconds"),
            context=dict(data.get("context") or {}),
        )


__all__ = ["JobResult"]
