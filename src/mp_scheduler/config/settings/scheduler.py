"""Config settings – SchedulerSettings."""
from __future__ import annotations

import dataclasses

from mp_scheduler.config.settings.base import Settings
from mp_scheduler.config.validation import InvalidSettingValueError


@dataclasses.dataclass
class SchedulerSettings(Settings):
    """Tunables of the scheduling core, read from ``SCHEDULER_*`` variables.

    ``retry_unexpected_errors``: when a handler raises instead of returning a
    ``JobResult``, retry it once (first failure only) instead of failing it
    permanently.
    ``stale_running_after_seconds``: age of a ``RUNNING`` marker after which
    the reconciliation sweep treats the execution as crashed.
    """

    _prefix = "SCHEDULER"

    max_payload_bytes: int = 65536
    default_max_retries: int = 3
    retry_base_delay_seconds: float = 60.0
    retry_max_delay_seconds: float = 3600.0
    allow_run_at_now: bool = True
    retry_unexpected_errors: bool = False
    stale_running_after_seconds: int = 900
    overdue_threshold_seconds: int = 300
    due_batch_limit: int = 100

    def _validate(self) -> None:
        if self.max_payload_bytes <= 0:
            raise InvalidSettingValueError("max_payload_bytes", self.max_payload_bytes, "must be > 0")
        if self.default_max_retries < 0:
            raise InvalidSettingValueError("default_max_retries", self.default_max_retries, "must be >= 0")
        if self.retry_base_delay_seconds < 0:
            raise InvalidSettingValueError(
                "retry_base_delay_seconds", self.retry_base_delay_seconds, "must be >= 0"
            )
        if self.retry_max_delay_seconds < self.retry_base_delay_seconds:
            raise InvalidSettingValueError(
                "retry_max_delay_seconds",
                self.retry_max_delay_seconds,
                "must be >= retry_base_delay_seconds",
            )
        if self.stale_running_after_seconds <= 0:
            raise InvalidSettingValueError(
                "stale_running_after_seconds", self.stale_running_after_seconds, "must be > 0"
            )
        if self.overdue_threshold_seconds < 0:
            raise InvalidSettingValueError(
                "overdue_threshold_seconds", self.overdue_threshold_seconds, "must be >= 0"
            )
        if self.due_batch_limit <= 0:
            raise InvalidSettingValueError("due_batch_limit", self.due_batch_limit, "must be > 0")


__all__ = ["SchedulerSettings"]
