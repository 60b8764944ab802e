"""Resilience – RetryDelayPolicy: how far in the future a failed job is re-armed."""
from __future__ import annotations

from datetime import timedelta

from mp_scheduler.kernel.errors import ValidationError
from mp_scheduler.resilience.retry.backoff import BackoffStrategy, ExponentialBackoff
from mp_scheduler.resilience.retry.jitter import JitterStrategy, NoJitter


class RetryDelayPolicy:
    """Injectable retry-delay policy used by the execution engine.

    Retries are never slept on: the delay becomes a future ``run_at`` and the
    periodic due-job poll picks the job up again.  A handler-supplied
    ``retry_delay_seconds`` wins over the computed backoff, clamped to
    *max_explicit_delay* (30 days by default) so a run time stays representable.
    """

    def __init__(
        self,
        backoff: BackoffStrategy | None = None,
        jitter: JitterStrategy | None = None,
        max_explicit_delay: float = 30 * 24 * 3600.0,
    ) -> None:
        if max_explicit_delay < 0:
            raise ValidationError("max_explicit_delay must be >= 0")
        self.backoff = backoff or ExponentialBackoff()
        self.jitter = jitter or NoJitter()
        self.max_explicit_delay = max_explicit_delay

    def delay_seconds(self, retry_count: int, explicit: float | None = None) -> float:
        if explicit is not None:
            return min(explicit, self.max_explicit_delay)
        return max(0.0, self.jitter.apply(self.backoff.compute(retry_count)))

    def delay(self, retry_count: int, explicit: float | None = None) -> timedelta:
        return timedelta(seconds=self.delay_seconds(retry_count, explicit))


__all__ = ["RetryDelayPolicy"]
