"""Resilience – backoff strategies for retry delays (seconds)."""
from __future__ import annotations

import abc

from mp_scheduler.kernel.errors import ValidationError


class BackoffStrategy(abc.ABC):
    """Compute the wait (seconds) before the retry following *attempt* failures.

    ``attempt`` is the job's retry count before the retry is recorded, so the
    first retry is computed with ``attempt == 0``.
    """

    @abc.abstractmethod
    def compute(self, attempt: int) -> float: ...


class ConstantBackoff(BackoffStrategy):
    """Same delay for every retry."""

    def __init__(self, delay: float = 60.0) -> None:
        if delay < 0:
            raise ValidationError("delay must be >= 0")
        self._delay = delay

    def compute(self, attempt: int) -> float:  # noqa: ARG002
        return self._delay


class LinearBackoff(BackoffStrategy):
    """``base_delay * (attempt + 1)``, capped at ``max_delay``."""

    def __init__(self, base_delay: float = 60.0, max_delay: float = 3600.0) -> None:
        if base_delay < 0 or max_delay < 0:
            raise ValidationError("delays must be >= 0")
        self._base = base_delay
        self._max = max_delay

    def compute(self, attempt: int) -> float:
        return min(self._base * (attempt + 1), self._max)


class ExponentialBackoff(BackoffStrategy):
    """``base_delay * 2^attempt``, capped at ``max_delay``.

    With the defaults: 60 s, 120 s, 240 s, ... up to one hour.
    """

    def __init__(self, base_delay: float = 60.0, max_delay: float = 3600.0) -> None:
        if base_delay < 0 or max_delay < 0:
            raise ValidationError("delays must be >= 0")
        self._base = base_delay
        self._max = max_delay

    def compute(self, attempt: int) -> float:
        # 2 ** 64 seconds is already far past any cap
        return min(self._base * (2 ** min(attempt, 64)), self._max)


__all__ = ["BackoffStrategy", "ConstantBackoff", "ExponentialBackoff", "LinearBackoff"]
