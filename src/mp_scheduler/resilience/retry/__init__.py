"""Resilience – retry delay with configurable backoff and jitter strategies."""
from mp_scheduler.resilience.retry.backoff import (
    BackoffStrategy,
    ConstantBackoff,
    ExponentialBackoff,
    LinearBackoff,
)
from mp_scheduler.resilience.retry.jitter import EqualJitter, FullJitter, JitterStrategy, NoJitter
from mp_scheduler.resilience.retry.policy import RetryDelayPolicy

__all__ = [
    "BackoffStrategy", "ConstantBackoff", "EqualJitter", "ExponentialBackoff",
    "FullJitter", "JitterStrategy", "LinearBackoff", "NoJitter", "RetryDelayPolicy",
]
