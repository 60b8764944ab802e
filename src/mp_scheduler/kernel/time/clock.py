"""Kernel time – Clock protocol, implementations and UTC helpers."""
from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Protocol, runtime_checkable

from mp_scheduler.kernel.errors.domain import ValidationError


@runtime_checkable
class Clock(Protocol):
    """Port: source of the current time, injected so tests can travel in time."""

    def now(self) -> datetime: ...


class SystemClock:
    """Production clock that delegates to ``datetime.now(UTC)``."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class FrozenClock:
    """Test clock pinned to a fixed point in time until moved explicitly."""

    def __init__(self, fixed: datetime) -> None:
        self._fixed = as_utc(fixed, field="fixed")

    def now(self) -> datetime:
        return self._fixed

    def advance(self, **kwargs: int | float) -> datetime:
        """Move the clock forward by the given ``timedelta`` kwargs."""
        self._fixed += timedelta(**kwargs)
        return self._fixed

    def travel_to(self, moment: datetime) -> datetime:
        """Jump to *moment* (may be in the past)."""
        self._fixed = as_utc(moment, field="moment")
        return self._fixed


def as_utc(value: datetime, *, field: str = "datetime") -> datetime:
    """Return *value* converted to UTC; naive datetimes are rejected."""
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValidationError(
            f"{field} must be timezone-aware",
            errors=[{"field": field, "error": "naive datetime"}],
        )
    return value.astimezone(UTC)


def parse_utc(raw: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp written by :func:`format_utc`."""
    if raw is None:
        return None
    return as_utc(datetime.fromisoformat(raw))


def format_utc(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.astimezone(UTC).isoformat()


__all__ = ["Clock", "FrozenClock", "SystemClock", "as_utc", "format_utc", "parse_utc"]
