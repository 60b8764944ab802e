"""Scheduling – ScheduleRecurrence value object."""
from __future__ import annotations

import dataclasses
from datetime import datetime
from typing import Any

from mp_scheduler.kernel.ddd import ValueObject
from mp_scheduler.kernel.errors import InvalidRecurrenceError, ValidationError
from mp_scheduler.kernel.time import as_utc, format_utc, parse_utc
from mp_scheduler.scheduling.enums import RecurrenceType


@dataclasses.dataclass(frozen=True)
class ScheduleRecurrence(ValueObject):
    """Rule describing how a job re-schedules itself after a successful run.

    Fixed-interval kinds need ``interval >= 1``; ``CRON`` needs a non-empty
    ``cron_expression``.  ``end_at`` and ``max_occurrences`` bound the chain:
    ``max_occurrences`` counts successful runs, including the first one.

    Example::

        ScheduleRecurrence.weekly()
        ScheduleRecurrence.monthly(3, max_occurrences=4)   # quarterly, one year
        ScheduleRecurrence.cron("0 9 * * MON")
    """

    type: RecurrenceType = RecurrenceType.NONE
    interval: int = 1
    cron_expression: str | None = None
    end_at: datetime | None = None
    max_occurrences: int | None = None

    def _validate(self) -> None:
        if not isinstance(self.type, RecurrenceType):
            try:
                object.__setattr__(self, "type", RecurrenceType(self.type))
            except ValueError as exc:
                raise InvalidRecurrenceError(
                    f"Unknown recurrence type {self.type!r}", cause=exc
                ) from exc
        if self.type.is_fixed_interval and (
            not isinstance(self.interval, int) or self.interval < 1
        ):
            raise InvalidRecurrenceError(
                f"{self.type.value} recurrence needs a positive interval, got {self.interval!r}"
            )
        if self.type is RecurrenceType.CRON:
            if not self.cron_expression or not self.cron_expression.strip():
                raise InvalidRecurrenceError("cron recurrence needs a cron expression")
        elif self.cron_expression is not None:
            raise InvalidRecurrenceError(
                f"cron_expression is only valid for cron recurrences, not {self.type.value}"
            )
        if self.max_occurrences is not None and self.max_occurrences < 1:
            raise InvalidRecurrenceError("max_occurrences must be >= 1")
        if self.end_at is not None:
            try:
                object.__setattr__(self, "end_at", as_utc(self.end_at, field="end_at"))
            except ValidationError as exc:
                raise InvalidRecurrenceError("end_at must be timezone-aware", cause=exc) from exc

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def none(cls) -> "ScheduleRecurrence":
        return cls(RecurrenceType.NONE)

    @classmethod
    def every_minutes(cls, interval: int, **bounds: Any) -> "ScheduleRecurrence":
        return cls(RecurrenceType.MINUTES, interval, **bounds)

    @classmethod
    def hourly(cls, interval: int = 1, **bounds: Any) -> "ScheduleRecurrence":
        return cls(RecurrenceType.HOURS, interval, **bounds)

    @classmethod
    def daily(cls, interval: int = 1, **bounds: Any) -> "ScheduleRecurrence":
        return cls(RecurrenceType.DAYS, interval, **bounds)

    @classmethod
    def weekly(cls, interval: int = 1, **bounds: Any) -> "ScheduleRecurrence":
        return cls(RecurrenceType.WEEKS, interval, **bounds)

    @classmethod
    def monthly(cls, interval: int = 1, **bounds: Any) -> "ScheduleRecurrence":
        return cls(RecurrenceType.MONTHS, interval, **bounds)

    @classmethod
    def cron(cls, expression: str, **bounds: Any) -> "ScheduleRecurrence":
        return cls(RecurrenceType.CRON, 1, cron_expression=expression.strip(), **bounds)

    # ------------------------------------------------------------------

    @property
    def is_repeating(self) -> bool:
        return self.type is not RecurrenceType.NONE

    def has_ended(self, moment: datetime, occurrence_count: int) -> bool:
        """True when no occurrence may follow the ``occurrence_count``-th run."""
        if self.max_occurrences is not None and occurrence_count >= self.max_occurrences:
            return True
        return self.end_at is not None and moment > self.end_at

    def describe(self) -> str:
        if self.type is RecurrenceType.NONE:
            return "once"
        if self.type is RecurrenceType.CRON:
            return f"cron({self.cron_expression})"
        unit = self.type.value.rstrip("s")
        return f"every {self.interval} {unit}" + ("s" if self.interval != 1 else "")

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "interval": self.interval,
            "cron_expression": self.cron_expression,
            "end_at": format_utc(self.end_at),
            "max_occurrences": self.max_occurrences,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScheduleRecurrence":
        return cls(
            type=RecurrenceType(data.get("type", RecurrenceType.NONE.value)),
            interval=int(data.get("interval", 1)),
            cron_expression=data.get("cron_expression"),
            end_at=parse_utc(data.get("end_at")),
            max_occurrences=data.get("max_occurrences"),
        )


__all__ = ["ScheduleRecurrence"]
