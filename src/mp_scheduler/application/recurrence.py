"""Application – RecurrenceEngine: next occurrence of a recurring schedule.

Pure computation over a :class:`ScheduleRecurrence` and a reference time.
Month arithmetic clamps to the last day of the target month (Jan 31 + 1
month is Feb 29 in a leap year) and, when the chain's ``origin`` is known,
is anchored on it so the clamp does not stick (Jan 31 -> Feb 29 -> Mar 31).
"""
from __future__ import annotations

import calendar
from datetime import datetime, timedelta

import structlog

from mp_scheduler.kernel.errors import InvalidRecurrenceError, RecurrenceUnsupportedError
from mp_scheduler.kernel.time import as_utc
from mp_scheduler.scheduling.enums import RecurrenceType
from mp_scheduler.scheduling.ports import CronEvaluator
from mp_scheduler.scheduling.recurrence import ScheduleRecurrence

logger = structlog.get_logger(__name__)

_FIXED_DELTAS = {
    RecurrenceType.MINUTES: lambda n: timedelta(minutes=n),
    RecurrenceType.HOURS: lambda n: timedelta(hours=n),
    RecurrenceType.DAYS: lambda n: timedelta(days=n),
    RecurrenceType.WEEKS: lambda n: timedelta(weeks=n),
}


def add_months(moment: datetime, months: int) -> datetime:
    """Calendar-aware month addition, clamping the day to the target month's length."""
    years, month_index = divmod(moment.month - 1 + months, 12)
    year = moment.year + years
    month = month_index + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


class RecurrenceEngine:
    """Compute occurrence times for fixed-interval and cron recurrences.

    Parameters
    ----------
    cron_evaluator:
        Optional cron capability.  Without it, cron recurrences fail with
        :class:`RecurrenceUnsupportedError` instead of being approximated.
    """

    def __init__(self, cron_evaluator: CronEvaluator | None = None) -> None:
        self._cron = cron_evaluator

    @property
    def supports_cron(self) -> bool:
        return self._cron is not None

    def validate(self, recurrence: ScheduleRecurrence | None, start: datetime | None = None) -> None:
        """Raise if *recurrence* cannot be evaluated by this engine.

        With *start*, a cron expression must also produce a fire time after it.
        """
        if recurrence is None or recurrence.type is not RecurrenceType.CRON:
            return
        evaluator = self._require_cron()
        if not evaluator.is_valid(recurrence.cron_expression or ""):
            raise InvalidRecurrenceError(
                f"Invalid cron expression {recurrence.cron_expression!r}",
                detail={"cron_expression": recurrence.cron_expression},
            )
        if start is not None:
            self._next_cron(recurrence.cron_expression or "", as_utc(start, field="start"))

    def next_occurrence(
        self,
        recurrence: ScheduleRecurrence | None,
        reference: datetime,
        *,
        origin: datetime | None = None,
        completed_runs: int = 0,
    ) -> datetime | None:
        """Next occurrence strictly after *reference*, or ``None`` when the chain ends.

        *completed_runs* is the number of successful runs so far, including
        the one that just finished; it is checked against ``max_occurrences``.
        """
        if recurrence is None or not recurrence.is_repeating:
            return None
        reference = as_utc(reference, field="reference")
        if recurrence.has_ended(reference, completed_runs):
            return None

        kind = recurrence.type
        if kind in _FIXED_DELTAS:
            candidate = reference + _FIXED_DELTAS[kind](recurrence.interval)
        elif kind is RecurrenceType.MONTHS:
            candidate = self._next_month(recurrence.interval, reference, origin)
        elif kind is RecurrenceType.CRON:
            candidate = self._next_cron(recurrence.cron_expression or "", reference)
        else:  # pragma: no cover
            raise InvalidRecurrenceError(f"Unsupported recurrence type {kind!r}")

        if recurrence.has_ended(candidate, completed_runs):
            return None
        return candidate

    def occurrences(
        self,
        recurrence: ScheduleRecurrence | None,
        start: datetime,
        count: int,
    ) -> list[datetime]:
        """The first *count* occurrence times of a chain starting at *start*."""
        if count <= 0:
            return []
        start = as_utc(start, field="start")
        times = [start]
        current = start
        while len(times) < count:
            nxt = self.next_occurrence(recurrence, current, origin=start, completed_runs=len(times))
            if nxt is None:
                break
            times.append(nxt)
            current = nxt
        return times

    # ------------------------------------------------------------------

    def _require_cron(self) -> CronEvaluator:
        if self._cron is None:
            raise RecurrenceUnsupportedError(
                "Cron recurrences need a cron evaluator; none is configured"
            )
        return self._cron

    def _next_cron(self, expression: str, reference: datetime) -> datetime:
        evaluator = self._require_cron()
        if not evaluator.is_valid(expression):
            raise InvalidRecurrenceError(
                f"Invalid cron expression {expression!r}",
                detail={"cron_expression": expression},
            )
        candidate = as_utc(evaluator.next_after(expression, reference), field="cron occurrence")
        if candidate <= reference:
            raise InvalidRecurrenceError(
                f"Cron evaluator returned {candidate.isoformat()} which is not after "
                f"{reference.isoformat()}",
                detail={"cron_expression": expression},
            )
        return candidate

    @staticmethod
    def _next_month(interval: int, reference: datetime, origin: datetime | None) -> datetime:
        if origin is None:
            return add_months(reference, interval)
        origin = as_utc(origin, field="origin")
        elapsed = (reference.year - origin.year) * 12 + (reference.month - origin.month)
        step = max(1, elapsed // interval)
        candidate = add_months(origin, step * interval)
        while candidate <= reference:
            step += 1
            candidate = add_months(origin, step * interval)
        logger.debug("recurrence.month_step", origin=origin.isoformat(), step=step)
        return candidate


__all__ = ["RecurrenceEngine", "add_months"]
