"""Adapters – CroniterEvaluator (requires the ``cron`` extra: croniter)."""
from __future__ import annotations

from datetime import UTC, datetime, tzinfo

from croniter import CroniterError, croniter

from mp_scheduler.kernel.errors import InvalidRecurrenceError
from mp_scheduler.kernel.time import as_utc


class CroniterEvaluator:
    """Cron capability for :class:`~mp_scheduler.application.recurrence.RecurrenceEngine`.

    Expressions are evaluated in *timezone* (UTC by default) so that
    ``"0 9 * * MON"`` can mean 09:00 local time across DST changes; results
    are returned in UTC.
    """

    def __init__(self, timezone: tzinfo = UTC) -> None:
        self._tz = timezone

    def is_valid(self, expression: str) -> bool:
        return bool(expression) and croniter.is_valid(expression)

    def next_after(self, expression: str, reference: datetime) -> datetime:
        local_reference = as_utc(reference, field="reference").astimezone(self._tz)
        try:
            nxt = croniter(expression, local_reference).get_next(datetime)
        except CroniterError as exc:
            raise InvalidRecurrenceError(
                f"Cron expression {expression!r} has no fire time after {reference.isoformat()}",
                detail={"cron_expression": expression},
                cause=exc,
            ) from exc
        return as_utc(nxt, field="cron occurrence")


__all__ = ["CroniterEvaluator"]
