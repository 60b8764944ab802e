"""Unit tests for the croniter-backed cron evaluator."""
from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest
from croniter import CroniterBadDateError, croniter

from mp_scheduler.adapters.croniter import CroniterEvaluator
from mp_scheduler.application import RecurrenceEngine
from mp_scheduler.kernel.errors import InvalidRecurrenceError
from mp_scheduler.scheduling import CronEvaluator, ScheduleRecurrence


class TestCroniterEvaluator:
    def test_satisfies_port(self):
        assert isinstance(CroniterEvaluator(), CronEvaluator)

    @pytest.mark.parametrize("expression", ["0 9 * * MON", "*/15 * * * *", "0 0 1 * *"])
    def test_valid(self, expression):
        assert CroniterEvaluator().is_valid(expression)

    @pytest.mark.parametrize("expression", ["", "not a cron", "61 * * * *"])
    def test_invalid(self, expression):
        assert not CroniterEvaluator().is_valid(expression)

    def test_next_after_is_strict(self):
        monday_nine = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)
        nxt = CroniterEvaluator().next_after("0 9 * * MON", monday_nine)
        assert nxt == datetime(2024, 1, 8, 9, 0, tzinfo=UTC)
        assert nxt.utcoffset() == timedelta(0)

    def test_evaluates_in_configured_timezone(self):
        eastern = timezone(timedelta(hours=-5))
        nxt = CroniterEvaluator(timezone=eastern).next_after(
            "0 9 * * *", datetime(2024, 1, 1, 0, 0, tzinfo=UTC)
        )
        assert nxt == datetime(2024, 1, 1, 14, 0, tzinfo=UTC)


class TestWithRecurrenceEngine:
    def test_occurrences(self):
        engine = RecurrenceEngine(CroniterEvaluator())
        start = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)
        times = engine.occurrences(ScheduleRecurrence.cron("0 9 * * MON"), start, 3)
        assert times == [start, start + timedelta(weeks=1), start + timedelta(weeks=2)]

    def test_invalid_expression_rejected(self):
        with pytest.raises(InvalidRecurrenceError):
            RecurrenceEngine(CroniterEvaluator()).validate(ScheduleRecurrence.cron("every monday"))

    def test_missing_fire_time_becomes_invalid_recurrence(self, monkeypatch):
        def _no_match(self, *args, **kwargs):
            raise CroniterBadDateError("failed to find next date")

        monkeypatch.setattr(croniter, "get_next", _no_match)
        engine = RecurrenceEngine(CroniterEvaluator())
        with pytest.raises(InvalidRecurrenceError) as exc_info:
            engine.validate(ScheduleRecurrence.cron("0 9 * * MON"), datetime(2024, 1, 1, tzinfo=UTC))
        assert isinstance(exc_info.value.cause, CroniterBadDateError)
