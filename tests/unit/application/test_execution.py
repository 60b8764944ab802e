"""Unit tests for ExecutionEngine."""
from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from mp_scheduler.application import EXPIRED_ERROR, ExecutionEngine, HandlerRegistry, RecurrenceEngine
from mp_scheduler.kernel.errors import (
    InvalidRecurrenceError,
    InvalidStateError,
    NoHandlerFoundError,
    RecurrenceUnsupportedError,
)
from mp_scheduler.kernel.types import JobId
from mp_scheduler.resilience.retry import ConstantBackoff, RetryDelayPolicy
from mp_scheduler.scheduling import JobResult, JobStatus, ScheduledJob, ScheduleRecurrence
from mp_scheduler.testing import FakeClock, InMemoryJobRepository, ScriptedHandler

_RUN_AT = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)


class _Harness:
    def __init__(self, *handlers, retry_unexpected_errors=False, backoff=None):
        self.clock = FakeClock(_RUN_AT)
        self.repo = InMemoryJobRepository()
        self.engine = ExecutionEngine(
            self.repo,
            HandlerRegistry(handlers),
            RecurrenceEngine(),
            self.clock,
            retry_policy=RetryDelayPolicy(backoff) if backoff else None,
            retry_unexpected_errors=retry_unexpected_errors,
        )

    async def stored(self, **fields) -> ScheduledJob:
        fields.setdefault("job_type", "EXPORT_REPORT")
        fields.setdefault("target_id", "report-1")
        fields.setdefault("run_at", _RUN_AT)
        job = ScheduledJob(JobId.generate(), **fields)
        await self.repo.save(job)
        return await self.repo.find_by_id(job.id)

    async def reload(self, job: ScheduledJob) -> ScheduledJob:
        return await self.repo.find_by_id(job.id)


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------
class TestOutcomes:
    def test_success_completes_one_shot(self):
        async def _run():
            h = _Harness(ScriptedHandler("EXPORT_REPORT", [JobResult.success({"rows": 3})]))
            job = await h.engine.execute(await h.stored())
            assert job.status is JobStatus.COMPLETED
            assert job.last_run_at == _RUN_AT
            assert job.run_at == _RUN_AT
            assert job.last_result.data == {"rows": 3}
            stored = await h.reload(job)
            assert stored.status is JobStatus.COMPLETED
            assert stored.version == job.version

        asyncio.run(_run())

    def test_handler_sees_running_job(self):
        async def _run():
            handler = ScriptedHandler("EXPORT_REPORT")
            h = _Harness(handler)
            await h.engine.execute(await h.stored())
            assert handler.calls[0].status is JobStatus.RUNNING

        asyncio.run(_run())

    def test_retryable_failure_uses_policy_delay(self):
        async def _run():
            h = _Harness(
                ScriptedHandler("EXPORT_REPORT", [JobResult.failure("throttled")]),
                backoff=ConstantBackoff(30),
            )
            job = await h.engine.execute(await h.stored(max_retries=2))
            assert job.status is JobStatus.PENDING
            assert job.retry_count == 1
            assert job.run_at == _RUN_AT + timedelta(seconds=30)
            assert job.occurrence_at == _RUN_AT
            assert job.last_error == "throttled"

        asyncio.run(_run())

    def test_explicit_delay_wins(self):
        async def _run():
            h = _Harness(
                ScriptedHandler("EXPORT_REPORT", [JobResult.failure("throttled", retry_delay_seconds=5)]),
                backoff=ConstantBackoff(30),
            )
            job = await h.engine.execute(await h.stored())
            assert job.run_at == _RUN_AT + timedelta(seconds=5)

        asyncio.run(_run())

    def test_non_retryable_failure_is_permanent(self):
        async def _run():
            h = _Harness(
                ScriptedHandler("EXPORT_REPORT", [JobResult.failure("report deleted", should_retry=False)])
            )
            job = await h.engine.execute(await h.stored(max_retries=3))
            assert job.status is JobStatus.FAILED_PERMANENT
            assert job.retry_count == 0
            assert job.last_error == "report deleted"

        asyncio.run(_run())

    def test_zero_budget_fails_on_first_retryable_failure(self):
        async def _run():
            h = _Harness(ScriptedHandler("EXPORT_REPORT", [JobResult.failure("down")]))
            job = await h.engine.execute(await h.stored(max_retries=0))
            assert job.status is JobStatus.FAILED_PERMANENT

        asyncio.run(_run())

    def test_non_result_return_fails_permanently(self):
        class _Sloppy:
            def supports(self, job_type):
                return True

            async def handle(self, job):
                return "done"

        async def _run():
            h = _Harness(_Sloppy())
            job = await h.engine.execute(await h.stored())
            assert job.status is JobStatus.FAILED_PERMANENT
            assert "not JobResult" in job.last_error

        asyncio.run(_run())


# ---------------------------------------------------------------------------
# Unexpected exceptions
# ---------------------------------------------------------------------------
class TestHandlerExceptions:
    def test_exception_fails_permanently_by_default(self):
        async def _run():
            h = _Harness(ScriptedHandler("EXPORT_REPORT", [RuntimeError("boom")]))
            job = await h.engine.execute(await h.stored(max_retries=3))
            assert job.status is JobStatus.FAILED_PERMANENT
            assert job.last_error == "RuntimeError: boom"
            assert job.last_result.context["unexpected"] is True

        asyncio.run(_run())

    def test_exception_retried_once_when_enabled(self):
        async def _run():
            h = _Harness(
                ScriptedHandler("EXPORT_REPORT", [RuntimeError("boom")]),
                retry_unexpected_errors=True,
            )
            job = await h.engine.execute(await h.stored(max_retries=3))
            assert job.status is JobStatus.PENDING
            assert job.retry_count == 1
            job = await h.engine.execute(job)
            assert job.status is JobStatus.FAILED_PERMANENT
            assert job.retry_count == 1

        asyncio.run(_run())


# ---------------------------------------------------------------------------
# Recurrence
# ---------------------------------------------------------------------------
class TestRecurring:
    def test_success_rearms(self):
        async def _run():
            h = _Harness(ScriptedHandler("EXPORT_REPORT"))
            job = await h.engine.execute(await h.stored(recurrence=ScheduleRecurrence.daily()))
            assert job.status is JobStatus.PENDING
            assert job.run_at == _RUN_AT + timedelta(days=1)
            assert job.occurrence_count == 1
            assert job.last_run_at == _RUN_AT

        asyncio.run(_run())

    def test_retry_does_not_shift_the_chain(self):
        async def _run():
            h = _Harness(
                ScriptedHandler(
                    "EXPORT_REPORT",
                    [JobResult.failure("throttled", retry_delay_seconds=300), JobResult.success()],
                )
            )
            job = await h.engine.execute(await h.stored(recurrence=ScheduleRecurrence.daily()))
            assert job.run_at == _RUN_AT + timedelta(minutes=5)
            h.clock.advance(minutes=5)
            job = await h.engine.execute(job)
            assert job.status is JobStatus.PENDING
            assert job.run_at == _RUN_AT + timedelta(days=1)
            assert job.retry_count == 0
            assert job.occurrence_count == 1

        asyncio.run(_run())

    def test_max_occurrences_completes_chain(self):
        async def _run():
            h = _Harness(ScriptedHandler("EXPORT_REPORT"))
            job = await h.stored(recurrence=ScheduleRecurrence.daily(max_occurrences=2))
            job = await h.engine.execute(job)
            assert job.status is JobStatus.PENDING
            job = await h.engine.execute(job)
            assert job.status is JobStatus.COMPLETED
            assert job.occurrence_count == 1

        asyncio.run(_run())

    def test_end_at_completes_chain(self):
        async def _run():
            h = _Harness(ScriptedHandler("EXPORT_REPORT"))
            rec = ScheduleRecurrence.daily(end_at=_RUN_AT + timedelta(days=1, hours=1))
            job = await h.engine.execute(await h.stored(recurrence=rec))
            assert job.run_at == _RUN_AT + timedelta(days=1)
            job = await h.engine.execute(job)
            assert job.status is JobStatus.COMPLETED

        asyncio.run(_run())

    def test_recurring_permanent_failure_ends_chain(self):
        async def _run():
            h = _Harness(ScriptedHandler("EXPORT_REPORT", [JobResult.failure("gone", should_retry=False)]))
            job = await h.engine.execute(await h.stored(recurrence=ScheduleRecurrence.weekly()))
            assert job.status is JobStatus.FAILED_PERMANENT
            assert job.run_at == _RUN_AT

        asyncio.run(_run())

    def test_unevaluable_recurrence_fails_job_and_raises(self):
        async def _run():
            h = _Harness(ScriptedHandler("EXPORT_REPORT"))
            job = await h.stored(recurrence=ScheduleRecurrence.cron("0 9 * * MON"))
            with pytest.raises(RecurrenceUnsupportedError):
                await h.engine.execute(job)
            stored = await h.reload(job)
            assert stored.status is JobStatus.FAILED_PERMANENT

        asyncio.run(_run())


# ---------------------------------------------------------------------------
# Expiry
# ---------------------------------------------------------------------------
class TestExpiry:
    def test_expired_one_shot_fails_without_running(self):
        async def _run():
            handler = ScriptedHandler("EXPORT_REPORT")
            h = _Harness(handler)
            job = await h.stored(ttl_seconds=60)
            h.clock.advance(minutes=5)
            job = await h.engine.execute(job)
            assert job.status is JobStatus.FAILED_PERMANENT
            assert job.last_error == EXPIRED_ERROR
            assert handler.call_count == 0

        asyncio.run(_run())

    def test_expired_recurring_skips_occurrence(self):
        async def _run():
            handler = ScriptedHandler("EXPORT_REPORT")
            h = _Harness(handler)
            job = await h.stored(ttl_seconds=60, recurrence=ScheduleRecurrence.daily())
            h.clock.advance(hours=2)
            job = await h.engine.execute(job)
            assert job.status is JobStatus.PENDING
            assert job.run_at == _RUN_AT + timedelta(days=1)
            assert job.occurrence_count == 0
            assert handler.call_count == 0
            assert (await h.reload(job)).run_at == job.run_at

        asyncio.run(_run())


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------
class TestGuards:
    def test_non_pending_rejected(self):
        async def _run():
            h = _Harness(ScriptedHandler("EXPORT_REPORT"))
            job = await h.engine.execute(await h.stored())
            with pytest.raises(InvalidStateError):
                await h.engine.execute(job)

        asyncio.run(_run())

    def test_no_handler_leaves_job_untouched(self):
        async def _run():
            h = _Harness()
            job = await h.stored()
            with pytest.raises(NoHandlerFoundError) as exc_info:
                await h.engine.execute(job)
            assert exc_info.value.job_id == str(job.id)
            stored = await h.reload(job)
            assert stored.status is JobStatus.PENDING
            assert stored.to_dict() == job.to_dict()

        asyncio.run(_run())


# ---------------------------------------------------------------------------
# Outcomes that cannot be applied
# ---------------------------------------------------------------------------
class _OverflowingPolicy(RetryDelayPolicy):
    def delay_seconds(self, retry_count, explicit=None):
        return 1e12


class _BrokenCron:
    def __init__(self, error):
        self._error = error

    def is_valid(self, expression):
        return True

    def next_after(self, expression, reference):
        raise self._error


def _engine(repo, clock, handler, *, recurrence=None, retry_policy=None):
    return ExecutionEngine(
        repo,
        HandlerRegistry([handler]),
        recurrence or RecurrenceEngine(),
        clock,
        retry_policy=retry_policy,
    )


class TestUnappliedOutcome:
    def test_huge_handler_delay_is_clamped(self):
        async def _run():
            h = _Harness(
                ScriptedHandler(
                    "EXPORT_REPORT", [JobResult.failure("throttled", retry_delay_seconds=1e12)]
                )
            )
            job = await h.engine.execute(await h.stored())
            assert job.status is JobStatus.PENDING
            assert job.run_at == _RUN_AT + timedelta(days=30)

        asyncio.run(_run())

    def test_unrepresentable_retry_time_fails_job(self):
        async def _run():
            h = _Harness()
            engine = _engine(
                h.repo,
                h.clock,
                ScriptedHandler("EXPORT_REPORT", [JobResult.failure("throttled")]),
                retry_policy=_OverflowingPolicy(),
            )
            job = await h.stored()
            with pytest.raises(OverflowError):
                await engine.execute(job)
            stored = await h.reload(job)
            assert stored.status is JobStatus.FAILED_PERMANENT
            assert stored.last_error.startswith("outcome not recorded: OverflowError")
            assert stored.last_result.error == "throttled"

        asyncio.run(_run())

    def test_cron_without_next_fire_time_fails_job(self):
        async def _run():
            h = _Harness()
            engine = _engine(
                h.repo,
                h.clock,
                ScriptedHandler("EXPORT_REPORT"),
                recurrence=RecurrenceEngine(_BrokenCron(InvalidRecurrenceError("no fire time"))),
            )
            job = await h.stored(recurrence=ScheduleRecurrence.cron("0 0 30 2 *"))
            with pytest.raises(InvalidRecurrenceError):
                await engine.execute(job)
            stored = await h.reload(job)
            assert stored.status is JobStatus.FAILED_PERMANENT
            assert stored.last_error == "no fire time"

        asyncio.run(_run())

    def test_unexpected_evaluator_error_fails_job(self):
        async def _run():
            h = _Harness()
            engine = _engine(
                h.repo,
                h.clock,
                ScriptedHandler("EXPORT_REPORT"),
                recurrence=RecurrenceEngine(_BrokenCron(RuntimeError("evaluator down"))),
            )
            job = await h.stored(recurrence=ScheduleRecurrence.cron("0 9 * * MON"))
            with pytest.raises(RuntimeError):
                await engine.execute(job)
            stored = await h.reload(job)
            assert stored.status is JobStatus.FAILED_PERMANENT
            assert stored.last_result.is_success

        asyncio.run(_run())
