"""Testing fakes – ScriptedHandler."""
from __future__ import annotations

from typing import Iterable

from mp_scheduler.scheduling.job import ScheduledJob
from mp_scheduler.scheduling.result import JobResult


class ScriptedHandler:
    """Handler that replays a script of outcomes and records every call.

    Each script entry is a :class:`JobResult` to return or an exception to
    raise; once the script is used up the last entry repeats.  With no
    script every call succeeds.

    Example::

        handler = ScriptedHandler(
            "EXPORT_REPORT",
            [JobResult.failure("timeout", retry_delay_seconds=60), JobResult.success()],
        )
    """

    def __init__(
        self,
        job_types: str | Iterable[str],
        script: Iterable[JobResult | BaseException] = (),
    ) -> None:
        self.job_types = frozenset({job_types} if isinstance(job_types, str) else job_types)
        self._script: list[JobResult | BaseException] = list(script)
        self.calls: list[ScheduledJob] = []

    def supports(self, job_type: str) -> bool:
        return job_type in self.job_types

    async def handle(self, job: ScheduledJob) -> JobResult:
        self.calls.append(job.copy())
        if not self._script:
            return JobResult.success()
        outcome = self._script[0] if len(self._script) == 1 else self._script.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    @property
    def call_count(self) -> int:
        return len(self.calls)


__all__ = ["ScriptedHandler"]
