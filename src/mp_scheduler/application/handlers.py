"""Application – HandlerRegistry: job type -> handler resolution."""
from __future__ import annotations

import dataclasses
from typing import Awaitable, Callable, Iterable

from mp_scheduler.kernel.errors import NoHandlerFoundError, ValidationError
from mp_scheduler.scheduling.job import ScheduledJob
from mp_scheduler.scheduling.ports import JobHandler
from mp_scheduler.scheduling.result import JobResult

HandlerFunc = Callable[[ScheduledJob], Awaitable[JobResult]]


@dataclasses.dataclass(frozen=True)
class CallableHandler:
    """Adapts a plain ``async def handler(job) -> JobResult`` to :class:`JobHandler`."""

    job_types: frozenset[str]
    func: HandlerFunc

    def supports(self, job_type: str) -> bool:
        return job_type in self.job_types

    async def handle(self, job: ScheduledJob) -> JobResult:
        return await self.func(job)


class HandlerRegistry:
    """Holds the registered handlers and resolves the one for a job type.

    Resolution checks handlers registered for an exact job type first, then
    asks each general handler's ``supports()`` in registration order.  A miss
    is a deployment defect and raises :class:`NoHandlerFoundError`.

    Example::

        registry = HandlerRegistry([ReportExporter()])
        registry.register_callable("PURGE_RECORDS", purge)
        handler = registry.resolve("EXPORT_REPORT")
    """

    def __init__(self, handlers: Iterable[JobHandler] = ()) -> None:
        self._keyed: dict[str, JobHandler] = {}
        self._handlers: list[JobHandler] = []
        for handler in handlers:
            self.register(handler)

    def register(self, handler: JobHandler) -> None:
        if not isinstance(handler, JobHandler):
            raise ValidationError(
                f"{type(handler).__name__} does not implement supports()/handle()"
            )
        self._handlers.append(handler)

    def register_for(self, job_type: str, handler: JobHandler) -> None:
        """Bind *handler* to exactly *job_type*, ahead of ``supports()`` scanning."""
        if not job_type:
            raise ValidationError("job_type must not be empty")
        if not isinstance(handler, JobHandler):
            raise ValidationError(
                f"{type(handler).__name__} does not implement supports()/handle()"
            )
        self._keyed[job_type] = handler

    def register_callable(self, job_type: str, func: HandlerFunc) -> CallableHandler:
        handler = CallableHandler(frozenset({job_type}), func)
        self.register_for(job_type, handler)
        return handler

    def resolve(self, job_type: str) -> JobHandler:
        keyed = self._keyed.get(job_type)
        if keyed is not None:
            return keyed
        for handler in self._handlers:
            if handler.supports(job_type):
                return handler
        raise NoHandlerFoundError(job_type)

    def has_handler(self, job_type: str) -> bool:
        return job_type in self._keyed or any(h.supports(job_type) for h in self._handlers)

    @property
    def handlers(self) -> list[JobHandler]:
        return [*self._keyed.values(), *self._handlers]

    def __len__(self) -> int:
        return len(self._keyed) + len(self._handlers)


__all__ = ["CallableHandler", "HandlerFunc", "HandlerRegistry"]
