"""Application – build_schedule_manager: wire the core from settings."""
from __future__ import annotations

from typing import Iterable

from mp_scheduler.application.execution import ExecutionEngine
from mp_scheduler.application.handlers import HandlerRegistry
from mp_scheduler.application.manager import ScheduleManager
from mp_scheduler.application.recurrence import RecurrenceEngine
from mp_scheduler.config.settings import SchedulerSettings
from mp_scheduler.kernel.time import Clock, SystemClock
from mp_scheduler.observability.logging import JobAuditLogger
from mp_scheduler.resilience.retry import ExponentialBackoff, RetryDelayPolicy
from mp_scheduler.scheduling.ports import CronEvaluator, JobHandler, JobQueue, JobRepository


def build_schedule_manager(
    repository: JobRepository,
    *,
    handlers: Iterable[JobHandler] | HandlerRegistry = (),
    settings: SchedulerSettings | None = None,
    queue: JobQueue | None = None,
    clock: Clock | None = None,
    cron_evaluator: CronEvaluator | None = None,
    retry_policy: RetryDelayPolicy | None = None,
    audit: JobAuditLogger | None = None,
) -> ScheduleManager:
    """Assemble recurrence engine, handler registry, execution engine and manager.

    Example::

        manager = build_schedule_manager(
            SqlJobRepository(session_factory),
            handlers=[ReportExporter(), RecordPurger()],
            settings=EnvSettingsLoader().load(SchedulerSettings),
            cron_evaluator=CroniterEvaluator(),
        )
    """
    settings = settings or SchedulerSettings()
    clock = clock or SystemClock()
    audit = audit or JobAuditLogger()
    registry = handlers if isinstance(handlers, HandlerRegistry) else HandlerRegistry(handlers)
    recurrence = RecurrenceEngine(cron_evaluator)
    policy = retry_policy or RetryDelayPolicy(
        ExponentialBackoff(
            base_delay=settings.retry_base_delay_seconds,
            max_delay=settings.retry_max_delay_seconds,
        )
    )
    engine = ExecutionEngine(
        repository,
        registry,
        recurrence,
        clock,
        retry_policy=policy,
        audit=audit,
        retry_unexpected_errors=settings.retry_unexpected_errors,
    )
    return ScheduleManager(
        repository,
        engine,
        recurrence,
        clock,
        queue=queue,
        settings=settings,
        audit=audit,
    )


__all__ = ["build_schedule_manager"]
