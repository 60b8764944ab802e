"""Application – recurrence, handler registry, execution engine and schedule manager."""
from mp_scheduler.application.execution import EXPIRED_ERROR, ExecutionEngine
from mp_scheduler.application.factory import build_schedule_manager
from mp_scheduler.application.handlers import CallableHandler, HandlerRegistry
from mp_scheduler.application.manager import STALE_EXECUTION_ERROR, ScheduleManager
from mp_scheduler.application.recurrence import RecurrenceEngine, add_months

__all__ = [
    "EXPIRED_ERROR",
    "STALE_EXECUTION_ERROR",
    "CallableHandler",
    "ExecutionEngine",
    "HandlerRegistry",
    "RecurrenceEngine",
    "ScheduleManager",
    "add_months",
    "build_schedule_manager",
]
