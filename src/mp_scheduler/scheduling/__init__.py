"""Scheduling – data model and collaborator ports."""
from mp_scheduler.scheduling.definition import ScheduleDefinition
from mp_scheduler.scheduling.enums import JobStatus, RecurrenceType
from mp_scheduler.scheduling.job import ScheduledJob
from mp_scheduler.scheduling.ports import CronEvaluator, JobHandler, JobQueue, JobRepository
from mp_scheduler.scheduling.recurrence import ScheduleRecurrence
from mp_scheduler.scheduling.result import JobResult

__all__ = [
    "CronEvaluator",
    "JobHandler",
    "JobQueue",
    "JobRepository",
    "JobResult",
    "JobStatus",
    "RecurrenceType",
    "ScheduleDefinition",
    "ScheduleRecurrence",
    "ScheduledJob",
]
