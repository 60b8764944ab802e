"""
mp_scheduler – job scheduling core.

Import path convention::

    from mp_scheduler.scheduling import ScheduleDefinition, ScheduleRecurrence
    from mp_scheduler.application import ScheduleManager, build_schedule_manager
    from mp_scheduler.kernel.errors import JobNotFoundError, InvalidStateError
    from mp_scheduler.testing import InMemoryJobRepository
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
