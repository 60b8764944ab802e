"""Testing fixtures – pytest fixtures for the scheduling core.

Enable in a ``conftest.py`` with::

    pytest_plugins = ["mp_scheduler.testing.fixtures"]
"""
from mp_scheduler.testing.fixtures.scheduler import (
    fake_clock,
    job_queue,
    job_repository,
    schedule_manager,
)

__all__ = ["fake_clock", "job_queue", "job_repository", "schedule_manager"]
