"""Shared pytest configuration."""

from mp_scheduler.testing.fixtures import (  # noqa: F401
    fake_clock,
    job_queue,
    job_repository,
    schedule_manager,
)
