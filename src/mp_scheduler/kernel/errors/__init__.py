"""Kernel error hierarchy – public re-export surface.

Hierarchy::

    BaseError
    ├── DomainError                  (domain.py)
    │   ├── ValidationError
    │   ├── NotFoundError
    │   │   └── JobNotFoundError
    │   ├── ConflictError
    │   │   └── ConcurrencyConflictError
    │   ├── InvalidStateError
    │   └── InvalidRecurrenceError
    │       └── RecurrenceUnsupportedError
    └── ApplicationError             (application.py)
        ├── ConfigError              (mp_scheduler.config.validation)
        └── NoHandlerFoundError
"""

from mp_scheduler.kernel.errors.application import ApplicationError, NoHandlerFoundError
from mp_scheduler.kernel.errors.base import BaseError
from mp_scheduler.kernel.errors.domain import (
    ConcurrencyConflictError,
    ConflictError,
    DomainError,
    InvalidRecurrenceError,
    InvalidStateError,
    JobNotFoundError,
    NotFoundError,
    RecurrenceUnsupportedError,
    ValidationError,
)

__all__ = [
    "ApplicationError",
    "BaseError",
    "ConcurrencyConflictError",
    "ConflictError",
    "DomainError",
    "InvalidRecurrenceError",
    "InvalidStateError",
    "JobNotFoundError",
    "NoHandlerFoundError",
    "NotFoundError",
    "RecurrenceUnsupportedError",
    "ValidationError",
]
