"""ValueObject base class."""

from __future__ import annotations

import dataclasses
from typing import Any, Self


@dataclasses.dataclass(frozen=True)
class ValueObject:
    """Base class for immutable value objects.

    Subclasses are ``@dataclass(frozen=True)`` and put their invariant checks
    in :meth:`_validate`, which runs after construction.
    """

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        """Override to add cross-field invariant checks."""

    def copy_with(self, **changes: Any) -> Self:
        """Return a new, re-validated instance with given fields replaced."""
        return dataclasses.replace(self, **changes)


__all__ = ["ValueObject"]
