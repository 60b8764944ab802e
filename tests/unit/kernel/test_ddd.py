"""Unit tests for the DDD building blocks."""

from __future__ import annotations

import dataclasses

import pytest

from mp_scheduler.kernel.ddd import Entity, ValueObject
from mp_scheduler.kernel.errors import ValidationError


@dataclasses.dataclass(frozen=True)
class _Window(ValueObject):
    start: int
    end: int

    def _validate(self) -> None:
        if self.end < self.start:
            raise ValidationError("end before start")


class TestEntity:
    def test_equality_by_id(self) -> None:
        assert Entity("a") == Entity("a")
        assert Entity("a") != Entity("b")

    def test_hash_by_id(self) -> None:
        assert len({Entity("a"), Entity("a"), Entity("b")}) == 2

    def test_not_equal_to_other_types(self) -> None:
        assert Entity("a") != "a"


class TestValueObject:
    def test_validate_runs_on_construction(self) -> None:
        with pytest.raises(ValidationError):
            _Window(5, 1)

    def test_frozen(self) -> None:
        window = _Window(1, 5)
        with pytest.raises(dataclasses.FrozenInstanceError):
            window.start = 2  # type: ignore[misc]

    def test_copy_with_revalidates(self) -> None:
        window = _Window(1, 5)
        assert window.copy_with(end=9) == _Window(1, 9)
        with pytest.raises(ValidationError):
            window.copy_with(end=0)
