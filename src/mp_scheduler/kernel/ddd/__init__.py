"""DDD building blocks used by the scheduling model."""

from mp_scheduler.kernel.ddd.entity import Entity
from mp_scheduler.kernel.ddd.value_object import ValueObject

__all__ = ["Entity", "ValueObject"]
