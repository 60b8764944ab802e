"""Config settings – Settings base class."""
from __future__ import annotations

import dataclasses


@dataclasses.dataclass
class Settings:
    """Base class for env-driven settings dataclasses.

    ``_prefix`` names the environment-variable namespace, e.g. ``"SCHEDULER"``
    maps field ``max_payload_bytes`` to ``SCHEDULER_MAX_PAYLOAD_BYTES``.
    """

    _prefix: dataclasses.ClassVar[str] = ""

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        """Override to add cross-field validation."""


__all__ = ["Settings"]
