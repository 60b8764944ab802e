"""String-based identifier value objects."""

from __future__ import annotations

import dataclasses
import re

from ulid import ULID

from mp_scheduler.kernel.errors.domain import ValidationError

_ULID_RE = re.compile(r"^[0-9A-HJKMNP-TV-Z]{26}$")


@dataclasses.dataclass(frozen=True, slots=True)
class _StrId:
    """Base for string-typed identifiers."""

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValidationError(f"{type(self).__name__} must not be empty")

    def __str__(self) -> str:
        return self.value


@dataclasses.dataclass(frozen=True, slots=True)
class JobId(_StrId):
    """Scheduled job identifier: a 26-character Crockford base32 ULID.

    ULIDs sort by creation time, which keeps the ``id`` tie-break of the
    due-job ordering stable across processes.

    Examples::

        jid = JobId.generate()
        jid = JobId.from_str("01HN3Z8K9V6Q2W5X7Y1A4B0C3D")
    """

    def __post_init__(self) -> None:
        super(JobId, self).__post_init__()
        object.__setattr__(self, "value", self.value.upper())
        if not _ULID_RE.match(self.value):
            raise ValidationError(
                f"Invalid job id: {self.value!r}",
                errors=[{"field": "id", "error": "must be a ULID"}],
            )

    @classmethod
    def generate(cls) -> "JobId":
        return cls(str(ULID()))

    @classmethod
    def from_str(cls, value: str) -> "JobId":
        return cls(value)


@dataclasses.dataclass(frozen=True, slots=True)
class TenantId(_StrId):
    """Identifies a tenant in a multi-tenant deployment."""


__all__ = ["JobId", "TenantId"]
