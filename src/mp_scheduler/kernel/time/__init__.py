"""Kernel time – Clock port + implementations."""
from mp_scheduler.kernel.time.clock import (
    Clock,
    FrozenClock,
    SystemClock,
    as_utc,
    format_utc,
    parse_utc,
)

__all__ = ["Clock", "FrozenClock", "SystemClock", "as_utc", "format_utc", "parse_utc"]
