"""Observability – structlog configuration for scheduler processes."""
from __future__ import annotations

import logging
from typing import Any

import structlog

from mp_scheduler.observability.logging.filters import SensitiveFieldsFilter


def configure_logging(
    level: int = logging.INFO,
    *,
    json_output: bool = True,
    sensitive_fields: frozenset[str] | None = None,
) -> None:
    """Route structlog through stdlib logging with ISO timestamps.

    ``json_output=False`` renders human-readable console lines (local runs).
    Keys listed in *sensitive_fields* (or the defaults) are redacted from
    every event before rendering.
    """
    _filter = SensitiveFieldsFilter(sensitive_fields)

    def _redact(logger: Any, method: Any, event_dict: dict[str, Any]) -> dict[str, Any]:  # noqa: ARG001
        return _filter.redact_deep(event_dict)

    shared_processors: list[Any] = [
        _redact,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    renderer: Any = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


__all__ = ["configure_logging"]
