"""Observability – structlog configuration, redaction and job audit logging."""
from mp_scheduler.observability.logging.audit import JobAuditLogger
from mp_scheduler.observability.logging.factory import configure_logging
from mp_scheduler.observability.logging.filters import DEFAULT_SENSITIVE_FIELDS, SensitiveFieldsFilter

__all__ = ["DEFAULT_SENSITIVE_FIELDS", "JobAuditLogger", "SensitiveFieldsFilter", "configure_logging"]
