"""Observability – structured logging and the job audit trail."""
