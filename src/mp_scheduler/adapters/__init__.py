"""Adapters – optional integrations behind the scheduling ports."""
