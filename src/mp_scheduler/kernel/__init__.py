"""Kernel – errors, time, identifiers and DDD base classes shared by every layer."""
