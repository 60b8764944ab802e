"""Resilience – retry delay policies for failed jobs."""
