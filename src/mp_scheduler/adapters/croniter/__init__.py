"""Adapters – croniter-backed cron evaluation."""
from mp_scheduler.adapters.croniter.evaluator import CroniterEvaluator

__all__ = ["CroniterEvaluator"]
