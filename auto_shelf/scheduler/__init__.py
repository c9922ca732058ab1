"""Batch scheduling."""

from .batch import BatchScheduler, SchedulerState, SchedulerStats, Timers

__all__ = ["BatchScheduler", "SchedulerState", "SchedulerStats", "Timers"]
