"""
Background workers for Trackarr.

Contains the scheduled push worker.
"""

from .push_scheduler import PushScheduler, ScheduledRunRecord

__all__ = ["PushScheduler", "ScheduledRunRecord"]
