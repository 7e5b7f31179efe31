"""
Persistence Module

In-process state that outlives a single call:
- TTLCache: Bounded, expiring cache (NLP results)
- BackgroundJobRunner: Detached tasks with inspectable Job handles
"""

from .cache import CacheEntry, TTLCache
from .jobs import BackgroundJobRunner, Job, JobStatus

__all__ = [
    "CacheEntry",
    "TTLCache",
    "BackgroundJobRunner",
    "Job",
    "JobStatus",
]
