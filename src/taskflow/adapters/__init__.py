"""Adapters - I/O implementations of ports."""

from .file_storage import FileKeyValueStore
from .memory_storage import InMemoryKeyValueStore
from .scheduler import APSchedulerReminderScheduler

__all__ = [
    "FileKeyValueStore",
    "InMemoryKeyValueStore",
    "APSchedulerReminderScheduler",
]
