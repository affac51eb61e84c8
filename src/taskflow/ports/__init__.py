"""Ports - interfaces/protocols for external dependencies."""

from .storage import KeyValueStore
from .notifier import ReminderScheduler

__all__ = [
    "KeyValueStore",
    "ReminderScheduler",
]
