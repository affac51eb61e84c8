"""Reminder scheduling interface."""

from typing import Protocol

from taskflow.core.reminders import Reminder


class ReminderScheduler(Protocol):
    """Interface for scheduling local alerts on any backend."""

    def schedule(self, reminder: Reminder) -> None:
        """Schedule (or reschedule) a reminder under its id."""
        ...

    def cancel(self, reminder_id: str) -> None:
        """Cancel a pending reminder. Unknown ids are ignored."""
        ...
