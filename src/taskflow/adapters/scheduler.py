"""APScheduler adapter - delivers reminders as scheduled jobs."""

import logging
from typing import Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from taskflow.core.reminders import Reminder

logger = logging.getLogger(__name__)

Deliver = Callable[[Reminder], None]


def log_reminder(reminder: Reminder) -> None:
    """Default delivery: write the alert to the log."""
    logger.info(f"[{reminder.kind.value}] {reminder.title}: {reminder.body}")


class APSchedulerReminderScheduler:
    """
    APScheduler-backed reminder scheduler.

    Implements ReminderScheduler protocol. Maps one-shot reminders to date
    triggers, repeating ones to interval triggers and daily ones to cron
    triggers. Delivery is delegated to a callback.
    """

    def __init__(
        self,
        scheduler: BaseScheduler | None = None,
        deliver: Deliver = log_reminder,
        timezone: str | None = None,
    ):
        if scheduler is None:
            scheduler = BackgroundScheduler(timezone=timezone) if timezone else BackgroundScheduler()
        self.scheduler = scheduler
        self.deliver = deliver

    def _trigger_for(self, reminder: Reminder):
        tz = self.scheduler.timezone
        if reminder.daily_at is not None:
            return CronTrigger(hour=reminder.daily_at.hour, minute=reminder.daily_at.minute, timezone=tz)
        if reminder.repeat_every is not None:
            return IntervalTrigger(seconds=int(reminder.repeat_every.total_seconds()), timezone=tz)
        if reminder.fire_at is not None:
            return DateTrigger(run_date=reminder.fire_at, timezone=tz)
        raise ValueError(f"Reminder {reminder.id} has no trigger time")

    def schedule(self, reminder: Reminder) -> None:
        """Schedule a reminder, replacing any earlier one with the same id."""
        self.cancel(reminder.id)
        self.scheduler.add_job(
            self.deliver,
            self._trigger_for(reminder),
            args=[reminder],
            id=reminder.id,
            name=reminder.title,
        )
        logger.info(f"Scheduled reminder {reminder.id} ({reminder.kind.value})")

    def cancel(self, reminder_id: str) -> None:
        try:
            self.scheduler.remove_job(reminder_id)
        except JobLookupError:
            return
        logger.debug(f"Cancelled reminder {reminder_id}")

    def pending_ids(self) -> list[str]:
        return [job.id for job in self.scheduler.get_jobs()]

    def start(self) -> None:
        self.scheduler.start()

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
