"""Pure reminder construction - what to schedule, never how."""

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from enum import Enum

from .projects import Project, ProjectMilestone
from .tasks import Task
from .users import UserPreferences

BREAK_REMINDER_ID = "break_reminder"
WORKDAY_END_REMINDER_ID = "workday_end"
DEFAULT_BUDGET_THRESHOLD = 0.8


class ReminderKind(Enum):
    TASK_DUE = "task_due"
    BREAK = "break"
    WORKDAY_END = "workday_end"
    BUDGET_ALERT = "budget_alert"
    MILESTONE_DUE = "milestone_due"


@dataclass(frozen=True)
class Reminder:
    """
    A local alert to hand to a ReminderScheduler.

    Exactly one of fire_at (once), repeat_every (interval) or daily_at
    (every day at a wall-clock time) is set.
    """

    id: str
    kind: ReminderKind
    title: str
    body: str
    fire_at: datetime | None = None
    repeat_every: timedelta | None = None
    daily_at: time | None = None


def task_due_reminder_id(task_id: str) -> str:
    return f"task_due_{task_id}"


def task_due_reminder(
    task: Task,
    now: datetime | None = None,
    lead: timedelta = timedelta(days=1),
) -> Reminder | None:
    """Reminder `lead` before a task's due date, if it is still ahead of us."""
    now = now or datetime.now()
    if not task.due_date or task.due_date <= now or task.is_completed:
        return None
    return Reminder(
        id=task_due_reminder_id(task.id),
        kind=ReminderKind.TASK_DUE,
        title="Task Due Tomorrow" if lead == timedelta(days=1) else "Task Due Soon",
        body=f"{task.title} is due {task.due_date.strftime('%a %b %d %H:%M')}",
        fire_at=max(task.due_date - lead, now),
    )


def break_reminder(preferences: UserPreferences) -> Reminder:
    return Reminder(
        id=BREAK_REMINDER_ID,
        kind=ReminderKind.BREAK,
        title="Time for a Break!",
        body="You've been working hard. Take a 15-minute break to recharge.",
        repeat_every=timedelta(minutes=preferences.break_interval_minutes),
    )


def parse_clock(value: str) -> time:
    """Parse 'HH:MM' into a time."""
    hour, minute = map(int, value.split(":"))
    return time(hour, minute)


def end_of_workday_reminder(preferences: UserPreferences) -> Reminder:
    return Reminder(
        id=WORKDAY_END_REMINDER_ID,
        kind=ReminderKind.WORKDAY_END,
        title="Workday Complete",
        body="Great work today! Time to wrap up and recharge.",
        daily_at=parse_clock(preferences.work_end_time),
    )


def budget_alert(
    project: Project,
    now: datetime | None = None,
    threshold: float = DEFAULT_BUDGET_THRESHOLD,
) -> Reminder | None:
    """Immediate alert once a project has used `threshold` of its budget."""
    if not project.budget or project.actual_cost is None:
        return None
    if project.budget_utilization < threshold:
        return None
    now = now or datetime.now()
    return Reminder(
        id=f"budget_{project.id}",
        kind=ReminderKind.BUDGET_ALERT,
        title="Budget Alert",
        body=f"{project.name} has used {int(project.budget_utilization * 100)}% of its budget",
        fire_at=now,
    )


def milestone_reminder_id(milestone_id: str) -> str:
    return f"milestone_{milestone_id}"


def milestone_reminder(
    project: Project,
    milestone: ProjectMilestone,
    now: datetime | None = None,
    lead: timedelta = timedelta(days=1),
) -> Reminder | None:
    """Reminder `lead` before a milestone is due, unless it is done or already past."""
    now = now or datetime.now()
    if milestone.is_completed or milestone.due_date <= now:
        return None
    return Reminder(
        id=milestone_reminder_id(milestone.id),
        kind=ReminderKind.MILESTONE_DUE,
        title="Project Milestone Due",
        body=f"{milestone.title} for {project.name} is due soon",
        fire_at=max(milestone.due_date - lead, now),
    )
