"""Tests for reminder construction."""

from datetime import datetime, time, timedelta

import pytest

from taskflow.core.projects import Project, ProjectMilestone
from taskflow.core.reminders import (
    BREAK_REMINDER_ID,
    ReminderKind,
    break_reminder,
    budget_alert,
    end_of_workday_reminder,
    milestone_reminder,
    parse_clock,
    task_due_reminder,
)
from taskflow.core.tasks import Task, TaskStatus
from taskflow.core.users import UserPreferences


@pytest.fixture
def now():
    return datetime(2025, 1, 15, 12, 0)


def make_task(now, **kwargs):
    return Task(title="Ship it", created_at=now, updated_at=now, id="t1", **kwargs)


class TestTaskDueReminder:
    def test_fires_a_day_before(self, now):
        due = now + timedelta(days=3)
        reminder = task_due_reminder(make_task(now, due_date=due), now)
        assert reminder.id == "task_due_t1"
        assert reminder.kind == ReminderKind.TASK_DUE
        assert reminder.title == "Task Due Tomorrow"
        assert reminder.fire_at == due - timedelta(days=1)

    def test_fires_immediately_when_inside_lead(self, now):
        reminder = task_due_reminder(make_task(now, due_date=now + timedelta(hours=2)), now)
        assert reminder.fire_at == now

    def test_custom_lead(self, now):
        due = now + timedelta(hours=10)
        reminder = task_due_reminder(make_task(now, due_date=due), now, lead=timedelta(hours=2))
        assert reminder.fire_at == due - timedelta(hours=2)
        assert reminder.title == "Task Due Soon"

    def test_none_without_due_date(self, now):
        assert task_due_reminder(make_task(now), now) is None

    def test_none_when_past_due(self, now):
        assert task_due_reminder(make_task(now, due_date=now - timedelta(minutes=1)), now) is None

    def test_none_when_completed(self, now):
        task = make_task(now, due_date=now + timedelta(days=2), status=TaskStatus.COMPLETED)
        assert task_due_reminder(task, now) is None


class TestLifestyleReminders:
    def test_break_repeats_at_preferred_interval(self):
        reminder = break_reminder(UserPreferences(break_interval_minutes=45))
        assert reminder.id == BREAK_REMINDER_ID
        assert reminder.repeat_every == timedelta(minutes=45)
        assert reminder.fire_at is None

    def test_end_of_workday_daily(self):
        reminder = end_of_workday_reminder(UserPreferences(work_end_time="18:30"))
        assert reminder.kind == ReminderKind.WORKDAY_END
        assert reminder.daily_at == time(18, 30)

    def test_parse_clock(self):
        assert parse_clock("09:05") == time(9, 5)

    def test_parse_clock_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_clock("noon")


class TestBudgetAlert:
    def make_project(self, now, **kwargs):
        return Project(name="Site", owner_id="u1", start_date=now, created_at=now, updated_at=now,
                       id="p1", **kwargs)

    def test_alert_at_threshold(self, now):
        alert = budget_alert(self.make_project(now, budget=1000, actual_cost=800), now)
        assert alert.id == "budget_p1"
        assert alert.fire_at == now
        assert "80%" in alert.body

    def test_no_alert_below_threshold(self, now):
        assert budget_alert(self.make_project(now, budget=1000, actual_cost=799), now) is None

    def test_no_alert_without_budget_or_cost(self, now):
        assert budget_alert(self.make_project(now, actual_cost=500), now) is None
        assert budget_alert(self.make_project(now, budget=1000), now) is None

    def test_custom_threshold(self, now):
        project = self.make_project(now, budget=1000, actual_cost=600)
        assert budget_alert(project, now, threshold=0.5) is not None


class TestMilestoneReminder:
    def make(self, now, due, **kwargs):
        project = Project(name="Launch", owner_id="u1", start_date=now, created_at=now, updated_at=now,
                          id="p1")
        milestone = ProjectMilestone(title="Beta", due_date=due, project_id="p1", created_at=now,
                                     id="m1", **kwargs)
        return project, milestone

    def test_fires_a_day_before(self, now):
        due = now + timedelta(days=3)
        reminder = milestone_reminder(*self.make(now, due), now)
        assert reminder.id == "milestone_m1"
        assert reminder.kind == ReminderKind.MILESTONE_DUE
        assert reminder.title == "Project Milestone Due"
        assert reminder.body == "Beta for Launch is due soon"
        assert reminder.fire_at == due - timedelta(days=1)

    def test_fires_immediately_when_inside_lead(self, now):
        reminder = milestone_reminder(*self.make(now, now + timedelta(hours=3)), now)
        assert reminder.fire_at == now

    def test_none_when_past_due(self, now):
        assert milestone_reminder(*self.make(now, now - timedelta(minutes=1)), now) is None

    def test_none_when_completed(self, now):
        project, milestone = self.make(now, now + timedelta(days=3))
        milestone.complete(now)
        assert milestone_reminder(project, milestone, now) is None
