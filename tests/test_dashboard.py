"""Tests for dashboard assembly and display labels."""

from datetime import datetime, timedelta

import pytest

from taskflow.core.analytics import FinancialInsights, ProductivityMetrics
from taskflow.core.dashboard import AlertKind, assemble_dashboard, today_tasks, upcoming_deadlines
from taskflow.core.display import display_name, hex_color
from taskflow.core.projects import Project, ProjectStatus
from taskflow.core.tasks import Task, TaskFilter, TaskPriority, TaskStatus


@pytest.fixture
def now():
    return datetime(2025, 1, 15, 9, 0)


def make_task(now, title, **kwargs):
    kwargs.setdefault("created_at", now)
    kwargs.setdefault("updated_at", now)
    return Task(title=title, **kwargs)


def make_project(now, name, **kwargs):
    kwargs.setdefault("updated_at", now)
    return Project(name=name, owner_id="u1", start_date=now, created_at=now, **kwargs)


class TestSections:
    def test_today_tasks_by_priority(self, now):
        tasks = [
            make_task(now, "low", due_date=now.replace(hour=17), priority=TaskPriority.LOW),
            make_task(now, "urgent", due_date=now.replace(hour=18), priority=TaskPriority.URGENT),
            make_task(now, "tomorrow", due_date=now + timedelta(days=1)),
            make_task(now, "done", due_date=now, status=TaskStatus.COMPLETED),
        ]
        assert [t.title for t in today_tasks(tasks, now)] == ["urgent", "low"]

    def test_upcoming_deadlines_capped_and_sorted(self, now):
        tasks = [make_task(now, f"t{i}", due_date=now + timedelta(days=6 - i)) for i in range(7)]
        tasks.append(make_task(now, "far", due_date=now + timedelta(days=8)))
        result = upcoming_deadlines(tasks, now)
        assert [t.title for t in result] == ["t6", "t5", "t4", "t3", "t2"]


class TestAssembleDashboard:
    def test_alerts_and_goal(self, now):
        tasks = [
            make_task(now, "late", due_date=now - timedelta(days=1), assigned_to="u1"),
            make_task(now, "soon", due_date=now + timedelta(days=2), assigned_to="u1"),
        ]
        projects = [
            make_project(now, "Hot", status=ProjectStatus.ACTIVE, budget=100, actual_cost=95),
            make_project(now, "Idle", status=ProjectStatus.PLANNING),
        ]
        metrics = ProductivityMetrics(tasks_completed_this_week=5, productivity_trend=50)

        data = assemble_dashboard(tasks, projects, "u1", metrics, FinancialInsights(), now, weekly_goal=10)

        assert [a.title for a in data.alerts] == [
            "Overdue Tasks",
            "Budget Alert",
            "Upcoming Deadlines",
            "Great Progress!",
        ]
        assert data.alerts[-1].kind == AlertKind.SUCCESS
        assert [p.name for p in data.active_projects] == ["Hot"]
        assert data.weekly_goal_progress == pytest.approx(0.5)
        assert len(data.recent_tasks) == 2
        assert data.recent_completion_rate == 0.0

    def test_goal_progress_capped(self, now):
        metrics = ProductivityMetrics(tasks_completed_this_week=25)
        data = assemble_dashboard([], [], None, metrics, FinancialInsights(), now, weekly_goal=10)
        assert data.weekly_goal_progress == 1.0
        assert data.alerts == []
        assert data.recent_tasks == []


class TestDisplay:
    def test_labels(self):
        assert display_name(TaskStatus.IN_PROGRESS) == "In Progress"
        assert display_name(TaskFilter.MY_TASKS) == "My Tasks"
        assert display_name(ProjectStatus.ON_HOLD) == "On Hold"

    def test_colors(self):
        assert hex_color(TaskPriority.URGENT) == "#EF4444"
        assert hex_color(TaskFilter.ALL) is None
