"""Tests for the shared workflow layer."""

from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from taskflow.adapters.memory_storage import InMemoryKeyValueStore
from taskflow.config import Config
from taskflow.core.projects import ProjectStatus
from taskflow.core.reminders import BREAK_REMINDER_ID, ReminderKind
from taskflow.core.tasks import TaskStatus
from taskflow.core.users import UserPreferences, UserRole
from taskflow.store import EntityStore
from taskflow.workflows import (
    build_dashboard,
    build_store,
    complete_onboarding,
    create_project_from_form,
    create_task_from_form,
    open_project_view,
    open_task_view,
    refresh_analytics,
    schedule_all_reminders,
    seed_tutorial,
    start_task,
    unique_tags,
)


@pytest.fixture
def now():
    return datetime(2025, 1, 15, 12, 0)


@pytest.fixture
def scheduler():
    return MagicMock()


@pytest.fixture
def store(now, scheduler):
    return EntityStore(InMemoryKeyValueStore(), scheduler=scheduler, clock=lambda: now).load()


@pytest.fixture
def onboarded(store):
    complete_onboarding(store, "Ada", "ada@example.com")
    return store


class TestBuildStore:
    def test_uses_configured_dir(self, tmp_path):
        config = Config(data_dir=str(tmp_path), cascade_project_delete=False, due_reminder_lead_hours=3)
        store = build_store(config)
        assert store.storage.data_dir == tmp_path
        assert store.cascade_project_delete is False
        assert store.due_reminder_lead == timedelta(hours=3)

    def test_reloads_previous_data(self, tmp_path):
        config = Config(data_dir=str(tmp_path))
        complete_onboarding(build_store(config), "Ada", "ada@example.com")
        assert build_store(config).current_user.name == "Ada"


class TestOnboarding:
    def test_creates_current_user(self, store):
        result, user = complete_onboarding(store, " Ada ", " ada@example.com ", UserRole.ADMIN)
        assert result
        assert user.name == "Ada"
        assert user.email == "ada@example.com"
        assert store.current_user is user

    def test_invalid_input_creates_nothing(self, store):
        result, user = complete_onboarding(store, "Ada", "nope")
        assert result.message == "Please enter a valid email address"
        assert user is None
        assert store.users == []

    def test_seed_tutorial(self, onboarded):
        welcome, project = seed_tutorial(onboarded)
        assert welcome.title == "Welcome Task"
        assert welcome.assigned_to == onboarded.current_user_id
        assert project.budget == 1000
        assert project.total_tasks == 1


class TestTaskForm:
    def test_creates_task_for_current_user(self, onboarded):
        result, task = create_task_from_form(
            onboarded, "  Write docs ", estimated_hours="2.5", tags=["docs", " docs", "", "x"]
        )
        assert result
        assert task.title == "Write docs"
        assert task.estimated_hours == 2.5
        assert task.assigned_to == onboarded.current_user_id
        assert task.tags == ["docs", "x"]

    def test_rejection_creates_nothing(self, onboarded):
        result, task = create_task_from_form(onboarded, "Write", estimated_hours="-1")
        assert not result
        assert task is None
        assert onboarded.tasks == []

    def test_unknown_project_rejected(self, onboarded):
        result, _ = create_task_from_form(onboarded, "Write", project_id="missing")
        assert result.message == "Selected project no longer exists"

    def test_unique_tags(self):
        assert unique_tags([" a", "b", "a ", ""]) == ["a", "b"]

    def test_start_task_schedules_break(self, onboarded, scheduler):
        _, task = create_task_from_form(onboarded, "Focus")
        scheduler.reset_mock()
        start_task(onboarded, task.id)
        assert task.status == TaskStatus.IN_PROGRESS
        assert scheduler.schedule.call_args.args[0].id == BREAK_REMINDER_ID

    def test_start_task_respects_preferences(self, store, scheduler):
        complete_onboarding(
            store, "Ada", "ada@example.com",
            preferences=UserPreferences(enable_lifestyle_integration=False),
        )
        task = store.create_task("Focus")
        scheduler.reset_mock()
        start_task(store, task.id)
        scheduler.schedule.assert_not_called()


class TestProjectForm:
    def test_creates_project(self, onboarded, now):
        result, project = create_project_from_form(
            onboarded, "Site", budget="1500", end_date=now + timedelta(days=30),
            status=ProjectStatus.ACTIVE,
        )
        assert result
        assert project.budget == 1500
        assert project.start_date == now
        assert project.owner_id == onboarded.current_user_id

    def test_end_before_default_start_rejected(self, onboarded, now):
        result, project = create_project_from_form(onboarded, "Site", end_date=now - timedelta(days=1))
        assert result.message == "End date cannot be before start date"
        assert project is None


class TestListViews:
    def test_views_use_configured_debounce(self, onboarded):
        config = Config(search_debounce_ms=150)
        tasks = open_task_view(onboarded, config)
        projects = open_project_view(onboarded, config)
        assert tasks.debounce_seconds == pytest.approx(0.15)
        assert projects.debounce_seconds == pytest.approx(0.15)
        tasks.close()
        projects.close()

    def test_zero_debounce_searches_immediately(self, onboarded):
        onboarded.create_task("apple")
        onboarded.create_task("banana")
        view = open_task_view(onboarded, Config(search_debounce_ms=0))
        view.search_text = "ban"
        assert [t.title for t in view.results] == ["banana"]
        view.close()

    def test_default_config(self, onboarded):
        view = open_project_view(onboarded)
        assert view.debounce_seconds == pytest.approx(Config().search_debounce_ms / 1000)
        view.close()


class TestAnalytics:
    def test_refresh_and_dashboard(self, onboarded, now):
        done = onboarded.create_task("done", assigned_to=onboarded.current_user_id)
        onboarded.complete_task(done.id)
        onboarded.create_task("late", due_date=now - timedelta(hours=1))

        snapshot = refresh_analytics(onboarded)
        assert snapshot.productivity.completed_tasks == 1
        assert snapshot.productivity.tasks_completed_this_week == 1

        data = build_dashboard(onboarded, Config(weekly_goal=2))
        assert data.weekly_goal_progress == pytest.approx(0.5)
        assert "Overdue Tasks" in [a.title for a in data.alerts]


class TestScheduleAllReminders:
    def test_schedules_everything_implied_by_data(self, onboarded, now):
        onboarded.create_task("due", due_date=now + timedelta(days=2))
        onboarded.create_task("past", due_date=now - timedelta(days=2))
        onboarded.create_project("Spendy", budget=100, actual_cost=90)

        target = MagicMock()
        count = schedule_all_reminders(onboarded, target)

        kinds = [c.args[0].kind for c in target.schedule.call_args_list]
        assert count == 4
        assert kinds == [
            ReminderKind.TASK_DUE,
            ReminderKind.BUDGET_ALERT,
            ReminderKind.BREAK,
            ReminderKind.WORKDAY_END,
        ]

    def test_nothing_without_user_or_data(self, store):
        target = MagicMock()
        assert schedule_all_reminders(store, target) == 0
        target.schedule.assert_not_called()

    def test_schedules_pending_milestones(self, onboarded, now):
        project = onboarded.create_project("Launch")
        onboarded.add_milestone(project.id, "Beta", now + timedelta(days=5))
        done = onboarded.add_milestone(project.id, "Alpha", now + timedelta(days=3))
        onboarded.complete_milestone(project.id, done.id)
        onboarded.add_milestone(project.id, "Kickoff", now - timedelta(days=1))

        target = MagicMock()
        schedule_all_reminders(onboarded, target)

        milestone_reminders = [
            c.args[0] for c in target.schedule.call_args_list
            if c.args[0].kind == ReminderKind.MILESTONE_DUE
        ]
        assert [r.body for r in milestone_reminders] == ["Beta for Launch is due soon"]
