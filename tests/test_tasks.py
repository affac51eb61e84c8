"""Tests for core task logic."""

from datetime import datetime, timedelta

import pytest

from taskflow.core.tasks import (
    Task,
    TaskComment,
    TaskFilter,
    TaskPriority,
    TaskSort,
    TaskStatus,
    apply_task_view,
    completion_rate,
    count_by_status,
    duplicate_task,
    filter_overdue,
    filter_tasks,
    matches_search,
    sort_tasks,
    toggle_status,
)


# Fixtures
@pytest.fixture
def now():
    return datetime(2025, 1, 15, 12, 0)


def make_task(now, title="Task", days_ago=0, **kwargs):
    created = now - timedelta(days=days_ago)
    return Task(title=title, created_at=created, updated_at=created, **kwargs)


@pytest.fixture
def sample_tasks(now):
    """Sample tasks covering various statuses, priorities and due dates."""
    return [
        make_task(now, "Write report", days_ago=3, id="1", priority=TaskPriority.HIGH,
                  due_date=now + timedelta(days=2), assigned_to="u1", tags=["work"]),
        make_task(now, "buy groceries", days_ago=1, id="2", priority=TaskPriority.LOW,
                  description="Milk and eggs", assigned_to="u2"),
        make_task(now, "Fix login bug", days_ago=5, id="3", priority=TaskPriority.URGENT,
                  status=TaskStatus.IN_PROGRESS, due_date=now - timedelta(days=1), assigned_to="u1"),
        make_task(now, "Archive old files", days_ago=2, id="4", status=TaskStatus.COMPLETED,
                  due_date=now - timedelta(days=3), completed_at=now - timedelta(days=1)),
        make_task(now, "Plan sprint", days_ago=4, id="5", status=TaskStatus.BLOCKED,
                  due_date=now + timedelta(days=10), project_id="p1"),
    ]


class TestTask:
    def test_overdue_when_due_date_passed(self, now):
        task = make_task(now, due_date=now - timedelta(hours=1))
        assert task.is_overdue(now)

    def test_not_overdue_when_completed(self, now):
        task = make_task(now, due_date=now - timedelta(hours=1), status=TaskStatus.COMPLETED)
        assert not task.is_overdue(now)

    def test_not_overdue_without_due_date(self, now):
        assert not make_task(now).is_overdue(now)

    def test_not_overdue_when_due_in_future(self, now):
        assert not make_task(now, due_date=now + timedelta(minutes=1)).is_overdue(now)

    def test_set_status_completed_stamps_completed_at(self, now):
        task = make_task(now)
        task.set_status(TaskStatus.COMPLETED, now)
        assert task.completed_at == now

    def test_set_status_completed_keeps_existing_stamp(self, now):
        earlier = now - timedelta(hours=3)
        task = make_task(now, status=TaskStatus.COMPLETED, completed_at=earlier)
        task.set_status(TaskStatus.COMPLETED, now)
        assert task.completed_at == earlier

    def test_leaving_completed_clears_completed_at(self, now):
        task = make_task(now, status=TaskStatus.COMPLETED, completed_at=now)
        task.set_status(TaskStatus.TODO, now)
        assert task.completed_at is None

    def test_completion_hours(self, now):
        task = make_task(now, days_ago=0, completed_at=now + timedelta(hours=2))
        assert task.completion_hours() == pytest.approx(2.0)

    def test_completion_hours_none_when_open(self, now):
        assert make_task(now).completion_hours() is None

    def test_comment_authors(self, now):
        task = make_task(now, comments=[
            TaskComment("a", "u1", now),
            TaskComment("b", "u2", now),
            TaskComment("c", "u1", now),
        ])
        assert task.comment_authors() == {"u1", "u2"}

    def test_dict_round_trip_keeps_comments_and_dates(self, now):
        task = make_task(
            now,
            due_date=now + timedelta(days=1),
            tags=["x"],
            comments=[TaskComment("hello", "u1", now, mentions=["u2"])],
            estimated_hours=3.5,
        )
        restored = Task.from_dict(task.to_dict())
        assert restored == task

    def test_from_dict_defaults(self, now):
        data = {
            "id": "abc",
            "title": "Minimal",
            "created_at": now.isoformat(),
            "updated_at": now.isoformat(),
        }
        task = Task.from_dict(data)
        assert task.status == TaskStatus.TODO
        assert task.priority == TaskPriority.MEDIUM
        assert task.tags == []


class TestPriority:
    def test_rank_order(self):
        ranks = [p.rank for p in (TaskPriority.LOW, TaskPriority.MEDIUM, TaskPriority.HIGH, TaskPriority.URGENT)]
        assert ranks == sorted(ranks)


class TestSearch:
    def test_empty_search_matches_everything(self, now):
        assert matches_search(make_task(now), "")

    def test_case_insensitive_title(self, now):
        assert matches_search(make_task(now, "Write Report"), "report")

    def test_matches_description(self, sample_tasks):
        assert matches_search(sample_tasks[1], "EGGS")

    def test_matches_tag(self, sample_tasks):
        assert matches_search(sample_tasks[0], "wor")

    def test_no_match(self, sample_tasks):
        assert not matches_search(sample_tasks[0], "holiday")


class TestFilterTasks:
    def test_all_returns_copy(self, sample_tasks, now):
        result = filter_tasks(sample_tasks, TaskFilter.ALL, now=now)
        assert result == sample_tasks
        assert result is not sample_tasks

    def test_my_tasks(self, sample_tasks, now):
        result = filter_tasks(sample_tasks, TaskFilter.MY_TASKS, current_user_id="u1", now=now)
        assert [t.id for t in result] == ["1", "3"]

    def test_my_tasks_without_user_is_empty(self, sample_tasks, now):
        assert filter_tasks(sample_tasks, TaskFilter.MY_TASKS, now=now) == []

    def test_status_filter(self, sample_tasks, now):
        result = filter_tasks(sample_tasks, TaskFilter.BLOCKED, now=now)
        assert [t.id for t in result] == ["5"]

    def test_overdue_excludes_completed(self, sample_tasks, now):
        result = filter_tasks(sample_tasks, TaskFilter.OVERDUE, now=now)
        assert [t.id for t in result] == ["3"]

    def test_this_week_includes_past_due(self, sample_tasks, now):
        result = filter_tasks(sample_tasks, TaskFilter.THIS_WEEK, now=now)
        assert [t.id for t in result] == ["1", "3", "4"]


class TestSortTasks:
    def test_date_created_newest_first(self, sample_tasks):
        result = sort_tasks(sample_tasks, TaskSort.DATE_CREATED)
        assert [t.id for t in result] == ["2", "4", "1", "5", "3"]

    def test_due_date_missing_last(self, sample_tasks):
        result = sort_tasks(sample_tasks, TaskSort.DUE_DATE)
        assert [t.id for t in result] == ["4", "3", "1", "5", "2"]

    def test_priority_highest_first(self, sample_tasks):
        result = sort_tasks(sample_tasks, TaskSort.PRIORITY)
        assert [t.id for t in result] == ["3", "1", "4", "5", "2"]

    def test_title_case_insensitive(self, sample_tasks):
        result = sort_tasks(sample_tasks, TaskSort.TITLE)
        assert [t.title for t in result] == [
            "Archive old files",
            "buy groceries",
            "Fix login bug",
            "Plan sprint",
            "Write report",
        ]

    def test_status_order(self, sample_tasks):
        result = sort_tasks(sample_tasks, TaskSort.STATUS)
        assert [t.status for t in result] == [
            TaskStatus.TODO,
            TaskStatus.TODO,
            TaskStatus.IN_PROGRESS,
            TaskStatus.BLOCKED,
            TaskStatus.COMPLETED,
        ]

    def test_sort_is_stable(self, now):
        tasks = [make_task(now, "same", id=str(i)) for i in range(4)]
        result = sort_tasks(tasks, TaskSort.TITLE)
        assert [t.id for t in result] == ["0", "1", "2", "3"]


class TestApplyTaskView:
    def test_search_then_filter_then_sort(self, sample_tasks, now):
        result = apply_task_view(
            sample_tasks,
            search_text="i",
            task_filter=TaskFilter.MY_TASKS,
            sort=TaskSort.PRIORITY,
            current_user_id="u1",
            now=now,
        )
        assert [t.id for t in result] == ["3", "1"]

    def test_priority_and_project_narrowing(self, sample_tasks, now):
        assert [t.id for t in apply_task_view(sample_tasks, priority=TaskPriority.LOW, now=now)] == ["2"]
        assert [t.id for t in apply_task_view(sample_tasks, project_id="p1", now=now)] == ["5"]

    def test_does_not_mutate_input(self, sample_tasks, now):
        before = list(sample_tasks)
        apply_task_view(sample_tasks, sort=TaskSort.TITLE, now=now)
        assert sample_tasks == before

    def test_empty_input(self, now):
        assert apply_task_view([], search_text="x", now=now) == []

    @pytest.mark.parametrize("sort", list(TaskSort))
    def test_repeatable(self, sample_tasks, now, sort):
        first = apply_task_view(sample_tasks, sort=sort, now=now)
        second = apply_task_view(sample_tasks, sort=sort, now=now)
        assert [t.id for t in first] == [t.id for t in second]


class TestCounts:
    def test_count_by_status(self, sample_tasks, now):
        counts = count_by_status(sample_tasks, now)
        assert (counts.todo, counts.in_progress, counts.completed, counts.overdue) == (2, 1, 1, 1)

    def test_filter_overdue(self, sample_tasks, now):
        assert [t.id for t in filter_overdue(sample_tasks, now)] == ["3"]

    def test_completion_rate_two_of_three(self, now):
        tasks = [
            make_task(now, status=TaskStatus.TODO),
            make_task(now, status=TaskStatus.COMPLETED),
            make_task(now, status=TaskStatus.COMPLETED),
        ]
        assert completion_rate(tasks) == pytest.approx(66.666, abs=0.01)

    def test_completion_rate_empty(self):
        assert completion_rate([]) == 0.0


class TestToggleAndDuplicate:
    def test_toggle_cycle(self, now):
        task = make_task(now)
        step1 = toggle_status(task, now)
        step2 = toggle_status(step1, now)
        step3 = toggle_status(step2, now)
        assert step1.status == TaskStatus.IN_PROGRESS
        assert step2.status == TaskStatus.COMPLETED
        assert step2.completed_at == now
        assert step3.status == TaskStatus.TODO
        assert step3.completed_at is None

    def test_toggle_returns_new_task(self, now):
        task = make_task(now)
        toggle_status(task, now)
        assert task.status == TaskStatus.TODO

    def test_toggle_leaves_blocked_alone(self, now):
        task = make_task(now, status=TaskStatus.BLOCKED)
        assert toggle_status(task, now).status == TaskStatus.BLOCKED

    def test_duplicate(self, now):
        task = make_task(now, "Report", id="x", status=TaskStatus.COMPLETED,
                         tags=["a"], assigned_to="u1", completed_at=now)
        later = now + timedelta(hours=1)
        copy = duplicate_task(task, later)
        assert copy.title == "Report (Copy)"
        assert copy.id != task.id
        assert copy.status == TaskStatus.TODO
        assert copy.completed_at is None
        assert copy.created_at == later
        assert copy.tags == ["a"] and copy.tags is not task.tags
