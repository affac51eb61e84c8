"""Pure task domain logic - no I/O dependencies."""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum


class TaskStatus(Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    COMPLETED = "completed"
    BLOCKED = "blocked"
    CANCELLED = "cancelled"


class TaskPriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        """Higher is more pressing (urgent=3 ... low=0)."""
        return PRIORITY_RANK[self]


PRIORITY_RANK = {
    TaskPriority.LOW: 0,
    TaskPriority.MEDIUM: 1,
    TaskPriority.HIGH: 2,
    TaskPriority.URGENT: 3,
}

STATUS_ORDER = [
    TaskStatus.TODO,
    TaskStatus.IN_PROGRESS,
    TaskStatus.REVIEW,
    TaskStatus.BLOCKED,
    TaskStatus.COMPLETED,
    TaskStatus.CANCELLED,
]


def new_id() -> str:
    return uuid.uuid4().hex


def iso_or_none(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def parse_iso(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


@dataclass
class TaskComment:
    """A comment left on a task."""

    content: str
    author_id: str
    created_at: datetime
    id: str = field(default_factory=new_id)
    updated_at: datetime | None = None
    mentions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "content": self.content,
            "author_id": self.author_id,
            "created_at": self.created_at.isoformat(),
            "updated_at": iso_or_none(self.updated_at),
            "mentions": list(self.mentions),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TaskComment":
        return cls(
            id=data["id"],
            content=data.get("content", ""),
            author_id=data["author_id"],
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=parse_iso(data.get("updated_at")),
            mentions=list(data.get("mentions", [])),
        )


@dataclass
class Task:
    """A unit of work, optionally attached to a project and an assignee."""

    title: str
    created_at: datetime
    updated_at: datetime
    id: str = field(default_factory=new_id)
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    assigned_to: str | None = None
    project_id: str | None = None
    due_date: datetime | None = None
    estimated_hours: float | None = None
    actual_hours: float | None = None
    tags: list[str] = field(default_factory=list)
    comments: list[TaskComment] = field(default_factory=list)
    completed_at: datetime | None = None
    budget: float | None = None
    actual_cost: float | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def is_overdue(self, now: datetime | None = None) -> bool:
        """Due date passed and not completed."""
        if not self.due_date:
            return False
        now = now or datetime.now()
        return self.due_date < now and not self.is_completed

    def set_status(self, status: TaskStatus, now: datetime | None = None) -> None:
        """Change status, keeping completed_at in step with it."""
        now = now or datetime.now()
        if status == TaskStatus.COMPLETED and self.completed_at is None:
            self.completed_at = now
        elif status != TaskStatus.COMPLETED:
            self.completed_at = None
        self.status = status

    def completion_hours(self) -> float | None:
        """Hours between creation and completion, if completed."""
        if not self.completed_at:
            return None
        return (self.completed_at - self.created_at).total_seconds() / 3600

    def comment_authors(self) -> set[str]:
        return {c.author_id for c in self.comments}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "assigned_to": self.assigned_to,
            "project_id": self.project_id,
            "due_date": iso_or_none(self.due_date),
            "estimated_hours": self.estimated_hours,
            "actual_hours": self.actual_hours,
            "tags": list(self.tags),
            "comments": [c.to_dict() for c in self.comments],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "completed_at": iso_or_none(self.completed_at),
            "budget": self.budget,
            "actual_cost": self.actual_cost,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """Create Task from its stored snapshot form."""
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description", ""),
            status=TaskStatus(data.get("status", "todo")),
            priority=TaskPriority(data.get("priority", "medium")),
            assigned_to=data.get("assigned_to"),
            project_id=data.get("project_id"),
            due_date=parse_iso(data.get("due_date")),
            estimated_hours=data.get("estimated_hours"),
            actual_hours=data.get("actual_hours"),
            tags=list(data.get("tags", [])),
            comments=[TaskComment.from_dict(c) for c in data.get("comments", [])],
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
            completed_at=parse_iso(data.get("completed_at")),
            budget=data.get("budget"),
            actual_cost=data.get("actual_cost"),
        )


class TaskFilter(Enum):
    ALL = "all"
    MY_TASKS = "my_tasks"
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    COMPLETED = "completed"
    BLOCKED = "blocked"
    OVERDUE = "overdue"
    THIS_WEEK = "this_week"


class TaskSort(Enum):
    DATE_CREATED = "date_created"
    DUE_DATE = "due_date"
    PRIORITY = "priority"
    TITLE = "title"
    STATUS = "status"


_STATUS_FILTERS = {
    TaskFilter.TODO: TaskStatus.TODO,
    TaskFilter.IN_PROGRESS: TaskStatus.IN_PROGRESS,
    TaskFilter.REVIEW: TaskStatus.REVIEW,
    TaskFilter.COMPLETED: TaskStatus.COMPLETED,
    TaskFilter.BLOCKED: TaskStatus.BLOCKED,
}


@dataclass
class TaskCounts:
    todo: int = 0
    in_progress: int = 0
    completed: int = 0
    overdue: int = 0


def matches_search(task: Task, search_text: str) -> bool:
    """Case-insensitive substring match on title, description and tags."""
    if not search_text:
        return True
    needle = search_text.casefold()
    return (
        needle in task.title.casefold()
        or needle in task.description.casefold()
        or any(needle in tag.casefold() for tag in task.tags)
    )


def filter_tasks(
    tasks: list[Task],
    task_filter: TaskFilter,
    current_user_id: str | None = None,
    now: datetime | None = None,
) -> list[Task]:
    """
    Apply one of the fixed task filters.

    Pure function - no I/O.
    """
    now = now or datetime.now()

    if task_filter == TaskFilter.ALL:
        return list(tasks)
    if task_filter == TaskFilter.MY_TASKS:
        if current_user_id is None:
            return []
        return [t for t in tasks if t.assigned_to == current_user_id]
    if task_filter == TaskFilter.OVERDUE:
        return [t for t in tasks if t.is_overdue(now)]
    if task_filter == TaskFilter.THIS_WEEK:
        end_of_window = now + timedelta(days=7)
        return [t for t in tasks if t.due_date and t.due_date <= end_of_window]

    status = _STATUS_FILTERS[task_filter]
    return [t for t in tasks if t.status == status]


def sort_tasks(tasks: list[Task], sort: TaskSort) -> list[Task]:
    """
    Sort tasks by the selected key. Stable, so ties keep input order.

    Pure function - no I/O.
    """
    match sort:
        case TaskSort.DATE_CREATED:
            return sorted(tasks, key=lambda t: t.created_at, reverse=True)
        case TaskSort.DUE_DATE:
            # Missing due dates sort last
            return sorted(tasks, key=lambda t: (t.due_date is None, t.due_date or datetime.min))
        case TaskSort.PRIORITY:
            return sorted(tasks, key=lambda t: -t.priority.rank)
        case TaskSort.TITLE:
            return sorted(tasks, key=lambda t: t.title.casefold())
        case TaskSort.STATUS:
            return sorted(tasks, key=lambda t: STATUS_ORDER.index(t.status))
    raise ValueError(f"Unknown task sort: {sort}")


def apply_task_view(
    tasks: list[Task],
    search_text: str = "",
    task_filter: TaskFilter = TaskFilter.ALL,
    sort: TaskSort = TaskSort.DATE_CREATED,
    current_user_id: str | None = None,
    now: datetime | None = None,
    priority: TaskPriority | None = None,
    project_id: str | None = None,
) -> list[Task]:
    """
    Search, filter and sort tasks for display.

    Pure function - no I/O. Input tasks are never mutated.
    """
    now = now or datetime.now()
    result = [t for t in tasks if matches_search(t, search_text)]
    result = filter_tasks(result, task_filter, current_user_id, now)
    if priority is not None:
        result = [t for t in result if t.priority == priority]
    if project_id is not None:
        result = [t for t in result if t.project_id == project_id]
    return sort_tasks(result, sort)


def count_by_status(tasks: list[Task], now: datetime | None = None) -> TaskCounts:
    now = now or datetime.now()
    return TaskCounts(
        todo=sum(1 for t in tasks if t.status == TaskStatus.TODO),
        in_progress=sum(1 for t in tasks if t.status == TaskStatus.IN_PROGRESS),
        completed=sum(1 for t in tasks if t.is_completed),
        overdue=sum(1 for t in tasks if t.is_overdue(now)),
    )


def filter_overdue(tasks: list[Task], now: datetime | None = None) -> list[Task]:
    """Filter to overdue tasks only."""
    now = now or datetime.now()
    return [t for t in tasks if t.is_overdue(now)]


def completion_rate(tasks: list[Task]) -> float:
    """Completed share of tasks as a percentage (0 for no tasks)."""
    if not tasks:
        return 0.0
    return sum(1 for t in tasks if t.is_completed) / len(tasks) * 100


def toggle_status(task: Task, now: datetime | None = None) -> Task:
    """
    Advance a task through todo -> in progress -> completed -> todo.

    Returns a new Task; other statuses are left alone.
    """
    now = now or datetime.now()
    toggled = replace(task, tags=list(task.tags), comments=list(task.comments))
    match task.status:
        case TaskStatus.TODO:
            toggled.set_status(TaskStatus.IN_PROGRESS, now)
        case TaskStatus.IN_PROGRESS:
            toggled.set_status(TaskStatus.COMPLETED, now)
        case TaskStatus.COMPLETED:
            toggled.set_status(TaskStatus.TODO, now)
    return toggled


def duplicate_task(task: Task, now: datetime | None = None) -> Task:
    """Copy a task's content into a fresh todo task."""
    now = now or datetime.now()
    return Task(
        title=f"{task.title} (Copy)",
        description=task.description,
        project_id=task.project_id,
        priority=task.priority,
        tags=list(task.tags),
        estimated_hours=task.estimated_hours,
        created_at=now,
        updated_at=now,
    )
