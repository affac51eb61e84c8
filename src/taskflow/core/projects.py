"""Pure project domain logic - no I/O dependencies."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .tasks import Task, iso_or_none, new_id, parse_iso


class ProjectStatus(Enum):
    PLANNING = "planning"
    ACTIVE = "active"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


DEFAULT_PROJECT_COLOR = "#3CC45B"


@dataclass
class ProjectMilestone:
    """A dated checkpoint inside a project."""

    title: str
    due_date: datetime
    project_id: str
    created_at: datetime
    id: str = field(default_factory=new_id)
    description: str = ""
    is_completed: bool = False
    completed_at: datetime | None = None

    def complete(self, now: datetime | None = None) -> None:
        self.is_completed = True
        self.completed_at = now or datetime.now()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "due_date": self.due_date.isoformat(),
            "is_completed": self.is_completed,
            "completed_at": iso_or_none(self.completed_at),
            "project_id": self.project_id,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProjectMilestone":
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description", ""),
            due_date=datetime.fromisoformat(data["due_date"]),
            is_completed=data.get("is_completed", False),
            completed_at=parse_iso(data.get("completed_at")),
            project_id=data["project_id"],
            created_at=datetime.fromisoformat(data["created_at"]),
        )


@dataclass
class Project:
    """
    A project grouping tasks under an owner and a team.

    total_tasks, completed_tasks, overdue_tasks, progress and
    average_task_completion_time are derived from member tasks via
    refresh_counters() and are never set directly by callers.
    """

    name: str
    owner_id: str
    start_date: datetime
    created_at: datetime
    updated_at: datetime
    id: str = field(default_factory=new_id)
    description: str = ""
    status: ProjectStatus = ProjectStatus.PLANNING
    team_members: list[str] = field(default_factory=list)
    end_date: datetime | None = None
    budget: float | None = None
    actual_cost: float | None = None
    progress: float = 0.0
    tags: list[str] = field(default_factory=list)
    color: str = DEFAULT_PROJECT_COLOR
    is_archived: bool = False
    milestones: list[ProjectMilestone] = field(default_factory=list)
    total_tasks: int = 0
    completed_tasks: int = 0
    overdue_tasks: int = 0
    average_task_completion_time: float | None = None

    @property
    def completion_percentage(self) -> int:
        if self.total_tasks <= 0:
            return 0
        return int(self.completed_tasks / self.total_tasks * 100)

    @property
    def budget_utilization(self) -> float:
        """Spent / budget as a fraction (0 without a positive budget)."""
        if not self.budget or self.budget <= 0:
            return 0.0
        return (self.actual_cost or 0) / self.budget

    @property
    def is_over_budget(self) -> bool:
        if self.budget is None or self.actual_cost is None:
            return False
        return self.actual_cost > self.budget

    def involves(self, user_id: str | None) -> bool:
        """Owned by or includes the user as a team member."""
        if user_id is None:
            return False
        return self.owner_id == user_id or user_id in self.team_members

    def refresh_counters(self, tasks: list[Task], now: datetime | None = None) -> None:
        """Recompute derived counters from the tasks that belong to this project."""
        now = now or datetime.now()
        own = [t for t in tasks if t.project_id == self.id]
        completed = [t for t in own if t.is_completed]
        durations = [h for h in (t.completion_hours() for t in completed) if h is not None]

        self.total_tasks = len(own)
        self.completed_tasks = len(completed)
        self.overdue_tasks = sum(1 for t in own if t.is_overdue(now))
        self.progress = self.completed_tasks / self.total_tasks if self.total_tasks else 0.0
        self.average_task_completion_time = (
            sum(durations) / len(durations) if durations else None
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "owner_id": self.owner_id,
            "team_members": list(self.team_members),
            "start_date": self.start_date.isoformat(),
            "end_date": iso_or_none(self.end_date),
            "budget": self.budget,
            "actual_cost": self.actual_cost,
            "progress": self.progress,
            "tags": list(self.tags),
            "color": self.color,
            "is_archived": self.is_archived,
            "milestones": [m.to_dict() for m in self.milestones],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "total_tasks": self.total_tasks,
            "completed_tasks": self.completed_tasks,
            "overdue_tasks": self.overdue_tasks,
            "average_task_completion_time": self.average_task_completion_time,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Project":
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description", ""),
            status=ProjectStatus(data.get("status", "planning")),
            owner_id=data["owner_id"],
            team_members=list(data.get("team_members", [])),
            start_date=datetime.fromisoformat(data["start_date"]),
            end_date=parse_iso(data.get("end_date")),
            budget=data.get("budget"),
            actual_cost=data.get("actual_cost"),
            progress=data.get("progress", 0.0),
            tags=list(data.get("tags", [])),
            color=data.get("color", DEFAULT_PROJECT_COLOR),
            is_archived=data.get("is_archived", False),
            milestones=[ProjectMilestone.from_dict(m) for m in data.get("milestones") or []],
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
            total_tasks=data.get("total_tasks", 0),
            completed_tasks=data.get("completed_tasks", 0),
            overdue_tasks=data.get("overdue_tasks", 0),
            average_task_completion_time=data.get("average_task_completion_time"),
        )


def get_milestone(project: Project, milestone_id: str) -> ProjectMilestone | None:
    return next((m for m in project.milestones if m.id == milestone_id), None)


def duplicate_project(project: Project, owner_id: str, now: datetime | None = None) -> Project:
    """
    Copy a project's plan into a fresh planning-stage project.

    Name, description, budget, color, tags and team carry over; spend,
    progress, milestones and archive state do not.
    """
    now = now or datetime.now()
    return Project(
        name=f"{project.name} (Copy)",
        description=project.description,
        budget=project.budget,
        color=project.color,
        tags=list(project.tags),
        team_members=list(project.team_members),
        owner_id=owner_id,
        start_date=now,
        created_at=now,
        updated_at=now,
    )


class ProjectFilter(Enum):
    ALL = "all"
    ACTIVE = "active"
    PLANNING = "planning"
    COMPLETED = "completed"
    OVER_BUDGET = "over_budget"
    MY_PROJECTS = "my_projects"


class ProjectSort(Enum):
    DATE_CREATED = "date_created"
    NAME = "name"
    PROGRESS = "progress"
    BUDGET = "budget"
    END_DATE = "end_date"


@dataclass
class ProjectCounts:
    active: int = 0
    planning: int = 0
    completed: int = 0
    over_budget: int = 0


def matches_project_search(project: Project, search_text: str) -> bool:
    """Case-insensitive substring match on name, description and tags."""
    if not search_text:
        return True
    needle = search_text.casefold()
    return (
        needle in project.name.casefold()
        or needle in project.description.casefold()
        or any(needle in tag.casefold() for tag in project.tags)
    )


def filter_projects(
    projects: list[Project],
    project_filter: ProjectFilter,
    current_user_id: str | None = None,
) -> list[Project]:
    """
    Apply one of the fixed project filters.

    Archived projects only ever show up under the completed filter.
    Pure function - no I/O.
    """
    match project_filter:
        case ProjectFilter.ALL:
            return [p for p in projects if not p.is_archived]
        case ProjectFilter.ACTIVE:
            return [p for p in projects if p.status == ProjectStatus.ACTIVE and not p.is_archived]
        case ProjectFilter.PLANNING:
            return [p for p in projects if p.status == ProjectStatus.PLANNING and not p.is_archived]
        case ProjectFilter.COMPLETED:
            return [p for p in projects if p.status == ProjectStatus.COMPLETED]
        case ProjectFilter.OVER_BUDGET:
            return [p for p in projects if p.is_over_budget and not p.is_archived]
        case ProjectFilter.MY_PROJECTS:
            return [p for p in projects if p.involves(current_user_id) and not p.is_archived]
    raise ValueError(f"Unknown project filter: {project_filter}")


def sort_projects(projects: list[Project], sort: ProjectSort) -> list[Project]:
    """
    Sort projects by the selected key. Stable, so ties keep input order.

    Pure function - no I/O.
    """
    match sort:
        case ProjectSort.DATE_CREATED:
            return sorted(projects, key=lambda p: p.created_at, reverse=True)
        case ProjectSort.NAME:
            return sorted(projects, key=lambda p: p.name.casefold())
        case ProjectSort.PROGRESS:
            return sorted(projects, key=lambda p: -p.progress)
        case ProjectSort.BUDGET:
            return sorted(projects, key=lambda p: -(p.budget or 0))
        case ProjectSort.END_DATE:
            return sorted(projects, key=lambda p: (p.end_date is None, p.end_date or datetime.min))
    raise ValueError(f"Unknown project sort: {sort}")


def apply_project_view(
    projects: list[Project],
    search_text: str = "",
    project_filter: ProjectFilter = ProjectFilter.ALL,
    sort: ProjectSort = ProjectSort.DATE_CREATED,
    current_user_id: str | None = None,
) -> list[Project]:
    """
    Search, filter and sort projects for display.

    Pure function - no I/O. Input projects are never mutated.
    """
    result = [p for p in projects if matches_project_search(p, search_text)]
    result = filter_projects(result, project_filter, current_user_id)
    return sort_projects(result, sort)


def project_counts(projects: list[Project]) -> ProjectCounts:
    return ProjectCounts(
        active=len(filter_projects(projects, ProjectFilter.ACTIVE)),
        planning=len(filter_projects(projects, ProjectFilter.PLANNING)),
        completed=len(filter_projects(projects, ProjectFilter.COMPLETED)),
        over_budget=len(filter_projects(projects, ProjectFilter.OVER_BUDGET)),
    )


def average_progress(projects: list[Project]) -> float:
    """Mean progress of active, non-archived projects (0 if none)."""
    active = filter_projects(projects, ProjectFilter.ACTIVE)
    if not active:
        return 0.0
    return sum(p.progress for p in active) / len(active)
