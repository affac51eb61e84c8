"""Pure analytics over tasks, projects and users - no I/O dependencies.

Every function here is deterministic given its inputs and the `now` it is
handed, so results can be recomputed freely after each store mutation.
"""

import calendar
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from .projects import Project, ProjectStatus
from .tasks import Task, TaskStatus
from .users import User

# A user with more in-progress tasks than this is flagged as a bottleneck
IN_PROGRESS_BOTTLENECK = 5
# Open-task thresholds for workload suggestions
OVERLOADED_OPEN_TASKS = 7
UNDERLOADED_OPEN_TASKS = 2
# Savings-opportunity thresholds as fractions of budget
APPROACHING_BUDGET = 0.9
EARLY_SPEND = 0.6
EARLY_PROGRESS = 0.5


@dataclass
class ProductivityMetrics:
    total_tasks: int = 0
    completed_tasks: int = 0
    in_progress_tasks: int = 0
    overdue_tasks: int = 0
    average_completion_time: float = 0.0  # hours
    tasks_completed_this_week: int = 0
    tasks_completed_last_week: int = 0
    productivity_trend: float = 0.0  # percent change week over week

    @property
    def completion_rate(self) -> float:
        if self.total_tasks <= 0:
            return 0.0
        return self.completed_tasks / self.total_tasks * 100


@dataclass
class FinancialInsights:
    total_budget: float = 0.0
    total_spent: float = 0.0
    remaining_budget: float = 0.0
    budget_utilization: float = 0.0  # percent
    projects_over_budget: int = 0
    cost_per_task: float = 0.0
    projected_spend: float = 0.0
    savings_opportunities: list[str] = field(default_factory=list)


@dataclass
class UserPerformance:
    user_id: str
    user_name: str
    total_tasks: int
    completed_tasks: int
    average_completion_time: float
    efficiency: float  # 0-1


@dataclass
class TeamPerformance:
    total_members: int = 0
    active_members: int = 0
    user_performance: list[UserPerformance] = field(default_factory=list)
    collaboration_score: float = 0.0  # 0-100
    team_velocity: float = 0.0  # estimated hours completed this week
    bottlenecks: list[str] = field(default_factory=list)


class SuggestionType(Enum):
    REDISTRIBUTE = "redistribute"
    ASSIGN_MORE = "assign_more"


@dataclass
class WorkloadSuggestion:
    type: SuggestionType
    user_id: str
    user_name: str
    message: str


@dataclass
class ProjectAnalytics:
    """Per-project rollup for a detail view."""

    total_tasks: int
    completed_tasks: int
    overdue_tasks: int
    total_estimated_hours: float
    total_actual_hours: float
    budget_utilization: float  # fraction of budget spent
    projected_completion: datetime | None
    end_date: datetime | None = None

    @property
    def completion_rate(self) -> float:
        if self.total_tasks <= 0:
            return 0.0
        return self.completed_tasks / self.total_tasks * 100

    @property
    def is_on_schedule(self) -> bool:
        """Projected to finish by the end date (true when either is unknown)."""
        if self.projected_completion is None or self.end_date is None:
            return True
        return self.projected_completion <= self.end_date

    @property
    def is_over_budget(self) -> bool:
        return self.budget_utilization > 1.0

    @property
    def hours_variance(self) -> float:
        """Actual vs estimated hours as a percentage over/under."""
        if self.total_estimated_hours <= 0:
            return 0.0
        return (self.total_actual_hours - self.total_estimated_hours) / self.total_estimated_hours * 100


@dataclass
class AnalyticsSnapshot:
    productivity: ProductivityMetrics
    financial: FinancialInsights
    team: TeamPerformance


# ============== Week helpers ==============


def start_of_week(moment: datetime, week_start: int = calendar.MONDAY) -> datetime:
    """Midnight on the most recent `week_start` weekday at or before moment."""
    days_back = (moment.weekday() - week_start) % 7
    midnight = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight - timedelta(days=days_back)


def in_week(moment: datetime | None, week_of: datetime, week_start: int = calendar.MONDAY) -> bool:
    """Whether moment falls in the same week as week_of."""
    if moment is None:
        return False
    start = start_of_week(week_of, week_start)
    return start <= moment < start + timedelta(days=7)


def productivity_trend(this_week: int, last_week: int) -> float:
    """Week-over-week percentage change in completed tasks."""
    if last_week <= 0:
        return 100.0 if this_week > 0 else 0.0
    return (this_week - last_week) / last_week * 100


def average_completion_time(tasks: list[Task]) -> float:
    """Mean hours from creation to completion; tasks without completed_at are skipped."""
    hours = [h for h in (t.completion_hours() for t in tasks) if h is not None]
    if not hours:
        return 0.0
    return sum(hours) / len(hours)


# ============== Productivity ==============


def compute_productivity_metrics(
    tasks: list[Task],
    now: datetime | None = None,
    week_start: int = calendar.MONDAY,
) -> ProductivityMetrics:
    """
    Status counts, overdue count, completion time and weekly trend.

    Pure function - no I/O.
    """
    now = now or datetime.now()
    completed = [t for t in tasks if t.is_completed]
    last_week = now - timedelta(days=7)

    this_week_count = sum(1 for t in completed if in_week(t.completed_at, now, week_start))
    last_week_count = sum(1 for t in completed if in_week(t.completed_at, last_week, week_start))

    return ProductivityMetrics(
        total_tasks=len(tasks),
        completed_tasks=len(completed),
        in_progress_tasks=sum(1 for t in tasks if t.status == TaskStatus.IN_PROGRESS),
        overdue_tasks=sum(1 for t in tasks if t.is_overdue(now)),
        average_completion_time=average_completion_time(completed),
        tasks_completed_this_week=this_week_count,
        tasks_completed_last_week=last_week_count,
        productivity_trend=productivity_trend(this_week_count, last_week_count),
    )


# ============== Financial ==============


def projected_spend(projects: list[Project]) -> float:
    """Extrapolate current cost to 100% progress for active, budgeted projects."""
    total = 0.0
    for project in projects:
        if project.budget is None or project.status != ProjectStatus.ACTIVE or project.progress <= 0:
            continue
        total += (project.actual_cost or 0) / project.progress
    return total


def savings_opportunities(projects: list[Project]) -> list[str]:
    opportunities = []
    for project in projects:
        if project.budget is None or project.actual_cost is None:
            continue
        if project.actual_cost > project.budget * APPROACHING_BUDGET:
            opportunities.append(f"Project '{project.name}' is approaching budget limit")
        if project.progress < EARLY_PROGRESS and project.actual_cost > project.budget * EARLY_SPEND:
            opportunities.append(f"Consider re-evaluating scope for '{project.name}'")
    return opportunities


def compute_financial_insights(projects: list[Project], tasks: list[Task] | None = None) -> FinancialInsights:
    """
    Budget totals, utilization and advisory savings opportunities.

    Projects without a budget (or cost) are left out of the respective sum.
    Pure function - no I/O.
    """
    tasks = tasks or []
    total_budget = sum(p.budget for p in projects if p.budget is not None)
    total_spent = sum(p.actual_cost for p in projects if p.actual_cost is not None)

    return FinancialInsights(
        total_budget=total_budget,
        total_spent=total_spent,
        remaining_budget=total_budget - total_spent,
        budget_utilization=total_spent / total_budget * 100 if total_budget > 0 else 0.0,
        projects_over_budget=sum(1 for p in projects if p.is_over_budget),
        cost_per_task=total_spent / len(tasks) if tasks else 0.0,
        projected_spend=projected_spend(projects),
        savings_opportunities=savings_opportunities(projects),
    )


# ============== Team ==============


def collaboration_score(tasks: list[Task]) -> float:
    """
    Average of the share of commented tasks and the share of tasks
    discussed by more than one author, scaled to 0-100.
    """
    if not tasks:
        return 0.0
    commented = sum(1 for t in tasks if t.comments)
    multi_author = sum(1 for t in tasks if len(t.comment_authors()) > 1)
    return (commented / len(tasks) + multi_author / len(tasks)) / 2 * 100


def team_velocity(
    tasks: list[Task],
    now: datetime | None = None,
    week_start: int = calendar.MONDAY,
) -> float:
    """Estimated hours of tasks completed in the current week."""
    now = now or datetime.now()
    return sum(
        t.estimated_hours
        for t in tasks
        if t.estimated_hours is not None and in_week(t.completed_at, now, week_start)
    )


def identify_bottlenecks(
    tasks: list[Task],
    users: list[User],
    now: datetime | None = None,
) -> list[str]:
    now = now or datetime.now()
    bottlenecks = []

    for user in users:
        in_progress = sum(
            1 for t in tasks if t.assigned_to == user.id and t.status == TaskStatus.IN_PROGRESS
        )
        if in_progress > IN_PROGRESS_BOTTLENECK:
            bottlenecks.append(f"{user.name} has {in_progress} tasks in progress")

    blocked = sum(1 for t in tasks if t.status == TaskStatus.BLOCKED)
    if blocked:
        bottlenecks.append(f"{blocked} tasks are blocked")

    overdue = sum(1 for t in tasks if t.is_overdue(now))
    if overdue:
        bottlenecks.append(f"{overdue} tasks are overdue")

    return bottlenecks


def user_performance(user: User, tasks: list[Task]) -> UserPerformance:
    own = [t for t in tasks if t.assigned_to == user.id]
    completed = [t for t in own if t.is_completed]
    return UserPerformance(
        user_id=user.id,
        user_name=user.name,
        total_tasks=len(own),
        completed_tasks=len(completed),
        average_completion_time=average_completion_time(completed),
        efficiency=len(completed) / len(own) if own else 0.0,
    )


def compute_team_performance(
    tasks: list[Task],
    users: list[User],
    now: datetime | None = None,
    week_start: int = calendar.MONDAY,
) -> TeamPerformance:
    """
    Per-user efficiency plus team-wide collaboration, velocity and bottlenecks.

    Pure function - no I/O.
    """
    now = now or datetime.now()
    busy = {t.assigned_to for t in tasks if t.status == TaskStatus.IN_PROGRESS}

    return TeamPerformance(
        total_members=len(users),
        active_members=sum(1 for u in users if u.id in busy),
        user_performance=[user_performance(u, tasks) for u in users],
        collaboration_score=collaboration_score(tasks),
        team_velocity=team_velocity(tasks, now, week_start),
        bottlenecks=identify_bottlenecks(tasks, users, now),
    )


def suggest_workload_rebalancing(tasks: list[Task], users: list[User]) -> list[WorkloadSuggestion]:
    suggestions = []
    for user in users:
        open_count = sum(1 for t in tasks if t.assigned_to == user.id and not t.is_completed)
        if open_count > OVERLOADED_OPEN_TASKS:
            suggestions.append(
                WorkloadSuggestion(
                    type=SuggestionType.REDISTRIBUTE,
                    user_id=user.id,
                    user_name=user.name,
                    message=f"Consider redistributing some of {user.name}'s {open_count} active tasks",
                )
            )
        elif open_count < UNDERLOADED_OPEN_TASKS:
            suggestions.append(
                WorkloadSuggestion(
                    type=SuggestionType.ASSIGN_MORE,
                    user_id=user.id,
                    user_name=user.name,
                    message=f"{user.name} has capacity for more tasks",
                )
            )
    return suggestions


# ============== Projects ==============


def predict_completion(project: Project, now: datetime | None = None) -> datetime | None:
    """
    Extrapolate the finish date from elapsed time and progress.

    Returns None when there is no progress to extrapolate from.
    """
    if project.progress <= 0:
        return None
    now = now or datetime.now()
    elapsed = now - project.start_date
    return project.start_date + elapsed / project.progress


def project_analytics(project: Project, tasks: list[Task], now: datetime | None = None) -> ProjectAnalytics:
    now = now or datetime.now()
    own = [t for t in tasks if t.project_id == project.id]
    return ProjectAnalytics(
        total_tasks=len(own),
        completed_tasks=sum(1 for t in own if t.is_completed),
        overdue_tasks=sum(1 for t in own if t.is_overdue(now)),
        total_estimated_hours=sum(t.estimated_hours for t in own if t.estimated_hours is not None),
        total_actual_hours=sum(t.actual_hours for t in own if t.actual_hours is not None),
        budget_utilization=project.budget_utilization,
        projected_completion=predict_completion(project, now),
        end_date=project.end_date,
    )


def compute_all(
    tasks: list[Task],
    projects: list[Project],
    users: list[User],
    now: datetime | None = None,
    week_start: int = calendar.MONDAY,
) -> AnalyticsSnapshot:
    """Recompute every aggregate in one pass for redisplay."""
    now = now or datetime.now()
    return AnalyticsSnapshot(
        productivity=compute_productivity_metrics(tasks, now, week_start),
        financial=compute_financial_insights(projects, tasks),
        team=compute_team_performance(tasks, users, now, week_start),
    )
