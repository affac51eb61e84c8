"""Pure dashboard assembly logic - no I/O dependencies."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from .analytics import FinancialInsights, ProductivityMetrics
from .projects import Project, ProjectFilter, filter_projects
from .tasks import Task

RECENT_TASKS_LIMIT = 5
ACTIVE_PROJECTS_LIMIT = 6
UPCOMING_LIMIT = 5
DEFAULT_WEEKLY_GOAL = 10
TREND_CELEBRATION = 20


class AlertKind(Enum):
    SUCCESS = "success"
    WARNING = "warning"
    INFO = "info"
    ERROR = "error"


@dataclass
class DashboardAlert:
    title: str
    message: str
    kind: AlertKind


@dataclass
class DashboardData:
    """Assembled dashboard data ready for formatting."""

    now: datetime
    recent_tasks: list[Task]
    active_projects: list[Project]
    upcoming_deadlines: list[Task]
    today_tasks: list[Task]
    metrics: ProductivityMetrics
    insights: FinancialInsights
    weekly_goal_progress: float
    alerts: list[DashboardAlert] = field(default_factory=list)

    @property
    def recent_completion_rate(self) -> float:
        if not self.recent_tasks:
            return 0.0
        done = sum(1 for t in self.recent_tasks if t.is_completed)
        return done / len(self.recent_tasks) * 100


def recent_tasks(tasks: list[Task], current_user_id: str | None) -> list[Task]:
    mine = [t for t in tasks if current_user_id is not None and t.assigned_to == current_user_id]
    return sorted(mine, key=lambda t: t.updated_at, reverse=True)[:RECENT_TASKS_LIMIT]


def active_projects(projects: list[Project]) -> list[Project]:
    active = filter_projects(projects, ProjectFilter.ACTIVE)
    return sorted(active, key=lambda p: p.updated_at, reverse=True)[:ACTIVE_PROJECTS_LIMIT]


def upcoming_deadlines(tasks: list[Task], now: datetime) -> list[Task]:
    horizon = now + timedelta(days=7)
    upcoming = [t for t in tasks if t.due_date and t.due_date <= horizon and not t.is_completed]
    return sorted(upcoming, key=lambda t: t.due_date)[:UPCOMING_LIMIT]


def today_tasks(tasks: list[Task], now: datetime) -> list[Task]:
    today = now.date()
    due_today = [
        t for t in tasks if t.due_date and t.due_date.date() == today and not t.is_completed
    ]
    return sorted(due_today, key=lambda t: -t.priority.rank)


def build_alerts(
    tasks: list[Task],
    projects: list[Project],
    upcoming: list[Task],
    metrics: ProductivityMetrics,
    now: datetime,
) -> list[DashboardAlert]:
    """
    Advisory alerts for the dashboard header.

    Pure function - no I/O.
    """
    alerts = []

    overdue = sum(1 for t in tasks if t.is_overdue(now))
    if overdue:
        alerts.append(
            DashboardAlert("Overdue Tasks", f"You have {overdue} overdue task(s)", AlertKind.WARNING)
        )

    near_limit = sum(
        1
        for p in projects
        if p.budget is not None and p.actual_cost is not None and p.actual_cost > p.budget * 0.9
    )
    if near_limit:
        alerts.append(
            DashboardAlert(
                "Budget Alert",
                f"{near_limit} project(s) approaching budget limit",
                AlertKind.WARNING,
            )
        )

    if upcoming:
        alerts.append(
            DashboardAlert("Upcoming Deadlines", f"{len(upcoming)} task(s) due this week", AlertKind.INFO)
        )

    if metrics.productivity_trend > TREND_CELEBRATION:
        alerts.append(
            DashboardAlert(
                "Great Progress!",
                f"Your productivity is up {int(metrics.productivity_trend)}% this week",
                AlertKind.SUCCESS,
            )
        )

    return alerts


def assemble_dashboard(
    tasks: list[Task],
    projects: list[Project],
    current_user_id: str | None,
    metrics: ProductivityMetrics,
    insights: FinancialInsights,
    now: datetime | None = None,
    weekly_goal: int = DEFAULT_WEEKLY_GOAL,
) -> DashboardData:
    """
    Assemble dashboard data from the raw collections and computed analytics.

    Pure function - no I/O. Handles all filtering, sorting and alerting.
    """
    now = now or datetime.now()
    upcoming = upcoming_deadlines(tasks, now)
    goal_progress = min(metrics.tasks_completed_this_week / weekly_goal, 1.0) if weekly_goal > 0 else 0.0

    return DashboardData(
        now=now,
        recent_tasks=recent_tasks(tasks, current_user_id),
        active_projects=active_projects(projects),
        upcoming_deadlines=upcoming,
        today_tasks=today_tasks(tasks, now),
        metrics=metrics,
        insights=insights,
        weekly_goal_progress=goal_progress,
        alerts=build_alerts(tasks, projects, upcoming, metrics, now),
    )
