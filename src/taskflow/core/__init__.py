"""Functional core - pure business logic with no I/O."""

from .tasks import (
    Task,
    TaskComment,
    TaskFilter,
    TaskPriority,
    TaskSort,
    TaskStatus,
    apply_task_view,
)
from .projects import (
    Project,
    ProjectFilter,
    ProjectMilestone,
    ProjectSort,
    ProjectStatus,
    apply_project_view,
    duplicate_project,
)
from .users import Theme, User, UserPreferences, UserRole
from .analytics import (
    AnalyticsSnapshot,
    FinancialInsights,
    ProductivityMetrics,
    TeamPerformance,
    compute_all,
    compute_financial_insights,
    compute_productivity_metrics,
    compute_team_performance,
    predict_completion,
)
from .dashboard import DashboardData, assemble_dashboard
from .reminders import Reminder, ReminderKind
from .validation import ValidationResult

__all__ = [
    # Tasks
    "Task",
    "TaskComment",
    "TaskFilter",
    "TaskPriority",
    "TaskSort",
    "TaskStatus",
    "apply_task_view",
    # Projects
    "Project",
    "ProjectFilter",
    "ProjectMilestone",
    "ProjectSort",
    "ProjectStatus",
    "apply_project_view",
    "duplicate_project",
    # Users
    "Theme",
    "User",
    "UserPreferences",
    "UserRole",
    # Analytics
    "AnalyticsSnapshot",
    "FinancialInsights",
    "ProductivityMetrics",
    "TeamPerformance",
    "compute_all",
    "compute_financial_insights",
    "compute_productivity_metrics",
    "compute_team_performance",
    "predict_completion",
    # Dashboard
    "DashboardData",
    "assemble_dashboard",
    # Reminders
    "Reminder",
    "ReminderKind",
    # Validation
    "ValidationResult",
]
