"""Shared workflow layer between the CLI and any other front end.

Each function validates user input, drives the EntityStore and returns
either a rejection (ValidationResult) or the created/updated entity.
"""

from datetime import datetime, timedelta

from .adapters.file_storage import FileKeyValueStore
from .config import Config
from .core.analytics import AnalyticsSnapshot, compute_all
from .core.dashboard import DashboardData, assemble_dashboard
from .core.projects import Project, ProjectStatus
from .core.reminders import (
    break_reminder,
    budget_alert,
    end_of_workday_reminder,
    milestone_reminder,
    task_due_reminder,
)
from .core.tasks import Task, TaskPriority, TaskStatus
from .core.users import User, UserPreferences, UserRole
from .core.validation import (
    ValidationResult,
    parse_number,
    rejected,
    validate_project_form,
    validate_task_form,
    validate_user_info,
)
from .ports.notifier import ReminderScheduler
from .store import EntityStore
from .views import ProjectListView, TaskListView


def build_store(config: Config, scheduler: ReminderScheduler | None = None) -> EntityStore:
    """Construct and hydrate a file-backed store from config."""
    store = EntityStore(
        FileKeyValueStore(config.data_path),
        scheduler=scheduler,
        cascade_project_delete=config.cascade_project_delete,
        due_reminder_lead=timedelta(hours=config.due_reminder_lead_hours),
        budget_alert_threshold=config.budget_alert_threshold,
    )
    return store.load()


# ============== Onboarding ==============


def complete_onboarding(
    store: EntityStore,
    name: str,
    email: str,
    role: UserRole = UserRole.MEMBER,
    preferences: UserPreferences | None = None,
) -> tuple[ValidationResult, User | None]:
    """Create the first user and make it current. Reminders follow its preferences."""
    result = validate_user_info(name, email)
    if not result:
        return result, None

    user = store.create_user(
        name=name.strip(),
        email=email.strip(),
        role=role,
        preferences=preferences or UserPreferences(),
    )
    store.set_current_user(user.id)
    return result, user


def seed_tutorial(store: EntityStore) -> tuple[Task, Project]:
    """Create the welcome task and a getting-started project with one task."""
    welcome = store.create_task(
        title="Welcome Task",
        description="This is your first task in TaskFlow! Complete this to get started.",
        assigned_to=store.current_user_id,
    )
    project = store.create_project(
        name="Getting Started Project",
        description="A sample project to help you explore TaskFlow features",
        budget=1000,
    )
    store.create_task(
        title="Explore the dashboard",
        description="Take a look around the main dashboard to familiarize yourself with the interface",
        project_id=project.id,
        assigned_to=store.current_user_id,
    )
    return welcome, project


# ============== Tasks ==============


def create_task_from_form(
    store: EntityStore,
    title: str,
    description: str = "",
    priority: TaskPriority = TaskPriority.MEDIUM,
    due_date: datetime | None = None,
    estimated_hours: str | float | None = None,
    assignee_id: str | None = None,
    project_id: str | None = None,
    tags: list[str] | None = None,
) -> tuple[ValidationResult, Task | None]:
    """Validate a task form and create it, assigning the current user by default."""
    result = validate_task_form(title, estimated_hours)
    if not result:
        return result, None
    if project_id is not None and store.get_project(project_id) is None:
        return rejected("Selected project no longer exists"), None

    task = store.create_task(
        title=title.strip(),
        description=description.strip(),
        priority=priority,
        due_date=due_date,
        estimated_hours=parse_number(estimated_hours),
        assigned_to=assignee_id or store.current_user_id,
        project_id=project_id,
        tags=unique_tags(tags or []),
    )
    return result, task


def unique_tags(tags: list[str]) -> list[str]:
    """Trim tags, dropping blanks and duplicates while keeping order."""
    seen = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def start_task(store: EntityStore, task_id: str) -> Task | None:
    """Move a task to in progress and nudge about breaks if the user wants that."""
    task = store.update_task(task_id, status=TaskStatus.IN_PROGRESS)
    user = store.current_user
    if task and user and store.scheduler is not None:
        prefs = user.preferences
        if prefs.enable_notifications and prefs.enable_lifestyle_integration:
            store.scheduler.schedule(break_reminder(prefs))
    return task


# ============== Projects ==============


def create_project_from_form(
    store: EntityStore,
    name: str,
    description: str = "",
    budget: str | float | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    status: ProjectStatus = ProjectStatus.PLANNING,
    team_members: list[str] | None = None,
    tags: list[str] | None = None,
) -> tuple[ValidationResult, Project | None]:
    start = start_date or store.clock()
    result = validate_project_form(name, budget, start, end_date)
    if not result:
        return result, None

    project = store.create_project(
        name=name.strip(),
        description=description.strip(),
        budget=parse_number(budget),
        start_date=start,
        end_date=end_date,
        status=status,
        team_members=list(team_members or []),
        tags=unique_tags(tags or []),
    )
    return result, project


# ============== List views ==============


def open_task_view(store: EntityStore, config: Config | None = None) -> TaskListView:
    """Task list whose search settles after the configured debounce delay."""
    config = config or Config()
    return TaskListView(store, debounce_seconds=config.search_debounce_ms / 1000)


def open_project_view(store: EntityStore, config: Config | None = None) -> ProjectListView:
    config = config or Config()
    return ProjectListView(store, debounce_seconds=config.search_debounce_ms / 1000)


# ============== Analytics ==============


def refresh_analytics(store: EntityStore, config: Config | None = None) -> AnalyticsSnapshot:
    """Recompute every aggregate from the store's current collections."""
    config = config or Config()
    return compute_all(
        store.tasks,
        store.projects,
        store.users,
        now=store.clock(),
        week_start=config.week_start_day,
    )


def build_dashboard(store: EntityStore, config: Config | None = None) -> DashboardData:
    config = config or Config()
    snapshot = refresh_analytics(store, config)
    return assemble_dashboard(
        store.tasks,
        store.projects,
        store.current_user_id,
        metrics=snapshot.productivity,
        insights=snapshot.financial,
        now=store.clock(),
        weekly_goal=config.weekly_goal,
    )


def schedule_all_reminders(store: EntityStore, scheduler: ReminderScheduler) -> int:
    """
    Schedule every reminder implied by the current data.

    Used when a long-running scheduler starts up. Returns the count scheduled.
    """
    now = store.clock()
    scheduled = 0

    for task in store.tasks:
        reminder = task_due_reminder(task, now, store.due_reminder_lead)
        if reminder:
            scheduler.schedule(reminder)
            scheduled += 1

    for project in store.projects:
        alert = budget_alert(project, now, store.budget_alert_threshold)
        if alert:
            scheduler.schedule(alert)
            scheduled += 1
        for milestone in project.milestones:
            reminder = milestone_reminder(project, milestone, now)
            if reminder:
                scheduler.schedule(reminder)
                scheduled += 1

    user = store.current_user
    if user and user.preferences.enable_notifications and user.preferences.enable_lifestyle_integration:
        scheduler.schedule(break_reminder(user.preferences))
        scheduler.schedule(end_of_workday_reminder(user.preferences))
        scheduled += 2

    return scheduled
