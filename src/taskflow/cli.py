"""TaskFlow CLI - task and project tracking."""

import json
import logging
import sys
from datetime import datetime

import click

from .adapters.scheduler import APSchedulerReminderScheduler
from .config import Config, load_config
from .core.analytics import project_analytics, suggest_workload_rebalancing
from .core.display import display_name
from .core.projects import Project, ProjectFilter, ProjectSort, ProjectStatus
from .core.reminders import Reminder
from .core.tasks import Task, TaskFilter, TaskPriority, TaskSort
from .core.users import UserRole
from .store import EntityStore
from .workflows import (
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
)


def _choice(enum_cls) -> click.Choice:
    return click.Choice([member.value for member in enum_cls])


def _parse_when(value: str | None) -> datetime | None:
    """Parse YYYY-MM-DD or YYYY-MM-DDTHH:MM."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"Invalid date: {value} (use YYYY-MM-DD or YYYY-MM-DDTHH:MM)")


def _open() -> tuple[Config, EntityStore]:
    config = load_config()
    return config, build_store(config)


def _find(items: list, prefix: str, kind: str):
    """Resolve an entity by full id or unique id prefix."""
    matches = [item for item in items if item.id.startswith(prefix)]
    if len(matches) != 1:
        reason = "not found" if not matches else "is ambiguous"
        click.echo(f"Error: {kind} '{prefix}' {reason}.", err=True)
        sys.exit(1)
    return matches[0]


def _require_user(store: EntityStore) -> None:
    if store.needs_onboarding:
        click.echo("No current user. Run 'taskflow onboard' first.", err=True)
        sys.exit(1)


def _task_json(t: Task) -> dict:
    return {
        "id": t.id,
        "title": t.title,
        "status": t.status.value,
        "priority": t.priority.value,
        "due_date": t.due_date.isoformat() if t.due_date else None,
        "project_id": t.project_id,
        "tags": t.tags,
    }


def _format_task(t: Task, now: datetime) -> str:
    due = f" (due {t.due_date:%Y-%m-%d %H:%M})" if t.due_date else ""
    overdue = " OVERDUE" if t.is_overdue(now) else ""
    return f"{t.id[:8]}  [{display_name(t.status):11}] [{display_name(t.priority):6}] {t.title}{due}{overdue}"


def _format_project(p: Project) -> str:
    budget = ""
    if p.budget is not None:
        budget = f"  ${p.actual_cost or 0:,.0f}/${p.budget:,.0f}"
    archived = " (archived)" if p.is_archived else ""
    return (
        f"{p.id[:8]}  [{display_name(p.status):9}] {p.name}  "
        f"{p.completed_tasks}/{p.total_tasks} tasks ({p.completion_percentage}%){budget}{archived}"
    )


@click.group()
@click.version_option()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """TaskFlow - task and project tracking CLI."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


# ============== Onboarding ==============


@main.command()
@click.option("--name", prompt=True, help="Your name")
@click.option("--email", prompt=True, help="Your email")
@click.option("--role", type=_choice(UserRole), default=UserRole.MEMBER.value, show_default=True)
@click.option("--tutorial", is_flag=True, help="Create a sample task and project")
def onboard(name: str, email: str, role: str, tutorial: bool):
    """Create your user and get started."""
    _, store = _open()
    result, user = complete_onboarding(store, name, email, UserRole(role))
    if not result:
        click.echo(f"Error: {result.message}", err=True)
        sys.exit(1)

    click.echo(f"Welcome, {user.name}!")
    if tutorial:
        welcome, project = seed_tutorial(store)
        click.echo(f"Created '{welcome.title}' and '{project.name}'.")


@main.command()
def whoami():
    """Show the current user."""
    _, store = _open()
    user = store.current_user
    if user is None:
        click.echo("Not signed in. Run 'taskflow onboard'.")
        return
    click.echo(f"{user.name} <{user.email}> ({user.role.value})")


@main.command("sign-out")
def sign_out():
    """Sign out the current user (data is kept)."""
    _, store = _open()
    store.sign_out()
    click.echo("Signed out.")


# ============== Tasks ==============


@main.group()
def tasks():
    """Manage tasks."""


@tasks.command("list")
@click.option("--filter", "task_filter", type=_choice(TaskFilter), default=TaskFilter.ALL.value)
@click.option("--sort", type=_choice(TaskSort), default=TaskSort.DATE_CREATED.value)
@click.option("--search", default="", help="Match title, description or tags")
@click.option("--priority", type=_choice(TaskPriority), default=None)
@click.option("--project", "project_prefix", default=None, help="Only tasks in this project")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def tasks_list(task_filter, sort, search, priority, project_prefix, as_json):
    """List tasks."""
    config, store = _open()
    now = store.clock()
    project_id = _find(store.projects, project_prefix, "Project").id if project_prefix else None

    view = open_task_view(store, config)
    view.filter = TaskFilter(task_filter)
    view.sort = TaskSort(sort)
    view.priority = TaskPriority(priority) if priority else None
    view.project_id = project_id
    view.search_text = search
    view.flush()
    shown = view.results
    view.close()

    if as_json:
        click.echo(json.dumps([_task_json(t) for t in shown], indent=2))
        return

    if not shown:
        click.echo("No tasks.")
        return
    for task in shown:
        click.echo(_format_task(task, now))


@tasks.command("add")
@click.argument("title")
@click.option("--description", "-d", default="")
@click.option("--priority", "-p", type=_choice(TaskPriority), default=TaskPriority.MEDIUM.value)
@click.option("--due", default=None, help="Due date (YYYY-MM-DD or YYYY-MM-DDTHH:MM)")
@click.option("--hours", default=None, help="Estimated hours")
@click.option("--project", "project_prefix", default=None)
@click.option("--tag", "tags", multiple=True)
def tasks_add(title, description, priority, due, hours, project_prefix, tags):
    """Create a task."""
    _, store = _open()
    project_id = _find(store.projects, project_prefix, "Project").id if project_prefix else None
    result, task = create_task_from_form(
        store,
        title,
        description=description,
        priority=TaskPriority(priority),
        due_date=_parse_when(due),
        estimated_hours=hours,
        project_id=project_id,
        tags=list(tags),
    )
    if not result:
        click.echo(f"Error: {result.message}", err=True)
        sys.exit(1)
    click.echo(f"Created task {task.id[:8]}: {task.title}")


@tasks.command("done")
@click.argument("task_id")
def tasks_done(task_id):
    """Mark a task completed."""
    _, store = _open()
    task = _find(store.tasks, task_id, "Task")
    store.complete_task(task.id)
    click.echo(f"Completed: {task.title}")


@tasks.command("start")
@click.argument("task_id")
def tasks_start(task_id):
    """Mark a task in progress."""
    _, store = _open()
    task = _find(store.tasks, task_id, "Task")
    start_task(store, task.id)
    click.echo(f"Started: {task.title}")


@tasks.command("toggle")
@click.argument("task_id")
def tasks_toggle(task_id):
    """Advance a task: to do -> in progress -> completed -> to do."""
    _, store = _open()
    task = _find(store.tasks, task_id, "Task")
    store.toggle_task_status(task.id)
    click.echo(f"{task.title}: {display_name(task.status)}")


@tasks.command("delete")
@click.argument("task_id")
def tasks_delete(task_id):
    """Delete a task."""
    _, store = _open()
    task = _find(store.tasks, task_id, "Task")
    store.delete_task(task.id)
    click.echo(f"Deleted: {task.title}")


@tasks.command("comment")
@click.argument("task_id")
@click.argument("content")
def tasks_comment(task_id, content):
    """Comment on a task as the current user."""
    _, store = _open()
    _require_user(store)
    task = _find(store.tasks, task_id, "Task")
    store.add_comment(task.id, store.current_user_id, content)
    click.echo(f"Commented on: {task.title}")


# ============== Projects ==============


@main.group()
def projects():
    """Manage projects."""


@projects.command("list")
@click.option("--filter", "project_filter", type=_choice(ProjectFilter), default=ProjectFilter.ALL.value)
@click.option("--sort", type=_choice(ProjectSort), default=ProjectSort.DATE_CREATED.value)
@click.option("--search", default="")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def projects_list(project_filter, sort, search, as_json):
    """List projects."""
    config, store = _open()
    view = open_project_view(store, config)
    view.filter = ProjectFilter(project_filter)
    view.sort = ProjectSort(sort)
    view.search_text = search
    view.flush()
    shown = view.results
    view.close()

    if as_json:
        click.echo(json.dumps([p.to_dict() for p in shown], indent=2))
        return

    if not shown:
        click.echo("No projects.")
        return
    for project in shown:
        click.echo(_format_project(project))


@projects.command("add")
@click.argument("name")
@click.option("--description", "-d", default="")
@click.option("--budget", default=None)
@click.option("--start", default=None, help="Start date (defaults to now)")
@click.option("--end", default=None, help="End date")
@click.option("--status", type=_choice(ProjectStatus), default=ProjectStatus.PLANNING.value)
@click.option("--tag", "tags", multiple=True)
def projects_add(name, description, budget, start, end, status, tags):
    """Create a project."""
    _, store = _open()
    result, project = create_project_from_form(
        store,
        name,
        description=description,
        budget=budget,
        start_date=_parse_when(start),
        end_date=_parse_when(end),
        status=ProjectStatus(status),
        tags=list(tags),
    )
    if not result:
        click.echo(f"Error: {result.message}", err=True)
        sys.exit(1)
    click.echo(f"Created project {project.id[:8]}: {project.name}")


@projects.command("show")
@click.argument("project_id")
def projects_show(project_id):
    """Show a project with its analytics."""
    _, store = _open()
    project = _find(store.projects, project_id, "Project")
    now = store.clock()
    stats = project_analytics(project, store.tasks, now)

    click.echo(_format_project(project))
    if project.description:
        click.echo(f"\n{project.description}")
    click.echo(f"\nCompletion: {stats.completion_rate:.1f}%  Overdue: {stats.overdue_tasks}")
    click.echo(
        f"Hours: {stats.total_actual_hours:g} actual / {stats.total_estimated_hours:g} estimated "
        f"({stats.hours_variance:+.1f}%)"
    )
    click.echo(f"Budget used: {stats.budget_utilization * 100:.1f}%")
    if stats.projected_completion:
        schedule = "on schedule" if stats.is_on_schedule else "behind schedule"
        click.echo(f"Projected completion: {stats.projected_completion:%Y-%m-%d} ({schedule})")

    if project.milestones:
        click.echo("\nMilestones:")
        for milestone in project.milestones:
            check = "x" if milestone.is_completed else " "
            click.echo(f"  [{check}] {milestone.id[:8]} {milestone.title} (due {milestone.due_date:%Y-%m-%d})")

    project_tasks = store.tasks_for_project(project.id)
    if project_tasks:
        click.echo("\nTasks:")
        for task in project_tasks:
            click.echo(f"  {_format_task(task, now)}")


@projects.command("status")
@click.argument("project_id")
@click.argument("status", type=_choice(ProjectStatus))
def projects_status(project_id, status):
    """Change a project's status."""
    _, store = _open()
    project = _find(store.projects, project_id, "Project")
    store.update_project(project.id, status=ProjectStatus(status))
    click.echo(f"{project.name}: {display_name(project.status)}")


@projects.command("cost")
@click.argument("project_id")
@click.argument("amount", type=float)
def projects_cost(project_id, amount):
    """Record a project's actual cost to date."""
    _, store = _open()
    project = _find(store.projects, project_id, "Project")
    store.update_project(project.id, actual_cost=amount)
    click.echo(f"{project.name}: spent ${amount:,.2f}")


@projects.command("archive")
@click.argument("project_id")
@click.option("--undo", is_flag=True, help="Unarchive instead")
def projects_archive(project_id, undo):
    """Archive (or unarchive) a project."""
    _, store = _open()
    project = _find(store.projects, project_id, "Project")
    if undo:
        store.unarchive_project(project.id)
        click.echo(f"Unarchived: {project.name}")
    else:
        store.archive_project(project.id)
        click.echo(f"Archived: {project.name}")


@projects.command("duplicate")
@click.argument("project_id")
def projects_duplicate(project_id):
    """Copy a project's plan into a new planning project."""
    _, store = _open()
    project = _find(store.projects, project_id, "Project")
    copy = store.duplicate_project(project.id)
    click.echo(f"Created project {copy.id[:8]}: {copy.name}")


@projects.command("milestone")
@click.argument("project_id")
@click.argument("title")
@click.option("--due", required=True, help="Due date (YYYY-MM-DD or YYYY-MM-DDTHH:MM)")
@click.option("--description", "-d", default="")
def projects_milestone(project_id, title, due, description):
    """Add a milestone to a project."""
    _, store = _open()
    project = _find(store.projects, project_id, "Project")
    if not title.strip():
        click.echo("Error: Milestone title is required", err=True)
        sys.exit(1)
    milestone = store.add_milestone(project.id, title.strip(), _parse_when(due), description)
    click.echo(f"Added milestone {milestone.id[:8]}: {milestone.title} (due {milestone.due_date:%Y-%m-%d})")


@projects.command("milestone-done")
@click.argument("project_id")
@click.argument("milestone_id")
def projects_milestone_done(project_id, milestone_id):
    """Mark a project milestone as reached."""
    _, store = _open()
    project = _find(store.projects, project_id, "Project")
    milestone = _find(project.milestones, milestone_id, "Milestone")
    store.complete_milestone(project.id, milestone.id)
    click.echo(f"Completed: {milestone.title}")


@projects.command("delete")
@click.argument("project_id")
@click.confirmation_option(prompt="Delete this project?")
def projects_delete(project_id):
    """Delete a project."""
    _, store = _open()
    project = _find(store.projects, project_id, "Project")
    store.delete_project(project.id)
    click.echo(f"Deleted: {project.name}")


# ============== Dashboard & analytics ==============


@main.command()
def dashboard():
    """Overview of today, deadlines and alerts."""
    config, store = _open()
    data = build_dashboard(store, config)
    user = store.current_user

    greeting = f"Hello, {user.name}" if user else "Hello"
    click.echo(f"{greeting} - {data.now.strftime('%A, %b %d')}\n")

    for alert in data.alerts:
        click.echo(f"[{display_name(alert.kind)}] {alert.title}: {alert.message}")
    if data.alerts:
        click.echo()

    click.echo("Due today:")
    click.echo("\n".join(f"  {_format_task(t, data.now)}" for t in data.today_tasks) or "  Nothing due today")
    click.echo("\nUpcoming deadlines:")
    click.echo(
        "\n".join(f"  {_format_task(t, data.now)}" for t in data.upcoming_deadlines) or "  None"
    )
    click.echo("\nActive projects:")
    click.echo("\n".join(f"  {_format_project(p)}" for p in data.active_projects) or "  None")
    click.echo(
        f"\nWeekly goal: {data.metrics.tasks_completed_this_week}/{config.weekly_goal} "
        f"({data.weekly_goal_progress * 100:.0f}%)"
    )


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def stats(as_json: bool):
    """Productivity, financial and team analytics."""
    config, store = _open()
    snapshot = refresh_analytics(store, config)
    p, f, t = snapshot.productivity, snapshot.financial, snapshot.team

    if as_json:
        click.echo(
            json.dumps(
                {
                    "productivity": {
                        "total_tasks": p.total_tasks,
                        "completed_tasks": p.completed_tasks,
                        "in_progress_tasks": p.in_progress_tasks,
                        "overdue_tasks": p.overdue_tasks,
                        "completion_rate": p.completion_rate,
                        "average_completion_time": p.average_completion_time,
                        "tasks_completed_this_week": p.tasks_completed_this_week,
                        "tasks_completed_last_week": p.tasks_completed_last_week,
                        "productivity_trend": p.productivity_trend,
                    },
                    "financial": {
                        "total_budget": f.total_budget,
                        "total_spent": f.total_spent,
                        "remaining_budget": f.remaining_budget,
                        "budget_utilization": f.budget_utilization,
                        "projects_over_budget": f.projects_over_budget,
                        "cost_per_task": f.cost_per_task,
                        "projected_spend": f.projected_spend,
                        "savings_opportunities": f.savings_opportunities,
                    },
                    "team": {
                        "total_members": t.total_members,
                        "active_members": t.active_members,
                        "collaboration_score": t.collaboration_score,
                        "team_velocity": t.team_velocity,
                        "bottlenecks": t.bottlenecks,
                    },
                },
                indent=2,
            )
        )
        return

    click.echo("Productivity")
    click.echo(f"  Tasks: {p.completed_tasks}/{p.total_tasks} completed ({p.completion_rate:.1f}%)")
    click.echo(f"  In progress: {p.in_progress_tasks}  Overdue: {p.overdue_tasks}")
    click.echo(f"  Avg completion time: {p.average_completion_time:.1f}h")
    click.echo(
        f"  This week: {p.tasks_completed_this_week}  Last week: {p.tasks_completed_last_week}  "
        f"Trend: {p.productivity_trend:+.0f}%"
    )

    click.echo("\nFinancial")
    click.echo(f"  Budget: ${f.total_budget:,.2f}  Spent: ${f.total_spent:,.2f} ({f.budget_utilization:.1f}%)")
    click.echo(f"  Over budget: {f.projects_over_budget}  Projected spend: ${f.projected_spend:,.2f}")
    for opportunity in f.savings_opportunities:
        click.echo(f"  - {opportunity}")

    click.echo("\nTeam")
    click.echo(f"  Members: {t.active_members}/{t.total_members} active")
    click.echo(f"  Collaboration: {t.collaboration_score:.0f}/100  Velocity: {t.team_velocity:g}h")
    for perf in t.user_performance:
        click.echo(f"  {perf.user_name}: {perf.completed_tasks}/{perf.total_tasks} ({perf.efficiency * 100:.0f}%)")
    for bottleneck in t.bottlenecks:
        click.echo(f"  ! {bottleneck}")
    for suggestion in suggest_workload_rebalancing(store.tasks, store.users):
        click.echo(f"  > {suggestion.message}")


# ============== Reminders ==============


@main.command()
def reminders():
    """Run the reminder scheduler in the foreground."""
    from apscheduler.schedulers.blocking import BlockingScheduler

    config, store = _open()

    def deliver(reminder: Reminder) -> None:
        click.echo(f"[{datetime.now():%H:%M}] {reminder.title}: {reminder.body}")

    blocking = BlockingScheduler(timezone=config.timezone) if config.timezone else BlockingScheduler()
    scheduler = APSchedulerReminderScheduler(scheduler=blocking, deliver=deliver)
    count = schedule_all_reminders(store, scheduler)
    if count == 0:
        click.echo("Nothing to remind you about.")
        return

    click.echo(f"Scheduled {count} reminder(s). Press Ctrl+C to stop")
    try:
        scheduler.start()
    except KeyboardInterrupt:
        click.echo("\nReminders stopped.")
