"""Entity store - the single owner of users, tasks and projects.

Every mutating call follows the same sequence:

    1. apply the change in memory and stamp updated_at
    2. recompute derived project counters from the task list
    3. persist full snapshots of every collection
    4. notify subscribers, in registration order

Lookups that miss (update/delete of an unknown id) are no-ops.
"""

import functools
import json
import logging
from dataclasses import fields
from datetime import datetime, timedelta
from typing import Callable, TypeVar

from .core.projects import Project, ProjectMilestone, ProjectStatus, duplicate_project, get_milestone
from .core.reminders import (
    BREAK_REMINDER_ID,
    WORKDAY_END_REMINDER_ID,
    break_reminder,
    budget_alert,
    end_of_workday_reminder,
    milestone_reminder,
    milestone_reminder_id,
    task_due_reminder,
    task_due_reminder_id,
)
from .core.tasks import Task, TaskComment, TaskPriority, TaskStatus, duplicate_task, toggle_status
from .core.users import User, UserPreferences, UserRole
from .ports.notifier import ReminderScheduler
from .ports.storage import KeyValueStore

logger = logging.getLogger(__name__)

USERS_KEY = "users"
TASKS_KEY = "tasks"
PROJECTS_KEY = "projects"
CURRENT_USER_KEY = "current_user_id"

T = TypeVar("T", Task, Project, User)
Listener = Callable[["EntityStore"], None]

# Fields on entities that callers may never set through update_*
_IMMUTABLE_FIELDS = {"id", "created_at"}
_DERIVED_PROJECT_FIELDS = {
    "total_tasks",
    "completed_tasks",
    "overdue_tasks",
    "progress",
    "average_task_completion_time",
}
# Changed only through add_milestone / complete_milestone
_MANAGED_PROJECT_FIELDS = {"milestones"}


def encode_collection(items: list) -> str:
    """Serialize a whole collection to a JSON snapshot."""
    return json.dumps([item.to_dict() for item in items])


def decode_collection(raw: str | None, cls: type[T]) -> list[T]:
    """
    Parse a JSON snapshot back into entities.

    Raises on malformed input; EntityStore.load() decides how to recover.
    """
    if raw is None:
        return []
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError(f"Expected a list snapshot for {cls.__name__}")
    return [cls.from_dict(item) for item in data]


def _check_fields(cls: type, changes: dict, forbidden: set[str]) -> None:
    allowed = {f.name for f in fields(cls)} - forbidden
    unknown = set(changes) - allowed
    if unknown:
        raise TypeError(f"Cannot update {cls.__name__} fields: {', '.join(sorted(unknown))}")


def _mutator(method):
    """Refuse to run while listeners are being notified, before any state changes."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        if self._notifying:
            raise RuntimeError(f"{method.__name__} called from inside a change listener")
        return method(self, *args, **kwargs)

    return wrapper


class EntityStore:
    """
    In-memory collections of users, tasks and projects with snapshot persistence.

    Constructed explicitly and passed to whatever needs it. The reminder
    scheduler is optional; it is called opportunistically and its outcome is
    never inspected.
    """

    def __init__(
        self,
        storage: KeyValueStore,
        scheduler: ReminderScheduler | None = None,
        clock: Callable[[], datetime] = datetime.now,
        cascade_project_delete: bool = True,
        due_reminder_lead: timedelta = timedelta(days=1),
        budget_alert_threshold: float = 0.8,
    ):
        self.storage = storage
        self.scheduler = scheduler
        self.clock = clock
        self.cascade_project_delete = cascade_project_delete
        self.due_reminder_lead = due_reminder_lead
        self.budget_alert_threshold = budget_alert_threshold

        self.users: list[User] = []
        self.tasks: list[Task] = []
        self.projects: list[Project] = []
        self.current_user_id: str | None = None

        self._listeners: list[Listener] = []
        self._notifying = False

    # ============== Persistence ==============

    def _load_collection(self, key: str, cls: type[T]) -> list[T]:
        try:
            return decode_collection(self.storage.get(key), cls)
        except (OSError, KeyError, ValueError, TypeError, AttributeError) as e:
            # JSONDecodeError and UnicodeDecodeError are ValueErrors
            logger.warning(f"Discarding unreadable {key} snapshot: {e}")
            return []

    def _load_current_user_id(self) -> str | None:
        try:
            current = self.storage.get(CURRENT_USER_KEY)
        except (OSError, ValueError) as e:
            logger.warning(f"Discarding unreadable {CURRENT_USER_KEY}: {e}")
            return None
        return current if current and self.get_user(current) else None

    def load(self) -> "EntityStore":
        """Hydrate collections from storage. Unreadable snapshots become empty."""
        self.users = self._load_collection(USERS_KEY, User)
        self.tasks = self._load_collection(TASKS_KEY, Task)
        self.projects = self._load_collection(PROJECTS_KEY, Project)
        self.current_user_id = self._load_current_user_id()

        self._refresh_projects()
        logger.debug(
            f"Loaded {len(self.users)} users, {len(self.tasks)} tasks, {len(self.projects)} projects"
        )
        return self

    def persist(self) -> None:
        """Write full snapshots of every collection."""
        self.storage.set(USERS_KEY, encode_collection(self.users))
        self.storage.set(TASKS_KEY, encode_collection(self.tasks))
        self.storage.set(PROJECTS_KEY, encode_collection(self.projects))
        if self.current_user_id:
            self.storage.set(CURRENT_USER_KEY, self.current_user_id)
        else:
            self.storage.delete(CURRENT_USER_KEY)

    # ============== Observers ==============

    def subscribe(self, listener: Listener) -> Listener:
        """Call listener(store) after every completed mutation."""
        self._listeners.append(listener)
        return listener

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _refresh_projects(self) -> None:
        now = self.clock()
        for project in self.projects:
            project.refresh_counters(self.tasks, now)

    def _commit(self) -> None:
        self._refresh_projects()
        self.persist()
        self._notifying = True
        try:
            for listener in list(self._listeners):
                listener(self)
        finally:
            self._notifying = False

    # ============== Reminders ==============

    def _schedule_due_reminder(self, task: Task) -> None:
        if self.scheduler is None:
            return
        reminder = task_due_reminder(task, self.clock(), self.due_reminder_lead)
        if reminder:
            self.scheduler.schedule(reminder)
        else:
            self.scheduler.cancel(task_due_reminder_id(task.id))

    def _schedule_lifestyle_reminders(self, user: User) -> None:
        if self.scheduler is None:
            return
        prefs = user.preferences
        if prefs.enable_notifications and prefs.enable_lifestyle_integration:
            self.scheduler.schedule(break_reminder(prefs))
            self.scheduler.schedule(end_of_workday_reminder(prefs))
        else:
            self.scheduler.cancel(BREAK_REMINDER_ID)
            self.scheduler.cancel(WORKDAY_END_REMINDER_ID)

    def _check_budget(self, project: Project) -> None:
        if self.scheduler is None:
            return
        alert = budget_alert(project, self.clock(), self.budget_alert_threshold)
        if alert:
            self.scheduler.schedule(alert)

    # ============== Users ==============

    def get_user(self, user_id: str) -> User | None:
        return next((u for u in self.users if u.id == user_id), None)

    @property
    def current_user(self) -> User | None:
        if self.current_user_id is None:
            return None
        return self.get_user(self.current_user_id)

    @property
    def needs_onboarding(self) -> bool:
        """No current user means the onboarding flow must run."""
        return self.current_user is None

    @_mutator
    def create_user(
        self,
        name: str,
        email: str,
        role: UserRole = UserRole.MEMBER,
        preferences: UserPreferences | None = None,
    ) -> User:
        now = self.clock()
        user = User(
            name=name,
            email=email,
            role=role,
            preferences=preferences or UserPreferences(),
            created_at=now,
            last_active_at=now,
        )
        self.users.append(user)
        self._commit()
        return user

    @_mutator
    def update_user(self, user_id: str, **changes) -> User | None:
        user = self.get_user(user_id)
        if user is None:
            logger.debug(f"update_user: no user {user_id}")
            return None
        _check_fields(User, changes, _IMMUTABLE_FIELDS)
        for name, value in changes.items():
            setattr(user, name, value)
        user.last_active_at = self.clock()
        if "preferences" in changes and user_id == self.current_user_id:
            self._schedule_lifestyle_reminders(user)
        self._commit()
        return user

    @_mutator
    def delete_user(self, user_id: str) -> bool:
        """Remove a user and clear references to them."""
        user = self.get_user(user_id)
        if user is None:
            logger.debug(f"delete_user: no user {user_id}")
            return False
        self.users.remove(user)
        for task in self.tasks:
            if task.assigned_to == user_id:
                task.assigned_to = None
        for project in self.projects:
            if user_id in project.team_members:
                project.team_members.remove(user_id)
        if self.current_user_id == user_id:
            self.current_user_id = None
        self._commit()
        return True

    @_mutator
    def set_current_user(self, user_id: str) -> User | None:
        user = self.get_user(user_id)
        if user is None:
            logger.debug(f"set_current_user: no user {user_id}")
            return None
        self.current_user_id = user_id
        user.last_active_at = self.clock()
        self._schedule_lifestyle_reminders(user)
        self._commit()
        return user

    def _sign_out(self) -> None:
        self.current_user_id = None
        if self.scheduler is not None:
            self.scheduler.cancel(BREAK_REMINDER_ID)
            self.scheduler.cancel(WORKDAY_END_REMINDER_ID)

    def _clear_data(self) -> None:
        if self.scheduler is not None:
            for task in self.tasks:
                self.scheduler.cancel(task_due_reminder_id(task.id))
            for project in self.projects:
                for milestone in project.milestones:
                    self.scheduler.cancel(milestone_reminder_id(milestone.id))
        self.tasks = []
        self.projects = []

    @_mutator
    def sign_out(self) -> None:
        self._sign_out()
        self._commit()

    @_mutator
    def clear_all_data(self) -> None:
        """Drop all tasks and projects; users stay signed in."""
        self._clear_data()
        self._commit()

    @_mutator
    def delete_account(self) -> None:
        """
        Remove the current user along with every task and project.

        Listeners see one change, after the account is fully gone.
        """
        if self.current_user_id is not None:
            self.users = [u for u in self.users if u.id != self.current_user_id]
        self._clear_data()
        self._sign_out()
        self._commit()

    # ============== Tasks ==============

    def get_task(self, task_id: str) -> Task | None:
        return next((t for t in self.tasks if t.id == task_id), None)

    def tasks_for_project(self, project_id: str) -> list[Task]:
        return [t for t in self.tasks if t.project_id == project_id]

    @_mutator
    def create_task(
        self,
        title: str,
        description: str = "",
        project_id: str | None = None,
        priority: TaskPriority = TaskPriority.MEDIUM,
        assigned_to: str | None = None,
        due_date: datetime | None = None,
        estimated_hours: float | None = None,
        tags: list[str] | None = None,
        budget: float | None = None,
        actual_cost: float | None = None,
    ) -> Task:
        now = self.clock()
        task = Task(
            title=title,
            description=description,
            project_id=project_id,
            priority=priority,
            assigned_to=assigned_to,
            due_date=due_date,
            estimated_hours=estimated_hours,
            tags=list(tags or []),
            budget=budget,
            actual_cost=actual_cost,
            created_at=now,
            updated_at=now,
        )
        self.tasks.append(task)
        if due_date:
            self._schedule_due_reminder(task)
        self._commit()
        return task

    def _apply_task_changes(self, task: Task, changes: dict) -> None:
        _check_fields(Task, changes, _IMMUTABLE_FIELDS | {"completed_at"})
        now = self.clock()
        status = changes.pop("status", None)
        for name, value in changes.items():
            setattr(task, name, value)
        if status is not None:
            task.set_status(status, now)
        task.updated_at = now
        if "due_date" in changes or status is not None:
            self._schedule_due_reminder(task)

    @_mutator
    def update_task(self, task_id: str, **changes) -> Task | None:
        """
        Apply field changes to a task.

        Status changes go through Task.set_status so completed_at stays in
        step; completed_at itself cannot be set directly.
        """
        task = self.get_task(task_id)
        if task is None:
            logger.debug(f"update_task: no task {task_id}")
            return None
        self._apply_task_changes(task, dict(changes))
        self._commit()
        return task

    @_mutator
    def complete_task(self, task_id: str) -> Task | None:
        return self.update_task(task_id, status=TaskStatus.COMPLETED)

    @_mutator
    def toggle_task_status(self, task_id: str) -> Task | None:
        task = self.get_task(task_id)
        if task is None:
            logger.debug(f"toggle_task_status: no task {task_id}")
            return None
        toggled = toggle_status(task, self.clock())
        return self.update_task(task_id, status=toggled.status)

    @_mutator
    def duplicate_task(self, task_id: str) -> Task | None:
        task = self.get_task(task_id)
        if task is None:
            logger.debug(f"duplicate_task: no task {task_id}")
            return None
        copy = duplicate_task(task, self.clock())
        self.tasks.append(copy)
        self._commit()
        return copy

    @_mutator
    def delete_task(self, task_id: str) -> bool:
        task = self.get_task(task_id)
        if task is None:
            logger.debug(f"delete_task: no task {task_id}")
            return False
        self.tasks.remove(task)
        if self.scheduler is not None:
            self.scheduler.cancel(task_due_reminder_id(task_id))
        self._commit()
        return True

    @_mutator
    def add_comment(
        self,
        task_id: str,
        author_id: str,
        content: str,
        mentions: list[str] | None = None,
    ) -> TaskComment | None:
        task = self.get_task(task_id)
        if task is None:
            logger.debug(f"add_comment: no task {task_id}")
            return None
        now = self.clock()
        comment = TaskComment(
            content=content,
            author_id=author_id,
            created_at=now,
            mentions=list(mentions or []),
        )
        task.comments.append(comment)
        task.updated_at = now
        self._commit()
        return comment

    # Bulk operations commit once for the whole batch

    @_mutator
    def complete_tasks(self, task_ids: list[str]) -> int:
        return self._bulk_update(task_ids, {"status": TaskStatus.COMPLETED})

    @_mutator
    def assign_tasks(self, task_ids: list[str], user_id: str | None) -> int:
        return self._bulk_update(task_ids, {"assigned_to": user_id})

    def _bulk_update(self, task_ids: list[str], changes: dict) -> int:
        updated = 0
        for task_id in task_ids:
            task = self.get_task(task_id)
            if task is None:
                continue
            self._apply_task_changes(task, dict(changes))
            updated += 1
        if updated:
            self._commit()
        return updated

    @_mutator
    def delete_tasks(self, task_ids: list[str]) -> int:
        doomed = set(task_ids)
        before = len(self.tasks)
        self.tasks = [t for t in self.tasks if t.id not in doomed]
        removed = before - len(self.tasks)
        if self.scheduler is not None:
            for task_id in doomed:
                self.scheduler.cancel(task_due_reminder_id(task_id))
        if removed:
            self._commit()
        return removed

    # ============== Projects ==============

    def get_project(self, project_id: str) -> Project | None:
        return next((p for p in self.projects if p.id == project_id), None)

    @_mutator
    def create_project(
        self,
        name: str,
        description: str = "",
        budget: float | None = None,
        owner_id: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        status: ProjectStatus = ProjectStatus.PLANNING,
        team_members: list[str] | None = None,
        tags: list[str] | None = None,
        actual_cost: float | None = None,
    ) -> Project:
        now = self.clock()
        project = Project(
            name=name,
            description=description,
            budget=budget,
            actual_cost=actual_cost,
            owner_id=owner_id or self.current_user_id or "",
            start_date=start_date or now,
            end_date=end_date,
            status=status,
            team_members=list(team_members or []),
            tags=list(tags or []),
            created_at=now,
            updated_at=now,
        )
        self.projects.append(project)
        self._commit()
        return project

    @_mutator
    def update_project(self, project_id: str, **changes) -> Project | None:
        """Apply field changes to a project. Derived counters and milestones are rejected."""
        project = self.get_project(project_id)
        if project is None:
            logger.debug(f"update_project: no project {project_id}")
            return None
        _check_fields(
            Project, changes, _IMMUTABLE_FIELDS | _DERIVED_PROJECT_FIELDS | _MANAGED_PROJECT_FIELDS
        )
        for name, value in changes.items():
            setattr(project, name, value)
        project.updated_at = self.clock()
        if "budget" in changes or "actual_cost" in changes:
            self._check_budget(project)
        self._commit()
        return project

    @_mutator
    def archive_project(self, project_id: str) -> Project | None:
        return self.update_project(project_id, is_archived=True)

    @_mutator
    def unarchive_project(self, project_id: str) -> Project | None:
        return self.update_project(project_id, is_archived=False)

    @_mutator
    def add_team_member(self, project_id: str, user_id: str) -> Project | None:
        project = self.get_project(project_id)
        if project is None:
            logger.debug(f"add_team_member: no project {project_id}")
            return None
        if user_id in project.team_members:
            return project
        return self.update_project(project_id, team_members=[*project.team_members, user_id])

    @_mutator
    def remove_team_member(self, project_id: str, user_id: str) -> Project | None:
        project = self.get_project(project_id)
        if project is None:
            logger.debug(f"remove_team_member: no project {project_id}")
            return None
        members = [m for m in project.team_members if m != user_id]
        return self.update_project(project_id, team_members=members)

    @_mutator
    def duplicate_project(self, project_id: str) -> Project | None:
        project = self.get_project(project_id)
        if project is None:
            logger.debug(f"duplicate_project: no project {project_id}")
            return None
        copy = duplicate_project(project, self.current_user_id or project.owner_id, self.clock())
        self.projects.append(copy)
        self._commit()
        return copy

    # ============== Milestones ==============

    @_mutator
    def add_milestone(
        self,
        project_id: str,
        title: str,
        due_date: datetime,
        description: str = "",
    ) -> ProjectMilestone | None:
        project = self.get_project(project_id)
        if project is None:
            logger.debug(f"add_milestone: no project {project_id}")
            return None
        now = self.clock()
        milestone = ProjectMilestone(
            title=title,
            description=description,
            due_date=due_date,
            project_id=project_id,
            created_at=now,
        )
        project.milestones.append(milestone)
        project.updated_at = now
        if self.scheduler is not None:
            reminder = milestone_reminder(project, milestone, now)
            if reminder:
                self.scheduler.schedule(reminder)
        self._commit()
        return milestone

    @_mutator
    def complete_milestone(self, project_id: str, milestone_id: str) -> ProjectMilestone | None:
        project = self.get_project(project_id)
        milestone = get_milestone(project, milestone_id) if project else None
        if milestone is None:
            logger.debug(f"complete_milestone: no milestone {milestone_id} in {project_id}")
            return None
        now = self.clock()
        milestone.complete(now)
        project.updated_at = now
        if self.scheduler is not None:
            self.scheduler.cancel(milestone_reminder_id(milestone_id))
        self._commit()
        return milestone

    @_mutator
    def delete_project(self, project_id: str) -> bool:
        """
        Remove a project.

        With cascade_project_delete its tasks are deleted too; otherwise
        they are kept with their project reference cleared.
        """
        project = self.get_project(project_id)
        if project is None:
            logger.debug(f"delete_project: no project {project_id}")
            return False
        self.projects.remove(project)
        if self.scheduler is not None:
            for milestone in project.milestones:
                self.scheduler.cancel(milestone_reminder_id(milestone.id))

        owned = self.tasks_for_project(project_id)
        if self.cascade_project_delete:
            self.tasks = [t for t in self.tasks if t.project_id != project_id]
            if self.scheduler is not None:
                for task in owned:
                    self.scheduler.cancel(task_due_reminder_id(task.id))
        else:
            now = self.clock()
            for task in owned:
                task.project_id = None
                task.updated_at = now
        logger.debug(f"Deleted project {project_id} ({len(owned)} tasks affected)")
        self._commit()
        return True
