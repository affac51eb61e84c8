"""Presentation mapping for domain enums.

Domain enums carry no display concerns; anything that renders them looks
up labels and colors here.
"""

from .dashboard import AlertKind
from .projects import ProjectFilter, ProjectSort, ProjectStatus
from .tasks import TaskFilter, TaskPriority, TaskSort, TaskStatus

TASK_STATUS_LABELS = {
    TaskStatus.TODO: ("To Do", "#6B7280"),
    TaskStatus.IN_PROGRESS: ("In Progress", "#3CC45B"),
    TaskStatus.REVIEW: ("Review", "#FCC418"),
    TaskStatus.COMPLETED: ("Completed", "#10B981"),
    TaskStatus.BLOCKED: ("Blocked", "#EF4444"),
    TaskStatus.CANCELLED: ("Cancelled", "#9CA3AF"),
}

TASK_PRIORITY_LABELS = {
    TaskPriority.LOW: ("Low", "#10B981"),
    TaskPriority.MEDIUM: ("Medium", "#FCC418"),
    TaskPriority.HIGH: ("High", "#F59E0B"),
    TaskPriority.URGENT: ("Urgent", "#EF4444"),
}

PROJECT_STATUS_LABELS = {
    ProjectStatus.PLANNING: ("Planning", "#6B7280"),
    ProjectStatus.ACTIVE: ("Active", "#3CC45B"),
    ProjectStatus.ON_HOLD: ("On Hold", "#FCC418"),
    ProjectStatus.COMPLETED: ("Completed", "#10B981"),
    ProjectStatus.CANCELLED: ("Cancelled", "#EF4444"),
}

ALERT_LABELS = {
    AlertKind.SUCCESS: ("Success", "#10B981"),
    AlertKind.WARNING: ("Warning", "#F59E0B"),
    AlertKind.INFO: ("Info", "#3B82F6"),
    AlertKind.ERROR: ("Error", "#EF4444"),
}

FILTER_LABELS = {
    TaskFilter.ALL: "All Tasks",
    TaskFilter.MY_TASKS: "My Tasks",
    TaskFilter.TODO: "To Do",
    TaskFilter.IN_PROGRESS: "In Progress",
    TaskFilter.REVIEW: "Review",
    TaskFilter.COMPLETED: "Completed",
    TaskFilter.BLOCKED: "Blocked",
    TaskFilter.OVERDUE: "Overdue",
    TaskFilter.THIS_WEEK: "This Week",
    ProjectFilter.ALL: "All Projects",
    ProjectFilter.ACTIVE: "Active",
    ProjectFilter.PLANNING: "Planning",
    ProjectFilter.COMPLETED: "Completed",
    ProjectFilter.OVER_BUDGET: "Over Budget",
    ProjectFilter.MY_PROJECTS: "My Projects",
}

SORT_LABELS = {
    TaskSort.DATE_CREATED: "Date Created",
    TaskSort.DUE_DATE: "Due Date",
    TaskSort.PRIORITY: "Priority",
    TaskSort.TITLE: "Title",
    TaskSort.STATUS: "Status",
    ProjectSort.DATE_CREATED: "Date Created",
    ProjectSort.NAME: "Name",
    ProjectSort.PROGRESS: "Progress",
    ProjectSort.BUDGET: "Budget",
    ProjectSort.END_DATE: "End Date",
}

_TABLES = (TASK_STATUS_LABELS, TASK_PRIORITY_LABELS, PROJECT_STATUS_LABELS, ALERT_LABELS)


def display_name(value) -> str:
    """Human-readable label for any mapped enum member."""
    for table in _TABLES:
        if value in table:
            return table[value][0]
    if value in FILTER_LABELS:
        return FILTER_LABELS[value]
    if value in SORT_LABELS:
        return SORT_LABELS[value]
    return str(value.value).replace("_", " ").title()


def hex_color(value) -> str | None:
    for table in _TABLES:
        if value in table:
            return table[value][1]
    return None
