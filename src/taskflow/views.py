"""List views: stateful wrappers that keep filtered results in step with the store."""

import time
from typing import Callable

from .core.projects import Project, ProjectFilter, ProjectSort, apply_project_view
from .core.tasks import Task, TaskFilter, TaskPriority, TaskSort, apply_task_view
from .debounce import Debouncer
from .store import EntityStore

DEFAULT_DEBOUNCE_SECONDS = 0.3


class _ListView:
    """Shared plumbing: store subscription, debounced search, teardown.

    Search text settles lazily: reading `results` applies it once the
    debounce delay has passed, on the reading thread.
    """

    def __init__(
        self,
        store: EntityStore,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.debounce_seconds = debounce_seconds
        self._search_text = ""
        self._closed = False
        self._search = Debouncer(debounce_seconds, self.refresh, clock)
        store.subscribe(self._on_store_change)

    @property
    def results(self) -> list:
        self._search.poll()
        return self._results

    @property
    def search_text(self) -> str:
        return self._search_text

    @search_text.setter
    def search_text(self, value: str) -> None:
        self._search_text = value
        self._search.call()

    def flush(self) -> None:
        """Apply any pending search text immediately."""
        self._search.flush()

    def _on_store_change(self, store: EntityStore) -> None:
        self.refresh()

    def refresh(self) -> None:
        if self._closed:
            return
        self._recompute()

    def _recompute(self) -> None:
        raise NotImplementedError

    def close(self) -> None:
        """Detach from the store; pending searches never fire afterwards."""
        self._closed = True
        self._search.cancel()
        self.store.unsubscribe(self._on_store_change)


class TaskListView(_ListView):
    def __init__(
        self,
        store: EntityStore,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._filter = TaskFilter.ALL
        self._sort = TaskSort.DATE_CREATED
        self._priority: TaskPriority | None = None
        self._project_id: str | None = None
        self._results: list[Task] = []
        super().__init__(store, debounce_seconds, clock)
        self.refresh()

    @property
    def filter(self) -> TaskFilter:
        return self._filter

    @filter.setter
    def filter(self, value: TaskFilter) -> None:
        self._filter = value
        self.refresh()

    @property
    def sort(self) -> TaskSort:
        return self._sort

    @sort.setter
    def sort(self, value: TaskSort) -> None:
        self._sort = value
        self.refresh()

    @property
    def priority(self) -> TaskPriority | None:
        return self._priority

    @priority.setter
    def priority(self, value: TaskPriority | None) -> None:
        self._priority = value
        self.refresh()

    @property
    def project_id(self) -> str | None:
        return self._project_id

    @project_id.setter
    def project_id(self, value: str | None) -> None:
        self._project_id = value
        self.refresh()

    def _recompute(self) -> None:
        self._results = apply_task_view(
            self.store.tasks,
            search_text=self._search_text,
            task_filter=self._filter,
            sort=self._sort,
            current_user_id=self.store.current_user_id,
            now=self.store.clock(),
            priority=self._priority,
            project_id=self._project_id,
        )


class ProjectListView(_ListView):
    def __init__(
        self,
        store: EntityStore,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._filter = ProjectFilter.ALL
        self._sort = ProjectSort.DATE_CREATED
        self._results: list[Project] = []
        super().__init__(store, debounce_seconds, clock)
        self.refresh()

    @property
    def filter(self) -> ProjectFilter:
        return self._filter

    @filter.setter
    def filter(self, value: ProjectFilter) -> None:
        self._filter = value
        self.refresh()

    @property
    def sort(self) -> ProjectSort:
        return self._sort

    @sort.setter
    def sort(self, value: ProjectSort) -> None:
        self._sort = value
        self.refresh()

    def _recompute(self) -> None:
        self._results = apply_project_view(
            self.store.projects,
            search_text=self._search_text,
            project_filter=self._filter,
            sort=self._sort,
            current_user_id=self.store.current_user_id,
        )
