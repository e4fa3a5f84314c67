"""
Board state: the in-memory task cache for every loaded project.

There is exactly one copy of each task in memory. The cache is keyed by
project id, and the "visible" list is simply the cache entry of the
active project, so the list the UI renders and the list reconciliation
updates cannot drift apart.

Mutations are synchronous and optimistic; they never touch the store.
Writing the result through is sync.py's job.
"""
import logging
from typing import Callable, Dict, Iterable, List, Optional
from .schema import Project, Role, Status, Task
from .store import BoardStore
from .guard import can_change_column

logger = logging.getLogger(__name__)


def partition_columns(tasks: Iterable[Task], column_ids: Iterable[Status]) -> Dict[Status, List[Task]]:
    """Split the master sequence into per-column lists, keeping master order."""
    columns: Dict[Status, List[Task]] = {cid: [] for cid in column_ids}
    for task in tasks:
        if task.status in columns:
            columns[task.status].append(task)
    return columns


def _array_move(items: List[Task], src: int, dst: int) -> None:
    items.insert(dst, items.pop(src))


class BoardState:
    """Per-project task cache with the two drag mutations."""

    def __init__(self, store: BoardStore, role_provider: Callable[[], Role] = lambda: Role.GUEST):
        self.store = store
        # Asked on every cross-column move, so a role change applies at once
        self.role_provider = role_provider
        self.projects: Dict[str, Project] = {}
        self.cache: Dict[str, List[Task]] = {}
        self.active_project_id: Optional[str] = None

    # ── loading ──────────────────────────────────────────────────────────────

    def load(self, assignee_id: Optional[str] = None) -> None:
        """
        Fetch all projects and their tasks from the store.

        With `assignee_id` set (member view) only that user's tasks are
        cached, and the first project holding one of them becomes active.
        """
        self.projects = {p.project_id: p for p in self.store.read_projects()}
        self.cache = {}
        for project_id in self.projects:
            tasks = self.store.read_tasks(project_id)
            if assignee_id is not None:
                tasks = [t for t in tasks if t.assignee_id == assignee_id]
            self.cache[project_id] = tasks

        initial = next(iter(self.projects), None)
        if assignee_id is not None:
            initial = next(
                (pid for pid, tasks in self.cache.items() if tasks),
                initial,
            )
        self.active_project_id = initial
        logger.info(f"Loaded {len(self.projects)} projects, active={initial}")

    def reload(self, project_id: Optional[str] = None) -> None:
        """Replace one project's cache entry with the store's authoritative copy."""
        project_id = project_id or self.active_project_id
        if project_id not in self.projects:
            return
        self.cache[project_id] = self.store.read_tasks(project_id)

    def select_project(self, project_id: str) -> bool:
        if project_id not in self.projects:
            return False
        self.active_project_id = project_id
        return True

    # ── reads ────────────────────────────────────────────────────────────────

    @property
    def project(self) -> Optional[Project]:
        return self.projects.get(self.active_project_id)

    @property
    def tasks(self) -> List[Task]:
        """The visible sequence: a view onto the active project's cache entry."""
        return self.cache.setdefault(self.active_project_id, []) if self.active_project_id else []

    def columns(self) -> Dict[Status, List[Task]]:
        project = self.project
        if project is None:
            return {}
        return partition_columns(self.tasks, project.column_ids)

    def index_of(self, task_id: str) -> int:
        for i, task in enumerate(self.tasks):
            if task.task_id == task_id:
                return i
        return -1

    def get_task(self, task_id: str) -> Optional[Task]:
        i = self.index_of(task_id)
        return self.tasks[i] if i >= 0 else None

    # ── mutations ────────────────────────────────────────────────────────────

    def reorder_within_column(self, task_id: str, target_index: int) -> bool:
        """
        Move a task to `target_index` of the visible sequence.

        Returns True if the order changed. Unknown ids are a no-op.
        """
        tasks = self.tasks
        src = self.index_of(task_id)
        if src < 0 or not tasks:
            return False
        dst = max(0, min(target_index, len(tasks) - 1))
        if dst == src:
            return False
        _array_move(tasks, src, dst)
        return True

    def move_to_column(self, task_id: str, target_status: Status, target_index: Optional[int] = None) -> bool:
        """
        Move a task into another column, if the acting role may.

        `target_index` is a position in the visible sequence; None means
        the end of the target column. Denied or unknown moves leave the
        sequence untouched. Returns True if anything changed.
        """
        tasks = self.tasks
        src = self.index_of(task_id)
        project = self.project
        if src < 0 or project is None or target_status not in project.column_ids:
            return False

        task = tasks[src]
        if task.status == target_status:
            if target_index is None:
                return False
            return self.reorder_within_column(task_id, target_index)

        role = self.role_provider()
        if not can_change_column(role):
            logger.debug(f"Denied {task_id}: {task.status.value} → {target_status.value} for role {role}")
            return False

        task.status = target_status
        if target_index is None:
            # Behind the last task already in the target column, if any
            last = max(
                (i for i, t in enumerate(tasks) if t.status == target_status and i != src),
                default=None,
            )
            if last is None:
                return True
            dst = last if last > src else last + 1
        else:
            dst = max(0, min(target_index, len(tasks) - 1))
        if dst != src:
            _array_move(tasks, src, dst)
        return True

    def reconcile(self, task_id: str, project_id: str, status: Status) -> bool:
        """Record a confirmed status on the cached entry, if it still exists."""
        for task in self.cache.get(project_id, []):
            if task.task_id == task_id:
                task.status = status
                return True
        return False
