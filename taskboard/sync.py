"""
Persistence synchronizer: writes completed drags through to the store.

Every drop becomes a PendingEdit with two phases:

  APPLIED   : the board already shows the new status (optimistic)
  CONFIRMED : the store accepted the write; the cache entry is reconciled
  FAILED    : the store rejected it; the task stays as shown and is
              reported by unsynced() until a later write or resync()
  DISCARDED : the view closed before the write resolved; result ignored

Inside a running asyncio loop the store call runs in a worker thread and
submit() returns immediately, so the next drag never waits on the write.
Outside a loop the write runs inline.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Set
from .board import BoardState
from .events import BoardEventBus
from .schema import Status, Task
from .store import BoardStore

logger = logging.getLogger(__name__)


class EditState(Enum):
    APPLIED = "applied"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    DISCARDED = "discarded"


@dataclass
class PendingEdit:
    """One dropped status change, from optimistic apply to store confirmation."""
    task_id: str
    project_id: str
    from_status: Optional[Status]
    to_status: Status
    state: EditState = EditState.APPLIED
    error: Optional[str] = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def resolved(self) -> bool:
        return self.state != EditState.APPLIED

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "task_id": self.task_id,
            "project_id": self.project_id,
            "from_status": self.from_status.value if self.from_status else None,
            "to_status": self.to_status.value,
            "state": self.state.value,
            "error": self.error,
            "timestamp": self.timestamp,
        }


class PersistenceSynchronizer:
    """Issues one status write per completed drag and reconciles the board cache."""

    def __init__(self, store: BoardStore, board: BoardState, bus: Optional[BoardEventBus] = None):
        self.store = store
        self.board = board
        self.bus = bus or BoardEventBus()
        self.edits: List[PendingEdit] = []
        self._unsynced: Dict[str, PendingEdit] = {}
        self._latest: Dict[str, PendingEdit] = {}
        self._inflight: Set[asyncio.Task] = set()
        self._closed = False

    def submit(self, task: Task, project_id: str, from_status: Optional[Status] = None) -> PendingEdit:
        """Record the drop and start writing it. Usable directly as a drop handler."""
        edit = PendingEdit(
            task_id=task.task_id,
            project_id=project_id,
            from_status=from_status,
            to_status=task.status,
        )
        self.edits.append(edit)
        self._latest[edit.task_id] = edit
        if from_status is not None and from_status != task.status:
            self.bus.emit(
                "task_moved",
                task_id=task.task_id,
                project_id=project_id,
                from_status=from_status,
                to_status=task.status,
            )

        if self._closed:
            edit.state = EditState.DISCARDED
            return edit

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None:
            self._resolve(edit, *self._write(edit))
        else:
            t = loop.create_task(self._write_async(edit))
            self._inflight.add(t)
            t.add_done_callback(self._inflight.discard)
        return edit

    async def _write_async(self, edit: PendingEdit) -> None:
        ok, error = await asyncio.to_thread(self._write, edit)
        if self._closed or edit.state == EditState.DISCARDED:
            return
        self._resolve(edit, ok, error)

    def _write(self, edit: PendingEdit):
        try:
            if self.store.update_task_status(edit.task_id, edit.to_status):
                return True, None
            return False, "store rejected status update"
        except Exception as e:
            return False, str(e)

    def _resolve(self, edit: PendingEdit, ok: bool, error: Optional[str]) -> None:
        if ok:
            edit.state = EditState.CONFIRMED
            # An older write must not overwrite a newer optimistic move
            if self._latest.get(edit.task_id) is edit:
                self.board.reconcile(edit.task_id, edit.project_id, edit.to_status)
            current = self._unsynced.get(edit.task_id)
            if current is not None and current.timestamp <= edit.timestamp:
                del self._unsynced[edit.task_id]
            self.bus.emit(
                "sync_confirmed",
                task_id=edit.task_id,
                project_id=edit.project_id,
                status=edit.to_status,
            )
            return

        edit.state = EditState.FAILED
        edit.error = error
        # A newer move of the same task decides whether it is in sync
        if self._latest.get(edit.task_id) is edit:
            self._unsynced[edit.task_id] = edit
        logger.error(
            f"Failed to persist status of task {edit.task_id} "
            f"({edit.to_status.value}): {error}"
        )
        self.bus.emit(
            "sync_failed",
            task_id=edit.task_id,
            project_id=edit.project_id,
            status=edit.to_status,
            error=error,
        )

    def unsynced(self) -> Dict[str, PendingEdit]:
        """Tasks whose shown status the store has not accepted, by task id."""
        return dict(self._unsynced)

    def resync(self, project_id: Optional[str] = None) -> None:
        """Reload a project from the store, dropping its unsynced local changes."""
        project_id = project_id or self.board.active_project_id
        self.board.reload(project_id)
        for task_id, edit in list(self._unsynced.items()):
            if edit.project_id == project_id:
                del self._unsynced[task_id]
        logger.info(f"Resynced project {project_id} from store")

    async def drain(self) -> None:
        """Wait for every in-flight write to resolve."""
        if self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    def close(self) -> None:
        """Tear down: unresolved writes are discarded, never retried."""
        self._closed = True
        for edit in self.edits:
            if edit.state == EditState.APPLIED:
                edit.state = EditState.DISCARDED
        for t in list(self._inflight):
            t.cancel()
