"""
Board view: wires board state, drag interpreter, sensors and synchronizer
together the way one mounted board screen uses them.
"""
import logging
from typing import Any, Dict, List, Optional
from .board import BoardState
from .config import Config
from .events import BoardEventBus
from .gestures import DragInterpreter, KeyboardSensor, PointerSensor, TouchSensor
from .schema import Role, Status, Task, User
from .store import BoardStore
from .sync import PersistenceSynchronizer

logger = logging.getLogger(__name__)


class BoardView:
    """One interactive board for one acting user."""

    def __init__(self, store: BoardStore, user: Optional[User] = None,
                 scheduler: Any = None, config: Optional[Config] = None,
                 bus: Optional[BoardEventBus] = None):
        self.store = store
        self.user = user
        self.config = config or Config()
        self.bus = bus or BoardEventBus()
        self.users: Dict[str, User] = {}

        self.board = BoardState(store, role_provider=lambda: self.role)
        self.sync = PersistenceSynchronizer(store, self.board, self.bus)
        self.interpreter = DragInterpreter(self.board, on_drop=self.sync.submit)

        self.pointer = PointerSensor(self.interpreter, distance=self.config.pointer_distance)
        self.keyboard = KeyboardSensor(self.interpreter)
        self.touch = None
        if scheduler is not None:
            self.touch = TouchSensor(
                self.interpreter, scheduler,
                delay=self.config.touch_delay,
                tolerance=self.config.touch_tolerance,
            )

    @property
    def role(self) -> Role:
        """Read on every check; reassigning user.role takes effect immediately."""
        return self.user.role if self.user else Role.GUEST

    def mount(self) -> None:
        """Initial load. Members see only the tasks assigned to them."""
        self.users = {u.user_id: u for u in self.store.read_users()}
        assignee = self.user.user_id if self.user and self.role == Role.MEMBER else None
        self.board.load(assignee_id=assignee)

    def unmount(self) -> None:
        """Drop any drag in progress and discard unresolved writes."""
        self.interpreter.reset()
        self.pointer.cancel()
        if self.touch is not None:
            self.touch.touch_end(None)
        self.sync.close()

    def render(self) -> Dict[str, List[Dict[str, Any]]]:
        """Columns as plain dicts, with assignee labels resolved."""
        unsynced = self.sync.unsynced()
        out: Dict[str, List[Dict[str, Any]]] = {}
        for status, tasks in self.board.columns().items():
            out[status.value] = [self._card(t, t.task_id in unsynced) for t in tasks]
        return out

    def _card(self, task: Task, unsynced: bool) -> Dict[str, Any]:
        data = task.to_dict()
        assignee = self.users.get(task.assignee_id) if task.assignee_id else None
        data["assignee"] = assignee.initials if assignee else None
        data["unsynced"] = unsynced
        return data

    def column_of(self, task_id: str) -> Optional[Status]:
        task = self.board.get_task(task_id)
        return task.status if task else None
