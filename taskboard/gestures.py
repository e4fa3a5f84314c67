"""
Drag gestures: sensors that recognise a drag, and the drag state machine.

  IDLE ──start──▶ DRAGGING ──drop(target)──▶ DROPPED
                     │
                     └──drop(None) / reset()──▶ IDLE

Sensors turn raw pointer, touch and keyboard input into start / hover /
drop calls. A pointer drag starts only after the pointer has travelled
`distance` pixels, a touch drag only after the finger has rested for
`delay` seconds, so clicks and scrolls never pick up a card.

Touch activation is a pending timer on a scheduler: anything with
`call_later(delay, callback)` returning a handle with `cancel()`.
An asyncio event loop qualifies.
"""
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional
from .board import BoardState
from .schema import Status, Task

logger = logging.getLogger(__name__)


class DragState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    DROPPED = "dropped"


class TargetKind(Enum):
    TASK = "task"
    COLUMN = "column"


@dataclass(frozen=True)
class DropTarget:
    """What is under the pointer: another task, or a column's empty region."""
    kind: TargetKind
    target_id: str

    @classmethod
    def task(cls, task_id: str) -> "DropTarget":
        return cls(TargetKind.TASK, task_id)

    @classmethod
    def column(cls, status: Status) -> "DropTarget":
        return cls(TargetKind.COLUMN, status.value)


# Called once per completed drag with (subject, project_id, status at drag start)
DropHandler = Callable[[Task, str, Status], Any]


class DragInterpreter:
    """State machine over a single active drag."""

    def __init__(self, board: BoardState, on_drop: Optional[DropHandler] = None):
        self.board = board
        self.on_drop = on_drop
        self.state = DragState.IDLE
        self.subject_id: Optional[str] = None
        self.origin_status: Optional[Status] = None
        self._last_target: Optional[DropTarget] = None

    @property
    def is_dragging(self) -> bool:
        return self.state == DragState.DRAGGING

    def start(self, task_id: str) -> bool:
        """Designate `task_id` as the drag subject."""
        if self.is_dragging:
            return False
        task = self.board.get_task(task_id)
        if task is None:
            return False
        self.state = DragState.DRAGGING
        self.subject_id = task_id
        self.origin_status = task.status
        self._last_target = None
        logger.debug(f"Drag started: {task_id} in {task.status.value}")
        return True

    def hover(self, target: Optional[DropTarget], force: bool = False) -> bool:
        """
        Apply the edit implied by hovering `target`.

        Returns True if the visible sequence changed. Repeating the
        previous target, hovering the subject itself, or a denied
        cross-column move all return False and change nothing.
        `force` applies a repeated target again; each key press is a
        fresh request even when it names the same neighbour.
        """
        if not self.is_dragging or target is None:
            return False
        if target == self._last_target and not force:
            return False
        self._last_target = target

        subject = self.board.get_task(self.subject_id)
        if subject is None:
            return False

        if target.kind == TargetKind.TASK:
            if target.target_id == self.subject_id:
                return False
            over_index = self.board.index_of(target.target_id)
            if over_index < 0:
                return False
            over = self.board.tasks[over_index]
            if over.status == subject.status:
                return self.board.reorder_within_column(self.subject_id, over_index)
            return self.board.move_to_column(self.subject_id, over.status, over_index)

        try:
            status = Status.from_str(target.target_id)
        except ValueError:
            return False
        if status == subject.status:
            return False
        return self.board.move_to_column(self.subject_id, status)

    def drop(self, target: Optional[DropTarget]) -> Any:
        """
        End the drag. Without a target this is an abort.

        Over a target the drag completes: the pending hover (if `target`
        differs from the last one seen) is applied, and the drop handler
        receives the subject with its final status. Its result is returned.
        """
        if not self.is_dragging:
            return None
        if target is None:
            logger.debug(f"Drag aborted: {self.subject_id}")
            self._clear(DragState.IDLE)
            return None

        self.hover(target)
        subject = self.board.get_task(self.subject_id)
        project_id = self.board.active_project_id
        origin = self.origin_status
        self._clear(DragState.DROPPED)
        if subject is None:
            return None
        logger.debug(f"Drag dropped: {subject.task_id} → {subject.status.value}")
        if self.on_drop is not None:
            return self.on_drop(subject, project_id, origin)
        return None

    def reset(self) -> None:
        """Discard any drag in progress without persisting it."""
        if self.is_dragging:
            logger.debug(f"Drag discarded: {self.subject_id}")
        self._clear(DragState.IDLE)

    def _clear(self, state: DragState) -> None:
        self.state = state
        self.subject_id = None
        self.origin_status = None
        self._last_target = None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Sensors
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class PointerSensor:
    """Mouse/pen: activates after the pointer has moved `distance` pixels."""

    def __init__(self, interpreter: DragInterpreter, distance: float = 5):
        self.interpreter = interpreter
        self.distance = distance
        self._pressed: Optional[tuple] = None  # (task_id, x, y)
        self._active = False

    def press(self, task_id: str, x: float, y: float) -> None:
        self._pressed = (task_id, x, y)
        self._active = False

    def move(self, x: float, y: float, target: Optional[DropTarget] = None) -> bool:
        if self._pressed is None:
            return False
        if not self._active:
            task_id, x0, y0 = self._pressed
            if math.hypot(x - x0, y - y0) < self.distance:
                return False
            self._active = self.interpreter.start(task_id)
            if not self._active:
                self._pressed = None
                return False
        return self.interpreter.hover(target)

    def cancel(self) -> None:
        """Forget a press that has not become a drag yet."""
        self._pressed = None
        self._active = False

    def release(self, target: Optional[DropTarget] = None) -> Any:
        """A release before activation was a click; nothing happens."""
        was_active = self._active
        self._pressed = None
        self._active = False
        if was_active:
            return self.interpreter.drop(target)
        return None


class TouchSensor:
    """
    Touch: activates after the finger rests for `delay` seconds.

    Moving more than `tolerance` pixels before that is a scroll and
    cancels the pending activation, as does lifting the finger.
    """

    def __init__(self, interpreter: DragInterpreter, scheduler: Any,
                 delay: float = 0.25, tolerance: float = 5):
        self.interpreter = interpreter
        self.scheduler = scheduler
        self.delay = delay
        self.tolerance = tolerance
        self._origin: Optional[tuple] = None  # (task_id, x, y)
        self._handle = None
        self._active = False

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def touch_start(self, task_id: str, x: float, y: float) -> None:
        self._cancel_pending()
        self._origin = (task_id, x, y)
        self._active = False
        self._handle = self.scheduler.call_later(self.delay, self._activate)

    def _activate(self) -> None:
        self._handle = None
        if self._origin is None:
            return
        self._active = self.interpreter.start(self._origin[0])

    def touch_move(self, x: float, y: float, target: Optional[DropTarget] = None) -> bool:
        if self._origin is None:
            return False
        if self._active:
            return self.interpreter.hover(target)
        _, x0, y0 = self._origin
        if math.hypot(x - x0, y - y0) > self.tolerance:
            self._cancel_pending()
            self._origin = None
        return False

    def touch_end(self, target: Optional[DropTarget] = None) -> Any:
        was_active = self._active
        self._cancel_pending()
        self._origin = None
        self._active = False
        if was_active:
            return self.interpreter.drop(target)
        return None

    def _cancel_pending(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class KeyboardSensor:
    """
    Keyboard: space/enter picks up the focused task and drops it again.

    While dragging, up/down hover the neighbouring task in the subject's
    column and left/right hover the neighbouring column. Escape aborts.
    """

    PICK_KEYS = ("space", "enter")

    def __init__(self, interpreter: DragInterpreter):
        self.interpreter = interpreter
        self._target: Optional[DropTarget] = None

    def key(self, key: str, focused_task_id: Optional[str] = None) -> Any:
        key = key.lower()
        it = self.interpreter

        if not it.is_dragging:
            if key in self.PICK_KEYS and focused_task_id:
                self._target = None
                return it.start(focused_task_id)
            return False

        if key == "escape":
            self._target = None
            return it.drop(None)
        if key in self.PICK_KEYS:
            subject = it.board.get_task(it.subject_id)
            target = self._target
            if target is None and subject is not None:
                target = DropTarget.column(subject.status)
            self._target = None
            return it.drop(target)

        target = self._neighbour(key)
        if target is None:
            return False
        self._target = target
        return it.hover(target, force=True)

    def _neighbour(self, key: str) -> Optional[DropTarget]:
        board = self.interpreter.board
        subject = board.get_task(self.interpreter.subject_id)
        project = board.project
        if subject is None or project is None:
            return None

        if key in ("up", "down"):
            column = board.columns().get(subject.status, [])
            pos = next((i for i, t in enumerate(column) if t.task_id == subject.task_id), None)
            if pos is None:
                return None
            pos += -1 if key == "up" else 1
            if 0 <= pos < len(column):
                return DropTarget.task(column[pos].task_id)
            return None

        if key in ("left", "right"):
            ids = project.column_ids
            pos = ids.index(subject.status) + (-1 if key == "left" else 1)
            if 0 <= pos < len(ids):
                return DropTarget.column(ids[pos])
        return None
