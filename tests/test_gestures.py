"""
Tests for drag sensors and the drag state machine.

Board used throughout (project "px"):  t2, t3 in To Do; t4 In Progress;
t6 Review; Done empty.
"""
import pytest

from taskboard.board import BoardState
from taskboard.gestures import (
    DragInterpreter, DragState, DropTarget, KeyboardSensor, PointerSensor, TouchSensor,
)
from taskboard.schema import Role, Status


def make(store, role=Role.ADMIN, project_id="px"):
    """Board + interpreter whose drops are recorded instead of persisted."""
    board = BoardState(store, role_provider=lambda: role)
    board.load()
    board.select_project(project_id)
    drops = []
    it = DragInterpreter(board, on_drop=lambda task, pid, origin: drops.append(
        (task.task_id, pid, origin, task.status)) or "dropped")
    return board, it, drops


def order(board):
    return [t.task_id for t in board.tasks]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# State machine
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestDragInterpreter:

    def test_start_unknown_task(self, px_store):
        _, it, _ = make(px_store)
        assert not it.start("ghost")
        assert it.state == DragState.IDLE

    def test_cannot_start_twice(self, px_store):
        _, it, _ = make(px_store)
        assert it.start("t2")
        assert not it.start("t3")
        assert it.subject_id == "t2"

    def test_hover_without_drag_is_ignored(self, px_store):
        board, it, _ = make(px_store)
        assert not it.hover(DropTarget.task("t2"))
        assert order(board) == ["t2", "t3", "t4", "t6"]

    def test_same_column_hover_reorders_without_guard_or_write(self, px_store):
        guard_calls = []

        def role():
            guard_calls.append(1)
            return Role.MEMBER

        board = BoardState(px_store, role_provider=role)
        board.load()
        drops = []
        it = DragInterpreter(board, on_drop=lambda *a: drops.append(a))

        it.start("t3")
        assert it.hover(DropTarget.task("t2"))
        assert [t.task_id for t in board.columns()[Status.TODO]] == ["t3", "t2"]
        assert drops == []
        assert guard_calls == []

    def test_hovering_subject_is_noop(self, px_store):
        board, it, _ = make(px_store)
        it.start("t3")
        assert not it.hover(DropTarget.task("t3"))
        assert order(board) == ["t2", "t3", "t4", "t6"]

    def test_hovering_own_column_region_is_noop(self, px_store):
        board, it, _ = make(px_store)
        it.start("t3")
        assert not it.hover(DropTarget.column(Status.TODO))
        assert order(board) == ["t2", "t3", "t4", "t6"]

    def test_cross_column_over_task_takes_its_position(self, px_store):
        board, it, _ = make(px_store)
        it.start("t6")
        assert it.hover(DropTarget.task("t2"))
        assert board.get_task("t6").status == Status.TODO
        assert order(board) == ["t6", "t2", "t3", "t4"]

    def test_denied_hover_keeps_last_approved_position(self, px_store):
        board, it, _ = make(px_store, role=Role.MEMBER)
        it.start("t3")
        it.hover(DropTarget.task("t2"))
        assert not it.hover(DropTarget.task("t4"))
        assert not it.hover(DropTarget.column(Status.DONE))
        assert order(board) == ["t3", "t2", "t4", "t6"]
        assert board.get_task("t3").status == Status.TODO

    def test_drop_hands_final_status_to_handler(self, px_store):
        board, it, drops = make(px_store)
        it.start("t4")
        it.hover(DropTarget.column(Status.REVIEW))
        assert it.drop(DropTarget.column(Status.REVIEW)) == "dropped"
        assert drops == [("t4", "px", Status.IN_PROGRESS, Status.REVIEW)]
        assert it.state == DragState.DROPPED

    def test_drop_without_target_aborts_and_keeps_hover_result(self, px_store):
        board, it, drops = make(px_store)
        it.start("t4")
        it.hover(DropTarget.column(Status.DONE))
        assert it.drop(None) is None
        assert it.state == DragState.IDLE
        assert drops == []
        assert board.get_task("t4").status == Status.DONE

    def test_reset_discards_drag(self, px_store):
        board, it, drops = make(px_store)
        it.start("t2")
        it.hover(DropTarget.task("t3"))
        it.reset()
        assert it.state == DragState.IDLE
        assert it.drop(DropTarget.task("t3")) is None
        assert drops == []

    def test_next_drag_may_start_after_drop(self, px_store):
        _, it, drops = make(px_store)
        it.start("t2")
        it.drop(DropTarget.task("t3"))
        assert it.start("t4")
        assert it.state == DragState.DRAGGING

    def test_subject_deleted_mid_drag(self, px_store):
        board, it, drops = make(px_store)
        it.start("t3")
        board.tasks.pop(board.index_of("t3"))
        assert not it.hover(DropTarget.task("t2"))
        assert it.drop(DropTarget.column(Status.DONE)) is None
        assert drops == []

    def test_hover_target_deleted_mid_drag(self, px_store):
        board, it, _ = make(px_store)
        it.start("t3")
        board.tasks.pop(board.index_of("t6"))
        assert not it.hover(DropTarget.task("t6"))
        assert order(board) == ["t2", "t3", "t4"]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Properties
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@pytest.mark.parametrize("targets", [
    ["t2"],
    ["t2", "t3"],
    ["t2", "t2", "t2"],
])
def test_same_column_hovers_match_sequential_moves(px_store, targets):
    board, it, _ = make(px_store, role=Role.MEMBER)
    reference, _, _ = make(px_store, role=Role.MEMBER)

    it.start("t3")
    previous = None
    for target in targets:
        it.hover(DropTarget.task(target))
        if target != previous and target != "t3":
            reference.reorder_within_column("t3", reference.index_of(target))
        previous = target
    assert order(board) == order(reference)


def test_hovering_twice_equals_hovering_once(px_store):
    once, it_once, _ = make(px_store)
    twice, it_twice, _ = make(px_store)

    it_once.start("t6")
    it_once.hover(DropTarget.task("t3"))

    it_twice.start("t6")
    it_twice.hover(DropTarget.task("t3"))
    it_twice.hover(DropTarget.task("t3"))

    assert order(once) == order(twice)
    assert once.get_task("t6").status == twice.get_task("t6").status


@pytest.mark.parametrize("target", [DropTarget.task("t4"), DropTarget.column(Status.DONE)])
def test_member_never_changes_status(px_store, target):
    board, it, _ = make(px_store, role=Role.MEMBER)
    it.start("t2")
    it.hover(target)
    assert board.get_task("t2").status == Status.TODO


@pytest.mark.parametrize("role", [Role.ADMIN, Role.MODERATOR])
@pytest.mark.parametrize("target,status", [
    (DropTarget.task("t4"), Status.IN_PROGRESS),
    (DropTarget.task("t6"), Status.REVIEW),
    (DropTarget.column(Status.DONE), Status.DONE),
])
def test_staff_status_follows_hovered_column(px_store, role, target, status):
    board, it, _ = make(px_store, role=role)
    it.start("t2")
    it.hover(target)
    assert board.get_task("t2").status == status


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Scenarios
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_admin_drops_into_empty_done_column(px_store):
    board, it, drops = make(px_store, role=Role.ADMIN)
    it.start("t4")
    it.drop(DropTarget.column(Status.DONE))
    assert board.get_task("t4").status == Status.DONE
    assert board.columns()[Status.DONE].index(board.get_task("t4")) == 0
    assert drops == [("t4", "px", Status.IN_PROGRESS, Status.DONE)]


def test_member_drop_on_other_column_changes_nothing(seeded_store):
    board, it, drops = make(seeded_store, role=Role.MEMBER, project_id="p1")
    before = order(board)
    it.start("t1")
    it.drop(DropTarget.column(Status.TODO))
    assert board.get_task("t1").status == Status.DONE
    assert order(board) == before


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Sensors
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestPointerSensor:

    def test_click_is_not_a_drag(self, px_store):
        board, it, drops = make(px_store)
        pointer = PointerSensor(it, distance=5)
        pointer.press("t2", 0, 0)
        assert not pointer.move(2, 2, DropTarget.task("t3"))
        assert pointer.release(DropTarget.task("t3")) is None
        assert it.state == DragState.IDLE
        assert drops == []
        assert order(board) == ["t2", "t3", "t4", "t6"]

    def test_drag_after_threshold(self, px_store):
        board, it, drops = make(px_store)
        pointer = PointerSensor(it, distance=5)
        pointer.press("t2", 0, 0)
        assert pointer.move(10, 0, DropTarget.task("t3"))
        assert order(board) == ["t3", "t2", "t4", "t6"]
        pointer.release(DropTarget.task("t3"))
        assert drops == [("t2", "px", Status.TODO, Status.TODO)]

    def test_release_outside_any_column(self, px_store):
        _, it, drops = make(px_store)
        pointer = PointerSensor(it)
        pointer.press("t2", 0, 0)
        pointer.move(0, 20)
        pointer.release(None)
        assert drops == []
        assert it.state == DragState.IDLE

    def test_cancelled_press_never_drags(self, px_store):
        board, it, drops = make(px_store)
        pointer = PointerSensor(it, distance=5)
        pointer.press("t2", 0, 0)
        pointer.cancel()
        assert not pointer.move(40, 0, DropTarget.column(Status.DONE))
        assert it.state == DragState.IDLE
        assert pointer.release(DropTarget.column(Status.DONE)) is None
        assert drops == []

    def test_move_without_press(self, px_store):
        _, it, _ = make(px_store)
        assert not PointerSensor(it).move(50, 50, DropTarget.task("t3"))


class TestTouchSensor:

    def test_short_touch_never_drags(self, px_store, scheduler):
        board, it, drops = make(px_store)
        touch = TouchSensor(it, scheduler, delay=0.25, tolerance=5)
        touch.touch_start("t4", 0, 0)
        scheduler.advance(0.1)
        touch.touch_move(1, 1, DropTarget.column(Status.DONE))
        touch.touch_end(DropTarget.column(Status.DONE))
        scheduler.advance(1.0)
        assert not touch.pending
        assert it.state == DragState.IDLE
        assert board.get_task("t4").status == Status.IN_PROGRESS
        assert drops == []

    def test_scroll_cancels_activation(self, px_store, scheduler):
        board, it, _ = make(px_store)
        touch = TouchSensor(it, scheduler, delay=0.25, tolerance=5)
        touch.touch_start("t4", 0, 0)
        touch.touch_move(0, 40)
        scheduler.advance(1.0)
        assert it.state == DragState.IDLE
        assert not touch.pending

    def test_hold_activates_drag(self, px_store, scheduler):
        board, it, drops = make(px_store)
        touch = TouchSensor(it, scheduler, delay=0.25, tolerance=5)
        touch.touch_start("t4", 0, 0)
        scheduler.advance(0.3)
        assert it.state == DragState.DRAGGING
        assert touch.touch_move(0, 200, DropTarget.column(Status.DONE))
        touch.touch_end(DropTarget.column(Status.DONE))
        assert drops == [("t4", "px", Status.IN_PROGRESS, Status.DONE)]

    def test_new_touch_replaces_pending_one(self, px_store, scheduler):
        _, it, _ = make(px_store)
        touch = TouchSensor(it, scheduler, delay=0.25)
        touch.touch_start("t2", 0, 0)
        touch.touch_start("t3", 0, 0)
        scheduler.advance(0.3)
        assert it.subject_id == "t3"


class TestKeyboardSensor:

    def test_pick_move_and_drop(self, px_store):
        board, it, drops = make(px_store)
        keys = KeyboardSensor(it)
        assert keys.key("space", focused_task_id="t3")
        assert keys.key("up")
        assert order(board) == ["t3", "t2", "t4", "t6"]
        assert keys.key("right")
        assert board.get_task("t3").status == Status.IN_PROGRESS
        assert order(board) == ["t2", "t4", "t3", "t6"]
        keys.key("enter")
        assert drops == [("t3", "px", Status.TODO, Status.IN_PROGRESS)]

    def test_escape_aborts(self, px_store):
        board, it, drops = make(px_store)
        keys = KeyboardSensor(it)
        keys.key("space", focused_task_id="t2")
        keys.key("escape")
        assert it.state == DragState.IDLE
        assert drops == []

    def test_edges_are_noops(self, px_store):
        board, it, _ = make(px_store)
        keys = KeyboardSensor(it)
        keys.key("enter", focused_task_id="t2")
        assert not keys.key("up")
        assert not keys.key("left")
        assert not keys.key("tab")
        assert order(board) == ["t2", "t3", "t4", "t6"]

    def test_member_cannot_change_column_by_keyboard(self, px_store):
        board, it, drops = make(px_store, role=Role.MEMBER)
        keys = KeyboardSensor(it)
        keys.key("space", focused_task_id="t4")
        assert not keys.key("right")
        keys.key("space")
        assert board.get_task("t4").status == Status.IN_PROGRESS
        assert drops == [("t4", "px", Status.IN_PROGRESS, Status.IN_PROGRESS)]

    def test_down_then_up_restores_order(self, px_store):
        board, it, drops = make(px_store)
        keys = KeyboardSensor(it)
        keys.key("space", focused_task_id="t2")
        assert keys.key("down")
        assert order(board) == ["t3", "t2", "t4", "t6"]
        assert keys.key("up")
        assert order(board) == ["t2", "t3", "t4", "t6"]
        keys.key("space")
        assert drops == [("t2", "px", Status.TODO, Status.TODO)]
        assert order(board) == ["t2", "t3", "t4", "t6"]

    def test_right_left_right_follows_each_key(self, px_store):
        board, it, _ = make(px_store)
        keys = KeyboardSensor(it)
        keys.key("space", focused_task_id="t3")
        assert keys.key("right")
        assert keys.key("left")
        assert board.get_task("t3").status == Status.TODO
        assert keys.key("right")
        assert board.get_task("t3").status == Status.IN_PROGRESS

    def test_keys_ignored_when_idle(self, px_store):
        _, it, _ = make(px_store)
        keys = KeyboardSensor(it)
        assert not keys.key("up")
        assert not keys.key("space")
