"""
Role capability checks.

One table answers "may this role edit this field?" for both the drag
flow and task forms:

- admin / moderator: every field, status changes included
- member: work notes, attachments, and the "mark as done" shortcut
- guest: read-only, nothing
"""
from typing import Optional, Union
from .schema import Role

TASK_FIELDS = frozenset({
    "title", "description", "priority", "status",
    "assignee_id", "due_date", "project_id",
    "notes", "attachments", "mark_done",
})

MEMBER_FIELDS = frozenset({"notes", "attachments", "mark_done"})

RoleLike = Union[Role, str, None]


def _role(role: RoleLike) -> Role:
    if isinstance(role, Role):
        return role
    if role is None:
        return Role.GUEST
    try:
        return Role(role.lower())
    except ValueError:
        return Role.GUEST


def is_staff(role: RoleLike) -> bool:
    """Admins and moderators."""
    return _role(role) in (Role.ADMIN, Role.MODERATOR)


def can_edit(role: RoleLike, field: str) -> bool:
    """May `role` change `field` of a task?"""
    r = _role(role)
    if field not in TASK_FIELDS or r == Role.GUEST:
        return False
    if is_staff(r):
        return True
    return field in MEMBER_FIELDS


def can_change_column(role: RoleLike) -> bool:
    """Cross-column moves are status edits. Same-column reordering never asks."""
    return can_edit(role, "status")


def can_delete_task(role: RoleLike) -> bool:
    return is_staff(role)


def can_delete_attachment(role: RoleLike, uploaded_by: Optional[RoleLike]) -> bool:
    """Staff may remove anything; members may not remove what an admin uploaded."""
    r = _role(role)
    if r == Role.GUEST:
        return False
    if is_staff(r):
        return True
    return _role(uploaded_by) != Role.ADMIN


def can_access_admin(role: RoleLike) -> bool:
    return is_staff(role)
