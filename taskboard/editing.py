"""
Form-style task edits.

Every field change goes through guard.can_edit, the same check the drag
flow uses for status. Fields the role may not touch are dropped, not
rejected, so a member saving the whole form only changes what they may.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from .guard import can_edit, can_delete_attachment
from .schema import Attachment, Priority, Role, Status, Task, new_task_id

logger = logging.getLogger(__name__)

NOTE_HEADER = "\n\n--- Update [{timestamp}] ---\n{note}"


def append_note(description: str, note: str, now: Optional[datetime] = None) -> str:
    """Append a timestamped work note to a description."""
    if note is not None and not isinstance(note, str):
        raise ValueError(f"Invalid note: {note!r}")
    note = (note or "").strip()
    if not note:
        return description
    timestamp = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    return (description or "") + NOTE_HEADER.format(timestamp=timestamp, note=note)


def apply_edit(task: Task, changes: Dict[str, Any], role: Role,
               now: Optional[datetime] = None) -> Tuple[Task, List[str]]:
    """
    Apply a form submission to `task` in place.

    Recognised keys: title, description, priority, status, assignee_id,
    due_date, project_id, attachments, plus "notes" (appended with a
    timestamp) and "mark_done" (sets status Done).

    Returns the task and the list of keys that were ignored.
    Raises ValueError for malformed priority/status values.
    """
    ignored = []
    for key, value in changes.items():
        if not can_edit(role, key):
            ignored.append(key)
            continue
        if key == "notes":
            task.description = append_note(task.description, value, now)
        elif key == "mark_done":
            if value:
                task.status = Status.DONE
        elif key == "status":
            task.status = Status.from_str(value)
        elif key == "priority":
            task.priority = _priority(value)
        elif key == "attachments":
            if value is not None and not isinstance(value, list):
                raise ValueError("attachments must be a list")
            task.attachments = _merge_attachments(task.attachments, value or [], role)
        elif key in ("assignee_id", "due_date"):
            setattr(task, key, value or None)
        else:
            setattr(task, key, value)

    if ignored:
        logger.debug(f"Ignored edits to {ignored} on {task.task_id} for role {role.value}")
    return task, ignored


def _priority(value: Any) -> Priority:
    if isinstance(value, Priority):
        return value
    try:
        return Priority(value)
    except ValueError:
        pass
    try:
        return Priority[str(value).upper()]
    except KeyError:
        raise ValueError(f"Invalid priority: {value}")


def _merge_attachments(current: List[Attachment], submitted: List[Any], role: Role) -> List[Attachment]:
    """
    Take the submitted attachment list, but keep any the role may not remove.

    New entries are stamped with the uploading role.
    """
    existing = {a.url: a for a in current}
    result = []
    for raw in submitted:
        att = Attachment.from_raw(raw)
        if att.url in existing:
            att = existing[att.url]
        else:
            att.uploaded_by = role
        result.append(att)

    kept_urls = {a.url for a in result}
    for att in current:
        if att.url not in kept_urls and not can_delete_attachment(role, att.uploaded_by):
            result.append(att)
    return result


def new_task(fields: Dict[str, Any], project_id: str) -> Task:
    """Build a fresh task from a create form. Raises ValueError for malformed fields."""
    title = fields.get("title") or ""
    if not isinstance(title, str):
        raise ValueError(f"Invalid title: {title!r}")
    attachments = fields.get("attachments") or []
    if not isinstance(attachments, list):
        raise ValueError("attachments must be a list")
    return Task(
        task_id=new_task_id(),
        title=title.strip() or "Untitled",
        description=fields.get("description") or "",
        priority=Priority.from_str(fields.get("priority") or "Medium"),
        status=Status.from_str(fields.get("status") or "To Do"),
        assignee_id=fields.get("assignee_id") or None,
        due_date=fields.get("due_date") or None,
        project_id=fields.get("project_id") or project_id,
        attachments=[Attachment.from_raw(a) for a in attachments],
    )
