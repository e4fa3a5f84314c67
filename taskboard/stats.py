"""
Admin dashboard aggregates.

Works on plain task/user lists so the server can feed it straight from
the store, optionally narrowed to one project.
"""
import math
from datetime import date
from typing import Any, Dict, Iterable, List, Optional
from .schema import Priority, Role, Status, Task, User


def _percent(part: int, whole: int) -> int:
    # Half-up, so 2 of 3 is 67 rather than banker's-rounded
    return int(math.floor(part * 100 / whole + 0.5)) if whole else 0


def _due(task: Task) -> Optional[date]:
    if not task.due_date:
        return None
    try:
        return date.fromisoformat(task.due_date[:10])
    except ValueError:
        return None


def overdue_tasks(tasks: Iterable[Task], today: Optional[date] = None) -> List[Task]:
    """Open tasks whose due date has passed."""
    today = today or date.today()
    return [
        t for t in tasks
        if t.status != Status.DONE and _due(t) is not None and _due(t) < today
    ]


def dashboard_stats(tasks: List[Task], users: List[User],
                    project_id: Optional[str] = None,
                    today: Optional[date] = None) -> Dict[str, Any]:
    """Totals, progress, overdue list and per-assignee progress."""
    if project_id:
        tasks = [t for t in tasks if t.project_id == project_id]

    total = len(tasks)
    done = sum(1 for t in tasks if t.status == Status.DONE)

    stats: Dict[str, Any] = {
        "total": total,
        "done": done,
        "progress_percent": _percent(done, total),
        "active_users": len(users),
        "by_status": {s.value: 0 for s in Status},
        "by_priority": {p.value: 0 for p in Priority},
        "by_project": {},
        "users_by_role": {r.value: 0 for r in (Role.ADMIN, Role.MODERATOR, Role.MEMBER)},
        "overdue": [t.to_dict() for t in overdue_tasks(tasks, today)],
        "assignee_progress": [],
    }
    for t in tasks:
        stats["by_status"][t.status.value] += 1
        stats["by_priority"][t.priority.value] += 1
        stats["by_project"][t.project_id] = stats["by_project"].get(t.project_id, 0) + 1
    for u in users:
        if u.role.value in stats["users_by_role"]:
            stats["users_by_role"][u.role.value] += 1

    for u in users:
        mine = [t for t in tasks if t.assignee_id == u.user_id]
        if not mine:
            continue
        mine_done = sum(1 for t in mine if t.status == Status.DONE)
        stats["assignee_progress"].append({
            "user_id": u.user_id,
            "name": u.name,
            "initials": u.initials,
            "total": len(mine),
            "done": mine_done,
            "percent": _percent(mine_done, len(mine)),
        })
    return stats


def resources(tasks: Iterable[Task], query: str = "") -> List[Dict[str, Any]]:
    """Every attachment across `tasks`, filtered by file name or task title."""
    q = (query or "").lower()
    out = []
    for t in tasks:
        for att in t.attachments:
            if q and q not in att.name.lower() and q not in t.title.lower():
                continue
            out.append({
                "file_name": att.name,
                "url": att.url,
                "kind": att.kind.value,
                "uploaded_by": att.uploaded_by.value,
                "task_id": t.task_id,
                "task_title": t.title,
            })
    return out
