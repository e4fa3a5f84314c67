"""
Task board schema.

A project owns a fixed set of four status columns:
  To Do → In Progress → Review → Done

A task's status doubles as its column membership. Any column may be
reached from any other; who may move a task is decided by guard.py,
not by the schema.
"""
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
import json
import uuid


class Status(Enum):
    """Column identifiers, in display order."""
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    REVIEW = "Review"
    DONE = "Done"

    @classmethod
    def from_str(cls, value: str) -> "Status":
        """Accept either the display value ("In Progress") or the name ("in_progress")."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Invalid status: {value!r}")
        try:
            return cls(value)
        except ValueError:
            pass
        try:
            return cls[value.strip().upper().replace(" ", "_")]
        except KeyError:
            raise ValueError(f"Invalid status: {value}")


class Priority(Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def from_str(cls, value: str) -> "Priority":
        """Unknown names fall back to Medium; non-text values are rejected."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Invalid priority: {value!r}")
        try:
            return cls(value)
        except ValueError:
            pass
        try:
            return cls[value.upper()]
        except KeyError:
            return cls.MEDIUM


class Role(Enum):
    """Authorisation roles. GUEST is the read-only board mode."""
    ADMIN = "admin"
    MODERATOR = "moderator"
    MEMBER = "member"
    GUEST = "guest"

    @classmethod
    def from_str(cls, value: Optional[str]) -> "Role":
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.MEMBER
        try:
            return cls(value.lower())
        except ValueError:
            return cls.MEMBER


class AttachmentKind(Enum):
    FILE = "file"
    LINK = "link"


@dataclass
class Attachment:
    """A file or link hanging off a task."""
    name: str
    url: str
    uploaded_by: Role = Role.MEMBER
    kind: AttachmentKind = AttachmentKind.FILE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "url": self.url,
            "uploaded_by": self.uploaded_by.value,
            "kind": self.kind.value,
        }

    @classmethod
    def from_raw(cls, raw: Any) -> "Attachment":
        """
        Parse an attachment in any of the stored shapes.

        Older rows hold a bare URL string, or a JSON object serialised
        into a string; newer rows hold a dict.
        """
        if isinstance(raw, str) and raw.startswith("{"):
            try:
                raw = json.loads(raw)
            except ValueError:
                pass
        if isinstance(raw, str):
            return cls(name=raw.rstrip("/").split("/")[-1] or "Attachment", url=raw)
        if not isinstance(raw, dict):
            raise ValueError(f"Invalid attachment: {raw!r}")

        kind = raw.get("kind") or raw.get("type") or "file"
        try:
            kind = AttachmentKind(kind)
        except ValueError:
            kind = AttachmentKind.FILE
        return cls(
            name=raw.get("name") or "Attachment",
            url=raw.get("url", ""),
            uploaded_by=Role.from_str(raw.get("uploaded_by") or raw.get("uploadedBy")),
            kind=kind,
        )


@dataclass
class Column:
    id: Status
    title: str = ""

    def __post_init__(self):
        if not self.title:
            self.title = self.id.value

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id.value, "title": self.title}


def default_columns() -> List[Column]:
    """The four columns every project is created with."""
    return [Column(status) for status in Status]


def new_task_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Task:
    """One unit of work on the board."""

    task_id: str
    title: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    status: Status = Status.TODO
    assignee_id: Optional[str] = None
    due_date: Optional[str] = None          # ISO date, e.g. "2025-12-20"
    project_id: str = ""
    attachments: List[Attachment] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "status": self.status.value,
            "assignee_id": self.assignee_id,
            "due_date": self.due_date,
            "project_id": self.project_id,
            "attachments": [a.to_dict() for a in self.attachments],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        attachments = data.get("attachments") or []
        if isinstance(attachments, str):
            try:
                attachments = json.loads(attachments)
            except ValueError:
                attachments = []

        return cls(
            task_id=data.get("task_id") or data.get("id") or new_task_id(),
            title=data.get("title", ""),
            description=data.get("description") or "",
            priority=Priority.from_str(data.get("priority") or "Medium"),
            status=Status.from_str(data.get("status") or "To Do"),
            assignee_id=data.get("assignee_id") or None,
            due_date=data.get("due_date") or None,
            project_id=data.get("project_id") or "",
            attachments=[Attachment.from_raw(a) for a in attachments],
        )


@dataclass
class Project:
    """A named board. Tasks are held by the board cache, not here."""
    project_id: str
    name: str
    description: str = ""
    columns: List[Column] = field(default_factory=default_columns)

    @property
    def column_ids(self) -> List[Status]:
        return [c.id for c in self.columns]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project_id": self.project_id,
            "name": self.name,
            "description": self.description,
            "columns": [c.to_dict() for c in self.columns],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        columns = data.get("columns")
        if isinstance(columns, str):
            try:
                columns = json.loads(columns)
            except ValueError:
                columns = None
        if columns:
            parsed = [Column(Status.from_str(c["id"]), c.get("title", "")) for c in columns]
        else:
            parsed = default_columns()
        return cls(
            project_id=data.get("project_id") or data.get("id", ""),
            name=data.get("name", ""),
            description=data.get("description") or "",
            columns=parsed,
        )


@dataclass
class User:
    user_id: str
    name: str
    email: str = ""
    role: Role = Role.MEMBER

    @property
    def initials(self) -> str:
        return "".join(part[0] for part in (self.name or "UN").split() if part).upper()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "initials": self.initials,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            user_id=data.get("user_id") or data.get("id", ""),
            name=data.get("name") or data.get("full_name") or "Unnamed User",
            email=data.get("email") or "",
            role=Role.from_str(data.get("role")),
        )
