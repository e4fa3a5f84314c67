"""
Task board record store (SQLite).

The durable owner of record for projects, tasks and users. The board
engine only reads through it and issues single-field status writes;
the remaining CRUD methods serve the HTTP API, fixtures and stats.
"""
import sqlite3
import json
import logging
from pathlib import Path
from typing import List, Optional
from .schema import Task, Project, User, Status

logger = logging.getLogger(__name__)


def _connect(db_path: str) -> sqlite3.Connection:
    """Open a connection with FK enforcement and WAL mode."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute("PRAGMA journal_mode = WAL")
    return conn


class BoardStore:
    """SQLite-backed store for projects, tasks and users."""

    def __init__(self, db_path: str = None):
        """Initialize store and create tables if needed."""
        if db_path is None:
            db_path = str(Path.home() / ".local" / "share" / "taskboard" / "taskboard.db")
        self.db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _init_schema(self):
        """Create tables if they don't exist."""
        with _connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS projects (
                    project_id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    description TEXT DEFAULT '',
                    columns TEXT NOT NULL  -- JSON list of {id, title}
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    user_id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    email TEXT DEFAULT '',
                    role TEXT NOT NULL DEFAULT 'member'
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS tasks (
                    task_id TEXT PRIMARY KEY,
                    project_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    description TEXT DEFAULT '',
                    priority TEXT DEFAULT 'Medium',
                    status TEXT DEFAULT 'To Do',
                    assignee_id TEXT,
                    due_date TEXT,
                    attachments TEXT,  -- JSON list
                    position INTEGER NOT NULL DEFAULT 0,
                    FOREIGN KEY (project_id) REFERENCES projects(project_id) ON DELETE CASCADE
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_project ON tasks(project_id, position)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status)")
            conn.commit()

    # ── Reads used by the board engine ───────────────────────────────────────

    def read_tasks(self, project_id: str) -> List[Task]:
        """Tasks of one project, in stored board order."""
        try:
            with _connect(self.db_path) as conn:
                rows = conn.execute(
                    "SELECT * FROM tasks WHERE project_id = ? ORDER BY position ASC, rowid ASC",
                    (project_id,)
                ).fetchall()
            return [self._row_to_task(row) for row in rows]
        except Exception as e:
            logger.error(f"Error reading tasks for project {project_id}: {e}")
            return []

    def read_all_tasks(self) -> List[Task]:
        try:
            with _connect(self.db_path) as conn:
                rows = conn.execute(
                    "SELECT * FROM tasks ORDER BY project_id, position ASC, rowid ASC"
                ).fetchall()
            return [self._row_to_task(row) for row in rows]
        except Exception as e:
            logger.error(f"Error reading all tasks: {e}")
            return []

    def read_users(self) -> List[User]:
        try:
            with _connect(self.db_path) as conn:
                rows = conn.execute("SELECT * FROM users ORDER BY name").fetchall()
            return [User.from_dict(dict(row)) for row in rows]
        except Exception as e:
            logger.error(f"Error reading users: {e}")
            return []

    def read_projects(self) -> List[Project]:
        try:
            with _connect(self.db_path) as conn:
                rows = conn.execute("SELECT * FROM projects ORDER BY rowid ASC").fetchall()
            return [Project.from_dict(dict(row)) for row in rows]
        except Exception as e:
            logger.error(f"Error reading projects: {e}")
            return []

    # ── The one write the board engine issues ────────────────────────────────

    def update_task_status(self, task_id: str, status: Status) -> bool:
        """Set a task's status. False when the task is unknown or the write fails."""
        try:
            with _connect(self.db_path) as conn:
                cur = conn.execute(
                    "UPDATE tasks SET status = ? WHERE task_id = ?",
                    (status.value, task_id)
                )
                conn.commit()
                if cur.rowcount == 0:
                    logger.warning(f"Status update for unknown task {task_id}")
                    return False
                return True
        except Exception as e:
            logger.error(f"Error updating status of task {task_id}: {e}")
            return False

    # ── CRUD glue ────────────────────────────────────────────────────────────

    def get_task(self, task_id: str) -> Optional[Task]:
        try:
            with _connect(self.db_path) as conn:
                row = conn.execute(
                    "SELECT * FROM tasks WHERE task_id = ?", (task_id,)
                ).fetchone()
            return self._row_to_task(row) if row else None
        except Exception as e:
            logger.error(f"Error retrieving task {task_id}: {e}")
            return None

    def save_task(self, task: Task) -> bool:
        """Insert or update a task. New tasks are appended to the end of their project."""
        try:
            with _connect(self.db_path) as conn:
                data = task.to_dict()
                existing = conn.execute(
                    "SELECT position, project_id FROM tasks WHERE task_id = ?",
                    (task.task_id,)
                ).fetchone()
                if existing and existing["project_id"] == task.project_id:
                    position = existing["position"]
                else:
                    row = conn.execute(
                        "SELECT COALESCE(MAX(position), -1) + 1 FROM tasks WHERE project_id = ?",
                        (task.project_id,)
                    ).fetchone()
                    position = row[0]
                conn.execute("""
                    INSERT OR REPLACE INTO tasks
                    (task_id, project_id, title, description, priority, status,
                     assignee_id, due_date, attachments, position)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    data["task_id"],
                    data["project_id"],
                    data["title"],
                    data["description"],
                    data["priority"],
                    data["status"],
                    data["assignee_id"],
                    data["due_date"],
                    json.dumps(data["attachments"]),
                    position,
                ))
                conn.commit()
                return True
        except Exception as e:
            logger.error(f"Error saving task {task.task_id}: {e}")
            return False

    def delete_task(self, task_id: str) -> bool:
        try:
            with _connect(self.db_path) as conn:
                conn.execute("DELETE FROM tasks WHERE task_id = ?", (task_id,))
                conn.commit()
                return True
        except Exception as e:
            logger.error(f"Error deleting task {task_id}: {e}")
            return False

    def save_project(self, project: Project) -> bool:
        try:
            with _connect(self.db_path) as conn:
                conn.execute("""
                    INSERT INTO projects (project_id, name, description, columns)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(project_id) DO UPDATE SET
                        name=excluded.name, description=excluded.description
                """, (
                    project.project_id,
                    project.name,
                    project.description,
                    json.dumps([c.to_dict() for c in project.columns]),
                ))
                conn.commit()
                return True
        except Exception as e:
            logger.error(f"Error saving project {project.project_id}: {e}")
            return False

    def save_user(self, user: User) -> bool:
        try:
            with _connect(self.db_path) as conn:
                conn.execute(
                    "INSERT OR REPLACE INTO users (user_id, name, email, role) VALUES (?, ?, ?, ?)",
                    (user.user_id, user.name, user.email, user.role.value)
                )
                conn.commit()
                return True
        except Exception as e:
            logger.error(f"Error saving user {user.user_id}: {e}")
            return False

    def get_user(self, user_id: str) -> Optional[User]:
        try:
            with _connect(self.db_path) as conn:
                row = conn.execute(
                    "SELECT * FROM users WHERE user_id = ?", (user_id,)
                ).fetchone()
            return User.from_dict(dict(row)) if row else None
        except Exception as e:
            logger.error(f"Error retrieving user {user_id}: {e}")
            return None

    def _row_to_task(self, row: sqlite3.Row) -> Task:
        """Convert a database row to a Task object."""
        data = dict(row)
        data.pop("position", None)
        # attachments column is JSON; Task.from_dict tolerates the legacy shapes
        return Task.from_dict(data)
