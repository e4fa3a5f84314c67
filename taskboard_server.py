#!/usr/bin/env python3
"""
Task Board Server
-----------------
JSON API over the task board store: project boards partitioned into
columns, guarded status changes, form edits, and the admin dashboard.

Usage:
    python taskboard_server.py --seed
    python taskboard_server.py --config taskboard.yaml --port 3000

The acting user is named by the X-User-Id header (unknown or missing
means read-only guest). Writes also require X-API-Key to match
TASKBOARD_API_SECRET.

API:
    GET    /api/projects                  → { projects }
    POST   /api/projects                  → { project }          (admin/moderator)
    GET    /api/projects/<id>/board       → { project, columns }
    POST   /api/tasks                     → { task }             (admin/moderator)
    PUT    /api/tasks/<id>                → { task, ignored }    (fields per role)
    POST   /api/tasks/<id>/status         → { task }             (admin/moderator)
    DELETE /api/tasks/<id>                → { deleted }          (admin/moderator)
    GET    /api/admin/stats?project=<id>  → dashboard aggregates  (admin/moderator)
    GET    /api/admin/resources?q=<text>  → { resources }         (admin/moderator)
"""

import hmac
import logging
import sys
import uuid
from functools import wraps

from flask import Flask, jsonify, request

from taskboard.board import partition_columns
from taskboard.config import Config
from taskboard.editing import apply_edit, new_task
from taskboard.fixtures import seed
from taskboard.guard import can_access_admin, can_change_column, can_delete_task, can_edit
from taskboard.schema import Project, Role, Status, User
from taskboard.stats import dashboard_stats, resources
from taskboard.store import BoardStore

logger = logging.getLogger("taskboard.server")

app = Flask(__name__)
app.config.setdefault("TASKBOARD_DB", None)
app.config.setdefault("API_SECRET", "")


# ── Auth ─────────────────────────────────────────────────────────────────────


def require_api_key(f):
    """Decorator: reject requests without a valid X-API-Key header."""
    @wraps(f)
    def decorated(*args, **kwargs):
        secret = app.config.get("API_SECRET", "")
        if not secret:
            return jsonify({"error": "API_SECRET not set"}), 503
        provided = request.headers.get("X-API-Key", "").strip()
        if not hmac.compare_digest(provided, secret):
            code = 401 if not provided else 403
            return jsonify({"error": "Unauthorized"}), code
        return f(*args, **kwargs)
    return decorated


def get_store() -> BoardStore:
    return BoardStore(app.config["TASKBOARD_DB"])


def current_user(store: BoardStore) -> User:
    user_id = request.headers.get("X-User-Id", "").strip()
    user = store.get_user(user_id) if user_id else None
    return user or User("guest", "Guest", role=Role.GUEST)


def forbidden():
    return jsonify({"error": "Forbidden"}), 403


def json_body() -> dict:
    """The request body as a JSON object; anything else reads as empty."""
    data = request.get_json(force=True, silent=True)
    return data if isinstance(data, dict) else {}


# ── Projects ─────────────────────────────────────────────────────────────────


@app.route("/api/projects", methods=["GET"])
def api_projects():
    store = get_store()
    return jsonify({"projects": [p.to_dict() for p in store.read_projects()]})


@app.route("/api/projects", methods=["POST"])
@require_api_key
def api_create_project():
    store = get_store()
    user = current_user(store)
    if not can_access_admin(user.role):
        return forbidden()

    data = json_body()
    name = data.get("name")
    name = name.strip() if isinstance(name, str) else ""
    if not name:
        return jsonify({"error": "name is required"}), 400

    project = Project(str(uuid.uuid4()), name, data.get("description", ""))
    if not store.save_project(project):
        return jsonify({"error": "Failed to save project"}), 500
    logger.info(f"{user.user_id} created project {project.project_id}")
    return jsonify({"project": project.to_dict()}), 201


@app.route("/api/projects/<project_id>/board")
def api_board(project_id):
    store = get_store()
    user = current_user(store)
    project = next((p for p in store.read_projects() if p.project_id == project_id), None)
    if project is None:
        return jsonify({"error": "Project not found"}), 404

    tasks = store.read_tasks(project_id)
    if user.role == Role.MEMBER:
        tasks = [t for t in tasks if t.assignee_id == user.user_id]

    columns = partition_columns(tasks, project.column_ids)
    return jsonify({
        "project": project.to_dict(),
        "role": user.role.value,
        "columns": {
            status.value: [t.to_dict() for t in col] for status, col in columns.items()
        },
    })


# ── Tasks ────────────────────────────────────────────────────────────────────


@app.route("/api/tasks", methods=["POST"])
@require_api_key
def api_create_task():
    store = get_store()
    user = current_user(store)
    if not can_edit(user.role, "title"):
        return forbidden()

    data = json_body()
    project_id = data.get("project_id", "")
    if project_id not in [p.project_id for p in store.read_projects()]:
        return jsonify({"error": "project_id must name an existing project"}), 400
    try:
        task = new_task(data, project_id)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    if not store.save_task(task):
        return jsonify({"error": "Failed to save task"}), 500
    return jsonify({"task": task.to_dict()}), 201


@app.route("/api/tasks/<task_id>", methods=["PUT"])
@require_api_key
def api_update_task(task_id):
    """Apply a form edit. Fields the user's role may not change are reported back as ignored."""
    store = get_store()
    user = current_user(store)
    task = store.get_task(task_id)
    if not task:
        return jsonify({"error": "Task not found"}), 404

    data = json_body()
    if "project_id" in data and data["project_id"] not in [p.project_id for p in store.read_projects()]:
        return jsonify({"error": "project_id must name an existing project"}), 400
    try:
        task, ignored = apply_edit(task, data, user.role)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    if not store.save_task(task):
        return jsonify({"error": "Failed to save task"}), 500
    return jsonify({"task": task.to_dict(), "ignored": ignored})


@app.route("/api/tasks/<task_id>/status", methods=["POST"])
@require_api_key
def api_task_status(task_id):
    """Move a task to another column."""
    store = get_store()
    user = current_user(store)
    data = json_body()
    try:
        status = Status.from_str(data.get("status", ""))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    task = store.get_task(task_id)
    if not task:
        return jsonify({"error": "Task not found"}), 404
    if task.status != status and not can_change_column(user.role):
        return forbidden()

    if not store.update_task_status(task_id, status):
        return jsonify({"error": "Failed to update status"}), 500
    task.status = status
    return jsonify({"task": task.to_dict()})


@app.route("/api/tasks/<task_id>", methods=["DELETE"])
@require_api_key
def api_delete_task(task_id):
    store = get_store()
    user = current_user(store)
    if not can_delete_task(user.role):
        return forbidden()
    if not store.get_task(task_id):
        return jsonify({"error": "Task not found"}), 404
    if not store.delete_task(task_id):
        return jsonify({"error": "Failed to delete task"}), 500
    return jsonify({"deleted": task_id})


# ── Admin ────────────────────────────────────────────────────────────────────


@app.route("/api/admin/stats")
def api_admin_stats():
    store = get_store()
    user = current_user(store)
    if not can_access_admin(user.role):
        return forbidden()
    project_id = request.args.get("project")
    if project_id == "all":
        project_id = None
    return jsonify(dashboard_stats(store.read_all_tasks(), store.read_users(), project_id))


@app.route("/api/admin/resources")
def api_admin_resources():
    store = get_store()
    user = current_user(store)
    if not can_access_admin(user.role):
        return forbidden()
    found = resources(store.read_all_tasks(), request.args.get("q", ""))
    return jsonify({"resources": found, "count": len(found)})


@app.route("/health")
def health():
    return jsonify({"status": "ok", "db": app.config["TASKBOARD_DB"]})


# ── Main ─────────────────────────────────────────────────────────────────────


def configure(cfg: Config) -> None:
    app.config["TASKBOARD_DB"] = cfg.db_path
    app.config["API_SECRET"] = cfg.api_secret


def main(argv=None):
    import argparse

    parser = argparse.ArgumentParser(description="Task Board Server")
    parser.add_argument("--config", default=None, help="Path to taskboard.yaml")
    parser.add_argument("--host", default=None,
                        help="Bind address (use 0.0.0.0 to expose on network)")
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument("--db", help="Path to the SQLite database (overrides TASKBOARD_DB)")
    parser.add_argument("--seed", action="store_true", help="Write demo users and projects")
    args = parser.parse_args(argv)

    cfg = Config.load(args.config)
    if args.db:
        cfg.db_path = args.db

    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s [taskboard] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    configure(cfg)

    if args.seed:
        seed(get_store())
    if not cfg.api_secret:
        logger.warning("TASKBOARD_API_SECRET is not set; write endpoints will answer 503")

    host = args.host or cfg.host
    port = args.port or cfg.port
    logger.info(f"Serving on http://{host}:{port} (db={cfg.db_path})")
    app.run(host=host, port=port, debug=False, threaded=True)


if __name__ == "__main__":
    main()
