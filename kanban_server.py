#!/usr/bin/env python3
"""
Kanban Task Board Server
------------------------
Serves the board UI, the task forms, and the status-update endpoint used by
the drag-and-drop client. Tasks live in a SQLite database.

Usage:
    python kanban_server.py                      # http://127.0.0.1:5000
    python kanban_server.py --db ./kanban.db --seed
    python kanban_server.py --config config.yaml --host 0.0.0.0

Routes:
    GET  /                           → redirect to /tasks
    GET  /tasks                      → board (HTML), tasks grouped by status
    GET  /tasks/create               → empty task form
    POST /tasks/create               → create, redirect to /tasks
    GET  /tasks/edit/<id>            → prefilled task form
    POST /tasks/edit                 → save edits, redirect to /tasks
    GET  /tasks/confirm-delete/<id>  → "are you sure?" page
    POST /tasks/delete               → delete, redirect to /tasks
    POST /tasks/update-status        → JSON body: { taskId, status }
                                       Returns: { message, taskId, newStatus }
    GET  /api/board                  → JSON: { columns, total }
    GET  /health                     → JSON: { status, db, tasks }

Every POST needs the session's anti-forgery token (form field csrf_token or
header X-CSRF-Token).
"""

import argparse
import logging
import sys
from pathlib import Path

from flask import (
    Blueprint,
    Flask,
    abort,
    current_app,
    jsonify,
    redirect,
    render_template,
    request,
    url_for,
)

from taskboard.board import COLUMNS, build_board
from taskboard.config import Config, ConfigError
from taskboard.csrf import issue_token, require_csrf
from taskboard.service import InvalidStatus, TaskNotFound, TaskService, TaskValidationError
from taskboard.store import StoreError, TaskStore

logger = logging.getLogger("kanban")

PACKAGE_DIR = Path(__file__).parent / "taskboard"

CONTENT_SECURITY_POLICY = "script-src 'self'; object-src 'none';"

STATUS_UPDATED = "Task status updated successfully"
STATUS_UPDATE_FAILED = "An error occurred while updating the task status"


def get_service() -> TaskService:
    return current_app.extensions["task_service"]


def _parse_id(raw):
    """Form/JSON id → int, or None when it is not an integer."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        return None


def _form_data(task=None) -> dict:
    """Values for the task form, either from a stored task or blank."""
    if task is None:
        return {"id": "", "title": "", "description": "", "status": COLUMNS[0].value}
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "status": task.status.value,
        "createdDate": task.created_date,
    }


# ── Routes ───────────────────────────────────────────────────────────────────

tasks_bp = Blueprint("tasks", __name__, url_prefix="/tasks")


@tasks_bp.route("", methods=["GET"])
def index():
    columns = build_board(get_service().list_all())
    return render_template("board.html", columns=columns)


@tasks_bp.route("/create", methods=["GET"])
def create_form():
    return render_template("task_form.html", mode="create", form=_form_data(), errors={})


@tasks_bp.route("/create", methods=["POST"])
@require_csrf()
def create():
    try:
        get_service().create(request.form.to_dict())
    except TaskValidationError as e:
        return render_template("task_form.html", mode="create", form=e.data, errors=e.errors)
    return redirect(url_for("tasks.index"))


@tasks_bp.route("/edit/<int:task_id>", methods=["GET"])
def edit_form(task_id):
    task = get_service().find_by_id(task_id)
    if task is None:
        abort(404)
    return render_template("task_form.html", mode="edit", form=_form_data(task), errors={})


@tasks_bp.route("/edit", methods=["POST"])
@require_csrf()
def edit():
    task_id = _parse_id(request.form.get("id"))
    if task_id is None:
        abort(404)
    try:
        get_service().update(task_id, request.form.to_dict())
    except TaskNotFound:
        abort(404)
    except TaskValidationError as e:
        # created date is read-only; show the stored one, not whatever was posted
        task = get_service().find_by_id(task_id)
        form = dict(e.data, createdDate=task.created_date if task else None)
        return render_template("task_form.html", mode="edit", form=form, errors=e.errors)
    return redirect(url_for("tasks.index"))


@tasks_bp.route("/confirm-delete/<int:task_id>", methods=["GET"])
def confirm_delete(task_id):
    task = get_service().find_by_id(task_id)
    if task is None:
        abort(404)
    return render_template("confirm_delete.html", task=task)


@tasks_bp.route("/delete", methods=["POST"])
@require_csrf()
def delete():
    task_id = _parse_id(request.form.get("id"))
    if task_id is not None:
        get_service().delete(task_id)
    # Missing or already-deleted ids land here too
    return redirect(url_for("tasks.index"))


@tasks_bp.route("/update-status", methods=["POST"])
@require_csrf(json_response=True)
def update_status():
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        return jsonify({"message": "Request body must be a JSON object"}), 400
    task_id = _parse_id(data.get("taskId"))
    status = data.get("status")
    if task_id is None:
        return jsonify({"message": "taskId must be an integer"}), 400
    if not isinstance(status, str):
        return jsonify({"message": "status is required"}), 400

    try:
        task = get_service().update_status(task_id, status)
    except TaskNotFound:
        return jsonify({"message": "Task not found"}), 404
    except InvalidStatus:
        return jsonify({"message": "Invalid status value"}), 400
    except Exception:
        logger.exception("update-status failed for task %s", task_id)
        return jsonify({"message": STATUS_UPDATE_FAILED}), 500

    return jsonify({
        "message": STATUS_UPDATED,
        "taskId": task.id,
        "newStatus": task.status.value,
    })


api_bp = Blueprint("api", __name__)


@api_bp.route("/")
def home():
    return redirect(url_for("tasks.index"))


@api_bp.route("/api/board")
def api_board():
    columns = build_board(get_service().list_all())
    return jsonify({
        "columns": [c.to_dict() for c in columns],
        "total":   sum(c.count for c in columns),
    })


@api_bp.route("/health")
def health():
    service = get_service()
    return jsonify({
        "status": "ok",
        "db":     service.store.db_path,
        "tasks":  service.store.count(),
    })


# ── App factory ──────────────────────────────────────────────────────────────

def _handle_store_error(e):
    logger.error("Store failure on %s %s: %s", request.method, request.path, e, exc_info=e)
    if request.path.startswith("/api/") or request.path == "/health" or request.is_json:
        return jsonify({"message": "An unexpected error occurred"}), 500
    return "An unexpected error occurred", 500


def create_app(config: Config = None) -> Flask:
    """Build the Flask app around a TaskStore at config.db_path."""
    if config is None:
        config = Config.load()

    app = Flask(
        __name__,
        template_folder=str(PACKAGE_DIR / "templates"),
        static_folder=str(PACKAGE_DIR / "static"),
    )
    app.secret_key = config.secret_key
    app.config["KANBAN"] = config

    service = TaskService(TaskStore(config.db_path))
    app.extensions["task_service"] = service
    if config.seed_demo:
        service.seed_demo_tasks()

    app.register_blueprint(tasks_bp)
    app.register_blueprint(api_bp)
    app.register_error_handler(StoreError, _handle_store_error)

    @app.context_processor
    def inject_helpers():
        return {"csrf_token": issue_token, "statuses": COLUMNS}

    @app.after_request
    def set_security_headers(response):
        response.headers["Content-Security-Policy"] = CONTENT_SECURITY_POLICY
        return response

    return app


# ── Main ─────────────────────────────────────────────────────────────────────

def main(argv=None):
    parser = argparse.ArgumentParser(description="Kanban Task Board Server")
    parser.add_argument("--config", help="Path to config.yaml")
    parser.add_argument("--db", help="Database connection string (overrides KANBAN_DB)")
    parser.add_argument("--host", help="Bind address (use 0.0.0.0 to expose on network)")
    parser.add_argument("--port", type=int)
    parser.add_argument("--seed", action="store_true",
                        help="Insert demo tasks when the board is empty")
    args = parser.parse_args(argv)

    try:
        config = Config.load(args.config)
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 2
    if args.db:
        config.database = args.db
    if args.host:
        config.host = args.host
    if args.port:
        config.port = args.port
    if args.seed:
        config.seed_demo = True

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [kanban] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    try:
        app = create_app(config)
    except (ConfigError, StoreError) as e:
        logger.error("Cannot start: %s", e)
        return 1

    print(f"""
╔═══════════════════════════════════════╗
║  Kanban Task Board                    ║
╠═══════════════════════════════════════╣
║  URL:  http://{config.host}:{config.port:<20}║
║  DB:   {config.db_path:<31}║
╚═══════════════════════════════════════╝
""")

    app.run(host=config.host, port=config.port, debug=False, threaded=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
