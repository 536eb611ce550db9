"""
Task service: validation and status parsing in front of the store.

All writes go through here; the HTTP layer never touches TaskStore directly.
"""
import logging
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .schema import Task, TaskStatus, utc_now
from .store import TaskStore

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "description")


class TaskValidationError(Exception):
    """Raised when a submitted task has invalid fields.

    ``errors`` maps field name to a message; ``data`` holds the submitted
    values so a form can be shown again as the user typed it.
    """

    def __init__(self, errors: Dict[str, str], data: Optional[Mapping[str, Any]] = None):
        self.errors = errors
        self.data = dict(data or {})
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))


class TaskNotFound(Exception):
    """Raised when an operation addresses a task id that does not exist."""

    def __init__(self, task_id: Any):
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


class InvalidStatus(Exception):
    """Raised when a status string is not one of the canonical spellings."""

    def __init__(self, raw: Any):
        self.raw = raw
        super().__init__(f"Invalid status value: {raw!r}")


def validate_task_fields(candidate: Mapping[str, Any]) -> Tuple[Dict[str, Any], Dict[str, str]]:
    """Check title, description and status of a submitted task.

    Returns (cleaned, errors). An empty or missing status means Backlog.
    """
    cleaned: Dict[str, Any] = {}
    errors: Dict[str, str] = {}

    for name in REQUIRED_FIELDS:
        value = candidate.get(name)
        value = value.strip() if isinstance(value, str) else ""
        if not value:
            errors[name] = f"{name.capitalize()} is required"
        cleaned[name] = value

    raw_status = candidate.get("status")
    if raw_status in (None, ""):
        cleaned["status"] = TaskStatus.BACKLOG
    else:
        status = TaskStatus.parse(raw_status)
        if status is None:
            errors["status"] = "Invalid status value"
        cleaned["status"] = status

    return cleaned, errors


class TaskService:
    """Task lifecycle operations over a TaskStore."""

    def __init__(self, store: TaskStore):
        self.store = store

    def list_all(self) -> List[Task]:
        return self.store.list_all()

    def find_by_id(self, task_id: int) -> Optional[Task]:
        return self.store.get(task_id)

    def create(self, candidate: Mapping[str, Any]) -> Task:
        """Validate and persist a new task. Id and created_date come from here."""
        cleaned, errors = validate_task_fields(candidate)
        if errors:
            logger.info("Rejected new task: %s", errors)
            raise TaskValidationError(errors, candidate)

        task = Task(
            title=cleaned["title"],
            description=cleaned["description"],
            status=cleaned["status"],
            created_date=utc_now(),
        )
        task = self.store.add(task)
        logger.info("Created task %s (%s) in %s", task.id, task.title, task.status.value)
        return task

    def update(self, task_id: int, candidate: Mapping[str, Any]) -> Task:
        """Replace title, description and status of an existing task."""
        task = self.store.get(task_id)
        if task is None:
            raise TaskNotFound(task_id)

        cleaned, errors = validate_task_fields(candidate)
        if errors:
            logger.info("Rejected edit of task %s: %s", task_id, errors)
            raise TaskValidationError(errors, candidate)

        task.title = cleaned["title"]
        task.description = cleaned["description"]
        task.status = cleaned["status"]
        if not self.store.save(task):
            # deleted between read and write
            raise TaskNotFound(task_id)
        logger.info("Updated task %s", task_id)
        return task

    def delete(self, task_id: int) -> bool:
        """Remove a task. Deleting a missing id is a no-op, not an error."""
        removed = self.store.delete(task_id)
        if removed:
            logger.info("Deleted task %s", task_id)
        else:
            logger.debug("Delete of missing task %s ignored", task_id)
        return removed

    def update_status(self, task_id: int, raw_status: Any) -> Task:
        """Move a task to another column. Other fields are left untouched."""
        task = self.store.get(task_id)
        if task is None:
            raise TaskNotFound(task_id)

        status = TaskStatus.parse(raw_status)
        if status is None:
            logger.warning("Invalid status %r for task %s", raw_status, task_id)
            raise InvalidStatus(raw_status)

        old = task.status
        task.status = status
        if not self.store.save(task):
            raise TaskNotFound(task_id)
        logger.info("Task %s: %s → %s", task_id, old.value, status.value)
        return task

    def seed_demo_tasks(self) -> int:
        """Fill an empty board with a handful of example tasks."""
        if self.store.count() > 0:
            return 0

        now = utc_now()
        demo = [
            ("Setup Database", "Configure SQLite storage", TaskStatus.DONE, 3),
            ("Create Models", "Build Task and TaskStatus models", TaskStatus.DONE, 2),
            ("Build Controllers", "Implement CRUD operations", TaskStatus.IN_PROGRESS, 1),
            ("Create Views", "Build Kanban board interface", TaskStatus.READY, 0),
            ("Add Drag & Drop", "Implement drag and drop functionality", TaskStatus.BACKLOG, 0),
            ("Testing", "Write unit tests", TaskStatus.BACKLOG, 0),
        ]
        for title, description, status, days_ago in demo:
            self.store.add(Task(
                title=title,
                description=description,
                status=status,
                created_date=now - timedelta(days=days_ago),
            ))
        logger.info("Seeded %d demo tasks", len(demo))
        return len(demo)
