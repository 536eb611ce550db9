"""
Task storage backend (SQLite).

One table, one row per task. Status is stored as its canonical spelling so
reordering the enum never changes what is on disk.
"""
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from .schema import Task

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the database cannot be read or written."""
    pass


# SQLite INTEGER is a signed 64-bit value
MIN_ID = -(2 ** 63)
MAX_ID = 2 ** 63 - 1


@contextmanager
def _connect(db_path: str) -> Iterator[sqlite3.Connection]:
    """Open a connection with WAL mode and dict-like rows.

    Commits (or rolls back) on exit and always closes the connection.
    """
    conn = sqlite3.connect(db_path)
    try:
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode = WAL")
        with conn:
            yield conn
    finally:
        conn.close()


def _storable_id(task_id) -> bool:
    """True when task_id fits an SQLite INTEGER; anything else has no row."""
    return isinstance(task_id, int) and MIN_ID <= task_id <= MAX_ID


class TaskStore:
    """SQLite-backed store for tasks, keyed by integer id."""

    def __init__(self, db_path: str):
        """Initialize store and create the table if needed."""
        self.db_path = str(db_path)
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _init_schema(self):
        try:
            with _connect(self.db_path) as conn:
                # AUTOINCREMENT: ids of deleted rows are never handed out again
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS tasks (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        title TEXT NOT NULL,
                        description TEXT NOT NULL,
                        status TEXT NOT NULL DEFAULT 'Backlog',
                        created_date TEXT NOT NULL
                    )
                """)
                conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status)")
                conn.commit()
        except sqlite3.Error as e:
            logger.error("Cannot initialise task store at %s: %s", self.db_path, e)
            raise StoreError(f"cannot open task store: {e}") from e

    def add(self, task: Task) -> Task:
        """Insert a new task and return it with its assigned id."""
        try:
            with _connect(self.db_path) as conn:
                cur = conn.execute(
                    "INSERT INTO tasks (title, description, status, created_date) VALUES (?, ?, ?, ?)",
                    (task.title, task.description, task.status.value,
                     task.created_date.isoformat()),
                )
                conn.commit()
                task.id = cur.lastrowid
                return task
        except sqlite3.Error as e:
            logger.error("Error inserting task %r: %s", task.title, e)
            raise StoreError(f"cannot insert task: {e}") from e

    def get(self, task_id: int) -> Optional[Task]:
        """Retrieve a task by id."""
        if not _storable_id(task_id):
            return None
        try:
            with _connect(self.db_path) as conn:
                row = conn.execute(
                    "SELECT * FROM tasks WHERE id = ?", (task_id,)
                ).fetchone()
        except sqlite3.Error as e:
            logger.error("Error retrieving task %s: %s", task_id, e)
            raise StoreError(f"cannot read task {task_id}: {e}") from e
        return Task.from_row(dict(row)) if row else None

    def save(self, task: Task) -> bool:
        """Overwrite the mutable fields of an existing task.

        Returns False when no row has that id. created_date is never written.
        """
        if not _storable_id(task.id):
            return False
        try:
            with _connect(self.db_path) as conn:
                cur = conn.execute(
                    "UPDATE tasks SET title = ?, description = ?, status = ? WHERE id = ?",
                    (task.title, task.description, task.status.value, task.id),
                )
                conn.commit()
                return cur.rowcount > 0
        except sqlite3.Error as e:
            logger.error("Error saving task %s: %s", task.id, e)
            raise StoreError(f"cannot save task {task.id}: {e}") from e

    def list_all(self) -> List[Task]:
        """List all tasks in insertion order."""
        try:
            with _connect(self.db_path) as conn:
                rows = conn.execute("SELECT * FROM tasks ORDER BY id ASC").fetchall()
        except sqlite3.Error as e:
            logger.error("Error listing tasks: %s", e)
            raise StoreError(f"cannot list tasks: {e}") from e
        return [Task.from_row(dict(row)) for row in rows]

    def delete(self, task_id: int) -> bool:
        """Delete a task. Returns True if a row was removed."""
        if not _storable_id(task_id):
            return False
        try:
            with _connect(self.db_path) as conn:
                cur = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
                conn.commit()
                return cur.rowcount > 0
        except sqlite3.Error as e:
            logger.error("Error deleting task %s: %s", task_id, e)
            raise StoreError(f"cannot delete task {task_id}: {e}") from e

    def count(self) -> int:
        try:
            with _connect(self.db_path) as conn:
                return conn.execute("SELECT COUNT(*) FROM tasks").fetchone()[0]
        except sqlite3.Error as e:
            logger.error("Error counting tasks: %s", e)
            raise StoreError(f"cannot count tasks: {e}") from e
