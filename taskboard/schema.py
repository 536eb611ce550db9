"""
Task schema and status enumeration.

Board columns, in order:
  Backlog → Ready → InProgress → InReview → Done

Any column can be reached from any other; the board is a free-form Kanban,
not a workflow engine.
"""
from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any


class TaskStatus(Enum):
    """Closed set of task statuses. Values are the canonical spellings."""
    BACKLOG = "Backlog"
    READY = "Ready"
    IN_PROGRESS = "InProgress"
    IN_REVIEW = "InReview"
    DONE = "Done"

    @classmethod
    def parse(cls, value: Any) -> Optional["TaskStatus"]:
        """Exact match against the canonical spellings. None if no match."""
        if not isinstance(value, str):
            return None
        for member in cls:
            if member.value == value:
                return member
        return None

    @property
    def label(self) -> str:
        return _LABELS.get(self, self.value)


_LABELS = {
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.IN_REVIEW: "In Review",
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Task:
    """A single unit of work on the board."""

    title: str
    description: str
    status: TaskStatus = TaskStatus.BACKLOG
    created_date: datetime = field(default_factory=utc_now)
    id: Optional[int] = None        # assigned by the store on insert

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "createdDate": self.created_date.isoformat(),
        }

    @classmethod
    def from_row(cls, data: Dict[str, Any]) -> "Task":
        """Build a Task from a database row (status stored as its spelling)."""
        status = TaskStatus.parse(data.get("status"))
        if status is None:
            raise ValueError(f"Unknown status in store: {data.get('status')!r}")
        created = datetime.fromisoformat(data["created_date"])
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        return cls(
            id=data["id"],
            title=data["title"],
            description=data["description"],
            status=status,
            created_date=created,
        )
