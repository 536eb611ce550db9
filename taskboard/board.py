"""Group tasks into the five board columns."""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .schema import Task, TaskStatus

# Display order, left to right
COLUMNS = [
    TaskStatus.BACKLOG,
    TaskStatus.READY,
    TaskStatus.IN_PROGRESS,
    TaskStatus.IN_REVIEW,
    TaskStatus.DONE,
]


@dataclass
class Column:
    status: TaskStatus
    tasks: List[Task] = field(default_factory=list)

    @property
    def label(self) -> str:
        return self.status.label

    @property
    def count(self) -> int:
        return len(self.tasks)

    def to_dict(self) -> Dict:
        return {
            "status": self.status.value,
            "label": self.label,
            "count": self.count,
            "tasks": [t.to_dict() for t in self.tasks],
        }


def group_by_status(tasks: Iterable[Task]) -> Dict[TaskStatus, List[Task]]:
    """Bucket tasks by status, keeping their relative order.

    Every column is present in the result, empty or not.
    """
    groups: Dict[TaskStatus, List[Task]] = {status: [] for status in COLUMNS}
    for task in tasks:
        groups[task.status].append(task)
    return groups


def build_board(tasks: Iterable[Task]) -> List[Column]:
    groups = group_by_status(tasks)
    return [Column(status=status, tasks=groups[status]) for status in COLUMNS]
