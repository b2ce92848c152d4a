"""In-memory task registry."""
import logging
import time
import uuid
from typing import Callable, Optional

from replicator.generation.models import GenerationTask, MediaKind, TaskKind

logger = logging.getLogger("replicator.registry")


class TaskNotFoundError(KeyError):
    """Raised when an operation names a task id the registry does not hold."""

    def __init__(self, task_id: str):
        super().__init__(task_id)
        self.task_id = task_id

    def __str__(self) -> str:
        return f"Task not found: {self.task_id}"


class TaskRegistry:
    """Maps task ids to mutable task records.

    Only the event loop thread touches the map; each task id is written by the
    single background routine driving that task.
    """

    def __init__(self):
        self._tasks: dict[str, GenerationTask] = {}

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: str) -> bool:
        return task_id in self._tasks

    def create(self, kind: TaskKind, media_kind: MediaKind, message: str = "") -> str:
        task_id = str(uuid.uuid4())
        self._tasks[task_id] = GenerationTask(
            task_id=task_id,
            kind=kind,
            media_kind=media_kind,
            message=message,
        )
        return task_id

    def get(self, task_id: str) -> Optional[GenerationTask]:
        return self._tasks.get(task_id)

    def update(self, task_id: str, mutator: Callable[[GenerationTask], None]) -> GenerationTask:
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        mutator(task)
        return task

    def evict_finished(self, max_age: float, now: Optional[float] = None) -> list[str]:
        """Drop completed/errored records that finished more than max_age seconds ago."""
        now = time.time() if now is None else now
        expired = [
            tid for tid, task in self._tasks.items()
            if task.finished and now - (task.finished_at or task.created_at) > max_age
        ]
        for tid in expired:
            del self._tasks[tid]
        if expired:
            logger.info("Evicted %s finished task records", len(expired))
        return expired
