from .models import GenerationTask, MediaKind, TaskKind, TaskStatus
from .registry import TaskNotFoundError, TaskRegistry
from .service import GenerationService

__all__ = [
    "GenerationService",
    "GenerationTask",
    "MediaKind",
    "TaskKind",
    "TaskNotFoundError",
    "TaskRegistry",
    "TaskStatus",
]
