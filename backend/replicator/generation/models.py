"""Task record and status models."""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from replicator.config import ESTIMATED_IMAGE_SECONDS, ESTIMATED_VIDEO_SECONDS


class TaskStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class TaskKind(str, Enum):
    GENERATE = "generate"
    REFINE = "refine"


class MediaKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"


@dataclass
class GenerationTask:
    """In-memory task state for progress tracking."""

    task_id: str
    kind: TaskKind
    media_kind: MediaKind
    status: TaskStatus = TaskStatus.PROCESSING
    progress: int = 0
    message: str = ""
    created_at: float = field(default_factory=time.time)
    iteration_count: Optional[int] = None
    result: Optional[dict[str, Any]] = None
    error: Optional[str] = None
    finished_at: Optional[float] = None

    @property
    def finished(self) -> bool:
        return self.status != TaskStatus.PROCESSING

    def advance(self, progress: float, message: Optional[str] = None) -> None:
        """Move progress forward (clamped to 0-100); a lower value than the current one is ignored."""
        value = max(0, min(100, int(progress)))
        if value > self.progress:
            self.progress = value
        if message is not None:
            self.message = message

    def complete(self, result: dict[str, Any], message: str) -> None:
        self.result = result
        self.status = TaskStatus.COMPLETED
        self.progress = 100
        self.message = message
        self.finished_at = time.time()

    def fail(self, message: str) -> None:
        self.status = TaskStatus.ERROR
        self.error = message
        self.message = message
        self.finished_at = time.time()

    def estimated_remaining_seconds(self, now: Optional[float] = None) -> Optional[int]:
        """Linear extrapolation from elapsed time and progress; base duration guess before any progress."""
        if self.finished:
            return None
        now = time.time() if now is None else now
        elapsed = max(0.0, now - self.created_at)
        if self.progress > 0:
            total = elapsed / self.progress * 100
            return max(0, round(total - elapsed))
        base = ESTIMATED_VIDEO_SECONDS if self.media_kind == MediaKind.VIDEO else ESTIMATED_IMAGE_SECONDS
        return max(0, round(base - elapsed))
