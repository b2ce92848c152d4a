import pytest

from replicator.generation.models import GenerationTask, MediaKind, TaskKind, TaskStatus
from replicator.generation.registry import TaskNotFoundError, TaskRegistry


def test_create_then_get(registry):
    task_id = registry.create(TaskKind.GENERATE, MediaKind.IMAGE, "Starting image analysis...")

    task = registry.get(task_id)
    assert task is not None
    assert task.task_id == task_id
    assert task.status == TaskStatus.PROCESSING
    assert task.progress == 0
    assert task.message == "Starting image analysis..."
    assert task_id in registry
    assert len(registry) == 1


def test_ids_are_unique(registry):
    ids = {registry.create(TaskKind.GENERATE, MediaKind.IMAGE) for _ in range(50)}
    assert len(ids) == 50


def test_get_unknown_returns_none(registry):
    assert registry.get("never-created") is None


def test_update_unknown_raises(registry):
    with pytest.raises(TaskNotFoundError) as exc_info:
        registry.update("never-created", lambda t: t.advance(10))
    assert exc_info.value.task_id == "never-created"
    assert "never-created" in str(exc_info.value)


def test_update_applies_mutator(registry):
    task_id = registry.create(TaskKind.REFINE, MediaKind.VIDEO)
    task = registry.update(task_id, lambda t: t.advance(40, "Halfway"))
    assert task.progress == 40
    assert registry.get(task_id).message == "Halfway"


def test_progress_never_regresses():
    task = GenerationTask(task_id="t", kind=TaskKind.GENERATE, media_kind=MediaKind.IMAGE)
    seen = []
    for value in (10, 40, 20, 60, 59, 150):
        task.advance(value, f"at {value}")
        seen.append(task.progress)
    assert seen == [10, 40, 40, 60, 60, 100]
    assert task.message == "at 150"


def test_complete_and_fail():
    done = GenerationTask(task_id="a", kind=TaskKind.GENERATE, media_kind=MediaKind.IMAGE)
    done.complete({"html": "<p>x</p>"}, "Generation completed successfully")
    assert done.status == TaskStatus.COMPLETED
    assert done.progress == 100
    assert done.finished_at is not None

    failed = GenerationTask(task_id="b", kind=TaskKind.GENERATE, media_kind=MediaKind.IMAGE)
    failed.advance(30)
    failed.fail("Rate limit exceeded. Please try again later.")
    assert failed.status == TaskStatus.ERROR
    assert failed.error == failed.message == "Rate limit exceeded. Please try again later."
    assert failed.progress == 30


def test_estimated_remaining_extrapolates_from_progress():
    task = GenerationTask(task_id="t", kind=TaskKind.GENERATE, media_kind=MediaKind.IMAGE, created_at=1000.0)
    task.advance(25)
    # 10s for 25% -> 40s total -> 30s left
    assert task.estimated_remaining_seconds(now=1010.0) == 30


def test_estimated_remaining_uses_base_duration_before_progress(monkeypatch):
    from replicator.generation import models

    monkeypatch.setattr(models, "ESTIMATED_VIDEO_SECONDS", 100)
    task = GenerationTask(task_id="t", kind=TaskKind.GENERATE, media_kind=MediaKind.VIDEO, created_at=1000.0)
    assert task.estimated_remaining_seconds(now=1030.0) == 70
    assert task.estimated_remaining_seconds(now=1500.0) == 0


def test_estimated_remaining_is_none_when_finished():
    task = GenerationTask(task_id="t", kind=TaskKind.GENERATE, media_kind=MediaKind.IMAGE)
    task.complete({}, "done")
    assert task.estimated_remaining_seconds() is None


def test_evict_finished_keeps_processing_and_recent():
    registry = TaskRegistry()
    old_done = registry.create(TaskKind.GENERATE, MediaKind.IMAGE)
    old_running = registry.create(TaskKind.GENERATE, MediaKind.IMAGE)
    recent_done = registry.create(TaskKind.GENERATE, MediaKind.IMAGE)
    for tid in (old_done, old_running):
        registry.get(tid).created_at = 0.0
    registry.get(recent_done).created_at = 9_500.0
    registry.update(old_done, lambda t: t.complete({}, "done"))
    registry.update(recent_done, lambda t: t.fail("boom"))
    registry.get(old_done).finished_at = 100.0
    registry.get(recent_done).finished_at = 9_600.0

    evicted = registry.evict_finished(max_age=3600, now=10_000.0)

    assert evicted == [old_done]
    assert registry.get(old_done) is None
    assert registry.get(old_running) is not None
    assert registry.get(recent_done) is not None


def test_eviction_counts_from_completion_not_creation():
    registry = TaskRegistry()
    long_running = registry.create(TaskKind.GENERATE, MediaKind.VIDEO)
    registry.get(long_running).created_at = 0.0
    registry.update(long_running, lambda t: t.complete({}, "done"))
    registry.get(long_running).finished_at = 9_900.0

    assert registry.evict_finished(max_age=3600, now=10_000.0) == []
    assert registry.get(long_running) is not None

    assert registry.evict_finished(max_age=3600, now=13_600.0) == [long_running]
    assert long_running not in registry
