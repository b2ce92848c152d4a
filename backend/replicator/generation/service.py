"""Task orchestration: creates task records and drives the pipelines in the background."""
import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from replicator.config import ARTIFACT_DIR, REFINE_VIDEO_FRAMES
from replicator.generation.frames import SampledVideo, SamplerOptions, sample_frames
from replicator.generation.llm import ModelClient, describe_error
from replicator.generation.media import MediaUpload
from replicator.generation.models import GenerationTask, TaskKind
from replicator.generation.pipeline import (
    Completer,
    generate_from_image,
    generate_from_video,
    refine_markup,
)
from replicator.generation.postprocess import extract_code
from replicator.generation.registry import TaskRegistry
from replicator.packaging import download_path, write_artifacts

logger = logging.getLogger("replicator.service")

ClientFactory = Callable[[str, str], Completer]
Sampler = Callable[..., Awaitable[SampledVideo]]


class GenerationService:
    """Owns the task registry and runs generation/refinement tasks with progress and error handling."""

    def __init__(
        self,
        registry: Optional[TaskRegistry] = None,
        client_factory: Optional[ClientFactory] = None,
        sampler: Optional[Sampler] = None,
        artifact_dir: Optional[Path] = None,
    ):
        self.registry = registry or TaskRegistry()
        self._client_factory = client_factory or ModelClient
        self._sampler = sampler or sample_frames
        self.artifact_dir = artifact_dir or ARTIFACT_DIR
        logger.info("GenerationService initialized (artifacts in %s)", self.artifact_dir)

    def get_task(self, task_id: str) -> Optional[GenerationTask]:
        return self.registry.get(task_id)

    def start_generation(self, media: MediaUpload) -> str:
        message = "Starting video analysis..." if media.is_video else "Starting image analysis..."
        return self.registry.create(TaskKind.GENERATE, media.kind, message)

    def start_refinement(self, media: MediaUpload) -> str:
        message = (
            "Starting video analysis for refinement..." if media.is_video
            else "Starting image analysis for refinement..."
        )
        return self.registry.create(TaskKind.REFINE, media.kind, message)

    def _reporter(self, task_id: str):
        def report(progress: float, message: str, iteration: Optional[int] = None) -> None:
            def apply(task: GenerationTask) -> None:
                task.advance(progress, message)
                if iteration is not None:
                    task.iteration_count = iteration
            self.registry.update(task_id, apply)
        return report

    async def _drive(self, task_id: str, work: Callable[[], Awaitable[tuple[dict[str, Any], str]]]) -> None:
        """Run work() and record its result; any failure ends the task in the error state."""
        try:
            result, message = await work()
        except Exception as e:
            logger.exception("Task %s failed: %s", task_id, e)
            self.registry.update(task_id, lambda t: t.fail(describe_error(e)))
            return
        self.registry.update(task_id, lambda t: t.complete(result, message))
        logger.info("Task %s completed", task_id)

    async def run_generation(self, task_id: str, media: MediaUpload, api_key: str, model: str) -> None:
        async def work() -> tuple[dict[str, Any], str]:
            report = self._reporter(task_id)
            client = self._client_factory(api_key, model)
            report(10, "Preparing media...")
            video: Optional[SampledVideo] = None
            if media.is_video:
                report(10, "Extracting frames from video...")
                video = await self._sampler(media.data, SamplerOptions(), suffix=media.suffix)
                report(
                    20,
                    f"Extracted {len(video.frames)} frames from {video.duration:.1f}s video. "
                    "Analyzing UI and interactions...",
                )
                text = await generate_from_video(client, video, report)
            else:
                report(20, "Analyzing image and extracting UI elements...")
                text = await generate_from_image(client, media.data, media.content_type, report)

            report(80, "Processing generated code...")
            code = extract_code(text)
            frames = video.frames if video else ()
            report(90, "Packaging files...")
            artifacts = await asyncio.to_thread(
                write_artifacts, task_id, code, media.kind,
                iteration_count=1, frames=frames, artifact_dir=self.artifact_dir,
            )
            result = {
                "html": code.markup,
                "zipPath": download_path(task_id, artifacts.archive_name),
                "files": artifacts.files,
                "iterationCount": 1,
                "isMatch": False,
                "frameCount": len(frames),
                "duration": video.duration if video else 0,
            }
            return result, "Generation completed successfully"

        await self._drive(task_id, work)

    async def run_refinement(self, task_id: str, media: MediaUpload, html: str, api_key: str, model: str) -> None:
        async def work() -> tuple[dict[str, Any], str]:
            report = self._reporter(task_id)
            client = self._client_factory(api_key, model)
            frames = ()
            frame_count = 0
            duration = 0.0
            if media.is_video:
                report(5, "Extracting frames for comparison...")
                video = await self._sampler(
                    media.data, SamplerOptions(max_frames=REFINE_VIDEO_FRAMES), suffix=media.suffix,
                )
                images = [(f.image, "image/jpeg") for f in video.frames]
                frames = video.frames
                frame_count, duration = len(frames), video.duration
            else:
                images = [(media.data, media.content_type)]

            outcome = await refine_markup(client, images, html, is_video=media.is_video, report=report)

            report(95, "Packaging files...")
            code = extract_code(outcome.html)
            artifacts = await asyncio.to_thread(
                write_artifacts, task_id, code, media.kind,
                iteration_count=outcome.iteration_count, frames=frames, artifact_dir=self.artifact_dir,
            )
            result = {
                "html": code.markup,
                "zipPath": download_path(task_id, artifacts.archive_name),
                "files": artifacts.files,
                "iterationCount": outcome.iteration_count,
                "isMatch": outcome.is_match,
                "frameCount": frame_count,
                "duration": duration,
            }
            if outcome.is_match:
                message = f"Analysis complete: good match achieved after {outcome.iteration_count} iterations"
            else:
                message = f"Analysis and refinement complete after {outcome.iteration_count} iterations"
            return result, message

        await self._drive(task_id, work)


# Singleton
_generation_service: Optional[GenerationService] = None


def get_generation_service() -> GenerationService:
    global _generation_service
    if _generation_service is None:
        _generation_service = GenerationService()
    return _generation_service
