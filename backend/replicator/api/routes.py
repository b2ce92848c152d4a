"""API routes for generation, refinement, status polling and downloads."""
import asyncio
import logging
import time
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Header, HTTPException, UploadFile
from fastapi.responses import FileResponse

from replicator.config import (
    AVAILABLE_MODELS,
    DEFAULT_MODEL,
    MAX_IMAGE_SIZE_BYTES,
    MAX_VIDEO_SIZE_BYTES,
)
from replicator.generation.media import MediaError, MediaUpload, max_bytes_for, media_kind_for, to_model_image
from replicator.generation.models import GenerationTask, MediaKind, TaskStatus
from replicator.generation.service import GenerationService, get_generation_service

logger = logging.getLogger("replicator.api")
router = APIRouter(tags=["replicator"])


async def _read_media(file: Optional[UploadFile]) -> MediaUpload:
    """Validate type and size of the uploaded media and read it into memory."""
    if file is None:
        raise HTTPException(400, "Image or video is required")
    kind = media_kind_for(file.content_type)
    if kind is None:
        raise HTTPException(400, f"Unsupported media type: {file.content_type or 'unknown'}. Upload an image or video.")
    max_bytes = max_bytes_for(kind)
    max_mb = max_bytes // (1024 * 1024)
    chunks: list[bytes] = []
    total = 0
    while chunk := await file.read(1024 * 1024):
        total += len(chunk)
        if total > max_bytes:
            raise HTTPException(413, f"File too large (max {max_mb} MB for {kind.value})")
        chunks.append(chunk)
    if total == 0:
        raise HTTPException(400, "Uploaded file is empty")
    data = b"".join(chunks)
    content_type = file.content_type or ""
    if kind == MediaKind.IMAGE:
        try:
            data, content_type = await asyncio.to_thread(to_model_image, data, content_type)
        except MediaError as e:
            raise HTTPException(400, str(e))
    return MediaUpload(filename=file.filename or "upload", content_type=content_type, data=data, kind=kind)


def _require_api_key(x_api_key: Optional[str]) -> str:
    key = (x_api_key or "").strip()
    if not key:
        raise HTTPException(400, "API key is required")
    return key


def _task_to_dict(task: GenerationTask) -> dict:
    out = {
        "taskId": task.task_id,
        "kind": task.kind.value,
        "status": task.status.value,
        "progress": task.progress,
        "message": task.message,
        "mediaKind": task.media_kind.value,
        "isVideo": task.media_kind == MediaKind.VIDEO,
        "iterationCount": task.iteration_count,
        "startTime": int(task.created_at * 1000),
        "estimatedRemainingSeconds": task.estimated_remaining_seconds(time.time()),
    }
    if task.status == TaskStatus.COMPLETED and task.result is not None:
        out["result"] = task.result
    if task.error:
        out["error"] = task.error
    return out


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/limits")
def get_limits():
    """Return upload limits for the client."""
    return {
        "max_image_size_mb": MAX_IMAGE_SIZE_BYTES // (1024 * 1024),
        "max_image_size_bytes": MAX_IMAGE_SIZE_BYTES,
        "max_video_size_mb": MAX_VIDEO_SIZE_BYTES // (1024 * 1024),
        "max_video_size_bytes": MAX_VIDEO_SIZE_BYTES,
    }


@router.get("/models")
def get_models():
    return {"models": AVAILABLE_MODELS, "default": DEFAULT_MODEL}


@router.post("/generate-html")
async def generate_html(
    background_tasks: BackgroundTasks,
    media: Optional[UploadFile] = File(None),
    model: str = Form(DEFAULT_MODEL),
    x_api_key: Optional[str] = Header(None),
    svc: GenerationService = Depends(get_generation_service),
):
    """Accept an image or video and start generating HTML for it. Poll /task-status/{taskId}."""
    api_key = _require_api_key(x_api_key)
    upload = await _read_media(media)
    task_id = svc.start_generation(upload)
    background_tasks.add_task(svc.run_generation, task_id, upload, api_key, model or DEFAULT_MODEL)
    logger.info("Started generation task %s (%s, %s bytes, model=%s)", task_id, upload.kind.value, len(upload.data), model)
    return {
        "taskId": task_id,
        "status": TaskStatus.PROCESSING.value,
        "message": "Video analysis started" if upload.is_video else "Image analysis started",
    }


@router.post("/analyze-refine")
@router.post("/analyze-and-refine")
async def analyze_refine(
    background_tasks: BackgroundTasks,
    media: Optional[UploadFile] = File(None),
    image: Optional[UploadFile] = File(None),
    htmlContent: Optional[str] = Form(None),
    model: str = Form(DEFAULT_MODEL),
    x_api_key: Optional[str] = Header(None),
    svc: GenerationService = Depends(get_generation_service),
):
    """Compare existing HTML against the media and refine it iteratively."""
    api_key = _require_api_key(x_api_key)
    if not (htmlContent or "").strip():
        raise HTTPException(400, "HTML content is required")
    upload = await _read_media(media or image)
    task_id = svc.start_refinement(upload)
    background_tasks.add_task(svc.run_refinement, task_id, upload, htmlContent, api_key, model or DEFAULT_MODEL)
    logger.info("Started refinement task %s (%s, model=%s)", task_id, upload.kind.value, model)
    return {
        "taskId": task_id,
        "status": TaskStatus.PROCESSING.value,
        "message": (
            "Video analysis for refinement started" if upload.is_video
            else "Image analysis for refinement started"
        ),
    }


@router.get("/task-status/{task_id}")
def task_status(task_id: str, svc: GenerationService = Depends(get_generation_service)):
    """Get task status, progress and, once completed, its result."""
    task = svc.get_task(task_id)
    if not task:
        raise HTTPException(404, "Task not found")
    return _task_to_dict(task)


@router.get("/download/{task_id}/{filename}")
def download(task_id: str, filename: str, svc: GenerationService = Depends(get_generation_service)):
    """Download a generated file from a task's artifact directory."""
    root = svc.artifact_dir.resolve()
    task_dir = (root / task_id).resolve()
    path = (task_dir / filename).resolve()
    if task_dir.parent != root or path.parent != task_dir or not path.is_file():
        raise HTTPException(404, "File not found")
    return FileResponse(path, filename=filename)
