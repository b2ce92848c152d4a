"""Video frame sampling with ffprobe/ffmpeg.

Frames are picked at computed timestamps rather than by scene detection:
short clips are sampled densely, long clips get exactly ``max_frames``.
Every frame is normalized to one standard resolution before it is handed to
the model.
"""
import asyncio
import io
import json
import logging
import math
import shutil
import subprocess
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from PIL import Image

from replicator.config import (
    FFMPEG_BIN,
    FFMPEG_TIMEOUT,
    FFPROBE_BIN,
    FRAME_FILL_COLOR,
    FRAME_FILL_MODE,
    FRAME_HEIGHT,
    FRAME_WIDTH,
    VIDEO_MAX_FRAMES,
    VIDEO_MIN_FRAME_INTERVAL,
    VIDEO_MOTION_THRESHOLD,
)
from replicator.generation.resize import hex_to_rgb, resize_to_fit

logger = logging.getLogger("replicator.frames")

DEFAULT_FPS = 30.0
# Keeps the last timestamp inside the stream
END_MARGIN = 0.1


class FrameExtractionError(RuntimeError):
    """Probing or frame extraction failed."""


@dataclass
class SamplerOptions:
    max_frames: int = VIDEO_MAX_FRAMES
    min_interval: float = VIDEO_MIN_FRAME_INTERVAL
    # Accepted for configuration compatibility; the timestamp plan does not use it.
    motion_threshold: float = VIDEO_MOTION_THRESHOLD


@dataclass
class Frame:
    image: bytes  # JPEG
    timestamp: float
    index: int


@dataclass
class SampledVideo:
    frames: list[Frame] = field(default_factory=list)
    duration: float = 0.0
    fps: float = DEFAULT_FPS

    @property
    def total_frames(self) -> int:
        return round(self.duration * self.fps)


def target_frame_count(duration: float, max_frames: int) -> int:
    if duration <= 5:
        count = min(math.ceil(duration / 0.3), max_frames)
    elif duration <= 15:
        count = min(math.ceil(duration / 0.5), max_frames)
    else:
        count = max_frames
    return max(1, count)


def plan_timestamps(duration: float, max_frames: int, min_interval: float) -> list[float]:
    """Timestamps (seconds) to grab. Always starts at 0; never past duration - END_MARGIN."""
    count = target_frame_count(duration, max_frames)
    interval = max(duration / count, min_interval)
    last = max(duration - END_MARGIN, 0.0)
    timestamps = [0.0]
    for i in range(1, count):
        timestamps.append(min(i * interval, last))
    return timestamps


def parse_frame_rate(rate: str) -> float:
    """Parse ffprobe rates like '30000/1001' or '25'. Falls back to DEFAULT_FPS."""
    try:
        if "/" in rate:
            num, den = rate.split("/", 1)
            den_f = float(den)
            return float(num) / den_f if den_f else DEFAULT_FPS
        value = float(rate)
        return value if value > 0 else DEFAULT_FPS
    except (TypeError, ValueError):
        return DEFAULT_FPS


def _run(cmd: list[str]) -> subprocess.CompletedProcess:
    try:
        result = subprocess.run(cmd, capture_output=True, timeout=FFMPEG_TIMEOUT)
    except FileNotFoundError as e:
        logger.error("%s not found. Install ffmpeg for video input.", cmd[0])
        raise FrameExtractionError("ffmpeg not installed") from e
    except subprocess.TimeoutExpired as e:
        raise FrameExtractionError(f"{cmd[0]} timed out after {FFMPEG_TIMEOUT}s") from e
    if result.returncode != 0:
        err = (result.stderr or result.stdout or b"").decode("utf-8", "replace").strip()
        raise FrameExtractionError(err or f"{cmd[0]} failed")
    return result


def probe_video(path: Path) -> tuple[float, float]:
    """Return (duration seconds, frames per second)."""
    result = _run([
        FFPROBE_BIN, "-v", "error",
        "-print_format", "json",
        "-show_format", "-show_streams",
        str(path),
    ])
    try:
        info = json.loads(result.stdout or b"{}")
    except ValueError as e:
        raise FrameExtractionError(f"Unreadable ffprobe output: {e}") from e
    streams = info.get("streams") or []
    video = next((s for s in streams if s.get("codec_type") == "video"), streams[0] if streams else {})
    raw_duration = (info.get("format") or {}).get("duration") or video.get("duration")
    try:
        duration = float(raw_duration)
    except (TypeError, ValueError):
        raise FrameExtractionError("Could not determine video duration")
    fps = parse_frame_rate(video.get("r_frame_rate") or "")
    return duration, fps


def extract_frame(
    video_path: Path,
    timestamp: float,
    out_path: Path,
    size: tuple[int, int] = (FRAME_WIDTH, FRAME_HEIGHT),
) -> bytes:
    """Grab one still at timestamp, normalize it to size and return JPEG bytes."""
    _run([
        FFMPEG_BIN, "-y",
        "-ss", f"{timestamp:.3f}",
        "-i", str(video_path),
        "-frames:v", "1",
        "-q:v", "2",
        str(out_path),
    ])
    if not out_path.is_file():
        raise FrameExtractionError(f"No frame produced at {timestamp:.2f}s")
    with Image.open(out_path) as img:
        frame = resize_to_fit(img, size[0], size[1], fill_mode=FRAME_FILL_MODE, fill_color=hex_to_rgb(FRAME_FILL_COLOR))
    buf = io.BytesIO()
    frame.save(buf, format="JPEG", quality=90)
    return buf.getvalue()


async def sample_frames(video: bytes, options: Optional[SamplerOptions] = None, suffix: str = ".mp4") -> SampledVideo:
    """Probe the video and extract frames at planned timestamps, in parallel."""
    options = options or SamplerOptions()
    tmp_dir = Path(await asyncio.to_thread(tempfile.mkdtemp, prefix="replicator-"))
    try:
        video_path = tmp_dir / f"source{suffix}"
        await asyncio.to_thread(video_path.write_bytes, video)
        duration, fps = await asyncio.to_thread(probe_video, video_path)
        timestamps = plan_timestamps(duration, options.max_frames, options.min_interval)
        logger.info("Extracting %s frames from %.1fs video", len(timestamps), duration)
        images = await asyncio.gather(*(
            asyncio.to_thread(extract_frame, video_path, ts, tmp_dir / f"frame_{i}.jpg")
            for i, ts in enumerate(timestamps)
        ))
    finally:
        await asyncio.to_thread(shutil.rmtree, tmp_dir, ignore_errors=True)
    frames = [Frame(image=img, timestamp=ts, index=i) for i, (img, ts) in enumerate(zip(images, timestamps))]
    return SampledVideo(frames=frames, duration=duration, fps=fps)
