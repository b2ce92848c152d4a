"""Uploaded media: kind detection and model-ready image encoding."""
import io
import logging
import re
from dataclasses import dataclass
from typing import Optional

from PIL import Image, UnidentifiedImageError

from replicator.config import (
    MAX_IMAGE_SIZE_BYTES,
    MAX_VIDEO_SIZE_BYTES,
    MODEL_IMAGE_TYPES,
    MODEL_MAX_IMAGE_EDGE,
)
from replicator.generation.models import MediaKind
from replicator.generation.resize import shrink_to_edge

logger = logging.getLogger("replicator.media")

_SAFE_SUFFIX = re.compile(r"^\.[a-z0-9]{1,5}$")


class MediaError(ValueError):
    """Uploaded media could not be used."""


@dataclass
class MediaUpload:
    filename: str
    content_type: str
    data: bytes
    kind: MediaKind

    @property
    def is_video(self) -> bool:
        return self.kind == MediaKind.VIDEO

    @property
    def suffix(self) -> str:
        if "." in self.filename:
            suffix = "." + self.filename.rsplit(".", 1)[1].lower()
            if _SAFE_SUFFIX.match(suffix):
                return suffix
        return ".mp4" if self.is_video else ".png"


def media_kind_for(content_type: Optional[str]) -> Optional[MediaKind]:
    """Media kind by MIME prefix; None when neither image/* nor video/*."""
    ct = (content_type or "").lower()
    if ct.startswith("image/"):
        return MediaKind.IMAGE
    if ct.startswith("video/"):
        return MediaKind.VIDEO
    return None


def max_bytes_for(kind: MediaKind) -> int:
    return MAX_VIDEO_SIZE_BYTES if kind == MediaKind.VIDEO else MAX_IMAGE_SIZE_BYTES


def to_model_image(data: bytes, content_type: str, max_edge: int = MODEL_MAX_IMAGE_EDGE) -> tuple[bytes, str]:
    """Return (bytes, media_type) the model API accepts. Re-encodes as PNG when needed."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            oversized = max(img.size) > max_edge
            if content_type in MODEL_IMAGE_TYPES and not oversized:
                return data, content_type
            img.load()
            work = img
            if work.mode not in ("RGB", "RGBA"):
                work = work.convert("RGBA" if "transparency" in work.info else "RGB")
            work = shrink_to_edge(work, max_edge)
    except (UnidentifiedImageError, OSError) as e:
        raise MediaError(f"Could not read image: {e}") from e
    buf = io.BytesIO()
    work.save(buf, format="PNG", optimize=True)
    logger.info("Re-encoded %s image as PNG (%sx%s)", content_type, work.width, work.height)
    return buf.getvalue(), "image/png"
