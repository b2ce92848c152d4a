"""Application configuration. Loads from environment and .env file."""
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
# Load .env from cwd, then backend/.env, then project root .env
load_dotenv()
load_dotenv(BASE_DIR / ".env")
load_dotenv(BASE_DIR.parent / ".env")

# Generated artifacts, one sub-directory per task
ARTIFACT_DIR = Path(os.getenv("ARTIFACT_DIR", str(BASE_DIR / "generations")))
ARTIFACT_DIR.mkdir(parents=True, exist_ok=True)

# Upload limits (MB)
MAX_IMAGE_SIZE_MB = int(os.getenv("MAX_IMAGE_SIZE_MB", "5"))
MAX_IMAGE_SIZE_BYTES = MAX_IMAGE_SIZE_MB * 1024 * 1024
MAX_VIDEO_SIZE_MB = int(os.getenv("MAX_VIDEO_SIZE_MB", "50"))
MAX_VIDEO_SIZE_BYTES = MAX_VIDEO_SIZE_MB * 1024 * 1024

# Images sent to the model: accepted as-is, otherwise re-encoded as PNG
MODEL_IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}
MODEL_MAX_IMAGE_EDGE = int(os.getenv("MODEL_MAX_IMAGE_EDGE", "1568"))

# Model API
DEFAULT_MODEL = os.getenv("DEFAULT_MODEL", "claude-3-7-sonnet-20250219")
AVAILABLE_MODELS = [
    m.strip()
    for m in os.getenv(
        "AVAILABLE_MODELS",
        "claude-3-7-sonnet-20250219,claude-3-opus-20240229,claude-3-haiku-20240307",
    ).split(",")
    if m.strip()
]
LLM_MAX_ATTEMPTS = int(os.getenv("LLM_MAX_ATTEMPTS", "3"))
LLM_INITIAL_RETRY_DELAY = float(os.getenv("LLM_INITIAL_RETRY_DELAY", "2.0"))

# Video frame sampling
VIDEO_MAX_FRAMES = int(os.getenv("VIDEO_MAX_FRAMES", "20"))
VIDEO_MIN_FRAME_INTERVAL = float(os.getenv("VIDEO_MIN_FRAME_INTERVAL", "0.2"))
# Carried through SamplerOptions but not used by the timestamp plan
VIDEO_MOTION_THRESHOLD = float(os.getenv("VIDEO_MOTION_THRESHOLD", "0.15"))
FRAME_WIDTH = int(os.getenv("FRAME_WIDTH", "1280"))
FRAME_HEIGHT = int(os.getenv("FRAME_HEIGHT", "720"))
FRAME_FILL_MODE = os.getenv("FRAME_FILL_MODE", "color")  # color | crop
FRAME_FILL_COLOR = os.getenv("FRAME_FILL_COLOR", "#000000")
FFMPEG_BIN = os.getenv("FFMPEG_BIN", "ffmpeg")
FFPROBE_BIN = os.getenv("FFPROBE_BIN", "ffprobe")
FFMPEG_TIMEOUT = int(os.getenv("FFMPEG_TIMEOUT", "120"))

# Refinement
REFINE_MAX_ITERATIONS = int(os.getenv("REFINE_MAX_ITERATIONS", "3"))
REFINE_VIDEO_FRAMES = int(os.getenv("REFINE_VIDEO_FRAMES", "5"))

# Retention: artifacts (and finished task records) older than this are swept
RETENTION_SECONDS = int(os.getenv("RETENTION_SECONDS", "3600"))
SWEEP_INTERVAL_SECONDS = int(os.getenv("SWEEP_INTERVAL_SECONDS", "3600"))

# Base duration assumption for the remaining-time estimate before any progress
ESTIMATED_IMAGE_SECONDS = int(os.getenv("ESTIMATED_IMAGE_SECONDS", "45"))
ESTIMATED_VIDEO_SECONDS = int(os.getenv("ESTIMATED_VIDEO_SECONDS", "180"))

# Server (for uvicorn)
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))
# CORS: comma-separated origins, e.g. "http://localhost:5173,http://127.0.0.1:5173"
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",") if o.strip()]

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("replicator")
