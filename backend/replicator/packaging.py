"""Artifact set and zip creation for a finished task."""
import logging
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from replicator.config import ARTIFACT_DIR
from replicator.generation.frames import Frame
from replicator.generation.models import MediaKind
from replicator.generation.postprocess import ExtractedCode, assemble_document

logger = logging.getLogger("replicator.packaging")

ARCHIVE_NAME = "ui-replication.zip"


@dataclass
class ArtifactSet:
    task_id: str
    directory: Path
    files: list[str] = field(default_factory=list)
    archive_name: str = ARCHIVE_NAME

    @property
    def archive_path(self) -> Path:
        return self.directory / self.archive_name


def download_path(task_id: str, filename: str = ARCHIVE_NAME) -> str:
    return f"/download/{task_id}/{filename}"


def build_readme(media_kind: MediaKind, iteration_count: int, include_script: bool, frame_count: int = 0) -> str:
    lines = [
        "# UI Replication",
        "",
        f"This UI was generated by UI Replicator based on an uploaded {media_kind.value} "
        f"and refined through {iteration_count} iterations of analysis.",
        "",
        "## Files",
        "- index.html - The HTML structure of the UI",
        "- styles.css - The custom CSS styles for the UI",
    ]
    if include_script:
        lines.append("- script.js - The JavaScript for interactions and animations")
    if frame_count:
        lines.append(f"- frames/ - The {frame_count} video frames the UI was analyzed from")
    lines += [
        "",
        "## Usage",
        "Open index.html in a web browser to view the UI.",
        "",
        "## Dependencies",
        "- Tailwind CSS (loaded from CDN)",
        "",
    ]
    return "\n".join(lines)


def write_artifacts(
    task_id: str,
    code: ExtractedCode,
    media_kind: MediaKind,
    iteration_count: int = 1,
    frames: Sequence[Frame] = (),
    artifact_dir: Optional[Path] = None,
) -> ArtifactSet:
    """Write index.html, styles.css, optional script.js, README.md and frames, then zip them.

    Returns the artifact set; the archive holds every file (frames under frames/).
    """
    artifact_dir = artifact_dir or ARTIFACT_DIR
    directory = artifact_dir / task_id
    directory.mkdir(parents=True, exist_ok=True)
    include_script = media_kind == MediaKind.VIDEO or bool(code.js)

    contents: dict[str, bytes] = {
        "index.html": assemble_document(code.body, include_script=include_script).encode("utf-8"),
        "styles.css": code.css.encode("utf-8"),
    }
    if include_script:
        contents["script.js"] = code.js.encode("utf-8")
    contents["README.md"] = build_readme(media_kind, iteration_count, include_script, len(frames)).encode("utf-8")
    for frame in frames:
        contents[f"frames/frame_{frame.index}.jpg"] = frame.image

    artifacts = ArtifactSet(task_id=task_id, directory=directory)
    for name, data in contents.items():
        path = directory / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        artifacts.files.append(name)

    with zipfile.ZipFile(artifacts.archive_path, "w", zipfile.ZIP_DEFLATED) as zf:
        for name in artifacts.files:
            zf.write(directory / name, name)
    artifacts.files.append(artifacts.archive_name)
    logger.info("Created %s for task %s with %s files", artifacts.archive_name, task_id, len(contents))
    return artifacts
