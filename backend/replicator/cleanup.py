"""Periodic removal of old artifact directories and finished task records."""
import asyncio
import logging
import shutil
import time
from pathlib import Path
from typing import Optional

from replicator.config import ARTIFACT_DIR, RETENTION_SECONDS, SWEEP_INTERVAL_SECONDS
from replicator.generation.registry import TaskRegistry

logger = logging.getLogger("replicator.cleanup")


def sweep_expired(
    root: Optional[Path] = None,
    max_age: float = RETENTION_SECONDS,
    now: Optional[float] = None,
) -> list[Path]:
    """Delete task directories under root last modified more than max_age seconds ago."""
    root = root or ARTIFACT_DIR
    now = time.time() if now is None else now
    removed: list[Path] = []
    if not root.is_dir():
        return removed
    for entry in root.iterdir():
        if not entry.is_dir():
            continue
        try:
            age = now - entry.stat().st_mtime
        except OSError as e:
            logger.warning("Could not stat %s: %s", entry, e)
            continue
        if age <= max_age:
            continue
        try:
            shutil.rmtree(entry)
            removed.append(entry)
        except OSError as e:
            logger.warning("Could not remove %s: %s", entry, e)
    if removed:
        logger.info("Swept %s expired artifact directories", len(removed))
    return removed


async def run_retention_sweeper(
    registry: TaskRegistry,
    interval: float = SWEEP_INTERVAL_SECONDS,
    max_age: float = RETENTION_SECONDS,
    root: Optional[Path] = None,
) -> None:
    """Sweep every interval seconds until cancelled."""
    logger.info("Retention sweeper started (interval=%ss, max_age=%ss)", interval, max_age)
    while True:
        await asyncio.sleep(interval)
        try:
            await asyncio.to_thread(sweep_expired, root, max_age)
            registry.evict_finished(max_age)
        except Exception as e:
            logger.exception("Retention sweep failed: %s", e)
