"""FastAPI application entry point."""
import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from replicator.api.routes import router
from replicator.cleanup import run_retention_sweeper
from replicator.config import CORS_ORIGINS, RETENTION_SECONDS, SWEEP_INTERVAL_SECONDS, logger as config_logger
from replicator.generation.service import get_generation_service

logging.getLogger("uvicorn").setLevel(logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI):
    svc = get_generation_service()
    sweeper = asyncio.create_task(
        run_retention_sweeper(
            svc.registry,
            interval=SWEEP_INTERVAL_SECONDS,
            max_age=RETENTION_SECONDS,
            root=svc.artifact_dir,
        )
    )
    config_logger.info("UI Replicator API started")
    yield
    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper
    config_logger.info("UI Replicator API shutting down")


app = FastAPI(
    title="UI Replicator API",
    description="Generate HTML/CSS/JS replicating a UI image or video, with progress tracking.",
    version="1.0.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS if CORS_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(router)


if __name__ == "__main__":
    import uvicorn
    from replicator.config import HOST, PORT
    uvicorn.run("replicator.main:app", host=HOST, port=PORT, reload=True)
