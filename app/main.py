"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from app.api import router as api_router
from app.core.logging import get_logger
from app.core.prompt_task_queue import get_task_queue

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    queue = get_task_queue()
    queue.start()
    try:
        yield
    finally:
        await queue.stop()


app = FastAPI(
    title="Journal Prompt Engine",
    description="Personalized journaling prompt generation service",
    version="0.1.0",
    lifespan=lifespan,
)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "ok", "queue": get_task_queue().stats}, status_code=200)


# Include v1 API router
app.include_router(api_router, prefix="/v1", tags=["v1"])
