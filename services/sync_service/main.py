"""Sync Service - FastAPI application for manual and webhook-triggered syncs."""

import asyncio
import logging
import os
import sys
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Query, Request, status, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from services.sync_service.orchestrator import create_orchestrator

load_dotenv(".env.local")
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)

logger = logging.getLogger(__name__)

# Runs share the articles directory and state file, so only one may run at a time.
sync_lock = asyncio.Lock()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    logger.info("Sync Service starting up...")
    yield
    logger.info("Sync Service shutting down...")


# Create FastAPI application
app = FastAPI(
    title="Notion Blog Sync",
    description="Synchronizes Notion database pages into blog Markdown articles",
    version="0.1.0",
    lifespan=lifespan
)


# Error handling middleware
@app.middleware("http")
async def error_handling_middleware(request: Request, call_next):
    """Global error handling middleware."""
    try:
        response = await call_next(request)
        return response
    except Exception as exc:
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "error": str(exc) or "Sync failed"
            }
        )


class SyncResponse(BaseModel):
    """Response model for a sync run."""
    message: str
    success: bool
    total: int
    synced: int
    updated: int
    skipped: int
    deleted: int
    errors: list = []


@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "notion_blog_sync",
        "version": "0.1.0",
        "sync_running": sync_lock.locked()
    }


async def _run_sync(full_sync: bool) -> SyncResponse:
    if sync_lock.locked():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A sync is already in progress"
        )

    async with sync_lock:
        orchestrator = create_orchestrator()
        try:
            result = await orchestrator.execute_sync(full_sync=full_sync)
        finally:
            await orchestrator.aclose()

    return SyncResponse(message="Sync completed", **result.to_dict())


@app.get("/sync", response_model=SyncResponse)
async def trigger_sync(force: bool = Query(False, description="Reprocess every page")):
    """Manually trigger a sync; ``force`` ignores the last sync time."""
    logger.info(f"Manual sync requested (force={force})")
    return await _run_sync(full_sync=force)


@app.post("/sync", response_model=SyncResponse)
async def webhook_sync():
    """Webhook trigger; always incremental."""
    logger.info("Webhook sync requested")
    return await _run_sync(full_sync=False)


@app.get("/check")
async def check_updates():
    """Report which pages a sync would create, update or delete."""
    orchestrator = create_orchestrator()
    try:
        plan = await orchestrator.check_updates()
    finally:
        await orchestrator.aclose()
    return plan.to_dict()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("SYNC_SERVICE_PORT", 8005))
    uvicorn.run(app, host="0.0.0.0", port=port)
