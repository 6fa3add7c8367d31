"""
Content Engine API

Main FastAPI application entry point.

Usage:
    uvicorn content_engine.main:app
"""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from content_engine.api import api_router
from content_engine.api.deps import get_render_pipeline
from content_engine.core.config import get_settings
from content_engine.core.database import check_database, create_all_tables
from content_engine.services.pipeline import RenderPipeline, shutdown_render_pipeline

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if get_settings().debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger("content_engine")

# Load settings
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Content Engine API...")
    await create_all_tables()
    yield
    # In-flight render polling is cancelled and its records marked failed
    await shutdown_render_pipeline()
    logger.info("Content Engine API stopped")


app = FastAPI(
    title=settings.app_name,
    description="Scene specification to rendered video pipeline",
    version=settings.version,
    lifespan=lifespan,
)

# CORS configuration (loaded from environment)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint - API info."""
    return {
        "name": settings.app_name,
        "version": settings.version,
        "status": "running",
    }


@app.get("/health")
async def health_check(pipeline: RenderPipeline = Depends(get_render_pipeline)):
    """
    Health check endpoint for Docker/orchestration.

    Checks the health of:
    - Database connection
    - Render worker

    Returns overall status and individual check results.
    """
    checks = {}
    healthy = True

    checks["database"] = await check_database()
    if checks["database"]["status"] != "healthy":
        healthy = False

    # Check render worker
    worker_status = await pipeline.worker.check_health()
    checks["render_worker"] = worker_status
    if worker_status.get("status") != "healthy":
        healthy = False

    return {
        "status": "healthy" if healthy else "unhealthy",
        "checks": checks,
        "active_render_jobs": pipeline.poller.active_jobs,
        "version": settings.version,
    }
