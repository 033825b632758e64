"""FastAPI application entry point"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from tiktok_ingest import __version__
from tiktok_ingest.api import tiktok
from tiktok_ingest.api.deps import get_browser_manager, require_api_key
from tiktok_ingest.config import get_settings
from tiktok_ingest.utils.logger import setup_logging

settings = get_settings()
logger = logging.getLogger(__name__)

setup_logging(settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifecycle.

    The shared browser is launched lazily by the first extraction and closed
    here on shutdown.
    """
    logger.info("Starting application...")
    logger.info("Media host backend: %s", settings.media_host_backend)
    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application...")
    await get_browser_manager().shutdown()
    logger.info("Application shutdown complete")


app = FastAPI(
    title="TikTok Ingest",
    description="TikTok search and video import API",
    version=__version__,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
    dependencies=[Depends(require_api_key)],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.media_host_backend == "local":
    os.makedirs(settings.media_local_dir, exist_ok=True)
    app.mount("/media", StaticFiles(directory=settings.media_local_dir), name="media")


@app.get("/health")
async def health_check():
    """Health check"""
    return {
        "status": "healthy",
        "version": __version__,
        "browser": {
            "running": get_browser_manager().is_running,
            "headless": settings.browser_headless,
        },
    }


app.include_router(tiktok.router, prefix="/api/v1/tiktok", tags=["tiktok"])
