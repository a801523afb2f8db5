"""
WhoReapedWhat - Main FastAPI Application

Runs the deletion watch service in the background and exposes:
- Health check
- Pipeline status (queue depth, pending digest, delivery counters)
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from app.api import health
from app.utils.config import Settings, get_settings
from app.utils.helpers import configure_logging
from domains.deletion_watch.service import DeletionWatchService


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[DeletionWatchService] = None,
    start_watcher: bool = True,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Application settings (cached settings by default)
        service: Prebuilt deletion watch service (built from settings by default)
        start_watcher: Start file system observers during lifespan
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info(f"Starting {settings.api_title} v{settings.api_version}")

        for problem in settings.validate_runtime():
            logger.warning(problem)

        watch_service = service or DeletionWatchService.from_settings(settings)
        app.state.service = watch_service
        watch_service.start(watch=start_watcher)
        logger.success("Deletion watch service started")

        yield

        # Cleanup
        logger.info("Shutting down application...")
        watch_service.stop()
        logger.success("Application shut down complete")

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="File deletion watcher with email notifications",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.service = None

    # Exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler."""
        logger.error(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc) if settings.log_level == "DEBUG" else "An error occurred"
            }
        )

    app.include_router(health.router, tags=["Health"])

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": "WhoReapedWhat",
            "version": settings.api_version,
            "mode": settings.notification_mode,
            "health": "/health",
            "status": "/status"
        }

    return app


# Configure logging
configure_logging(get_settings().log_level)

app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=settings.api_port,
        log_level=settings.log_level.lower()
    )
