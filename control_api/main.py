"""FastAPI application for the radio engine control surface.

Exposes playlist management, library synchronization and stream control
over HTTP and runs the stream supervisor for the lifetime of the process.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI

from control_api.config import ApiConfig, get_config
from control_api.controller import RadioController, build_controller
from control_api.error_handlers import setup_exception_handlers
from control_api.logging_setup import setup_logging
from control_api.routes import router
from shared.exceptions import RadioEngineError

logger = logging.getLogger(__name__)

SERVICE_NAME = "radio-engine"
SERVICE_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown.

    Args:
        app: FastAPI application instance.
    """
    logger.info("Starting radio engine...")

    if app.state.config is None:
        app.state.config = get_config()
    config: ApiConfig = app.state.config

    if app.state.controller is None:
        app.state.controller = build_controller(config.mode, config.restart_delay)
    controller: RadioController = app.state.controller

    if config.autostart:
        try:
            summary = await controller.regenerate()
            logger.info(f"Stream autostart scheduled with {summary['entries']} entries")
        except RadioEngineError as e:
            # Keep the API up so the operator can fix the source and retry
            logger.error(f"Stream autostart failed: {e}")

    try:
        yield
    finally:
        logger.info("Shutting down radio engine...")
        await controller.cleanup()
        logger.info("Shutdown complete")


def create_app(
    config: Optional[ApiConfig] = None,
    controller: Optional[RadioController] = None,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        config: API configuration (loaded from environment on startup if not provided)
        controller: Radio controller (built from environment on startup if not provided)

    Returns:
        FastAPI: Configured application.
    """
    app = FastAPI(
        title="Radio Engine",
        description="24/7 concat-manifest audio stream with cache sync and crash recovery",
        version=SERVICE_VERSION,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.controller = controller

    setup_exception_handlers(app)
    app.include_router(router, prefix="/api", tags=["Radio"])

    @app.get("/")
    async def root():
        """Root endpoint with API information.

        Returns:
            dict: API information.
        """
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "status": "running",
            "docs_url": "/docs",
            "endpoints": {
                "playlist": "/api/playlist",
                "library": "/api/library",
                "stream": "/api/stream",
            },
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint.

        Returns:
            dict: Health status.
        """
        status = app.state.controller.get_status()
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "timestamp": datetime.now().isoformat(),
            "mode": status["mode"],
            "stream_state": status["stream"]["state"],
        }

    return app


app = create_app()


def main() -> None:
    """Run the control API under uvicorn."""
    import uvicorn

    config = get_config()
    setup_logging(
        level=config.log_level_value,
        log_path=config.log_path,
        max_bytes=config.log_file_max_bytes,
        backup_count=config.log_file_backup_count,
    )

    uvicorn.run(create_app(config), host=config.host, port=config.port, log_config=None)


if __name__ == "__main__":
    main()
