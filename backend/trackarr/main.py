"""
FastAPI Main Application for Trackarr

This module defines the main FastAPI application entry point with:
- API route registration (tracker list pull/push, health checks)
- Request logging middleware with X-Request-ID correlation
- Lifespan context manager starting and stopping the push scheduler

Entry Point:
    Run with: uvicorn trackarr.main:app
    Dev Mode: python backend/dev.py
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

from trackarr import __version__
from trackarr.config import Config, ConfigError, PipelineConfig
from trackarr.processors.pipeline import TrackerPipeline
from trackarr.services.structured_logging import (
    clear_context, generate_request_id, set_request_id, setup_logging
)
from trackarr.workers.push_scheduler import PushScheduler

# Only set up logging if no handlers exist yet (uvicorn may have configured them)
root_logger = logging.getLogger()
if not root_logger.handlers:
    setup_logging(
        level=logging.DEBUG if Config.DEBUG else logging.INFO,
        json_output=Config.LOG_FORMAT == "json",
    )

# Silence noisy debug messages
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


# HTTP Request Logging Middleware with X-Request-ID correlation
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log all HTTP requests and responses with correlation IDs.

    Logs:
    - Request method, path, and client IP
    - Response status code and processing time
    - Errors and exceptions

    Correlation:
    - Extracts or generates X-Request-ID for request tracing
    - Sets correlation context for structured logging
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        set_request_id(request_id)

        client_ip = request.client.host if request.client else "unknown"
        logger.info(f"🌐 [{request_id}] {request.method} {request.url.path} from {client_ip}")

        start_time = time.time()
        try:
            response = await call_next(request)
            process_time = (time.time() - start_time) * 1000

            response.headers["X-Request-ID"] = request_id

            status_emoji = "✓" if response.status_code < 400 else "✗"
            logger.info(
                f"   [{request_id}] {status_emoji} {response.status_code} "
                f"({process_time:.2f}ms)"
            )

            return response
        except Exception as e:
            process_time = (time.time() - start_time) * 1000
            logger.error(
                f"   [{request_id}] ✗ Request failed after {process_time:.2f}ms: "
                f"{type(e).__name__}: {e}"
            )
            raise
        finally:
            clear_context()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager for startup and shutdown tasks.

    Startup Tasks:
        1. Log the configuration summary
        2. Start the scheduled push worker (when a daemon is configured)

    Shutdown Tasks:
        1. Stop the scheduled push worker
    """
    # ========== STARTUP ==========
    logger.info("=" * 60)
    logger.info(f"Starting Trackarr v{__version__}")
    logger.info("=" * 60)

    pipeline: TrackerPipeline = app.state.pipeline
    logger.info(f"Configuration: {pipeline.config.get_summary()}")

    if not pipeline.config.sources and not pipeline.config.static_trackers:
        logger.warning(
            "⚠ No tracker sources configured. Set TRACKER_SOURCES or TRACKER_SOURCES_FILE."
        )

    scheduler: PushScheduler = app.state.scheduler
    await scheduler.start()

    logger.info("✓ Application startup complete")
    logger.info("=" * 60)

    yield  # Application runs here

    # ========== SHUTDOWN ==========
    logger.info("Shutting down Trackarr")
    await scheduler.stop()
    logger.info("✓ Shutdown complete")


# OpenAPI Tags Metadata
tags_metadata = [
    {
        "name": "trackers",
        "description": "Merged tracker list (pull) and on-demand push into the aria2 daemon.",
    },
    {
        "name": "health",
        "description": "Liveness, readiness, scheduler and daemon status.",
    },
]


def create_app(
    config: Optional[PipelineConfig] = None,
    pipeline: Optional[TrackerPipeline] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Pipeline configuration (defaults to PipelineConfig.from_env())
        pipeline: Prebuilt pipeline (tests inject one with mocked transports)

    Returns:
        Configured FastAPI application

    Raises:
        ConfigError: If APP_PORT or LOG_FORMAT is invalid
    """
    if not Config.validate():
        raise ConfigError(
            f"Invalid application settings: APP_PORT={Config.APP_PORT}, "
            f"LOG_FORMAT={Config.LOG_FORMAT!r} (expected 'text' or 'json')"
        )

    if pipeline is None:
        pipeline = TrackerPipeline(config or PipelineConfig.from_env())

    app = FastAPI(
        title=Config.APP_TITLE,
        description=Config.APP_DESCRIPTION,
        version=__version__,
        lifespan=lifespan,
        openapi_tags=tags_metadata,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        license_info={
            "name": "MIT",
        },
    )

    app.state.pipeline = pipeline
    app.state.scheduler = PushScheduler(
        pipeline,
        interval=pipeline.config.push_interval,
        run_on_startup=pipeline.config.push_on_startup,
        enabled=pipeline.config.schedule_enabled,
    )

    app.add_middleware(RequestLoggingMiddleware)

    from trackarr.api import health_routes, tracker_routes

    # Health routes first: the tracker router ends with a catch-all label route
    app.include_router(health_routes.router)
    app.include_router(tracker_routes.router, tags=["trackers"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=Config.APP_HOST, port=Config.APP_PORT)
