"""
Health Check API Routes

Provides health check endpoints for the application.

Endpoints:
- /health/live: Liveness probe - is the application running?
- /health/ready: Readiness probe - configuration summary
- /health/schedule: Scheduled push status and last run
- /health/daemon: Reachability of the aria2 daemon (aria2.getVersion)
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from trackarr import __version__
from trackarr.api.dependencies import get_pipeline, get_scheduler
from trackarr.processors.pipeline import TrackerPipeline
from trackarr.services.exceptions import RpcDeliveryError
from trackarr.workers.push_scheduler import PushScheduler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness_probe():
    """
    Liveness probe.

    Returns 200 if the application is running.
    This endpoint does not check external dependencies.

    Returns:
        {"status": "alive"}
    """
    return {"status": "alive"}


@router.get("/ready")
async def readiness_probe(pipeline: TrackerPipeline = Depends(get_pipeline)) -> Dict[str, Any]:
    """
    Readiness probe with a non-sensitive configuration summary.

    The service is ready as soon as it is configured; with no sources it
    still serves static and caller-supplied trackers.
    """
    return {
        "status": "ready",
        "version": __version__,
        "config": pipeline.config.get_summary(),
    }


@router.get("/schedule")
async def schedule_status(scheduler: Optional[PushScheduler] = Depends(get_scheduler)) -> Dict[str, Any]:
    """Scheduled push status, including the outcome of the last run."""
    if scheduler is None:
        return {"enabled": False, "running": False, "last_run": None}
    return scheduler.get_status()


@router.get("/daemon")
async def daemon_health(pipeline: TrackerPipeline = Depends(get_pipeline)):
    """
    Check that the aria2 daemon answers JSON-RPC calls.

    Returns:
        200 with the daemon version, 503 when unreachable or not configured
    """
    if pipeline.rpc_client is None:
        return JSONResponse(
            status_code=503,
            content={"status": "unconfigured", "message": "ARIA2_RPC_URL is not set"},
        )

    try:
        version = await pipeline.rpc_client.get_version()
    except RpcDeliveryError as e:
        logger.warning(f"⚠ Daemon health check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "unreachable", "message": e.message})

    return {
        "status": "healthy",
        "version": version.get("version", "unknown") if isinstance(version, dict) else version,
        "endpoint": pipeline.rpc_client.endpoint,
    }
