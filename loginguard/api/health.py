"""
Health check endpoints.

Provides liveness and readiness probes for monitoring.
"""

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from loginguard import __version__

router = APIRouter(tags=["health"])


@router.get("/health")
@router.get("/healthz")
async def healthcheck() -> dict[str, Any]:
    """
    Health check endpoint.

    Returns basic service health status. Used by load balancers,
    orchestrators, and monitoring systems.
    """
    return {
        "status": "ok",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/readyz")
async def readiness(request: Request) -> JSONResponse:
    """
    Readiness check endpoint.

    Ready once the lifespan has created the tracker and, when a sweep
    interval is configured, the sweeper task is alive.
    """
    tracker = getattr(request.app.state, "login_tracker", None)
    sweeper = getattr(request.app.state, "login_sweeper", None)

    checks: dict[str, bool] = {
        "tracker": tracker is not None,
        "sweeper": sweeper is not None and (not sweeper.enabled or sweeper.running),
    }

    all_ready = all(checks.values())
    payload: dict[str, Any] = {
        "status": "ready" if all_ready else "not_ready",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
    }
    if tracker is not None:
        payload["details"] = {"tracker": tracker.stats()}

    return JSONResponse(
        status_code=status.HTTP_200_OK if all_ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=payload,
    )
