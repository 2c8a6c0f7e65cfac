"""Ops endpoints for the login tracker."""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from loginguard.auth.dependencies import get_login_tracker, require_admin
from loginguard.auth.login_tracker import LoginAttemptTracker

router = APIRouter(prefix="/api/ops", tags=["ops"])


@router.get("/login-tracking", dependencies=[Depends(require_admin)])
async def login_tracking(
    tracker: LoginAttemptTracker = Depends(get_login_tracker),
) -> Dict[str, Any]:
    """Configured limits, per-dimension state sizes, and counters."""
    config = tracker.config
    return {
        "limits": {
            "max_attempts_per_email": config.max_attempts_per_email,
            "max_attempts_per_ip": config.max_attempts_per_ip,
            "lockout_seconds": config.lockout_seconds,
            "attempt_window_seconds": config.attempt_window_seconds,
            "cleanup_interval_seconds": config.cleanup_interval_seconds,
        },
        "stats": tracker.stats(),
        "metrics": tracker.metrics.snapshot(),
    }
