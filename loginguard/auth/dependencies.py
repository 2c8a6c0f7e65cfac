"""FastAPI dependencies for login attempt tracking."""

import secrets

from fastapi import Request

from loginguard.auth.login_tracker import LoginAttemptTracker
from loginguard.core.errors import ForbiddenError


def get_client_ip(request: Request) -> str:
    """Extract client IP address from request."""
    forwarded = request.headers.get("x-forwarded-for", "")
    client_ip = forwarded.split(",")[0].strip() if forwarded else ""
    if not client_ip:
        client_ip = request.headers.get("x-real-ip", "").strip()
    # Fall back to direct client IP
    if not client_ip and request.client:
        client_ip = request.client.host
    return client_ip or "unknown"


def get_login_tracker(request: Request) -> LoginAttemptTracker:
    """Return the process-wide tracker created in the application lifespan."""
    return request.app.state.login_tracker


async def require_admin(request: Request) -> None:
    """Guard administrative routes when an admin token is configured.

    Raises:
        ForbiddenError: If the X-Admin-Token header does not match.
    """
    from loginguard.config import get_settings

    expected = get_settings().admin_token
    if not expected:
        return
    provided = request.headers.get("x-admin-token", "")
    if not secrets.compare_digest(provided.encode(), expected.encode()):
        raise ForbiddenError("Admin access required")
