"""Login attempt tracking endpoint.

One route dispatched on the ``action`` field, called by the login flow
before (``check``) and after (``record``) each credential check, and by
administrators (``clear``).
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request

from loginguard.api.models import LoginAttemptAction, LoginAttemptRequest
from loginguard.auth.dependencies import get_client_ip, get_login_tracker, require_admin
from loginguard.auth.login_tracker import LockoutStatus, LoginAttemptTracker
from loginguard.core.errors import ValidationError
from loginguard.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["login-attempts"])

INVALID_ACTION_MESSAGE = "Invalid action. Use: check, record, or clear"


def status_to_dict(status: LockoutStatus) -> Dict[str, Any]:
    """Render a tracker result in the endpoint's wire format."""
    if status.locked:
        return {
            "success": False,
            "locked": True,
            "lockoutUntil": int((status.lockout_until or 0) * 1000),
            "reason": status.reason,
        }
    body: Dict[str, Any] = {"success": True, "locked": False}
    if status.message is not None:
        body["message"] = status.message
    else:
        body["remainingAttempts"] = status.remaining_attempts
    return body


@router.post("/login-attempts")
async def login_attempts(
    request: Request,
    payload: Optional[LoginAttemptRequest] = None,
    tracker: LoginAttemptTracker = Depends(get_login_tracker),
) -> Dict[str, Any]:
    """Check, record, or clear login attempts for the caller's email and IP."""
    payload = payload or LoginAttemptRequest()
    ip = get_client_ip(request)

    if payload.action == LoginAttemptAction.CHECK.value:
        status = tracker.check(payload.email, ip)
        if status.locked:
            logger.info("Login blocked by lockout", data={"reason": status.reason})
        return status_to_dict(status)

    if payload.action == LoginAttemptAction.RECORD.value:
        if not payload.email:
            raise ValidationError("Email is required")
        status = tracker.record(
            payload.email,
            ip,
            payload.login_succeeded,
            user_agent=request.headers.get("user-agent"),
        )
        return status_to_dict(status)

    if payload.action == LoginAttemptAction.CLEAR.value:
        await require_admin(request)
        tracker.clear(payload.email, ip)
        return {"success": True, "message": "Lockout cleared"}

    raise ValidationError(INVALID_ACTION_MESSAGE)
