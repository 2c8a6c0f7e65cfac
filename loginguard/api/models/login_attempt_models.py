"""Request models for the login attempt endpoint."""

from enum import Enum
from typing import Any

from pydantic import BaseModel


class LoginAttemptAction(str, Enum):
    CHECK = "check"
    RECORD = "record"
    CLEAR = "clear"


class LoginAttemptRequest(BaseModel):
    """Body of ``POST /api/login-attempts``.

    ``action`` stays a plain string so unknown actions reach the handler
    and get the documented 400 instead of a schema error.
    """

    action: str | None = None
    email: str | None = None
    # Only the JSON literal ``true`` counts as a successful login.
    success: Any = None

    @property
    def login_succeeded(self) -> bool:
        return self.success is True
