"""Shared API models."""

from .login_attempt_models import LoginAttemptAction, LoginAttemptRequest

__all__ = [
    "LoginAttemptAction",
    "LoginAttemptRequest",
]
