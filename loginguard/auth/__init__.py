"""Login attempt tracking for loginguard."""

from loginguard.auth.login_tracker import (
    LockoutStatus,
    LoginAttempt,
    LoginAttemptTracker,
    TrackerConfig,
    hash_identifier,
)
from loginguard.auth.sweeper import CleanupSweeper

__all__ = [
    "CleanupSweeper",
    "LockoutStatus",
    "LoginAttempt",
    "LoginAttemptTracker",
    "TrackerConfig",
    "hash_identifier",
]
