"""API routers."""

from loginguard.api.health import router as health_router
from loginguard.api.login_attempts import router as login_attempts_router
from loginguard.api.ops import router as ops_router

__all__ = [
    "health_router",
    "login_attempts_router",
    "ops_router",
]
