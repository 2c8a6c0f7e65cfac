"""Core module with logging, middleware, and exception handling."""

from loginguard.core.logging import get_logger, setup_logging
from loginguard.core.middleware import (
    RequestContextMiddleware,
    RequestSizeLimitMiddleware,
    setup_exception_handlers,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "RequestContextMiddleware",
    "RequestSizeLimitMiddleware",
    "setup_exception_handlers",
]
