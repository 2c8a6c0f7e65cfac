"""Custom middleware and exception handlers for loginguard."""

import secrets
import time
from typing import Callable

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from loginguard.core.errors import AppError, ErrorCode, ErrorResponse
from loginguard.core.logging import get_logger, request_context

logger = get_logger(__name__)


def _current_request_id() -> str | None:
    return request_context.get().get("request_id")


def _error_json(error_response: ErrorResponse, status_code: int) -> JSONResponse:
    request_id = error_response.request_id
    return JSONResponse(
        status_code=status_code,
        content=error_response.to_dict(),
        headers={"X-Request-ID": request_id} if request_id else {},
    )


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware to inject request context for logging."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or secrets.token_hex(8)
        start_time = time.perf_counter()

        ctx = {
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
        }
        token = request_context.set(ctx)

        try:
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code}",
                data={"duration_ms": round(duration_ms, 2)},
            )

            response.headers["X-Request-ID"] = request_id
            return response

        finally:
            request_context.reset(token)


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Middleware to limit request body size."""

    def __init__(self, app, max_bytes: int = 65536):
        super().__init__(app)
        self.max_bytes = max_bytes

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Check request size before processing."""
        content_length = request.headers.get("content-length")

        if content_length and content_length.isdigit() and int(content_length) > self.max_bytes:
            logger.warning(
                f"Request too large: {content_length} bytes",
                data={"max_bytes": self.max_bytes},
            )
            return _error_json(
                ErrorResponse(
                    code=ErrorCode.REQUEST_TOO_LARGE,
                    message="Request body too large",
                ),
                413,
            )

        return await call_next(request)


def setup_exception_handlers(app: FastAPI) -> None:
    """Configure global exception handlers for the application."""
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException as StarletteHTTPException

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Malformed request bodies are client errors (400), never 422."""
        error_response = ErrorResponse(
            code=ErrorCode.VALIDATION_ERROR,
            message="Invalid request body",
            request_id=_current_request_id(),
            details={"errors": [
                {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
                for err in exc.errors()
            ]},
        )
        return _error_json(error_response, 400)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        _request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Handle HTTP exceptions with structured response."""
        code_map = {
            400: ErrorCode.VALIDATION_ERROR,
            403: ErrorCode.FORBIDDEN,
            404: ErrorCode.NOT_FOUND,
            405: ErrorCode.METHOD_NOT_ALLOWED,
        }
        error_code = code_map.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
        error_response = ErrorResponse(
            code=error_code,
            message=str(exc.detail) if exc.detail else "HTTP error",
            request_id=_current_request_id(),
        )
        return _error_json(error_response, exc.status_code)

    @app.exception_handler(AppError)
    async def app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
        """Handle application errors with structured response."""
        logger.warning(
            f"Application error: {exc.message}",
            data={"code": exc.code.value, "details": exc.details},
        )
        return _error_json(exc.to_response(request_id=_current_request_id()), exc.status_code)

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected errors without exposing internals."""
        logger.error(
            "Unhandled exception",
            exc_info=exc,
            data={"path": request.url.path, "method": request.method},
        )
        error_response = ErrorResponse(
            code=ErrorCode.INTERNAL_ERROR,
            message="Internal server error",
            request_id=_current_request_id(),
        )
        return _error_json(error_response, 500)
