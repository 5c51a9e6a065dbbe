"""
Global exception handlers.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .exceptions import AppException

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Render every AppException as ``{"detail": ..., "error_code": ...}``."""

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        request_id = getattr(request.state, "request_id", None)
        log = logger.warning if exc.status_code in (403, 409) else logger.info
        log(
            f"[{request_id}] {exc.error_code} on {request.method} {request.url.path}: {exc.message}",
            extra={"error_code": exc.error_code, "details": exc.details},
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "error_code": exc.error_code},
            headers=exc.headers,
        )
