"""
Logging setup and request tracing.

Every request gets an ``x-request-id`` (taken from the caller or generated)
that is stored on ``request.state`` and echoed back in the response headers,
so a single upvote or acceptance can be followed through the logs.
"""

import logging
import time
import uuid
from typing import Callable
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Configure structured logging for the service."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware to add request IDs to all requests for tracing."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get('x-request-id', str(uuid.uuid4()))
        request.state.request_id = request_id

        logger.info(f"[{request_id}] Incoming {request.method} {request.url.path}")
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.time() - start_time
            logger.error(f"[{request_id}] Error in {request.method} {request.url.path}: {str(e)} (duration: {duration:.2f}s)", exc_info=True)
            raise

        duration = time.time() - start_time
        logger.info(f"[{request_id}] Completed {request.method} {request.url.path} with status {response.status_code} (duration: {duration:.2f}s)")

        response.headers['x-request-id'] = request_id
        return response
