"""
Request timing middleware

Assigns a request id, logs each request with its origin and logs the total
request time.
"""

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ..utils.debug_logger import debug_logger

logger = logging.getLogger(__name__)


class TimingMiddleware(BaseHTTPMiddleware):
    """Middleware to capture request timing and log total request duration"""

    async def dispatch(self, request: Request, call_next):
        # Capture high-resolution start time
        request.state.start_time = time.perf_counter()
        request.state.request_id = str(uuid.uuid4())[:8]

        logger.info(
            "%s %s - Origin: %s",
            request.method,
            request.url.path,
            request.headers.get("origin"),
        )

        response = await call_next(request)

        total_time_ms = (time.perf_counter() - request.state.start_time) * 1000
        debug_logger.log_timing(
            request.state.request_id,
            f"{request.method} {request.url.path} -> {response.status_code}",
            total_time_ms,
        )
        response.headers["X-Request-ID"] = request.state.request_id
        return response
