"""Middleware for correlation IDs and HTTP error logging."""

import logging
import time
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from sqlworkspace.core.logging import correlation_id_context

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"


class HTTPErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Tag every request with a correlation ID and log failed responses.

    - 4xx responses: logged at WARN level
    - 5xx responses: logged at ERROR level
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and log errors.

        Args:
            request: Incoming HTTP request
            call_next: Next middleware/handler in chain

        Returns:
            HTTP response carrying the correlation ID header
        """
        start_time = time.time()

        correlation_id = request.headers.get(CORRELATION_ID_HEADER) or str(uuid4())
        token = correlation_id_context.set(correlation_id)

        try:
            response = await call_next(request)
        finally:
            correlation_id_context.reset(token)

        duration_ms = (time.time() - start_time) * 1000
        log_extra = {
            "correlation_id": correlation_id,
            "http_status": response.status_code,
            "method": request.method,
            "path": request.url.path,
            "duration_ms": duration_ms,
        }

        if 400 <= response.status_code < 500:
            logger.warning("Client error response", extra=log_extra)
        elif response.status_code >= 500:
            logger.error("Server error response", extra=log_extra)

        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response
