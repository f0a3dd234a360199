"""
PinDrop Backend — Request Logging Middleware
==============================================

What:  One access-log line per HTTP request: method, path, status, duration
       and client address.
When:  Runs inside RequestIDMiddleware, so the line is tagged with the
       request id by RequestIDLogFilter.

Level by outcome:
    5xx                  → ERROR
    4xx                  → WARNING (follow rule rejections show up here)
    slower than settings.slow_request_ms → WARNING
    otherwise            → INFO

Not logged: request bodies (passwords, pin content) and Authorization headers.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.config import settings

logger = logging.getLogger("pindrop.access")

# Probes hit this every few seconds
_QUIET_PATHS = {"/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in _QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400 or duration_ms >= settings.slow_request_ms:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        client_ip = request.client.host if request.client else "unknown"
        logger.log(
            log_level,
            "%s %s %d %.1fms from %s",
            request.method,
            request.url.path,
            status,
            duration_ms,
            client_ip,
            extra={
                "method": request.method,
                "path": request.url.path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
