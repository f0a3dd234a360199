"""
PinDrop Backend — Rate Limiting Middleware
============================================

What:  Per-client sliding-window rate limiter.
Why:   Follow requests and likes are cheap to spam; this caps how many
       requests one client can make per window.
How:   Keeps the timestamps of each client's requests inside the window in
       memory. Once a client holds `rate_limit_requests` of them, further
       requests get 429 with Retry-After until the oldest one ages out.

Client identity:
    The socket peer address, or the first X-Forwarded-For hop when
    settings.trust_forwarded_for is on (only safe behind a proxy that
    overwrites the header).

Single-process only: each uvicorn worker keeps its own counters.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.config import settings

logger = logging.getLogger(__name__)

# Sweep clients with no recent requests every this many requests
_CLEANUP_EVERY = 1000


def client_key(request: Request) -> str:
    if settings.trust_forwarded_for:
        forwarded = request.headers.get("X-Forwarded-For", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._seen = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not settings.rate_limit_enabled or request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        key = client_key(request)
        now = time.time()
        window_start = now - settings.rate_limit_window

        timestamps = [ts for ts in self._requests[key] if ts > window_start]
        self._requests[key] = timestamps

        if len(timestamps) >= settings.rate_limit_requests:
            retry_after = int(timestamps[0] + settings.rate_limit_window - now) + 1
            logger.warning(
                "Rate limit exceeded for %s: %d requests in %ds window",
                key, len(timestamps), settings.rate_limit_window,
            )
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": f"Too many requests. Please wait {retry_after} seconds before retrying.",
                    "details": {"retry_after": retry_after},
                },
                headers={"Retry-After": str(retry_after)},
            )

        timestamps.append(now)

        self._seen += 1
        if self._seen % _CLEANUP_EVERY == 0:
            self._cleanup_inactive(window_start)

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(settings.rate_limit_requests)
        response.headers["X-RateLimit-Remaining"] = str(
            max(settings.rate_limit_requests - len(timestamps), 0)
        )
        return response

    def _cleanup_inactive(self, window_start: float) -> None:
        inactive = [
            key for key, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for key in inactive:
            del self._requests[key]
        if inactive:
            logger.debug("Dropped rate-limit state for %d inactive clients", len(inactive))
