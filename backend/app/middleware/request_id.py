"""
PinDrop Backend — Request ID Middleware
=========================================

What:  Assigns a correlation id to every request and echoes it in X-Request-ID.
Why:   Error envelopes carry the id, and every log line emitted while the
       request is handled is tagged with it (see RequestIDLogFilter).
How:   A client-supplied X-Request-ID is reused when it looks sane;
       otherwise a short random id is generated. The value lives in a
       ContextVar so concurrent requests on one event loop don't mix.
"""

import logging
import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: each in-flight request sees its own value
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Client ids end up in logs; reject anything that could forge log lines
_VALID_CLIENT_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def _new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestIDLogFilter(logging.Filter):
    """Adds `request_id` to every record ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("") or "-"
        return True


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        supplied = request.headers.get("X-Request-ID", "")
        rid = supplied if _VALID_CLIENT_ID.match(supplied) else _new_request_id()

        # Not reset afterwards: the catch-all 500 handler runs outside this
        # middleware and still needs the id
        request_id_var.set(rid)
        request.state.request_id = rid
        response = await call_next(request)

        response.headers["X-Request-ID"] = rid
        return response
