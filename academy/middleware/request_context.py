"""
RequestContext Middleware - Adds request tracking to all requests.

Stores on request.state:
- request_id: taken from an incoming X-Request-ID header or generated

The request id is echoed back in the X-Request-ID response header so the
browser console and server logs can be correlated.
"""

import re
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from academy.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

# Accept caller-supplied ids only if they look like an opaque token
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9\-_.]{8,64}$")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Add a request id to every request."""

    async def dispatch(self, request: Request, call_next):
        incoming = request.headers.get("x-request-id")
        if incoming and _REQUEST_ID_PATTERN.match(incoming):
            request_id = incoming
        else:
            request_id = str(uuid.uuid4())

        request.state.request_id = request_id

        logger.debug(
            "Request started",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response
