"""Request logging middleware — correlation IDs and one access line per request."""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..auth.roles import get_role
from ..utils.logging import get_logger

logger = get_logger("http")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Assigns a request ID and logs method, path, status, duration and role.

    The ID is bound into structlog's context for the lifetime of the request,
    so every event logged by the engines while serving it carries it too.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        start = time.monotonic()

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            logger.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=int((time.monotonic() - start) * 1000),
                role=get_role(request),
            )
        return response
