"""Request correlation for the account service."""

from uuid import uuid4

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from aitwy.services.logging_service import mask_verification_path

CORRELATION_HEADER = "X-Correlation-Id"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Tag every auth request and its log lines with one correlation id.

    The id comes from the caller's X-Correlation-Id header when present and
    is echoed back on the response. The bound path has any verification
    token masked, since verify-email carries it in the URL.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid4())
        request.state.correlation_id = correlation_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            correlation_id=correlation_id,
            method=request.method,
            path=mask_verification_path(request.url.path),
        )

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response
