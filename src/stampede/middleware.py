"""Server middleware and request-scoped context."""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

CORRELATION_ID_HEADER = "X-Request-ID"

# Background test tasks are created inside the request, so they inherit the
# submitting request's correlation ID through the copied context.
correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

# Set by the orchestrator for the lifetime of a background test run.
test_id_var: ContextVar[str | None] = ContextVar("test_id", default=None)


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Attach a unique request ID to every request/response cycle.

    If the client sends an ``X-Request-ID`` header, it is preserved;
    otherwise a new UUID4 is generated.  The ID is set on
    ``request.state.correlation_id`` and stored in a ``ContextVar`` so
    logging picks it up, including from test runs spawned by the request.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        cid = request.headers.get(CORRELATION_ID_HEADER) or uuid.uuid4().hex
        request.state.correlation_id = cid
        token = correlation_id_var.set(cid)
        try:
            response = await call_next(request)
        finally:
            correlation_id_var.reset(token)
        response.headers[CORRELATION_ID_HEADER] = cid
        return response
