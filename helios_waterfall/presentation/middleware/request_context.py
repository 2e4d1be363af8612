"""Per-request tracing context."""

import uuid
from contextvars import ContextVar
from typing import Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

REQUEST_ID_HEADER = "X-Request-ID"

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def get_request_id() -> Optional[str]:
    return request_id_var.get()


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Give every request an ID and make it visible to logs and callers.

    A caller-supplied X-Request-ID is reused; otherwise a UUID4 is minted.
    The ID is bound into structlog's contextvars for the lifetime of the
    request, so analysis logs emitted deep inside the pipeline carry it,
    and is echoed on the response.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())

        token = request_id_var.set(request_id)
        with structlog.contextvars.bound_contextvars(request_id=request_id):
            try:
                response = await call_next(request)
            finally:
                request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
