"""
Vistoria Naval API — Request ID Middleware
============================================

What:  Assigns a correlation ID to each request and echoes it in the
       X-Request-ID response header.
How:   A client-supplied X-Request-ID is kept (the frontend sends one so an
       error toast can be matched to server logs); otherwise an 8-char
       UUID prefix is generated.

The ID lives in a ContextVar so exception handlers, services and the access
log can read it without passing the request around.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on the same thread keep separate IDs
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

MAX_REQUEST_ID_LENGTH = 64


def novo_request_id(recebido: str = "") -> str:
    """Client-supplied ID when usable, else a fresh short UUID."""
    recebido = (recebido or "").strip()
    if recebido and len(recebido) <= MAX_REQUEST_ID_LENGTH:
        return recebido
    return str(uuid.uuid4())[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = novo_request_id(request.headers.get("X-Request-ID", ""))
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
