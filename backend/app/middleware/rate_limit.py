"""
Vistoria Naval API — Rate Limiting Middleware
===============================================

What:  Per-client sliding window rate limiter.
Why:   Login and upload endpoints are the obvious abuse targets; the
       limiter caps every client before any database work happens.

Algorithm: Sliding Window Log
    1. Each client key keeps the timestamps of its recent requests
    2. Timestamps older than rate_limit_window seconds are dropped
    3. At rate_limit_requests remaining, answer 429 with Retry-After
    4. Otherwise record the request and continue

Client key:
    The socket peer address. X-Forwarded-For is only read when the peer is
    listed in settings.trusted_proxies; otherwise any client could rotate
    the header to escape its window.

Limitation:
    State is per process. Several uvicorn workers each keep their own
    counters.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Deque, Dict

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.config import settings
from app.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)

CLEANUP_EVERY = 1000


def chave_cliente(request: Request) -> str:
    peer = request.client.host if request.client else "unknown"
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded and peer in settings.trusted_proxies_list:
        return forwarded.split(",")[0].strip() or peer
    return peer


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window limiter configured by settings.rate_limit_requests
    and settings.rate_limit_window. Health checks and API docs are exempt.
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._requests: Dict[str, Deque[float]] = defaultdict(deque)
        self._contador = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        cliente = chave_cliente(request)
        now = time.time()
        window_start = now - settings.rate_limit_window

        historico = self._requests[cliente]
        while historico and historico[0] <= window_start:
            historico.popleft()

        if len(historico) >= settings.rate_limit_requests:
            retry_after = int(historico[0] + settings.rate_limit_window - now) + 1
            exc = RateLimitExceededError(retry_after=retry_after)
            logger.warning(
                "Rate limit exceeded for %s: %d requests in %ds window",
                cliente,
                len(historico),
                settings.rate_limit_window,
            )
            # Runs outside the app: no exception handlers and no request ID yet
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": exc.message,
                    "details": exc.context,
                    "request_id": request.headers.get("X-Request-ID", ""),
                },
                headers={"Retry-After": str(retry_after)},
            )

        historico.append(now)
        self._contador += 1
        if self._contador % CLEANUP_EVERY == 0:
            self._cleanup_inactive(window_start)

        return await call_next(request)

    def _cleanup_inactive(self, window_start: float) -> None:
        inativos = [
            cliente for cliente, historico in self._requests.items()
            if not historico or historico[-1] <= window_start
        ]
        for cliente in inativos:
            del self._requests[cliente]
        if inativos:
            logger.debug("Cleaned up %d inactive rate limit entries", len(inativos))
