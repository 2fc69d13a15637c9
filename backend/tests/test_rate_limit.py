"""
Vistoria Naval API — Rate Limiter Tests

A bare FastAPI app wrapped in RateLimitMiddleware; ASGITransport always
reports the peer as 127.0.0.1.
"""

from unittest.mock import patch

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from app.config import settings
from app.middleware.rate_limit import RateLimitMiddleware


def _app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware)

    @app.post("/api/auth/login")
    async def login():
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


async def _disparar(quantidade, cabecalhos=lambda i: {}, path="/api/auth/login"):
    transport = ASGITransport(app=_app())
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return [
            (await client.post(path, headers=cabecalhos(i))).status_code
            for i in range(quantidade)
        ]


class TestRateLimit:

    @pytest.mark.asyncio
    async def test_bloqueia_apos_limite(self):
        with patch.object(settings, "rate_limit_requests", 3):
            codigos = await _disparar(5)
        assert codigos == [200, 200, 200, 429, 429]

    @pytest.mark.asyncio
    async def test_x_forwarded_for_rotativo_nao_escapa(self):
        with patch.object(settings, "rate_limit_requests", 3):
            codigos = await _disparar(
                20, lambda i: {"X-Forwarded-For": f"10.0.0.{i}"}
            )
        assert codigos[:3] == [200, 200, 200]
        assert set(codigos[3:]) == {429}

    @pytest.mark.asyncio
    async def test_proxy_confiavel_repassa_cliente(self):
        with patch.object(settings, "rate_limit_requests", 3), \
             patch.object(settings, "trusted_proxies", "127.0.0.1"):
            codigos = await _disparar(
                6, lambda i: {"X-Forwarded-For": f"10.0.0.{i}, 127.0.0.1"}
            )
        assert codigos == [200] * 6

    @pytest.mark.asyncio
    async def test_429_traz_retry_after(self):
        transport = ASGITransport(app=_app())
        with patch.object(settings, "rate_limit_requests", 1):
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                await client.post("/api/auth/login")
                response = await client.post("/api/auth/login")
        assert response.status_code == 429
        assert int(response.headers["Retry-After"]) > 0
        assert response.json()["error"] == "rate_limit_exceeded"

    @pytest.mark.asyncio
    async def test_health_isento(self):
        transport = ASGITransport(app=_app())
        with patch.object(settings, "rate_limit_requests", 1):
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                codigos = [(await client.get("/health")).status_code for _ in range(3)]
        assert codigos == [200, 200, 200]
