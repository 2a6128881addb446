"""
Tests for the fixed-window rate limiter.
"""

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from backend.app.core.rate_limit import RateLimitMiddleware, RATE_LIMIT_MESSAGE


class BrokenRedis:
    async def incr(self, key):
        raise ConnectionError("redis down")


def build_app(redis, max_requests=2):
    async def provider():
        return redis

    limited = FastAPI()
    limited.add_middleware(
        RateLimitMiddleware,
        window_ms=60_000,
        max_requests=max_requests,
        client_provider=provider,
    )

    @limited.get("/api/v1/ping")
    async def ping():
        return {"pong": True}

    @limited.get("/health")
    async def health():
        return {"status": "OK"}

    return limited


@pytest.mark.asyncio
async def test_requests_over_limit_get_429(redis_client_session):
    app = build_app(redis_client_session)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        first = await ac.get("/api/v1/ping")
        assert first.status_code == 200
        assert first.headers["X-RateLimit-Limit"] == "2"
        assert first.headers["X-RateLimit-Remaining"] == "1"

        second = await ac.get("/api/v1/ping")
        assert second.status_code == 200
        assert second.headers["X-RateLimit-Remaining"] == "0"

        third = await ac.get("/api/v1/ping")
        assert third.status_code == 429
        data = third.json()
        assert data["success"] is False
        assert data["message"] == RATE_LIMIT_MESSAGE
        assert third.headers["Retry-After"] == "60"


@pytest.mark.asyncio
async def test_paths_outside_api_are_not_counted(redis_client_session):
    app = build_app(redis_client_session, max_requests=1)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        for _ in range(3):
            response = await ac.get("/health")
            assert response.status_code == 200
            assert "X-RateLimit-Limit" not in response.headers


@pytest.mark.asyncio
async def test_redis_failure_fails_open():
    app = build_app(BrokenRedis(), max_requests=1)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        for _ in range(3):
            response = await ac.get("/api/v1/ping")
            assert response.status_code == 200


@pytest.mark.asyncio
async def test_main_app_sets_rate_limit_headers(client, driver_headers):
    response = await client.get("/api/v1/auth/me", headers=driver_headers)
    assert response.status_code == 200
    assert response.headers["X-RateLimit-Limit"] == "100"
    assert "X-Correlation-ID" in response.headers
    assert "X-Process-Time" in response.headers


@pytest.mark.asyncio
async def test_health_and_root(client):
    health = await client.get("/health")
    assert health.status_code == 200
    assert health.json()["database"] == "connected"
    assert health.json()["redis"] == "connected"

    root = await client.get("/")
    assert root.json()["docs"] == "/api-docs"
