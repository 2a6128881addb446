"""
Rate limiting middleware.

Fixed-window request counter per client IP, stored in Redis so that every
worker process shares the same window.
"""

import logging
import math
from typing import Callable, Optional
from fastapi import status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from backend.app.core.config import settings
from backend.app.core.redis_client import get_redis

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Middleware for API rate limiting based on client IP.

    Only paths under /api/ are counted. If Redis is unavailable the request
    is let through and the failure is logged.
    """

    def __init__(
        self,
        app,
        window_ms: Optional[int] = None,
        max_requests: Optional[int] = None,
        path_prefix: str = "/api/",
        client_provider: Callable = get_redis,
    ):
        super().__init__(app)
        self.window_seconds = max(1, math.ceil((window_ms or settings.rate_limit_window_ms) / 1000))
        self.max_requests = max_requests or settings.rate_limit_max_requests
        self.path_prefix = path_prefix
        self.client_provider = client_provider

    async def dispatch(self, request: Request, call_next) -> Response:
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        key = f"rate_limit:{client_ip}"

        try:
            redis = await self.client_provider()
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, self.window_seconds)
            ttl = await redis.ttl(key)
        except Exception as e:
            logger.warning(f"Rate limiter unavailable, allowing request: {str(e)}")
            return await call_next(request)

        retry_after = ttl if ttl and ttl > 0 else self.window_seconds

        if count > self.max_requests:
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "success": False,
                    "error_code": "ERR_RATE_LIMIT",
                    "message": RATE_LIMIT_MESSAGE,
                    "details": {},
                },
                headers={
                    "X-RateLimit-Limit": str(self.max_requests),
                    "X-RateLimit-Remaining": "0",
                    "Retry-After": str(retry_after),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.max_requests)
        response.headers["X-RateLimit-Remaining"] = str(max(0, self.max_requests - count))
        return response
