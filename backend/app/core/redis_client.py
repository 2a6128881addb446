"""
Redis client initialization and connection management.

Redis backs the shared rate-limit counters.
"""

import logging
import redis.asyncio as redis
from backend.app.core.config import settings

logger = logging.getLogger(__name__)

# Create async Redis client
redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def get_redis():
    """
    Get Redis client instance.

    Resolved at call time so tests can swap the module-level client.
    """
    return redis_client


async def ping_redis() -> bool:
    """
    Test Redis connection.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        return await redis_client.ping()
    except Exception as e:
        logger.warning(f"Redis ping failed: {str(e)}")
        return False


async def close_redis() -> None:
    await redis_client.aclose()
