"""
Shared Redis client accessor.

Redis is optional: when REDIS_URL is unset the price feed still runs, it
just is not cached or relayed to websocket subscribers.
"""

import json
from typing import Iterable, Optional
import logging

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)

PRICE_CHANNEL = "price_updates"
PRICE_KEY_TTL_SECONDS = 60

_redis_client: Optional[aioredis.Redis] = None


def price_key(symbol: str) -> str:
    return f"price:sim:{symbol.upper()}"


async def init_redis(url: str) -> aioredis.Redis:
    """Initialize the shared Redis connection. Called once during app lifespan startup."""
    global _redis_client
    client = aioredis.from_url(url, encoding="utf-8", decode_responses=False)
    await client.ping()
    _redis_client = client
    return _redis_client


def get_redis_client() -> Optional[aioredis.Redis]:
    """Get the shared Redis client. Returns None if not initialized."""
    return _redis_client


async def close_redis() -> None:
    """Close the shared Redis connection. Called during app lifespan shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.close()
        _redis_client = None


async def cache_quotes(quotes: Iterable[dict]) -> None:
    """Cache the latest tick per symbol and publish it for live subscribers."""
    client = get_redis_client()
    if client is None:
        return

    for quote in quotes:
        payload = json.dumps(quote, default=float)
        await client.setex(price_key(quote["symbol"]), PRICE_KEY_TTL_SECONDS, payload)
        await client.publish(PRICE_CHANNEL, payload)
