"""
cache.py — Redis memoization layer for LeaseWise projections.

Namespace conventions:
  projection:{sha256(canonical request JSON)}  → ProjectionResult dict   TTL settings.projection_cache_ttl

Design:
  - project() is a pure function, so a key built from the full (inputs, slabs)
    VALUE is the only invalidation needed — equal input, equal output
  - Uses redis.asyncio (async client, part of redis-py 5.x)
  - Pool created once in lifespan (only when settings.cache_enabled), stored on app.state.redis
  - Helper functions take the client as a param — no module-level global state
  - Logs only key digests — no salary figures in logs
"""
import hashlib
import json
import logging
from typing import Optional

import redis.asyncio as aioredis

from leasewise.calculator.schemas import ProjectionRequest
from leasewise.config import settings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Key prefix constants
# ---------------------------------------------------------------------------
PROJECTION_PREFIX = "projection"


# ---------------------------------------------------------------------------
# Key builders
# ---------------------------------------------------------------------------

def make_projection_key(payload: ProjectionRequest) -> str:
    """
    Build Redis key for a projection request.
    Canonical form: alias-keyed JSON with sorted keys, so field order and
    snake/camel spelling in the incoming body do not change the key.
    Key format: projection:{sha256hex}
    """
    canonical = json.dumps(
        payload.model_dump(mode="json", by_alias=True),
        sort_keys=True,
        separators=(",", ":"),
    )
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return f"{PROJECTION_PREFIX}:{digest}"


# ---------------------------------------------------------------------------
# Pool factory — called once in lifespan
# ---------------------------------------------------------------------------

async def create_redis_pool() -> aioredis.Redis:
    """
    Create and return an async Redis connection pool.
    Called once in FastAPI lifespan startup — stored on app.state.redis.
    Verifies connectivity with PING before returning.
    """
    client = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
    )
    await client.ping()
    logger.info("Redis connection pool established at %s", settings.redis_url)
    return client


# ---------------------------------------------------------------------------
# Projection cache helpers
# ---------------------------------------------------------------------------

async def get_cached_projection(
    client: aioredis.Redis, payload: ProjectionRequest
) -> Optional[dict]:
    """
    Look up a previously computed ProjectionResult dict.
    Returns None on cache miss.
    """
    key = make_projection_key(payload)
    raw = await client.get(key)
    if raw is None:
        return None
    logger.info("Projection cache hit key=%s", key)
    return json.loads(raw)


async def set_cached_projection(
    client: aioredis.Redis, payload: ProjectionRequest, result: dict
) -> None:
    """
    Store a ProjectionResult dict with TTL settings.projection_cache_ttl.
    Overwrites any existing value and resets its TTL.
    """
    key = make_projection_key(payload)
    ttl = settings.projection_cache_ttl
    await client.setex(key, ttl, json.dumps(result))
    logger.info("Projection cached key=%s ttl=%ds", key, ttl)
