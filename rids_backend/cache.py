"""
cache.py — Redis caching layer for the RIDS backend.

Namespace conventions:
  wizard:{rids_form_id}  → wizard progress dict  TTL 24h (settings.wizard_progress_ttl)

Design:
  - Uses redis.asyncio (async client, part of redis-py 5.x)
  - Pool created once in lifespan, stored on app.state.redis
  - Helper functions take the client as a param — no module-level global state
  - Logs only rids_form_id (not draft values) — no PII in logs
"""
import json
import logging
from typing import Optional

import redis.asyncio as aioredis

from rids_backend.config import settings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# TTL / key prefix constants
# ---------------------------------------------------------------------------
WIZARD_PROGRESS_TTL: int = settings.wizard_progress_ttl
WIZARD_PREFIX = "wizard"


def make_wizard_key(rids_form_id: str) -> str:
    """Build Redis key for wizard progress: wizard:{rids_form_id}"""
    return f"{WIZARD_PREFIX}:{rids_form_id}"


# ---------------------------------------------------------------------------
# Pool factory — called once in lifespan
# ---------------------------------------------------------------------------

async def create_redis_pool() -> aioredis.Redis:
    """
    Create and return an async Redis connection pool.
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
# Wizard progress helpers
# ---------------------------------------------------------------------------

async def get_wizard_progress(
    client: aioredis.Redis, rids_form_id: str
) -> Optional[dict]:
    """
    Retrieve wizard progress from Redis.
    Returns None if progress expired or was never cached.
    """
    raw = await client.get(make_wizard_key(rids_form_id))
    if raw is None:
        return None
    return json.loads(raw)


async def set_wizard_progress(
    client: aioredis.Redis, rids_form_id: str, data: dict
) -> None:
    """
    Store wizard progress in Redis, resetting the TTL on every write.
    data must be JSON-serialisable (the route dumps drafts with mode="json").
    Note: caller should also persist via store.set_wizard_progress() for durability.
    """
    key = make_wizard_key(rids_form_id)
    await client.setex(key, WIZARD_PROGRESS_TTL, json.dumps(data))
    logger.info("Wizard progress cached rids_form_id=%s ttl=%ds", rids_form_id, WIZARD_PROGRESS_TTL)


async def clear_wizard_progress(client: aioredis.Redis, rids_form_id: str) -> None:
    """Drop cached progress (form deleted or wizard submitted)."""
    await client.delete(make_wizard_key(rids_form_id))
