"""Unit tests for cache.py — wizard progress helpers against a mocked Redis client."""
import json
from unittest.mock import AsyncMock

import pytest

from rids_backend import cache


def test_key_format() -> None:
    assert cache.make_wizard_key("abc") == "wizard:abc"


@pytest.mark.asyncio
async def test_get_returns_none_when_missing() -> None:
    client = AsyncMock()
    client.get.return_value = None
    assert await cache.get_wizard_progress(client, "abc") is None
    client.get.assert_awaited_once_with("wizard:abc")


@pytest.mark.asyncio
async def test_get_decodes_json() -> None:
    client = AsyncMock()
    client.get.return_value = json.dumps({"current_step": 2, "submitted": False, "drafts": {}})
    data = await cache.get_wizard_progress(client, "abc")
    assert data["current_step"] == 2


@pytest.mark.asyncio
async def test_set_writes_with_ttl() -> None:
    client = AsyncMock()
    await cache.set_wizard_progress(client, "abc", {"current_step": 1})
    client.setex.assert_awaited_once_with(
        "wizard:abc", cache.WIZARD_PROGRESS_TTL, json.dumps({"current_step": 1})
    )


@pytest.mark.asyncio
async def test_clear_deletes_key() -> None:
    client = AsyncMock()
    await cache.clear_wizard_progress(client, "abc")
    client.delete.assert_awaited_once_with("wizard:abc")
