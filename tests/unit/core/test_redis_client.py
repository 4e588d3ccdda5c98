"""Tests for RedisClient degradation and helpers."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from noteledger.config import Settings
from noteledger.core.redis_client import RedisClient


class FakeRedis:
    """Just enough of redis.asyncio.Redis for pattern deletes."""

    def __init__(self, keys):
        self.keys = dict.fromkeys(keys, "1")

    async def scan_iter(self, match=None, count=None):
        prefix = match.split("*")[0]
        suffix = match.split("*")[-1]
        for key in list(self.keys):
            if key.startswith(prefix) and key.endswith(suffix):
                yield key

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.keys.pop(key, None) is not None:
                removed += 1
        return removed


@pytest.fixture
def client():
    return RedisClient(Settings())


class TestUnavailable:
    @pytest.mark.asyncio
    async def test_everything_is_a_noop(self, client):
        assert client.available is False
        assert await client.get("k") is None
        assert await client.set("k", "v") is False
        assert await client.delete("k") is False
        assert await client.delete_pattern("cache:*") == 0
        assert await client.get_json("k") is None
        assert await client.increment_rate_limit("rate_limit:1.2.3.4") == 0


class TestConnected:
    @pytest.mark.asyncio
    async def test_delete_pattern_only_touches_matching_keys(self, client):
        client.redis = FakeRedis(
            ["cache:/api/notes/:u1", "cache:/api/notes/abc:u1", "cache:/api/notes/:u2"]
        )

        removed = await client.delete_pattern("cache:/api/notes*:u1")

        assert removed == 2
        assert list(client.redis.keys) == ["cache:/api/notes/:u2"]

    @pytest.mark.asyncio
    async def test_get_json_discards_malformed_entry(self, client):
        client.redis = MagicMock()
        client.redis.get = AsyncMock(return_value="{not json")

        assert await client.get_json("cache:x") is None

    @pytest.mark.asyncio
    async def test_set_with_expiry_uses_setex(self, client):
        client.redis = MagicMock()
        client.redis.setex = AsyncMock(return_value=True)

        assert await client.set_json("k", {"a": 1}, expire=30) is True
        client.redis.setex.assert_awaited_once_with("k", 30, '{"a": 1}')

    @pytest.mark.asyncio
    async def test_get_error_degrades_to_none(self, client):
        client.redis = MagicMock()
        client.redis.get = AsyncMock(side_effect=ConnectionError("gone"))

        assert await client.get("k") is None

    @pytest.mark.asyncio
    async def test_disconnect_clears_connection(self, client):
        connection = MagicMock()
        connection.aclose = AsyncMock()
        client.redis = connection

        await client.disconnect()

        connection.aclose.assert_awaited_once()
        assert client.available is False
