"""Unit tests for the RedisKeyValueStore

Test coverage includes:

1. Reachability
   - ping() answers True when Redis pongs and False (never raises) when unreachable.

2. Reads and writes
   - get() returns decoded strings or None.
   - set() passes NX through and reports whether the value was written.
   - delete() reports whether a key was removed.
   - Invalid argument types raise BeartypeCallHintParamViolation.
   - Redis connection errors raise DataStoreError.

3. Enumeration
   - scan_keys() drains the cursor, de-duplicates keys and honors MATCH.
   - A cursor that never returns to 0 raises DataStoreError.

4. Resource cleanup
   - close() closes the asyncio client.
"""

import re
from unittest.mock import AsyncMock, MagicMock, call

import pytest
import redis
from beartype.roar import BeartypeCallHintParamViolation

from shorturl.dao.exceptions import DataStoreError
from shorturl.dao.redis import RedisKeyValueStore


# -------------------------------
# Fixtures
# -------------------------------


@pytest.fixture
def redis_client():
    """Mock a redis.asyncio client (command methods return awaitables)."""
    _redis_client = MagicMock(connection_pool=MagicMock(connection_kwargs={'host': '203.0.113.1', 'port': 18000, 'db': 5}))
    _redis_client.ping = AsyncMock(return_value=True)
    _redis_client.get = AsyncMock(return_value=None)
    _redis_client.set = AsyncMock(return_value=True)
    _redis_client.delete = AsyncMock(return_value=1)
    _redis_client.scan = AsyncMock(return_value=(0, []))
    _redis_client.aclose = AsyncMock(return_value=None)
    return _redis_client


@pytest.fixture
def store(redis_client):
    return RedisKeyValueStore(redis_client=redis_client, scan_batch_size=100, max_scan_pages=10)


# -------------------------------
# 1. Reachability
# -------------------------------


@pytest.mark.asyncio
async def test_ping(store, redis_client):
    assert await store.ping() is True
    assert store.name == 'redis'


@pytest.mark.asyncio
async def test_ping_unreachable_returns_false(store, redis_client):
    """Ensure an unreachable server is reported as a value, not an exception."""
    redis_client.ping.side_effect = redis.exceptions.ConnectionError('Connection refused')
    assert await store.ping() is False


# -------------------------------
# 2. Reads and writes
# -------------------------------


@pytest.mark.asyncio
@pytest.mark.parametrize('reply, expected', [('1a2b3c4d', '1a2b3c4d'), (b'1a2b3c4d', '1a2b3c4d'), (None, None)])
async def test_get(store, redis_client, reply, expected):
    redis_client.get.return_value = reply
    assert await store.get('url:abc') == expected
    redis_client.get.assert_awaited_once_with('url:abc')


@pytest.mark.asyncio
async def test_set(store, redis_client):
    assert await store.set('1a2b3c4d', '{"originalUrl":"https://example.com/a"}') is True
    redis_client.set.assert_awaited_once_with('1a2b3c4d', '{"originalUrl":"https://example.com/a"}', nx=False)


@pytest.mark.asyncio
async def test_set_nx_on_existing_key(store, redis_client):
    """Ensure SET NX replying None is reported as not written."""
    redis_client.set.return_value = None
    assert await store.set('1a2b3c4d', 'value', nx=True) is False
    redis_client.set.assert_awaited_once_with('1a2b3c4d', 'value', nx=True)


@pytest.mark.asyncio
@pytest.mark.parametrize('reply, expected', [(1, True), (0, False)])
async def test_delete(store, redis_client, reply, expected):
    redis_client.delete.return_value = reply
    assert await store.delete('1a2b3c4d') is expected


@pytest.mark.asyncio
async def test_set_with_invalid_type(store):
    """Ensure non-string values raise a Beartype error."""
    with pytest.raises(BeartypeCallHintParamViolation):
        await store.set('1a2b3c4d', 42)


@pytest.mark.asyncio
@pytest.mark.parametrize('method, args', [('get', ('k',)), ('set', ('k', 'v')), ('delete', ('k',)), ('scan_keys', ())])
async def test_redis_connection_error(store, redis_client, method, args):
    """Ensure Redis connection errors raise DataStoreError."""
    redis_method = 'scan' if method == 'scan_keys' else method
    getattr(redis_client, redis_method).side_effect = redis.exceptions.ConnectionError('Connection error')

    with pytest.raises(DataStoreError, match=re.escape("Can't connect to Redis at 203.0.113.1:18000/5.")):
        await getattr(store, method)(*args)


# -------------------------------
# 3. Enumeration
# -------------------------------


@pytest.mark.asyncio
async def test_scan_keys_drains_cursor_and_deduplicates(store, redis_client):
    """Ensure every page is read and keys returned twice by SCAN are listed once."""
    redis_client.scan.side_effect = [
        (17, ['1a2b3c4d', 'url:abc']),
        (42, [b'ffffffff', '1a2b3c4d']),
        (0, ['deadbeef']),
    ]

    keys = await store.scan_keys()

    assert keys == ['1a2b3c4d', 'url:abc', 'ffffffff', 'deadbeef']
    redis_client.scan.assert_has_awaits(
        [
            call(cursor=0, match=None, count=100),
            call(cursor=17, match=None, count=100),
            call(cursor=42, match=None, count=100),
        ]
    )


@pytest.mark.asyncio
async def test_scan_keys_with_match(store, redis_client):
    redis_client.scan.return_value = (0, ['shorturl:dev:1a2b3c4d'])
    assert await store.scan_keys(match='shorturl:dev:*') == ['shorturl:dev:1a2b3c4d']
    redis_client.scan.assert_awaited_once_with(cursor=0, match='shorturl:dev:*', count=100)


@pytest.mark.asyncio
async def test_scan_keys_cursor_never_terminates(store, redis_client):
    """Ensure a cursor that never returns to 0 fails instead of looping forever."""
    redis_client.scan.return_value = (5, ['1a2b3c4d'])

    with pytest.raises(DataStoreError, match='did not complete within 10 pages'):
        await store.scan_keys()
    assert redis_client.scan.await_count == 10


# -------------------------------
# 4. Resource cleanup
# -------------------------------


@pytest.mark.asyncio
async def test_close(store, redis_client):
    await store.close()
    redis_client.aclose.assert_awaited_once()
