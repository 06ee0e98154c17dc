"""Key-value store adapter for a network Redis cache server

This module provides a Redis-based implementation of KeyValueStore, used when a
Redis server is reachable at the configured address (e.g. the `redis` service of
the docker compose setup, or a managed Redis instance).

Responsibilities:
    - Read and write opaque string values;
    - Perform conditional writes (SET NX) for collision-safe inserts;
    - Enumerate keys by draining a cursor-based SCAN;
    - Report reachability as a value (PING);
    - Surface Redis failures as DataStoreError.

Classes:
    RedisKeyValueStore:
        KeyValueStore backed by redis.asyncio.

Example:
    >>> from shorturl.dao.redis import RedisKeyValueStore

    >>> store = RedisKeyValueStore(redis_url="redis://localhost:6379/0")
    >>> await store.ping()
    True
    >>> await store.set("1a2b3c4d", '{"originalUrl": "https://example.com/page"}')
    True
    >>> await store.get("1a2b3c4d")
    '{"originalUrl": "https://example.com/page"}'
"""

import logging

from beartype import beartype

from shorturl.constants import Backend, ScanDefaults
from shorturl.dao.base import KeyValueStore
from shorturl.dao.exceptions import DataStoreError
from shorturl.dao.redis.helpers import handle_redis_errors, redis_location
from shorturl.dao.redis.mixins import RedisClientMixin


logger = logging.getLogger(__name__)


class RedisKeyValueStore(RedisClientMixin, KeyValueStore):
    """Redis-based key-value store adapter

    Attributes (see RedisClientMixin):
        redis (redis.asyncio.Redis):
            Redis client used to communicate with the Redis server.

    Methods:
        ping() -> bool:
            PING Redis. Returns False instead of raising when unreachable.

        get(key: str) -> str | None:
            GET a value. Raises DataStoreError on connectivity issues with Redis.

        set(key: str, value: str, nx: bool = False) -> bool:
            SET a value (optionally NX). Raises DataStoreError on connectivity issues with Redis.

        delete(key: str) -> bool:
            DEL a key. Raises DataStoreError on connectivity issues with Redis.

        scan_keys(match: str | None = None) -> list[str]:
            Drain SCAN from cursor 0 back to cursor 0, de-duplicating keys.
            Raises DataStoreError on connectivity issues with Redis.
    """

    name = Backend.REDIS.value

    def __init__(self, *args, scan_batch_size: int = ScanDefaults.BATCH_SIZE, max_scan_pages: int = ScanDefaults.MAX_PAGES, **kwargs):
        super().__init__(*args, **kwargs)
        self.scan_batch_size = scan_batch_size
        self.max_scan_pages = max_scan_pages

    async def ping(self) -> bool:
        return await self._healthcheck()

    @handle_redis_errors
    @beartype
    async def get(self, key: str) -> str | None:
        value = await self.redis.get(key)
        if isinstance(value, bytes):
            value = value.decode('utf-8')
        return value

    @handle_redis_errors
    @beartype
    async def set(self, key: str, value: str, nx: bool = False) -> bool:
        # SET ... NX replies None when the key already exists
        written = await self.redis.set(key, value, nx=nx)
        return bool(written)

    @handle_redis_errors
    @beartype
    async def delete(self, key: str) -> bool:
        return bool(await self.redis.delete(key))

    @handle_redis_errors
    @beartype
    async def scan_keys(self, match: str | None = None) -> list[str]:
        """Enumerate all keys with SCAN

        SCAN guarantees that every key present for the full duration of the scan is
        returned at least once, but a key may be returned several times. Keys are
        de-duplicated across pages while preserving first-seen order.

        Raises:
            DataStoreError:
                If Redis fails, or if the cursor never returns to 0 within max_scan_pages.
        """
        seen: dict[str, None] = {}
        cursor = 0
        for page in range(1, self.max_scan_pages + 1):
            cursor, batch = await self.redis.scan(cursor=cursor, match=match, count=self.scan_batch_size)
            for key in batch:
                seen.setdefault(key.decode('utf-8') if isinstance(key, bytes) else key, None)

            logger.debug('Scanned Redis page.', extra={'page': page, 'batchSize': len(batch), 'cursor': str(cursor)})
            if int(cursor) == 0:
                return list(seen)

        raise DataStoreError(f'SCAN on Redis at {redis_location(self.redis)} did not complete within {self.max_scan_pages} pages.')

    async def close(self) -> None:
        await self.redis.aclose()
