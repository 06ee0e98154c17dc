"""Redis mixin providing shared async client initialization and connectivity checks.

Responsibilities:
    - Initialize an asyncio Redis client (from a URL or connection parameters)
    - Healthcheck the Redis client

Classes:
    - RedisClientMixin: Base mixin to inject Redis client setup & healthcheck.

Example:
    Typical usage with a store implementation:

        >>> class RedisKeyValueStore(RedisClientMixin, KeyValueStore):
        ...     pass
        ...
        >>> store = RedisKeyValueStore(redis_url="redis://localhost:6379/0")
        >>> await store._healthcheck()
        True
"""

import asyncio
import logging
from typing import Optional

import redis
import redis.asyncio

from shorturl.constants import Timeout
from shorturl.dao.redis.helpers import redis_location


logger = logging.getLogger(__name__)


class RedisClientMixin:
    """Mixin Redis client setup and health check for Redis-backed stores.

    Attributes:
        redis (redis.asyncio.Redis):
            Active Redis client instance used by subclasses.

    Methods:
        _healthcheck() -> bool:
            Ping Redis to verify connectivity.
    """

    def __init__(
        self,
        redis_host: Optional[str] = 'localhost',
        redis_port: Optional[int] = 6379,
        redis_db: Optional[int] = 0,
        redis_decode_responses: Optional[bool] = True,
        redis_username: Optional[str] = None,
        redis_password: Optional[str] = None,
        redis_url: Optional[str] = None,
        redis_client: Optional[redis.asyncio.Redis] = None,
        timeout: Optional[float] = Timeout.STORE_CALL,
    ):
        """Initialize a Redis-backed store

        The option is given to either use an existing Redis client instance or
        create one from a redis:// URL or the individual connection parameters.
        No connection is opened here: the client connects lazily on first use
        and the backend selector probes it before every logical operation.

        Args:
            redis_host (Optional[str]):
                Hostname of the Redis server. Defaults to 'localhost'.

            redis_port (Optional[int]):
                Redis server port. Defaults to 6379.

            redis_db (Optional[int]):
                Redis database index. Defaults to 0.

            redis_decode_responses (Optional[bool]):
                If True, decodes Redis responses. Defaults to True.

            redis_username (Optional[str]):
                Username for Redis authentication (if required).

            redis_password (Optional[str]):
                Password for Redis authentication (if required).

            redis_url (Optional[str]):
                redis:// or rediss:// URL. Takes precedence over host/port/db.

            redis_client (Optional[redis.asyncio.Redis]):
                Pre-initialized Redis client. If None, a new client is created.

            timeout (Optional[float]):
                Socket connect/read timeout in seconds for every Redis call.
        """
        if redis_client is None:
            if redis_url:
                redis_client = redis.asyncio.Redis.from_url(
                    redis_url,
                    decode_responses=redis_decode_responses,
                    socket_timeout=timeout,
                    socket_connect_timeout=timeout,
                )
            else:
                redis_client = redis.asyncio.Redis(
                    host=redis_host,
                    port=int(redis_port),
                    db=int(redis_db),
                    decode_responses=redis_decode_responses,
                    username=redis_username,
                    password=redis_password,
                    socket_timeout=timeout,
                    socket_connect_timeout=timeout,
                )

        self.redis = redis_client

    async def _healthcheck(self) -> bool:
        """PING Redis to healthcheck connectivity

        Returns:
            bool: True if Redis answered the PING, False on connection or timeout errors.

        Example:
            >>> await self._healthcheck()
            True
        """
        try:
            await self.redis.ping()
        except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError, asyncio.TimeoutError, OSError) as e:
            logger.debug('Redis healthcheck failed.', extra={'location': redis_location(self.redis), 'reason': str(e)})
            return False
        return True
