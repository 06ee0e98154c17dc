import functools
from typing import Any, TypeVar
from collections.abc import Awaitable, Callable

import redis

from shorturl.dao.exceptions import DataStoreError


__all__ = []

F = TypeVar('F', bound=Callable[..., Awaitable[Any]])


def redis_location(client: Any) -> str:
    """Return '<host>:<port>/<db>' for a Redis client, for error messages."""
    info = client.connection_pool.connection_kwargs
    return f'{info.get("host")}:{info.get("port")}/{info.get("db")}'


def handle_redis_errors(method: F) -> F:
    """Wrap Redis-interacting async store methods to surface errors as DataStoreError

    Args:
        method (Callable[..., Awaitable[Any]]):
            Coroutine method performing Redis operations which may raise redis.exceptions.RedisError.

    Returns:
        Callable[..., Awaitable[Any]]:
            Wrapped method which raises DataStoreError on connectivity issues,
            timeouts, and error replies from Redis.

    Example:
        >>> @handle_redis_errors
        ... async def get(self, key):
        ...     return await self.redis.get(key)
    """

    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        try:
            return await method(self, *args, **kwargs)
        except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as e:
            raise DataStoreError(f"Can't connect to Redis at {redis_location(self.redis)}.") from e
        except redis.exceptions.RedisError as e:
            raise DataStoreError(f'Redis at {redis_location(self.redis)} failed: {e}') from e

    return wrapper
