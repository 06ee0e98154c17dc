from shorturl.dao.redis.mixins import RedisClientMixin
from shorturl.dao.redis.redis_store import RedisKeyValueStore


__all__ = [
    'RedisClientMixin',
    'RedisKeyValueStore',
]
