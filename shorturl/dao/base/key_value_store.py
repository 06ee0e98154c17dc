"""Abstract base class for key-value store adapters.

This class establishes one contract for every storage backend the shortener can
run against (managed REST KV, a Redis cache server, a process-local map), so the
URL mapping DAO never branches on which concrete client it was handed.

Responsibilities:
    - Provide async get/set/delete on opaque string values.
    - Provide a liveness probe which reports reachability as a value.
    - Provide complete key enumeration, draining paginated backends.
    - Standardize error handling across implementations (DataStoreError).

Example:
    Typical usage with a backend-specific implementation:

        >>> from shorturl.dao.memory import InMemoryKeyValueStore
        >>> store = InMemoryKeyValueStore()

        >>> await store.ping()
        True

        >>> await store.set("1a2b3c4d", '{"originalUrl": "https://example.com"}')
        True

        >>> await store.get("1a2b3c4d")
        '{"originalUrl": "https://example.com"}'

        >>> await store.scan_keys()
        ['1a2b3c4d']
"""

from abc import ABC, abstractmethod


class KeyValueStore(ABC):
    """Interface for key-value store adapters.

    Attributes:
        name (str):
            Backend label reported in logs and statistics (e.g. 'redis').

    Methods:
        ping() -> bool:
            Liveness probe. Returns False when the backend is unreachable.

        get(key: str) -> str | None:
            Read a value. Returns None when the key is absent.
            Raises DataStoreError on connection or read failure.

        set(key: str, value: str, nx: bool = False) -> bool:
            Write a value, optionally only if the key is absent.
            Raises DataStoreError on connection or write failure.

        delete(key: str) -> bool:
            Remove a key.
            Raises DataStoreError on connection or write failure.

        scan_keys(match: str | None = None) -> list[str]:
            Enumerate all keys (optionally matching a glob pattern).
            Raises DataStoreError on connection or read failure.

        close() -> None:
            Release network resources.

    Subclassing:
        Backend-specific implementations (e.g., RedisKeyValueStore or
        RestKeyValueStore) must extend this class and implement all
        abstract methods.
    """

    name: str = 'unknown'

    @abstractmethod
    async def ping(self) -> bool:
        """Probe the backend for liveness

        Unreachable backends are an expected condition, not a fault: implementations
        must return False on connection failures and timeouts instead of raising.

        Returns:
            bool: True if the backend answered, False otherwise.
        """
        pass

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Read the value stored under a key

        Args:
            key (str):
                The key to read.

        Returns:
            str | None: The stored value, None if the key is absent.

        Raises:
            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str, nx: bool = False) -> bool:
        """Write a value under a key

        Args:
            key (str):
                The key to write.

            value (str):
                The serialized value.

            nx (bool):
                If True, only write when the key doesn't exist yet.

        Returns:
            bool: True if the value was written, False if nx=True and the key already existed.

        Raises:
            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove a key

        Returns:
            bool: True if a key was removed, False if it didn't exist.

        Raises:
            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    async def scan_keys(self, match: str | None = None) -> list[str]:
        """Enumerate every key currently in the store

        Implementations backed by a cursor-paginated SCAN must keep requesting
        pages until the cursor returns to zero and must de-duplicate keys, since
        SCAN may return the same key more than once.

        Args:
            match (str | None):
                Optional glob pattern restricting the enumerated keys.

        Returns:
            list[str]: All keys, each exactly once, in first-seen order.

        Raises:
            DataStoreError:
                If there is an error in the data store.
        """
        pass

    async def close(self) -> None:  # noqa: B027
        """Release network resources held by the adapter (no-op by default)."""
        pass

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__} name={self.name!r}>'
