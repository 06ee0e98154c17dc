"""Backend selection with graceful degrade to an in-process store

The selector owns an ordered list of candidate stores (REST KV first, then
Redis) and one shared InMemoryKeyValueStore. Every acquire_store() call probes
the candidates in priority order and hands out the first reachable one, so a
backend that recovers is picked up again by the next request.

Classes:
    ProbeResult:
        Outcome of a liveness probe. Unreachable backends are a value, not an exception.
    BackendSelector:
        Per-request store acquisition.

Example:
    >>> selector = BackendSelector([RestKeyValueStore(url, token), RedisKeyValueStore()])
    >>> store = await selector.acquire_store()
    >>> store.name
    'redis'                     # REST endpoint unreachable, Redis up
    >>> await selector.close()
"""

import time
import asyncio
import logging
from dataclasses import dataclass, asdict
from collections.abc import Sequence

from shorturl.constants import Timeout
from shorturl.dao.base import KeyValueStore
from shorturl.dao.memory import InMemoryKeyValueStore
from shorturl.dao.exceptions import StoreUnavailableError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProbeResult:
    backend: str
    reachable: bool
    latency_ms: float | None = None
    error: str | None = None


class BackendSelector:
    """Pick a reachable KeyValueStore per operation

    Attributes:
        stores (list[KeyValueStore]):
            Candidate stores in priority order.
        fallback (InMemoryKeyValueStore):
            Process-wide fallback, shared by every request served by this selector.
        allow_memory_fallback (bool):
            If False, acquire_store() raises StoreUnavailableError instead of degrading.
        probe_timeout (float):
            Upper bound in seconds for a single liveness probe.
    """

    def __init__(
        self,
        stores: Sequence[KeyValueStore],
        fallback: InMemoryKeyValueStore | None = None,
        allow_memory_fallback: bool = True,
        probe_timeout: float = Timeout.PROBE,
    ):
        self.stores = list(stores)
        self.fallback = fallback if fallback is not None else InMemoryKeyValueStore()
        self.allow_memory_fallback = allow_memory_fallback
        self.probe_timeout = probe_timeout

    async def probe(self, store: KeyValueStore) -> ProbeResult:
        """Check whether a store is reachable within probe_timeout. Never raises."""
        start = time.perf_counter()
        try:
            async with asyncio.timeout(self.probe_timeout):
                reachable = await store.ping()
        except TimeoutError:
            return ProbeResult(backend=store.name, reachable=False, error=f'Probe timed out after {self.probe_timeout}s.')
        except Exception as e:
            logger.exception('Unexpected error while probing backend.', extra={'backend': store.name})
            return ProbeResult(backend=store.name, reachable=False, error=str(e) or type(e).__name__)

        latency_ms = round((time.perf_counter() - start) * 1000, 3)
        return ProbeResult(
            backend=store.name,
            reachable=reachable,
            latency_ms=latency_ms,
            error=None if reachable else 'Backend did not answer the ping.',
        )

    async def probe_all(self) -> list[ProbeResult]:
        """Probe every candidate store and the fallback (health reporting)."""
        results = [await self.probe(store) for store in self.stores]
        if self.allow_memory_fallback:
            results.append(await self.probe(self.fallback))
        return results

    async def acquire_store(self) -> KeyValueStore:
        """Return the first reachable store in priority order

        Returns:
            KeyValueStore: a reachable candidate, or the in-memory fallback.

        Raises:
            StoreUnavailableError:
                If no candidate is reachable and the in-memory fallback is disabled.
        """
        for store in self.stores:
            result = await self.probe(store)
            if result.reachable:
                return store
            logger.warning('Backend unreachable, trying the next one.', extra=asdict(result))

        if not self.allow_memory_fallback:
            raise StoreUnavailableError('No key-value store backend is reachable and the in-memory fallback is disabled.')

        if self.stores:
            logger.warning(
                'All configured backends unreachable. Falling back to in-memory store.',
                extra={'backend': self.fallback.name},
            )
        return self.fallback

    async def close(self) -> None:
        """Close every store. A failing close is logged and does not stop the others."""
        stores = [*self.stores, self.fallback]
        results = await asyncio.gather(*(store.close() for store in stores), return_exceptions=True)
        for store, result in zip(stores, results):
            if isinstance(result, Exception):
                logger.error('Failed to close backend.', extra={'backend': store.name, 'error': str(result)})
