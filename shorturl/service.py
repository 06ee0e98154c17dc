"""Shortener service consumed by the HTTP layer

Every operation acquires a store from the BackendSelector (so a backend outage
degrades only the requests made while it lasts) and wraps it in a UrlMappingDAO.

Classes:
    StoreStats:
        Snapshot of the stored mappings for the admin dashboard.
    ShortenerService:
        shorten / resolve / run_backfill / stats.

Example:
    >>> from shorturl.config import StorageConfig, build_selector
    >>> service = ShortenerService(build_selector(StorageConfig.from_env()))
    >>> result = await service.shorten('https://example.com/a')
    >>> service.short_url(result.short_id, 'https://sho.rt')
    'https://sho.rt/s/1a2b3c4d'
    >>> (await service.resolve(result.short_id)).original_url
    'https://example.com/a'
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, UTC
from typing import Any

from shorturl.models import ShortenResult, UrlMapping, format_timestamp
from shorturl.selector import BackendSelector
from shorturl.backfill import BackfillReport, backfill_reverse_index
from shorturl.dao.key_schema import KeySchema
from shorturl.dao.url_mapping_dao import UrlMappingDAO
from shorturl.utils.helpers import get_short_url, validate_url


logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=UTC)


@dataclass
class StoreStats:
    total_urls: int
    urls_last_24_hours: int
    urls_last_7_days: int
    recent_urls: list[UrlMapping] = field(default_factory=list)
    storage_type: str = ''
    timestamp: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            'totalUrls': self.total_urls,
            'urlsLast24Hours': self.urls_last_24_hours,
            'urlsLast7Days': self.urls_last_7_days,
            'recentUrls': [mapping.to_dict() for mapping in self.recent_urls],
            'storageType': self.storage_type,
            'timestamp': format_timestamp(self.timestamp) if self.timestamp else None,
        }


class ShortenerService:
    """Entry point of the shortener core

    Attributes:
        selector (BackendSelector):
            Picks the store for each operation.
        keys (KeySchema):
            Key layout shared by every operation.
        atomic_reverse (bool):
            Passed to UrlMappingDAO; see UrlMappingDAO.resolve_or_create().
    """

    def __init__(self, selector: BackendSelector, keys: KeySchema | None = None, atomic_reverse: bool = True):
        self.selector = selector
        self.keys = keys or KeySchema()
        self.atomic_reverse = atomic_reverse

    async def _dao(self) -> UrlMappingDAO:
        store = await self.selector.acquire_store()
        return UrlMappingDAO(store, keys=self.keys, atomic_reverse=self.atomic_reverse)

    async def shorten(self, url: str) -> ShortenResult:
        """Shorten a URL, returning the existing short ID for URLs seen before

        Raises:
            InvalidURLError: before any backend is probed
            DataStoreError, ShortURLAlreadyExistsError, StoreUnavailableError
        """
        validate_url(url)
        dao = await self._dao()
        result = await dao.resolve_or_create(url)
        logger.info(
            'Shortened URL.',
            extra={'shortId': result.short_id, 'isExisting': result.is_existing, 'backend': dao.store.name},
        )
        return result

    async def resolve(self, short_id: str) -> UrlMapping:
        """Resolve a short ID

        Raises:
            ShortURLNotFoundError, DataStoreError, StoreUnavailableError
        """
        dao = await self._dao()
        return await dao.lookup(short_id)

    async def backfill_report(self, dry_run: bool = False) -> BackfillReport:
        store = await self.selector.acquire_store()
        return await backfill_reverse_index(store, keys=self.keys, dry_run=dry_run)

    async def run_backfill(self) -> int:
        """Rebuild the reverse index and return the number of entries written."""
        return (await self.backfill_report()).count

    async def stats(self, now: datetime | None = None, recent_limit: int = 10) -> StoreStats:
        """Count stored mappings and list the most recent ones

        Mappings without a creation timestamp count towards the total only.
        """
        now = now or datetime.now(UTC)
        dao = await self._dao()

        mappings = [mapping async for mapping in dao.mappings()]
        day_ago = now - timedelta(hours=24)
        week_ago = now - timedelta(days=7)
        recent = sorted(mappings, key=lambda m: m.created_at or _OLDEST, reverse=True)

        return StoreStats(
            total_urls=len(mappings),
            urls_last_24_hours=sum(1 for m in mappings if m.created_at is not None and m.created_at >= day_ago),
            urls_last_7_days=sum(1 for m in mappings if m.created_at is not None and m.created_at >= week_ago),
            recent_urls=recent[:recent_limit],
            storage_type=dao.store.name,
            timestamp=now,
        )

    @staticmethod
    def short_url(short_id: str, base_url: str) -> str:
        return get_short_url(short_id, base_url)

    async def close(self) -> None:
        await self.selector.close()
