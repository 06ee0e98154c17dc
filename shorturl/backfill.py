"""Reverse index backfill

Rebuilds the url:<md5(url)> -> <short id> entries from the forward mappings, so
that URLs shortened before the reverse index existed (or whose reverse write
failed) are deduplicated again.

Steps:
    1. Enumerate every forward key (cursor drained, reverse keys excluded)
    2. Read and deserialize each mapping; corrupt or unreadable entries are skipped
    3. Group mappings by URL and pick one canonical short ID per URL
    4. Write the reverse entry only when it is missing or points elsewhere

Canonical short ID per URL:
    - the short ID the reverse entry already points at, if it is one of the URL's mappings
    - otherwise the earliest created mapping (ties broken by short ID)

Running the backfill twice in a row therefore writes nothing the second time.

Example:
    >>> from shorturl.backfill import backfill_reverse_index
    >>> report = await backfill_reverse_index(store)
    >>> report
    BackfillReport(scanned=3, created=3, repaired=0, unchanged=0, skipped=0)
    >>> report.count
    3
"""

import logging
from dataclasses import dataclass, asdict
from datetime import datetime, UTC

from shorturl.models import UrlMapping
from shorturl.dao.base import KeyValueStore
from shorturl.dao.key_schema import KeySchema
from shorturl.dao.url_mapping_dao import UrlMappingDAO
from shorturl.dao.exceptions import DataStoreError, ShortURLNotFoundError


logger = logging.getLogger(__name__)

_NEVER = datetime.max.replace(tzinfo=UTC)


@dataclass
class BackfillReport:
    """Outcome of one backfill run

    Attributes:
        scanned (int): forward keys enumerated
        created (int): reverse entries written where none existed
        repaired (int): reverse entries overwritten because they pointed elsewhere
        unchanged (int): URLs whose reverse entry was already correct
        skipped (int): forward keys that could not be read or deserialized
    """

    scanned: int = 0
    created: int = 0
    repaired: int = 0
    unchanged: int = 0
    skipped: int = 0

    @property
    def count(self) -> int:
        """Number of reverse entries written."""
        return self.created + self.repaired

    def to_dict(self) -> dict[str, int]:
        return {**asdict(self), 'count': self.count}


def _canonical(mappings: list[UrlMapping]) -> UrlMapping:
    return min(mappings, key=lambda m: (m.created_at or _NEVER, m.short_id))


async def backfill_reverse_index(
    store: KeyValueStore,
    keys: KeySchema | None = None,
    dry_run: bool = False,
) -> BackfillReport:
    """Create or repair the reverse index entry of every forward mapping

    Args:
        store (KeyValueStore):
            Store holding the mappings.
        keys (KeySchema | None):
            Key layout. Defaults to the un-prefixed layout.
        dry_run (bool):
            If True, compute the report without writing anything.

    Returns:
        BackfillReport: per-category counts.

    Raises:
        DataStoreError:
            If key enumeration or a reverse entry read/write fails.
    """
    dao = UrlMappingDAO(store, keys=keys)
    report = BackfillReport()

    short_ids = await dao.short_ids()
    report.scanned = len(short_ids)
    logger.info('Scanned forward mappings.', extra={'scanned': report.scanned, 'backend': store.name})

    by_url: dict[str, list[UrlMapping]] = {}
    for short_id in short_ids:
        try:
            mapping = await dao.lookup(short_id)
        except ShortURLNotFoundError:
            logger.debug('Mapping disappeared during backfill.', extra={'shortId': short_id})
            report.skipped += 1
            continue
        except DataStoreError as e:
            logger.error('Skipping unreadable mapping.', extra={'shortId': short_id, 'reason': str(e)})
            report.skipped += 1
            continue
        by_url.setdefault(mapping.original_url, []).append(mapping)

    for url, candidates in by_url.items():
        current_id = await dao.reverse_lookup(url)
        if current_id is not None and any(m.short_id == current_id for m in candidates):
            report.unchanged += 1
            continue

        canonical = _canonical(candidates)
        if not dry_run:
            await dao.index(url, canonical.short_id)

        if current_id is None:
            report.created += 1
        else:
            report.repaired += 1
            logger.warning(
                'Repaired reverse index entry.',
                extra={'shortId': canonical.short_id, 'previousShortId': current_id},
            )

    logger.info(
        'Reverse index backfill completed.',
        extra={**report.to_dict(), 'dryRun': dry_run, 'backend': store.name},
    )
    return report
