"""Data Access Object (DAO) for URL mappings on top of any KeyValueStore

This module owns the forward/reverse key scheme that makes shortening idempotent:

    <short id>          -> serialized UrlMapping      (forward mapping)
    url:<md5(url) hex>  -> <short id>                 (reverse index)

Responsibilities:
    - Shorten a URL, returning the existing short ID when the URL was seen before;
    - Resolve a short ID to its UrlMapping;
    - Detect forward key collisions on generated short IDs and regenerate;
    - Enumerate forward mappings and (re)write reverse index entries for maintenance jobs.

Classes:
    UrlMappingDAO:
        DAO bound to one explicitly passed-in KeyValueStore.

Example:
    >>> from shorturl.dao.url_mapping_dao import UrlMappingDAO
    >>> from shorturl.dao.memory import InMemoryKeyValueStore

    >>> dao = UrlMappingDAO(InMemoryKeyValueStore())

    >>> result = await dao.resolve_or_create("https://example.com/a")
    >>> result
    ShortenResult(short_id='1a2b3c4d', is_existing=False)

    >>> await dao.resolve_or_create("https://example.com/a")
    ShortenResult(short_id='1a2b3c4d', is_existing=True)

    >>> (await dao.lookup("1a2b3c4d")).original_url
    'https://example.com/a'

NOTE:
    The forward and reverse writes are two separate store calls. A failure in
    between leaves a forward mapping without a reverse entry: lookups still work,
    but the next shortening of the same URL creates a second short ID. The reverse
    index backfill (shorturl.backfill) repairs this.
"""

import logging
from datetime import datetime, UTC
from collections.abc import AsyncIterator, Callable

from beartype import beartype

from shorturl.constants import MAX_COLLISION_RETRIES
from shorturl.models import ShortenResult, UrlMapping
from shorturl.dao.base import KeyValueStore
from shorturl.dao.key_schema import KeySchema
from shorturl.dao.exceptions import DataStoreError, MalformedMappingError, ShortURLAlreadyExistsError, ShortURLNotFoundError
from shorturl.utils.helpers import validate_url
from shorturl.utils.shortener import generate_short_id


logger = logging.getLogger(__name__)


class UrlMappingDAO:
    """DAO for forward mappings and their reverse index

    Attributes:
        store (KeyValueStore):
            Store handle every call goes through.
        keys (KeySchema):
            Key layout helper.

    Methods:
        resolve_or_create(url: str) -> ShortenResult:
            Return the canonical short ID for a URL, creating the mapping if needed.
            Raises InvalidURLError before any store access for malformed URLs.
            Raises ShortURLAlreadyExistsError when every generated ID collided.
            Raises DataStoreError on store failures.

        lookup(short_id: str) -> UrlMapping:
            Read a forward mapping.
            Raises ShortURLNotFoundError when the short ID doesn't exist.
            Raises MalformedMappingError / DataStoreError on corrupt values or store failures.

        short_ids() -> list[str]:
            Enumerate the short IDs of all forward mappings.

        mappings() -> AsyncIterator[UrlMapping]:
            Enumerate all readable forward mappings, skipping corrupt ones.

        reverse_lookup(url: str) -> str | None:
            Read the reverse index entry for a URL.

        index(url: str, short_id: str) -> None:
            Overwrite the reverse index entry for a URL.
    """

    def __init__(
        self,
        store: KeyValueStore,
        keys: KeySchema | None = None,
        id_generator: Callable[[], str] = generate_short_id,
        max_collision_retries: int = MAX_COLLISION_RETRIES,
        atomic_reverse: bool = True,
    ):
        """Bind the DAO to a store

        Args:
            store (KeyValueStore):
                Store handle, usually obtained from BackendSelector.acquire_store().

            keys (KeySchema | None):
                Key layout. Defaults to the un-prefixed layout shared with existing data.

            id_generator (Callable[[], str]):
                Short ID source. Defaults to 8 hex characters from a CSPRNG.

            max_collision_retries (int):
                How many times a colliding short ID is regenerated before giving up.

            atomic_reverse (bool):
                If True, the reverse entry is only written when absent, so concurrent
                shortenings of one URL converge on a single short ID. If False, the
                reverse entry is overwritten and the last writer wins.
        """
        self.store = store
        self.keys = keys or KeySchema()
        self.id_generator = id_generator
        self.max_collision_retries = max_collision_retries
        self.atomic_reverse = atomic_reverse

    @beartype
    async def resolve_or_create(self, url: str) -> ShortenResult:
        """Shorten a URL idempotently

        Steps:
            1. Validate the URL (no store access on failure)
            2. Look up the reverse entry url:<md5(url)>
            3. HIT: return the stored short ID, without writing anything
            4. MISS: write a new forward mapping (SET NX, regenerating on collision),
               then write the reverse entry

        Args:
            url (str):
                Absolute URL, stored byte-for-byte (no normalization).

        Returns:
            ShortenResult: short ID and whether it already existed.

        Raises:
            InvalidURLError:
                If the URL is not a well-formed absolute URL.
            ShortURLAlreadyExistsError:
                If every generated short ID was already taken.
            DataStoreError:
                If there is an error in the data store.
        """
        validate_url(url)
        reverse_key = self.keys.reverse_key(url)

        existing_id = await self.store.get(reverse_key)
        if existing_id:
            logger.debug('URL already shortened.', extra={'shortId': existing_id, 'backend': self.store.name})
            return ShortenResult(short_id=existing_id, is_existing=True)

        mapping = await self._insert(url)

        if not self.atomic_reverse:
            await self.store.set(reverse_key, mapping.short_id)
            return ShortenResult(short_id=mapping.short_id, is_existing=False)

        # NOTE: SET NX on the reverse key closes the race where two concurrent
        #       requests for the same URL both miss the reverse lookup:
        #
        #       (request 1): GET url:<hash>               => nil
        #       (request 2): GET url:<hash>               => nil
        #       (request 1): SET <id1> <mapping> NX
        #       (request 2): SET <id2> <mapping> NX
        #       (request 1): SET url:<hash> <id1> NX      => OK
        #       (request 2): SET url:<hash> <id2> NX      => nil, loses and returns <id1>
        if await self.store.set(reverse_key, mapping.short_id, nx=True):
            return ShortenResult(short_id=mapping.short_id, is_existing=False)

        winner_id = await self.store.get(reverse_key)
        if not winner_id or winner_id == mapping.short_id:  # pragma: no cover
            # Reverse entry vanished between SET NX and GET: claim it
            await self.store.set(reverse_key, mapping.short_id)
            return ShortenResult(short_id=mapping.short_id, is_existing=False)

        logger.warning(
            'Lost race on reverse index entry. Returning the winning short ID.',
            extra={'shortId': winner_id, 'discardedShortId': mapping.short_id, 'backend': self.store.name},
        )
        await self._discard(mapping.short_id)
        return ShortenResult(short_id=winner_id, is_existing=True)

    @beartype
    async def lookup(self, short_id: str) -> UrlMapping:
        """Retrieve a forward mapping by short ID

        Args:
            short_id (str):
                The short ID to resolve.

        Returns:
            UrlMapping: the stored mapping.

        Raises:
            ShortURLNotFoundError:
                If no mapping exists under the short ID.
            MalformedMappingError:
                If the stored value can't be deserialized.
            DataStoreError:
                If there is an error in the data store.
        """
        key = self.keys.forward_key(short_id)
        if not short_id or self.keys.is_reverse_key(key):
            raise ShortURLNotFoundError(f"Short URL with ID '{short_id}' not found.")

        blob = await self.store.get(key)
        if blob is None:
            raise ShortURLNotFoundError(f"Short URL with ID '{short_id}' not found.")

        try:
            return UrlMapping.from_json(blob, short_id=short_id)
        except MalformedMappingError:
            logger.error('Stored URL mapping is corrupt.', extra={'shortId': short_id, 'backend': self.store.name})
            raise

    async def short_ids(self) -> list[str]:
        """Enumerate the short IDs of all forward mappings (reverse index entries excluded)."""
        keys = await self.store.scan_keys(match=self.keys.scan_pattern())
        short_ids = []
        for key in keys:
            short_id = self.keys.short_id_from_key(key)
            if short_id is not None:
                short_ids.append(short_id)
        return short_ids

    async def mappings(self) -> AsyncIterator[UrlMapping]:
        """Yield every readable forward mapping

        Corrupt values and store errors on individual keys are logged and skipped,
        so one bad entry never aborts an enumeration. A failure of the key scan
        itself propagates as DataStoreError.
        """
        for short_id in await self.short_ids():
            try:
                yield await self.lookup(short_id)
            except ShortURLNotFoundError:
                logger.debug('Mapping disappeared during enumeration.', extra={'shortId': short_id})
            except DataStoreError as e:
                logger.error('Skipping unreadable mapping.', extra={'shortId': short_id, 'reason': str(e)})

    @beartype
    async def reverse_lookup(self, url: str) -> str | None:
        return (await self.store.get(self.keys.reverse_key(url))) or None

    @beartype
    async def index(self, url: str, short_id: str) -> None:
        await self.store.set(self.keys.reverse_key(url), short_id)

    async def _insert(self, url: str) -> UrlMapping:
        for attempt in range(self.max_collision_retries + 1):
            short_id = self.id_generator()
            mapping = UrlMapping(original_url=url, short_id=short_id, created_at=datetime.now(UTC))
            if await self.store.set(self.keys.forward_key(short_id), mapping.to_json(), nx=True):
                logger.debug('Created URL mapping.', extra={'shortId': short_id, 'backend': self.store.name})
                return mapping

            logger.warning('Generated short ID already in use. Regenerating.', extra={'shortId': short_id, 'attempt': attempt + 1})

        raise ShortURLAlreadyExistsError(f'No free short ID found after {self.max_collision_retries + 1} attempts.')

    async def _discard(self, short_id: str) -> None:
        try:
            await self.store.delete(self.keys.forward_key(short_id))
        except DataStoreError:
            # The orphan still resolves to the right URL, so leaving it behind is harmless
            logger.exception('Failed to discard orphaned mapping.', extra={'shortId': short_id})
