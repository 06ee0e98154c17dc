"""Data models for URL mappings

Classes:
    UrlMapping:
        Forward mapping stored under a short ID (original URL + metadata).
    ShortenResult:
        Outcome of shortening a URL (short ID and whether it already existed).

Serialized UrlMapping layout (shared with existing records, camelCase keys):

    {
        "originalUrl": "https://example.com/a",
        "shortId": "1a2b3c4d",
        "createdAt": "2025-10-15T12:00:00.000Z"
    }
"""

import json
from dataclasses import dataclass
from datetime import datetime, UTC
from typing import Any

from shorturl.dao.exceptions import MalformedMappingError


def format_timestamp(value: datetime) -> str:
    """Render a datetime as ISO-8601 UTC with millisecond precision and a 'Z' suffix

    Example:
        >>> format_timestamp(datetime(2025, 10, 15, 12, 0, tzinfo=UTC))
        '2025-10-15T12:00:00.000Z'
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    # fmt: off
    return value.astimezone(UTC) \
                .isoformat(timespec='milliseconds') \
                .replace('+00:00', 'Z')
    # fmt: on


def parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)


# fmt: off
@dataclass(frozen=True)
class UrlMapping:
    original_url: str                   # Original long URL, byte-for-byte as submitted
    short_id: str                       # Fixed-length token the URL is reachable under
    created_at: datetime | None = None  # Creation time (UTC); None for legacy records without one
# fmt: on

    def to_dict(self) -> dict[str, Any]:
        return {
            'originalUrl': self.original_url,
            'shortId': self.short_id,
            'createdAt': format_timestamp(self.created_at) if self.created_at is not None else None,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(',', ':'), ensure_ascii=False)

    @classmethod
    def from_json(cls, blob: str | bytes, short_id: str | None = None) -> 'UrlMapping':
        """Deserialize a stored forward mapping

        Args:
            blob (str | bytes):
                Raw value read from the forward key.
            short_id (str | None):
                Key the value was read from. Takes precedence over the payload's 'shortId'.

        Returns:
            UrlMapping: the deserialized mapping.

        Raises:
            MalformedMappingError:
                If the payload isn't a JSON object with a non-empty string 'originalUrl',
                or if 'createdAt' isn't a valid ISO-8601 timestamp.
        """
        try:
            payload = json.loads(blob)
        except (TypeError, ValueError) as e:
            raise MalformedMappingError(f'Stored value for {short_id!r} is not valid JSON.') from e

        if not isinstance(payload, dict):
            raise MalformedMappingError(f'Stored value for {short_id!r} is not a JSON object.')

        original_url = payload.get('originalUrl')
        if not isinstance(original_url, str) or not original_url:
            raise MalformedMappingError(f"Stored value for {short_id!r} has no 'originalUrl'.")

        stored_id = short_id or payload.get('shortId')
        if not isinstance(stored_id, str) or not stored_id:
            raise MalformedMappingError("Stored value has no 'shortId' and no key was given.")

        created_at = payload.get('createdAt')
        if created_at is not None:
            try:
                created_at = parse_timestamp(created_at)
            except (TypeError, ValueError) as e:
                raise MalformedMappingError(f"Stored value for {short_id!r} has an invalid 'createdAt': {created_at!r}.") from e

        return cls(original_url=original_url, short_id=stored_id, created_at=created_at)


@dataclass(frozen=True)
class ShortenResult:
    short_id: str
    is_existing: bool
