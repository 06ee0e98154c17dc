import functools
import hashlib
from collections.abc import Callable

from shorturl.constants import REVERSE_KEY_PREFIX


__all__ = ['KeySchema', 'url_hash']  # hide internal decorator prefix_key from imports


def url_hash(url: str) -> str:
    """Return the lowercase hex MD5 digest of the exact URL string (no normalization)."""
    return hashlib.md5(url.encode('utf-8'), usedforsecurity=False).hexdigest()


def prefix_key(func: Callable) -> Callable:
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs) -> str:
        key = func(self, *args, **kwargs)
        return f'{self.prefix}:{key}' if self.prefix is not None else key

    return wrapper


class KeySchema:
    """Provide the forward/reverse key layout for URL mappings.

    Forward key: the raw short ID, value is the serialized UrlMapping.
    Reverse key: 'url:' + md5 hex digest of the original URL, value is the short ID.

    Both the shortener and the reverse index backfill rely on this exact layout,
    so the default (no prefix) must stay bit-compatible with existing data.
    An optional prefix namespaces every key, e.g. "shorturl:dev".
    """

    def __init__(self, prefix: str | None = None):
        if prefix is not None and not isinstance(prefix, str):
            raise TypeError(f'Prefix must be of type string (given type: {type(prefix)}).')

        self.prefix = prefix

    @prefix_key
    def forward_key(self, short_id: str) -> str:
        return short_id

    @prefix_key
    def reverse_key(self, url: str) -> str:
        return f'{REVERSE_KEY_PREFIX}{url_hash(url)}'

    def scan_pattern(self) -> str | None:
        """Glob pattern matching every key owned by this schema (None means all keys)."""
        return f'{self.prefix}:*' if self.prefix is not None else None

    def short_id_from_key(self, key: str) -> str | None:
        """Map an enumerated key back to a short ID

        Returns None for keys that are not forward keys of this schema:
        reverse index entries and, when a prefix is set, keys outside the namespace.
        """
        if self.prefix is not None:
            namespace = f'{self.prefix}:'
            if not key.startswith(namespace):
                return None
            key = key[len(namespace) :]

        if not key or key.startswith(REVERSE_KEY_PREFIX):
            return None
        return key

    def is_reverse_key(self, key: str) -> bool:
        if self.prefix is not None:
            namespace = f'{self.prefix}:'
            if not key.startswith(namespace):
                return False
            key = key[len(namespace) :]
        return key.startswith(REVERSE_KEY_PREFIX)
