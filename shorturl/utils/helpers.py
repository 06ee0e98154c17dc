"""Helper utilities shared by the shortener core.

Functions:
    validate_url(url: str) -> str
        Ensure a string is a well-formed absolute URL
    get_short_url(short_id: str, base_url: str) -> str
        Get string representation of short URL for a given short ID

Example:
    >>> from shorturl.utils.helpers import validate_url, get_short_url
    >>> validate_url('https://example.com/a')
    'https://example.com/a'
    >>> get_short_url('1a2b3c4d', 'http://localhost:3000')
    'http://localhost:3000/s/1a2b3c4d'
"""

import re
from urllib.parse import urlsplit

from shorturl.exceptions import InvalidURLError


# RFC 3986: scheme = ALPHA *( ALPHA / DIGIT / "+" / "-" / "." )
_SCHEME_RE = re.compile(r'^[A-Za-z][A-Za-z0-9+.\-]*$')


def validate_url(url: str) -> str:
    """Ensure a string is a syntactically well-formed absolute URL

    A URL is accepted when it has a valid scheme and a network location with a
    host (e.g. 'https://example.com/a'). The URL is returned untouched: no
    normalization of case, trailing slashes or query order is performed.

    Args:
        url (str): candidate URL

    Returns:
        str: the same URL

    Raises:
        InvalidURLError:
            If the URL is empty, contains whitespace, is not
            encodable as UTF-8 (e.g. a lone surrogate), or lacks a scheme or host.
    """
    if not isinstance(url, str) or not url:
        raise InvalidURLError('URL is required.')
    if any(ch.isspace() for ch in url):
        raise InvalidURLError(f'Invalid URL format (contains whitespace): {url!r}')
    try:
        url.encode('utf-8')
    except UnicodeEncodeError as e:
        raise InvalidURLError(f'Invalid URL format (not valid UTF-8): {url!r}') from e

    try:
        components = urlsplit(url)
        components.port  # noqa: B018 raises ValueError on a non-numeric or out-of-range port
    except ValueError as e:
        raise InvalidURLError(f'Invalid URL format: {url!r}') from e

    if not _SCHEME_RE.match(components.scheme) or not components.netloc or not components.hostname:
        raise InvalidURLError(f'Invalid URL format: {url!r}')
    return url


def get_short_url(short_id: str, base_url: str) -> str:
    """Get string representation of shortened URL

    Args:
        short_id (str): short ID
        base_url (str): public base URL of the redirect service

    Returns:
        str: short url string representation
    """
    return f'{base_url.rstrip("/")}/s/{short_id}'

