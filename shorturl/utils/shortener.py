"""Short ID generation utility

This module provides a helper function for generating compact, random,
non-sequential short IDs from a cryptographically strong random source.

Functions:
    generate_short_id(num_bytes=4):
        Generate a lowercase hex token suitable for use as a URL slug.

Example:
    >>> from shorturl.utils import generate_short_id
    >>> generate_short_id()
    '9f86d081'
"""

import secrets

from shorturl.constants import SHORT_ID_BYTES


def generate_short_id(num_bytes: int = SHORT_ID_BYTES) -> str:
    """Generate a random short ID.

    Draws `num_bytes` random bytes from the operating system's CSPRNG and renders
    them as lowercase hex, so the result is always exactly 2 * num_bytes characters.

    Args:
        num_bytes (int, optional):
            Number of random bytes. Defaults to 4 (8 hex characters).

    Returns:
        str: A fixed-length lowercase hex token.

    Example:
        >>> len(generate_short_id())
        8
        >>> len(generate_short_id(num_bytes=6))
        12

    NOTE:
        - No uniqueness check is performed here. With 4 bytes the ID space is
          2^32, so callers must detect an occupied short ID and regenerate.
    """
    if isinstance(num_bytes, bool) or not isinstance(num_bytes, int):
        raise TypeError(f'Number of bytes must be of type integer (given type: {type(num_bytes)}).')
    if num_bytes <= 0:
        raise ValueError(f'Number of bytes must be a positive integer (given value: {num_bytes}).')

    return secrets.token_hex(num_bytes)
