"""Exceptions related to Data Access Objects (DAO) operations.

Classes:
    DAOError:
        Generic base class for DAO-related exceptions.

    ShortURLNotFoundError:
        Raised when no URL mapping exists for a short ID.

    ShortURLAlreadyExistsError:
        Raised when every generated short ID collided with an existing mapping.

    DataStoreError:
        Raised when a reachable store fails mid-operation (e.g., connection drop, timeout, server error).

    MalformedMappingError:
        Raised when a stored value cannot be deserialized into a UrlMapping.

    StoreUnavailableError:
        Raised when no backend is reachable and the in-process fallback is disabled.

Example:
    >>> from shorturl.dao.exceptions import ShortURLNotFoundError
    >>> raise ShortURLNotFoundError("Short URL with ID 'ffffffff' not found.")
    Traceback (most recent call last):
        ...
    shorturl.dao.exceptions.ShortURLNotFoundError: Short URL with ID 'ffffffff' not found.
"""


class DAOError(Exception):
    """Generic base class for DAO-related exceptions."""

    pass


class ShortURLNotFoundError(DAOError):
    """Exception raised when a UrlMapping is not found in the data store."""

    pass


class ShortURLAlreadyExistsError(DAOError):
    """Exception raised when a new UrlMapping can't be stored without overwriting an existing one."""

    pass


class DataStoreError(DAOError):
    """Exception raised when there is an error in the data store.

    e.g. connection issues, timeouts, error replies, malformed payloads, etc.
    """

    pass


class MalformedMappingError(DataStoreError):
    """Exception raised when a stored value is not a valid serialized UrlMapping."""

    pass


class StoreUnavailableError(DAOError):
    """Exception raised when no key-value store backend can serve the request."""

    pass
