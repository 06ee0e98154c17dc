from shorturl.utils.helpers import validate_url, get_short_url
from shorturl.utils.shortener import generate_short_id
from shorturl.utils.logging import initialize_logging


__all__ = [
    'generate_short_id',
    'validate_url',
    'get_short_url',
    'initialize_logging',
]
