from enum import StrEnum


# Reverse index keys: url:<md5 hex digest of the original URL>
REVERSE_KEY_PREFIX = 'url:'

# Short IDs are 4 random bytes rendered as 8 lowercase hex characters
SHORT_ID_BYTES = 4

# Regenerations allowed when a freshly generated short ID is already taken
MAX_COLLISION_RETRIES = 1


class Timeout:
    """Timeouts in seconds."""

    STORE_CALL = 2.0  # Single get/set/scan round trip
    PROBE = 1.0  # Backend liveness probe


class ScanDefaults:
    """Cursor-based key enumeration defaults."""

    BATCH_SIZE = 500  # COUNT hint passed to SCAN
    MAX_PAGES = 100_000  # Hard stop for backends whose cursor never returns to zero


class Backend(StrEnum):
    """Names of the supported key-value store backends, in priority order."""

    REST = 'vercel-kv'
    REDIS = 'redis'
    MEMORY = 'in-memory'


class ENV:
    """Environment variable names."""

    class App(StrEnum):
        APP_ENV = 'APP_ENV'
        APP_NAME = 'APP_NAME'
        LOG_LEVEL = 'LOG_LEVEL'
        KEY_PREFIX_ENABLED = 'KEY_PREFIX_ENABLED'

    class RestKV(StrEnum):
        URL = 'KV_REST_API_URL'
        TOKEN = 'KV_REST_API_TOKEN'  # noqa: S105
        # Secrets Manager id holding {"token": "..."}
        TOKEN_SECRET = 'KV_REST_API_TOKEN_SECRET'  # noqa: S105

    class Redis(StrEnum):
        URL = 'REDIS_URL'
        HOST = 'REDIS_HOST'
        PORT = 'REDIS_PORT'
        DB = 'REDIS_DB'
        USERNAME = 'REDIS_USERNAME'
        PASSWORD = 'REDIS_PASSWORD'  # noqa: S105

    class Store(StrEnum):
        TIMEOUT = 'STORE_TIMEOUT'
        PROBE_TIMEOUT = 'STORE_PROBE_TIMEOUT'
        ALLOW_MEMORY_FALLBACK = 'ALLOW_MEMORY_FALLBACK'
