"""Storage configuration loaded from environment variables

The shortener talks to at most two network backends, tried in this order:

    1. Managed REST KV service     KV_REST_API_URL + KV_REST_API_TOKEN
    2. Redis cache server          REDIS_URL, or REDIS_HOST/REDIS_PORT/REDIS_DB/...

and degrades to a process-local in-memory store when neither answers.

NOTE:
    Under docker compose KV_REST_API_URL is commonly pointed at the Redis
    container (e.g. redis://redis:6379). A redis:// or rediss:// value is
    therefore treated as the Redis URL rather than a REST endpoint.

The REST token can also be pulled from AWS Secrets Manager: when
KV_REST_API_TOKEN is unset and KV_REST_API_TOKEN_SECRET names a secret, its
SecretString is expected to be {"token": "..."}.

Functions:
    app_env() -> str
        Return the current application environment (`APP_ENV`), defaulting to `'local'`.

    app_name() -> str | None
        Return the application name (`APP_NAME`), or None if not set.

    app_prefix() -> str | None
        Return the key namespace prefix, or None unless KEY_PREFIX_ENABLED=true.

    build_selector(config: StorageConfig) -> BackendSelector
        Build the per-process backend selector from a StorageConfig.

Classes:
    StorageConfig:
        Validated storage settings. Use StorageConfig.from_env().

Example:
    >>> from shorturl.config import StorageConfig, build_selector
    >>> config = StorageConfig.from_env()
    >>> selector = build_selector(config)
    >>> store = await selector.acquire_store()
"""

import os
import json
import logging
from dataclasses import dataclass

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from shorturl.constants import ENV, Timeout
from shorturl.exceptions import BadConfigurationError
from shorturl.selector import BackendSelector
from shorturl.dao.base import KeyValueStore
from shorturl.dao.rest import RestKeyValueStore
from shorturl.dao.redis import RedisKeyValueStore


logger = logging.getLogger(__name__)

_REDIS_SCHEMES = ('redis://', 'rediss://')
_TRUE = frozenset({'1', 'true', 'yes', 'on'})
_FALSE = frozenset({'0', 'false', 'no', 'off'})


def app_env() -> str:
    """Return the current application environment by reading 'APP_ENV'

    Example:
        >>> os.environ['APP_ENV'] = 'dev'
        >>> app_env()
        'dev'
    """
    return os.environ.get(ENV.App.APP_ENV, 'local').lower()


def app_name() -> str | None:
    return os.environ.get(ENV.App.APP_NAME)


def app_prefix() -> str | None:
    """Return the key namespace prefix <app name>:<app env>

    Existing data is stored without a prefix, so namespacing is opt-in.

    Returns:
        str | None: the prefix if KEY_PREFIX_ENABLED is true and APP_NAME is set, None otherwise.

    Example:
        >>> os.environ['KEY_PREFIX_ENABLED'] = 'true'
        >>> os.environ['APP_NAME'] = 'shorturl'
        >>> os.environ['APP_ENV'] = 'local'
        >>> app_prefix()
        'shorturl:local'
    """
    if not _env_bool(ENV.App.KEY_PREFIX_ENABLED, False) or app_name() is None:
        return None
    return f'{app_name()}:{app_env()}'


def _env_str(name: str) -> str | None:
    value = os.environ.get(name, '').strip()
    return value or None


def _env_bool(name: str, default: bool) -> bool:
    value = _env_str(name)
    if value is None:
        return default
    if value.lower() in _TRUE:
        return True
    if value.lower() in _FALSE:
        return False
    raise BadConfigurationError(f"Environment variable '{name}' must be a boolean (given: {value!r}).")


def _env_int(name: str, default: int | None) -> int | None:
    value = _env_str(name)
    if value is None:
        return default
    try:
        number = int(value)
    except ValueError as e:
        raise BadConfigurationError(f"Environment variable '{name}' must be an integer (given: {value!r}).") from e
    if number < 0:
        raise BadConfigurationError(f"Environment variable '{name}' must not be negative (given: {value!r}).")
    return number


def _env_float(name: str, default: float) -> float:
    value = _env_str(name)
    if value is None:
        return default
    try:
        number = float(value)
    except ValueError as e:
        raise BadConfigurationError(f"Environment variable '{name}' must be a number (given: {value!r}).") from e
    if number <= 0:
        raise BadConfigurationError(f"Environment variable '{name}' must be positive (given: {value!r}).")
    return number


def _secret_token(secret_id: str) -> str:
    """Fetch the REST KV token from AWS Secrets Manager

    Raises:
        BadConfigurationError:
            If the secret can't be read or doesn't hold {"token": "<non-empty string>"}.
    """
    logger.debug('Loading REST KV token from Secrets Manager.', extra={'secretId': secret_id})
    try:
        secrets = boto3.client('secretsmanager')
        payload = json.loads(secrets.get_secret_value(SecretId=secret_id)['SecretString'])
        token = payload['token']
    except (BotoCoreError, ClientError) as e:
        raise BadConfigurationError(f"Can't read secret '{secret_id}': {e}") from e
    except (ValueError, KeyError, TypeError) as e:
        raise BadConfigurationError(f'Secret \'{secret_id}\' must be a JSON object with a "token" field.') from e

    if not isinstance(token, str) or not token:
        raise BadConfigurationError(f'Secret \'{secret_id}\' must be a JSON object with a "token" field.')
    return token


@dataclass(frozen=True)
class StorageConfig:
    """Storage settings

    Attributes:
        rest_url (str | None): REST KV endpoint
        rest_token (str | None): REST KV bearer token
        redis_url (str | None): Redis URL, takes precedence over the individual Redis parameters
        redis_host (str | None): Redis host
        redis_port (int): Redis port
        redis_db (int): Redis logical database
        redis_username (str | None): Redis ACL username
        redis_password (str | None): Redis password
        timeout (float): per store call timeout in seconds
        probe_timeout (float): liveness probe timeout in seconds
        allow_memory_fallback (bool): degrade to the in-memory store when no backend answers
        key_prefix (str | None): key namespace prefix
    """

    rest_url: str | None = None
    rest_token: str | None = None
    redis_url: str | None = None
    redis_host: str | None = None
    redis_port: int = 6379
    redis_db: int = 0
    redis_username: str | None = None
    redis_password: str | None = None
    timeout: float = Timeout.STORE_CALL
    probe_timeout: float = Timeout.PROBE
    allow_memory_fallback: bool = True
    key_prefix: str | None = None

    @classmethod
    def from_env(cls) -> 'StorageConfig':
        """Load storage settings from environment variables

        Raises:
            BadConfigurationError:
                If a numeric or boolean variable has an invalid value,
                or the token secret can't be resolved.
        """
        rest_url = _env_str(ENV.RestKV.URL)
        redis_url = _env_str(ENV.Redis.URL)

        if rest_url is not None and rest_url.startswith(_REDIS_SCHEMES):
            logger.debug('KV_REST_API_URL points at Redis. Using it as the Redis URL.')
            redis_url = redis_url or rest_url
            rest_url = None

        rest_token = _env_str(ENV.RestKV.TOKEN)
        token_secret = _env_str(ENV.RestKV.TOKEN_SECRET)
        if rest_url is not None and rest_token is None and token_secret is not None:
            rest_token = _secret_token(token_secret)

        return cls(
            rest_url=rest_url,
            rest_token=rest_token,
            redis_url=redis_url,
            redis_host=_env_str(ENV.Redis.HOST),
            redis_port=_env_int(ENV.Redis.PORT, 6379),
            redis_db=_env_int(ENV.Redis.DB, 0),
            redis_username=_env_str(ENV.Redis.USERNAME),
            redis_password=_env_str(ENV.Redis.PASSWORD),
            timeout=_env_float(ENV.Store.TIMEOUT, Timeout.STORE_CALL),
            probe_timeout=_env_float(ENV.Store.PROBE_TIMEOUT, Timeout.PROBE),
            allow_memory_fallback=_env_bool(ENV.Store.ALLOW_MEMORY_FALLBACK, True),
            key_prefix=app_prefix(),
        )


def build_stores(config: StorageConfig) -> list[KeyValueStore]:
    """Instantiate the configured network stores in priority order (REST KV, then Redis)."""
    stores: list[KeyValueStore] = []

    if config.rest_url is not None:
        if config.rest_token is None:
            logger.warning('KV_REST_API_URL is set without a token. Skipping the REST KV backend.')
        else:
            stores.append(RestKeyValueStore(url=config.rest_url, token=config.rest_token, timeout=config.timeout))

    if config.redis_url is not None or config.redis_host is not None:
        stores.append(
            RedisKeyValueStore(
                redis_url=config.redis_url,
                redis_host=config.redis_host or 'localhost',
                redis_port=config.redis_port,
                redis_db=config.redis_db,
                redis_username=config.redis_username,
                redis_password=config.redis_password,
                timeout=config.timeout,
            )
        )

    if not stores:
        logger.info('No network key-value store configured.', extra={'allowMemoryFallback': config.allow_memory_fallback})
    return stores


def build_selector(config: StorageConfig) -> BackendSelector:
    return BackendSelector(
        build_stores(config),
        allow_memory_fallback=config.allow_memory_fallback,
        probe_timeout=config.probe_timeout,
    )
