"""Key-value store adapter for a managed REST KV service (Vercel KV / Upstash)

The service exposes Redis commands over HTTPS: every command is POSTed as a JSON
array to the base URL with a bearer token, and answered with either
{"result": <reply>} or {"error": "<message>"}.

    POST https://<db>.kv.vercel-storage.com/
    Authorization: Bearer <KV_REST_API_TOKEN>

    ["SET", "1a2b3c4d", "{...}", "NX"]   ->  {"result": "OK"} | {"result": null}
    ["SCAN", "0", "COUNT", "500"]       ->  {"result": ["1792", ["1a2b3c4d", "url:9e1..."]]}

Classes:
    RestKeyValueStore:
        KeyValueStore backed by httpx.AsyncClient.

Example:
    >>> store = RestKeyValueStore(url="https://example.kv.vercel-storage.com", token="...")
    >>> await store.ping()
    True
    >>> await store.get("1a2b3c4d")
    '{"originalUrl":"https://example.com/a","shortId":"1a2b3c4d","createdAt":"2025-10-15T12:00:00.000Z"}'
"""

import logging
from typing import Any, Optional

import httpx
from beartype import beartype

from shorturl.constants import Backend, ScanDefaults, Timeout
from shorturl.dao.base import KeyValueStore
from shorturl.dao.exceptions import DataStoreError


logger = logging.getLogger(__name__)


class RestKeyValueStore(KeyValueStore):
    """REST-based key-value store adapter

    Attributes:
        url (str):
            Base URL of the REST KV endpoint.
        client (httpx.AsyncClient):
            HTTP client carrying the bearer token and the per-call timeout.

    Methods:
        ping() -> bool:
            PING the service. Returns False instead of raising when unreachable.

        get / set / delete / scan_keys:
            See KeyValueStore. Raise DataStoreError on transport errors, timeouts,
            error replies and malformed responses.
    """

    name = Backend.REST.value

    def __init__(
        self,
        url: str,
        token: Optional[str] = None,
        timeout: float = Timeout.STORE_CALL,
        client: Optional[httpx.AsyncClient] = None,
        scan_batch_size: int = ScanDefaults.BATCH_SIZE,
        max_scan_pages: int = ScanDefaults.MAX_PAGES,
    ):
        if client is None:
            headers = {'Authorization': f'Bearer {token}'} if token else {}
            client = httpx.AsyncClient(base_url=url, headers=headers, timeout=timeout)

        self.url = url
        self.client = client
        self.scan_batch_size = scan_batch_size
        self.max_scan_pages = max_scan_pages

    async def _command(self, *args: Any) -> Any:
        """Execute one Redis command over REST and return its reply

        Raises:
            DataStoreError:
                On timeouts, transport errors, HTTP error statuses, error replies
                or responses that aren't a JSON object with a 'result' field.
        """
        command = [str(arg) for arg in args]
        try:
            response = await self.client.post('/', json=command)
        except httpx.TimeoutException as e:
            raise DataStoreError(f'REST KV at {self.url} timed out on {command[0]}.') from e
        except httpx.HTTPError as e:
            raise DataStoreError(f"Can't connect to REST KV at {self.url}.") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise DataStoreError(f'REST KV at {self.url} returned a non-JSON response (HTTP {response.status_code}).') from e

        if not isinstance(payload, dict):
            raise DataStoreError(f'REST KV at {self.url} returned a malformed response: {payload!r}')
        if payload.get('error') is not None:
            raise DataStoreError(f'REST KV at {self.url} failed on {command[0]}: {payload["error"]}')
        if response.is_error:
            raise DataStoreError(f'REST KV at {self.url} responded with HTTP {response.status_code}.')
        if 'result' not in payload:
            raise DataStoreError(f"REST KV at {self.url} returned a response without 'result'.")

        return payload['result']

    async def ping(self) -> bool:
        try:
            reply = await self._command('PING')
        except DataStoreError as e:
            logger.debug('REST KV healthcheck failed.', extra={'url': self.url, 'reason': str(e)})
            return False
        return reply == 'PONG'

    @beartype
    async def get(self, key: str) -> str | None:
        reply = await self._command('GET', key)
        if reply is None or isinstance(reply, str):
            return reply
        raise DataStoreError(f'REST KV at {self.url} returned a non-string value for {key!r}.')

    @beartype
    async def set(self, key: str, value: str, nx: bool = False) -> bool:
        args = ['SET', key, value] + (['NX'] if nx else [])
        # SET ... NX replies null when the key already exists
        return (await self._command(*args)) == 'OK'

    @beartype
    async def delete(self, key: str) -> bool:
        return bool(await self._command('DEL', key))

    @beartype
    async def scan_keys(self, match: str | None = None) -> list[str]:
        """Enumerate all keys by draining SCAN

        The cursor may come back as a number or a numeric string depending on the
        service version, so termination compares its string form against '0'.

        Raises:
            DataStoreError:
                On REST failures, malformed SCAN replies, or if the cursor never
                returns to 0 within max_scan_pages.
        """
        seen: dict[str, None] = {}
        cursor: str = '0'
        for page in range(1, self.max_scan_pages + 1):
            args = ['SCAN', cursor] + (['MATCH', match] if match else []) + ['COUNT', self.scan_batch_size]
            reply = await self._command(*args)

            if not isinstance(reply, list) or len(reply) < 2 or not isinstance(reply[1], list):
                raise DataStoreError(f'REST KV at {self.url} returned a malformed SCAN reply: {reply!r}')

            cursor = str(reply[0])
            for key in reply[1]:
                seen.setdefault(str(key), None)

            logger.debug('Scanned REST KV page.', extra={'page': page, 'batchSize': len(reply[1]), 'cursor': cursor})
            if cursor == '0':
                return list(seen)

        raise DataStoreError(f'SCAN on REST KV at {self.url} did not complete within {self.max_scan_pages} pages.')

    async def close(self) -> None:
        await self.client.aclose()
