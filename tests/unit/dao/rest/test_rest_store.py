"""Unit tests for the RestKeyValueStore

The REST KV service is simulated with httpx.MockTransport: every request body is
a JSON command array, every response a {"result": ...} or {"error": ...} object.

Test coverage includes:

1. Wire format
   - Commands are POSTed as JSON string arrays with the bearer token.

2. Reachability
   - ping() answers True on PONG and False (never raises) on transport errors.

3. Reads and writes
   - get/set/delete translate replies; SET NX replying null means not written.

4. Error handling
   - Timeouts, transport errors, error replies, HTTP errors and malformed
     payloads raise DataStoreError.

5. Enumeration
   - scan_keys() drains SCAN whether the cursor is a number or a string,
     de-duplicates keys and honors MATCH.
   - Malformed SCAN replies and endless cursors raise DataStoreError.
"""

import json

import httpx
import pytest

from shorturl.dao.exceptions import DataStoreError
from shorturl.dao.rest import RestKeyValueStore


BASE_URL = 'https://example.kv.vercel-storage.com'


# -------------------------------
# Fixtures
# -------------------------------


class FakeRestKV:
    """Minimal REST KV double recording every command it receives."""

    def __init__(self, replies=None, handler=None):
        self.replies = list(replies or [])
        self.handler = handler
        self.commands = []
        self.headers = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        command = json.loads(request.content)
        self.commands.append(command)
        self.headers.append(request.headers)
        if self.handler is not None:
            return self.handler(request, command)
        return httpx.Response(200, json=self.replies.pop(0))


def make_store(fake, **kwargs):
    client = httpx.AsyncClient(
        base_url=BASE_URL,
        headers={'Authorization': 'Bearer test-token'},
        transport=httpx.MockTransport(fake),
    )
    return RestKeyValueStore(url=BASE_URL, client=client, **kwargs)


# -------------------------------
# 1. Wire format
# -------------------------------


@pytest.mark.asyncio
async def test_commands_are_posted_as_json_arrays():
    fake = FakeRestKV(replies=[{'result': 'OK'}])
    store = make_store(fake)

    assert await store.set('1a2b3c4d', '{"originalUrl":"https://example.com/a"}', nx=True) is True

    assert fake.commands == [['SET', '1a2b3c4d', '{"originalUrl":"https://example.com/a"}', 'NX']]
    assert fake.headers[0]['authorization'] == 'Bearer test-token'
    assert store.name == 'vercel-kv'


def test_default_client_carries_token_and_timeout():
    store = RestKeyValueStore(url=BASE_URL, token='secret-token', timeout=2.0)
    assert store.client.headers['Authorization'] == 'Bearer secret-token'
    assert store.client.timeout.read == 2.0
    assert str(store.client.base_url).rstrip('/') == BASE_URL


# -------------------------------
# 2. Reachability
# -------------------------------


@pytest.mark.asyncio
async def test_ping():
    store = make_store(FakeRestKV(replies=[{'result': 'PONG'}]))
    assert await store.ping() is True


@pytest.mark.asyncio
async def test_ping_unreachable_returns_false():
    """Ensure transport errors during ping are reported as a value."""

    def refuse(request, command):
        raise httpx.ConnectError('Connection refused', request=request)

    store = make_store(FakeRestKV(handler=refuse))
    assert await store.ping() is False


@pytest.mark.asyncio
async def test_ping_unauthorized_returns_false():
    store = make_store(FakeRestKV(handler=lambda request, command: httpx.Response(401, json={'error': 'Unauthorized'})))
    assert await store.ping() is False


# -------------------------------
# 3. Reads and writes
# -------------------------------


@pytest.mark.asyncio
@pytest.mark.parametrize('reply, expected', [({'result': '1a2b3c4d'}, '1a2b3c4d'), ({'result': None}, None)])
async def test_get(reply, expected):
    fake = FakeRestKV(replies=[reply])
    store = make_store(fake)
    assert await store.get('url:abc') == expected
    assert fake.commands == [['GET', 'url:abc']]


@pytest.mark.asyncio
async def test_get_non_string_value():
    store = make_store(FakeRestKV(replies=[{'result': {'originalUrl': 'https://example.com/a'}}]))
    with pytest.raises(DataStoreError, match='non-string value'):
        await store.get('1a2b3c4d')


@pytest.mark.asyncio
async def test_set_nx_on_existing_key():
    """Ensure SET NX replying null is reported as not written."""
    fake = FakeRestKV(replies=[{'result': None}])
    store = make_store(fake)
    assert await store.set('1a2b3c4d', 'value', nx=True) is False


@pytest.mark.asyncio
async def test_set_without_nx():
    fake = FakeRestKV(replies=[{'result': 'OK'}])
    store = make_store(fake)
    assert await store.set('url:abc', '1a2b3c4d') is True
    assert fake.commands == [['SET', 'url:abc', '1a2b3c4d']]


@pytest.mark.asyncio
@pytest.mark.parametrize('reply, expected', [({'result': 1}, True), ({'result': 0}, False)])
async def test_delete(reply, expected):
    fake = FakeRestKV(replies=[reply])
    assert await make_store(fake).delete('1a2b3c4d') is expected
    assert fake.commands == [['DEL', '1a2b3c4d']]


# -------------------------------
# 4. Error handling
# -------------------------------


@pytest.mark.asyncio
async def test_timeout_raises_data_store_error():
    def slow(request, command):
        raise httpx.ReadTimeout('timed out', request=request)

    store = make_store(FakeRestKV(handler=slow))
    with pytest.raises(DataStoreError, match='timed out on GET'):
        await store.get('url:abc')


@pytest.mark.asyncio
async def test_transport_error_raises_data_store_error():
    def refuse(request, command):
        raise httpx.ConnectError('Connection refused', request=request)

    store = make_store(FakeRestKV(handler=refuse))
    with pytest.raises(DataStoreError, match="Can't connect to REST KV"):
        await store.set('url:abc', '1a2b3c4d')


@pytest.mark.asyncio
@pytest.mark.parametrize(
    'response, message',
    [
        (httpx.Response(200, json={'error': 'ERR wrong number of arguments'}), 'failed on GET: ERR wrong number'),
        (httpx.Response(500, text='Internal Server Error'), 'non-JSON response'),
        (httpx.Response(503, json={'result': None}), 'HTTP 503'),
        (httpx.Response(200, json=['not', 'an', 'object']), 'malformed response'),
        (httpx.Response(200, json={'unexpected': True}), "without 'result'"),
    ],
)
async def test_bad_responses_raise_data_store_error(response, message):
    store = make_store(FakeRestKV(handler=lambda request, command: response))
    with pytest.raises(DataStoreError, match=message):
        await store.get('url:abc')


# -------------------------------
# 5. Enumeration
# -------------------------------


@pytest.mark.asyncio
async def test_scan_keys_with_numeric_and_string_cursors():
    """Ensure the cursor terminates on 0 whether the service returns it as a number or a string."""
    fake = FakeRestKV(
        replies=[
            {'result': ['17', ['1a2b3c4d', 'url:abc']]},
            {'result': [42, ['ffffffff', '1a2b3c4d']]},
            {'result': [0, ['deadbeef']]},
        ]
    )
    store = make_store(fake, scan_batch_size=100)

    assert await store.scan_keys() == ['1a2b3c4d', 'url:abc', 'ffffffff', 'deadbeef']
    assert fake.commands == [
        ['SCAN', '0', 'COUNT', '100'],
        ['SCAN', '17', 'COUNT', '100'],
        ['SCAN', '42', 'COUNT', '100'],
    ]


@pytest.mark.asyncio
async def test_scan_keys_string_zero_cursor_terminates():
    fake = FakeRestKV(replies=[{'result': ['0', ['1a2b3c4d']]}])
    assert await make_store(fake).scan_keys() == ['1a2b3c4d']
    assert len(fake.commands) == 1


@pytest.mark.asyncio
async def test_scan_keys_with_match():
    fake = FakeRestKV(replies=[{'result': ['0', ['shorturl:dev:1a2b3c4d']]}])
    store = make_store(fake, scan_batch_size=100)
    assert await store.scan_keys(match='shorturl:dev:*') == ['shorturl:dev:1a2b3c4d']
    assert fake.commands == [['SCAN', '0', 'MATCH', 'shorturl:dev:*', 'COUNT', '100']]


@pytest.mark.asyncio
@pytest.mark.parametrize('reply', [None, 'OK', ['0'], ['0', 'not-a-list']])
async def test_scan_keys_malformed_reply(reply):
    store = make_store(FakeRestKV(replies=[{'result': reply}]))
    with pytest.raises(DataStoreError, match='malformed SCAN reply'):
        await store.scan_keys()


@pytest.mark.asyncio
async def test_scan_keys_cursor_never_terminates():
    """Ensure an endless cursor fails instead of looping forever."""
    fake = FakeRestKV(handler=lambda request, command: httpx.Response(200, json={'result': ['5', ['1a2b3c4d']]}))
    store = make_store(fake, max_scan_pages=3)

    with pytest.raises(DataStoreError, match='did not complete within 3 pages'):
        await store.scan_keys()
    assert len(fake.commands) == 3


@pytest.mark.asyncio
async def test_close():
    store = make_store(FakeRestKV())
    await store.close()
    assert store.client.is_closed
