"""Unit tests for the KeySchema key layout.

Test coverage includes:

1. Default layout
   - Forward keys are raw short IDs.
   - Reverse keys are 'url:' + lowercase md5 hex of the exact URL.

2. Prefixed layout
   - Every key is namespaced; enumeration strips the namespace.

3. Key classification
   - Reverse keys and keys outside the namespace are never mapped to short IDs.
"""

import hashlib

import pytest

from shorturl.dao.key_schema import KeySchema, url_hash


# -------------------------------
# 1. Default layout
# -------------------------------


def test_forward_key_is_raw_short_id():
    assert KeySchema().forward_key('1a2b3c4d') == '1a2b3c4d'


def test_reverse_key_is_md5_of_url():
    """Ensure the reverse key matches the layout existing data was written with."""
    url = 'https://example.com/a'
    expected = 'url:' + hashlib.md5(url.encode('utf-8')).hexdigest()
    assert KeySchema().reverse_key(url) == expected
    assert KeySchema().reverse_key('') == 'url:d41d8cd98f00b204e9800998ecf8427e'


def test_url_hash_does_not_normalize():
    """Ensure URLs differing in case, trailing slash or query order hash differently."""
    variants = [
        'https://example.com/a',
        'https://example.com/a/',
        'https://EXAMPLE.com/a',
        'https://example.com/a?x=1&y=2',
        'https://example.com/a?y=2&x=1',
    ]
    assert len({url_hash(url) for url in variants}) == len(variants)


def test_scan_pattern_without_prefix():
    assert KeySchema().scan_pattern() is None


# -------------------------------
# 2. Prefixed layout
# -------------------------------


def test_prefixed_keys():
    keys = KeySchema(prefix='shorturl:dev')
    assert keys.forward_key('1a2b3c4d') == 'shorturl:dev:1a2b3c4d'
    assert keys.reverse_key('https://example.com/a') == f'shorturl:dev:url:{url_hash("https://example.com/a")}'
    assert keys.scan_pattern() == 'shorturl:dev:*'


@pytest.mark.parametrize('prefix', [1, 12.5, b'bytes'])
def test_invalid_prefix_type(prefix):
    with pytest.raises(TypeError):
        KeySchema(prefix=prefix)


# -------------------------------
# 3. Key classification
# -------------------------------


@pytest.mark.parametrize(
    'key, expected',
    [
        ('1a2b3c4d', '1a2b3c4d'),
        ('url:0123456789abcdef0123456789abcdef', None),
        ('', None),
    ],
)
def test_short_id_from_key_without_prefix(key, expected):
    assert KeySchema().short_id_from_key(key) == expected


@pytest.mark.parametrize(
    'key, expected',
    [
        ('shorturl:dev:1a2b3c4d', '1a2b3c4d'),
        ('shorturl:dev:url:0123456789abcdef0123456789abcdef', None),
        ('shorturl:prod:1a2b3c4d', None),
        ('1a2b3c4d', None),
    ],
)
def test_short_id_from_key_with_prefix(key, expected):
    assert KeySchema(prefix='shorturl:dev').short_id_from_key(key) == expected


@pytest.mark.parametrize(
    'prefix, key, expected',
    [
        (None, 'url:abc', True),
        (None, '1a2b3c4d', False),
        ('shorturl:dev', 'shorturl:dev:url:abc', True),
        ('shorturl:dev', 'shorturl:dev:1a2b3c4d', False),
        ('shorturl:dev', 'url:abc', False),
    ],
)
def test_is_reverse_key(prefix, key, expected):
    assert KeySchema(prefix=prefix).is_reverse_key(key) is expected
