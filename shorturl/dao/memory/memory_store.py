"""Process-local key-value store, the last-resort fallback backend

Data written here is visible to every request served by this process, but it is
not shared with other server instances and is lost on restart.
"""

import fnmatch

from beartype import beartype

from shorturl.constants import Backend
from shorturl.dao.base import KeyValueStore


class InMemoryKeyValueStore(KeyValueStore):
    """KeyValueStore backed by a plain dict. Always reachable."""

    name = Backend.MEMORY.value

    def __init__(self, data: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(data or {})

    async def ping(self) -> bool:
        return True

    @beartype
    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    @beartype
    async def set(self, key: str, value: str, nx: bool = False) -> bool:
        if nx and key in self.data:
            return False
        self.data[key] = value
        return True

    @beartype
    async def delete(self, key: str) -> bool:
        return self.data.pop(key, None) is not None

    @beartype
    async def scan_keys(self, match: str | None = None) -> list[str]:
        if match is None:
            return list(self.data)
        return [key for key in self.data if fnmatch.fnmatchcase(key, match)]

    def __len__(self) -> int:
        return len(self.data)
