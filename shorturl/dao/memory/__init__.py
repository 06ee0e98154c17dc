from shorturl.dao.memory.memory_store import InMemoryKeyValueStore


__all__ = ['InMemoryKeyValueStore']
