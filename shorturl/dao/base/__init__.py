from shorturl.dao.base.key_value_store import KeyValueStore


__all__ = ['KeyValueStore']
