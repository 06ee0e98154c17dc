from shorturl.dao.rest.rest_store import RestKeyValueStore


__all__ = ['RestKeyValueStore']
