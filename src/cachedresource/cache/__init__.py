"""Cache backends for cachedresource.

:class:`MemoryStore` is the default backend for every record that is not
given a host cache. :class:`DiskStore` persists entries with :mod:`diskcache`.
Any object implementing :class:`CacheBackend` can be used instead.
"""

from cachedresource.cache.backends import CacheBackend, DiskStore, MemoryStore

__all__ = ["CacheBackend", "DiskStore", "MemoryStore"]
