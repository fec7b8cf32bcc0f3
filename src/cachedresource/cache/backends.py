"""Cache backends accepted by :class:`~cachedresource.models.CacheSettings`.

A backend is any object with ``read``, ``write`` and ``delete`` methods (see
:class:`CacheBackend`). Two implementations ship with the package:

* :class:`MemoryStore` -- a process-local, lock-guarded dict with per-entry
  expiry. This is the default backend when no host cache is supplied.
* :class:`DiskStore` -- a thin adapter over :class:`diskcache.Cache` so that
  cached responses survive process restarts.

Expiry durations are seconds and may be fractional.
"""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Any, Callable, Optional, Protocol, runtime_checkable

import diskcache


@runtime_checkable
class CacheBackend(Protocol):
    """Structural interface every cache backend must satisfy."""

    def read(self, key: str) -> Any:
        """Return the stored value for *key*, or ``None`` on a miss."""
        ...

    def write(self, key: str, value: Any, expires_in: Optional[float] = None) -> bool:
        """Store *value* under *key*, expiring after *expires_in* seconds."""
        ...

    def delete(self, key: str) -> bool:
        """Remove *key*, returning ``True`` if an entry was removed."""
        ...


class MemoryStore:
    """In-memory cache backend with per-entry expiry.

    Entries are kept in a plain dict guarded by a :class:`threading.Lock`.
    Expiry uses :func:`time.monotonic` so wall-clock adjustments never
    resurrect or prematurely drop entries. Expired entries are pruned lazily
    on read.

    Args:
        clock: Monotonic time source, injectable for tests.

    Example::

        store = MemoryStore()
        store.write("users/1", {"id": 1}, expires_in=60)
        store.read("users/1")
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._data: dict[str, tuple[Any, Optional[float]]] = {}
        self._lock = threading.Lock()

    def read(self, key: str) -> Any:
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return None
            value, deadline = item
            if deadline is not None and self._clock() >= deadline:
                del self._data[key]
                return None
            return value

    def write(self, key: str, value: Any, expires_in: Optional[float] = None) -> bool:
        deadline = None if expires_in is None else self._clock() + expires_in
        with self._lock:
            self._data[key] = (value, deadline)
        return True

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class DiskStore:
    """Disk-backed cache backend built on :mod:`diskcache`.

    Args:
        directory: Directory holding the cache database. A ``responses/``
            subdirectory is created inside it.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory) / "responses"
        self._cache = diskcache.Cache(str(self._directory))

    @property
    def directory(self) -> Path:
        """Filesystem location of the underlying cache."""
        return self._directory

    def read(self, key: str) -> Any:
        return self._cache.get(key)

    def write(self, key: str, value: Any, expires_in: Optional[float] = None) -> bool:
        return self._cache.set(key, value, expire=expires_in)

    def delete(self, key: str) -> bool:
        return self._cache.delete(key)

    def clear(self) -> None:
        """Remove every entry from the cache directory."""
        self._cache.clear()

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        self._cache.close()

    def __len__(self) -> int:
        return len(self._cache)
