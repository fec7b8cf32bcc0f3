"""Read-through caching for resource finders.

:class:`ResourceCache` sits between callers and a *finder* -- any callable
that fetches a resource or a collection of resources, typically over HTTP.
Results are stored in the backend configured for the entity (see
:class:`~cachedresource.configuration.ConfigurationStore`) and served from
there until they expire.

Behaviour per call:

1. If caching is disabled for the entity, disabled through
   ``CACHEDRESOURCE_DISABLED``, or the caller passes ``reload=True``, the
   finder is called and nothing is read from the cache.
2. Otherwise a fresh cache entry is returned as a deep copy.
3. On a miss the finder is called. ``None`` and empty results are never
   stored. With ``collection_synchronize`` on, a collection result refreshes
   the single-member entries and a single result is merged into the cached
   canonical collection. Collection results are skipped when
   ``cache_collections`` is off.

Entries carry their own expiry so that an entry past its TTL but still
inside the ``race_condition_ttl`` window can be handed to concurrent readers
while a single caller refreshes it.
"""

from __future__ import annotations

import copy
import functools
import hashlib
import json
import time
from collections.abc import Hashable, Mapping
from dataclasses import dataclass
from typing import Any, Callable, Optional

from cachedresource.config import caching_disabled_by_env
from cachedresource.configuration import ConfigurationStore, get_store
from cachedresource.models import CacheSettings
from cachedresource.ttl import TTLPolicy

LOG_PREFIX = "[cachedresource]"


@dataclass
class CacheEntry:
    """A cached value together with its absolute expiry time."""

    value: Any
    expires_at: float


def entity_name(entity: Hashable) -> str:
    """Key prefix for *entity*.

    Classes are named by module and qualified name, so ``billing.User``
    becomes ``billing/user`` and never collides with ``auth.User``.
    """
    if isinstance(entity, type):
        name = f"{entity.__module__}.{entity.__qualname__}"
    else:
        name = str(entity)
    return name.replace(".", "/").replace("::", "/").replace(" ", "").lower()


class ResourceCache:
    """Read-through cache for resource finders.

    Args:
        store: Configuration store to read entity settings from. Defaults
            to the process-wide store at call time.
        policy: TTL policy for writes. Defaults to a fresh :class:`TTLPolicy`.
        clock: Wall-clock time source used for entry expiry.
        primary_key: Attribute or key identifying a collection member.

    Example::

        cache = ResourceCache()
        find_user = cache.wrap("User", fetch_user)
        find_user(42)               # calls fetch_user(42) and stores it
        find_user(42)               # served from the cache
        find_user(42, reload=True)  # calls fetch_user again
    """

    def __init__(
        self,
        store: Optional[ConfigurationStore] = None,
        policy: Optional[TTLPolicy] = None,
        clock: Callable[[], float] = time.time,
        primary_key: str = "id",
    ) -> None:
        self._store = store
        self._policy = policy or TTLPolicy()
        self._clock = clock
        self._primary_key = primary_key

    @property
    def store(self) -> ConfigurationStore:
        return self._store if self._store is not None else get_store()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def find(
        self,
        entity: Hashable,
        finder: Callable[..., Any],
        *arguments: Any,
        reload: bool = False,
    ) -> Any:
        """Return ``finder(*arguments)``, served from the cache when possible.

        Args:
            entity: The resource entity whose settings govern this call.
            finder: Callable performing the actual fetch.
            *arguments: Positional arguments for *finder*; they also form
                the cache key.
            reload: Skip the cache read and refetch.
        """
        settings = self.store.resolve(entity)
        key = self.cache_key(entity, *arguments)
        if not reload and self._caching_enabled(settings):
            cached = self._cache_read(settings, key)
            if cached is not None:
                return cached
        return self._find_via_reload(entity, settings, key, finder, arguments)

    def wrap(self, entity: Hashable, finder: Callable[..., Any]) -> Callable[..., Any]:
        """Return a version of *finder* that goes through :meth:`find`.

        The returned callable accepts the finder's positional arguments and
        an extra ``reload`` keyword.
        """

        @functools.wraps(finder)
        def cached_finder(*arguments: Any, reload: bool = False) -> Any:
            return self.find(entity, finder, *arguments, reload=reload)

        return cached_finder

    def cached(self, entity: Hashable) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator form of :meth:`wrap`."""
        return functools.partial(self.wrap, entity)

    def invalidate(self, entity: Hashable, *arguments: Any) -> bool:
        """Delete the entry for ``entity`` called with *arguments*."""
        settings = self.store.resolve(entity)
        return bool(settings.cache.delete(self.cache_key(entity, *arguments)))

    def cache_key(self, entity: Hashable, *arguments: Any) -> str:
        """Deterministic key for a finder call.

        Mapping arguments are encoded with sorted keys, so keyword-style
        parameter dicts hit the same entry regardless of their order.
        """
        raw = json.dumps(list(arguments), sort_keys=True, default=str)
        digest = hashlib.sha256(raw.encode()).hexdigest()
        return f"{entity_name(entity)}/{digest}"

    def is_any_collection(self, settings: CacheSettings, arguments: tuple) -> bool:
        """Return ``True`` if *arguments* describe a collection call."""
        if "all" in arguments:
            return True
        return all(arg in arguments for arg in settings.collection_arguments)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _caching_enabled(self, settings: CacheSettings) -> bool:
        return settings.enabled and not caching_disabled_by_env()

    def _find_via_reload(
        self,
        entity: Hashable,
        settings: CacheSettings,
        key: str,
        finder: Callable[..., Any],
        arguments: tuple,
    ) -> Any:
        result = finder(*arguments)
        if not self._should_cache(settings, result):
            return result

        if settings.collection_synchronize:
            self._synchronize(entity, settings, result)
        if not settings.cache_collections and self.is_any_collection(settings, arguments):
            return result

        self._cache_write(settings, key, result)
        return copy.deepcopy(result)

    def _should_cache(self, settings: CacheSettings, result: Any) -> bool:
        if not self._caching_enabled(settings) or result is None:
            return False
        if hasattr(result, "__len__"):
            return len(result) > 0
        return True

    def _synchronize(self, entity: Hashable, settings: CacheSettings, result: Any) -> None:
        if _is_collection(result):
            for member in result:
                member_id = self._member_id(member)
                if member_id is not None:
                    self._cache_write(settings, self.cache_key(entity, member_id), member)
            return

        member_id = self._member_id(result)
        if member_id is None:
            return
        collection_key = self.cache_key(entity, *settings.collection_arguments)
        collection = self._peek(settings, collection_key)
        if not _is_collection(collection):
            return

        updated = list(collection)
        for position, member in enumerate(updated):
            if self._member_id(member) == member_id:
                updated[position] = result
                break
        else:
            return
        self._cache_write(settings, collection_key, updated)

    def _peek(self, settings: CacheSettings, key: str) -> Any:
        """Return the live value under *key* without logging or touching expiry."""
        raw = settings.cache.read(key)
        if isinstance(raw, CacheEntry):
            if self._clock() >= raw.expires_at:
                return None
            return raw.value
        return raw

    def _member_id(self, member: Any) -> Any:
        if isinstance(member, Mapping):
            return member.get(self._primary_key)
        return getattr(member, self._primary_key, None)

    def _cache_read(self, settings: CacheSettings, key: str) -> Any:
        raw = settings.cache.read(key)
        if raw is None:
            return None

        if isinstance(raw, CacheEntry):
            now = self._clock()
            if now >= raw.expires_at:
                race_ttl = settings.race_condition_ttl
                if race_ttl > 0:
                    # Push the stale entry forward so other readers keep
                    # getting it while this caller refreshes.
                    stale = CacheEntry(raw.value, now + race_ttl)
                    settings.cache.write(key, stale, expires_in=race_ttl * 2)
                else:
                    settings.cache.delete(key)
                settings.logger.debug("%s EXPIRED %s", LOG_PREFIX, key)
                return None
            value = raw.value
        else:
            value = raw

        settings.logger.info("%s READ %s", LOG_PREFIX, key)
        return copy.deepcopy(value)

    def _cache_write(self, settings: CacheSettings, key: str, value: Any) -> bool:
        ttl = self._policy.effective_ttl(settings)
        entry = CacheEntry(copy.deepcopy(value), self._clock() + ttl)
        result = settings.cache.write(
            key, entry, expires_in=ttl + settings.race_condition_ttl
        )
        if result:
            settings.logger.info("%s WRITE %s", LOG_PREFIX, key)
        return bool(result)


def _is_collection(value: Any) -> bool:
    return isinstance(value, (list, tuple))
