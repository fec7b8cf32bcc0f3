"""Per-entity cache configuration with explicit inheritance.

:class:`ConfigurationStore` keeps one :class:`~cachedresource.models.CacheSettings`
record per resource entity. An entity is any hashable value, typically a
resource class or its name. Inheritance is declared explicitly with
:meth:`ConfigurationStore.register`; the store never inspects ``__mro__``.

Resolution rules:

* an entity with its own record gets that record;
* otherwise it binds, by reference, to the record of its nearest ancestor
  that has one, so the two share a single object;
* when no ancestor has a record, a default record is created, bound to the
  root-most entity of the chain and shared by everything below it.

Binding happens once per entity. Configuring an ancestor later does not
reach descendants that already resolved, while descendants that never
resolved will find the new record on their first :meth:`~ConfigurationStore.resolve`.

A process-wide store is available through :func:`get_store`, following the
install/reset pattern used for other global state in this package.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Hashable, Iterator, Mapping
from typing import Any, Optional

from pydantic import ValidationError

from cachedresource.exceptions import ConfigurationError
from cachedresource.models import CacheSettings, HostContext

logger = logging.getLogger(__name__)


class ConfigurationStore:
    """Registry mapping resource entities to their cache settings.

    Args:
        host: Optional ambient host. When given, every default record built
            by this store takes its ``cache`` and ``logger`` from the host
            (each only when the host provides one).

    Example::

        store = ConfigurationStore()
        store.register("Bar")
        store.register("Foo", parent="Bar")
        store.configure("Bar", ttl=60)
        assert store.resolve("Foo") is store.resolve("Bar")
    """

    def __init__(self, host: Optional[HostContext] = None) -> None:
        self._host = host
        self._parents: dict[Hashable, Optional[Hashable]] = {}
        self._records: dict[Hashable, CacheSettings] = {}
        self._lock = threading.Lock()

    @property
    def host(self) -> Optional[HostContext]:
        return self._host

    # ------------------------------------------------------------------ #
    # Entity declarations
    # ------------------------------------------------------------------ #

    def register(self, entity: Hashable, parent: Optional[Hashable] = None) -> None:
        """Declare *entity*, optionally as a descendant of *parent*.

        Re-registering an entity replaces its parent reference. Entities
        that are never registered are treated as roots.
        """
        if parent is not None and parent not in self._parents:
            self._parents[parent] = None
        self._parents[entity] = parent
        logger.debug("Registered entity %r (parent=%r)", entity, parent)

    def parent_of(self, entity: Hashable) -> Optional[Hashable]:
        return self._parents.get(entity)

    def ancestry(self, entity: Hashable) -> Iterator[Hashable]:
        """Yield the ancestors of *entity*, nearest first."""
        seen = {entity}
        parent = self._parents.get(entity)
        while parent is not None and parent not in seen:
            yield parent
            seen.add(parent)
            parent = self._parents.get(parent)

    def is_bound(self, entity: Hashable) -> bool:
        """Return ``True`` if *entity* holds a record, own or inherited."""
        return entity in self._records

    __contains__ = is_bound

    # ------------------------------------------------------------------ #
    # Records
    # ------------------------------------------------------------------ #

    def default_settings(self) -> CacheSettings:
        """Build a fresh record holding only documented defaults.

        The host context is consulted once, here, so a record keeps the
        handles it was built with even if the host changes afterwards.
        """
        return CacheSettings(**self._host_defaults())

    def _host_defaults(self) -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        if self._host is not None:
            if self._host.cache is not None:
                overrides["cache"] = self._host.cache
            if self._host.logger is not None:
                overrides["logger"] = self._host.logger
        return overrides

    def resolve(self, entity: Hashable) -> CacheSettings:
        """Return the record governing *entity*, binding one if necessary.

        Never raises. Repeated calls for the same entity return the same
        object until the entity is configured or assigned.
        """
        record = self._records.get(entity)
        if record is not None:
            return record

        with self._lock:
            record = self._records.get(entity)
            if record is not None:
                return record

            unbound = [entity]
            for ancestor in self.ancestry(entity):
                record = self._records.get(ancestor)
                if record is not None:
                    break
                unbound.append(ancestor)

            if record is None:
                record = self.default_settings()
                logger.debug("Created default cache settings for %r", unbound[-1])

            for member in unbound:
                self._records[member] = record
            return record

    def configure(
        self,
        entity: Hashable,
        options: Optional[Mapping[str, Any]] = None,
        **kwargs: Any,
    ) -> CacheSettings:
        """Give *entity* a new record built from defaults plus *options*.

        Recognised option names set the matching field; any other name is
        kept verbatim as an extension field. Keyword arguments are merged
        over *options*.

        Returns:
            The newly bound record.

        Raises:
            ConfigurationError: If a recognised option's value cannot be
                coerced to the field's type.
        """
        merged = {**(options or {}), **kwargs}
        try:
            record = CacheSettings(**{**self._host_defaults(), **merged})
        except ValidationError as exc:
            raise ConfigurationError(
                f"Invalid cache option for {entity!r}: {exc}"
            ) from exc

        with self._lock:
            self._records[entity] = record
        logger.debug("Configured %r with options %s", entity, sorted(merged))
        return record

    def assign(self, entity: Hashable, settings: CacheSettings) -> None:
        """Bind *settings* to *entity* only, replacing any inherited record."""
        with self._lock:
            self._records[entity] = settings

    def clear(self) -> None:
        """Forget every binding and declaration."""
        with self._lock:
            self._records.clear()
            self._parents.clear()


# --- Process-wide store ---

_store: Optional[ConfigurationStore] = None


def get_store() -> ConfigurationStore:
    """Return the process-wide store, creating a host-less one on first use."""
    global _store
    if _store is None:
        _store = ConfigurationStore()
    return _store


def set_store(store: ConfigurationStore) -> None:
    """Install *store* as the process-wide store."""
    global _store
    _store = store


def reset_store() -> None:
    """Drop the process-wide store so the next :func:`get_store` builds a new one."""
    global _store
    _store = None
