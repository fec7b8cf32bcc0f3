"""cachedresource -- per-entity cache configuration and TTL policy for resource finders.

Code that fetches remote resources registers each resource *entity* with a
:class:`~cachedresource.configuration.ConfigurationStore`, optionally
declaring a parent entity to inherit settings from. A
:class:`~cachedresource.caching.ResourceCache` then wraps finder callables so
that results are served from the entity's cache backend until their TTL,
optionally jittered by :class:`~cachedresource.ttl.TTLPolicy`, runs out.

Typical usage::

    from cachedresource import ResourceCache, get_store

    store = get_store()
    store.configure("User", ttl=300, ttl_randomization=True)
    find_user = ResourceCache(store).wrap("User", fetch_user)

Modules:
    models: Pydantic models for settings, TTL scale and host context.
    configuration: Entity registry with inheritance and the process-wide store.
    ttl: Effective TTL computation with optional randomization.
    caching: Read-through caching for finder callables.
    config: JSON options files and environment switches.
    cache: Memory and disk cache backends.
    exceptions: Exception hierarchy.
"""

from cachedresource.caching import ResourceCache
from cachedresource.configuration import (
    ConfigurationStore,
    get_store,
    reset_store,
    set_store,
)
from cachedresource.models import CacheSettings, HostContext, TTLScale
from cachedresource.ttl import TTLPolicy, effective_ttl

__version__ = "0.1.0"

__all__ = [
    "CacheSettings",
    "ConfigurationStore",
    "HostContext",
    "ResourceCache",
    "TTLPolicy",
    "TTLScale",
    "effective_ttl",
    "get_store",
    "reset_store",
    "set_store",
]
