"""Options files and environment switches.

Cache options can live in a JSON file mapping entity names to option
objects::

    {
        "Bar": {"ttl": 60, "ttl_randomization": true, "ttl_randomization_scale": "1..3"},
        "Foo": {"parent": "Bar"},
        "Baz": {"enabled": false, "owner": "team-b"}
    }

The reserved ``parent`` key declares inheritance through
:meth:`~cachedresource.configuration.ConfigurationStore.register` and is not
stored as an option. An entity whose only key is ``parent`` is registered
but left unconfigured, so it shares its parent's record on first resolution.

Environment variables:

* ``CACHEDRESOURCE_DISABLED`` -- any of ``1``, ``true``, ``yes``, ``on``
  (case-insensitive) bypasses every cache read and write.
* ``CACHEDRESOURCE_OPTIONS`` -- path of the options file used by
  :func:`configure_from_file` when no path is given.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from cachedresource.configuration import ConfigurationStore
from cachedresource.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_DISABLED = "CACHEDRESOURCE_DISABLED"
ENV_OPTIONS = "CACHEDRESOURCE_OPTIONS"
PARENT_KEY = "parent"

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def caching_disabled_by_env() -> bool:
    """Return ``True`` when ``CACHEDRESOURCE_DISABLED`` is set to a truthy value."""
    return os.environ.get(ENV_DISABLED, "").strip().lower() in _TRUTHY


def options_file_from_env() -> Optional[Path]:
    """Return the options file named by ``CACHEDRESOURCE_OPTIONS``, if any."""
    value = os.environ.get(ENV_OPTIONS, "")
    if not value:
        return None
    return Path(value).expanduser()


def load_options_file(path: str | Path) -> dict[str, dict[str, Any]]:
    """Read a JSON options file.

    Args:
        path: Location of the file.

    Returns:
        Mapping of entity name to its option mapping.

    Raises:
        ConfigurationError: If the file is missing, is not valid JSON, or
            is not an object of objects.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Options file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid options file at {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"Options file at {path} must contain a JSON object")
    for name, options in data.items():
        if not isinstance(options, dict):
            raise ConfigurationError(
                f"Options for '{name}' in {path} must be a JSON object"
            )
    return data


def configure_from_file(
    store: ConfigurationStore,
    path: str | Path | None = None,
) -> list[str]:
    """Register and configure every entity listed in an options file.

    Parents are registered before any entity is configured, so the order of
    entries in the file does not matter.

    Args:
        store: The store to populate.
        path: Options file. Defaults to ``CACHEDRESOURCE_OPTIONS``.

    Returns:
        Names of the entities that received their own record.

    Raises:
        ConfigurationError: If no path is available or the file is invalid.
    """
    if path is None:
        path = options_file_from_env()
        if path is None:
            raise ConfigurationError(
                f"No options file given and {ENV_OPTIONS} is not set"
            )

    entries = load_options_file(path)
    pending: dict[str, dict[str, Any]] = {}
    for name, options in entries.items():
        options = dict(options)
        store.register(name, options.pop(PARENT_KEY, None))
        if options:
            pending[name] = options

    for name, options in pending.items():
        store.configure(name, options)
    logger.info("Configured %d entities from %s", len(pending), path)
    return list(pending)
