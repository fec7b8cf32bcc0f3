"""Pydantic models shared across cachedresource.

* :class:`TTLScale` -- the closed multiplier range used for TTL jitter.
* :class:`CacheSettings` -- the per-entity cache configuration record.
* :class:`HostContext` -- an optional ambient host that supplies the default
  cache backend and logger.

``CacheSettings`` uses ``extra="allow"`` so that option names it does not
recognise are preserved verbatim in ``model_extra`` and are readable as
attributes. It also validates on assignment, so setting
``settings.ttl_randomization_scale = (0.5, 1)`` coerces the tuple the same
way construction does.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cachedresource.cache.backends import MemoryStore

DEFAULT_TTL = 604800
"""One week, in seconds."""

DEFAULT_RACE_CONDITION_TTL = 86400
"""One day, in seconds."""

DEFAULT_CACHE = MemoryStore()
"""Process-wide in-memory backend used when no host cache is supplied."""


def _discard_logger() -> logging.Logger:
    logger = logging.getLogger("cachedresource.discard")
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    logger.propagate = False
    return logger


DEFAULT_LOGGER = _discard_logger()
"""Logger that drops every record; used when no host logger is supplied."""

# "lower..upper" with plain decimal bounds; "1...2" and other spellings fail.
_RANGE_LITERAL = re.compile(
    r"^\s*(?P<lower>[-+]?\d+(?:\.\d+)?)\s*\.\.\s*(?P<upper>[-+]?\d+(?:\.\d+)?)\s*$"
)


class TTLScale(BaseModel):
    """Closed multiplier range ``[lower, upper]`` applied to a TTL.

    ``lower <= upper`` is not validated. An inverted range is kept as given.

    Accepted input shapes (see :meth:`coerce`)::

        TTLScale(lower=1, upper=2)
        (1, 2) or [1, 2]
        {"lower": 1, "upper": 2}
        range(1, 2)        # start -> lower, stop -> upper
        "1..2"
    """

    model_config = ConfigDict(frozen=True)

    lower: float = 1.0
    upper: float = 2.0

    @classmethod
    def coerce(cls, value: Any) -> Any:
        """Turn a range-like value into ``TTLScale`` keyword data.

        Values that are not range-like are returned unchanged so that
        Pydantic reports them.
        """
        if isinstance(value, TTLScale):
            return value
        if isinstance(value, range):
            return {"lower": value.start, "upper": value.stop}
        if isinstance(value, str):
            match = _RANGE_LITERAL.match(value)
            if match is not None:
                return {"lower": match.group("lower"), "upper": match.group("upper")}
            return value
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return {"lower": value[0], "upper": value[1]}
        return value

    def as_tuple(self) -> tuple[float, float]:
        return (self.lower, self.upper)


class CacheSettings(BaseModel):
    """Cache configuration for one resource entity.

    Every field has a default, so ``CacheSettings()`` is a complete record.
    Unrecognised keyword arguments become extension fields: they are kept in
    ``model_extra`` and readable as attributes. Use :meth:`extension` to read
    a name that may never have been supplied.

    Two records built from the same options compare equal but are distinct
    objects, which is what lets :class:`~cachedresource.configuration.ConfigurationStore`
    tell shared (inherited) records from merely identical ones.

    Example::

        settings = CacheSettings(ttl=60, custom="irrelevant")
        settings.ttl            # 60
        settings.custom         # "irrelevant"
        settings.race_condition_ttl  # 86400
    """

    model_config = ConfigDict(
        extra="allow",
        validate_assignment=True,
        arbitrary_types_allowed=True,
    )

    enabled: bool = Field(default=True, description="Serve and store cached results")
    ttl: int = Field(default=DEFAULT_TTL, description="Time-to-live in seconds")
    race_condition_ttl: int = Field(
        default=DEFAULT_RACE_CONDITION_TTL,
        description="Grace window in seconds during which a stale entry is served "
        "while one caller refreshes it",
    )
    collection_synchronize: bool = Field(
        default=False,
        description="Keep single-member entries and the cached collection in step",
    )
    collection_arguments: list[Any] = Field(
        default_factory=lambda: ["all"],
        description="Finder arguments that identify the canonical collection call",
    )
    cache_collections: bool = Field(default=True, description="Cache collection results")
    ttl_randomization: bool = Field(default=False, description="Jitter the TTL per write")
    ttl_randomization_scale: TTLScale = Field(
        default_factory=TTLScale, description="Multiplier range for TTL jitter"
    )
    cache: Any = Field(
        default_factory=lambda: DEFAULT_CACHE, description="Cache backend handle"
    )
    logger: Any = Field(
        default_factory=lambda: DEFAULT_LOGGER, description="Logger handle"
    )

    @field_validator("ttl_randomization_scale", mode="before")
    @classmethod
    def _coerce_scale(cls, value: Any) -> Any:
        return TTLScale.coerce(value)

    @property
    def extensions(self) -> dict[str, Any]:
        """Extension fields supplied at construction or set afterwards."""
        return dict(self.model_extra or {})

    def extension(self, name: str, default: Any = None) -> Any:
        """Return extension field *name*, or *default* when it was never set."""
        return (self.model_extra or {}).get(name, default)


class HostContext(BaseModel):
    """Ambient host whose cache and logger replace the built-in defaults.

    Either handle may be ``None``, in which case the corresponding built-in
    default (:data:`DEFAULT_CACHE` or :data:`DEFAULT_LOGGER`) is used.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    cache: Optional[Any] = None
    logger: Optional[Any] = None
