"""Expiry computation for cache writes.

:class:`TTLPolicy` turns a :class:`~cachedresource.models.CacheSettings`
record into the number of seconds a freshly written entry should live.

With ``ttl_randomization`` off the configured ``ttl`` is used as is. With it
on, every write draws a fresh value uniformly from the real interval
``[ttl * scale.lower, ttl * scale.upper]``. Spreading expirations this way
keeps entries written together from all expiring at the same instant and
stampeding the backing service.

The result may be fractional. Rounding, if any, belongs to the backend.

``scale.lower <= scale.upper`` is not checked. An inverted scale is passed
to :meth:`random.Random.uniform` as given, which samples the same interval
with its bounds swapped.
"""

from __future__ import annotations

import random
from typing import Optional, Union

from cachedresource.models import CacheSettings

Seconds = Union[int, float]


class TTLPolicy:
    """Compute per-write TTLs, with optional jitter.

    Args:
        rng: Random source used for jitter. Pass a seeded
            :class:`random.Random` for reproducible samples.

    Example::

        policy = TTLPolicy(random.Random(42))
        settings = CacheSettings(ttl=60, ttl_randomization=True)
        policy.effective_ttl(settings)   # somewhere in [60, 120]
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    def effective_ttl(self, settings: CacheSettings) -> Seconds:
        """Return the TTL in seconds for one cache write governed by *settings*."""
        ttl = settings.ttl
        if not settings.ttl_randomization or ttl == 0:
            return ttl
        lower, upper = settings.ttl_randomization_scale.as_tuple()
        return self.sample_range(lower, upper, ttl)

    def sample_range(self, lower: float, upper: float, ttl: Seconds) -> float:
        """Draw uniformly from ``[ttl * lower, ttl * upper]``.

        A zero-width interval returns exactly ``ttl * lower``.
        """
        if lower == upper:
            return ttl * lower
        return self._rng.uniform(ttl * lower, ttl * upper)

    def expires_at(self, settings: CacheSettings, now: float) -> float:
        """Absolute expiry timestamp for an entry written at *now*."""
        return now + self.effective_ttl(settings)


_default_policy = TTLPolicy()


def effective_ttl(settings: CacheSettings) -> Seconds:
    """Module-level shortcut for :meth:`TTLPolicy.effective_ttl` with a shared RNG."""
    return _default_policy.effective_ttl(settings)
