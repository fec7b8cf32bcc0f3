"""Exception hierarchy for cachedresource.

All exceptions inherit from :class:`CachedResourceError`. Normal use of the
configuration store and TTL policy never raises: missing configuration,
missing host context and unknown option names all fall back to defaults.
The only error surfaced by this package is :class:`ConfigurationError`,
raised when an option value cannot be coerced at all or when an options
file cannot be read.

Subclass hierarchy::

    CachedResourceError
    +-- ConfigurationError
"""


class CachedResourceError(Exception):
    """Base exception for all cachedresource errors.

    Args:
        message: Human-readable error description.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(CachedResourceError):
    """Raised for option values that cannot be coerced and for unreadable options files."""
