"""
Exception hierarchy for SafeIO.

All custom exceptions raised by the file guard, the binding registry and the
serialization layer inherit from SafeIOError, so callers can catch every
library failure with a single except clause while still matching the precise
subclass when they need to.
"""


class SafeIOError(Exception):
    """
    Base exception for all SafeIO errors.

    Example:
        >>> try:
        ...     assign("x", 1, scope)
        ... except SafeIOError as e:
        ...     logger.error(f"Assignment refused: {e}")
    """

    pass


class ConfigurationError(SafeIOError):
    """
    Raised when settings are missing or invalid.

    Example:
        >>> if not settings.house_name.isidentifier():
        ...     raise ConfigurationError(f"Invalid house name {settings.house_name!r}")
    """

    pass
