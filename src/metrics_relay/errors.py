"""Exception types raised by the relay."""


class ConfigurationError(ValueError):
    """Raised when listener or relay configuration cannot be applied."""
