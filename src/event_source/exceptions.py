"""Custom exceptions raised by event sources."""


class EventSourceError(RuntimeError):
    """Base error for all event source related exceptions."""


class InvalidListenerError(EventSourceError, TypeError):
    """Raised when a listener, filter or stored callback is not callable."""


class ConfigurationError(EventSourceError, ValueError):
    """Raised when configuration values are invalid or missing."""
