"""Exceptions raised by the session monitor core."""


class SessionMonitorError(Exception):
    """Base class for session monitor errors."""


class DiscoveryError(SessionMonitorError):
    """The projects root exists but cannot be listed."""


class WatcherError(SessionMonitorError):
    """Filesystem notifications could not be established."""


class SessionNotFoundError(SessionMonitorError, KeyError):
    """No transcript exists for the requested session id."""
