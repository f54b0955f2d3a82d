"""Exception types raised by GlobWatcher."""


class WatcherError(Exception):
    """Base class for all GlobWatcher errors."""

    pass


class ConfigError(WatcherError):
    """Raised for unknown or invalid options and unreadable config files."""

    pass


class ResolutionError(WatcherError):
    """Raised when glob patterns match nothing or cannot be resolved."""

    pass


class HandleCreationError(WatcherError):
    """Raised when a native watch handle cannot be attached to a path."""

    def __init__(self, path, cause=None):
        self.path = path
        self.cause = cause
        message = f"Could not watch {path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
