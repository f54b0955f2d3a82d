"""
GlobWatcher: semantic file watching for glob patterns.

Turns noisy low-level filesystem notifications into ``add``, ``delete``,
``change`` and ``rename`` events for the files matched by a set of globs.
"""

from globwatcher.config import WatcherOptions
from globwatcher.errors import (ConfigError, HandleCreationError,
                                ResolutionError, WatcherError)
from globwatcher.watcher import GlobWatcher

__version__ = "0.3.0"

__all__ = [
    "ConfigError",
    "GlobWatcher",
    "HandleCreationError",
    "ResolutionError",
    "WatcherError",
    "WatcherOptions",
]
