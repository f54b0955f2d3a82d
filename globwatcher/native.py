"""
Native change notifications backed by watchdog.

A :class:`NativeWatcher` owns one watchdog observer. Each call to
``watch(path, options, callback)`` attaches a handler to that observer and
reports raw notifications as ``callback(kind, filename)``:

- ``change`` for content or metadata modifications
- ``rename`` for creations, deletions and moves

For a file the filename is the file's basename. For a directory it is the
name of the affected entry. Events for the directory itself are not reported.

Files are observed through their parent directory, so every handle on the
same directory shares one scheduled watch (one inotify instance on Linux).
"""

import logging
import os
import threading

from watchdog.events import (EVENT_TYPE_CREATED, EVENT_TYPE_DELETED,
                             EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED,
                             FileSystemEventHandler)
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from globwatcher.errors import HandleCreationError

logger = logging.getLogger(__name__)

KIND_CHANGE = "change"
KIND_RENAME = "rename"

KIND_BY_EVENT_TYPE = {
    EVENT_TYPE_MODIFIED: KIND_CHANGE,
    EVENT_TYPE_CREATED: KIND_RENAME,
    EVENT_TYPE_DELETED: KIND_RENAME,
    EVENT_TYPE_MOVED: KIND_RENAME,
}


class RawEventHandler(FileSystemEventHandler):
    """Translates watchdog events into ``(kind, filename)`` callbacks."""

    def __init__(self, root, callback, target=None, encoding="utf-8"):
        super().__init__()
        self.root = root
        self.callback = callback
        self.target = target
        self.encoding = encoding
        self.active = True

    def _decode(self, path):
        if isinstance(path, bytes):
            path = path.decode(self.encoding)
        return os.path.normpath(path)

    def _event_paths(self, event):
        paths = [event.src_path]
        if event.event_type == EVENT_TYPE_MOVED and getattr(event, "dest_path", None):
            paths.append(event.dest_path)
        return [self._decode(path) for path in paths]

    def on_any_event(self, event):
        kind = KIND_BY_EVENT_TYPE.get(event.event_type)
        if kind is None or not self.active:
            return

        for path in self._event_paths(event):
            if self.target is not None:
                if path == self.target:
                    self.callback(kind, os.path.basename(self.target))
            elif path != self.root and os.path.dirname(path) == self.root:
                self.callback(kind, os.path.basename(path))


class NativeHandle:
    """A handler attached to a shared watch; ``close()`` detaches it."""

    def __init__(self, path, owner, handler, watch, observer):
        self.path = path
        self.watch = watch
        self.observer = observer
        self._owner = owner
        self._handler = handler
        self._closed = False

    @property
    def closed(self):
        return self._closed

    def close(self):
        """Stop reporting and detach the handler from its watch."""
        if self._closed:
            return
        self._closed = True
        self._handler.active = False
        self._owner.detach(self._handler, self.watch, self.observer)
        logger.debug(f"Closed native watcher for {self.path}")

    def __repr__(self):
        state = "closed" if self._closed else "open"
        return f"<NativeHandle {self.path} ({state})>"


def create_observer(options):
    if options.polling:
        observer = PollingObserver(timeout=options.poll_interval)
    else:
        observer = Observer()
    observer.daemon = not options.persistent
    return observer


class NativeWatcher:
    """
    One watchdog observer shared by every handle of a GlobWatcher.

    The observer is created and started on the first ``watch()`` and stopped
    by ``stop()``; a later ``watch()`` starts a fresh one. Scheduled watches
    stay in place until ``stop()``, so their number is bounded by the number
    of distinct directories ever watched.

    Observer methods take the observer's dispatch lock, which is held while
    a handler runs. Callers must not hold a lock that handlers wait on when
    calling ``watch()``, ``detach()`` or ``stop()`` from another thread.
    """

    def __init__(self, options):
        self.options = options
        self._observer = None
        self._watches = set()
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._observer is not None

    @property
    def watches(self):
        """Directories with a scheduled watch."""
        return sorted(watch.path for watch in self._watches)

    def _ensure_observer(self):
        with self._lock:
            if self._observer is None:
                self._observer = create_observer(self.options)
                self._watches = set()
                self._observer.start()
                logger.debug(f"Started {type(self._observer).__name__}")
            return self._observer

    def watch(self, path, options, callback) -> NativeHandle:
        """
        Attach a handler for ``path`` to the shared observer.

        Args:
            path (str): File or directory to watch.
            options (WatcherOptions): Native watch options.
            callback (callable): Receives ``(kind, filename)``.

        Returns:
            NativeHandle: The attached handle.

        Raises:
            HandleCreationError: If ``path`` is missing or the watch fails.
        """
        path = os.path.normpath(os.path.abspath(path))
        if not os.path.exists(path):
            raise HandleCreationError(path, FileNotFoundError(f"No such file or directory: {path}"))

        if os.path.isdir(path):
            root = path
            handler = RawEventHandler(root, callback, encoding=options.encoding)
        else:
            root = os.path.dirname(path)
            handler = RawEventHandler(root, callback, target=path, encoding=options.encoding)

        observer = self._ensure_observer()
        try:
            watch = observer.schedule(handler, root, recursive=False)
        except OSError as e:
            handler.active = False
            raise HandleCreationError(path, e) from e

        with self._lock:
            self._watches.add(watch)
        logger.debug(f"Attached handler for {path} to watch on {root}")
        return NativeHandle(path, self, handler, watch, observer)

    def detach(self, handler, watch, observer):
        """Remove ``handler`` from ``watch``. No-op once ``observer`` is stopped."""
        with self._lock:
            if observer is not self._observer or watch not in self._watches:
                return
        observer.remove_handler_for_watch(handler, watch)

    def stop(self):
        """
        Stop the observer and release every scheduled watch without waiting.

        Returns:
            The stopped observer thread, to join if needed, or None.
        """
        with self._lock:
            observer, self._observer = self._observer, None
            self._watches = set()
        if observer is None:
            return None
        observer.stop()
        logger.debug(f"Stopped {type(observer).__name__}")
        return observer
