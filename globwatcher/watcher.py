"""
GlobWatcher engine.

Resolves glob patterns once, watches every matched file and every parent
directory, and turns raw notifications into ``add``, ``delete``, ``change``
and ``rename`` events. A single cooldown gate per instance drops every raw
notification that arrives while a previous one is still cooling down.
"""

import inspect
import logging
import os
import threading
from collections.abc import Mapping
from typing import Callable, List, Optional

from globwatcher import native
from globwatcher.classifier import (RAW_CHANGE, RAW_RENAME,
                                    classify_directory_event)
from globwatcher.config import WatcherOptions
from globwatcher.debounce import DebounceGate
from globwatcher.emitter import ADD, CHANGE, DELETE, RENAME, EventChannel
from globwatcher.errors import ConfigError, WatcherError
from globwatcher.registry import WatchHandle, WatchRegistry
from globwatcher.resolver import derive_directories, resolve

logger = logging.getLogger(__name__)


def caller_directory() -> str:
    """
    Directory of the first calling module outside this package.

    Falls back to the process working directory for interactive sessions and
    code that has no source file.
    """
    frame = inspect.currentframe()
    try:
        while frame is not None:
            module = frame.f_globals.get("__name__", "")
            if module != "globwatcher" and not module.startswith("globwatcher."):
                filename = frame.f_code.co_filename
                if filename and not filename.startswith("<"):
                    return os.path.dirname(os.path.abspath(filename))
                break
            frame = frame.f_back
    finally:
        del frame
    return os.getcwd()


class GlobWatcher:
    """
    Watch the files matched by glob patterns.

    Events, subscribed with :meth:`on`:

    - ``add(path)``: a new file appeared in a watched directory
    - ``delete(path)``: a watched file disappeared
    - ``change(path)``: a watched file was modified
    - ``rename(old_path, new_path)``: a watched file was renamed
    - ``all(kind, *args)``: every event above, prefixed by its name

    Example::

        watcher = GlobWatcher("src/**/*.py", lock_duration=500)
        watcher.on("all", print)
        watcher.start()
    """

    def __init__(self, patterns, options=None, *, watch_factory: Optional[Callable] = None,
                 timer_factory: Optional[Callable] = None, **overrides):
        """
        Resolve ``patterns`` and prepare, but do not attach, the watchers.

        Args:
            patterns: A glob pattern or an ordered iterable of patterns.
            options: WatcherOptions or a mapping of option values.
            watch_factory: ``(path, options, callback) -> handle`` used to
                attach native watchers. Defaults to the ``watch`` method of a
                :class:`globwatcher.native.NativeWatcher` owned by this instance.
            timer_factory: Timer factory for the cooldown gate.
            **overrides: Option values applied over ``options``.

        Raises:
            ConfigError: If the options are invalid.
            ResolutionError: If the patterns match no file.
        """
        if options is None:
            options = WatcherOptions()
        elif isinstance(options, Mapping):
            options = WatcherOptions.from_mapping(options)
        elif not isinstance(options, WatcherOptions):
            raise ConfigError(f"options must be WatcherOptions or a mapping, got {type(options).__name__}")
        if overrides:
            options = options.merged(**overrides)
        cwd = options.cwd if options.cwd is not None else caller_directory()
        self._options = options.merged(cwd=os.path.abspath(cwd))

        self._native = None
        if watch_factory is None:
            self._native = native.NativeWatcher(self._options)
            watch_factory = self._native.watch
        self._watch = watch_factory
        self._gate = DebounceGate(self._options.cooldown_seconds, timer_factory)
        self._channel = EventChannel()
        self._registry = WatchRegistry()
        self._lock = threading.RLock()
        self._started = False

        self._log(f"Working directory: {self._options.cwd}")
        self._log(f"Options: {self._options.as_dict()}")

        self._files = dict.fromkeys(resolve(patterns, self._options))
        self._directories = derive_directories(self._files)

    def _log(self, message):
        level = logging.INFO if self._options.verbose else logging.DEBUG
        logger.log(level, message)

    @property
    def options(self) -> WatcherOptions:
        return self._options

    @property
    def files(self) -> List[str]:
        """Files currently known to the watcher, in discovery order."""
        return list(self._files)

    @property
    def directories(self) -> List[str]:
        """Directories derived from the files matched at construction."""
        return list(self._directories)

    @property
    def watched_paths(self) -> List[str]:
        """Targets of the native handles currently attached."""
        return self._registry.targets()

    @property
    def started(self) -> bool:
        return self._started

    def on(self, topic, listener=None):
        return self._channel.on(topic, listener)

    def once(self, topic, listener):
        return self._channel.once(topic, listener)

    def off(self, topic, listener):
        return self._channel.off(topic, listener)

    def start(self) -> "GlobWatcher":
        """
        Attach a watcher to every file and every directory.

        Calling this twice attaches a second set of watchers. If a watcher
        cannot be attached, the ones attached so far are closed again.

        Returns:
            GlobWatcher: self, for chaining.

        Raises:
            HandleCreationError: If a file or directory cannot be watched.
        """
        # Native calls run outside the engine lock; observer threads hold
        # their own lock while waiting on it.
        files = self.files
        handles = []
        try:
            self._log("Watching files:\n" + "\n".join(files))
            for path in files:
                handles.append(self._create_file_handle(path))
            self._log("Watching directories:\n" + "\n".join(self._directories))
            for directory in self._directories:
                handles.append(self._create_directory_handle(directory))
        except WatcherError:
            for handle in reversed(handles):
                handle.close()
            if self._native is not None and not len(self._registry):
                self._native.stop()
            raise

        with self._lock:
            for handle in handles:
                self._registry.add(handle)
            self._started = True
        return self

    def close(self):
        """Detach every native watcher. The known file set is kept."""
        with self._lock:
            handles = self._registry.drain()
            self._started = False
        for handle in handles:
            handle.close()
        if self._native is not None:
            self._native.stop()
        self._log("Closed all watchers")

    def _create_file_handle(self, path) -> WatchHandle:
        def callback(kind, _filename=None):
            self.on_file_event(kind, path)

        return WatchHandle(path, self._watch(path, self._options, callback))

    def _create_directory_handle(self, directory) -> WatchHandle:
        def callback(kind, filename=None):
            self.on_directory_event(kind, filename, directory)

        return WatchHandle(directory, self._watch(directory, self._options, callback), is_directory=True)

    def on_file_event(self, kind, path):
        """Handle a raw notification from a file watcher."""
        with self._lock:
            if kind != RAW_CHANGE or not self._gate.try_accept():
                return
            self._log(f"Raw event: {kind}, file: {path}")
            self._channel.publish(CHANGE, path)

    def on_directory_event(self, kind, raw_name, directory):
        """
        Handle a raw notification from a directory watcher.

        Only ``rename`` notifications are classified; see
        :mod:`globwatcher.classifier` for the rules. Filesystem errors raised
        while inspecting the directory propagate before any state changes.

        A notification without a filename cannot be classified. It is logged
        and dropped before the cooldown gate is consulted, so it neither
        raises nor starts a cooldown.
        """
        with self._lock:
            if kind != RAW_RENAME:
                return
            if not raw_name:
                self._log(f"Ignoring {kind} event without a filename in {directory}")
                return
            if not self._gate.try_accept():
                return

            self._log(f"Raw event: {kind}, name: {raw_name}, directory: {directory}")
            result = classify_directory_event(raw_name, directory, self._files)
            if result is None:
                self._log(f"Already watching {os.path.join(directory, raw_name)}")
                return

            if result.event == ADD:
                self._track(result.path)
                self._channel.publish(ADD, result.path)
            elif result.event == RENAME:
                self._log(f"Renamed {result.path} -> {result.new_path}")
                self._channel.publish(RENAME, result.path, result.new_path)
                self._registry.remove(result.path)
                self._files.pop(result.path, None)
            elif result.event == DELETE:
                self._channel.publish(DELETE, result.path)
                self._registry.remove(result.path)
                self._files.pop(result.path, None)

    def _track(self, path):
        self._registry.add(self._create_file_handle(path))
        self._files[path] = None

    def __repr__(self):
        state = "started" if self._started else "constructed"
        return f"<GlobWatcher {len(self._files)} file(s), {len(self._directories)} dir(s), {state}>"
