"""
Shared fixtures: fake native watchers and timers so that notifications and
cooldown expiry can be driven by hand.
"""

import os

import pytest

from globwatcher.errors import HandleCreationError


class FakeNativeHandle:
    def __init__(self, path, options, callback):
        self.path = os.path.normpath(path)
        self.options = options
        self.callback = callback
        self.closed = False

    def fire(self, kind, filename=None):
        self.callback(kind, filename)

    def close(self):
        self.closed = True


class FakeWatchFactory:
    """Stands in for ``globwatcher.native.NativeWatcher.watch``."""

    def __init__(self):
        self.handles = []
        self.fail_on = set()

    def __call__(self, path, options, callback):
        if os.path.normpath(path) in self.fail_on:
            raise HandleCreationError(path, PermissionError("denied"))
        handle = FakeNativeHandle(path, options, callback)
        self.handles.append(handle)
        return handle

    @property
    def paths(self):
        return [h.path for h in self.handles]

    def handle_for(self, path):
        """Most recent open handle attached to ``path``."""
        path = os.path.normpath(str(path))
        for handle in reversed(self.handles):
            if handle.path == path and not handle.closed:
                return handle
        raise LookupError(f"No open handle for {path}")


class FakeTimer:
    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.started = False
        self.fired = False

    def start(self):
        self.started = True

    def fire(self):
        self.fired = True
        self.function()


class FakeTimerFactory:
    def __init__(self):
        self.timers = []

    def __call__(self, interval, function):
        timer = FakeTimer(interval, function)
        self.timers.append(timer)
        return timer

    def fire_all(self):
        for timer in self.timers:
            if not timer.fired:
                timer.fire()


@pytest.fixture
def watch_factory():
    return FakeWatchFactory()


@pytest.fixture
def timer_factory():
    return FakeTimerFactory()


@pytest.fixture
def project(tmp_path):
    """
    A small tree::

        src/a.txt
        src/b.txt
        lib/c.txt
        lib/notes.md
    """
    src = tmp_path / "src"
    src.mkdir()
    (src / "a.txt").write_text("alpha")
    (src / "b.txt").write_text("beta")
    lib = tmp_path / "lib"
    lib.mkdir()
    (lib / "c.txt").write_text("gamma")
    (lib / "notes.md").write_text("# notes")
    return tmp_path
