import logging
import sys
import time

from globwatcher import GlobWatcher
from globwatcher.logger import setup_logger

# Show what the watcher is doing.
setup_logger("globwatcher", level=logging.INFO)

patterns = sys.argv[1:] or ["**/*.py"]

# Relative patterns resolve against this file's directory unless cwd is given.
watcher = GlobWatcher(patterns, lock_duration=500, verbose=True)


@watcher.on("add")
def added(path):
    print(f"Added: {path}")


@watcher.on("rename")
def renamed(old_path, new_path):
    print(f"Renamed: {old_path} -> {new_path}")


# The catch-all topic receives the event name first.
watcher.on("all", lambda kind, *paths: print(f"[all] {kind}: {', '.join(paths)}"))

watcher.start()
print(f"Watching {len(watcher.files)} file(s). Press Ctrl+C to stop.")
try:
    while True:
        time.sleep(1)
except KeyboardInterrupt:
    pass
finally:
    watcher.close()
    print("All watchers closed.")
