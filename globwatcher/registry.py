"""Registry of native watch handles, one per watched file or directory."""

import logging
import os
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class WatchHandle:
    """A watched path and the native handle attached to it."""

    target: str
    native: Any
    is_directory: bool = False

    @property
    def key(self) -> str:
        return os.path.normpath(self.target)

    def close(self):
        self.native.close()


class WatchRegistry:
    """
    Tracks watch handles by normalized target path.

    Handles are kept in attachment order. Lookups normalize both sides, so
    ``./a`` and ``a`` refer to the same handle.
    """

    def __init__(self):
        self._handles: List[WatchHandle] = []

    def add(self, handle: WatchHandle) -> WatchHandle:
        self._handles.append(handle)
        logger.debug(f"Registered watch handle for {handle.target}")
        return handle

    def find(self, target: str) -> Optional[WatchHandle]:
        key = os.path.normpath(target)
        for handle in self._handles:
            if handle.key == key:
                return handle
        return None

    def remove(self, target: str) -> Optional[WatchHandle]:
        """
        Close and detach the handle watching ``target``.

        Returns:
            WatchHandle: The removed handle, or None if nothing watched ``target``.
        """
        handle = self.find(target)
        if handle is None:
            logger.debug(f"No watch handle registered for {target}")
            return None
        handle.close()
        self._handles.remove(handle)
        logger.debug(f"Removed watch handle for {handle.target}")
        return handle

    def drain(self) -> List[WatchHandle]:
        """Detach every handle without closing it, most recently attached first."""
        handles = list(reversed(self._handles))
        self._handles.clear()
        return handles

    def close_all(self):
        """Close and detach every handle, most recently attached first."""
        for handle in self.drain():
            handle.close()

    def targets(self) -> List[str]:
        return [handle.target for handle in self._handles]

    def __contains__(self, target) -> bool:
        return self.find(target) is not None

    def __iter__(self) -> Iterator[WatchHandle]:
        return iter(list(self._handles))

    def __len__(self) -> int:
        return len(self._handles)
