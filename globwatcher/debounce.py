"""Cooldown gate shared by every watcher of one GlobWatcher instance."""

import logging
import threading

logger = logging.getLogger(__name__)


def _daemon_timer(interval, function):
    timer = threading.Timer(interval, function)
    timer.daemon = True
    return timer


class DebounceGate:
    """
    A single lock flag with a one-shot unlock timer.

    The first notification accepted locks the gate; every notification that
    arrives before the cooldown elapses is rejected, whatever its source.
    The unlock cannot be cancelled or brought forward.
    """

    def __init__(self, cooldown_seconds, timer_factory=None):
        """
        Args:
            cooldown_seconds (float): How long the gate stays locked.
            timer_factory (callable): ``(interval, function) -> timer`` with a
                ``start()`` method. Defaults to a daemon ``threading.Timer``.
        """
        self.cooldown_seconds = cooldown_seconds
        self._timer_factory = timer_factory or _daemon_timer
        self._locked = False
        self._mutex = threading.Lock()

    @property
    def locked(self):
        return self._locked

    def try_accept(self):
        """
        Lock the gate if it is open.

        Returns:
            bool: True if the caller may handle its notification, False if it
            must be dropped.
        """
        with self._mutex:
            if self._locked:
                return False
            self._locked = True
        self._timer_factory(self.cooldown_seconds, self._unlock).start()
        return True

    def _unlock(self):
        with self._mutex:
            self._locked = False
        logger.debug("Debounce gate unlocked")
