"""
Multi-topic event channel used as the public surface of GlobWatcher.

Listeners are called synchronously, in registration order, from the thread
that publishes. Every publication on a specific topic is mirrored on ``all``
with the topic name prepended to the arguments.
"""

import logging
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)

ADD = "add"
DELETE = "delete"
CHANGE = "change"
RENAME = "rename"
ALL = "all"

EVENT_TOPICS = (ADD, DELETE, CHANGE, RENAME)
TOPICS = EVENT_TOPICS + (ALL,)


class EventChannel:
    """Single-producer, multi-consumer notification channel."""

    def __init__(self):
        self._listeners: Dict[str, List[Callable]] = {topic: [] for topic in TOPICS}

    @staticmethod
    def _check_topic(topic):
        if topic not in TOPICS:
            raise ValueError(f"Unknown topic {topic!r}; expected one of {', '.join(TOPICS)}")

    def on(self, topic, listener=None):
        """
        Subscribe ``listener`` to ``topic``.

        Returns the listener, so this can also be used as a decorator::

            @channel.on("add")
            def added(path):
                ...
        """
        self._check_topic(topic)
        if listener is None:
            return lambda fn: self.on(topic, fn)
        if not callable(listener):
            raise TypeError(f"Listener for {topic!r} must be callable")
        self._listeners[topic].append(listener)
        return listener

    def once(self, topic, listener):
        """Subscribe ``listener`` for the next publication on ``topic`` only."""
        self._check_topic(topic)

        def wrapper(*args):
            self.off(topic, wrapper)
            return listener(*args)

        wrapper.listener = listener
        self._listeners[topic].append(wrapper)
        return listener

    def off(self, topic, listener):
        """
        Unsubscribe ``listener`` from ``topic``.

        Returns:
            bool: False if it was not subscribed.
        """
        self._check_topic(topic)
        for registered in self._listeners[topic]:
            if registered == listener or getattr(registered, "listener", None) == listener:
                self._listeners[topic].remove(registered)
                return True
        return False

    def listeners(self, topic):
        self._check_topic(topic)
        return [getattr(fn, "listener", fn) for fn in self._listeners[topic]]

    def _dispatch(self, topic, args):
        # Snapshot so listeners may unsubscribe while being called.
        for listener in list(self._listeners[topic]):
            listener(*args)

    def publish(self, topic, *args):
        """
        Deliver an event on ``topic`` and mirror it on ``all``.

        ``all`` listeners run first and receive ``(topic, *args)``. Listener
        exceptions propagate to the publisher.
        """
        if topic not in EVENT_TOPICS:
            raise ValueError(f"Cannot publish on {topic!r}; expected one of {', '.join(EVENT_TOPICS)}")
        logger.debug(f"Publishing {topic} {args}")
        self._dispatch(ALL, (topic,) + args)
        self._dispatch(topic, args)
