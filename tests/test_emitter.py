"""
Tests for the EventChannel topics and the ``all`` mirror.
"""

import pytest

from globwatcher.emitter import TOPICS, EventChannel


@pytest.fixture
def channel():
    return EventChannel()


def test_listeners_run_in_registration_order(channel):
    calls = []
    channel.on("add", lambda path: calls.append(("first", path)))
    channel.on("add", lambda path: calls.append(("second", path)))
    channel.publish("add", "/tmp/x")
    assert calls == [("first", "/tmp/x"), ("second", "/tmp/x")]


def test_all_receives_kind_and_arguments(channel):
    calls = []
    channel.on("all", lambda *args: calls.append(args))
    channel.publish("rename", "/a", "/b")
    channel.publish("delete", "/c")
    assert calls == [("rename", "/a", "/b"), ("delete", "/c")]


def test_all_is_called_once_per_event(channel):
    specific, mirrored = [], []
    channel.on("change", specific.append)
    channel.on("all", lambda *args: mirrored.append(args))
    for path in ("/a", "/b", "/c"):
        channel.publish("change", path)
    assert mirrored == [("change", p) for p in specific]


def test_topics_are_isolated(channel):
    calls = []
    channel.on("delete", calls.append)
    channel.publish("add", "/a")
    assert calls == []


def test_decorator_form(channel):
    calls = []

    @channel.on("change")
    def changed(path):
        calls.append(path)

    channel.publish("change", "/a")
    assert calls == ["/a"]
    assert channel.listeners("change") == [changed]


def test_once_fires_a_single_time(channel):
    calls = []
    channel.once("add", calls.append)
    channel.publish("add", "/a")
    channel.publish("add", "/b")
    assert calls == ["/a"]
    assert channel.listeners("add") == []


def test_off(channel):
    calls = []
    channel.on("add", calls.append)
    assert channel.off("add", calls.append)
    assert not channel.off("add", calls.append)
    channel.publish("add", "/a")
    assert calls == []


def test_off_removes_a_pending_once(channel):
    calls = []
    channel.once("add", calls.append)
    assert channel.off("add", calls.append)
    channel.publish("add", "/a")
    assert calls == []


@pytest.mark.parametrize("topic", ["modify", "", "ALL"])
def test_unknown_topics_are_rejected(channel, topic):
    with pytest.raises(ValueError):
        channel.on(topic, print)


def test_cannot_publish_on_all(channel):
    with pytest.raises(ValueError):
        channel.publish("all", "/a")


def test_listener_must_be_callable(channel):
    with pytest.raises(TypeError):
        channel.on("add", "not callable")


def test_listener_errors_propagate_to_the_publisher(channel):
    def boom(path):
        raise RuntimeError(path)

    channel.on("add", boom)
    with pytest.raises(RuntimeError):
        channel.publish("add", "/a")


def test_known_topics():
    assert set(TOPICS) == {"add", "delete", "change", "rename", "all"}
