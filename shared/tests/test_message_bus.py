from dataclasses import dataclass

import pytest

from shared.application.message_bus import MessageBus
from shared.domain.base import DomainEvent


@dataclass
class ParentEvent(DomainEvent):
    pass


@dataclass
class ChildEvent(ParentEvent):
    pass


@pytest.fixture
def bus():
    return MessageBus()


def test_handlers_receive_their_event_type(bus):
    received = []
    bus.register_event_handler(ChildEvent, received.append)

    event = ChildEvent()
    assert bus.publish_events([event]) == 1
    assert received == [event]


def test_base_class_subscribers_receive_subclasses(bus):
    received = []

    @bus.subscribe(ParentEvent)
    def on_parent(event):
        received.append(event.name)

    bus.publish_events([ChildEvent(), ParentEvent()])

    assert received == ["ChildEvent", "ParentEvent"]


def test_failing_handler_does_not_stop_others(bus):
    received = []

    def broken(event):
        raise RuntimeError("boom")

    bus.register_event_handler(ChildEvent, broken)
    bus.register_event_handler(ChildEvent, received.append)

    assert bus.publish_events([ChildEvent()]) == 1
    assert len(received) == 1


def test_events_without_handlers_are_skipped(bus):
    assert bus.publish_events([ParentEvent()]) == 0


def test_event_to_dict():
    event = ChildEvent()
    data = event.to_dict()
    assert data["event_type"] == "ChildEvent"
    assert data["event_id"] == str(event.event_id)
    assert data["aggregate_id"] is None
