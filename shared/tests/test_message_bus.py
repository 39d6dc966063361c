"""Tests for the message bus and the unit of work."""

from __future__ import annotations

from dataclasses import dataclass
from unittest.mock import patch

import pytest

from shared.application.message_bus import MessageBus
from shared.application.uow import DjangoUnitOfWork
from shared.domain.base import DomainEvent


@dataclass
class ThingHappened(DomainEvent):
    detail: str = ""


@dataclass
class OtherThingHappened(DomainEvent):
    pass


def test_events_reach_every_handler_once():
    bus = MessageBus()
    seen = []
    handler = seen.append
    bus.register_event_handler(ThingHappened, handler)
    bus.register_event_handler(ThingHappened, handler)
    bus.register_event_handler(ThingHappened, lambda event: seen.append(event.detail))

    event = ThingHappened(detail="x")
    bus.publish_events([event, OtherThingHappened()])

    assert seen == [event, "x"]


def test_failing_handler_does_not_stop_the_rest():
    bus = MessageBus()
    seen = []

    def broken(event):
        raise RuntimeError("boom")

    bus.register_event_handler(ThingHappened, broken)
    bus.register_event_handler(ThingHappened, seen.append)

    bus.publish_events([ThingHappened()])

    assert len(seen) == 1


def test_payload_is_json_safe():
    event = ThingHappened(detail="x", aggregate_id=3)

    data = event.to_dict()

    assert data["event_type"] == "ThingHappened"
    assert data["aggregate_id"] == 3
    assert data["payload"] == {"detail": "x"}
    assert isinstance(data["event_id"], str)


@pytest.mark.django_db
def test_unit_of_work_publishes_after_commit(django_capture_on_commit_callbacks):
    published = []

    with patch("shared.application.message_bus.message_bus.publish_events", side_effect=published.extend):
        with django_capture_on_commit_callbacks(execute=True):
            with DjangoUnitOfWork() as uow:
                uow.record(ThingHappened(detail="committed"))
                assert published == []

    assert [event.detail for event in published] == ["committed"]


@pytest.mark.django_db
def test_unit_of_work_discards_events_on_error(django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        with pytest.raises(ValueError):
            with DjangoUnitOfWork() as uow:
                uow.record(ThingHappened())
                raise ValueError("rolled back")

    assert callbacks == []
