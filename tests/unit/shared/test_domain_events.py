"""Unit tests for domain events and the in-memory bus."""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.milestones.events import ScheduleRecalculated
from modules.orders.events import ExportOrderCreated
from shared.infrastructure.bus import InMemoryEventBus, event_bus

pytestmark = pytest.mark.unit


class _Recorder:
    def __init__(self):
        self.events = []

    def handle(self, event):
        self.events.append(event)


def test_event_name_is_class_name():
    event = ExportOrderCreated(aggregate_id=uuid4(), order_number="EO-20240102-0001")
    assert event.event_name == "ExportOrderCreated"


def test_as_log_fields_stringifies_ids():
    order_id = uuid4()
    event = ScheduleRecalculated(aggregate_id=order_id, mode="shift", changed_count=3)
    fields = event.as_log_fields()
    assert fields["aggregate_id"] == str(order_id)
    assert fields["changed_count"] == 3
    assert fields["delta_days"] is None
    assert fields["event_name"] == "ScheduleRecalculated"


class TestInMemoryEventBus:
    def test_publish_reaches_subscribers_of_that_type_only(self):
        bus = InMemoryEventBus()
        recorder = _Recorder()
        bus.subscribe(ExportOrderCreated, recorder)

        created = ExportOrderCreated(aggregate_id=uuid4())
        bus.publish(created)
        bus.publish(ScheduleRecalculated(aggregate_id=uuid4()))

        assert recorder.events == [created]

    def test_subscribe_is_idempotent(self):
        bus = InMemoryEventBus()
        recorder = _Recorder()
        bus.subscribe(ExportOrderCreated, recorder)
        bus.subscribe(ExportOrderCreated, recorder)
        assert bus.handlers_for(ExportOrderCreated) == [recorder]

    def test_unsubscribe(self):
        bus = InMemoryEventBus()
        recorder = _Recorder()
        bus.subscribe(ExportOrderCreated, recorder)
        bus.unsubscribe(ExportOrderCreated, recorder)
        bus.publish(ExportOrderCreated(aggregate_id=uuid4()))
        assert recorder.events == []

    def test_app_handlers_are_registered(self):
        from modules.milestones.events import MilestoneStatusChanged

        assert event_bus.handlers_for(MilestoneStatusChanged)
        assert event_bus.handlers_for(ExportOrderCreated)
