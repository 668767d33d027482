"""Unit tests for the in-memory event bus and domain events."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.orders.events import OrderCreated, OrderStatusChanged
from modules.orders.models import Order
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


class Recorder:
    def __init__(self):
        self.events = []

    def handle(self, event):
        self.events.append(event)


class Exploding:
    def handle(self, event):
        raise RuntimeError("handler bug")


def _status_changed():
    return OrderStatusChanged(
        aggregate_id=uuid4(),
        previous_status="pending",
        new_status="confirmed",
        actor_id="7",
    )


class TestInMemoryEventBus:
    def test_delivers_to_subscribers_of_the_event_type(self):
        bus = InMemoryEventBus()
        status_handler, created_handler = Recorder(), Recorder()
        bus.subscribe(OrderStatusChanged, status_handler)
        bus.subscribe(OrderCreated, created_handler)

        event = _status_changed()
        bus.publish(event)

        assert status_handler.events == [event]
        assert created_handler.events == []

    def test_subscribing_twice_delivers_once(self):
        bus = InMemoryEventBus()
        handler = Recorder()
        bus.subscribe(OrderStatusChanged, handler)
        bus.subscribe(OrderStatusChanged, handler)

        bus.publish(_status_changed())

        assert len(handler.events) == 1

    def test_failing_handler_does_not_stop_the_others(self):
        bus = InMemoryEventBus()
        survivor = Recorder()
        bus.subscribe(OrderStatusChanged, Exploding())
        bus.subscribe(OrderStatusChanged, survivor)

        bus.publish(_status_changed())

        assert len(survivor.events) == 1

    def test_unsubscribe(self):
        bus = InMemoryEventBus()
        handler = Recorder()
        bus.subscribe(OrderStatusChanged, handler)
        bus.unsubscribe(OrderStatusChanged, handler)

        bus.publish(_status_changed())

        assert handler.events == []
        assert bus.handlers_for(OrderStatusChanged) == []

    def test_buses_are_independent(self):
        first, second = InMemoryEventBus(), InMemoryEventBus()
        first.subscribe(OrderStatusChanged, Recorder())
        assert second.handlers_for(OrderStatusChanged) == []


class TestDomainEvents:
    def test_event_name_is_the_class_name(self):
        assert _status_changed().event_name == "OrderStatusChanged"

    def test_payload_skips_model_instances(self):
        order = Order(user_id="1", status="confirmed")
        event = OrderStatusChanged(
            aggregate_id=order.id,
            order=order,
            previous_status="pending",
            new_status="confirmed",
            actor_id="1",
        )

        payload = event.to_payload()

        assert "order" not in payload
        assert payload["aggregate_id"] == str(order.id)
        assert payload["new_status"] == "confirmed"
        assert isinstance(payload["occurred_on"], str)

    def test_payload_stringifies_money(self):
        event = OrderCreated(
            aggregate_id=uuid4(), user_id="1", total_amount=Decimal("12.50"), item_count=2
        )
        assert event.to_payload()["total_amount"] == "12.50"

    def test_orders_app_builds_its_own_bus(self):
        from django.apps import apps

        bus = apps.get_app_config("orders").event_bus
        assert isinstance(bus, InMemoryEventBus)
        assert len(bus.handlers_for(OrderStatusChanged)) == 1
