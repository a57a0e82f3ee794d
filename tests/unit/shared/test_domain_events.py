"""Unit tests for domain event primitives."""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from decimal import Decimal
from uuid import uuid4

import pytest

from modules.orders.events import OrderCreated, OrderStatusChanged
from shared.domain.events import DomainEventMixin

pytestmark = pytest.mark.unit


class Aggregate(DomainEventMixin):
    pass


class TestDomainEvent:
    def test_event_name_is_class_name(self):
        event = OrderStatusChanged(aggregate_id=uuid4(), old_status="a", new_status="b")
        assert event.event_name == "OrderStatusChanged"

    def test_events_are_immutable(self):
        event = OrderStatusChanged(aggregate_id=uuid4())
        with pytest.raises(FrozenInstanceError):
            event.old_status = "pending"

    def test_payload_is_json_safe(self):
        aggregate_id = uuid4()
        event = OrderCreated(
            aggregate_id=aggregate_id,
            order_number="202501011200001",
            user_id=7,
            total_amount=Decimal("35.00"),
            line_count=2,
        )
        payload = event.to_payload()
        assert payload["aggregate_id"] == str(aggregate_id)
        assert payload["total_amount"] == "35.00"
        assert payload["user_id"] == 7
        assert isinstance(payload["occurred_on"], str)
        assert payload["event_name"] == "OrderCreated"


class TestDomainEventMixin:
    def test_collects_and_clears(self):
        aggregate = Aggregate()
        aggregate.add_domain_event(OrderStatusChanged(aggregate_id=uuid4()))
        aggregate.add_domain_event(OrderStatusChanged(aggregate_id=uuid4()))
        assert len(aggregate.domain_events) == 2

        aggregate.clear_domain_events()
        assert aggregate.domain_events == []

    def test_domain_events_returns_a_copy(self):
        aggregate = Aggregate()
        aggregate.add_domain_event(OrderStatusChanged(aggregate_id=uuid4()))
        aggregate.domain_events.clear()
        assert len(aggregate.domain_events) == 1
