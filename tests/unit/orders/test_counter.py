"""Unit tests for order number allocation."""

from datetime import datetime, timezone

import pytest
from freezegun import freeze_time

from modules.orders.counter import AtomicCounter, current_bucket, next_order_number
from modules.orders.models import OrderCounter

pytestmark = pytest.mark.unit


class TestAtomicCounter:
    def test_first_increment_creates_bucket(self):
        assert AtomicCounter().increment_and_get("202501011200") == 1
        assert OrderCounter.objects.get(date_key="202501011200").last_value == 1

    def test_increments_are_sequential(self):
        counter = AtomicCounter()
        values = [counter.increment_and_get("202501011200") for _ in range(5)]
        assert values == [1, 2, 3, 4, 5]

    def test_buckets_are_independent(self):
        counter = AtomicCounter()
        counter.increment_and_get("202501011200")
        counter.increment_and_get("202501011200")
        assert counter.increment_and_get("202501011201") == 1


class TestNextOrderNumber:
    def test_format_is_bucket_plus_padded_sequence(self):
        assert next_order_number("202501011200") == "202501011200001"
        assert next_order_number("202501011200") == "202501011200002"

    def test_sequence_wider_than_padding_is_kept(self):
        OrderCounter.objects.create(date_key="202501011200", last_value=999)
        assert next_order_number("202501011200") == "2025010112001000"

    def test_bucket_uses_local_time(self, settings):
        settings.TIME_ZONE = "Europe/Madrid"
        with freeze_time(datetime(2025, 1, 1, 11, 30, tzinfo=timezone.utc)):
            assert current_bucket() == "202501011230"

    def test_numbers_restart_each_minute(self):
        with freeze_time(datetime(2025, 6, 1, 8, 0, 10, tzinfo=timezone.utc)):
            first = next_order_number()
            second = next_order_number()
        with freeze_time(datetime(2025, 6, 1, 8, 1, 5, tzinfo=timezone.utc)):
            third = next_order_number()

        assert first[:12] == second[:12]
        assert int(second[12:]) == int(first[12:]) + 1
        assert third[:12] != first[:12]
        assert third.endswith("001")

    def test_numbers_increase_within_bucket(self):
        numbers = [next_order_number("202503151230") for _ in range(10)]
        assert numbers == sorted(numbers)
        assert len(set(numbers)) == 10
