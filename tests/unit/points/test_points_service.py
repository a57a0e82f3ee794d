"""Unit tests for the points ledger.

Covers:
- Balance always equals the ledger sum.
- Drift in the materialized balance is repaired on read.
- Redemptions never overdraw.
- Ledger entries are append-only.
"""

import uuid

import pytest

from modules.orders.models import Order
from modules.points.exceptions import (
    InsufficientPoints,
    InvalidPointsAmount,
    LedgerEntryImmutable,
)
from modules.points.models import EntryType, PointsBalance, PointsLedgerEntry
from modules.points.repositories import PointsDjangoRepository
from modules.points.services import PointsService

pytestmark = pytest.mark.unit


@pytest.fixture()
def points():
    return PointsService(PointsDjangoRepository())


class TestEarn:
    def test_balance_is_ledger_sum(self, points, customer_user):
        for amount in (10, 25, 5):
            points.earn(customer_user.id, amount)
        assert points.get_balance(customer_user.id) == 40
        assert PointsBalance.objects.get(user=customer_user).total_points == 40

    def test_entry_records_order(self, points, customer_user):
        order_id = uuid.uuid4()
        entry = points.earn(customer_user.id, 7, order_id=order_id)
        assert entry.type == EntryType.EARN
        assert entry.order_id == order_id
        assert points.has_earned_for_order(customer_user.id, order_id)

    @pytest.mark.parametrize("amount", [0, -3, True, 2.5])
    def test_rejects_invalid_amounts(self, points, customer_user, amount):
        with pytest.raises(InvalidPointsAmount):
            points.earn(customer_user.id, amount)

    def test_balances_are_per_user(self, points, customer_user, business_user):
        points.earn(customer_user.id, 10)
        points.earn(business_user.id, 3)
        assert points.get_balance(customer_user.id) == 10
        assert points.get_balance(business_user.id) == 3


class TestRedeem:
    def test_redeem_appends_negative_entry(self, points, customer_user):
        points.earn(customer_user.id, 50)
        entry = points.redeem(customer_user.id, 20, reward_id=9)
        assert entry.points == -20
        assert entry.type == EntryType.REDEEM
        assert entry.reward_id == 9
        assert points.get_balance(customer_user.id) == 30

    def test_cannot_overdraw(self, points, customer_user):
        points.earn(customer_user.id, 5)
        with pytest.raises(InsufficientPoints):
            points.redeem(customer_user.id, 6)
        assert points.get_balance(customer_user.id) == 5

    def test_redeem_checks_ledger_not_cache(self, points, customer_user):
        points.earn(customer_user.id, 5)
        PointsBalance.objects.filter(user=customer_user).update(total_points=500)
        with pytest.raises(InsufficientPoints):
            points.redeem(customer_user.id, 100)


class TestBalanceRepair:
    def test_ledger_wins_over_drifted_cache(self, points, customer_user):
        points.earn(customer_user.id, 12)
        PointsBalance.objects.filter(user=customer_user).update(total_points=999)

        assert points.get_balance(customer_user.id) == 12
        assert PointsBalance.objects.get(user=customer_user).total_points == 12

    def test_missing_cache_row_is_rebuilt(self, points, customer_user):
        points.earn(customer_user.id, 8)
        PointsBalance.objects.filter(user=customer_user).delete()

        assert points.get_balance(customer_user.id) == 8
        assert PointsBalance.objects.get(user=customer_user).total_points == 8

    def test_user_without_entries(self, points, customer_user):
        assert points.get_balance(customer_user.id) == 0
        assert not PointsBalance.objects.filter(user=customer_user).exists()


class TestLedgerImmutability:
    def test_entry_cannot_be_updated(self, points, customer_user):
        entry = points.earn(customer_user.id, 10)
        entry.points = 1000
        with pytest.raises(LedgerEntryImmutable):
            entry.save()

    def test_entry_cannot_be_deleted(self, points, customer_user):
        entry = points.earn(customer_user.id, 10)
        with pytest.raises(LedgerEntryImmutable):
            entry.delete()

    def test_bulk_changes_are_refused(self, points, customer_user):
        points.earn(customer_user.id, 10)
        entries = PointsLedgerEntry.objects.filter(user=customer_user)
        with pytest.raises(LedgerEntryImmutable):
            entries.update(points=1)
        with pytest.raises(LedgerEntryImmutable):
            entries.delete()
        assert points.get_balance(customer_user.id) == 10


class TestLedgerListing:
    def test_newest_first_with_order_number(self, points, customer_user):
        order = Order.objects.create(order_number="202501011200001", user=customer_user)
        points.earn(customer_user.id, 5)
        points.earn(customer_user.id, 9, order_id=order.id)

        entries = points.get_ledger(customer_user.id)
        assert [e.points for e in entries] == [9, 5]
        assert entries[0].order_number == "202501011200001"
        assert entries[1].order_number is None

    def test_summary(self, points, customer_user):
        points.earn(customer_user.id, 4)
        summary = points.get_summary(customer_user.id)
        assert summary["balance"] == 4
        assert len(summary["entries"]) == 1
