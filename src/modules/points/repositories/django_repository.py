"""Django ORM implementation of the points repository."""

from __future__ import annotations

from typing import Any, List, Optional

import structlog
from django.db import IntegrityError, transaction
from django.db.models import F, OuterRef, Subquery, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from modules.orders.models import Order
from modules.points.models import EntryType, PointsBalance, PointsLedgerEntry
from modules.points.repositories.interfaces import IPointsRepository

logger = structlog.get_logger(__name__)


class PointsDjangoRepository(IPointsRepository):
    def append(
        self,
        user_id: int,
        points: int,
        type: EntryType,
        order_id: Optional[Any] = None,
        reward_id: Optional[int] = None,
    ) -> PointsLedgerEntry:
        entry = PointsLedgerEntry(
            user_id=user_id,
            points=points,
            type=type,
            order_id=order_id,
            reward_id=reward_id,
        )
        entry.save()
        return entry

    def has_order_entry(self, user_id: int, order_id: Any, type: EntryType) -> bool:
        return PointsLedgerEntry.objects.filter(
            user_id=user_id, order_id=order_id, type=type
        ).exists()

    def ledger_sum(self, user_id: int) -> int:
        return PointsLedgerEntry.objects.filter(user_id=user_id).aggregate(
            total=Coalesce(Sum("points"), 0)
        )["total"]

    def list_entries(
        self, user_id: int, limit: Optional[int] = None
    ) -> List[PointsLedgerEntry]:
        order_number = Order.objects.filter(id=OuterRef("order_id")).values(
            "order_number"
        )[:1]
        queryset = (
            PointsLedgerEntry.objects.filter(user_id=user_id)
            .annotate(order_number=Subquery(order_number))
            .order_by("-created_at", "-id")
        )
        if limit is not None:
            queryset = queryset[:limit]
        return list(queryset)

    def lock_balance(self, user_id: int) -> int:
        balance, _ = PointsBalance.objects.select_for_update().get_or_create(
            user_id=user_id
        )
        return balance.total_points

    def get_cached_balance(self, user_id: int) -> Optional[int]:
        return (
            PointsBalance.objects.filter(user_id=user_id)
            .values_list("total_points", flat=True)
            .first()
        )

    def increment_balance(self, user_id: int, delta: int) -> None:
        updated = PointsBalance.objects.filter(user_id=user_id).update(
            total_points=F("total_points") + delta, updated_at=timezone.now()
        )
        if updated:
            return
        try:
            with transaction.atomic():
                PointsBalance.objects.create(user_id=user_id, total_points=delta)
        except IntegrityError:
            # created concurrently
            PointsBalance.objects.filter(user_id=user_id).update(
                total_points=F("total_points") + delta, updated_at=timezone.now()
            )

    def set_cached_balance(self, user_id: int, total: int) -> None:
        PointsBalance.objects.update_or_create(
            user_id=user_id, defaults={"total_points": total}
        )
