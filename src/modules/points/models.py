"""Loyalty points: an append-only ledger plus a materialized balance.

``PointsLedgerEntry`` rows are the source of truth.  They are never
updated or deleted; corrections are new entries.  ``PointsBalance`` is a
read optimization and is reconciled against the ledger sum on read.

Orders and rewards are referenced by id only, so ledger history survives
whatever happens to them.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel
from modules.points.exceptions import LedgerEntryImmutable


class EntryType(models.TextChoices):
    EARN = "EARN", "Earn"
    REDEEM = "REDEEM", "Redeem"


class LedgerQuerySet(models.QuerySet):
    def update(self, **kwargs):
        raise LedgerEntryImmutable("Points ledger entries cannot be updated.")

    def delete(self):
        raise LedgerEntryImmutable("Points ledger entries cannot be deleted.")


class PointsLedgerEntry(BaseModel):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="points_entries",
    )
    order_id = models.UUIDField(null=True, blank=True, db_index=True)
    reward_id = models.PositiveIntegerField(null=True, blank=True)
    points = models.IntegerField()
    type = models.CharField(max_length=10, choices=EntryType.choices)

    objects = LedgerQuerySet.as_manager()

    class Meta:
        db_table = "points_ledger"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(
                fields=["user", "-created_at"], name="points_user_created_idx"
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(type=EntryType.EARN, points__gt=0)
                    | models.Q(type=EntryType.REDEEM, points__lt=0)
                ),
                name="points_ledger_sign_matches_type",
            ),
        ]

    def save(self, *args, **kwargs) -> None:
        if not self._state.adding:
            raise LedgerEntryImmutable("Points ledger entries cannot be updated.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise LedgerEntryImmutable("Points ledger entries cannot be deleted.")

    def __str__(self) -> str:
        return f"{self.type} {self.points:+d} (user {self.user_id})"


class PointsBalance(BaseModel):
    """Materialized per-user point total."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="points_balance",
    )
    total_points = models.IntegerField(default=0)

    class Meta:
        db_table = "user_points_balance"

    def __str__(self) -> str:
        return f"user {self.user_id}: {self.total_points}"
