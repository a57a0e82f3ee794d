"""Points DRF serializers (read only)."""

from __future__ import annotations

from rest_framework import serializers

from modules.points.models import PointsLedgerEntry


class LedgerEntrySerializer(serializers.ModelSerializer):
    """A ledger entry with the number of the order that produced it."""

    order_number = serializers.CharField(read_only=True, default=None)

    class Meta:
        model = PointsLedgerEntry
        fields = [
            "id",
            "type",
            "points",
            "order_id",
            "order_number",
            "reward_id",
            "created_at",
        ]
        read_only_fields = fields


class BalanceSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()
    balance = serializers.IntegerField()


class PointsSummarySerializer(BalanceSerializer):
    entries = LedgerEntrySerializer(many=True)
