"""Points API views: the authenticated user's balance and ledger."""

from __future__ import annotations

from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.points.repositories import PointsDjangoRepository
from modules.points.serializers import (
    BalanceSerializer,
    LedgerEntrySerializer,
    PointsSummarySerializer,
)
from modules.points.services import PointsService


class MyPointsViewSet(ViewSet):
    permission_classes = [IsAuthenticated]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = PointsService(PointsDjangoRepository())

    def list(self, request: Request) -> Response:
        """GET /api/v1/points/me/"""
        summary = self._service.get_summary(request.user.id)
        return Response(
            PointsSummarySerializer({"user_id": request.user.id, **summary}).data
        )

    @action(detail=False, methods=["get"])
    def balance(self, request: Request) -> Response:
        """GET /api/v1/points/me/balance/"""
        balance = self._service.get_balance(request.user.id)
        return Response(
            BalanceSerializer({"user_id": request.user.id, "balance": balance}).data
        )

    @action(detail=False, methods=["get"])
    def ledger(self, request: Request) -> Response:
        """GET /api/v1/points/me/ledger/"""
        entries = self._service.get_ledger(request.user.id)
        return Response(LedgerEntrySerializer(entries, many=True).data)
