"""Order API views.

Exposes the ``OrderService`` via HTTP using a DRF ViewSet.
Domain exceptions propagate to ``api_exception_handler``; the view never
swallows them.
"""

from __future__ import annotations

from django.conf import settings
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import page_envelope
from modules.orders.dtos import (
    AddOrderLineDTO,
    CreateOrderAddressDTO,
    CreateOrderDTO,
    CreateOrderLineDTO,
    CreateOrderPaymentDTO,
    UpdateOrderDTO,
    UpdateOrderLineDTO,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    AdminOrderQuerySerializer,
    CancelOrderSerializer,
    CreateOrderSerializer,
    OrderLineInputSerializer,
    OrderListSerializer,
    OrderSerializer,
    UpdateOrderLineSerializer,
    UpdateOrderSerializer,
)
from modules.orders.services import OrderService
from modules.points.repositories import PointsDjangoRepository
from modules.points.services import PointsService
from modules.products.pricing import PricingEngine
from modules.products.repositories import (
    DiscountDjangoRepository,
    ProductDjangoRepository,
)
from modules.users.permissions import IsAdminRole, is_admin_user
from modules.users.repositories.django_repository import RoleDjangoRepository

OPEN_ACTIONS = {"create", "retrieve"}
ADMIN_ACTIONS = {"admin_list", "update", "partial_update"}


def build_order_service() -> OrderService:
    product_repository = ProductDjangoRepository()
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=product_repository,
        pricing=PricingEngine(RoleDjangoRepository(), DiscountDjangoRepository()),
        points_service=PointsService(PointsDjangoRepository()),
    )


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Does **not** extend ``ModelViewSet``: all ORM access goes through the
    service/repository layer.
    """

    queryset = Order.objects.none()
    serializer_class = OrderSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_permissions(self):
        if self.action in OPEN_ACTIONS:
            return [AllowAny()]
        if self.action in ADMIN_ACTIONS:
            return [IsAdminRole()]
        return [IsAuthenticated()]

    def get_throttles(self) -> list[BaseThrottle]:
        self.throttle_scope = "order_creation" if self.action == "create" else None
        return super().get_throttles()

    def _actor(self, request: Request) -> tuple:
        user = request.user
        if not user or not user.is_authenticated:
            return None, False
        return user.id, is_admin_user(user)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        The buyer is the authenticated user; anonymous requests get 400.
        """
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user_id, _ = self._actor(request)
        dto = CreateOrderDTO(
            user_id=user_id,
            lines=[CreateOrderLineDTO(**line) for line in data["lines"]],
            addresses=[CreateOrderAddressDTO(**a) for a in data["addresses"]],
            payments=[CreateOrderPaymentDTO(**p) for p in data["payments"]],
            currency=data.get("currency"),
            points_earned=data["points_earned"],
        )
        order = self._service.create_order(dto)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        return Response(OrderSerializer(self._service.get_order(pk)).data)

    @action(detail=False, methods=["get"], url_path="user/me")
    def me(self, request: Request) -> Response:
        """GET /api/v1/orders/user/me/ (newest first, at most 100)"""
        orders = self._service.list_user_orders(request.user.id)
        return Response(OrderSerializer(orders, many=True).data)

    @action(detail=False, methods=["get"], url_path="admin/all")
    def admin_list(self, request: Request) -> Response:
        """GET /api/v1/orders/admin/all/?page&limit&sortField&sortDirection&status"""
        params = AdminOrderQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        query = params.validated_data

        filters = {
            name: request.query_params[name]
            for name in OrderFilter.base_filters
            if request.query_params.get(name) not in (None, "")
        }
        orders, total = self._service.find_all_paginated(
            page=query["page"],
            limit=query["limit"],
            sort_field=query.get("sortField"),
            sort_direction=query.get("sortDirection"),
            filters=filters,
        )
        limit = min(query["limit"], settings.ORDERS_MAX_PAGE_SIZE)
        return Response(
            page_envelope(
                OrderListSerializer(orders, many=True).data,
                total,
                query["page"],
                limit,
            )
        )

    # ------------------------------------------------------------------
    # Status / metadata (admin)
    # ------------------------------------------------------------------

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT/PATCH /api/v1/orders/{pk}/"""
        serializer = UpdateOrderSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        order = self._service.update_order(
            pk, UpdateOrderDTO(**serializer.validated_data)
        )
        return Response(OrderSerializer(order).data)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        return self.update(request, pk)

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/  ``{"reason": "..."}``"""
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user_id, is_admin = self._actor(request)
        order = self._service.cancel_order(
            pk,
            serializer.validated_data["reason"],
            acting_user_id=user_id,
            is_admin=is_admin,
        )
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Lines (owner or admin, pending/accepted orders)
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"], url_path="lines")
    def add_line(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/lines/"""
        serializer = OrderLineInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user_id, is_admin = self._actor(request)
        order = self._service.add_order_line(
            pk,
            AddOrderLineDTO(**serializer.validated_data),
            acting_user_id=user_id,
            is_admin=is_admin,
        )
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    @action(
        detail=True,
        methods=["patch", "delete"],
        url_path=r"lines/(?P<line_id>[0-9a-fA-F-]+)",
    )
    def line(self, request: Request, pk: str | None = None, line_id=None) -> Response:
        """PATCH/DELETE /api/v1/orders/{pk}/lines/{line_id}/"""
        user_id, is_admin = self._actor(request)
        if request.method == "DELETE":
            order = self._service.remove_order_line(
                pk, line_id, acting_user_id=user_id, is_admin=is_admin
            )
            return Response(OrderSerializer(order).data)

        serializer = UpdateOrderLineSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.update_order_line(
            pk,
            line_id,
            UpdateOrderLineDTO(**serializer.validated_data),
            acting_user_id=user_id,
            is_admin=is_admin,
        )
        return Response(OrderSerializer(order).data)
