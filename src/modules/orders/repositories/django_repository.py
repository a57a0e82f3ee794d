"""Django ORM implementation of the Order repository.

All writes join the caller's transaction (``OrderService`` methods are
``transaction.atomic``).  Concurrency control on order mutations uses
``select_for_update()``; stock is handled by the product repository.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import DecimalField, Sum
from django.db.models.functions import Coalesce

from modules.core.exceptions import BadRequest
from modules.core.models import OutboxEvent
from modules.orders.constants import OrderStatus
from modules.orders.filters import OrderFilter
from modules.orders.models import Order, OrderAddress, OrderLine, OrderPayment
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

ORDERS_TOPIC = "orders"
POINTS_TOPIC = "points"
POINTS_ACCRUAL_EVENT = "PointsAccrualRequested"
ZERO = Decimal("0.00")
MONEY = DecimalField(max_digits=14, decimal_places=2)


def _with_relations(queryset):
    return queryset.select_related("user").prefetch_related(
        "lines", "addresses", "payments"
    )


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(
        self,
        order: Order,
        lines: Sequence[OrderLine],
        addresses: Sequence[OrderAddress] = (),
        payments: Sequence[OrderPayment] = (),
    ) -> Order:
        """Insert the order, then its lines, addresses and payments.

        ``total_amount`` is the sum of line totals; payments without an
        explicit amount receive the order total.
        """
        order.save()

        total = ZERO
        for line in lines:
            line.order = order
            line.save()
            total += line.total_price

        for address in addresses:
            address.order = order
            address.save()

        for payment in payments:
            payment.order = order
            if payment.amount is None:
                payment.amount = total
            payment.save()

        order.total_amount = total
        order.save(update_fields=["total_amount"])

        logger.info(
            "order.persisted",
            order_id=str(order.id),
            line_count=len(lines),
            address_count=len(addresses),
            payment_count=len(payments),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Order with eager-loaded user, lines, addresses and payments.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return _with_relations(Order.objects.filter(id=id)).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        try:
            return (
                _with_relations(Order.objects.select_for_update(of=("self",)))
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    # ------------------------------------------------------------------
    # Save (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist the order and flush its domain events into the outbox."""
        entity.save()

        events = entity.domain_events
        for event in events:
            OutboxEvent.objects.create(
                event_type=event.event_name,
                aggregate_id=str(event.aggregate_id),
                payload=event.to_payload(),
                topic=ORDERS_TOPIC,
            )
        entity.clear_domain_events()

        logger.info("order.saved", order_id=str(entity.id), event_count=len(events))
        return entity

    # ------------------------------------------------------------------
    # Lines
    # ------------------------------------------------------------------

    def get_line(self, order_id: Any, line_id: Any) -> Optional[OrderLine]:
        try:
            return OrderLine.objects.filter(order_id=order_id, id=line_id).first()
        except (ValueError, ValidationError):
            return None

    def find_line_for_product(
        self, order_id: Any, product_id: Any
    ) -> Optional[OrderLine]:
        return OrderLine.objects.filter(
            order_id=order_id, product_id=product_id
        ).first()

    def count_lines(self, order_id: Any) -> int:
        return OrderLine.objects.filter(order_id=order_id).count()

    def save_line(self, line: OrderLine) -> OrderLine:
        line.save()
        return line

    def delete_line(self, line: OrderLine) -> None:
        line.delete()

    def recalculate_totals(self, order: Order) -> Decimal:
        total = OrderLine.objects.filter(order_id=order.id).aggregate(
            total=Coalesce(Sum("total_price"), ZERO, output_field=MONEY)
        )["total"]
        total = Decimal(total).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        order.total_amount = total

        first_payment = (
            OrderPayment.objects.filter(order_id=order.id)
            .order_by("created_at", "id")
            .first()
        )
        if first_payment is not None:
            first_payment.amount = total
            first_payment.save(update_fields=["amount"])
        return total

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_for_user(self, user_id: int, limit: int) -> List[Order]:
        queryset = _with_relations(Order.objects.filter(user_id=user_id))
        return list(queryset.order_by("-created_at", "-id")[:limit])

    def find_page(
        self,
        page: int,
        limit: int,
        ordering: Sequence[str],
        filters: Optional[Dict[str, Any]] = None,
    ) -> Tuple[List[Order], int]:
        queryset = Order.objects.all()
        if filters:
            filterset = OrderFilter(data=filters, queryset=queryset)
            if not filterset.is_valid():
                raise BadRequest(f"Invalid filters: {dict(filterset.errors)}")
            queryset = filterset.qs

        total = queryset.count()
        offset = (page - 1) * limit
        rows = list(
            _with_relations(queryset.order_by(*ordering))[offset : offset + limit]
        )
        return rows, total

    def total_billed_for_user(self, user_id: int) -> Decimal:
        queryset = Order.objects.filter(user_id=user_id).exclude(
            status=OrderStatus.CANCELLED
        )
        return queryset.aggregate(
            total=Coalesce(Sum("total_amount"), ZERO, output_field=MONEY)
        )["total"]

    # ------------------------------------------------------------------
    # Deferred side effects
    # ------------------------------------------------------------------

    def enqueue_points_accrual(self, order: Order, points: int) -> None:
        OutboxEvent.objects.create(
            event_type=POINTS_ACCRUAL_EVENT,
            aggregate_id=str(order.id),
            topic=POINTS_TOPIC,
            payload={
                "order_id": str(order.id),
                "order_number": order.order_number,
                "user_id": order.user_id,
                "points": points,
            },
        )
        logger.info(
            "order.points_accrual_enqueued", order_id=str(order.id), points=points
        )
