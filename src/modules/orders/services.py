"""Order service layer (Use Cases).

Orchestrates order creation, line edits, status changes and cancellation.
Every write is ``transaction.atomic``: the service defines the
unit-of-work boundary, so a failed stock reservation rolls back the whole
order, its number and any reservation made before it.

Business rules enforced:
- Products must exist and be active; stock is reserved atomically.
- Unit prices are snapshotted per buyer (role, special price).
- Lines change only while the order is pending or accepted, by its owner
  or an admin; the last line cannot be removed.
- Status transitions follow ``VALID_TRANSITIONS``; delivery and
  cancellation fields must match the target status.
- Cancelling returns the reserved stock.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

import structlog
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from modules.core.exceptions import BadRequest
from modules.orders.constants import SORTABLE_FIELDS, USER_ORDERS_LIMIT, OrderStatus
from modules.orders.counter import next_order_number
from modules.orders.dtos import UpdateOrderDTO
from modules.orders.events import (
    OrderCancelled,
    OrderCreated,
    OrderLinesChanged,
    OrderStatusChanged,
)
from modules.orders.exceptions import (
    InvalidOrderStatus,
    InvalidOrderUpdate,
    LastOrderLine,
    MissingOrderUser,
    OrderAccessDenied,
    OrderLineNotFound,
    OrderNotFound,
)
from modules.orders.guards import StockGuard, ensure_can_modify, ensure_sellable
from modules.orders.models import Order, OrderAddress, OrderLine, OrderPayment

if TYPE_CHECKING:
    from modules.orders.counter import AtomicCounter
    from modules.orders.dtos import (
        AddOrderLineDTO,
        CreateOrderDTO,
        UpdateOrderLineDTO,
    )
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.points.services import PointsService
    from modules.products.pricing import PricingEngine
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)

DEFAULT_ORDERING = ("-created_at", "-id")


class OrderService:
    """Application service for Order use-cases.

    Receives repositories and collaborators via constructor injection.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        pricing: PricingEngine,
        points_service: PointsService,
        counter: Optional[AtomicCounter] = None,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._pricing = pricing
        self._points = points_service
        self._stock = StockGuard(product_repository)
        self._counter = counter

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO) -> Order:
        """Create an order, reserving stock and snapshotting prices.

        Steps:
        1. Load every product and check it is active.
        2. Reserve stock (product id order, so concurrent orders lock alike).
        3. Price each line for the buyer and allocate the order number.
        4. Persist order, lines, addresses and payments; total = sum of lines.
        5. Accrue ``points_earned``; a failure there never fails the order.

        Raises:
            MissingOrderUser: no buyer on the request.
            ProductNotFound / ProductUnavailable: a line's product.
            InsufficientStock: not enough stock for a line.
        """
        if dto.user_id is None:
            raise MissingOrderUser("Orders require an authenticated user.")

        log = logger.bind(user_id=dto.user_id)
        log.info("order.creation_started", line_count=len(dto.lines))

        products = self._product_repo.get_many(line.product_id for line in dto.lines)
        for line_dto in dto.lines:
            ensure_sellable(products.get(line_dto.product_id), line_dto.product_id)

        self._stock.reserve_all(
            (line_dto.product_id, line_dto.quantity) for line_dto in dto.lines
        )

        prices = self._pricing.unit_prices(products.values(), dto.user_id)
        lines = []
        for line_dto in dto.lines:
            product = products[line_dto.product_id]
            lines.append(
                OrderLine(
                    product=product,
                    product_name=product.name,
                    quantity=line_dto.quantity,
                    unit_price=prices[product.id],
                )
            )

        order = Order(
            order_number=next_order_number(counter=self._counter),
            user_id=dto.user_id,
            status=OrderStatus.PENDING,
            currency=dto.currency or settings.DEFAULT_CURRENCY,
            earned_points=dto.points_earned,
        )
        addresses = [OrderAddress(**address.model_dump()) for address in dto.addresses]
        payments = [OrderPayment(**payment.model_dump()) for payment in dto.payments]
        order = self._order_repo.create(order, lines, addresses, payments)

        order.add_domain_event(
            OrderCreated(
                aggregate_id=order.id,
                order_number=order.order_number,
                user_id=order.user_id,
                total_amount=order.total_amount,
                line_count=len(lines),
            )
        )
        self._order_repo.save(order)

        log.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            total_amount=str(order.total_amount),
        )

        if dto.points_earned > 0:
            self._accrue_points(order, dto.points_earned)

        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def add_order_line(
        self,
        order_id: Any,
        dto: AddOrderLineDTO,
        acting_user_id: Optional[int] = None,
        is_admin: bool = False,
    ) -> Order:
        """Add a product; an existing line for it absorbs the quantity.

        A new line is priced for the order's owner, not the acting user.
        """
        order = self._load_for_mutation(order_id, acting_user_id, is_admin)
        product = ensure_sellable(
            self._product_repo.get_by_id(str(dto.product_id)), dto.product_id
        )
        self._stock.reserve(product.id, dto.quantity)

        line = self._order_repo.find_line_for_product(order.id, product.id)
        if line is not None:
            line.quantity += dto.quantity
            change = "line_merged"
        else:
            line = OrderLine(
                order=order,
                product=product,
                product_name=product.name,
                quantity=dto.quantity,
                unit_price=self._pricing.unit_price_for(product, order.user_id),
            )
            change = "line_added"
        self._order_repo.save_line(line)

        return self._lines_changed(order, change, line)

    @transaction.atomic
    def update_order_line(
        self,
        order_id: Any,
        line_id: Any,
        dto: UpdateOrderLineDTO,
        acting_user_id: Optional[int] = None,
        is_admin: bool = False,
    ) -> Order:
        """Set a line's quantity, reserving or releasing the difference."""
        order = self._load_for_mutation(order_id, acting_user_id, is_admin)
        line = self._get_line(order, line_id)

        delta = dto.quantity - line.quantity
        if delta == 0:
            return self._order_repo.get_by_id(str(order.id)) or order
        if delta > 0:
            ensure_sellable(
                self._product_repo.get_by_id(str(line.product_id)), line.product_id
            )
            self._stock.reserve(line.product_id, delta)
        else:
            self._stock.release(line.product_id, -delta)

        line.quantity = dto.quantity
        self._order_repo.save_line(line)
        return self._lines_changed(order, "line_updated", line)

    @transaction.atomic
    def remove_order_line(
        self,
        order_id: Any,
        line_id: Any,
        acting_user_id: Optional[int] = None,
        is_admin: bool = False,
    ) -> Order:
        """Delete a line and return its stock.

        Raises:
            LastOrderLine: it is the only line left, whoever asks.
        """
        order = self._load_for_mutation(order_id, acting_user_id, is_admin)
        line = self._get_line(order, line_id)
        if self._order_repo.count_lines(order.id) <= 1:
            raise LastOrderLine(
                "An order must keep at least one line; cancel it instead."
            )

        self._stock.release(line.product_id, line.quantity)
        self._order_repo.delete_line(line)
        return self._lines_changed(order, "line_removed", line)

    @transaction.atomic
    def update_order(self, order_id: Any, dto: UpdateOrderDTO) -> Order:
        """Apply a status / metadata patch (admin).

        ``delivery_date`` only accompanies ``delivered`` and is required by
        it; ``cancellation_reason`` and ``cancellation_date`` only accompany
        ``cancelled``, which requires a reason.  The cancellation date
        defaults to now.  Cancelling releases the stock of every line.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: transition is not allowed.
            InvalidOrderUpdate: fields do not match the target status.
        """
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(order_id=str(order.id))
        provided = dto.model_fields_set
        target = dto.status if "status" in provided else None
        self._check_pairing(dto, provided, target)

        old_status = order.status
        transition = target is not None and target != old_status
        if target is not None and not transition and order.is_terminal:
            raise InvalidOrderStatus(f"Order is already {old_status}.")
        if transition and not order.can_transition_to(target):
            log.warning(
                "order.invalid_transition", from_status=old_status, to_status=target
            )
            raise InvalidOrderStatus(
                f"Cannot transition from '{old_status}' to '{target}'."
            )
        if "currency" in provided and dto.currency and not order.is_editable:
            raise InvalidOrderUpdate(
                f"Currency cannot change once the order is {order.status}."
            )

        if transition:
            order.status = target
            if target == OrderStatus.DELIVERED:
                order.delivery_date = dto.delivery_date
            elif target == OrderStatus.CANCELLED:
                order.cancellation_reason = dto.cancellation_reason.strip()
                order.cancellation_date = dto.cancellation_date or timezone.now()
                self._stock.release_all(
                    (line.product_id, line.quantity) for line in order.lines.all()
                )
                order.add_domain_event(
                    OrderCancelled(
                        aggregate_id=order.id, reason=order.cancellation_reason
                    )
                )
            order.add_domain_event(
                OrderStatusChanged(
                    aggregate_id=order.id, old_status=old_status, new_status=target
                )
            )

        if "currency" in provided and dto.currency:
            order.currency = dto.currency.upper()
        if "invoice_file_url" in provided:
            order.invoice_file_url = dto.invoice_file_url or ""

        self._order_repo.save(order)
        log.info("order.updated", old_status=old_status, new_status=order.status)
        return self._order_repo.get_by_id(str(order.id)) or order

    def cancel_order(
        self,
        order_id: Any,
        reason: str,
        acting_user_id: Optional[int] = None,
        is_admin: bool = True,
    ) -> Order:
        """Cancel with a reason; the owner may cancel their own order."""
        if not is_admin:
            order = self.get_order(order_id)
            if acting_user_id is None or order.user_id != acting_user_id:
                raise OrderAccessDenied(
                    f"Not allowed to cancel order {order.order_number}."
                )
        return self.update_order(
            order_id,
            UpdateOrderDTO(status=OrderStatus.CANCELLED, cancellation_reason=reason),
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: Any) -> Order:
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_user_orders(self, user_id: int) -> List[Order]:
        """Newest first, capped at ``USER_ORDERS_LIMIT``."""
        return self._order_repo.list_for_user(user_id, USER_ORDERS_LIMIT)

    def find_all_paginated(
        self,
        page: int = 1,
        limit: int = 20,
        sort_field: Optional[str] = None,
        sort_direction: Optional[str] = None,
        filters: Optional[Dict[str, Any]] = None,
    ) -> Tuple[List[Order], int]:
        """Admin listing.  Unknown sort fields fall back to newest first."""
        if page < 1 or limit < 1:
            raise BadRequest("page and limit must be positive integers.")
        limit = min(limit, settings.ORDERS_MAX_PAGE_SIZE)
        return self._order_repo.find_page(
            page, limit, self._ordering(sort_field, sort_direction), filters
        )

    def total_billed_for_user(self, user_id: int) -> Decimal:
        """Sum of the user's non-cancelled orders."""
        return self._order_repo.total_billed_for_user(user_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load_for_mutation(
        self, order_id: Any, acting_user_id: Optional[int], is_admin: bool
    ) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        ensure_can_modify(order, acting_user_id, is_admin)
        return order

    def _get_line(self, order: Order, line_id: Any) -> OrderLine:
        line = self._order_repo.get_line(order.id, line_id)
        if not line:
            raise OrderLineNotFound(
                f"Line {line_id} not found in order {order.order_number}."
            )
        return line

    def _lines_changed(self, order: Order, change: str, line: OrderLine) -> Order:
        self._order_repo.recalculate_totals(order)
        order.add_domain_event(
            OrderLinesChanged(
                aggregate_id=order.id,
                change=change,
                line_id=str(line.id),
                total_amount=order.total_amount,
            )
        )
        self._order_repo.save(order)
        logger.info(
            "order.lines_changed",
            order_id=str(order.id),
            change=change,
            total_amount=str(order.total_amount),
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    @staticmethod
    def _check_pairing(
        dto: UpdateOrderDTO, provided: set, target: Optional[str]
    ) -> None:
        if dto.delivery_date is not None and target != OrderStatus.DELIVERED:
            raise InvalidOrderUpdate(
                "delivery_date can only be set together with status 'delivered'."
            )
        if target == OrderStatus.DELIVERED and dto.delivery_date is None:
            raise InvalidOrderUpdate("Status 'delivered' requires a delivery_date.")

        cancellation_fields = {"cancellation_reason", "cancellation_date"} & provided
        if cancellation_fields and target != OrderStatus.CANCELLED:
            raise InvalidOrderUpdate(
                "Cancellation fields can only be set together with "
                "status 'cancelled'."
            )
        reason = (dto.cancellation_reason or "").strip()
        if target == OrderStatus.CANCELLED and not reason:
            raise InvalidOrderUpdate(
                "Status 'cancelled' requires a cancellation_reason."
            )

    @staticmethod
    def _ordering(sort_field: Optional[str], sort_direction: Optional[str]) -> Tuple:
        field = SORTABLE_FIELDS.get(sort_field or "")
        if field is None:
            return DEFAULT_ORDERING
        prefix = "" if (sort_direction or "").lower() == "asc" else "-"
        return (f"{prefix}{field}", f"{prefix}id")

    def _accrue_points(self, order: Order, points: int) -> None:
        """Best-effort accrual in a savepoint.

        On failure the order stands and the accrual is parked in the outbox
        for ``points.retry_pending_accruals``.
        """
        try:
            with transaction.atomic():
                self._points.earn(order.user_id, points, order_id=order.id)
        except Exception:
            logger.exception(
                "order.points_accrual_failed",
                order_id=str(order.id),
                user_id=order.user_id,
                points=points,
            )
        else:
            return

        try:
            with transaction.atomic():
                self._order_repo.enqueue_points_accrual(order, points)
        except Exception:
            logger.exception(
                "order.points_accrual_enqueue_failed", order_id=str(order.id)
            )
