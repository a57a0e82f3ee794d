"""Order repository interface.

Extends ``IRepository[Order]`` with the child-row operations the Order
aggregate needs (lines, addresses, payments), totals recomputation and
the read models used by the API.

The Service Layer depends exclusively on this contract.
"""

from __future__ import annotations

from abc import abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderAddress, OrderLine, OrderPayment


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    ``save`` also flushes the aggregate's pending domain events into the
    outbox, in the caller's transaction.
    """

    @abstractmethod
    def create(
        self,
        order: Order,
        lines: Sequence[OrderLine],
        addresses: Sequence[OrderAddress] = (),
        payments: Sequence[OrderPayment] = (),
    ) -> Order:
        """Insert an order with all its child rows and compute totals."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE)."""

    # ---- Lines ----

    @abstractmethod
    def get_line(self, order_id: Any, line_id: Any) -> Optional[OrderLine]:
        """A line of the given order, ``None`` otherwise."""

    @abstractmethod
    def find_line_for_product(
        self, order_id: Any, product_id: Any
    ) -> Optional[OrderLine]:
        """The line holding ``product_id`` in the order, if any."""

    @abstractmethod
    def count_lines(self, order_id: Any) -> int:
        """Number of lines currently in the order."""

    @abstractmethod
    def save_line(self, line: OrderLine) -> OrderLine:
        """Insert or update a line (``total_price`` recomputed on save)."""

    @abstractmethod
    def delete_line(self, line: OrderLine) -> None:
        """Remove a line."""

    @abstractmethod
    def recalculate_totals(self, order: Order) -> Decimal:
        """Set ``total_amount`` (and the first payment amount) from the lines."""

    # ---- Queries ----

    @abstractmethod
    def list_for_user(self, user_id: int, limit: int) -> List[Order]:
        """Orders of a user, newest first."""

    @abstractmethod
    def find_page(
        self,
        page: int,
        limit: int,
        ordering: Sequence[str],
        filters: Optional[Dict[str, Any]] = None,
    ) -> Tuple[List[Order], int]:
        """One page of orders in ``ordering`` plus the total count."""

    @abstractmethod
    def total_billed_for_user(self, user_id: int) -> Decimal:
        """Sum of ``total_amount`` over the user's non-cancelled orders."""

    @abstractmethod
    def enqueue_points_accrual(self, order: Order, points: int) -> None:
        """Park a failed point accrual in the outbox for the retry task."""
