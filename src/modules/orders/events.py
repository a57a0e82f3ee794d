"""Domain events for the Orders bounded context.

Flushed into ``OutboxEvent`` (topic ``orders``) by the order repository.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    order_number: str = ""
    user_id: Optional[int] = None
    total_amount: Decimal = Decimal("0.00")
    line_count: int = 0


@dataclass(frozen=True)
class OrderLinesChanged(DomainEvent):
    """A line was added, re-quantified or removed."""

    change: str = ""
    line_id: Optional[str] = None
    total_amount: Decimal = Decimal("0.00")


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    old_status: str = ""
    new_status: str = ""


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    reason: str = ""
