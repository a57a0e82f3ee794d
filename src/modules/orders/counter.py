"""Order number allocation.

``order_number`` = ``YYYYMMDDHHMM`` (local time) + a per-minute sequence
padded to three digits, e.g. ``202403151230007``.

The sequence comes from ``AtomicCounter``: one upsert statement that
creates the bucket row with value 1 or increments it, and returns the
new value in the same round trip.  Two concurrent transactions in the
same minute can never read the same value.  Database errors propagate;
order creation fails rather than inventing a number.
"""

from __future__ import annotations

from typing import Optional

import structlog
from django.db import connections
from django.utils import timezone

from modules.orders.models import OrderCounter

logger = structlog.get_logger(__name__)

SEQUENCE_WIDTH = 3


class AtomicCounter:
    """Single-statement ``insert-or-increment-and-return`` on ``order_counters``."""

    def __init__(self, using: str = "default") -> None:
        self._using = using

    def increment_and_get(self, bucket_key: str) -> int:
        connection = connections[self._using]
        table = connection.ops.quote_name(OrderCounter._meta.db_table)

        with connection.cursor() as cursor:
            if connection.vendor == "mysql":
                cursor.execute(
                    f"INSERT INTO {table} (date_key, last_value) "
                    "VALUES (%s, LAST_INSERT_ID(1)) "
                    "ON DUPLICATE KEY UPDATE "
                    "last_value = LAST_INSERT_ID(last_value + 1)",
                    [bucket_key],
                )
                cursor.execute("SELECT LAST_INSERT_ID()")
            else:
                # PostgreSQL and SQLite >= 3.35
                cursor.execute(
                    f"INSERT INTO {table} (date_key, last_value) VALUES (%s, 1) "
                    f"ON CONFLICT (date_key) DO UPDATE "
                    f"SET last_value = {table}.last_value + 1 "
                    "RETURNING last_value",
                    [bucket_key],
                )
            row = cursor.fetchone()

        return int(row[0])


def current_bucket() -> str:
    return timezone.localtime().strftime("%Y%m%d%H%M")


def next_order_number(
    bucket_key: Optional[str] = None,
    counter: Optional[AtomicCounter] = None,
) -> str:
    """Allocate the next order number; call inside the creation transaction."""
    bucket_key = bucket_key or current_bucket()
    value = (counter or AtomicCounter()).increment_and_get(bucket_key)
    order_number = f"{bucket_key}{str(value).zfill(SEQUENCE_WIDTH)}"
    logger.debug("order.number_allocated", bucket=bucket_key, order_number=order_number)
    return order_number
