"""Points service layer.

Balance = sum of the ledger.  The materialized ``PointsBalance`` row is
kept in step with every append and repaired on read if it drifted.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Optional

import structlog
from django.db import transaction

from modules.points.exceptions import InsufficientPoints, InvalidPointsAmount
from modules.points.models import EntryType

if TYPE_CHECKING:
    from modules.points.models import PointsLedgerEntry
    from modules.points.repositories.interfaces import IPointsRepository

logger = structlog.get_logger(__name__)


def _ensure_positive(points: int) -> None:
    if not isinstance(points, int) or isinstance(points, bool) or points <= 0:
        raise InvalidPointsAmount("Points must be a positive integer.")


class PointsService:
    def __init__(self, repository: IPointsRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def earn(
        self, user_id: int, points: int, order_id: Optional[Any] = None
    ) -> PointsLedgerEntry:
        """Append an EARN entry and add it to the materialized balance."""
        _ensure_positive(points)
        entry = self._repo.append(user_id, points, EntryType.EARN, order_id=order_id)
        self._repo.increment_balance(user_id, points)
        logger.info(
            "points.earned",
            user_id=user_id,
            points=points,
            order_id=str(order_id) if order_id else None,
        )
        return entry

    @transaction.atomic
    def redeem(
        self, user_id: int, points: int, reward_id: Optional[int] = None
    ) -> PointsLedgerEntry:
        """Append a REDEEM entry if the ledger covers it.

        The balance row is locked first so two redemptions cannot both
        pass the check.

        Raises:
            InsufficientPoints: the ledger sum is below ``points``.
        """
        _ensure_positive(points)
        self._repo.lock_balance(user_id)
        available = self._repo.ledger_sum(user_id)
        if available < points:
            logger.warning(
                "points.insufficient",
                user_id=user_id,
                requested=points,
                available=available,
            )
            raise InsufficientPoints(
                f"Requested {points} points but only {available} available."
            )
        entry = self._repo.append(
            user_id, -points, EntryType.REDEEM, reward_id=reward_id
        )
        self._repo.increment_balance(user_id, -points)
        logger.info(
            "points.redeemed", user_id=user_id, points=points, reward_id=reward_id
        )
        return entry

    def has_earned_for_order(self, user_id: int, order_id: Any) -> bool:
        return self._repo.has_order_entry(user_id, order_id, EntryType.EARN)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @transaction.atomic
    def get_balance(self, user_id: int) -> int:
        total = self._repo.ledger_sum(user_id)
        cached = self._repo.get_cached_balance(user_id)
        if cached != total and not (cached is None and total == 0):
            logger.warning(
                "points.balance_drift", user_id=user_id, cached=cached, ledger=total
            )
            self._repo.set_cached_balance(user_id, total)
        return total

    def get_ledger(
        self, user_id: int, limit: Optional[int] = None
    ) -> List[PointsLedgerEntry]:
        return self._repo.list_entries(user_id, limit=limit)

    def get_summary(self, user_id: int) -> dict:
        return {
            "balance": self.get_balance(user_id),
            "entries": self.get_ledger(user_id),
        }
