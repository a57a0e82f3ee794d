"""Points repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, List, Optional

if TYPE_CHECKING:
    from modules.points.models import EntryType, PointsLedgerEntry


class IPointsRepository(ABC):
    """Append-only ledger plus the materialized balance row."""

    @abstractmethod
    def append(
        self,
        user_id: int,
        points: int,
        type: EntryType,
        order_id: Optional[Any] = None,
        reward_id: Optional[int] = None,
    ) -> PointsLedgerEntry:
        """Insert a ledger entry (``points`` already signed)."""

    @abstractmethod
    def has_order_entry(self, user_id: int, order_id: Any, type: EntryType) -> bool:
        """Whether an entry of ``type`` already exists for the order."""

    @abstractmethod
    def ledger_sum(self, user_id: int) -> int:
        """Sum of all ledger entries of the user."""

    @abstractmethod
    def list_entries(
        self, user_id: int, limit: Optional[int] = None
    ) -> List[PointsLedgerEntry]:
        """Entries newest first, annotated with ``order_number``."""

    @abstractmethod
    def lock_balance(self, user_id: int) -> int:
        """Lock (creating if needed) the balance row and return its value."""

    @abstractmethod
    def get_cached_balance(self, user_id: int) -> Optional[int]:
        """Materialized balance, ``None`` when no row exists."""

    @abstractmethod
    def increment_balance(self, user_id: int, delta: int) -> None:
        """Atomically add ``delta`` to the materialized balance."""

    @abstractmethod
    def set_cached_balance(self, user_id: int, total: int) -> None:
        """Overwrite the materialized balance."""
