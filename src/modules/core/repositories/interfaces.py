"""Generic repository interface.

``IRepository[T]`` is the root contract every aggregate repository
extends.  Services receive repositories through their constructor and
never touch the ORM directly; transaction boundaries are declared on the
service methods (``transaction.atomic``) and repositories join them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """Base generic repository contract.

    ``T`` is the aggregate root managed by the repository
    (e.g. ``Order``, ``Product``).
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve an aggregate by primary key, ``None`` when missing."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Persist (create or update) an aggregate."""
