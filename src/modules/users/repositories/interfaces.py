"""Role repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from modules.users.models import Role


class IRoleRepository(ABC):
    """Resolves the commercial role of a user as an explicit ``Role`` value."""

    @abstractmethod
    def get_role(self, user_id: Optional[int]) -> Role:
        """Return the user's role; anonymous or unassigned users are customers."""

    @abstractmethod
    def is_admin(self, user_id: Optional[int]) -> bool:
        """``True`` for the ``admin`` role or Django staff accounts."""

    @abstractmethod
    def user_exists(self, user_id: int) -> bool:
        """Check that a user account exists."""

    @abstractmethod
    def assign(self, user_id: int, role: Role) -> Role:
        """Create or replace the role assignment of a user."""
