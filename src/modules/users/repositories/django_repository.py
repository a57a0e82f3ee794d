"""Django ORM implementation of the role repository."""

from __future__ import annotations

from typing import Optional

import structlog
from django.contrib.auth import get_user_model

from modules.users.models import Role, UserRole
from modules.users.repositories.interfaces import IRoleRepository

logger = structlog.get_logger(__name__)


class RoleDjangoRepository(IRoleRepository):
    def get_role(self, user_id: Optional[int]) -> Role:
        if user_id is None:
            return Role.CUSTOMER
        value = (
            UserRole.objects.filter(user_id=user_id)
            .values_list("role", flat=True)
            .first()
        )
        return Role(value) if value else Role.CUSTOMER

    def is_admin(self, user_id: Optional[int]) -> bool:
        if user_id is None:
            return False
        if self.get_role(user_id) == Role.ADMIN:
            return True
        return get_user_model().objects.filter(id=user_id, is_staff=True).exists()

    def user_exists(self, user_id: int) -> bool:
        return get_user_model().objects.filter(id=user_id).exists()

    def assign(self, user_id: int, role: Role) -> Role:
        UserRole.objects.update_or_create(user_id=user_id, defaults={"role": role})
        logger.info("user.role_assigned", user_id=user_id, role=str(role))
        return role
