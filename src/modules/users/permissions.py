from __future__ import annotations

from rest_framework.permissions import BasePermission

from modules.users.repositories.django_repository import RoleDjangoRepository


def is_admin_user(user) -> bool:
    """Admin check shared by permissions and views that need the flag."""
    if not user or not user.is_authenticated:
        return False
    return RoleDjangoRepository().is_admin(user.id)


class IsAdminRole(BasePermission):
    """Allows access to users holding the ``admin`` role (or Django staff)."""

    message = "Administrator role required."

    def has_permission(self, request, view) -> bool:
        return is_admin_user(request.user)
