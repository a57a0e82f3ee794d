"""Role repositories package."""

from modules.users.repositories.django_repository import RoleDjangoRepository
from modules.users.repositories.interfaces import IRoleRepository

__all__ = ["IRoleRepository", "RoleDjangoRepository"]
