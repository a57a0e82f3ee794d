"""Points repositories package."""

from modules.points.repositories.django_repository import PointsDjangoRepository
from modules.points.repositories.interfaces import IPointsRepository

__all__ = ["IPointsRepository", "PointsDjangoRepository"]
