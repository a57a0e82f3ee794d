"""User role assignment.

Authentication lives in an external service; this app only records the
commercial role that drives pricing and authorization:

- ``customer``: retail list price, VAT included (the default when no row
  exists).
- ``business``: wholesale price, VAT exclusive.
- ``admin``: back-office operator; may edit any order.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel


class Role(models.TextChoices):
    CUSTOMER = "customer", "Customer"
    BUSINESS = "business", "Business"
    ADMIN = "admin", "Admin"


class UserRole(BaseModel):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="user_role",
    )
    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.CUSTOMER,
    )

    class Meta:
        db_table = "user_roles"
        indexes = [models.Index(fields=["role"], name="user_roles_role_idx")]

    def __str__(self) -> str:
        return f"{self.user_id}: {self.role}"
