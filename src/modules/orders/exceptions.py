"""Order domain exceptions.

Raised by the Service Layer when business rules are violated and
rendered by ``modules.core.exceptions.api_exception_handler``.
"""

from __future__ import annotations

from modules.core.exceptions import BadRequest, Forbidden, NotFound


class OrderNotFound(NotFound):
    """The requested order does not exist."""


class OrderLineNotFound(NotFound):
    """The line does not exist or belongs to another order."""


class OrderAccessDenied(Forbidden):
    """The acting user neither owns the order nor holds the admin role."""


class OrderNotEditable(BadRequest):
    """Lines can only change while the order is pending or accepted."""


class LastOrderLine(BadRequest):
    """Removing the only remaining line; cancel the order instead."""


class InvalidOrderStatus(BadRequest):
    """The requested status transition is not allowed."""


class InvalidOrderUpdate(BadRequest):
    """Status-dependent fields do not match the requested status."""


class MissingOrderUser(BadRequest):
    """Orders require an authenticated user; guest checkout is rejected."""
