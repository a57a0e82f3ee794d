"""Points domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import BadRequest, Conflict


class LedgerEntryImmutable(Conflict):
    """Ledger entries are append-only."""


class InvalidPointsAmount(BadRequest):
    """Point amounts must be positive integers."""


class InsufficientPoints(BadRequest):
    """The user's balance does not cover the redemption."""
