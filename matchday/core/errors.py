"""Ledger exceptions.

Raised by repositories and services, translated to HTTP responses in the
routers. Partial smart payments are not errors: they come back as a
``SettlementResult`` with ``partial=True``.
"""
from decimal import Decimal


class LedgerError(Exception):
    """Base class for ledger errors."""
    pass


class InvalidAmount(LedgerError):
    """Non-positive, non-finite or sub-cent amount."""
    pass


class InvalidScope(LedgerError):
    """Scope that cannot be used as a balance key."""
    pass


class NotFound(LedgerError):
    """Referenced player, charge or match does not exist."""

    def __init__(self, kind: str, ref: str):
        super().__init__(f"{kind} '{ref}' not found")
        self.kind = kind
        self.ref = ref


class PersistenceFailure(LedgerError):
    """The store did not acknowledge a read or write."""
    pass


class ConfirmationRequired(LedgerError):
    """
    A debt-reducing payment was submitted without choosing how to apply it
    while the player still has pending charges.
    """

    choices = ("smart", "manual")

    def __init__(self, pending_count: int, pending_total: Decimal):
        super().__init__(
            f"Player has {pending_count} pending charge(s) totalling {pending_total}; "
            "choose 'smart' or 'manual'"
        )
        self.pending_count = pending_count
        self.pending_total = pending_total


class PaymentInProgress(LedgerError):
    """Another payment for the same player and scope has not finished yet."""
    pass
