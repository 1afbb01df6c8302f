"""
PaymentService - how an operator's "pay" / "add debt" actions reach the ledger.

A debt-reducing payment for a player with pending charges must say how it
is applied: ``smart`` (clear oldest charges first) or ``manual`` (only the
manual balance). Without a choice it is refused with ConfirmationRequired.

Only one payment per player and scope runs at a time in this process, so a double
submitted request is rejected instead of being applied twice.
"""

import logging
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Optional, Set, Tuple

from matchday.core.errors import ConfirmationRequired, PaymentInProgress
from matchday.core.money import ZERO, to_positive_money
from matchday.services.ledger_service import DebtLedger, SettlementResult
from matchday.utils.validation import validate_scope

logger = logging.getLogger(__name__)

SMART = "smart"
MANUAL = "manual"

_in_flight: Set[Tuple[str, Optional[str]]] = set()


@asynccontextmanager
async def exclusive_payment(player_id: str, scope: Optional[str] = None):
    """Reject overlapping payments for the same player and scope."""
    key = (player_id, scope)
    if key in _in_flight:
        raise PaymentInProgress(
            f"A payment for player '{player_id}' (scope={scope}) is already being processed"
        )
    _in_flight.add(key)
    try:
        yield
    finally:
        _in_flight.discard(key)


class PaymentService:
    def __init__(self, ledger: DebtLedger):
        self.ledger = ledger

    async def record_payment(
        self,
        player_id: str,
        amount: Decimal,
        scope: Optional[str] = None,
        mode: Optional[str] = None
    ) -> SettlementResult:
        amount = to_positive_money(amount)
        scope = validate_scope(scope)
        if mode not in (None, SMART, MANUAL):
            raise ValueError(f"Unknown payment mode: {mode!r}")

        async with exclusive_payment(player_id, scope):
            if mode is None:
                pending = await self.ledger.pending_charges(player_id, scope)
                if pending:
                    total = sum((charge.amount for charge in pending), ZERO)
                    raise ConfirmationRequired(len(pending), total)
                mode = MANUAL

            if mode == SMART:
                return await self.ledger.process_smart_payment(player_id, amount, scope)

            await self.ledger.adjust_manual_balance(player_id, -amount, scope)
            return SettlementResult(
                player_id=player_id,
                scope=scope,
                amount=amount,
                applied_to_manual=amount
            )

    async def add_debt(
        self,
        player_id: str,
        amount: Decimal,
        scope: Optional[str] = None,
        reason: Optional[str] = None
    ) -> Decimal:
        """Fine or correction; never needs confirmation."""
        amount = to_positive_money(amount)
        scope = validate_scope(scope)
        async with exclusive_payment(player_id, scope):
            return await self.ledger.adjust_manual_balance(player_id, amount, scope, reason=reason)
