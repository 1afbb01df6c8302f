"""
DebtLedger - player balances and smart payments.

A player's debt is the sum of their PENDING match charges plus a signed
manual balance (fines, manual payments, corrections). Positive totals mean
the player owes money, negative totals mean credit.

Smart payment applies a lump sum to the oldest pending charges first,
whole charges only, and pushes whatever is left into the manual balance.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from matchday.core.errors import InvalidAmount, NotFound, PersistenceFailure
from matchday.core.money import ZERO, to_money, to_positive_money
from matchday.models.charge import Charge, ChargeStatus
from matchday.repositories.ports import PersistencePort
from matchday.utils.validation import validate_scope

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Balance:
    matches_debt: Decimal
    manual_debt: Decimal
    total_debt: Decimal


@dataclass(frozen=True)
class LedgerView:
    player_id: str
    scope: Optional[str]
    balance: Balance
    pending_charges: List[Charge]
    paid_charges: List[Charge]


@dataclass
class SettlementResult:
    """
    Outcome of a payment.

    applied_to_charges + applied_to_manual + unapplied == amount. When
    partial is True some writes failed and ``unapplied`` still has to be
    reconciled by hand.
    """
    player_id: str
    scope: Optional[str]
    amount: Decimal
    settled_charge_ids: List[str] = field(default_factory=list)
    applied_to_charges: Decimal = ZERO
    applied_to_manual: Decimal = ZERO
    failed_charge_ids: List[str] = field(default_factory=list)
    unapplied: Decimal = ZERO

    @property
    def partial(self) -> bool:
        return bool(self.failed_charge_ids) or self.unapplied != 0


class DebtLedger:
    def __init__(self, store: PersistencePort, paid_history_limit: int = 20):
        self.store = store
        self.paid_history_limit = paid_history_limit

    @staticmethod
    def compute_balance(manual_balance: Decimal, pending_charges: List[Charge]) -> Balance:
        """Pure. Callers pass PENDING charges only."""
        matches_debt = sum((charge.amount for charge in pending_charges), ZERO)
        manual_debt = Decimal(manual_balance)
        return Balance(
            matches_debt=matches_debt,
            manual_debt=manual_debt,
            total_debt=matches_debt + manual_debt
        )

    async def pending_charges(self, player_id: str, scope: Optional[str] = None) -> List[Charge]:
        """Pending charges in FIFO order (occurred_at, then id)."""
        charges = await self.store.load_pending_charges(player_id, validate_scope(scope))
        return sorted(charges, key=Charge.fifo_key)

    async def ledger_view(self, player_id: str, scope: Optional[str] = None) -> LedgerView:
        scope = validate_scope(scope)
        manual = await self.store.load_manual_balance(player_id, scope)
        pending = await self.pending_charges(player_id, scope)
        paid = await self.store.load_paid_charges(player_id, scope, limit=self.paid_history_limit)

        return LedgerView(
            player_id=player_id,
            scope=scope,
            balance=self.compute_balance(manual, pending),
            pending_charges=pending,
            paid_charges=paid
        )

    async def get_charge(self, charge_id: str) -> Charge:
        return await self.store.get_charge(charge_id)

    async def settle_charge(self, charge_id: str, target_status: ChargeStatus) -> Charge:
        """
        Put a charge in ``target_status``. Already there -> no-op.
        The manual balance is never touched.
        """
        target_status = ChargeStatus(target_status)
        changed = await self.store.set_charge_status(charge_id, target_status)
        if not changed:
            logger.info("Charge %s already %s", charge_id, target_status.value)
        return await self.store.get_charge(charge_id)

    async def toggle_charge(self, charge_id: str, current_status: ChargeStatus) -> Charge:
        """
        Flip a charge away from ``current_status``.

        Only applies while the stored status still equals current_status, so a
        duplicate toggle does not flip it back.
        """
        current_status = ChargeStatus(current_status)
        changed = await self.store.set_charge_status(
            charge_id, current_status.opposite(), expected=current_status
        )
        if not changed:
            logger.info("Charge %s no longer %s, toggle ignored", charge_id, current_status.value)
        return await self.store.get_charge(charge_id)

    async def adjust_manual_balance(
        self,
        player_id: str,
        delta: Decimal,
        scope: Optional[str] = None,
        reason: Optional[str] = None
    ) -> Decimal:
        """
        Add ``delta`` to the manual balance (positive = more debt).
        Delegates to an atomic increment in the store.
        """
        delta = to_money(delta)
        if delta == 0:
            raise InvalidAmount("Adjustment must not be zero")
        scope = validate_scope(scope)

        new_balance = await self.store.increment_manual_balance(player_id, delta, scope)
        logger.info(
            "Manual balance of player %s (scope=%s) adjusted by %s -> %s (reason: %s)",
            player_id, scope, delta, new_balance, reason or "-"
        )
        return new_balance

    async def process_smart_payment(
        self, player_id: str, amount: Decimal, scope: Optional[str] = None
    ) -> SettlementResult:
        """
        Apply ``amount`` to the player's pending charges, oldest first.

        Algorithm:
        1. Sort pending charges by (occurred_at, id)
        2. Mark each charge PAID while the remaining amount covers it whole
        3. Stop at the first charge it cannot cover, or when nothing is left
        4. Subtract the remainder from the manual balance (may go negative)

        A failed charge write stops the loop and the remainder is left
        unapplied; settled charges are kept. The result then has
        partial=True instead of raising.
        """
        amount = to_positive_money(amount)
        scope = validate_scope(scope)

        # Surfaces NotFound before any write
        await self.store.load_manual_balance(player_id, scope)
        pending = await self.pending_charges(player_id, scope)

        result = SettlementResult(player_id=player_id, scope=scope, amount=amount)
        remaining = amount

        for charge in pending:
            if remaining == 0 or remaining < charge.amount:
                break

            try:
                changed = await self.store.set_charge_status(
                    charge.id, ChargeStatus.PAID, expected=ChargeStatus.PENDING
                )
            except NotFound:
                logger.warning("Charge %s disappeared during smart payment, skipping", charge.id)
                continue
            except PersistenceFailure:
                logger.exception("Smart payment for player %s stopped at charge %s", player_id, charge.id)
                result.failed_charge_ids.append(charge.id)
                break

            if not changed:
                # Paid by someone else in the meantime
                continue

            result.settled_charge_ids.append(charge.id)
            result.applied_to_charges += charge.amount
            remaining -= charge.amount

        if result.failed_charge_ids:
            result.unapplied = remaining
        elif remaining > 0:
            try:
                await self.store.increment_manual_balance(player_id, -remaining, scope)
                result.applied_to_manual = remaining
            except PersistenceFailure:
                logger.exception("Could not apply %s to manual balance of player %s", remaining, player_id)
                result.unapplied = remaining

        if result.partial:
            logger.warning(
                "Partial settlement for player %s: settled=%s failed=%s unapplied=%s",
                player_id, result.settled_charge_ids, result.failed_charge_ids, result.unapplied
            )
        else:
            logger.info(
                "Smart payment of %s for player %s: %d charge(s) (%s), %s to manual balance",
                amount, player_id, len(result.settled_charge_ids),
                result.applied_to_charges, result.applied_to_manual
            )
        return result
