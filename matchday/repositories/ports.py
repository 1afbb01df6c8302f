"""Storage contract the debt ledger needs from its host application."""
from decimal import Decimal
from typing import List, Optional, Protocol

from matchday.models.charge import Charge, ChargeStatus


class PersistencePort(Protocol):

    async def load_pending_charges(
        self, player_id: str, scope: Optional[str] = None
    ) -> List[Charge]:
        ...

    async def load_paid_charges(
        self, player_id: str, scope: Optional[str] = None, limit: int = 20
    ) -> List[Charge]:
        ...

    async def load_manual_balance(self, player_id: str, scope: Optional[str] = None) -> Decimal:
        ...

    async def get_charge(self, charge_id: str) -> Charge:
        ...

    async def set_charge_status(
        self,
        charge_id: str,
        status: ChargeStatus,
        expected: Optional[ChargeStatus] = None,
    ) -> bool:
        """
        Move a charge to ``status``.

        Returns True if this call changed the document, False if it was
        already there (or not in ``expected``). Raises NotFound if missing.
        """
        ...

    async def increment_manual_balance(
        self, player_id: str, delta: Decimal, scope: Optional[str] = None
    ) -> Decimal:
        """Atomic increment; returns the balance after the write."""
        ...
