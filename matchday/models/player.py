from decimal import Decimal
from typing import Dict

from pydantic import Field

from matchday.models.base import MongoModel, Money


class Player(MongoModel):
    display_name: str
    is_guest: bool = False

    # Positive = owes, negative = credit
    manual_balance: Money = Decimal("0.00")
    scoped_balances: Dict[str, Money] = Field(default_factory=dict)

    def balance_for(self, scope: str | None = None) -> Decimal:
        """
        Manual balance for one scope, or the global bucket plus every scoped
        bucket when no scope is given.
        """
        if scope is not None:
            return self.scoped_balances.get(scope, Decimal("0.00"))
        return self.manual_balance + sum(self.scoped_balances.values(), Decimal("0.00"))
