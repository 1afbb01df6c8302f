"""
Charge model - one player's obligation for one match.

Invariants:
- amount >= 0, fixed when the match is scheduled
- only status / settled_at change after creation
- status is PENDING or PAID, never expires
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from matchday.models.base import MongoModel, Money, StrId


class ChargeStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"

    def opposite(self) -> "ChargeStatus":
        return ChargeStatus.PAID if self is ChargeStatus.PENDING else ChargeStatus.PENDING


class Charge(MongoModel):
    player_id: StrId
    match_id: StrId
    scope: Optional[str] = None  # group the match belongs to
    amount: Money = Field(..., ge=0)
    occurred_at: datetime        # match date, used for FIFO ordering
    status: ChargeStatus = ChargeStatus.PENDING
    settled_at: Optional[datetime] = None

    def fifo_key(self):
        """Oldest first, id breaks ties."""
        return (self.occurred_at, self.id)
