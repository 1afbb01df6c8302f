from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, Field, ConfigDict

from matchday.models.charge import ChargeStatus


class ChargeResponse(BaseModel):
    """Charge as shown in a player's debt panel."""
    id: str
    player_id: str
    match_id: str
    scope: Optional[str] = None
    amount: Decimal
    occurred_at: datetime
    status: ChargeStatus
    settled_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class LedgerViewResponse(BaseModel):
    player_id: str
    scope: Optional[str] = None
    currency: str
    matches_debt: Decimal
    manual_debt: Decimal
    total_debt: Decimal
    pending_charges: List[ChargeResponse]
    paid_charges: List[ChargeResponse]


class SettleChargeRequest(BaseModel):
    """Explicit target status; repeating the request is a no-op."""
    status: ChargeStatus


class ToggleChargeRequest(BaseModel):
    """Status the caller believes the charge currently has."""
    current_status: ChargeStatus


class AdjustmentRequest(BaseModel):
    """Add debt (fine, correction) to a player's manual balance."""
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    scope: Optional[str] = None
    reason: Optional[str] = Field(None, max_length=200)


class PaymentRequest(BaseModel):
    """
    Debt-reducing payment.

    mode=None lets the server decide when there is nothing pending, and
    asks for confirmation otherwise.
    """
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    scope: Optional[str] = None
    mode: Optional[Literal["smart", "manual"]] = None


class BalanceResponse(BaseModel):
    player_id: str
    scope: Optional[str] = None
    manual_balance: Decimal


class SettlementResultResponse(BaseModel):
    player_id: str
    scope: Optional[str] = None
    amount: Decimal
    settled_charge_ids: List[str]
    applied_to_charges: Decimal
    applied_to_manual: Decimal
    failed_charge_ids: List[str]
    unapplied: Decimal
    partial: bool
