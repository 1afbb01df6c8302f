from decimal import Decimal
from typing import Dict
from pydantic import BaseModel, Field, ConfigDict


class PlayerCreate(BaseModel):
    """Create a registered player or a guest."""
    display_name: str = Field(..., min_length=1, max_length=100)
    is_guest: bool = False


class PlayerResponse(BaseModel):
    id: str
    display_name: str
    is_guest: bool
    manual_balance: Decimal
    scoped_balances: Dict[str, Decimal]

    model_config = ConfigDict(from_attributes=True)
