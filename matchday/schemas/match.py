from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict

from matchday.models.match import MatchStatus


class MatchCreate(BaseModel):
    """Schedule a match; every listed player gets a PENDING charge."""
    scope: Optional[str] = None
    date: datetime
    price_per_player: Decimal = Field(..., ge=0, decimal_places=2)
    player_ids: List[str] = Field(..., min_length=1)
    location: Optional[str] = None
    format: Optional[str] = None


class MatchResponse(BaseModel):
    id: str
    scope: Optional[str] = None
    date: datetime
    price_per_player: Decimal
    location: Optional[str] = None
    format: Optional[str] = None
    status: MatchStatus
    player_ids: List[str]
    charge_ids: List[str] = []
    # Players who already had unpaid charges when the match was scheduled
    players_with_debt: List[str] = []

    model_config = ConfigDict(from_attributes=True)
