from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field

from matchday.models.base import MongoModel, Money, StrId


class MatchStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Match(MongoModel):
    scope: Optional[str] = None
    date: datetime
    price_per_player: Money
    location: Optional[str] = None
    format: Optional[str] = None  # e.g. "5v5"
    status: MatchStatus = MatchStatus.SCHEDULED
    player_ids: List[StrId] = Field(default_factory=list)
