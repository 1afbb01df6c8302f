"""
MatchRepository - matches and the charges they generate.

A scheduled match creates one PENDING charge per player, priced at the
match's price_per_player at that moment. Later price edits never touch
existing charges.
"""

import logging
from datetime import datetime, timezone
from typing import List

from motor.motor_asyncio import AsyncIOMotorDatabase

from matchday.core.money import to_bson
from matchday.models.charge import ChargeStatus
from matchday.models.match import Match, MatchStatus
from matchday.repositories.ledger_repo import store_errors
from matchday.schemas.match import MatchCreate
from matchday.utils.validation import object_id

logger = logging.getLogger(__name__)


class MatchRepository:

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.matches = db["matches"]
        self.charges = db["charges"]

    async def insert_match(self, match_in: MatchCreate) -> Match:
        now = datetime.now(timezone.utc)
        match_dict = {
            "scope": match_in.scope,
            "date": match_in.date,
            "price_per_player": to_bson(match_in.price_per_player),
            "location": match_in.location,
            "format": match_in.format,
            "status": MatchStatus.SCHEDULED.value,
            "player_ids": [object_id(pid, "player") for pid in match_in.player_ids],
            "created_at": now,
            "updated_at": now
        }

        with store_errors("create match"):
            result = await self.matches.insert_one(match_dict)
        match_dict["_id"] = result.inserted_id
        return Match(**match_dict)

    async def insert_charges(self, match: Match) -> List[str]:
        """One PENDING charge per player of the match."""
        now = datetime.now(timezone.utc)
        docs = [
            {
                "player_id": object_id(pid, "player"),
                "match_id": object_id(match.id, "match"),
                "scope": match.scope,
                "amount": to_bson(match.price_per_player),
                "occurred_at": match.date,
                "status": ChargeStatus.PENDING.value,
                "settled_at": None,
                "created_at": now,
                "updated_at": now
            }
            for pid in match.player_ids
        ]
        if not docs:
            return []

        with store_errors("create charges"):
            result = await self.charges.insert_many(docs)
        logger.info("Created %d charges for match %s", len(docs), match.id)
        return [str(oid) for oid in result.inserted_ids]

    async def players_with_pending_charges(self, player_ids: List[str]) -> List[str]:
        """Which of these players already owe for earlier matches."""
        oids = [object_id(pid, "player") for pid in player_ids]
        with store_errors("check pending charges"):
            owing = await self.charges.distinct(
                "player_id",
                {"player_id": {"$in": oids}, "status": ChargeStatus.PENDING.value}
            )
        owing_ids = {str(oid) for oid in owing}
        return [pid for pid in player_ids if pid in owing_ids]
