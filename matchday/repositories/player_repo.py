from datetime import datetime, timezone
from decimal import Decimal
from typing import List

from motor.motor_asyncio import AsyncIOMotorDatabase

from matchday.core.errors import NotFound
from matchday.core.money import to_bson
from matchday.models.player import Player
from matchday.repositories.ledger_repo import store_errors
from matchday.schemas.player import PlayerCreate
from matchday.utils.validation import object_id


class PlayerRepository:
    """Player and guest documents."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["players"]

    async def create_player(self, player_data: PlayerCreate) -> Player:
        """Create a player (or guest) with zero balances."""
        now = datetime.now(timezone.utc)
        player_dict = {
            "display_name": player_data.display_name.strip(),
            "is_guest": player_data.is_guest,
            "manual_balance": to_bson(Decimal("0.00")),
            "scoped_balances": {},
            "created_at": now,
            "updated_at": now
        }

        with store_errors("create player"):
            result = await self.collection.insert_one(player_dict)
        player_dict["_id"] = result.inserted_id
        return Player(**player_dict)

    async def get_player(self, player_id: str) -> Player:
        oid = object_id(player_id, "player")
        with store_errors("load player"):
            doc = await self.collection.find_one({"_id": oid})
        if not doc:
            raise NotFound("player", player_id)
        return Player(**doc)

    async def missing_players(self, player_ids: List[str]) -> List[str]:
        """Ids from the list that have no player document."""
        oids = [object_id(pid, "player") for pid in player_ids]
        with store_errors("check players"):
            docs = await self.collection.find(
                {"_id": {"$in": oids}}, {"_id": 1}
            ).to_list(None)
        found = {str(doc["_id"]) for doc in docs}
        return [pid for pid in player_ids if pid not in found]
