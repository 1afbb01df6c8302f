"""
LedgerRepository - MongoDB adapter for the debt ledger.

Collections:
- charges: one document per (player, match), status PENDING | PAID
- players: manual_balance (global bucket) + scoped_balances.<scope>

Money is stored as Decimal128 so that $inc stays exact.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from matchday.core.errors import PersistenceFailure, NotFound
from matchday.core.money import to_money, to_bson
from matchday.models.charge import Charge, ChargeStatus
from matchday.models.player import Player
from matchday.utils.validation import validate_scope, object_id

logger = logging.getLogger(__name__)


@contextmanager
def store_errors(action: str):
    """Re-raise driver errors as PersistenceFailure."""
    try:
        yield
    except PyMongoError as exc:
        logger.exception("Store error while trying to %s", action)
        raise PersistenceFailure(f"Could not {action}: {exc}") from exc


def balance_field(scope: Optional[str]) -> str:
    if scope is None:
        return "manual_balance"
    return f"scoped_balances.{scope}"


class LedgerRepository:
    """Charges and manual balances."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.charges = db["charges"]
        self.players = db["players"]

    async def load_pending_charges(
        self, player_id: str, scope: Optional[str] = None
    ) -> List[Charge]:
        """Pending charges, oldest first."""
        query = self._charge_query(player_id, scope, ChargeStatus.PENDING)
        with store_errors("load pending charges"):
            docs = await self.charges.find(query).sort(
                [("occurred_at", 1), ("_id", 1)]
            ).to_list(None)
        return [Charge(**doc) for doc in docs]

    async def load_paid_charges(
        self, player_id: str, scope: Optional[str] = None, limit: int = 20
    ) -> List[Charge]:
        """Most recent paid charges, newest first."""
        query = self._charge_query(player_id, scope, ChargeStatus.PAID)
        with store_errors("load paid charges"):
            docs = await self.charges.find(query).sort(
                [("occurred_at", -1), ("_id", -1)]
            ).limit(limit).to_list(None)
        return [Charge(**doc) for doc in docs]

    async def load_manual_balance(self, player_id: str, scope: Optional[str] = None) -> Decimal:
        """
        Manual balance of one scope, or global + all scopes when scope is None.
        """
        scope = validate_scope(scope)
        oid = object_id(player_id, "player")
        with store_errors("load manual balance"):
            doc = await self.players.find_one({"_id": oid})
        if not doc:
            raise NotFound("player", player_id)
        return Player(**doc).balance_for(scope)

    async def get_charge(self, charge_id: str) -> Charge:
        oid = object_id(charge_id, "charge")
        with store_errors("load charge"):
            doc = await self.charges.find_one({"_id": oid})
        if not doc:
            raise NotFound("charge", charge_id)
        return Charge(**doc)

    async def set_charge_status(
        self,
        charge_id: str,
        status: ChargeStatus,
        expected: Optional[ChargeStatus] = None,
    ) -> bool:
        """
        Conditional status write.

        The filter only matches when the transition is still needed, so a
        retried or duplicated call modifies nothing.
        """
        oid = object_id(charge_id, "charge")
        status = ChargeStatus(status)
        now = datetime.now(timezone.utc)

        query = {"_id": oid}
        if expected is not None:
            query["status"] = ChargeStatus(expected).value
        else:
            query["status"] = {"$ne": status.value}

        update = {
            "$set": {
                "status": status.value,
                "settled_at": now if status is ChargeStatus.PAID else None,
                "updated_at": now,
            }
        }

        with store_errors("update charge status"):
            result = await self.charges.update_one(query, update)
            if result.modified_count:
                logger.info("Charge %s -> %s", charge_id, status.value)
                return True
            exists = await self.charges.count_documents({"_id": oid}, limit=1)

        if not exists:
            raise NotFound("charge", charge_id)
        return False

    async def increment_manual_balance(
        self, player_id: str, delta: Decimal, scope: Optional[str] = None
    ) -> Decimal:
        """Atomic $inc on the player's balance field."""
        scope = validate_scope(scope)
        oid = object_id(player_id, "player")
        field = balance_field(scope)

        with store_errors("adjust manual balance"):
            doc = await self.players.find_one_and_update(
                {"_id": oid},
                {
                    "$inc": {field: to_bson(to_money(delta))},
                    "$set": {"updated_at": datetime.now(timezone.utc)},
                },
                return_document=ReturnDocument.AFTER
            )

        if not doc:
            raise NotFound("player", player_id)
        player = Player(**doc)
        if scope is None:
            return player.manual_balance
        return player.scoped_balances[scope]

    # ===== PRIVATE HELPERS =====

    def _charge_query(self, player_id: str, scope: Optional[str], status: ChargeStatus) -> dict:
        scope = validate_scope(scope)
        query = {
            "player_id": object_id(player_id, "player"),
            "status": status.value,
        }
        if scope is not None:
            query["scope"] = scope
        return query
