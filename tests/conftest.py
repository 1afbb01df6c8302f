import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Set
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from matchday.core.errors import NotFound, PersistenceFailure
from matchday.main import app
from matchday.models.charge import Charge, ChargeStatus
from matchday.routes.deps import get_ledger
from matchday.services.ledger_service import DebtLedger
from matchday.services.payment_service import PaymentService

DAY_ONE = datetime(2024, 3, 1, 19, 0, tzinfo=timezone.utc)


def day(n: int) -> datetime:
    return DAY_ONE + timedelta(days=n - 1)


@pytest.fixture(name="day")
def day_fixture():
    return day


class InMemoryLedgerStore:
    """
    Storage double for the debt ledger.

    increment_manual_balance yields to the event loop before writing, then
    updates in a single step, like an atomic $inc.
    """

    def __init__(self):
        self.balances: Dict[str, Dict[Optional[str], Decimal]] = {}
        self.charges: Dict[str, Charge] = {}
        self.writes: List[tuple] = []
        self.failing_charges: Set[str] = set()
        self.fail_increments = False

    # ----- setup helpers -----

    def add_player(self, player_id: str, balance: str = "0.00", scope: Optional[str] = None):
        self.balances.setdefault(player_id, {None: Decimal("0.00")})
        self.balances[player_id][scope] = Decimal(balance)

    def add_charge(
        self,
        charge_id: str,
        player_id: str,
        amount: str,
        occurred_at: datetime,
        scope: Optional[str] = None,
        status: ChargeStatus = ChargeStatus.PENDING,
    ) -> Charge:
        charge = Charge(
            id=charge_id,
            player_id=player_id,
            match_id=f"match-{charge_id}",
            scope=scope,
            amount=Decimal(amount),
            occurred_at=occurred_at,
            status=status,
        )
        self.charges[charge_id] = charge
        return charge

    def status_of(self, charge_id: str) -> ChargeStatus:
        return self.charges[charge_id].status

    def balance_of(self, player_id: str, scope: Optional[str] = None) -> Decimal:
        return self.balances[player_id].get(scope, Decimal("0.00"))

    # ----- PersistencePort -----

    def _charges_for(self, player_id, scope, status):
        return [
            c for c in self.charges.values()
            if c.player_id == player_id
            and c.status == status
            and (scope is None or c.scope == scope)
        ]

    async def load_pending_charges(self, player_id, scope=None):
        # Newest first on purpose: the ledger must do its own ordering
        return list(reversed(self._charges_for(player_id, scope, ChargeStatus.PENDING)))

    async def load_paid_charges(self, player_id, scope=None, limit=20):
        paid = self._charges_for(player_id, scope, ChargeStatus.PAID)
        return sorted(paid, key=lambda c: c.occurred_at, reverse=True)[:limit]

    async def load_manual_balance(self, player_id, scope=None):
        if player_id not in self.balances:
            raise NotFound("player", player_id)
        buckets = self.balances[player_id]
        if scope is None:
            return sum(buckets.values(), Decimal("0.00"))
        return buckets.get(scope, Decimal("0.00"))

    async def get_charge(self, charge_id):
        if charge_id not in self.charges:
            raise NotFound("charge", charge_id)
        return self.charges[charge_id]

    async def set_charge_status(self, charge_id, status, expected=None):
        if charge_id in self.failing_charges:
            raise PersistenceFailure(f"write to {charge_id} rejected")
        if charge_id not in self.charges:
            raise NotFound("charge", charge_id)

        charge = self.charges[charge_id]
        if expected is not None and charge.status != expected:
            return False
        if charge.status == status:
            return False

        self.charges[charge_id] = charge.model_copy(update={"status": status})
        self.writes.append(("status", charge_id, status))
        return True

    async def increment_manual_balance(self, player_id, delta, scope=None):
        await asyncio.sleep(0)
        if self.fail_increments:
            raise PersistenceFailure("increment rejected")
        if player_id not in self.balances:
            raise NotFound("player", player_id)

        buckets = self.balances[player_id]
        buckets[scope] = buckets.get(scope, Decimal("0.00")) + delta
        self.writes.append(("increment", player_id, scope, delta))
        return buckets[scope]


@pytest.fixture
def store():
    return InMemoryLedgerStore()


@pytest.fixture
def ledger(store):
    return DebtLedger(store)


@pytest.fixture
def payments(ledger):
    return PaymentService(ledger)


@pytest.fixture
def fifo_store(store):
    """Player p1 with day-1 10, day-2 15, day-3 20, all pending."""
    store.add_player("p1")
    store.add_charge("c1", "p1", "10.00", day(1))
    store.add_charge("c2", "p1", "15.00", day(2))
    store.add_charge("c3", "p1", "20.00", day(3))
    return store


@pytest.fixture
def mock_db():
    """Motor database whose collections are mocks."""
    db = MagicMock()
    for name in ("charges", "players", "matches"):
        collection = MagicMock()
        collection.find_one = AsyncMock()
        collection.find_one_and_update = AsyncMock()
        collection.update_one = AsyncMock()
        collection.count_documents = AsyncMock()
        collection.insert_one = AsyncMock()
        collection.insert_many = AsyncMock()
        collection.distinct = AsyncMock()
        setattr(db, name, collection)

    db.__getitem__.side_effect = lambda name: getattr(db, name)
    return db


@pytest.fixture
def find_cursor():
    """Factory for find() cursor mocks supporting .sort().limit().to_list()."""
    def make(docs):
        cursor = MagicMock()
        cursor.sort.return_value = cursor
        cursor.limit.return_value = cursor
        cursor.to_list = AsyncMock(return_value=docs)
        return cursor
    return make


@pytest.fixture
def test_client(ledger):
    """API client backed by the in-memory ledger, no Mongo needed."""
    app.dependency_overrides[get_ledger] = lambda: ledger
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
