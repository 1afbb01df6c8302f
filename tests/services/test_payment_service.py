import asyncio
import logging
from decimal import Decimal

import pytest

from matchday.core.errors import ConfirmationRequired, InvalidAmount, PaymentInProgress
from matchday.models.charge import ChargeStatus


@pytest.mark.asyncio
async def test_payment_with_pending_charges_needs_confirmation(payments, fifo_store):
    with pytest.raises(ConfirmationRequired) as exc_info:
        await payments.record_payment("p1", Decimal("20.00"))

    assert exc_info.value.pending_count == 3
    assert exc_info.value.pending_total == Decimal("45.00")
    assert fifo_store.writes == []


@pytest.mark.asyncio
async def test_payment_without_pending_charges_is_manual(payments, store):
    store.add_player("p1", "20.00")

    result = await payments.record_payment("p1", Decimal("8.00"))

    assert result.applied_to_manual == Decimal("8.00")
    assert result.settled_charge_ids == []
    assert store.balance_of("p1") == Decimal("12.00")


@pytest.mark.asyncio
async def test_smart_mode_settles_charges(payments, fifo_store):
    result = await payments.record_payment("p1", Decimal("30.00"), mode="smart")

    assert result.settled_charge_ids == ["c1", "c2"]
    assert fifo_store.balance_of("p1") == Decimal("-5.00")


@pytest.mark.asyncio
async def test_manual_mode_ignores_pending_charges(payments, fifo_store):
    result = await payments.record_payment("p1", Decimal("30.00"), mode="manual")

    assert result.settled_charge_ids == []
    assert result.applied_to_manual == Decimal("30.00")
    assert all(c.status == ChargeStatus.PENDING for c in fifo_store.charges.values())
    assert fifo_store.balance_of("p1") == Decimal("-30.00")


@pytest.mark.asyncio
async def test_confirmation_only_counts_charges_in_scope(payments, store, day):
    store.add_player("p1")
    store.add_charge("c1", "p1", "10.00", day(1), scope="group-a")

    result = await payments.record_payment("p1", Decimal("5.00"), scope="group-b")

    assert result.applied_to_manual == Decimal("5.00")
    assert store.balance_of("p1", "group-b") == Decimal("-5.00")


@pytest.mark.asyncio
async def test_payment_amount_validated_first(payments, fifo_store):
    with pytest.raises(InvalidAmount):
        await payments.record_payment("p1", Decimal("-1.00"), mode="smart")
    assert fifo_store.writes == []


@pytest.mark.asyncio
async def test_add_debt(payments, store):
    store.add_player("p1")

    new_balance = await payments.add_debt("p1", Decimal("3.50"), "group-a")

    assert new_balance == Decimal("3.50")


@pytest.mark.asyncio
async def test_add_debt_rejects_negative(payments, store):
    store.add_player("p1")

    with pytest.raises(InvalidAmount):
        await payments.add_debt("p1", Decimal("-3.50"))


@pytest.mark.asyncio
async def test_double_submit_is_rejected(payments, fifo_store):
    release = asyncio.Event()
    real_load = fifo_store.load_pending_charges

    async def slow_load(player_id, scope=None):
        await release.wait()
        return await real_load(player_id, scope)

    fifo_store.load_pending_charges = slow_load

    first = asyncio.create_task(payments.record_payment("p1", Decimal("25.00"), mode="smart"))
    await asyncio.sleep(0)

    with pytest.raises(PaymentInProgress):
        await payments.record_payment("p1", Decimal("25.00"), mode="smart")

    release.set()
    result = await first

    assert result.settled_charge_ids == ["c1", "c2"]
    assert fifo_store.status_of("c3") == ChargeStatus.PENDING


@pytest.mark.asyncio
async def test_guard_released_after_failure(payments, fifo_store):
    with pytest.raises(ConfirmationRequired):
        await payments.record_payment("p1", Decimal("10.00"))

    result = await payments.record_payment("p1", Decimal("10.00"), mode="smart")

    assert result.settled_charge_ids == ["c1"]


@pytest.mark.asyncio
async def test_payment_in_one_scope_does_not_block_another(payments, store, day):
    store.add_player("p1")
    store.add_charge("c1", "p1", "10.00", day(1), scope="group-a")
    release = asyncio.Event()
    real_load = store.load_pending_charges

    async def slow_load(player_id, scope=None):
        await release.wait()
        return await real_load(player_id, scope)

    store.load_pending_charges = slow_load

    first = asyncio.create_task(payments.record_payment("p1", Decimal("10.00"), "group-a", mode="smart"))
    await asyncio.sleep(0)

    new_balance = await payments.add_debt("p1", Decimal("2.00"), "group-b")
    assert new_balance == Decimal("2.00")

    with pytest.raises(PaymentInProgress):
        await payments.add_debt("p1", Decimal("2.00"), "group-a")

    release.set()
    result = await first

    assert result.settled_charge_ids == ["c1"]


@pytest.mark.asyncio
async def test_add_debt_logs_reason(payments, store, caplog):
    caplog.set_level(logging.INFO, logger="matchday.services.ledger_service")
    store.add_player("p1")

    await payments.add_debt("p1", Decimal("4.00"), reason="Yellow card")

    assert "Yellow card" in caplog.text
