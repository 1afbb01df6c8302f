from typing import Optional

from fastapi import APIRouter, Depends, status

from matchday.core.config import settings
from matchday.core.errors import LedgerError
from matchday.db.mongo import get_db
from matchday.repositories.player_repo import PlayerRepository
from matchday.routes.deps import get_ledger, get_payment_service, ledger_http_error, settlement_response
from matchday.schemas.ledger import (
    AdjustmentRequest,
    BalanceResponse,
    ChargeResponse,
    LedgerViewResponse,
    PaymentRequest,
    SettlementResultResponse,
)
from matchday.schemas.player import PlayerCreate, PlayerResponse
from matchday.services.ledger_service import DebtLedger
from matchday.services.payment_service import PaymentService, SMART

router = APIRouter(prefix="/players", tags=["players"])


@router.post("", response_model=PlayerResponse, status_code=status.HTTP_201_CREATED)
async def create_player(player_in: PlayerCreate, db = Depends(get_db)):
    """Create a player or a guest."""
    try:
        player = await PlayerRepository(db).create_player(player_in)
    except LedgerError as exc:
        raise ledger_http_error(exc)
    return PlayerResponse.model_validate(player)


@router.get("/{player_id}", response_model=PlayerResponse)
async def get_player(player_id: str, db = Depends(get_db)):
    try:
        player = await PlayerRepository(db).get_player(player_id)
    except LedgerError as exc:
        raise ledger_http_error(exc)
    return PlayerResponse.model_validate(player)


@router.get("/{player_id}/ledger", response_model=LedgerViewResponse)
async def get_ledger_view(
    player_id: str,
    scope: Optional[str] = None,
    ledger: DebtLedger = Depends(get_ledger)
):
    """Balance breakdown plus pending and recently paid charges."""
    try:
        view = await ledger.ledger_view(player_id, scope)
    except LedgerError as exc:
        raise ledger_http_error(exc)

    return LedgerViewResponse(
        player_id=view.player_id,
        scope=view.scope,
        currency=settings.CURRENCY,
        matches_debt=view.balance.matches_debt,
        manual_debt=view.balance.manual_debt,
        total_debt=view.balance.total_debt,
        pending_charges=[ChargeResponse.model_validate(c) for c in view.pending_charges],
        paid_charges=[ChargeResponse.model_validate(c) for c in view.paid_charges]
    )


@router.post("/{player_id}/adjustments", response_model=BalanceResponse)
async def add_debt(
    player_id: str,
    payload: AdjustmentRequest,
    payments: PaymentService = Depends(get_payment_service)
):
    """Add debt (fine, correction) to the manual balance."""
    try:
        new_balance = await payments.add_debt(
            player_id, payload.amount, payload.scope, reason=payload.reason
        )
    except LedgerError as exc:
        raise ledger_http_error(exc)
    return BalanceResponse(player_id=player_id, scope=payload.scope, manual_balance=new_balance)


@router.post("/{player_id}/payments", response_model=SettlementResultResponse)
async def record_payment(
    player_id: str,
    payload: PaymentRequest,
    payments: PaymentService = Depends(get_payment_service)
):
    """
    Record a payment.

    Returns 409 with the available choices when the player has pending
    charges and no mode was given.
    """
    try:
        result = await payments.record_payment(player_id, payload.amount, payload.scope, payload.mode)
    except LedgerError as exc:
        raise ledger_http_error(exc)
    return settlement_response(result)


@router.post("/{player_id}/smart-payments", response_model=SettlementResultResponse)
async def smart_payment(
    player_id: str,
    payload: PaymentRequest,
    payments: PaymentService = Depends(get_payment_service)
):
    """Pay oldest charges first; the rest goes to the manual balance."""
    try:
        result = await payments.record_payment(player_id, payload.amount, payload.scope, SMART)
    except LedgerError as exc:
        raise ledger_http_error(exc)
    return settlement_response(result)
