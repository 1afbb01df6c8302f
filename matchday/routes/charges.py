from fastapi import APIRouter, Depends

from matchday.core.errors import LedgerError
from matchday.routes.deps import get_ledger, ledger_http_error
from matchday.schemas.ledger import ChargeResponse, SettleChargeRequest, ToggleChargeRequest
from matchday.services.ledger_service import DebtLedger

router = APIRouter(prefix="/charges", tags=["charges"])


@router.get("/{charge_id}", response_model=ChargeResponse)
async def get_charge(charge_id: str, ledger: DebtLedger = Depends(get_ledger)):
    try:
        charge = await ledger.get_charge(charge_id)
    except LedgerError as exc:
        raise ledger_http_error(exc)
    return ChargeResponse.model_validate(charge)


@router.post("/{charge_id}/settle", response_model=ChargeResponse)
async def settle_charge(
    charge_id: str,
    payload: SettleChargeRequest,
    ledger: DebtLedger = Depends(get_ledger)
):
    """Set a charge to PAID or back to PENDING. Idempotent."""
    try:
        charge = await ledger.settle_charge(charge_id, payload.status)
    except LedgerError as exc:
        raise ledger_http_error(exc)
    return ChargeResponse.model_validate(charge)


@router.post("/{charge_id}/toggle", response_model=ChargeResponse)
async def toggle_charge(
    charge_id: str,
    payload: ToggleChargeRequest,
    ledger: DebtLedger = Depends(get_ledger)
):
    """Flip a charge from the status the caller last saw."""
    try:
        charge = await ledger.toggle_charge(charge_id, payload.current_status)
    except LedgerError as exc:
        raise ledger_http_error(exc)
    return ChargeResponse.model_validate(charge)
