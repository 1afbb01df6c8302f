from dataclasses import asdict

from fastapi import Depends, HTTPException, status

from matchday.core.config import settings
from matchday.core.errors import (
    LedgerError,
    InvalidAmount,
    InvalidScope,
    NotFound,
    PersistenceFailure,
    ConfirmationRequired,
    PaymentInProgress,
)
from matchday.db.mongo import get_db
from matchday.repositories.ledger_repo import LedgerRepository
from matchday.schemas.ledger import SettlementResultResponse
from matchday.services.ledger_service import DebtLedger, SettlementResult
from matchday.services.payment_service import PaymentService


def get_ledger(db = Depends(get_db)) -> DebtLedger:
    return DebtLedger(LedgerRepository(db), paid_history_limit=settings.PAID_HISTORY_LIMIT)


def get_payment_service(ledger: DebtLedger = Depends(get_ledger)) -> PaymentService:
    return PaymentService(ledger)


def ledger_http_error(exc: LedgerError) -> HTTPException:
    """Map a ledger exception to the HTTP error shown to the operator."""
    if isinstance(exc, NotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, (InvalidAmount, InvalidScope)):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, ConfirmationRequired):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": str(exc),
                "pending_count": exc.pending_count,
                "pending_total": str(exc.pending_total),
                "choices": list(exc.choices)
            }
        )
    if isinstance(exc, PaymentInProgress):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, PersistenceFailure):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def settlement_response(result: SettlementResult) -> SettlementResultResponse:
    return SettlementResultResponse(**asdict(result), partial=result.partial)
