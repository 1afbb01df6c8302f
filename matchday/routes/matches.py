from fastapi import APIRouter, Depends, status

from matchday.core.errors import LedgerError
from matchday.db.mongo import get_db
from matchday.repositories.match_repo import MatchRepository
from matchday.repositories.player_repo import PlayerRepository
from matchday.routes.deps import ledger_http_error
from matchday.schemas.match import MatchCreate, MatchResponse
from matchday.services.match_service import MatchService

router = APIRouter(prefix="/matches", tags=["matches"])


def get_match_service(db = Depends(get_db)) -> MatchService:
    return MatchService(MatchRepository(db), PlayerRepository(db))


@router.post("", response_model=MatchResponse, status_code=status.HTTP_201_CREATED)
async def schedule_match(
    match_in: MatchCreate,
    service: MatchService = Depends(get_match_service)
):
    """Schedule a match and create a PENDING charge for every player."""
    try:
        return await service.schedule(match_in)
    except LedgerError as exc:
        raise ledger_http_error(exc)
