import logging

from matchday.core.errors import InvalidAmount, NotFound
from matchday.core.money import to_money
from matchday.repositories.match_repo import MatchRepository
from matchday.repositories.player_repo import PlayerRepository
from matchday.schemas.match import MatchCreate, MatchResponse
from matchday.utils.validation import validate_scope

logger = logging.getLogger(__name__)


class MatchService:
    def __init__(self, matches: MatchRepository, players: PlayerRepository):
        self.matches = matches
        self.players = players

    async def schedule(self, match_in: MatchCreate) -> MatchResponse:
        """
        Create a match and charge every participant its current price.

        Also reports which participants still had unpaid charges, so the
        organiser can chase them before the match.
        """
        price = to_money(match_in.price_per_player)
        if price < 0:
            raise InvalidAmount("Price per player must not be negative")
        validate_scope(match_in.scope)

        player_ids = list(dict.fromkeys(match_in.player_ids))
        missing = await self.players.missing_players(player_ids)
        if missing:
            raise NotFound("player", missing[0])

        match_in = match_in.model_copy(update={"player_ids": player_ids, "price_per_player": price})
        players_with_debt = await self.matches.players_with_pending_charges(player_ids)

        match = await self.matches.insert_match(match_in)
        charge_ids = await self.matches.insert_charges(match)
        logger.info(
            "Scheduled match %s (scope=%s) for %d player(s) at %s each",
            match.id, match.scope, len(player_ids), price
        )

        return MatchResponse(
            id=match.id,
            scope=match.scope,
            date=match.date,
            price_per_player=match.price_per_player,
            location=match.location,
            format=match.format,
            status=match.status,
            player_ids=match.player_ids,
            charge_ids=charge_ids,
            players_with_debt=players_with_debt
        )
