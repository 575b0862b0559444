from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.schemas.common import APIResponse
from app.schemas.leaderboard import LeaderboardEntry, PlayerRank
from app.services.rating import RatingService

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


@router.get("/")
async def get_leaderboard(
    service: Annotated[RatingService, Depends()],
    limit: Annotated[int, Query(ge=1, le=1000)] = 50,
) -> APIResponse[list[LeaderboardEntry]]:
    return APIResponse(data=await service.get_leaderboard(limit))


@router.get("/player/{player_id}")
async def get_player_rank(
    player_id: int, service: Annotated[RatingService, Depends()]
) -> APIResponse[PlayerRank]:
    return APIResponse(data=await service.get_player_rank(player_id))
