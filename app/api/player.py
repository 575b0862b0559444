from collections.abc import Sequence
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.models.player import Player
from app.schemas.common import APIResponse, PaginatedResponse
from app.schemas.player import DeckSet, PlayerCreate
from app.schemas.tool import PlayerToolInfo
from app.services.player import PlayerService
from app.services.tool import ToolService

router = APIRouter(prefix="/players", tags=["players"])


@router.get("/")
async def get_players(
    service: Annotated[PlayerService, Depends()],
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1)] = 10,
) -> PaginatedResponse[Sequence[Player]]:
    players, pagination = await service.get_players(page=page, page_size=page_size)
    return PaginatedResponse(data=players, pagination=pagination)


@router.get("/{player_id}")
async def get_player(
    player_id: int, service: Annotated[PlayerService, Depends()]
) -> APIResponse[Player]:
    return APIResponse(data=await service.get_player_or_404(player_id))


@router.post("/")
async def create_player(
    player: PlayerCreate, service: Annotated[PlayerService, Depends()]
) -> APIResponse[Player]:
    created_player = await service.create_player(player.name)
    return APIResponse(data=created_player, message="Player created successfully")


@router.get("/{player_id}/deck")
async def get_deck(
    player_id: int, service: Annotated[PlayerService, Depends()]
) -> APIResponse[list[int]]:
    await service.get_player_or_404(player_id)
    return APIResponse(data=await service.get_deck(player_id))


@router.put("/{player_id}/deck")
async def set_deck(
    player_id: int, deck: DeckSet, service: Annotated[PlayerService, Depends()]
) -> APIResponse[list[int]]:
    card_ids = await service.set_deck(player_id, deck.card_ids)
    return APIResponse(data=card_ids, message="Deck saved")


@router.get("/{player_id}/tools")
async def get_player_tools(
    player_id: int,
    player_service: Annotated[PlayerService, Depends()],
    tool_service: Annotated[ToolService, Depends()],
) -> APIResponse[list[PlayerToolInfo]]:
    await player_service.get_player_or_404(player_id)
    return APIResponse(data=await tool_service.get_player_tools(player_id))
