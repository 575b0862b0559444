from collections.abc import Sequence
from typing import Annotated

from fastapi import APIRouter, Depends

from app.models.battle import Battle
from app.models.battle_tool_usage import BattleToolUsage
from app.schemas.battle import BattleCreate, BattleDetail, BattleOrderSet, BattleToolApply
from app.schemas.common import APIResponse
from app.services.battle import BattleService

router = APIRouter(prefix="/battles", tags=["battles"])


@router.post("/")
async def create_battle(
    battle: BattleCreate, service: Annotated[BattleService, Depends()]
) -> APIResponse[BattleDetail]:
    created_battle = await service.create_battle(
        battle.player1_id,
        battle.player2_id,
        is_simulation=battle.is_simulation,
        first_round_ability=battle.first_round_ability,
    )
    detail = await service.get_battle_detail(created_battle)
    return APIResponse(data=detail, message="Battle created successfully")


@router.get("/{battle_id}")
async def get_battle(
    battle_id: int, service: Annotated[BattleService, Depends()]
) -> APIResponse[BattleDetail]:
    battle = await service.get_battle_or_404(battle_id)
    return APIResponse(data=await service.get_battle_detail(battle))


@router.get("/player/{player_id}")
async def get_player_battles(
    player_id: int, service: Annotated[BattleService, Depends()]
) -> APIResponse[Sequence[Battle]]:
    battles = await service.get_player_battles(player_id)
    return APIResponse(data=battles)


@router.post("/{battle_id}/order")
async def set_battle_order(
    battle_id: int, body: BattleOrderSet, service: Annotated[BattleService, Depends()]
) -> APIResponse[BattleDetail]:
    battle = await service.set_order(battle_id, body.player_id, body.order)
    return APIResponse(data=await service.get_battle_detail(battle))


@router.post("/{battle_id}/tools")
async def apply_tool(
    battle_id: int, body: BattleToolApply, service: Annotated[BattleService, Depends()]
) -> APIResponse[BattleToolUsage]:
    usage = await service.apply_tool(battle_id, body.player_id, body.tool_id, body.card_position)
    return APIResponse(data=usage, message="Tool applied successfully")


@router.post("/{battle_id}/execute")
async def execute_battle(
    battle_id: int, service: Annotated[BattleService, Depends()]
) -> APIResponse[BattleDetail]:
    """Resolve the battle's three rounds and report how the winner was decided."""
    battle, outcome = await service.execute_battle(battle_id)
    return APIResponse(
        data=await service.get_battle_detail(battle),
        message=f"Battle decided by {outcome.win_reason.value}",
    )
