from collections.abc import Sequence
from typing import Annotated

from fastapi import APIRouter, Depends

from app.models.card import Card
from app.models.challenge import Challenge
from app.schemas.challenge import (
    ChallengeAction,
    ChallengeCreate,
    ChallengeResult,
    ChallengeReveal,
    ChallengeSetup,
)
from app.schemas.common import APIResponse
from app.services.challenge import ChallengeService

router = APIRouter(prefix="/challenges", tags=["challenges"])


@router.get("/player/{player_id}")
async def get_player_challenges(
    player_id: int, service: Annotated[ChallengeService, Depends()], *, active_only: bool = False
) -> APIResponse[Sequence[Challenge]]:
    challenges = await service.get_player_challenges(player_id, active_only=active_only)
    return APIResponse(data=challenges)


@router.get("/{challenge_id}")
async def get_challenge(
    challenge_id: int, service: Annotated[ChallengeService, Depends()]
) -> APIResponse[Challenge]:
    return APIResponse(data=await service.get_challenge_or_404(challenge_id))


@router.post("/")
async def create_challenge(
    body: ChallengeCreate, service: Annotated[ChallengeService, Depends()]
) -> APIResponse[Challenge]:
    challenge = await service.create_challenge(body.challenger_id, body.challenged_id)
    return APIResponse(data=challenge, message="Challenge sent")


@router.post("/{challenge_id}/setup")
async def setup_attack(
    challenge_id: int, body: ChallengeSetup, service: Annotated[ChallengeService, Depends()]
) -> APIResponse[Challenge]:
    challenge = await service.setup_attack(challenge_id, body.player_id, body.cards, body.order)
    return APIResponse(data=challenge, message="Attack cards set")


@router.post("/{challenge_id}/accept")
async def accept_challenge(
    challenge_id: int, body: ChallengeAction, service: Annotated[ChallengeService, Depends()]
) -> APIResponse[Challenge]:
    challenge = await service.accept(challenge_id, body.player_id)
    return APIResponse(data=challenge, message="Challenge accepted")


@router.post("/{challenge_id}/decline")
async def decline_challenge(
    challenge_id: int, body: ChallengeAction, service: Annotated[ChallengeService, Depends()]
) -> APIResponse[Challenge]:
    challenge = await service.decline(challenge_id, body.player_id)
    return APIResponse(data=challenge, message="Challenge declined")


@router.post("/{challenge_id}/reveal")
async def reveal_cards(
    challenge_id: int, body: ChallengeReveal, service: Annotated[ChallengeService, Depends()]
) -> APIResponse[Sequence[Card]]:
    cards = await service.reveal_cards(challenge_id, body.player_id, body.tool_id)
    return APIResponse(data=cards)


@router.post("/{challenge_id}/setup-defense")
async def setup_defense(
    challenge_id: int, body: ChallengeSetup, service: Annotated[ChallengeService, Depends()]
) -> APIResponse[ChallengeResult]:
    challenge, battle = await service.setup_defense(
        challenge_id, body.player_id, body.cards, body.order
    )
    detail = await service.battle_service.get_battle_detail(battle)
    return APIResponse(
        data=ChallengeResult(challenge=challenge, battle=detail), message="Battle complete"
    )
