from collections.abc import Sequence
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from app.models.card import Card
from app.schemas.card import CardCreate
from app.schemas.common import APIResponse, PaginatedResponse
from app.services.card import CardService

router = APIRouter(prefix="/cards", tags=["cards"])


@router.get("/")
async def get_cards(
    service: Annotated[CardService, Depends()],
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1)] = 10,
    search_name: str | None = None,
) -> PaginatedResponse[Sequence[Card]]:
    cards, pagination = await service.get_cards(
        page=page, page_size=page_size, search_name=search_name
    )
    return PaginatedResponse(data=cards, pagination=pagination)


@router.get("/{card_id}")
async def get_card(card_id: int, service: Annotated[CardService, Depends()]) -> APIResponse[Card]:
    card = await service.get_card(card_id)
    if not card:
        raise HTTPException(status_code=404, detail=f"Card {card_id} not found")
    return APIResponse(data=card)


@router.post("/")
async def create_card(
    card: CardCreate, service: Annotated[CardService, Depends()]
) -> APIResponse[Card]:
    created_card = await service.create_card(card)
    return APIResponse(data=created_card, message="Card created successfully")
