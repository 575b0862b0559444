from collections.abc import Iterable, Sequence
from typing import Annotated

from fastapi import Depends
from sqlmodel import col, func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.db import get_db
from app.models.card import Card
from app.schemas.card import CardCreate
from app.schemas.common import PaginationData


class CardService:
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db)]) -> None:
        self.db = db

    async def get_cards(
        self, *, page: int, page_size: int, search_name: str | None = None
    ) -> tuple[Sequence[Card], PaginationData]:
        query = select(Card)
        if search_name:
            query = query.where(col(Card.name).ilike(f"%{search_name}%"))

        total_result = await self.db.exec(select(func.count()).select_from(query.subquery()))
        pagination = PaginationData.build(
            page=page, page_size=page_size, total_items=total_result.one()
        )

        result = await self.db.exec(
            query.order_by(col(Card.id)).offset((page - 1) * page_size).limit(page_size)
        )
        return result.all(), pagination

    async def get_card(self, card_id: int) -> Card | None:
        result = await self.db.exec(select(Card).where(Card.id == card_id))
        return result.first()

    async def get_cards_by_ids(self, card_ids: Iterable[int]) -> dict[int, Card]:
        """Load the given cards keyed by ID. Missing IDs are simply absent."""
        ids = set(card_ids)
        if not ids:
            return {}
        result = await self.db.exec(select(Card).where(col(Card.id).in_(ids)))
        return {card.id: card for card in result.all()}

    async def get_all_card_ids(self) -> list[int]:
        result = await self.db.exec(select(Card.id))
        return list(result.all())

    async def create_card(self, card_data: CardCreate) -> Card:
        card = Card(**card_data.model_dump())
        self.db.add(card)
        await self.db.commit()
        await self.db.refresh(card)
        return card
