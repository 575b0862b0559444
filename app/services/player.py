from collections.abc import Sequence
from typing import Annotated

from fastapi import Depends, HTTPException
from loguru import logger
from sqlmodel import col, func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.db import get_db
from app.models.card import Card
from app.models.deck_card import DeckCard
from app.models.player import Player
from app.models.player_tool import PlayerTool
from app.schemas.common import PaginationData
from app.services.tool import STARTER_TOOL_IDS
from app.utils.misc import get_utc_now


class PlayerService:
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db)]) -> None:
        self.db = db

    async def get_players(
        self, *, page: int, page_size: int
    ) -> tuple[Sequence[Player], PaginationData]:
        total_result = await self.db.exec(select(func.count()).select_from(Player))
        pagination = PaginationData.build(
            page=page, page_size=page_size, total_items=total_result.one()
        )

        result = await self.db.exec(
            select(Player).order_by(col(Player.id)).offset((page - 1) * page_size).limit(page_size)
        )
        return result.all(), pagination

    async def get_player(self, player_id: int) -> Player | None:
        result = await self.db.exec(select(Player).where(Player.id == player_id))
        return result.first()

    async def get_player_or_404(self, player_id: int) -> Player:
        player = await self.get_player(player_id)
        if not player:
            raise HTTPException(status_code=404, detail=f"Player {player_id} not found")
        return player

    async def create_player(self, name: str) -> Player:
        """Create a player with starting coins, default rating and the starter tools."""
        existing = await self.db.exec(select(Player).where(col(Player.name) == name))
        if existing.first():
            raise HTTPException(status_code=400, detail=f"Player name {name!r} is taken")

        player = Player(name=name, coins=settings.starting_coins, rating=settings.default_rating)
        self.db.add(player)
        await self.db.flush()

        for tool_id in STARTER_TOOL_IDS:
            self.db.add(PlayerTool(player_id=player.id, tool_id=tool_id, quantity=1))

        await self.db.commit()
        await self.db.refresh(player)
        logger.info(f"Created player {player.name} (#{player.id})")
        return player

    async def touch(self, player: Player) -> None:
        """Mark the player as active now. Does not commit."""
        player.last_active = get_utc_now()
        self.db.add(player)

    async def get_deck(self, player_id: int) -> list[int]:
        result = await self.db.exec(
            select(DeckCard.card_id)
            .where(DeckCard.player_id == player_id)
            .order_by(col(DeckCard.position))
        )
        return list(result.all())

    async def set_deck(self, player_id: int, card_ids: list[int]) -> list[int]:
        """Replace a player's deck. A deck holds exactly ``settings.deck_size`` cards."""
        await self.get_player_or_404(player_id)

        if len(card_ids) != settings.deck_size:
            raise HTTPException(
                status_code=400, detail=f"A deck must have exactly {settings.deck_size} cards"
            )

        found = await self.db.exec(select(Card.id).where(col(Card.id).in_(set(card_ids))))
        missing = set(card_ids) - set(found.all())
        if missing:
            raise HTTPException(status_code=404, detail=f"Cards not found: {sorted(missing)}")

        existing = await self.db.exec(select(DeckCard).where(DeckCard.player_id == player_id))
        for deck_card in existing.all():
            await self.db.delete(deck_card)

        for position, card_id in enumerate(card_ids, start=1):
            self.db.add(DeckCard(player_id=player_id, card_id=card_id, position=position))

        await self.db.commit()
        return card_ids
