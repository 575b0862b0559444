from collections.abc import Sequence
from typing import Annotated

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import update
from sqlmodel import col, desc, or_, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.db import get_db
from app.core.enums import Ability, BattleStatus
from app.core.errors import BattlePreconditionError, BattleStateError
from app.models.battle import Battle
from app.models.battle_tool_usage import BattleToolUsage
from app.schemas.battle import BattleDetail, BattleInput, BattleOutcome
from app.services.battle_engine import BattleEngine
from app.services.card import CardService
from app.services.player import PlayerService
from app.services.rating import RatingService
from app.services.tool import ToolService
from app.utils.rng import RandomSource, default_rng, get_rng

CARDS_PER_BATTLE = 3


def is_valid_order(order: Sequence[int]) -> bool:
    return len(order) == CARDS_PER_BATTLE and sorted(order) == list(range(CARDS_PER_BATTLE))


class BattleService:
    def __init__(  # noqa: PLR0913
        self,
        db: Annotated[AsyncSession, Depends(get_db)],
        card_service: Annotated[CardService, Depends()],
        player_service: Annotated[PlayerService, Depends()],
        tool_service: Annotated[ToolService, Depends()],
        rating_service: Annotated[RatingService, Depends()],
        rng: Annotated[RandomSource, Depends(get_rng)],
    ) -> None:
        self.db = db
        self.card_service = card_service
        self.player_service = player_service
        self.tool_service = tool_service
        self.rating_service = rating_service
        self.rng = rng

    @classmethod
    def from_session(cls, db: AsyncSession, rng: RandomSource | None = None) -> "BattleService":
        """Build the service and its collaborators on one session, outside of FastAPI."""
        return cls(
            db=db,
            card_service=CardService(db),
            player_service=PlayerService(db),
            tool_service=ToolService(db),
            rating_service=RatingService(db),
            rng=rng or default_rng(),
        )

    async def get_battle(self, battle_id: int) -> Battle | None:
        result = await self.db.exec(select(Battle).where(Battle.id == battle_id))
        return result.first()

    async def get_battle_or_404(self, battle_id: int) -> Battle:
        battle = await self.get_battle(battle_id)
        if not battle:
            raise HTTPException(status_code=404, detail=f"Battle {battle_id} not found")
        return battle

    async def get_battle_detail(self, battle: Battle) -> BattleDetail:
        cards = await self.card_service.get_cards_by_ids(
            [*battle.player1_cards, *battle.player2_cards]
        )
        return BattleDetail(
            battle=battle,
            player1_card_details=[cards[i] for i in battle.player1_cards if i in cards],
            player2_card_details=[cards[i] for i in battle.player2_cards if i in cards],
            tool_usages=await self.tool_service.get_battle_tool_usages(battle.id),
        )

    async def get_player_battles(self, player_id: int) -> Sequence[Battle]:
        result = await self.db.exec(
            select(Battle)
            .where(or_(Battle.player1_id == player_id, Battle.player2_id == player_id))
            .order_by(desc(col(Battle.created_at)), desc(col(Battle.id)))
        )
        return result.all()

    def _select_battle_cards(self, deck: Sequence[int]) -> list[int]:
        if len(deck) <= CARDS_PER_BATTLE:
            return list(deck)
        return self.rng.sample(list(deck), CARDS_PER_BATTLE)

    def _random_order(self) -> list[int]:
        return self.rng.sample(list(range(CARDS_PER_BATTLE)), CARDS_PER_BATTLE)

    async def create_battle(
        self,
        player1_id: int,
        player2_id: int | None = None,
        *,
        is_simulation: bool = False,
        first_round_ability: Ability | None = None,
    ) -> Battle:
        """Create a PvP battle, or a simulation against an AI opponent.

        Three cards are drawn at random from each deck. The AI opponent's deck is
        made of random cards from the whole pool and its play order is set at once.
        """
        player1 = await self.player_service.get_player_or_404(player1_id)
        player1_deck = await self.player_service.get_deck(player1_id)
        if len(player1_deck) != settings.deck_size:
            raise HTTPException(
                status_code=400,
                detail=f"Player 1 must have a deck of exactly {settings.deck_size} cards",
            )

        if is_simulation:
            all_card_ids = await self.card_service.get_all_card_ids()
            if len(all_card_ids) < settings.deck_size:
                raise HTTPException(
                    status_code=400,
                    detail="Not enough cards available for simulation. Create more cards first!",
                )
            player2_deck = self.rng.sample(all_card_ids, settings.deck_size)
            player2_id = None
        else:
            if player2_id is None:
                raise HTTPException(status_code=400, detail="A PvP battle needs a second player")
            if player2_id == player1_id:
                raise HTTPException(status_code=400, detail="Cannot battle yourself")
            player2 = await self.player_service.get_player_or_404(player2_id)
            player2_deck = await self.player_service.get_deck(player2_id)
            if len(player2_deck) != settings.deck_size:
                raise HTTPException(
                    status_code=400,
                    detail=f"Player 2 must have a deck of exactly {settings.deck_size} cards",
                )
            await self.player_service.touch(player2)

        battle = Battle(
            player1_id=player1_id,
            player2_id=player2_id,
            is_simulation=is_simulation,
            player1_cards=self._select_battle_cards(player1_deck),
            player2_cards=self._select_battle_cards(player2_deck),
            player2_order=self._random_order() if is_simulation else None,
            first_round_ability=first_round_ability,
            status=BattleStatus.WAITING_FOR_ORDER,
        )
        await self.player_service.touch(player1)
        self.db.add(battle)
        await self.db.commit()
        await self.db.refresh(battle)

        logger.info(
            f"Created battle {battle.id}: player {player1_id} vs "
            f"{player2_id if player2_id is not None else 'AI'}"
        )
        return battle

    async def set_order(self, battle_id: int, player_id: int, order: list[int]) -> Battle:
        battle = await self.get_battle_or_404(battle_id)

        if battle.status != BattleStatus.WAITING_FOR_ORDER:
            msg = "Battle is not waiting for card orders"
            raise BattleStateError(msg)
        if not is_valid_order(order):
            msg = "Invalid order. Must be array of [0,1,2] in desired order"
            raise BattlePreconditionError(msg)

        if player_id == battle.player1_id:
            battle.player1_order = list(order)
        elif battle.player2_id is not None and player_id == battle.player2_id:
            battle.player2_order = list(order)
        else:
            raise HTTPException(status_code=403, detail="Player not in this battle")

        if battle.player1_order and battle.player2_order:
            battle.status = BattleStatus.READY

        self.db.add(battle)
        await self.db.commit()
        await self.db.refresh(battle)
        return battle

    async def apply_tool(
        self, battle_id: int, player_id: int, tool_id: str, card_position: int
    ) -> BattleToolUsage:
        battle = await self.get_battle_or_404(battle_id)
        if battle.status == BattleStatus.COMPLETED:
            msg = "Tools cannot be applied to a completed battle"
            raise BattleStateError(msg)
        return await self.tool_service.apply_tool_to_battle(
            battle, player_id, tool_id, card_position
        )

    async def execute_battle(self, battle_id: int) -> tuple[Battle, BattleOutcome]:
        """Resolve a ready battle, store the outcome and update the players.

        The battle is claimed with a conditional status update, so of two
        concurrent executions only one resolves it. The claim, the outcome,
        player records and cooldowns are committed together; if resolution
        fails nothing is written.

        Raises:
            BattleStateError: If the battle is not ready (e.g. already completed).
            BattlePreconditionError: If a play order is missing.
            CardNotFoundError: If a selected card no longer exists.
        """
        battle = await self.get_battle_or_404(battle_id)
        logger.info(f"Starting execution for battle {battle.id} (status: {battle.status})")

        if battle.status != BattleStatus.READY:
            msg = "Battle is not ready to execute"
            raise BattleStateError(msg)

        usages = await self.tool_service.get_battle_tool_usages(battle.id)
        battle_input = BattleInput.from_battle(battle, usages)
        cards = await self.card_service.get_cards_by_ids(
            [*battle.player1_cards, *battle.player2_cards]
        )
        tools = await self.tool_service.get_tools_by_ids(u.tool_id for u in usages)

        outcome = BattleEngine(self.rng).resolve(battle_input, cards, tools)

        claim = await self.db.exec(
            update(Battle)
            .where(col(Battle.id) == battle.id, col(Battle.status) == BattleStatus.READY)
            .values(status=BattleStatus.COMPLETED)
            .execution_options(synchronize_session=False)
        )
        if claim.rowcount == 0:
            await self.db.rollback()
            logger.warning(f"Battle {battle_id} was resolved by another request")
            msg = "Battle is not ready to execute"
            raise BattleStateError(msg)

        battle.rounds = [r.model_dump(mode="json") for r in outcome.rounds]
        battle.current_round = len(outcome.rounds)
        battle.player1_points = outcome.player1_points
        battle.player2_points = outcome.player2_points
        battle.player1_total_damage = outcome.player1_total_damage
        battle.player2_total_damage = outcome.player2_total_damage
        battle.winner_id = outcome.winner_id
        battle.winner_side = outcome.winner_side
        battle.win_reason = outcome.win_reason
        battle.status = BattleStatus.COMPLETED
        battle.completed_at = outcome.completed_at
        self.db.add(battle)

        await self.rating_service.apply_battle_outcome(battle, outcome)

        for player_id in (battle.player1_id, battle.player2_id):
            if player_id is None:
                continue
            used = [u.tool_id for u in usages if u.player_id == player_id]
            await self.tool_service.tick_cooldowns(player_id, skip_tool_ids=used)

        await self.db.commit()
        await self.db.refresh(battle)
        return battle, outcome
