from collections.abc import Sequence
from typing import Annotated

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import update
from sqlmodel import col, desc, or_, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.db import get_db
from app.core.enums import BattleStatus, ChallengeStatus, ToolEffectType
from app.core.errors import BattlePreconditionError, BattleStateError
from app.models.battle import Battle
from app.models.card import Card
from app.models.challenge import Challenge
from app.services.battle import CARDS_PER_BATTLE, BattleService, is_valid_order
from app.services.card import CardService
from app.services.player import PlayerService
from app.services.tool import ToolService
from app.utils.rng import RandomSource, default_rng, get_rng

ACTIVE_STATUSES = (ChallengeStatus.PENDING, ChallengeStatus.ACCEPTED)


class ChallengeService:
    """PvP challenges: the challenger picks cards, the challenged player accepts,
    optionally scouts with a reveal tool, then picks a defense, which runs the battle.
    """

    def __init__(  # noqa: PLR0913
        self,
        db: Annotated[AsyncSession, Depends(get_db)],
        card_service: Annotated[CardService, Depends()],
        player_service: Annotated[PlayerService, Depends()],
        tool_service: Annotated[ToolService, Depends()],
        battle_service: Annotated[BattleService, Depends()],
        rng: Annotated[RandomSource, Depends(get_rng)],
    ) -> None:
        self.db = db
        self.card_service = card_service
        self.player_service = player_service
        self.tool_service = tool_service
        self.battle_service = battle_service
        self.rng = rng

    @classmethod
    def from_session(cls, db: AsyncSession, rng: RandomSource | None = None) -> "ChallengeService":
        rng = rng or default_rng()
        return cls(
            db=db,
            card_service=CardService(db),
            player_service=PlayerService(db),
            tool_service=ToolService(db),
            battle_service=BattleService.from_session(db, rng),
            rng=rng,
        )

    async def get_challenge(self, challenge_id: int) -> Challenge | None:
        result = await self.db.exec(select(Challenge).where(Challenge.id == challenge_id))
        return result.first()

    async def get_challenge_or_404(self, challenge_id: int) -> Challenge:
        challenge = await self.get_challenge(challenge_id)
        if not challenge:
            raise HTTPException(status_code=404, detail=f"Challenge {challenge_id} not found")
        return challenge

    async def get_player_challenges(
        self, player_id: int, *, active_only: bool = False
    ) -> Sequence[Challenge]:
        """Incoming and outgoing challenges of a player, most recent first."""
        query = select(Challenge).where(
            or_(Challenge.challenger_id == player_id, Challenge.challenged_id == player_id)
        )
        if active_only:
            query = query.where(col(Challenge.status).in_(ACTIVE_STATUSES))
        result = await self.db.exec(
            query.order_by(desc(col(Challenge.created_at)), desc(col(Challenge.id)))
        )
        return result.all()

    async def create_challenge(self, challenger_id: int, challenged_id: int) -> Challenge:
        challenger = await self.player_service.get_player_or_404(challenger_id)
        await self.player_service.get_player_or_404(challenged_id)
        if challenger_id == challenged_id:
            raise HTTPException(status_code=400, detail="Cannot challenge yourself")

        deck = await self.player_service.get_deck(challenger_id)
        if len(deck) != settings.deck_size:
            raise HTTPException(
                status_code=400,
                detail=f"You need a deck of exactly {settings.deck_size} cards to challenge others",
            )

        challenge = Challenge(challenger_id=challenger_id, challenged_id=challenged_id)
        await self.player_service.touch(challenger)
        self.db.add(challenge)
        await self.db.commit()
        await self.db.refresh(challenge)

        logger.info(f"Player {challenger_id} challenged player {challenged_id}")
        return challenge

    async def _check_selection(self, player_id: int, cards: list[int], order: list[int]) -> None:
        if len(cards) != CARDS_PER_BATTLE or len(set(cards)) != CARDS_PER_BATTLE:
            msg = f"Must select exactly {CARDS_PER_BATTLE} different cards"
            raise BattlePreconditionError(msg)
        if not is_valid_order(order):
            msg = "Invalid order. Must be array of [0,1,2] in desired order"
            raise BattlePreconditionError(msg)

        deck = await self.player_service.get_deck(player_id)
        if not set(cards) <= set(deck):
            msg = "Selected cards must come from your deck"
            raise BattlePreconditionError(msg)

    async def _transition(
        self, challenge: Challenge, expected: ChallengeStatus, new: ChallengeStatus
    ) -> None:
        """Move the challenge to ``new`` only if it is still ``expected``. Does not commit."""
        result = await self.db.exec(
            update(Challenge)
            .where(col(Challenge.id) == challenge.id, col(Challenge.status) == expected)
            .values(status=new)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.db.rollback()
            msg = f"Challenge is no longer {expected}"
            raise BattleStateError(msg)
        challenge.status = new

    @staticmethod
    def _check_challenged(challenge: Challenge, player_id: int) -> None:
        if player_id != challenge.challenged_id:
            raise HTTPException(status_code=403, detail="You are not the challenged player")

    async def setup_attack(
        self, challenge_id: int, player_id: int, cards: list[int], order: list[int]
    ) -> Challenge:
        """Set the challenger's three cards and play order. Allowed while pending."""
        challenge = await self.get_challenge_or_404(challenge_id)
        if player_id != challenge.challenger_id:
            raise HTTPException(status_code=403, detail="You are not the challenger")
        if challenge.status != ChallengeStatus.PENDING:
            msg = "Challenge is not in pending state"
            raise BattleStateError(msg)

        await self._check_selection(player_id, cards, order)

        challenge.challenger_cards = list(cards)
        challenge.challenger_order = list(order)
        self.db.add(challenge)
        await self.db.commit()
        await self.db.refresh(challenge)
        return challenge

    async def accept(self, challenge_id: int, player_id: int) -> Challenge:
        challenge = await self.get_challenge_or_404(challenge_id)
        self._check_challenged(challenge, player_id)
        if challenge.status != ChallengeStatus.PENDING:
            msg = "Challenge is not pending"
            raise BattleStateError(msg)
        # Attack cards can only be set while pending
        if not challenge.challenger_cards:
            msg = "The challenger has not chosen their cards yet"
            raise BattlePreconditionError(msg)

        deck = await self.player_service.get_deck(player_id)
        if len(deck) != settings.deck_size:
            raise HTTPException(
                status_code=400,
                detail=f"You need a deck of exactly {settings.deck_size} cards to accept",
            )

        await self._transition(challenge, ChallengeStatus.PENDING, ChallengeStatus.ACCEPTED)
        self.db.add(challenge)
        await self.db.commit()
        await self.db.refresh(challenge)
        logger.info(f"Player {player_id} accepted challenge {challenge.id}")
        return challenge

    async def decline(self, challenge_id: int, player_id: int) -> Challenge:
        challenge = await self.get_challenge_or_404(challenge_id)
        self._check_challenged(challenge, player_id)
        if challenge.status != ChallengeStatus.PENDING:
            msg = "Challenge is not pending"
            raise BattleStateError(msg)

        await self._transition(challenge, ChallengeStatus.PENDING, ChallengeStatus.DECLINED)
        self.db.add(challenge)
        await self.db.commit()
        await self.db.refresh(challenge)
        logger.info(f"Player {player_id} declined challenge {challenge.id}")
        return challenge

    async def reveal_cards(self, challenge_id: int, player_id: int, tool_id: str) -> list[Card]:
        """Use a reveal tool to see some of the challenger's cards before defending.

        Only the challenged player can do this, once per challenge, after accepting
        and once the challenger has chosen their cards.
        """
        challenge = await self.get_challenge_or_404(challenge_id)
        self._check_challenged(challenge, player_id)
        if challenge.status != ChallengeStatus.ACCEPTED:
            msg = "Cards can only be revealed on an accepted challenge"
            raise BattleStateError(msg)
        if not challenge.challenger_cards:
            msg = "The challenger has not chosen their cards yet"
            raise BattlePreconditionError(msg)
        if challenge.revealed_cards:
            msg = "Cards were already revealed for this challenge"
            raise BattlePreconditionError(msg)

        tool = await self.tool_service.get_tool(tool_id)
        if tool is None:
            raise HTTPException(status_code=404, detail=f"Tool {tool_id!r} not found")
        if tool.effect_type != ToolEffectType.REVEAL_CARDS:
            raise HTTPException(status_code=400, detail=f"{tool.name} does not reveal cards")

        await self.tool_service.claim_tool(player_id, tool)

        count = min(tool.effect_value or 0, len(challenge.challenger_cards))
        revealed = self.rng.sample(list(challenge.challenger_cards), count)
        challenge.revealed_cards = revealed
        self.db.add(challenge)
        self.tool_service.log_tool_use(player_id, tool.id, {"challenge_id": challenge.id})
        await self.db.commit()
        await self.db.refresh(challenge)

        logger.info(f"Player {player_id} used {tool.name} on challenge {challenge.id}")
        cards = await self.card_service.get_cards_by_ids(revealed)
        return [cards[card_id] for card_id in revealed if card_id in cards]

    async def setup_defense(
        self, challenge_id: int, player_id: int, cards: list[int], order: list[int]
    ) -> tuple[Challenge, Battle]:
        """Set the defense and fight the battle at once.

        The challenge is completed and its ready battle created in one commit;
        the battle is then executed. If execution fails the battle stays ready
        and can be executed again through the battle endpoints.
        """
        challenge = await self.get_challenge_or_404(challenge_id)
        self._check_challenged(challenge, player_id)
        if challenge.status != ChallengeStatus.ACCEPTED:
            msg = "Challenge must be accepted first"
            raise BattleStateError(msg)
        if not challenge.challenger_cards or not challenge.challenger_order:
            msg = "The challenger has not chosen their cards yet"
            raise BattlePreconditionError(msg)

        await self._check_selection(player_id, cards, order)
        await self._transition(challenge, ChallengeStatus.ACCEPTED, ChallengeStatus.COMPLETED)

        battle = Battle(
            player1_id=challenge.challenger_id,
            player2_id=challenge.challenged_id,
            player1_cards=list(challenge.challenger_cards),
            player2_cards=list(cards),
            player1_order=list(challenge.challenger_order),
            player2_order=list(order),
            status=BattleStatus.READY,
        )
        self.db.add(battle)
        await self.db.flush()

        challenge.challenged_cards = list(cards)
        challenge.challenged_order = list(order)
        challenge.battle_id = battle.id
        self.db.add(challenge)
        for participant_id in (challenge.challenger_id, challenge.challenged_id):
            participant = await self.player_service.get_player_or_404(participant_id)
            await self.player_service.touch(participant)
        await self.db.commit()

        logger.info(f"Challenge {challenge.id} defended; executing battle {battle.id}")
        battle, _ = await self.battle_service.execute_battle(battle.id)
        await self.db.refresh(challenge)
        return challenge, battle
