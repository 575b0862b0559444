from typing import Annotated

from fastapi import Depends, HTTPException
from loguru import logger
from sqlmodel import col, desc, func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.db import get_db
from app.core.enums import EventType, Side
from app.models.battle import Battle
from app.models.event_log import EventLog
from app.models.player import Player
from app.schemas.battle import BattleOutcome
from app.schemas.leaderboard import LeaderboardEntry, PlayerRank


def calculate_new_rating(
    rating: int, opponent_rating: int, won: bool, *, k_factor: int | None = None
) -> int:
    """ELO update: ``round(r + K * (actual - expected))``."""
    k = settings.elo_k_factor if k_factor is None else k_factor
    expected_score = 1 / (1 + 10 ** ((opponent_rating - rating) / 400))
    actual_score = 1 if won else 0
    return round(rating + k * (actual_score - expected_score))


def calculate_win_rate(wins: int, losses: int) -> int:
    games = wins + losses
    return round(wins / games * 100) if games else 0


class RatingService:
    """Applies battle outcomes to player records and serves the leaderboard."""

    def __init__(self, db: Annotated[AsyncSession, Depends(get_db)]) -> None:
        self.db = db

    async def _get_player(self, player_id: int | None) -> Player | None:
        if player_id is None:
            return None
        result = await self.db.exec(select(Player).where(Player.id == player_id))
        return result.first()

    def _credit(self, player: Player, amount: int, battle_id: int) -> None:
        player.coins += amount
        self.db.add(
            EventLog(
                player_id=player.id,
                event_type=EventType.BATTLE_REWARD,
                context={"amount": amount, "battle_id": battle_id},
            )
        )

    async def apply_battle_outcome(self, battle: Battle, outcome: BattleOutcome) -> None:
        """Update win/loss counters, ratings and coins after a battle. Does not commit.

        In a PvP battle both players are updated and rated against each other's
        pre-battle rating. Against the AI only player 1's counters and coins
        change; there is no rating change, so ratings can't be farmed off the AI.
        """
        player1 = await self._get_player(battle.player1_id)
        player2 = await self._get_player(battle.player2_id)
        is_pvp = not battle.is_simulation and battle.player2_id is not None

        if not is_pvp:
            if player1:
                if outcome.winner_side is Side.PLAYER1:
                    player1.wins += 1
                    self._credit(player1, settings.simulation_win_reward, battle.id)
                else:
                    player1.losses += 1
                self.db.add(player1)
            return

        ratings = {
            Side.PLAYER1: player1.rating if player1 else settings.default_rating,
            Side.PLAYER2: player2.rating if player2 else settings.default_rating,
        }
        for side, player in ((Side.PLAYER1, player1), (Side.PLAYER2, player2)):
            if player is None:
                continue

            won = outcome.winner_side is side
            if won:
                player.wins += 1
                player.pvp_wins += 1
                self._credit(player, settings.pvp_win_reward, battle.id)
            else:
                player.losses += 1
                player.pvp_losses += 1

            old_rating = player.rating
            player.rating = calculate_new_rating(ratings[side], ratings[side.opponent], won)
            self.db.add(
                EventLog(
                    player_id=player.id,
                    event_type=EventType.RATING_CHANGE,
                    context={
                        "battle_id": battle.id,
                        "old_rating": old_rating,
                        "new_rating": player.rating,
                    },
                )
            )
            self.db.add(player)
            logger.info(f"Player {player.id} rating {old_rating} -> {player.rating}")

    async def get_leaderboard(self, limit: int = 50) -> list[LeaderboardEntry]:
        result = await self.db.exec(
            select(Player)
            .order_by(desc(col(Player.rating)), desc(col(Player.pvp_wins)), col(Player.id))
            .limit(limit)
        )
        return [
            LeaderboardEntry(
                rank=idx + 1,
                player_id=player.id,
                name=player.name,
                rating=player.rating,
                pvp_wins=player.pvp_wins,
                pvp_losses=player.pvp_losses,
                total_wins=player.wins,
                total_losses=player.losses,
                win_rate=calculate_win_rate(player.pvp_wins, player.pvp_losses),
                last_active=player.last_active,
            )
            for idx, player in enumerate(result.all())
        ]

    async def get_player_rank(self, player_id: int) -> PlayerRank:
        """Get a player's position on the leaderboard (1-indexed)."""
        player = await self._get_player(player_id)
        if not player:
            raise HTTPException(status_code=404, detail=f"Player {player_id} not found")

        higher_result = await self.db.exec(
            select(func.count())
            .select_from(Player)
            .where(
                (col(Player.rating) > player.rating)
                | (
                    (col(Player.rating) == player.rating)
                    & (
                        (col(Player.pvp_wins) > player.pvp_wins)
                        | (
                            (col(Player.pvp_wins) == player.pvp_wins)
                            & (col(Player.id) < player.id)
                        )
                    )
                )
            )
        )
        total_result = await self.db.exec(select(func.count()).select_from(Player))

        return PlayerRank(
            rank=higher_result.one() + 1,
            player_id=player.id,
            name=player.name,
            rating=player.rating,
            pvp_wins=player.pvp_wins,
            pvp_losses=player.pvp_losses,
            total_players=total_result.one(),
        )
