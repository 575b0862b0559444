from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.enums import ANY_ABILITY, Ability, RoundWinner, Side, WinReason
from app.models.battle import Battle
from app.models.battle_tool_usage import BattleToolUsage
from app.models.card import Card


class ToolBonus(BaseModel):
    """A tool's stat bonus resolved for one card position."""

    model_config = ConfigDict(frozen=True)

    ability: Ability | Literal["any"]
    value: int
    display_name: str

    def applies_to(self, ability: Ability) -> bool:
        return self.ability == ANY_ABILITY or self.ability == ability


class ToolUsageRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    player_id: int | None
    tool_id: str
    card_id: int
    card_position: int = Field(ge=0, le=2)


class RoundSideResult(BaseModel):
    """One side's numbers for a single round."""

    model_config = ConfigDict(frozen=True)

    card_id: int
    card_name: str
    roll: int
    """Raw d6 outcome, before any critical hit doubling"""
    effective_roll: int
    base_stat_value: int
    stat_value: int
    """Base stat plus the applied tool bonus"""
    tool_bonus: int | None = None
    """Bonus actually applied; 0 when a tool is equipped but inactive this round"""
    tool_name: str | None = None
    critical_hit: bool = False
    total: int


class RoundResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    round_number: int
    ability: Ability
    player1: RoundSideResult
    player2: RoundSideResult
    damage_dealt: int
    winner: RoundWinner

    def side(self, side: Side) -> RoundSideResult:
        return self.player1 if side is Side.PLAYER1 else self.player2


class BattleInput(BaseModel):
    """Everything the engine needs to resolve a battle."""

    model_config = ConfigDict(frozen=True)

    battle_id: int | None = None
    player1_id: int
    player2_id: int | None
    player1_cards: tuple[int, int, int]
    player2_cards: tuple[int, int, int]
    player1_order: tuple[int, int, int] | None = None
    player2_order: tuple[int, int, int] | None = None
    first_round_ability: Ability | None = None
    tool_usages: tuple[ToolUsageRecord, ...] = ()

    @field_validator("player1_order", "player2_order")
    @classmethod
    def _check_permutation(
        cls, value: tuple[int, int, int] | None
    ) -> tuple[int, int, int] | None:
        if value is not None and sorted(value) != [0, 1, 2]:
            msg = "Play order must be a permutation of [0, 1, 2]"
            raise ValueError(msg)
        return value

    @classmethod
    def from_battle(cls, battle: Battle, usages: list[BattleToolUsage]) -> "BattleInput":
        return cls(
            battle_id=battle.id,
            player1_id=battle.player1_id,
            player2_id=battle.player2_id,
            player1_cards=tuple(battle.player1_cards),
            player2_cards=tuple(battle.player2_cards),
            player1_order=tuple(battle.player1_order) if battle.player1_order else None,
            player2_order=tuple(battle.player2_order) if battle.player2_order else None,
            first_round_ability=battle.first_round_ability,
            tool_usages=tuple(
                ToolUsageRecord(
                    player_id=u.player_id,
                    tool_id=u.tool_id,
                    card_id=u.card_id,
                    card_position=u.card_position,
                )
                for u in usages
            ),
        )

    def participant(self, side: Side) -> int | None:
        return self.player1_id if side is Side.PLAYER1 else self.player2_id

    def order_for(self, side: Side) -> tuple[int, int, int] | None:
        return self.player1_order if side is Side.PLAYER1 else self.player2_order


class BattleOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    rounds: list[RoundResult]
    player1_points: int
    player2_points: int
    player1_total_damage: int
    player2_total_damage: int
    winner_side: Side
    winner_id: int | None
    """None when the AI opponent wins"""
    win_reason: WinReason
    completed_at: datetime

    @property
    def draws(self) -> int:
        return sum(1 for r in self.rounds if r.winner is RoundWinner.DRAW)


class BattleCreate(BaseModel):
    player1_id: int
    player2_id: int | None = None
    is_simulation: bool = False
    first_round_ability: Ability | None = None


class BattleOrderSet(BaseModel):
    player_id: int
    order: list[int] = Field(min_length=3, max_length=3)


class BattleToolApply(BaseModel):
    player_id: int
    tool_id: str
    card_position: int = Field(ge=0, le=2)


class BattleDetail(BaseModel):
    """A battle with its selected cards expanded for display."""

    battle: Battle
    player1_card_details: list[Card]
    player2_card_details: list[Card]
    tool_usages: list[BattleToolUsage] = []
