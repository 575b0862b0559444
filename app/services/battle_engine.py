"""Battle resolution engine.

Pure functions over already-loaded cards and tools: nothing in here touches the
database. ``BattleService`` loads the inputs, calls ``BattleEngine.resolve`` and
persists the returned ``BattleOutcome`` in one commit.
"""

from collections.abc import Iterable, Mapping

from loguru import logger

from app.core.enums import (
    ABILITIES,
    ANY_ABILITY,
    Ability,
    RoundWinner,
    Side,
    ToolEffectType,
    WinReason,
)
from app.core.errors import BattlePreconditionError, CardNotFoundError
from app.models.card import Card
from app.models.tool import Tool
from app.schemas.battle import (
    BattleInput,
    BattleOutcome,
    RoundResult,
    RoundSideResult,
    ToolBonus,
    ToolUsageRecord,
)
from app.utils.misc import get_utc_now
from app.utils.rng import RandomSource, coin_toss, default_rng, roll_d6

ROUNDS_PER_BATTLE = 3

type ToolBonusMap = dict[Side, dict[int, ToolBonus]]


def resolve_tool_bonuses(
    usages: Iterable[ToolUsageRecord], player1_id: int, tools: Mapping[str, Tool]
) -> ToolBonusMap:
    """Build each side's map of card position -> stat bonus.

    Positions refer to the side's selected triple, not to play order. Unknown
    tools and non-combat tools are skipped; a later usage for the same position
    replaces an earlier one.
    """
    bonuses: ToolBonusMap = {Side.PLAYER1: {}, Side.PLAYER2: {}}

    for usage in usages:
        tool = tools.get(usage.tool_id)
        if tool is None:
            logger.debug(f"Skipping usage of unknown tool {usage.tool_id!r}")
            continue
        if tool.effect_type == ToolEffectType.REVEAL_CARDS:
            continue

        side = Side.PLAYER1 if usage.player_id == player1_id else Side.PLAYER2
        if tool.effect_type == ToolEffectType.ANY_STAT_BOOST or tool.effect_ability == ANY_ABILITY:
            ability: Ability | str = ANY_ABILITY
        else:
            ability = Ability(tool.effect_ability)

        bonuses[side][usage.card_position] = ToolBonus(
            ability=ability, value=tool.effect_value or 0, display_name=tool.name
        )

    return bonuses


def _roll_critical_hit(card: Card, rng: RandomSource) -> bool:
    # Always draw so the number of draws per round doesn't depend on the cards
    draw = rng.random() * 100
    return card.critical_hit_chance is not None and card.critical_hit_chance > draw


def _build_side(
    card: Card, ability: Ability, bonus: ToolBonus | None, roll: int, critical_hit: bool
) -> RoundSideResult:
    base_stat = card.ability_score(ability)
    applied_bonus = bonus.value if bonus is not None and bonus.applies_to(ability) else 0
    stat = base_stat + applied_bonus
    effective_roll = roll * 2 if critical_hit else roll

    return RoundSideResult(
        card_id=card.id,
        card_name=card.full_name,
        roll=roll,
        effective_roll=effective_roll,
        base_stat_value=base_stat,
        stat_value=stat,
        tool_bonus=applied_bonus if bonus is not None else None,
        tool_name=bonus.display_name if bonus is not None else None,
        critical_hit=critical_hit,
        total=stat + effective_roll,
    )


def resolve_round(
    round_number: int,
    card1: Card,
    card2: Card,
    ability: Ability,
    rng: RandomSource,
    *,
    bonus1: ToolBonus | None = None,
    bonus2: ToolBonus | None = None,
) -> RoundResult:
    """Resolve a single round between two cards on the given ability.

    Draw order: player 1 die, player 2 die, player 1 crit, player 2 crit.
    A critical hit doubles that side's die, never its stat.
    """
    roll1 = roll_d6(rng)
    roll2 = roll_d6(rng)
    crit1 = _roll_critical_hit(card1, rng)
    crit2 = _roll_critical_hit(card2, rng)

    side1 = _build_side(card1, ability, bonus1, roll1, crit1)
    side2 = _build_side(card2, ability, bonus2, roll2, crit2)

    if side1.total > side2.total:
        winner = RoundWinner.PLAYER1
    elif side2.total > side1.total:
        winner = RoundWinner.PLAYER2
    else:
        winner = RoundWinner.DRAW

    for label, side in (("P1", side1), ("P2", side2)):
        if side.critical_hit:
            logger.info(
                f"[Round {round_number}] {label} CRITICAL HIT! "
                f"Dice doubled from {side.roll} to {side.effective_roll}"
            )
    logger.debug(
        f"[Round {round_number}] {ability}: "
        f"{side1.card_name} {side1.stat_value}+{side1.effective_roll}={side1.total} vs "
        f"{side2.card_name} {side2.stat_value}+{side2.effective_roll}={side2.total} -> {winner}"
    )

    return RoundResult(
        round_number=round_number,
        ability=ability,
        player1=side1,
        player2=side2,
        damage_dealt=abs(side1.total - side2.total),
        winner=winner,
    )


class BattleEngine:
    """Runs the three rounds of a battle and decides the winner."""

    def __init__(self, rng: RandomSource | None = None) -> None:
        self.rng = rng or default_rng()

    def choose_ability(self, round_index: int, first_round_ability: Ability | None) -> Ability:
        if round_index == 0 and first_round_ability is not None:
            return first_round_ability
        return self.rng.choice(ABILITIES)

    def resolve(
        self, battle: BattleInput, cards: Mapping[int, Card], tools: Mapping[str, Tool]
    ) -> BattleOutcome:
        """Resolve a battle whose play orders are both set.

        Raises:
            BattlePreconditionError: If either side has no play order.
            CardNotFoundError: If a card played in some round is missing from ``cards``.
        """
        order1, order2 = battle.order_for(Side.PLAYER1), battle.order_for(Side.PLAYER2)
        if order1 is None or order2 is None:
            msg = "Both players must set their card orders"
            raise BattlePreconditionError(msg)

        logger.info(f"Resolving battle {battle.battle_id}: orders {order1} vs {order2}")

        bonuses = resolve_tool_bonuses(battle.tool_usages, battle.player1_id, tools)
        rounds: list[RoundResult] = []
        points = dict.fromkeys(Side, 0)
        damage = dict.fromkeys(Side, 0)

        for i in range(ROUNDS_PER_BATTLE):
            round_number = i + 1
            pos1, pos2 = order1[i], order2[i]
            card1 = self._lookup_card(cards, battle.player1_cards[pos1], round_number)
            card2 = self._lookup_card(cards, battle.player2_cards[pos2], round_number)

            ability = self.choose_ability(i, battle.first_round_ability)
            result = resolve_round(
                round_number,
                card1,
                card2,
                ability,
                self.rng,
                bonus1=bonuses[Side.PLAYER1].get(pos1),
                bonus2=bonuses[Side.PLAYER2].get(pos2),
            )
            rounds.append(result)

            if result.winner is not RoundWinner.DRAW:
                winning_side = Side(result.winner.value)
                points[winning_side] += 1
                damage[winning_side] += result.damage_dealt

        winner_side, win_reason = self._decide_winner(points, damage)
        outcome = BattleOutcome(
            rounds=rounds,
            player1_points=points[Side.PLAYER1],
            player2_points=points[Side.PLAYER2],
            player1_total_damage=damage[Side.PLAYER1],
            player2_total_damage=damage[Side.PLAYER2],
            winner_side=winner_side,
            winner_id=battle.participant(winner_side),
            win_reason=win_reason,
            completed_at=get_utc_now(),
        )
        logger.info(
            f"Battle {battle.battle_id} won by {winner_side} ({win_reason}): "
            f"points {outcome.player1_points}-{outcome.player2_points}, "
            f"damage {outcome.player1_total_damage}-{outcome.player2_total_damage}"
        )
        return outcome

    @staticmethod
    def _lookup_card(cards: Mapping[int, Card], card_id: int, round_number: int) -> Card:
        card = cards.get(card_id)
        if card is None:
            raise CardNotFoundError(card_id, round_number)
        return card

    def _decide_winner(
        self, points: dict[Side, int], damage: dict[Side, int]
    ) -> tuple[Side, WinReason]:
        if points[Side.PLAYER1] != points[Side.PLAYER2]:
            side = max(points, key=points.__getitem__)
            return side, WinReason.POINTS
        if damage[Side.PLAYER1] != damage[Side.PLAYER2]:
            side = max(damage, key=damage.__getitem__)
            return side, WinReason.DAMAGE
        side = Side.PLAYER1 if coin_toss(self.rng) else Side.PLAYER2
        return side, WinReason.COIN_TOSS
