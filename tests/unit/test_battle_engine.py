"""Unit tests for round resolution and the three-round battle aggregator."""

import random

import pytest
from pydantic import ValidationError

from app.core.enums import Ability, RoundWinner, Side, WinReason
from app.core.errors import BattlePreconditionError, CardNotFoundError
from app.schemas.battle import BattleInput
from app.services.battle_engine import BattleEngine, resolve_round
from app.utils.rng import coin_toss

NO_CRIT = 0.99


class TestResolveRound:
    """Tests for a single round between two cards."""

    def test_higher_total_wins_and_deals_the_difference(self, make_card, scripted_rng):
        """8 strength rolling 3 beats 3 strength rolling 5, 11 to 8."""
        rng = scripted_rng(ints=[3, 5], floats=[0.0, 0.0])
        card_a = make_card(1, strength=8, speed=4, agility=6, critical_hit_chance=0)
        card_b = make_card(2, strength=3, speed=6, agility=7, critical_hit_chance=0)

        result = resolve_round(1, card_a, card_b, Ability.STRENGTH, rng)

        assert result.player1.total == 11
        assert result.player2.total == 8
        assert not result.player1.critical_hit
        assert not result.player2.critical_hit
        assert result.winner is RoundWinner.PLAYER1
        assert result.damage_dealt == 3
        assert rng.exhausted

    def test_equal_totals_are_a_draw(self, make_card, scripted_rng):
        rng = scripted_rng(ints=[4, 2], floats=[NO_CRIT, NO_CRIT])

        result = resolve_round(
            2, make_card(1, speed=5), make_card(2, speed=7), Ability.SPEED, rng
        )

        assert result.winner is RoundWinner.DRAW
        assert result.damage_dealt == 0
        assert result.side(Side.PLAYER1).total == result.side(Side.PLAYER2).total == 9

    def test_uses_the_round_ability(self, make_card, scripted_rng):
        rng = scripted_rng(ints=[1, 1], floats=[NO_CRIT, NO_CRIT])
        card1 = make_card(1, strength=1, speed=1, agility=9)
        card2 = make_card(2, strength=9, speed=9, agility=1)

        result = resolve_round(1, card1, card2, Ability.AGILITY, rng)

        assert result.ability is Ability.AGILITY
        assert result.player1.base_stat_value == 9
        assert result.winner is RoundWinner.PLAYER1

    def test_critical_hit_doubles_the_die_only(self, make_card, scripted_rng):
        """A critical hit turns a roll of 4 into 8; the stat is not doubled."""
        rng = scripted_rng(ints=[4, 6], floats=[0.2, NO_CRIT])
        card1 = make_card(1, strength=5, critical_hit_chance=50)
        card2 = make_card(2, strength=5, critical_hit_chance=50)

        result = resolve_round(1, card1, card2, Ability.STRENGTH, rng)

        assert result.player1.critical_hit is True
        assert result.player1.roll == 4
        assert result.player1.effective_roll == 8
        assert result.player1.total == 13
        assert result.player2.critical_hit is False
        assert result.player2.total == 11
        assert result.damage_dealt == 2

    def test_critical_hit_needs_chance_above_the_draw(self, make_card, scripted_rng):
        """A 50% chance against a draw of exactly 50 is not a critical hit."""
        rng = scripted_rng(ints=[3, 3], floats=[0.5, 0.49])
        card = make_card(1, critical_hit_chance=50)

        result = resolve_round(1, card, make_card(2, critical_hit_chance=50), Ability.SPEED, rng)

        assert result.player1.critical_hit is False
        assert result.player2.critical_hit is True

    def test_draw_order_is_dice_then_crits(self, make_card, scripted_rng):
        """Player 1's die is drawn before player 2's, then the crits in the same order."""
        rng = scripted_rng(ints=[1, 6], floats=[0.0, NO_CRIT])

        result = resolve_round(
            1,
            make_card(1, critical_hit_chance=10),
            make_card(2, critical_hit_chance=10),
            Ability.STRENGTH,
            rng,
        )

        assert result.player1.roll == 1
        assert result.player1.critical_hit is True
        assert result.player2.roll == 6
        assert result.player2.critical_hit is False

    def test_crit_draw_is_consumed_without_a_chance(self, make_card, scripted_rng):
        rng = scripted_rng(ints=[2, 2], floats=[0.0, 0.0])

        result = resolve_round(1, make_card(1), make_card(2), Ability.STRENGTH, rng)

        assert not result.player1.critical_hit
        assert not result.player2.critical_hit
        assert rng.exhausted

    def test_zero_chance_never_crits(self, make_card):
        rng = random.Random(42)
        card1 = make_card(1, critical_hit_chance=0)
        card2 = make_card(2, critical_hit_chance=0)

        for i in range(10_000):
            result = resolve_round(i + 1, card1, card2, Ability.STRENGTH, rng)
            assert not result.player1.critical_hit
            assert not result.player2.critical_hit

    def test_full_chance_always_crits(self, make_card):
        rng = random.Random(7)
        card = make_card(1, critical_hit_chance=100)

        for i in range(1_000):
            result = resolve_round(i + 1, card, card, Ability.SPEED, rng)
            assert result.player1.critical_hit
            assert result.player1.effective_roll == result.player1.roll * 2

    def test_rolls_stay_on_the_die(self, make_card):
        rng = random.Random(3)

        rolls = set()
        for i in range(1_000):
            result = resolve_round(i + 1, make_card(1), make_card(2), Ability.AGILITY, rng)
            rolls.update((result.player1.roll, result.player2.roll))

        assert rolls == {1, 2, 3, 4, 5, 6}

    def test_card_name_includes_title(self, make_card, scripted_rng):
        rng = scripted_rng(ints=[1, 1], floats=[NO_CRIT, NO_CRIT])
        card = make_card(1, name="Grog", title="the Destroyer")

        result = resolve_round(1, card, make_card(2), Ability.STRENGTH, rng)

        assert result.player1.card_name == "the Destroyer Grog"


def _battle_input(**overrides) -> BattleInput:
    data = {
        "battle_id": 1,
        "player1_id": 10,
        "player2_id": 20,
        "player1_cards": (1, 2, 3),
        "player2_cards": (4, 5, 6),
        "player1_order": (0, 1, 2),
        "player2_order": (0, 1, 2),
        "first_round_ability": Ability.STRENGTH,
    }
    data.update(overrides)
    return BattleInput(**data)


class TestBattleEngine:
    """Tests for the three-round aggregator and the winner cascade."""

    def setup_method(self):
        self.tools = {}

    def _cards(self, make_card, **stats):
        return {card_id: make_card(card_id, **stats) for card_id in range(1, 7)}

    def test_most_points_wins(self, make_card, scripted_rng):
        """Two small round wins beat one large one."""
        rng = scripted_rng(
            choices=[Ability.STRENGTH, Ability.STRENGTH],
            ints=[2, 1, 3, 2, 1, 6],
            floats=[NO_CRIT] * 6,
        )

        outcome = BattleEngine(rng).resolve(_battle_input(), self._cards(make_card), self.tools)

        assert (outcome.player1_points, outcome.player2_points) == (2, 1)
        assert (outcome.player1_total_damage, outcome.player2_total_damage) == (2, 5)
        assert outcome.winner_side is Side.PLAYER1
        assert outcome.winner_id == 10
        assert outcome.win_reason is WinReason.POINTS
        assert rng.exhausted

    def test_tied_points_fall_back_to_damage(self, make_card, scripted_rng):
        rng = scripted_rng(
            choices=[Ability.SPEED, Ability.AGILITY],
            ints=[6, 1, 3, 4, 2, 2],
            floats=[NO_CRIT] * 6,
        )

        outcome = BattleEngine(rng).resolve(_battle_input(), self._cards(make_card), self.tools)

        assert (outcome.player1_points, outcome.player2_points) == (1, 1)
        assert outcome.draws == 1
        assert (outcome.player1_total_damage, outcome.player2_total_damage) == (5, 1)
        assert outcome.winner_side is Side.PLAYER1
        assert outcome.win_reason is WinReason.DAMAGE

    @pytest.mark.parametrize(
        ("coin", "expected_side", "expected_id"),
        [(0.1, Side.PLAYER1, 10), (0.9, Side.PLAYER2, 20)],
    )
    def test_full_tie_goes_to_a_coin_toss(
        self, make_card, scripted_rng, coin, expected_side, expected_id
    ):
        rng = scripted_rng(
            choices=[Ability.STRENGTH, Ability.SPEED],
            ints=[3] * 6,
            floats=[*[NO_CRIT] * 6, coin],
        )

        outcome = BattleEngine(rng).resolve(_battle_input(), self._cards(make_card), self.tools)

        assert outcome.draws == 3
        assert outcome.winner_side is expected_side
        assert outcome.winner_id == expected_id
        assert outcome.win_reason is WinReason.COIN_TOSS
        assert rng.exhausted

    def test_play_order_picks_the_card_for_each_round(self, make_card, scripted_rng):
        rng = scripted_rng(
            choices=[Ability.STRENGTH, Ability.STRENGTH], ints=[1] * 6, floats=[*[NO_CRIT] * 6, 0.1]
        )
        battle = _battle_input(player1_order=(2, 0, 1), player2_order=(1, 2, 0))

        outcome = BattleEngine(rng).resolve(battle, self._cards(make_card), self.tools)

        assert [r.player1.card_id for r in outcome.rounds] == [3, 1, 2]
        assert [r.player2.card_id for r in outcome.rounds] == [5, 6, 4]

    def test_first_round_ability_is_used_then_random(self, make_card, scripted_rng):
        rng = scripted_rng(
            choices=[Ability.AGILITY, Ability.SPEED], ints=[1] * 6, floats=[*[NO_CRIT] * 6, 0.1]
        )
        battle = _battle_input(first_round_ability=Ability.SPEED)

        outcome = BattleEngine(rng).resolve(battle, self._cards(make_card), self.tools)

        assert [r.ability for r in outcome.rounds] == [
            Ability.SPEED,
            Ability.AGILITY,
            Ability.SPEED,
        ]

    def test_every_ability_random_without_a_first_round_ability(self, make_card, scripted_rng):
        rng = scripted_rng(
            choices=[Ability.AGILITY, Ability.STRENGTH, Ability.AGILITY],
            ints=[1] * 6,
            floats=[*[NO_CRIT] * 6, 0.1],
        )
        battle = _battle_input(first_round_ability=None)

        outcome = BattleEngine(rng).resolve(battle, self._cards(make_card), self.tools)

        assert [r.round_number for r in outcome.rounds] == [1, 2, 3]
        assert outcome.rounds[0].ability is Ability.AGILITY
        assert rng.exhausted

    def test_ai_win_has_no_winner_id(self, make_card, scripted_rng):
        rng = scripted_rng(
            choices=[Ability.STRENGTH, Ability.STRENGTH], ints=[1, 6] * 3, floats=[NO_CRIT] * 6
        )
        battle = _battle_input(player2_id=None)

        outcome = BattleEngine(rng).resolve(battle, self._cards(make_card), self.tools)

        assert outcome.winner_side is Side.PLAYER2
        assert outcome.winner_id is None

    def test_missing_order_fails_before_any_draw(self, make_card, scripted_rng):
        rng = scripted_rng()
        battle = _battle_input(player2_order=None)

        with pytest.raises(BattlePreconditionError):
            BattleEngine(rng).resolve(battle, self._cards(make_card), self.tools)

    def test_missing_card_names_card_and_round(self, make_card, scripted_rng):
        rng = scripted_rng(ints=[1, 1], floats=[NO_CRIT, NO_CRIT])
        cards = self._cards(make_card)
        del cards[5]

        with pytest.raises(CardNotFoundError, match="Card 5 not found for round 2") as exc_info:
            BattleEngine(rng).resolve(_battle_input(), cards, self.tools)

        assert exc_info.value.card_id == 5
        assert exc_info.value.round_number == 2

    def test_points_and_damage_add_up(self, make_card):
        """Seeded battles keep points and damage consistent with their rounds."""
        cards = {
            card_id: make_card(
                card_id, strength=card_id, speed=7 - card_id, critical_hit_chance=25
            )
            for card_id in range(1, 7)
        }

        for seed in range(200):
            outcome = BattleEngine(random.Random(seed)).resolve(
                _battle_input(first_round_ability=None), cards, self.tools
            )

            assert len(outcome.rounds) == 3
            assert outcome.player1_points + outcome.player2_points + outcome.draws == 3
            p1_damage = sum(
                r.damage_dealt for r in outcome.rounds if r.winner is RoundWinner.PLAYER1
            )
            assert outcome.player1_total_damage == p1_damage
            if outcome.player1_points != outcome.player2_points:
                assert outcome.win_reason is WinReason.POINTS


class TestBattleInput:
    def test_order_must_be_a_permutation(self):
        with pytest.raises(ValidationError):
            _battle_input(player1_order=(0, 0, 1))

    def test_order_may_be_unset(self):
        assert _battle_input(player1_order=None).order_for(Side.PLAYER1) is None


class FixedDieRandom(random.Random):
    """Seeded random source whose die always shows the same face."""

    def randint(self, a: int, b: int) -> int:
        return 3


class TestCoinToss:
    def test_fully_tied_battles_are_won_by_either_side_evenly(self, make_card):
        rng = FixedDieRandom(1234)
        cards = {card_id: make_card(card_id, critical_hit_chance=0) for card_id in range(1, 7)}
        engine = BattleEngine(rng)

        outcomes = [engine.resolve(_battle_input(), cards, {}) for _ in range(1_000)]

        assert all(o.win_reason is WinReason.COIN_TOSS for o in outcomes)
        assert all(o.draws == 3 for o in outcomes)
        player1_wins = sum(o.winner_side is Side.PLAYER1 for o in outcomes)
        assert 400 <= player1_wins <= 600

    def test_coin_toss_is_fair(self):
        rng = random.Random(1234)

        heads = sum(coin_toss(rng) for _ in range(1_000))

        assert 400 <= heads <= 600
