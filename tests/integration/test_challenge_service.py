"""Integration tests for the PvP challenge flow."""

import pytest
from fastapi import HTTPException
from sqlmodel import select

from app.core.enums import Ability, BattleStatus, ChallengeStatus, EventType, Side
from app.core.errors import BattlePreconditionError, BattleStateError
from app.models.battle import Battle
from app.models.event_log import EventLog
from app.models.player_tool import PlayerTool
from app.services.challenge import ChallengeService
from app.services.player import PlayerService
from app.services.tool import ToolService

NO_CRIT = 0.5


@pytest.fixture
def attack(cards):
    """Alice's three strongest cards, played strongest first."""
    return [c.id for c in cards[7:10]], [2, 1, 0]


@pytest.fixture
def defense(cards):
    """Bob's three strongest cards, each two points above Alice's."""
    return [c.id for c in cards[9:12]], [2, 1, 0]


async def _accepted_challenge(service, players, attack):
    alice, bob = players
    challenge = await service.create_challenge(alice.id, bob.id)
    await service.setup_attack(challenge.id, alice.id, *attack)
    return await service.accept(challenge.id, bob.id)


class TestCreateChallenge:
    async def test_new_challenge_is_pending(self, session, players, scripted_rng):
        alice, bob = players
        service = ChallengeService.from_session(session, rng=scripted_rng())

        challenge = await service.create_challenge(alice.id, bob.id)

        assert challenge.status == ChallengeStatus.PENDING
        assert (challenge.challenger_id, challenge.challenged_id) == (alice.id, bob.id)
        assert challenge.battle_id is None

    async def test_cannot_challenge_yourself(self, session, players, scripted_rng):
        alice, _ = players
        service = ChallengeService.from_session(session, rng=scripted_rng())

        with pytest.raises(HTTPException) as exc_info:
            await service.create_challenge(alice.id, alice.id)

        assert exc_info.value.status_code == 400

    async def test_challenger_needs_a_full_deck(self, session, players, scripted_rng):
        _, bob = players
        newcomer = await PlayerService(session).create_player("newcomer")
        service = ChallengeService.from_session(session, rng=scripted_rng())

        with pytest.raises(HTTPException) as exc_info:
            await service.create_challenge(newcomer.id, bob.id)

        assert exc_info.value.status_code == 400

    async def test_unknown_opponent_is_404(self, session, players, scripted_rng):
        alice, _ = players
        service = ChallengeService.from_session(session, rng=scripted_rng())

        with pytest.raises(HTTPException) as exc_info:
            await service.create_challenge(alice.id, 999)

        assert exc_info.value.status_code == 404

    async def test_player_challenges_are_listed(self, session, players, attack, scripted_rng):
        alice, bob = players
        service = ChallengeService.from_session(session, rng=scripted_rng())
        first = await service.create_challenge(alice.id, bob.id)
        second = await service.create_challenge(alice.id, bob.id)
        await service.setup_attack(second.id, alice.id, *attack)
        await service.decline(second.id, bob.id)

        listed = await service.get_player_challenges(bob.id)
        active = await service.get_player_challenges(bob.id, active_only=True)

        assert {c.id for c in listed} == {first.id, second.id}
        assert [c.id for c in active] == [first.id]


class TestChallengeSetupAndResponse:
    async def test_challenger_sets_cards_and_order(self, session, players, attack, scripted_rng):
        alice, bob = players
        service = ChallengeService.from_session(session, rng=scripted_rng())
        challenge = await service.create_challenge(alice.id, bob.id)

        challenge = await service.setup_attack(challenge.id, alice.id, *attack)

        assert challenge.challenger_cards == attack[0]
        assert challenge.challenger_order == attack[1]
        assert challenge.status == ChallengeStatus.PENDING

    async def test_only_the_challenger_sets_attack(self, session, players, attack, scripted_rng):
        alice, bob = players
        service = ChallengeService.from_session(session, rng=scripted_rng())
        challenge = await service.create_challenge(alice.id, bob.id)

        with pytest.raises(HTTPException) as exc_info:
            await service.setup_attack(challenge.id, bob.id, *attack)

        assert exc_info.value.status_code == 403

    @pytest.mark.parametrize(
        ("card_indexes", "order"),
        [
            ((0, 1), (0, 1, 2)),
            ((0, 0, 1), (0, 1, 2)),
            ((0, 1, 2), (0, 0, 1)),
            ((0, 1, 11), (0, 1, 2)),
        ],
        ids=["two-cards", "duplicate-card", "bad-order", "card-outside-deck"],
    )
    async def test_invalid_selection_is_rejected(
        self, session, players, cards, scripted_rng, card_indexes, order
    ):
        alice, bob = players
        service = ChallengeService.from_session(session, rng=scripted_rng())
        challenge = await service.create_challenge(alice.id, bob.id)

        with pytest.raises(BattlePreconditionError):
            await service.setup_attack(
                challenge.id, alice.id, [cards[i].id for i in card_indexes], list(order)
            )

    async def test_accept_needs_the_attack_to_be_set(self, session, players, scripted_rng):
        alice, bob = players
        service = ChallengeService.from_session(session, rng=scripted_rng())
        challenge = await service.create_challenge(alice.id, bob.id)

        with pytest.raises(BattlePreconditionError):
            await service.accept(challenge.id, bob.id)

    async def test_only_the_challenged_player_responds(
        self, session, players, attack, scripted_rng
    ):
        alice, bob = players
        service = ChallengeService.from_session(session, rng=scripted_rng())
        challenge = await service.create_challenge(alice.id, bob.id)
        await service.setup_attack(challenge.id, alice.id, *attack)

        for respond in (service.accept, service.decline):
            with pytest.raises(HTTPException) as exc_info:
                await respond(challenge.id, alice.id)
            assert exc_info.value.status_code == 403

    async def test_declined_challenge_cannot_be_accepted(
        self, session, players, attack, scripted_rng
    ):
        alice, bob = players
        service = ChallengeService.from_session(session, rng=scripted_rng())
        challenge = await service.create_challenge(alice.id, bob.id)
        await service.setup_attack(challenge.id, alice.id, *attack)

        challenge = await service.decline(challenge.id, bob.id)
        assert challenge.status == ChallengeStatus.DECLINED

        with pytest.raises(BattleStateError):
            await service.accept(challenge.id, bob.id)
        with pytest.raises(BattleStateError):
            await service.setup_attack(challenge.id, alice.id, *attack)

    async def test_accepted_challenge_cannot_be_declined(
        self, session, players, attack, scripted_rng
    ):
        _, bob = players
        service = ChallengeService.from_session(session, rng=scripted_rng())
        challenge = await _accepted_challenge(service, players, attack)

        assert challenge.status == ChallengeStatus.ACCEPTED
        with pytest.raises(BattleStateError):
            await service.decline(challenge.id, bob.id)


class TestRevealCards:
    @pytest.fixture
    async def binoculars(self, session, players):
        for player in players:
            session.add(PlayerTool(player_id=player.id, tool_id="binoculars"))
        await session.commit()

    async def test_challenged_player_sees_two_attack_cards(
        self, session, players, attack, binoculars, scripted_rng
    ):
        _, bob = players
        service = ChallengeService.from_session(session, rng=scripted_rng())
        challenge = await _accepted_challenge(service, players, attack)

        revealed = await service.reveal_cards(challenge.id, bob.id, "binoculars")

        assert [c.id for c in revealed] == attack[0][:2]
        assert challenge.revealed_cards == attack[0][:2]
        events = await session.exec(
            select(EventLog).where(EventLog.event_type == EventType.TOOL_USED)
        )
        assert [e.context for e in events.all()] == [
            {"tool_id": "binoculars", "challenge_id": challenge.id}
        ]

    async def test_challenger_cannot_use_binoculars(
        self, session, players, attack, binoculars, scripted_rng
    ):
        alice, _ = players
        service = ChallengeService.from_session(session, rng=scripted_rng())
        challenge = await _accepted_challenge(service, players, attack)

        with pytest.raises(HTTPException) as exc_info:
            await service.reveal_cards(challenge.id, alice.id, "binoculars")

        assert exc_info.value.status_code == 403

    async def test_reveal_happens_once_per_challenge(
        self, session, players, attack, binoculars, scripted_rng
    ):
        _, bob = players
        service = ChallengeService.from_session(session, rng=scripted_rng())
        challenge = await _accepted_challenge(service, players, attack)
        await service.reveal_cards(challenge.id, bob.id, "binoculars")

        with pytest.raises(BattlePreconditionError):
            await service.reveal_cards(challenge.id, bob.id, "binoculars")

    async def test_reveal_needs_an_accepted_challenge(
        self, session, players, attack, binoculars, scripted_rng
    ):
        alice, bob = players
        service = ChallengeService.from_session(session, rng=scripted_rng())
        challenge = await service.create_challenge(alice.id, bob.id)
        await service.setup_attack(challenge.id, alice.id, *attack)

        with pytest.raises(BattleStateError):
            await service.reveal_cards(challenge.id, bob.id, "binoculars")

    async def test_stat_tools_do_not_reveal(self, session, players, attack, scripted_rng):
        _, bob = players
        service = ChallengeService.from_session(session, rng=scripted_rng())
        challenge = await _accepted_challenge(service, players, attack)

        with pytest.raises(HTTPException) as exc_info:
            await service.reveal_cards(challenge.id, bob.id, "running-shoes")

        assert exc_info.value.status_code == 400

    async def test_binoculars_must_be_owned(self, session, players, attack, scripted_rng):
        _, bob = players
        service = ChallengeService.from_session(session, rng=scripted_rng())
        challenge = await _accepted_challenge(service, players, attack)

        with pytest.raises(HTTPException) as exc_info:
            await service.reveal_cards(challenge.id, bob.id, "binoculars")

        assert exc_info.value.status_code == 400
        tools = {t.tool.id for t in await ToolService(session).get_player_tools(bob.id)}
        assert "binoculars" not in tools


class TestSetupDefense:
    async def test_defense_creates_and_runs_the_battle(
        self, session, players, attack, defense, scripted_rng
    ):
        """Bob's defense is two points stronger in every round, so he sweeps."""
        alice, bob = players
        rng = scripted_rng(choices=[Ability.STRENGTH] * 3, ints=[3] * 6, floats=[NO_CRIT] * 6)
        service = ChallengeService.from_session(session, rng=rng)
        challenge = await _accepted_challenge(service, players, attack)

        challenge, battle = await service.setup_defense(challenge.id, bob.id, *defense)

        assert challenge.status == ChallengeStatus.COMPLETED
        assert challenge.battle_id == battle.id
        assert challenge.challenged_cards == defense[0]
        assert battle.status == BattleStatus.COMPLETED
        assert (battle.player1_id, battle.player2_id) == (alice.id, bob.id)
        assert battle.player1_cards == attack[0]
        assert battle.player2_order == defense[1]
        assert battle.winner_side == Side.PLAYER2
        assert (battle.player1_points, battle.player2_points) == (0, 3)
        assert (alice.rating, bob.rating) == (984, 1016)
        assert rng.exhausted

    async def test_defense_needs_an_accepted_challenge(
        self, session, players, attack, defense, scripted_rng
    ):
        alice, bob = players
        service = ChallengeService.from_session(session, rng=scripted_rng())
        challenge = await service.create_challenge(alice.id, bob.id)
        await service.setup_attack(challenge.id, alice.id, *attack)

        with pytest.raises(BattleStateError):
            await service.setup_defense(challenge.id, bob.id, *defense)

    async def test_only_the_challenged_player_defends(
        self, session, players, attack, scripted_rng
    ):
        alice, _ = players
        service = ChallengeService.from_session(session, rng=scripted_rng())
        challenge = await _accepted_challenge(service, players, attack)

        with pytest.raises(HTTPException) as exc_info:
            await service.setup_defense(challenge.id, alice.id, *attack)

        assert exc_info.value.status_code == 403

    async def test_invalid_defense_leaves_the_challenge_open(
        self, session, players, cards, attack, scripted_rng
    ):
        _, bob = players
        service = ChallengeService.from_session(session, rng=scripted_rng())
        challenge = await _accepted_challenge(service, players, attack)

        with pytest.raises(BattlePreconditionError):
            # Card 1 is not in Bob's deck
            await service.setup_defense(
                challenge.id, bob.id, [cards[0].id, cards[5].id, cards[6].id], [0, 1, 2]
            )

        challenge = await service.get_challenge_or_404(challenge.id)
        assert challenge.status == ChallengeStatus.ACCEPTED
        battles = await session.exec(select(Battle))
        assert battles.all() == []

    async def test_completed_challenge_cannot_be_defended_again(
        self, session, players, attack, defense, scripted_rng
    ):
        _, bob = players
        rng = scripted_rng(choices=[Ability.SPEED] * 3, ints=[3] * 6, floats=[NO_CRIT] * 6)
        service = ChallengeService.from_session(session, rng=rng)
        challenge = await _accepted_challenge(service, players, attack)
        await service.setup_defense(challenge.id, bob.id, *defense)

        with pytest.raises(BattleStateError):
            await service.setup_defense(challenge.id, bob.id, *defense)

        battles = await session.exec(select(Battle))
        assert len(battles.all()) == 1
