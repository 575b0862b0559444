"""Seeded cards and players shared by the service-level tests."""

import pytest

from app.schemas.card import CardCreate
from app.services.card import CardService
from app.services.player import PlayerService


@pytest.fixture
async def cards(session):
    """Twelve cards; card ``n`` has ``n`` in every ability."""
    service = CardService(session)
    return [
        await service.create_card(
            CardCreate(name=f"Fighter {n}", strength=n, speed=n, agility=n)
        )
        for n in range(1, 13)
    ]


@pytest.fixture
async def players(session, cards):
    """Two players; Alice's deck holds cards 1-10, Bob's cards 3-12."""
    service = PlayerService(session)
    alice = await service.create_player("alice")
    bob = await service.create_player("bob")
    await service.set_deck(alice.id, [c.id for c in cards[:10]])
    await service.set_deck(bob.id, [c.id for c in cards[2:]])
    return alice, bob
