"""Shared fixtures: an in-memory database and a scripted random source."""

from collections import deque
from collections.abc import AsyncGenerator, Iterable, Sequence

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import app.models  # noqa: F401
from app.models.card import Card
from app.services.tool import ToolService


class ScriptedRandom:
    """RandomSource that replays scripted draws and fails when a draw was not scripted.

    ``sample`` is not scripted; it returns the first ``k`` items of the population.
    """

    def __init__(
        self,
        *,
        ints: Iterable[int] = (),
        floats: Iterable[float] = (),
        choices: Iterable[object] = (),
    ) -> None:
        self.ints = deque(ints)
        self.floats = deque(floats)
        self.choices = deque(choices)

    @staticmethod
    def _next(queue: deque, name: str):
        if not queue:
            msg = f"Unscripted {name}() draw"
            raise AssertionError(msg)
        return queue.popleft()

    def random(self) -> float:
        return self._next(self.floats, "random")

    def randint(self, a: int, b: int) -> int:
        value = self._next(self.ints, "randint")
        assert a <= value <= b
        return value

    def choice(self, seq: Sequence):
        value = self._next(self.choices, "choice")
        assert value in seq
        return value

    def sample(self, population: Sequence, k: int) -> list:
        return list(population)[:k]

    @property
    def exhausted(self) -> bool:
        return not (self.ints or self.floats or self.choices)


@pytest.fixture
def scripted_rng():
    """Factory for ``ScriptedRandom`` instances."""
    return ScriptedRandom


@pytest.fixture
def make_card():
    def _make_card(  # noqa: PLR0913
        card_id: int,
        *,
        strength: int = 5,
        speed: int = 5,
        agility: int = 5,
        critical_hit_chance: int | None = None,
        name: str | None = None,
        title: str | None = None,
    ) -> Card:
        return Card(
            id=card_id,
            name=name or f"Card {card_id}",
            title=title,
            strength=strength,
            speed=speed,
            agility=agility,
            critical_hit_chance=critical_hit_chance,
        )

    return _make_card


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    engine = create_async_engine(
        "sqlite+aiosqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    async with AsyncSession(db_engine, expire_on_commit=False) as session:
        await ToolService(session).seed_default_tools()
        yield session
