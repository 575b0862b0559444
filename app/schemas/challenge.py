from pydantic import BaseModel, Field

from app.models.challenge import Challenge
from app.schemas.battle import BattleDetail


class ChallengeCreate(BaseModel):
    challenger_id: int
    challenged_id: int


class ChallengeAction(BaseModel):
    """Body of accept and decline; ``player_id`` must be the challenged player."""

    player_id: int


class ChallengeSetup(BaseModel):
    player_id: int
    cards: list[int] = Field(min_length=3, max_length=3)
    """Three card IDs from the player's deck"""
    order: list[int] = Field(min_length=3, max_length=3)


class ChallengeReveal(BaseModel):
    player_id: int
    tool_id: str


class ChallengeResult(BaseModel):
    challenge: Challenge
    battle: BattleDetail
