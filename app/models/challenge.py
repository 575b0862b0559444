import sqlmodel

from app.core.enums import ChallengeStatus

from ._base import BaseModel


class Challenge(BaseModel, table=True):
    __tablename__: str = "challenges"

    id: int = sqlmodel.Field(primary_key=True, index=True, default=None)
    challenger_id: int = sqlmodel.Field(foreign_key="players.id", index=True)
    challenged_id: int = sqlmodel.Field(foreign_key="players.id", index=True)
    status: ChallengeStatus = ChallengeStatus.PENDING

    challenger_cards: list[int] | None = sqlmodel.Field(
        default=None, sa_column=sqlmodel.Column(sqlmodel.JSON, nullable=True)
    )
    challenger_order: list[int] | None = sqlmodel.Field(
        default=None, sa_column=sqlmodel.Column(sqlmodel.JSON, nullable=True)
    )
    challenged_cards: list[int] | None = sqlmodel.Field(
        default=None, sa_column=sqlmodel.Column(sqlmodel.JSON, nullable=True)
    )
    challenged_order: list[int] | None = sqlmodel.Field(
        default=None, sa_column=sqlmodel.Column(sqlmodel.JSON, nullable=True)
    )
    revealed_cards: list[int] | None = sqlmodel.Field(
        default=None, sa_column=sqlmodel.Column(sqlmodel.JSON, nullable=True)
    )
    """Challenger cards shown to the challenged player by a reveal tool"""

    battle_id: int | None = sqlmodel.Field(default=None, foreign_key="battles.id", nullable=True)
