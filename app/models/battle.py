from datetime import datetime

import sqlmodel

from app.core.enums import Ability, BattleStatus, Side, WinReason

from ._base import BaseModel


class Battle(BaseModel, table=True):
    __tablename__: str = "battles"

    id: int = sqlmodel.Field(primary_key=True, index=True, default=None)
    player1_id: int = sqlmodel.Field(foreign_key="players.id", index=True)
    player2_id: int | None = sqlmodel.Field(
        default=None, foreign_key="players.id", index=True, nullable=True
    )
    """None when player 2 is the AI opponent"""
    is_simulation: bool = False

    player1_cards: list[int] = sqlmodel.Field(sa_column=sqlmodel.Column(sqlmodel.JSON))
    player2_cards: list[int] = sqlmodel.Field(sa_column=sqlmodel.Column(sqlmodel.JSON))
    player1_order: list[int] | None = sqlmodel.Field(
        default=None, sa_column=sqlmodel.Column(sqlmodel.JSON, nullable=True)
    )
    player2_order: list[int] | None = sqlmodel.Field(
        default=None, sa_column=sqlmodel.Column(sqlmodel.JSON, nullable=True)
    )
    first_round_ability: Ability | None = sqlmodel.Field(default=None, nullable=True)

    rounds: list[dict] = sqlmodel.Field(
        default_factory=list, sa_column=sqlmodel.Column(sqlmodel.JSON)
    )
    current_round: int = 0
    player1_points: int = 0
    player2_points: int = 0
    player1_total_damage: int = 0
    player2_total_damage: int = 0
    winner_id: int | None = sqlmodel.Field(default=None, nullable=True)
    winner_side: Side | None = sqlmodel.Field(default=None, nullable=True)
    win_reason: WinReason | None = sqlmodel.Field(default=None, nullable=True)

    status: BattleStatus = BattleStatus.WAITING_FOR_ORDER
    completed_at: datetime | None = sqlmodel.Field(
        default=None, nullable=True, sa_type=sqlmodel.DateTime(timezone=True)
    )
