from datetime import datetime

import sqlmodel

from app.core.config import settings

from ._base import BaseModel


class Player(BaseModel, table=True):
    __tablename__: str = "players"

    id: int = sqlmodel.Field(primary_key=True, index=True, default=None)
    name: str = sqlmodel.Field(max_length=50, index=True, unique=True)
    coins: int = sqlmodel.Field(default=settings.starting_coins, ge=0)

    wins: int = sqlmodel.Field(default=0, ge=0)
    losses: int = sqlmodel.Field(default=0, ge=0)
    pvp_wins: int = sqlmodel.Field(default=0, ge=0)
    """Wins against other human players only"""
    pvp_losses: int = sqlmodel.Field(default=0, ge=0)
    rating: int = sqlmodel.Field(default=settings.default_rating, index=True)

    last_active: datetime | None = sqlmodel.Field(
        default=None, nullable=True, sa_type=sqlmodel.DateTime(timezone=True)
    )
