import sqlmodel

from ._base import BaseModel


class BattleToolUsage(BaseModel, table=True):
    __tablename__: str = "battle_tool_usages"

    id: int = sqlmodel.Field(primary_key=True, index=True, default=None)
    battle_id: int = sqlmodel.Field(foreign_key="battles.id", index=True)
    player_id: int | None = sqlmodel.Field(
        default=None, foreign_key="players.id", index=True, nullable=True
    )
    """None for the AI opponent"""
    tool_id: str = sqlmodel.Field(foreign_key="tools.id")
    card_id: int = sqlmodel.Field(foreign_key="cards.id")
    card_position: int = sqlmodel.Field(ge=0, le=2)
    """Position in the side's selected triple, not in play order"""
