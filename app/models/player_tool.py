import sqlmodel

from ._base import BaseModel


class PlayerTool(BaseModel, table=True):
    __tablename__: str = "player_tools"
    __table_args__ = (sqlmodel.UniqueConstraint("player_id", "tool_id"),)

    id: int = sqlmodel.Field(primary_key=True, index=True, default=None)
    player_id: int = sqlmodel.Field(foreign_key="players.id", index=True)
    tool_id: str = sqlmodel.Field(foreign_key="tools.id", index=True)
    quantity: int = sqlmodel.Field(default=1, ge=0)
    cooldown_remaining: int = sqlmodel.Field(default=0, ge=0)
