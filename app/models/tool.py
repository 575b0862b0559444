import sqlmodel

from app.core.enums import ToolEffectType, ToolRestriction

from ._base import BaseModel


class Tool(BaseModel, table=True):
    __tablename__: str = "tools"

    id: str = sqlmodel.Field(primary_key=True, max_length=50)
    """Slug, e.g. ``running-shoes``"""
    name: str = sqlmodel.Field(max_length=100)
    description: str = ""
    effect_type: ToolEffectType
    effect_ability: str | None = sqlmodel.Field(default=None, nullable=True)
    """An ability name, ``"any"``, or None for non-combat tools"""
    effect_value: int | None = sqlmodel.Field(default=None, nullable=True)
    cooldown: int = sqlmodel.Field(default=0, ge=0)
    """Number of battles the tool is unavailable after use"""
    restriction: ToolRestriction | None = sqlmodel.Field(default=None, nullable=True)
