import sqlmodel

from app.core.enums import Ability, CardRarity

from ._base import BaseModel


class Card(BaseModel, table=True):
    __tablename__: str = "cards"

    id: int = sqlmodel.Field(primary_key=True, index=True, default=None)
    name: str = sqlmodel.Field(max_length=100, index=True)
    title: str | None = sqlmodel.Field(default=None, max_length=100, nullable=True)
    """Special title like "the Destroyer"; its stat modifiers are already folded in"""
    description: str = ""
    rarity: CardRarity = CardRarity.COMMON

    strength: int = sqlmodel.Field(default=0, ge=0)
    speed: int = sqlmodel.Field(default=0, ge=0)
    agility: int = sqlmodel.Field(default=0, ge=0)
    critical_hit_chance: int | None = sqlmodel.Field(default=None, ge=0, le=100, nullable=True)

    created_by: int | None = sqlmodel.Field(
        default=None, foreign_key="players.id", nullable=True, index=True
    )

    @property
    def full_name(self) -> str:
        return f"{self.title} {self.name}" if self.title else self.name

    def ability_score(self, ability: Ability) -> int:
        return getattr(self, ability.value)

    def __str__(self) -> str:
        return f"{self.full_name} (#{self.id})"
