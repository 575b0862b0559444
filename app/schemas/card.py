from pydantic import BaseModel, Field

from app.core.enums import CardRarity


class CardCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    title: str | None = None
    description: str = ""
    rarity: CardRarity = CardRarity.COMMON
    strength: int = Field(ge=0)
    speed: int = Field(ge=0)
    agility: int = Field(ge=0)
    critical_hit_chance: int | None = Field(default=None, ge=0, le=100)
    created_by: int | None = None
