from pydantic import BaseModel, computed_field

from app.models.tool import Tool


class PlayerToolInfo(BaseModel):
    """A tool in a player's inventory together with its definition."""

    tool: Tool
    quantity: int
    cooldown_remaining: int

    @computed_field
    @property
    def is_available(self) -> bool:
        return self.quantity > 0 and self.cooldown_remaining == 0
