from collections.abc import Iterable, Sequence
from typing import Annotated

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import update
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.db import get_db
from app.core.enums import EventType, ToolEffectType, ToolRestriction
from app.models.battle import Battle
from app.models.battle_tool_usage import BattleToolUsage
from app.models.event_log import EventLog
from app.models.player_tool import PlayerTool
from app.models.tool import Tool
from app.schemas.tool import PlayerToolInfo

STARTER_TOOL_IDS = ("running-shoes", "sledge-hammer", "tube-of-lotion")

DEFAULT_TOOLS = (
    Tool(
        id="running-shoes",
        name="Running Shoes",
        description="Gives +2 speed to the card you apply it to",
        effect_type=ToolEffectType.STAT_BOOST,
        effect_ability="speed",
        effect_value=2,
    ),
    Tool(
        id="sledge-hammer",
        name="Sledge Hammer",
        description="Gives +2 strength to the card you apply it to",
        effect_type=ToolEffectType.STAT_BOOST,
        effect_ability="strength",
        effect_value=2,
    ),
    Tool(
        id="tube-of-lotion",
        name="Tube of Lotion",
        description="Gives +2 agility to the card you apply it to",
        effect_type=ToolEffectType.STAT_BOOST,
        effect_ability="agility",
        effect_value=2,
    ),
    Tool(
        id="spear",
        name="Spear",
        description="Gives +2 to any ability. Has a 2-battle cooldown after use",
        effect_type=ToolEffectType.ANY_STAT_BOOST,
        effect_ability="any",
        effect_value=2,
        cooldown=2,
    ),
    Tool(
        id="binoculars",
        name="Binoculars",
        description="Reveals 2 random opponent cards. Can only be used when defending",
        effect_type=ToolEffectType.REVEAL_CARDS,
        effect_value=2,
        restriction=ToolRestriction.CHALLENGEE,
    ),
)


class ToolService:
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db)]) -> None:
        self.db = db

    async def seed_default_tools(self) -> int:
        """Insert the default tool definitions that don't exist yet. Returns the count added."""
        result = await self.db.exec(select(Tool.id))
        existing = set(result.all())

        added = 0
        for tool in DEFAULT_TOOLS:
            if tool.id in existing:
                continue
            self.db.add(Tool(**tool.model_dump(exclude={"created_at", "updated_at"})))
            added += 1

        await self.db.commit()
        if added:
            logger.info(f"Initialized {added} tools")
        return added

    async def get_tools(self) -> Sequence[Tool]:
        result = await self.db.exec(select(Tool).order_by(col(Tool.id)))
        return result.all()

    async def get_tool(self, tool_id: str) -> Tool | None:
        result = await self.db.exec(select(Tool).where(Tool.id == tool_id))
        return result.first()

    async def get_tools_by_ids(self, tool_ids: Iterable[str]) -> dict[str, Tool]:
        ids = set(tool_ids)
        if not ids:
            return {}
        result = await self.db.exec(select(Tool).where(col(Tool.id).in_(ids)))
        return {tool.id: tool for tool in result.all()}

    async def get_player_tools(self, player_id: int) -> list[PlayerToolInfo]:
        result = await self.db.exec(
            select(PlayerTool, Tool)
            .join(Tool, col(PlayerTool.tool_id) == Tool.id)
            .where(PlayerTool.player_id == player_id)
            .order_by(col(Tool.id))
        )
        return [
            PlayerToolInfo(
                tool=tool,
                quantity=player_tool.quantity,
                cooldown_remaining=player_tool.cooldown_remaining,
            )
            for player_tool, tool in result.all()
        ]

    async def get_battle_tool_usages(self, battle_id: int) -> list[BattleToolUsage]:
        result = await self.db.exec(
            select(BattleToolUsage)
            .where(BattleToolUsage.battle_id == battle_id)
            .order_by(col(BattleToolUsage.id))
        )
        return list(result.all())

    async def claim_tool(self, player_id: int, tool: Tool) -> PlayerTool:
        """Mark one of the player's tools as used by starting its cooldown. Does not commit.

        The cooldown is set with a conditional update on ``cooldown_remaining == 0``,
        so two concurrent uses of the same tool cannot both succeed.
        """
        result = await self.db.exec(
            select(PlayerTool).where(
                PlayerTool.player_id == player_id, PlayerTool.tool_id == tool.id
            )
        )
        player_tool = result.first()
        if not player_tool or player_tool.quantity <= 0 or player_tool.cooldown_remaining > 0:
            raise HTTPException(status_code=400, detail="Tool not available or on cooldown")

        claim = await self.db.exec(
            update(PlayerTool)
            .where(
                col(PlayerTool.id) == player_tool.id,
                col(PlayerTool.quantity) > 0,
                col(PlayerTool.cooldown_remaining) == 0,
            )
            .values(cooldown_remaining=tool.cooldown)
            .execution_options(synchronize_session=False)
        )
        if claim.rowcount == 0:
            await self.db.rollback()
            raise HTTPException(status_code=400, detail="Tool not available or on cooldown")
        return player_tool

    async def apply_tool_to_battle(
        self, battle: Battle, player_id: int, tool_id: str, card_position: int
    ) -> BattleToolUsage:
        """Equip one of the player's tools on the card at ``card_position`` of their triple.

        The usage record and the tool's cooldown are committed together so the
        same tool cannot be used in a second battle before its cooldown registers.
        Tools restricted to the challenged player are used on challenges, not battles.
        """
        if player_id == battle.player1_id:
            cards = battle.player1_cards
        elif player_id == battle.player2_id:
            cards = battle.player2_cards
        else:
            raise HTTPException(status_code=403, detail="Player not in this battle")

        tool = await self.get_tool(tool_id)
        if tool is None:
            raise HTTPException(status_code=404, detail=f"Tool {tool_id!r} not found")
        if tool.restriction == ToolRestriction.CHALLENGEE:
            raise HTTPException(
                status_code=400,
                detail=f"{tool.name} can only be used when defending a challenge",
            )

        player_tool = await self.claim_tool(player_id, tool)

        usage = BattleToolUsage(
            battle_id=battle.id,
            player_id=player_id,
            tool_id=tool_id,
            card_id=cards[card_position],
            card_position=card_position,
        )
        self.db.add(usage)
        self.log_tool_use(
            player_id, tool_id, {"battle_id": battle.id, "position": card_position}
        )

        await self.db.commit()
        await self.db.refresh(usage)
        await self.db.refresh(player_tool)
        logger.info(f"Player {player_id} applied {tool.name} to position {card_position}")
        return usage

    def log_tool_use(self, player_id: int, tool_id: str, context: dict) -> None:
        self.db.add(
            EventLog(
                player_id=player_id,
                event_type=EventType.TOOL_USED,
                context={"tool_id": tool_id, **context},
            )
        )

    async def tick_cooldowns(self, player_id: int, *, skip_tool_ids: Iterable[str] = ()) -> None:
        """Count one finished battle against the player's tool cooldowns. Does not commit."""
        skipped = set(skip_tool_ids)
        result = await self.db.exec(
            select(PlayerTool).where(
                PlayerTool.player_id == player_id, col(PlayerTool.cooldown_remaining) > 0
            )
        )
        for player_tool in result.all():
            if player_tool.tool_id in skipped:
                continue
            player_tool.cooldown_remaining -= 1
            self.db.add(player_tool)
