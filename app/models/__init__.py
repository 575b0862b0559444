from .battle import Battle
from .battle_tool_usage import BattleToolUsage
from .card import Card
from .challenge import Challenge
from .deck_card import DeckCard
from .event_log import EventLog
from .player import Player
from .player_tool import PlayerTool
from .tool import Tool

__all__ = (
    "Battle",
    "BattleToolUsage",
    "Card",
    "Challenge",
    "DeckCard",
    "EventLog",
    "Player",
    "PlayerTool",
    "Tool",
)
