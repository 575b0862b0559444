from datetime import datetime

from pydantic import BaseModel


class LeaderboardEntry(BaseModel):
    """Leaderboard entry with rank and player info."""

    rank: int
    player_id: int
    name: str
    rating: int
    pvp_wins: int
    pvp_losses: int
    total_wins: int
    total_losses: int
    win_rate: int
    """Percentage of PvP games won, rounded"""
    last_active: datetime | None = None


class PlayerRank(BaseModel):
    rank: int
    player_id: int
    name: str
    rating: int
    pvp_wins: int
    pvp_losses: int
    total_players: int
