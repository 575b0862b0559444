from typing import Literal

from dotenv import load_dotenv
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    db_url: str = "sqlite+aiosqlite:///./battles.db"
    env: Literal["prod", "dev"] = "prod"
    cors_origins: list[str] = ["*"]

    # Battle rewards and rating
    elo_k_factor: int = 32
    default_rating: int = 1000
    pvp_win_reward: int = 50
    simulation_win_reward: int = 30  # Smaller reward against the AI opponent

    # Players and decks
    starting_coins: int = 200
    deck_size: int = 10

    @property
    def is_dev(self) -> bool:
        return self.env == "dev"


load_dotenv()
settings = Config()
