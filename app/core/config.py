"""Application configuration from environment."""
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from env / .env."""

    app_name: str = "Math Adventure"
    debug: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///./math_adventure.db"

    # Level completion: correct answers / problem count
    completion_threshold: float = 0.8

    # Seeding
    seed_on_startup: bool = True
    seed_random_seed: int | None = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()


# Base path for templates/static (parent of app/)
BASE_DIR = Path(__file__).resolve().parent.parent.parent
APP_DIR = BASE_DIR / "app"
