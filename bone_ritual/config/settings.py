"""
Bone Ritual - Application Settings

Loads configuration from environment variables (or a .env file) using
Pydantic Settings, and sets up logging from it.
"""

import logging
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings

from bone_ritual.engine.validators import validate_delay

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    debug: bool = False
    log_level: str = "INFO"

    # Presentation delays (seconds); they never change a match's outcome
    roll_animation_delay: float = 0.8
    opponent_roll_delay: float = 1.0
    opponent_move_delay: float = 1.2

    # Table
    player_name: str = "LAMB"
    player2_name: str = "HERETIC"
    default_persona: str = "klunko"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @field_validator("roll_animation_delay", "opponent_roll_delay", "opponent_move_delay")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        return validate_delay(value)

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached singleton settings instance."""
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Configure root logging from settings; debug mode forces DEBUG."""
    settings = settings or get_settings()
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)
