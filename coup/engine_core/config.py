"""
Configuration - Engine settings and logging setup.

Settings come from code or from the environment:
    COUP_MAX_PLAYERS           2..6 (default 6)
    COUP_RESPONSE_TIME_LIMIT   seconds, > 0 (default 15)
    COUP_SEED                  optional int for reproducible games
    COUP_LOG_LEVEL             logging level name (default INFO)
"""

from __future__ import annotations
from typing import Optional
import logging
import os

from pydantic import BaseModel, Field, field_validator

from .rules import MAX_PLAYERS, MIN_PLAYERS

DEFAULT_RESPONSE_TIME_LIMIT = 15.0


class EngineConfig(BaseModel):
    """Validated settings for one engine instance."""
    max_players: int = Field(MAX_PLAYERS, ge=MIN_PLAYERS, le=MAX_PLAYERS)
    response_time_limit: float = Field(DEFAULT_RESPONSE_TIME_LIMIT, gt=0)
    seed: Optional[int] = None
    log_level: str = "INFO"

    model_config = {"frozen": True}

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {value}")
        return level

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Build a config from COUP_* environment variables."""
        values: dict[str, str] = {}
        env_map = {
            "max_players": "COUP_MAX_PLAYERS",
            "response_time_limit": "COUP_RESPONSE_TIME_LIMIT",
            "seed": "COUP_SEED",
            "log_level": "COUP_LOG_LEVEL",
        }
        for field_name, var in env_map.items():
            raw = os.getenv(var)
            if raw is not None and raw != "":
                values[field_name] = raw
        return cls(**values)


def configure_logging(level: str = "INFO") -> None:
    """Basic stderr logging for the CLI and scripts."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
