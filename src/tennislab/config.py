"""Environment-driven configuration helpers for TennisLab."""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from tennislab.constants import DEFAULT_CONSTANTS, EngineConstants


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or .env files."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    database_url: AnyUrl | str = Field(default="sqlite:///./tennislab.db")
    tennislab_api_key: str = Field(default="", validation_alias="TENNISLAB_API_KEY")
    log_level: str = Field(default="INFO")

    k_factor: float = Field(default=DEFAULT_CONSTANTS.k_factor, gt=0)
    rating_floor: float = Field(default=DEFAULT_CONSTANTS.rating_floor, ge=0)
    safe_bet_unit_cost: int = Field(default=DEFAULT_CONSTANTS.safe_bet_unit_cost, ge=0)
    streak_booster_step: float = Field(default=DEFAULT_CONSTANTS.streak_booster_step, ge=0.0, le=1.0)
    streak_booster_max: float = Field(default=DEFAULT_CONSTANTS.streak_booster_max, ge=0.0, le=1.0)
    bookmaker_margin: float = Field(default=DEFAULT_CONSTANTS.bookmaker_margin, ge=0.0, le=1.0)
    schedule_timezone: str = Field(default=DEFAULT_CONSTANTS.schedule_timezone)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()  # type: ignore[call-arg]


def engine_constants(settings: Settings | None = None) -> EngineConstants:
    """Overlay the tunable settings onto the shared constants table."""

    settings = settings or get_settings()
    return DEFAULT_CONSTANTS.replace(
        k_factor=settings.k_factor,
        rating_floor=settings.rating_floor,
        safe_bet_unit_cost=settings.safe_bet_unit_cost,
        streak_booster_step=settings.streak_booster_step,
        streak_booster_max=settings.streak_booster_max,
        bookmaker_margin=settings.bookmaker_margin,
        schedule_timezone=settings.schedule_timezone,
    )


def get_api_access_key() -> str:
    key = os.getenv("TENNISLAB_API_KEY") or get_settings().tennislab_api_key
    if not key:
        raise RuntimeError(
            "TENNISLAB_API_KEY is not configured. Set it in your environment or .env file."
        )
    return key


def configure_logging(level: str | None = None) -> None:
    """Basic logging setup for CLI entry points."""

    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
